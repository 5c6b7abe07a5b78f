from app import db
from app.data.core.timestamped_base import TimestampedBase


class Cloth(TimestampedBase):
    """A sellable clothing item. Stock lives in its Storage rows."""
    __tablename__ = 'cloths'

    name = db.Column(db.String(150), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    size = db.Column(db.String(20), nullable=True)
    color = db.Column(db.String(50), nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)

    storages = db.relationship(
        'Storage',
        back_populates='cloth',
        cascade='all, delete-orphan',
        order_by='Storage.id',
    )
    buys = db.relationship('Buy', back_populates='cloth', lazy='dynamic')

    @property
    def primary_storage(self):
        """
        The storage purchases draw from: the one flagged primary, else the
        lowest-id storage. None when the cloth has no storage at all.
        """
        for storage in self.storages:
            if storage.is_primary:
                return storage
        return self.storages[0] if self.storages else None

    @property
    def total_quantity(self):
        return sum(s.quantity_limit or 0 for s in self.storages)

    def to_dict(self, include_relationships=False, include_audit_fields=True):
        result = super().to_dict(include_relationships=include_relationships,
                                 include_audit_fields=include_audit_fields)
        if result.get('price') is not None:
            result['price'] = float(result['price'])
        return result

    def __repr__(self):
        return f'<Cloth {self.name}>'
