from app import db
from app.data.core.timestamped_base import TimestampedBase


class Storage(TimestampedBase):
    """
    Stock record for a cloth. quantity_limit is the number of units that can
    still be sold from this storage and never goes below zero.
    """
    __tablename__ = 'storages'

    cloth_id = db.Column(db.Integer, db.ForeignKey('cloths.id'), nullable=False, index=True)
    location = db.Column(db.String(120), nullable=True)
    quantity_limit = db.Column(db.Integer, nullable=False, default=0)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.CheckConstraint('quantity_limit >= 0', name='ck_storage_quantity_limit_non_negative'),
    )

    cloth = db.relationship('Cloth', back_populates='storages')

    def __repr__(self):
        return f'<Storage Cloth:{self.cloth_id} Qty:{self.quantity_limit}>'
