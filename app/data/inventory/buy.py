from app import db
from app.data.core.timestamped_base import TimestampedBase

PAYMENT_STATUSES = (0, 1)
CONFIRMATION_STATUSES = (0, 1, 2)


class Buy(TimestampedBase):
    """
    Purchase fact between a user and a cloth.

    payment_status: 0 unpaid, 1 paid
    confirmation_status: 0, 1 or 2 (fulfilment marker)
    """
    __tablename__ = 'buys'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    cloth_id = db.Column(db.Integer, db.ForeignKey('cloths.id'), nullable=False, index=True)
    # Storage the units were taken from; null once that storage is deleted
    storage_id = db.Column(db.Integer, db.ForeignKey('storages.id', ondelete='SET NULL'), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(50), nullable=False)
    payment_status = db.Column(db.Integer, nullable=False, default=0)
    confirmation_status = db.Column(db.Integer, nullable=False, default=0)

    user = db.relationship('User', back_populates='buys')
    cloth = db.relationship('Cloth', back_populates='buys')

    def __repr__(self):
        return f'<Buy {self.id} User:{self.user_id} Cloth:{self.cloth_id} Qty:{self.quantity}>'
