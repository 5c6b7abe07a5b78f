from app import db
from datetime import datetime
from sqlalchemy.orm import declared_attr
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class TimestampedBase(db.Model, DataInsertionMixin):
    """Abstract base class for store entities with creation/update timestamps"""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_columns(self):
        return {'id', 'created_at', 'updated_at'}
