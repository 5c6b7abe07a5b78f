"""
ClothManager - clothing catalogue and storage records

Responsibilities:
- Create, edit and delete clothes
- Create, edit and delete the storages that hold a cloth's stock
- Keep exactly one primary storage per cloth that has storages
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.core.errors import NotFound, PersistenceFailure, ValidationFailed
from app.buisness.core.field_rules import coerce_bool, coerce_decimal, coerce_int, coerce_str
from app.data.inventory.buy import Buy
from app.data.inventory.cloth import Cloth
from app.data.inventory.storage import Storage
from app.logger import get_logger

logger = get_logger("clothing_store.buisness.inventory.cloth_manager")


class ClothManager:
    """Catalogue and storage CRUD helpers"""

    @staticmethod
    def _commit(action: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error {action}: {e}")
            raise PersistenceFailure()

    # ========== Clothes ==========

    @staticmethod
    def get_cloth(cloth_id: int) -> Cloth:
        cloth = db.session.get(Cloth, cloth_id)
        if cloth is None:
            logger.warning(f"Cloth with ID {cloth_id} not found")
            raise NotFound('Cloth not found')
        return cloth

    @staticmethod
    def _cloth_fields(data: Dict[str, Any], creating: bool) -> Dict[str, Any]:
        errors = {}
        fields = {}
        if creating or 'name' in data:
            fields['name'] = coerce_str(data, 'name', errors, required=True, max_length=150)
        for field, limit in (('category', 100), ('size', 20), ('color', 50)):
            if field in data:
                fields[field] = coerce_str(data, field, errors, max_length=limit)
        if 'description' in data:
            fields['description'] = coerce_str(data, 'description', errors)
        if creating or 'price' in data:
            fields['price'] = coerce_decimal(data, 'price', errors, required=True, minimum=Decimal('0'))

        if errors:
            raise ValidationFailed.for_fields(errors)
        return fields

    @classmethod
    def create_cloth(cls, data: Dict[str, Any]) -> Cloth:
        """
        Create a cloth. An optional `quantity_limit` (and `location`) creates its
        primary storage in the same transaction.

        Raises:
            ValidationFailed: missing name/price or malformed values
        """
        fields = cls._cloth_fields(data, creating=True)

        errors = {}
        quantity_limit = coerce_int(data, 'quantity_limit', errors, minimum=0)
        location = coerce_str(data, 'location', errors, max_length=120)
        if errors:
            raise ValidationFailed.for_fields(errors)

        cloth = Cloth(**fields)
        db.session.add(cloth)
        if quantity_limit is not None:
            cloth.storages.append(Storage(quantity_limit=quantity_limit, location=location, is_primary=True))

        cls._commit(f"creating cloth {fields.get('name')}")
        logger.info(f"Created cloth {cloth.id} ({cloth.name})")
        return cloth

    @classmethod
    def edit_cloth(cls, cloth_id: int, data: Dict[str, Any]) -> Cloth:
        cloth = cls.get_cloth(cloth_id)
        fields = cls._cloth_fields(data, creating=False)
        for field, value in fields.items():
            setattr(cloth, field, value)
        cls._commit(f"editing cloth {cloth_id}")
        logger.info(f"Edited cloth {cloth_id}: {sorted(fields)}")
        return cloth

    @classmethod
    def delete_cloth(cls, cloth_id: int) -> None:
        """
        Delete a cloth together with its storages.

        Raises:
            NotFound: unknown cloth
            ValidationFailed: purchases still reference the cloth
        """
        cloth = cls.get_cloth(cloth_id)
        if Buy.query.filter_by(cloth_id=cloth_id).first() is not None:
            raise ValidationFailed(
                'Cloth has purchases and cannot be deleted',
                errors={'cloth_id': ['Cloth has purchases and cannot be deleted.']},
            )
        db.session.delete(cloth)
        cls._commit(f"deleting cloth {cloth_id}")
        logger.info(f"Deleted cloth {cloth_id}")

    @staticmethod
    def list_clothes(page: int = 1, per_page: int = 10):
        return Cloth.query.order_by(Cloth.id).paginate(page=page, per_page=per_page, error_out=False)

    # ========== Storage ==========

    @staticmethod
    def get_storage(storage_id: int) -> Storage:
        storage = db.session.get(Storage, storage_id)
        if storage is None:
            logger.warning(f"Storage with ID {storage_id} not found")
            raise NotFound('Storage not Found')
        return storage

    @staticmethod
    def _make_primary(storage: Storage) -> None:
        for sibling in storage.cloth.storages:
            sibling.is_primary = sibling is storage

    @classmethod
    def create_storage(cls, data: Dict[str, Any]) -> Storage:
        """
        Add a storage to a cloth. A cloth's first storage becomes its primary.

        Raises:
            ValidationFailed: unknown cloth or malformed values
        """
        errors = {}
        cloth_id = coerce_int(data, 'cloth_id', errors, required=True)
        quantity_limit = coerce_int(data, 'quantity_limit', errors, required=True, minimum=0)
        location = coerce_str(data, 'location', errors, max_length=120)
        make_primary = coerce_bool(data, 'is_primary')

        cloth = None
        if cloth_id is not None:
            cloth = db.session.get(Cloth, cloth_id)
            if cloth is None:
                errors.setdefault('cloth_id', []).append("The selected cloth id is invalid.")
        if errors:
            raise ValidationFailed.for_fields(errors)

        storage = Storage(quantity_limit=quantity_limit, location=location, is_primary=False)
        first = not cloth.storages
        cloth.storages.append(storage)
        if first or make_primary:
            cls._make_primary(storage)

        cls._commit(f"creating storage for cloth {cloth_id}")
        logger.info(f"Created storage {storage.id} for cloth {cloth_id} with {quantity_limit} unit(s)")
        return storage

    @classmethod
    def edit_storage(cls, storage_id: int, data: Dict[str, Any]) -> Storage:
        """
        Update location, quantity_limit and/or primary flag of a storage.
        Setting is_primary demotes the cloth's other storages.
        """
        storage = cls.get_storage(storage_id)

        errors = {}
        changes = {}
        if 'quantity_limit' in data:
            changes['quantity_limit'] = coerce_int(data, 'quantity_limit', errors, required=True, minimum=0)
        if 'location' in data:
            changes['location'] = coerce_str(data, 'location', errors, max_length=120)
        if errors:
            raise ValidationFailed.for_fields(errors)

        for field, value in changes.items():
            setattr(storage, field, value)
        if coerce_bool(data, 'is_primary'):
            cls._make_primary(storage)

        cls._commit(f"editing storage {storage_id}")
        logger.info(f"Edited storage {storage_id}: {sorted(changes)}")
        return storage

    @classmethod
    def edit_stock(cls, cloth_id: int, storage_id: int, data: Dict[str, Any]) -> Storage:
        """
        Set the remaining quantity of one of a cloth's storages.

        Raises:
            NotFound: unknown cloth, or the storage does not belong to it
            ValidationFailed: quantity_limit missing or negative
        """
        cloth = cls.get_cloth(cloth_id)
        storage = cls.get_storage(storage_id)
        if storage.cloth_id != cloth.id:
            logger.warning(f"Storage {storage_id} does not belong to cloth {cloth_id}")
            raise NotFound('Storage not Found')

        errors = {}
        quantity_limit = coerce_int(data, 'quantity_limit', errors, required=True, minimum=0)
        if errors:
            raise ValidationFailed.for_fields(errors)

        storage.quantity_limit = quantity_limit
        cls._commit(f"editing stock of storage {storage_id}")
        logger.info(f"Stock of storage {storage_id} set to {quantity_limit}")
        return storage

    @classmethod
    def delete_storage(cls, storage_id: int) -> None:
        """Delete a storage; if it was primary, the next storage takes over"""
        storage = cls.get_storage(storage_id)
        cloth = storage.cloth
        was_primary = storage.is_primary

        # Purchases from this storage fall back to the cloth's primary from now on
        Buy.query.filter_by(storage_id=storage_id).update({'storage_id': None}, synchronize_session='fetch')
        cloth.storages.remove(storage)
        db.session.delete(storage)
        if was_primary and cloth.storages:
            cls._make_primary(cloth.storages[0])

        cls._commit(f"deleting storage {storage_id}")
        logger.info(f"Deleted storage {storage_id}")

    @staticmethod
    def list_storages(cloth_id: Optional[int] = None):
        query = Storage.query
        if cloth_id is not None:
            query = query.filter_by(cloth_id=cloth_id)
        return query.order_by(Storage.id).all()
