"""
BuyManager - purchase lifecycle and stock reconciliation

Responsibilities:
- Create purchases against a cloth's primary storage and remember that storage
- Keep the purchase's storage in step with its quantity on edit/delete
- Confirm payment
- Guarantee a storage never goes below zero, including under concurrent buys

Stock moves go through a conditional UPDATE
(quantity_limit = quantity_limit - :q WHERE quantity_limit >= :q) issued in
the same transaction as the purchase row, so the check and the write cannot
be separated by another request.
"""

from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.core.errors import (
    AuthorizationFailed,
    DomainError,
    NotFound,
    PersistenceFailure,
    StorageNotFound,
    StorageQuantityExceeded,
    ValidationFailed,
)
from app.buisness.core.field_rules import coerce_int, coerce_str, is_missing
from app.data.core.user_info.user import User
from app.data.inventory.buy import Buy, CONFIRMATION_STATUSES, PAYMENT_STATUSES
from app.data.inventory.cloth import Cloth
from app.data.inventory.storage import Storage
from app.logger import get_logger

logger = get_logger("clothing_store.buisness.inventory.buy_manager")

EDITABLE_FIELDS = ('quantity', 'payment_method', 'payment_status', 'confirmation_status')


class BuyManager:
    """Purchase operations. Every public method commits or rolls back its own transaction."""

    # ========== Stock movements ==========

    @staticmethod
    def _reserve_stock(storage_id: int, quantity: int) -> None:
        """
        Take `quantity` units out of a storage, only if that many remain.

        Raises:
            StorageQuantityExceeded: fewer than `quantity` units remain
        """
        result = db.session.execute(
            update(Storage)
            .where(Storage.id == storage_id, Storage.quantity_limit >= quantity)
            .values(quantity_limit=Storage.quantity_limit - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Storage {storage_id} cannot supply {quantity} unit(s)")
            raise StorageQuantityExceeded()

    @staticmethod
    def _release_stock(storage_id: int, quantity: int) -> None:
        """Return `quantity` units to a storage"""
        db.session.execute(
            update(Storage)
            .where(Storage.id == storage_id)
            .values(quantity_limit=Storage.quantity_limit + quantity)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _remaining_stock(storage_id: int) -> int:
        return db.session.execute(
            select(Storage.quantity_limit).where(Storage.id == storage_id)
        ).scalar_one()

    @staticmethod
    def _commit_or_rollback(work, action: str):
        """
        Run `work` inside the session transaction and commit it.

        Domain errors roll back and propagate unchanged; database errors roll
        back and surface as PersistenceFailure.
        """
        try:
            result = work()
            db.session.commit()
            return result
        except DomainError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error {action}: {e}")
            raise PersistenceFailure()

    # ========== Lookups ==========

    @staticmethod
    def get_buy(buy_id: int) -> Buy:
        """
        Raises:
            NotFound: no purchase with this id
        """
        buy = db.session.get(Buy, buy_id)
        if buy is None:
            logger.warning(f"Buy with ID {buy_id} not found")
            raise NotFound('Buy not found')
        return buy

    @staticmethod
    def _storage_of(buy: Buy) -> Optional[Storage]:
        """
        The storage a purchase's units belong to: the one they were taken
        from, or the cloth's current primary when that storage is gone.
        """
        if buy.storage_id is not None:
            storage = db.session.get(Storage, buy.storage_id)
            if storage is not None:
                return storage
        return buy.cloth.primary_storage if buy.cloth else None

    @staticmethod
    def _require_admin(actor: Optional[User]) -> None:
        if actor is None or not actor.is_admin:
            raise AuthorizationFailed()

    @staticmethod
    def _resolve_buyer(actor: Optional[User], data: Dict[str, Any], errors) -> Optional[User]:
        """
        Admins may buy on behalf of any user; customers only for themselves.
        Without a user_id the actor is the buyer.
        """
        if is_missing(data.get('user_id')):
            if actor is None:
                errors.setdefault('user_id', []).append("The user id field is required.")
            return actor

        user_id = coerce_int(data, 'user_id', errors)
        if user_id is None:
            return None

        if actor is not None and not actor.is_admin and user_id != actor.id:
            errors.setdefault('user_id', []).append("You may only buy for your own account.")
            return None

        buyer = db.session.get(User, user_id)
        if buyer is None:
            errors.setdefault('user_id', []).append("The selected user id is invalid.")
        return buyer

    # ========== Operations ==========

    @classmethod
    def create_buy(cls, actor: Optional[User], data: Dict[str, Any]) -> Buy:
        """
        Record a purchase and take its quantity out of the cloth's primary storage.

        Args:
            actor: the authenticated user placing the order
            data: cloth_id, quantity, payment_method and optionally user_id,
                  payment_status, confirmation_status. Status values are
                  validated but the new purchase always starts at 0/0.

        Returns:
            Buy: the committed purchase

        Raises:
            ValidationFailed: malformed input, unknown cloth or user
            StorageNotFound: the cloth has no storage
            StorageQuantityExceeded: not enough stock
            PersistenceFailure: the write failed
        """
        errors = {}
        cloth_id = coerce_int(data, 'cloth_id', errors, required=True)
        quantity = coerce_int(data, 'quantity', errors, required=True, minimum=1)
        payment_method = coerce_str(data, 'payment_method', errors, required=True, max_length=50)
        coerce_int(data, 'payment_status', errors)
        coerce_int(data, 'confirmation_status', errors)
        buyer = cls._resolve_buyer(actor, data, errors)

        cloth = None
        if cloth_id is not None:
            cloth = db.session.get(Cloth, cloth_id)
            if cloth is None:
                errors.setdefault('cloth_id', []).append("The selected cloth id is invalid.")

        if errors:
            raise ValidationFailed.for_fields(errors)

        storage = cloth.primary_storage
        if storage is None:
            logger.warning(f"Cloth {cloth.id} has no storage to sell from")
            raise StorageNotFound()

        if quantity > storage.quantity_limit:
            raise StorageQuantityExceeded()

        storage_id = storage.id

        def work():
            cls._reserve_stock(storage_id, quantity)
            buy = Buy(
                user_id=buyer.id,
                cloth_id=cloth.id,
                storage_id=storage_id,
                quantity=quantity,
                payment_method=payment_method,
                payment_status=0,
                confirmation_status=0,
            )
            db.session.add(buy)
            db.session.flush()

            if cls._remaining_stock(storage_id) < 0:
                raise StorageQuantityExceeded()
            return buy

        buy = cls._commit_or_rollback(work, f"creating buy for cloth {cloth.id}")
        logger.info(f"Created buy {buy.id}: user {buy.user_id} bought {quantity} of cloth {buy.cloth_id}")
        return buy

    @classmethod
    def edit_buy(cls, actor: Optional[User], buy_id: int, data: Dict[str, Any]) -> Buy:
        """
        Partially update a purchase. A quantity change moves the difference
        into or out of the storage the purchase was taken from.

        Raises:
            AuthorizationFailed: actor is not an admin
            NotFound: no purchase with this id
            ValidationFailed: malformed values
            StorageNotFound: quantity raised but the cloth has no storage
            StorageQuantityExceeded: quantity raised beyond remaining stock
        """
        cls._require_admin(actor)
        buy = cls.get_buy(buy_id)

        errors = {}
        changes = {}
        if 'quantity' in data:
            changes['quantity'] = coerce_int(data, 'quantity', errors, required=True, minimum=1)
        if 'payment_method' in data:
            changes['payment_method'] = coerce_str(data, 'payment_method', errors, required=True, max_length=50)
        if 'payment_status' in data:
            changes['payment_status'] = coerce_int(
                data, 'payment_status', errors, required=True, choices=PAYMENT_STATUSES)
        if 'confirmation_status' in data:
            changes['confirmation_status'] = coerce_int(
                data, 'confirmation_status', errors, required=True, choices=CONFIRMATION_STATUSES)

        if errors:
            raise ValidationFailed.for_fields(errors)

        def work():
            new_quantity = changes.get('quantity')
            if new_quantity is not None and new_quantity != buy.quantity:
                delta = new_quantity - buy.quantity
                storage = cls._storage_of(buy)
                if delta > 0:
                    if storage is None:
                        raise StorageNotFound()
                    cls._reserve_stock(storage.id, delta)
                elif storage is not None:
                    cls._release_stock(storage.id, -delta)
                else:
                    logger.warning(f"Cloth {buy.cloth_id} has no storage; {-delta} unit(s) not returned")
                if storage is not None:
                    buy.storage_id = storage.id

            for field, value in changes.items():
                setattr(buy, field, value)
            return buy

        cls._commit_or_rollback(work, f"editing buy {buy_id}")
        logger.info(f"Edited buy {buy_id}: {sorted(changes)}")
        return buy

    @classmethod
    def confirm_payment(cls, actor: Optional[User], buy_id: int) -> Buy:
        """
        Mark a purchase as paid. Confirming an already paid purchase is a no-op.

        Raises:
            AuthorizationFailed: actor is not an admin
            NotFound: no purchase with this id
        """
        cls._require_admin(actor)
        buy = cls.get_buy(buy_id)

        def work():
            buy.payment_status = 1
            return buy

        cls._commit_or_rollback(work, f"confirming payment of buy {buy_id}")
        logger.info(f"Payment confirmed for buy {buy_id}")
        return buy

    @classmethod
    def delete_buy(cls, actor: Optional[User], buy_id: int) -> None:
        """
        Delete a purchase and return its units to the storage they came from.

        Raises:
            AuthorizationFailed: actor is not an admin
            NotFound: no purchase with this id
        """
        cls._require_admin(actor)
        buy = cls.get_buy(buy_id)

        def work():
            storage = cls._storage_of(buy)
            if storage is not None:
                cls._release_stock(storage.id, buy.quantity)
            else:
                logger.warning(f"Cloth {buy.cloth_id} has no storage; {buy.quantity} unit(s) not returned")
            db.session.delete(buy)

        cls._commit_or_rollback(work, f"deleting buy {buy_id}")
        logger.info(f"Deleted buy {buy_id}")
