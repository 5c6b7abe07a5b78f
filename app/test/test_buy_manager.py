"""
Tests for BuyManager: purchase creation, stock reconciliation, confirmation
and deletion
"""

import pytest
from sqlalchemy import update

from app import db
from app.buisness.core.errors import (
    AuthorizationFailed,
    NotFound,
    StorageNotFound,
    StorageQuantityExceeded,
    ValidationFailed,
)
from app.buisness.inventory.buy_manager import BuyManager
from app.buisness.inventory.cloth_manager import ClothManager
from app.data.inventory.buy import Buy
from app.data.inventory.cloth import Cloth
from app.data.inventory.storage import Storage


def _order(cloth_id, quantity, **extra):
    data = {'cloth_id': cloth_id, 'quantity': quantity, 'payment_method': 'card'}
    data.update(extra)
    return data


class TestCreateBuy:

    def test_valid_purchase_decrements_stock(self, ctx, customer, make_cloth, stock_of):
        cloth_id, storage_id = make_cloth(quantity=5)

        buy = BuyManager.create_buy(customer, _order(cloth_id, 2))

        assert stock_of(storage_id) == 3
        assert buy.id is not None
        assert buy.user_id == customer.id
        assert buy.quantity == 2
        assert buy.payment_status == 0
        assert buy.confirmation_status == 0

    def test_new_purchase_ignores_requested_statuses(self, ctx, customer, make_cloth):
        cloth_id, _ = make_cloth(quantity=5)

        buy = BuyManager.create_buy(customer, _order(cloth_id, 1, payment_status=1, confirmation_status=2))

        assert buy.payment_status == 0
        assert buy.confirmation_status == 0

    def test_over_quantity_leaves_no_trace(self, ctx, customer, make_cloth, stock_of):
        cloth_id, storage_id = make_cloth(quantity=2)

        with pytest.raises(StorageQuantityExceeded) as excinfo:
            BuyManager.create_buy(customer, _order(cloth_id, 3))

        assert excinfo.value.message == 'Storage Quantity Exceeded!'
        assert Buy.query.count() == 0
        assert stock_of(storage_id) == 2

    def test_buying_exact_remaining_stock_empties_storage(self, ctx, customer, make_cloth, stock_of):
        cloth_id, storage_id = make_cloth(quantity=4)

        BuyManager.create_buy(customer, _order(cloth_id, 4))

        assert stock_of(storage_id) == 0
        with pytest.raises(StorageQuantityExceeded):
            BuyManager.create_buy(customer, _order(cloth_id, 1))

    def test_five_buy_three_then_three_again(self, ctx, customer, make_cloth, stock_of):
        cloth_id, storage_id = make_cloth(quantity=5)

        BuyManager.create_buy(customer, _order(cloth_id, 3))
        assert stock_of(storage_id) == 2

        with pytest.raises(StorageQuantityExceeded):
            BuyManager.create_buy(customer, _order(cloth_id, 3))

        assert stock_of(storage_id) == 2
        assert Buy.query.count() == 1

    def test_missing_fields_are_listed(self, ctx, customer):
        with pytest.raises(ValidationFailed) as excinfo:
            BuyManager.create_buy(customer, {})

        assert set(excinfo.value.errors) == {'cloth_id', 'quantity', 'payment_method'}
        assert excinfo.value.status_code == 422

    @pytest.mark.parametrize('quantity', [0, -1, 'two', '1.5'])
    def test_quantity_must_be_a_positive_integer(self, ctx, customer, make_cloth, quantity):
        cloth_id, _ = make_cloth(quantity=5)

        with pytest.raises(ValidationFailed) as excinfo:
            BuyManager.create_buy(customer, _order(cloth_id, quantity))

        assert 'quantity' in excinfo.value.errors

    def test_form_strings_are_accepted(self, ctx, customer, make_cloth, stock_of):
        cloth_id, storage_id = make_cloth(quantity=5)

        BuyManager.create_buy(customer, _order(str(cloth_id), '2'))

        assert stock_of(storage_id) == 3

    def test_unknown_cloth(self, ctx, customer):
        with pytest.raises(ValidationFailed) as excinfo:
            BuyManager.create_buy(customer, _order(999, 1))

        assert excinfo.value.errors['cloth_id'] == ["The selected cloth id is invalid."]

    def test_cloth_without_storage(self, ctx, customer):
        cloth = Cloth(name='Hat', price=10)
        db.session.add(cloth)
        db.session.commit()

        with pytest.raises(StorageNotFound) as excinfo:
            BuyManager.create_buy(customer, _order(cloth.id, 1))

        assert excinfo.value.message == 'Storage not Found'
        assert excinfo.value.status_code == 404
        assert Buy.query.count() == 0

    def test_draws_from_primary_storage(self, ctx, customer, make_cloth, stock_of):
        cloth_id, first_id = make_cloth(quantity=5)
        cloth = db.session.get(Cloth, cloth_id)
        for storage in cloth.storages:
            storage.is_primary = False
        second = Storage(quantity_limit=7, is_primary=True)
        cloth.storages.append(second)
        db.session.commit()

        BuyManager.create_buy(customer, _order(cloth_id, 2))

        assert stock_of(first_id) == 5
        assert stock_of(second.id) == 5

    def test_falls_back_to_lowest_id_storage(self, ctx, customer, make_cloth, stock_of):
        cloth_id, first_id = make_cloth(quantity=5)
        cloth = db.session.get(Cloth, cloth_id)
        cloth.storages[0].is_primary = False
        cloth.storages.append(Storage(quantity_limit=7, is_primary=False))
        db.session.commit()

        BuyManager.create_buy(customer, _order(cloth_id, 2))

        assert stock_of(first_id) == 3

    def test_customer_cannot_buy_for_someone_else(self, ctx, customer, make_user, make_cloth):
        other_id = make_user()
        cloth_id, _ = make_cloth(quantity=5)

        with pytest.raises(ValidationFailed) as excinfo:
            BuyManager.create_buy(customer, _order(cloth_id, 1, user_id=other_id))

        assert 'user_id' in excinfo.value.errors

    def test_admin_can_buy_for_a_customer(self, ctx, admin, customer, make_cloth):
        cloth_id, _ = make_cloth(quantity=5)

        buy = BuyManager.create_buy(admin, _order(cloth_id, 1, user_id=customer.id))

        assert buy.user_id == customer.id

    def test_admin_buying_for_unknown_user(self, ctx, admin, make_cloth):
        cloth_id, _ = make_cloth(quantity=5)

        with pytest.raises(ValidationFailed) as excinfo:
            BuyManager.create_buy(admin, _order(cloth_id, 1, user_id=999))

        assert excinfo.value.errors['user_id'] == ["The selected user id is invalid."]

    def test_conditional_update_rejects_when_stock_moved_after_check(
            self, ctx, customer, make_cloth, stock_of, monkeypatch):
        """Stock that drops between the pre-check and the write still cannot go negative"""
        cloth_id, storage_id = make_cloth(quantity=5)
        reserve = BuyManager._reserve_stock

        def racing_reserve(target_id, quantity):
            # Another request sells 4 units in between
            db.session.execute(
                update(Storage).where(Storage.id == target_id).values(quantity_limit=1)
            )
            return reserve(target_id, quantity)

        monkeypatch.setattr(BuyManager, '_reserve_stock', staticmethod(racing_reserve))

        with pytest.raises(StorageQuantityExceeded):
            BuyManager.create_buy(customer, _order(cloth_id, 3))

        assert Buy.query.count() == 0
        assert stock_of(storage_id) == 5


class TestEditBuy:

    @pytest.fixture
    def buy(self, ctx, customer, make_cloth):
        cloth_id, storage_id = make_cloth(quantity=10)
        buy = BuyManager.create_buy(customer, _order(cloth_id, 4))
        return buy, storage_id

    def test_raising_quantity_takes_more_stock(self, admin, buy, stock_of):
        buy, storage_id = buy

        BuyManager.edit_buy(admin, buy.id, {'quantity': 6})

        assert stock_of(storage_id) == 4
        assert db.session.get(Buy, buy.id).quantity == 6

    def test_lowering_quantity_returns_stock(self, admin, buy, stock_of):
        buy, storage_id = buy

        BuyManager.edit_buy(admin, buy.id, {'quantity': '1'})

        assert stock_of(storage_id) == 9

    def test_raising_beyond_stock_changes_nothing(self, admin, buy, stock_of):
        buy, storage_id = buy

        with pytest.raises(StorageQuantityExceeded):
            BuyManager.edit_buy(admin, buy.id, {'quantity': 11, 'payment_method': 'cash'})

        stored = db.session.get(Buy, buy.id)
        assert stored.quantity == 4
        assert stored.payment_method == 'card'
        assert stock_of(storage_id) == 6

    def test_status_fields(self, admin, buy):
        buy, _ = buy

        BuyManager.edit_buy(admin, buy.id, {'payment_status': 1, 'confirmation_status': '2'})

        stored = db.session.get(Buy, buy.id)
        assert stored.payment_status == 1
        assert stored.confirmation_status == 2

    def test_out_of_range_status(self, admin, buy):
        buy, _ = buy

        with pytest.raises(ValidationFailed) as excinfo:
            BuyManager.edit_buy(admin, buy.id, {'payment_status': 2, 'confirmation_status': 3})

        assert set(excinfo.value.errors) == {'payment_status', 'confirmation_status'}

    def test_customer_cannot_edit(self, customer, buy):
        buy, _ = buy

        with pytest.raises(AuthorizationFailed):
            BuyManager.edit_buy(customer, buy.id, {'quantity': 1})

    def test_unknown_buy(self, admin, buy):
        with pytest.raises(NotFound) as excinfo:
            BuyManager.edit_buy(admin, 999, {'quantity': 1})

        assert excinfo.value.message == 'Buy not found'


class TestConfirmAndDelete:

    @pytest.fixture
    def buy(self, ctx, customer, make_cloth):
        cloth_id, storage_id = make_cloth(quantity=5)
        buy = BuyManager.create_buy(customer, _order(cloth_id, 3))
        return buy, storage_id

    def test_confirm_marks_paid(self, admin, buy):
        buy, _ = buy

        BuyManager.confirm_payment(admin, buy.id)

        assert db.session.get(Buy, buy.id).payment_status == 1

    def test_confirm_twice_is_idempotent(self, admin, buy, stock_of):
        buy, storage_id = buy

        BuyManager.confirm_payment(admin, buy.id)
        BuyManager.confirm_payment(admin, buy.id)

        stored = db.session.get(Buy, buy.id)
        assert stored.payment_status == 1
        assert stored.quantity == 3
        assert stock_of(storage_id) == 2

    def test_confirm_unknown_buy(self, admin, buy):
        with pytest.raises(NotFound):
            BuyManager.confirm_payment(admin, 999)

    def test_delete_returns_stock(self, admin, buy, stock_of):
        buy, storage_id = buy

        BuyManager.delete_buy(admin, buy.id)

        assert db.session.get(Buy, buy.id) is None
        assert stock_of(storage_id) == 5

    def test_delete_unknown_buy_mutates_nothing(self, admin, buy, stock_of):
        _, storage_id = buy

        with pytest.raises(NotFound):
            BuyManager.delete_buy(admin, 999)

        assert Buy.query.count() == 1
        assert stock_of(storage_id) == 2

    def test_customer_cannot_delete(self, customer, buy):
        buy, _ = buy

        with pytest.raises(AuthorizationFailed):
            BuyManager.delete_buy(customer, buy.id)

        assert db.session.get(Buy, buy.id) is not None


class TestPurchaseStorage:
    """Stock goes back to the storage a purchase was taken from, not the current primary"""

    @pytest.fixture
    def moved_primary(self, ctx, customer, make_cloth):
        cloth_id, first_id = make_cloth(quantity=10)
        buy = BuyManager.create_buy(customer, _order(cloth_id, 4))
        second = ClothManager.create_storage({'cloth_id': cloth_id, 'quantity_limit': 20, 'is_primary': True})
        return buy, first_id, second.id

    def test_purchase_records_its_storage(self, moved_primary):
        buy, first_id, _ = moved_primary

        assert db.session.get(Buy, buy.id).storage_id == first_id

    def test_delete_returns_stock_to_original_storage(self, admin, moved_primary, stock_of):
        buy, first_id, second_id = moved_primary

        BuyManager.delete_buy(admin, buy.id)

        assert stock_of(first_id) == 10
        assert stock_of(second_id) == 20

    def test_lowering_quantity_returns_stock_to_original_storage(self, admin, moved_primary, stock_of):
        buy, first_id, second_id = moved_primary

        BuyManager.edit_buy(admin, buy.id, {'quantity': 1})

        assert stock_of(first_id) == 9
        assert stock_of(second_id) == 20

    def test_raising_quantity_draws_from_original_storage(self, admin, moved_primary, stock_of):
        buy, first_id, second_id = moved_primary

        BuyManager.edit_buy(admin, buy.id, {'quantity': 6})

        assert stock_of(first_id) == 4
        assert stock_of(second_id) == 20

    def test_deleted_storage_falls_back_to_primary(self, admin, moved_primary, stock_of):
        buy, first_id, second_id = moved_primary

        ClothManager.delete_storage(first_id)
        assert db.session.get(Buy, buy.id).storage_id is None

        BuyManager.delete_buy(admin, buy.id)

        assert stock_of(second_id) == 24

    def test_edit_after_storage_deleted_moves_purchase_to_primary(self, admin, moved_primary, stock_of):
        buy, first_id, second_id = moved_primary
        ClothManager.delete_storage(first_id)

        BuyManager.edit_buy(admin, buy.id, {'quantity': 5})

        assert stock_of(second_id) == 19
        assert db.session.get(Buy, buy.id).storage_id == second_id
