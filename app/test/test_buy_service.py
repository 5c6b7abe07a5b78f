"""
Tests for BuyService filtering and paging
"""

import pytest
from werkzeug.datastructures import MultiDict

from app import db
from app.buisness.core.errors import NotFound, ValidationFailed
from app.data.inventory.buy import Buy
from app.services.inventory.buy_service import BuyFilters, BuyService


@pytest.fixture
def purchases(ctx, make_user, make_cloth):
    """25 purchases split over two users; every third one paid"""
    first = make_user()
    second = make_user()
    cloth_id, _ = make_cloth(quantity=100)

    for i in range(25):
        db.session.add(Buy(
            user_id=first if i % 2 == 0 else second,
            cloth_id=cloth_id,
            quantity=1,
            payment_method='cash' if i % 5 == 0 else 'card',
            payment_status=1 if i % 3 == 0 else 0,
            confirmation_status=i % 3,
        ))
    db.session.commit()
    return first, second


class TestParseFilters:

    def test_empty_args(self, ctx):
        assert BuyService.parse_filters(MultiDict()) == BuyFilters()

    def test_all_filters(self, ctx):
        filters = BuyService.parse_filters(MultiDict({
            'user_id': '3',
            'payment_method': 'card',
            'payment_status': '1',
            'confirmation_status': '2',
        }))

        assert filters == BuyFilters(user_id=3, payment_method='card', payment_status=1, confirmation_status=2)

    def test_blank_values_are_ignored(self, ctx):
        filters = BuyService.parse_filters(MultiDict({'payment_status': '', 'user_id': ' '}))

        assert filters == BuyFilters()

    @pytest.mark.parametrize('args, field', [
        ({'payment_status': '2'}, 'payment_status'),
        ({'confirmation_status': '3'}, 'confirmation_status'),
        ({'payment_status': 'paid'}, 'payment_status'),
        ({'user_id': 'me'}, 'user_id'),
    ])
    def test_invalid_values(self, ctx, args, field):
        with pytest.raises(ValidationFailed) as excinfo:
            BuyService.parse_filters(MultiDict(args))

        assert field in excinfo.value.errors

    @pytest.mark.parametrize('raw, page', [(None, 1), ('3', 3), ('0', 1), ('x', 1)])
    def test_parse_page(self, ctx, raw, page):
        args = MultiDict({} if raw is None else {'buys_page': raw})
        assert BuyService.parse_page(args) == page


class TestQueries:

    def test_payment_status_filter_returns_exact_subset(self, purchases):
        filters = BuyFilters(payment_status=1)

        page = BuyService.get_page(filters, 1)
        expected = Buy.query.filter_by(payment_status=1).count()

        assert page.total == expected == 9
        assert all(buy.payment_status == 1 for buy in page.items)

    def test_filters_combine(self, purchases):
        first, _ = purchases
        filters = BuyFilters(user_id=first, payment_method='card', confirmation_status=0)

        buys = BuyService.build_filtered_query(filters).all()

        assert buys
        assert all(b.user_id == first and b.payment_method == 'card' and b.confirmation_status == 0 for b in buys)
        assert len(buys) == Buy.query.filter_by(user_id=first, payment_method='card', confirmation_status=0).count()

    def test_ordered_by_insertion(self, purchases):
        ids = [buy.id for buy in BuyService.build_filtered_query(BuyFilters()).all()]
        assert ids == sorted(ids)

    def test_pages_of_ten(self, purchases):
        first = BuyService.get_page(BuyFilters(), 1)
        third = BuyService.get_page(BuyFilters(), 3)

        assert len(first.items) == 10
        assert len(third.items) == 5
        assert first.total == third.total == 25
        assert third.items[0].id == first.items[0].id + 20

    def test_page_beyond_end_is_empty(self, purchases):
        page = BuyService.get_page(BuyFilters(), 9)

        assert page.items == []
        assert page.total == 25

    def test_per_page_follows_config(self, purchases, ctx):
        ctx.config['BUYS_PER_PAGE'] = 4
        assert len(BuyService.get_page(BuyFilters(), 1).items) == 4

    def test_scoped_to_user(self, purchases):
        _, second = purchases
        filters = BuyService.parse_filters(MultiDict({'user_id': '999'})).for_user(second)

        page = BuyService.get_page(filters, 1)

        assert page.total == 12
        assert {buy.user_id for buy in page.items} == {second}

    def test_serialize_page(self, purchases):
        data = BuyService.serialize_page(BuyService.get_page(BuyFilters(payment_status=1), 1))

        assert set(data) == {'data', 'current_page', 'per_page', 'total', 'last_page'}
        assert data['current_page'] == 1
        assert data['per_page'] == 10
        assert data['total'] == 9
        assert data['last_page'] == 1
        assert len(data['data']) == 9
        assert data['data'][0]['payment_status'] == 1

    def test_serialize_empty_page(self, ctx):
        data = BuyService.serialize_page(BuyService.get_page(BuyFilters(), 1))

        assert data['data'] == []
        assert data['total'] == 0
        assert data['last_page'] == 1

    def test_get_buy(self, purchases):
        buy = Buy.query.first()
        assert BuyService.get_buy(buy.id) is buy

        with pytest.raises(NotFound):
            BuyService.get_buy(999)
