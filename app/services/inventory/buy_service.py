"""app.services.inventory.buy_service

Read side for purchases.

Goal:
- One canonical place to parse query-string args into a filter object
- One canonical place to build the filtered, insertion-ordered Buy query
- Paging and serialisation for both the admin view and a customer's own view
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from flask import current_app
from flask_sqlalchemy.pagination import Pagination

from app import db
from app.buisness.core.errors import NotFound, ValidationFailed
from app.buisness.core.field_rules import coerce_int, coerce_str
from app.data.inventory.buy import Buy, CONFIRMATION_STATUSES, PAYMENT_STATUSES
from app.logger import get_logger

logger = get_logger("clothing_store.services.buy_service")

PAGE_PARAM = 'buys_page'


@dataclass(frozen=True)
class BuyFilters:
    user_id: Optional[int] = None
    payment_method: Optional[str] = None
    payment_status: Optional[int] = None  # 0 unpaid, 1 paid
    confirmation_status: Optional[int] = None  # 0, 1, 2

    def for_user(self, user_id: int) -> 'BuyFilters':
        """Same filters scoped to a single buyer"""
        return replace(self, user_id=user_id)


class BuyService:
    """Search and paging utilities for purchases."""

    @staticmethod
    def parse_filters(args: Any) -> BuyFilters:
        """
        Parse filter args from a Flask `request.args`-like mapping.

        Raises:
            ValidationFailed: a filter value is not an integer or out of range
        """
        errors = {}
        filters = BuyFilters(
            user_id=coerce_int(args, 'user_id', errors),
            payment_method=coerce_str(args, 'payment_method', errors, max_length=50),
            payment_status=coerce_int(args, 'payment_status', errors, choices=PAYMENT_STATUSES),
            confirmation_status=coerce_int(args, 'confirmation_status', errors, choices=CONFIRMATION_STATUSES),
        )
        if errors:
            raise ValidationFailed.for_fields(errors)
        return filters

    @staticmethod
    def parse_page(args: Any) -> int:
        """1-based page from `buys_page`; anything unusable falls back to page 1"""
        errors = {}
        page = coerce_int(args, PAGE_PARAM, errors, minimum=1)
        return page or 1

    @staticmethod
    def build_filtered_query(filters: BuyFilters):
        """
        Build a Buy query with every non-empty filter applied, oldest first.

        Returns:
            SQLAlchemy query object
        """
        query = Buy.query

        if filters.user_id is not None:
            query = query.filter(Buy.user_id == filters.user_id)
        if filters.payment_method:
            query = query.filter(Buy.payment_method == filters.payment_method)
        if filters.payment_status is not None:
            query = query.filter(Buy.payment_status == filters.payment_status)
        if filters.confirmation_status is not None:
            query = query.filter(Buy.confirmation_status == filters.confirmation_status)

        return query.order_by(Buy.id)

    @staticmethod
    def get_page(filters: BuyFilters, page: int = 1, per_page: Optional[int] = None) -> Pagination:
        """
        Args:
            filters: parsed filters
            page: 1-based page number
            per_page: page size (default: BUYS_PER_PAGE config, 10)

        Returns:
            Pagination object
        """
        if per_page is None:
            per_page = current_app.config.get('BUYS_PER_PAGE', 10)

        query = BuyService.build_filtered_query(filters)
        pagination = query.paginate(page=page, per_page=per_page, error_out=False)
        logger.debug(f"Buy page {page} with {filters}: {len(pagination.items)} of {pagination.total}")
        return pagination

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
    def serialize_page(pagination: Pagination) -> Dict[str, Any]:
        return {
            'data': [buy.to_dict() for buy in pagination.items],
            'current_page': pagination.page,
            'per_page': pagination.per_page,
            'total': pagination.total,
            'last_page': max(pagination.pages, 1),
        }
