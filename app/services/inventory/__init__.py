"""
Inventory Services
Presentation services for purchase listings.
"""

from .buy_service import BuyFilters, BuyService

__all__ = [
    'BuyFilters',
    'BuyService',
]
