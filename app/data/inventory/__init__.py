"""
Inventory and purchase models

- cloth.py   - sellable clothing items
- storage.py - per-cloth stock records
- buy.py     - purchase facts between users and cloths
"""

from app.data.inventory.cloth import Cloth
from app.data.inventory.storage import Storage
from app.data.inventory.buy import Buy, PAYMENT_STATUSES, CONFIRMATION_STATUSES

__all__ = [
    'Cloth',
    'Storage',
    'Buy',
    'PAYMENT_STATUSES',
    'CONFIRMATION_STATUSES',
]
