"""
Inventory business layer.

Catalogue, storage and purchase logic lives here:
- cloth_manager.py - clothes and their storages
- buy_manager.py   - purchases and the stock they consume
"""

from app.buisness.inventory.buy_manager import BuyManager
from app.buisness.inventory.cloth_manager import ClothManager

__all__ = [
    'BuyManager',
    'ClothManager',
]
