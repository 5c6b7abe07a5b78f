"""
Core models package for the clothing store
"""

from .user_info.user import User

__all__ = [
    'User',
]
