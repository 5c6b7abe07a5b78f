#!/usr/bin/env python3
"""
Build orchestrator for the Clothing Store
Creates tables, guarantees the admin account and optionally seeds demo stock
"""

import os
from datetime import datetime

from app import create_app, db
from app.logger import get_logger

logger = get_logger("clothing_store.build")

ADMIN_ROLE = 1

DEMO_CLOTHES = (
    {'name': 'Linen Shirt', 'category': 'Shirts', 'size': 'M', 'color': 'White',
     'price': '29.90', 'quantity_limit': 25, 'location': 'Main warehouse'},
    {'name': 'Denim Jacket', 'category': 'Jackets', 'size': 'L', 'color': 'Blue',
     'price': '79.00', 'quantity_limit': 10, 'location': 'Main warehouse'},
    {'name': 'Wool Scarf', 'category': 'Accessories', 'size': 'One size', 'color': 'Grey',
     'price': '19.50', 'quantity_limit': 40, 'location': 'Shop floor'},
)


def verify_critical_data():
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if an admin account exists
    """
    from app.data.core.user_info.user import User

    admin_email = os.environ.get('ADMIN_EMAIL', 'admin@clothing-store.local').lower()
    admin = User.query.filter_by(email=admin_email).first()
    if admin is None or not admin.is_admin:
        logger.warning(f"Admin account {admin_email} not found")
        return False

    logger.info("Critical data verification passed")
    return True


def insert_critical_data():
    """
    Insert the admin account from ADMIN_EMAIL / ADMIN_PASSWORD.

    This function is called ALWAYS, regardless of flags.

    Raises:
        RuntimeError: ADMIN_PASSWORD not set while the admin is missing
    """
    from app.data.core.user_info.user import User

    if verify_critical_data():
        logger.info("Critical data already present, skipping insertion")
        return

    admin_email = os.environ.get('ADMIN_EMAIL', 'admin@clothing-store.local').lower()
    admin_password = os.environ.get('ADMIN_PASSWORD')
    if not admin_password:
        logger.critical("ADMIN_PASSWORD not set; cannot create the admin account")
        raise RuntimeError("ADMIN_PASSWORD environment variable is required to create the admin account")

    admin, created = User.find_or_create_from_dict({
        'name': os.environ.get('ADMIN_NAME', 'Administrator'),
        'email': admin_email,
        'number': os.environ.get('ADMIN_NUMBER', '0000000000'),
        'address': os.environ.get('ADMIN_ADDRESS', 'Head office'),
        'password': admin_password,
    }, lookup_fields=['email'], commit=False)
    if not created:
        logger.info(f"Promoting existing account {admin_email} to admin")

    admin.role_id = ADMIN_ROLE
    admin.email_verified_at = admin.email_verified_at or datetime.utcnow()
    db.session.commit()
    logger.info(f"Admin account {admin_email} ready")


def insert_debug_data():
    """Seed a few clothes with stock so a fresh install has something to sell"""
    from app.buisness.inventory.cloth_manager import ClothManager
    from app.data.inventory.cloth import Cloth

    if Cloth.query.first() is not None:
        logger.info("Catalogue not empty, skipping debug data")
        return

    for data in DEMO_CLOTHES:
        ClothManager.create_cloth(dict(data))
    logger.info(f"Inserted {len(DEMO_CLOTHES)} demo clothes")


def build_database(enable_debug_data=False, app=None):
    """
    Create all tables and insert critical data.

    Args:
        enable_debug_data: also seed demo clothes
        app: application to build against (default: a new create_app())
    """
    app = app or create_app()

    with app.app_context():
        logger.info("Creating database tables")
        db.create_all()

        insert_critical_data()

        if enable_debug_data:
            insert_debug_data()

    logger.info("Database build complete")
    return app
