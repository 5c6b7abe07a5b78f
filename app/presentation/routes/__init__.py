"""
Routes package for the Clothing Store
Each blueprint is mounted twice: once for browsers and once under /api
"""

from flask import Blueprint
from app.logger import get_logger

logger = get_logger("clothing_store.routes")

# Create main blueprint
main = Blueprint('main', __name__)

# Import route modules
from . import dashboard, buys, clothes, storage  # noqa: E402,F401

STORE_BLUEPRINTS = (buys.bp, clothes.bp, storage.bp)


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    # main is already registered in app/__init__.py
    for bp in STORE_BLUEPRINTS:
        app.register_blueprint(bp)
        app.register_blueprint(bp, url_prefix='/api', name=f'api_{bp.name}')

    logger.info("All route blueprints registered successfully")
