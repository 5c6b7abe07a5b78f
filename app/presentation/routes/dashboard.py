"""
Dashboard routes
Landing page after sign-in
"""

from flask import render_template
from flask_login import current_user, login_required

from app.data.core.user_info.user import User
from app.data.inventory.buy import Buy
from app.data.inventory.cloth import Cloth
from app.logger import get_logger
from app.presentation.routes import main

logger = get_logger("clothing_store.routes.dashboard")


@main.route('/')
@login_required
def index():
    """Store overview; customers see their own purchase counts"""
    logger.debug(f"User {current_user.id} accessing dashboard")

    if current_user.is_admin:
        stats = {
            'total_clothes': Cloth.query.count(),
            'total_users': User.query.count(),
            'total_buys': Buy.query.count(),
            'unpaid_buys': Buy.query.filter_by(payment_status=0).count(),
        }
    else:
        own = Buy.query.filter_by(user_id=current_user.id)
        stats = {
            'total_buys': own.count(),
            'unpaid_buys': own.filter_by(payment_status=0).count(),
        }

    clothes = Cloth.query.order_by(Cloth.name).all()
    return render_template('dashboard.html', stats=stats, clothes=clothes)
