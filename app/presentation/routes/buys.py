"""
Purchase routes
Create, edit, confirm, delete and list Buy records
"""

from flask import Blueprint, render_template, request, url_for
from flask_login import current_user, login_required

from app.buisness.inventory.buy_manager import BuyManager
from app.data.inventory.cloth import Cloth
from app.logger import get_logger
from app.presentation.responses import ActionResult, request_data, respond, wants_json
from app.presentation.routes.guards import admin_required
from app.services.inventory.buy_service import BuyService
from app.utils.logging_sanitizer import sanitize_dict

bp = Blueprint('buys', __name__)
logger = get_logger("clothing_store.routes.buys")


@bp.route('/buy', methods=['POST'])
@login_required
def create():
    """Place a purchase; admins may buy on behalf of another user"""
    data = request_data()
    logger.debug(f"User {current_user.id} creating buy: {sanitize_dict(data)}")

    buy = BuyManager.create_buy(current_user, data)
    return respond(
        ActionResult.success({'buy': buy.to_dict()}, status=201, message='Purchase recorded'),
        redirect_to=url_for('buys.mine'),
    )


@bp.route('/buy/<int:buy_id>', methods=['POST'])
@admin_required
def edit(buy_id):
    data = request_data()
    logger.debug(f"User {current_user.id} editing buy {buy_id}: {sanitize_dict(data)}")

    buy = BuyManager.edit_buy(current_user, buy_id, data)
    return respond(
        ActionResult.success({'buy': buy.to_dict()}, status=201, message='Purchase updated'),
        redirect_to=url_for('buys.detail', buy_id=buy.id),
    )


@bp.route('/buy/<int:buy_id>/confirm', methods=['POST'])
@admin_required
def confirm(buy_id):
    BuyManager.confirm_payment(current_user, buy_id)
    return respond(
        ActionResult.success(message='Successfully Confirmed'),
        redirect_to=url_for('buys.detail', buy_id=buy_id),
    )


@bp.route('/buy/<int:buy_id>', methods=['DELETE'])
@bp.route('/buy/<int:buy_id>/delete', methods=['GET'])
@admin_required
def delete(buy_id):
    """Delete a purchase and return its units to stock"""
    BuyManager.delete_buy(current_user, buy_id)
    return respond(
        ActionResult.success(message='Successfully Deleted'),
        redirect_to=url_for('buys.list'),
    )


# ROUTE_TYPE: SIMPLE_CRUD (GET)
# Read-only views go through BuyService; every write above goes through BuyManager.
@bp.route('/buy/<int:buy_id>', methods=['GET'])
@admin_required
def detail(buy_id):
    buy = BuyService.get_buy(buy_id)
    if wants_json():
        return respond(ActionResult.success({'buy': buy.to_dict()}))
    return render_template('buys/detail.html', buy=buy)


@bp.route('/buys', endpoint='list')
@admin_required
def list_buys():
    """All purchases, optionally filtered by user_id / payment_status / confirmation_status"""
    filters = BuyService.parse_filters(request.args)
    pagination = BuyService.get_page(filters, BuyService.parse_page(request.args))

    if wants_json():
        return respond(ActionResult.success({'buys': BuyService.serialize_page(pagination)}))
    return render_template('buys/list.html', buys=pagination, filters=filters,
                           clothes=Cloth.query.order_by(Cloth.name).all(), title='All purchases')


@bp.route('/buys/mine')
@login_required
def mine():
    """The signed-in user's own purchases"""
    filters = BuyService.parse_filters(request.args).for_user(current_user.id)
    pagination = BuyService.get_page(filters, BuyService.parse_page(request.args))

    if wants_json():
        return respond(ActionResult.success({'buys': BuyService.serialize_page(pagination)}))
    return render_template('buys/list.html', buys=pagination, filters=filters,
                           clothes=Cloth.query.order_by(Cloth.name).all(), title='My purchases')
