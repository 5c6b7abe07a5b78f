"""
Clothing catalogue routes
Admin-only CRUD for Cloth records and their stock
"""

from flask import Blueprint, render_template, request, url_for
from flask_login import current_user

from app.buisness.core.field_rules import coerce_int
from app.buisness.inventory.cloth_manager import ClothManager
from app.logger import get_logger
from app.presentation.responses import ActionResult, request_data, respond, wants_json
from app.presentation.routes.guards import admin_required

bp = Blueprint('clothes', __name__)
logger = get_logger("clothing_store.routes.clothes")

PAGE_PARAM = 'clothes_page'


def _serialize_cloth(cloth):
    data = cloth.to_dict()
    data['storages'] = [storage.to_dict() for storage in cloth.storages]
    data['total_quantity'] = cloth.total_quantity
    return data


@bp.route('/clothes/add', methods=['POST'])
@admin_required
def add():
    cloth = ClothManager.create_cloth(request_data())
    logger.info(f"User {current_user.id} added cloth {cloth.id}")
    return respond(
        ActionResult.success({'cloth': _serialize_cloth(cloth)}, status=201, message='Cloth added'),
        redirect_to=url_for('clothes.detail', cloth_id=cloth.id),
    )


@bp.route('/clothes/edit/<int:cloth_id>', methods=['POST'])
@admin_required
def edit(cloth_id):
    cloth = ClothManager.edit_cloth(cloth_id, request_data())
    return respond(
        ActionResult.success({'cloth': _serialize_cloth(cloth)}, status=201, message='Cloth updated'),
        redirect_to=url_for('clothes.detail', cloth_id=cloth.id),
    )


@bp.route('/clothes/edit/stock/<int:cloth_id>/<int:storage_id>', methods=['POST'])
@admin_required
def edit_stock(cloth_id, storage_id):
    """Set the remaining quantity of one storage of a cloth"""
    storage = ClothManager.edit_stock(cloth_id, storage_id, request_data())
    return respond(
        ActionResult.success({'storage': storage.to_dict()}, status=201, message='Stock updated'),
        redirect_to=url_for('clothes.detail', cloth_id=cloth_id),
    )


@bp.route('/clothes/quantity/<int:cloth_id>')
@admin_required
def quantity(cloth_id):
    cloth = ClothManager.get_cloth(cloth_id)
    return respond(ActionResult.success({
        'cloth': cloth.to_dict(),
        'total_quantity': cloth.total_quantity,
    }), redirect_to=url_for('clothes.detail', cloth_id=cloth.id))


@bp.route('/clothes/delete/<int:cloth_id>')
@admin_required
def delete(cloth_id):
    ClothManager.delete_cloth(cloth_id)
    logger.info(f"User {current_user.id} deleted cloth {cloth_id}")
    return respond(
        ActionResult.success(message='Successfully Deleted'),
        redirect_to=url_for('clothes.list'),
    )


@bp.route('/clothes', endpoint='list')
@admin_required
def list_clothes():
    page = coerce_int(request.args, PAGE_PARAM, {}, minimum=1) or 1
    pagination = ClothManager.list_clothes(page=page)

    if wants_json():
        return respond(ActionResult.success({'clothes': {
            'data': [_serialize_cloth(cloth) for cloth in pagination.items],
            'current_page': pagination.page,
            'per_page': pagination.per_page,
            'total': pagination.total,
            'last_page': max(pagination.pages, 1),
        }}))
    return render_template('clothes/list.html', clothes=pagination)


@bp.route('/clothes/<int:cloth_id>')
@admin_required
def detail(cloth_id):
    cloth = ClothManager.get_cloth(cloth_id)
    if wants_json():
        return respond(ActionResult.success({'cloth': _serialize_cloth(cloth)}))
    return render_template('clothes/detail.html', cloth=cloth)
