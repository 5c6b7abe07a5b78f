"""
Storage routes
Admin-only CRUD for the storages that hold each cloth's stock
"""

from flask import Blueprint, request, url_for

from app.buisness.core.field_rules import coerce_int
from app.buisness.core.errors import ValidationFailed
from app.buisness.inventory.cloth_manager import ClothManager
from app.presentation.responses import ActionResult, request_data, respond
from app.presentation.routes.guards import admin_required

bp = Blueprint('storage', __name__)


@bp.route('/storage/add', methods=['POST'])
@admin_required
def add():
    storage = ClothManager.create_storage(request_data())
    return respond(
        ActionResult.success({'storage': storage.to_dict()}, status=201, message='Storage added'),
        redirect_to=url_for('clothes.detail', cloth_id=storage.cloth_id),
    )


@bp.route('/storage/edit/<int:storage_id>', methods=['POST'])
@admin_required
def edit(storage_id):
    storage = ClothManager.edit_storage(storage_id, request_data())
    return respond(
        ActionResult.success({'storage': storage.to_dict()}, status=201, message='Storage updated'),
        redirect_to=url_for('clothes.detail', cloth_id=storage.cloth_id),
    )


@bp.route('/storage/delete/<int:storage_id>')
@admin_required
def delete(storage_id):
    cloth_id = ClothManager.get_storage(storage_id).cloth_id
    ClothManager.delete_storage(storage_id)
    return respond(
        ActionResult.success(message='Successfully Deleted'),
        redirect_to=url_for('clothes.detail', cloth_id=cloth_id),
    )


@bp.route('/storage', endpoint='list')
@admin_required
def list_storages():
    """Every storage, or only those of ?cloth_id="""
    errors = {}
    cloth_id = coerce_int(request.args, 'cloth_id', errors)
    if errors:
        raise ValidationFailed.for_fields(errors)

    storages = ClothManager.list_storages(cloth_id)
    return respond(
        ActionResult.success({'storages': [storage.to_dict() for storage in storages]}),
        redirect_to=url_for('clothes.list'),
    )


@bp.route('/storage/<int:storage_id>')
@admin_required
def detail(storage_id):
    storage = ClothManager.get_storage(storage_id)
    return respond(
        ActionResult.success({'storage': storage.to_dict()}),
        redirect_to=url_for('clothes.detail', cloth_id=storage.cloth_id),
    )
