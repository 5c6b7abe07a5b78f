"""
Route guards
"""

from functools import wraps

from flask_login import current_user

from app import login_manager
from app.logger import get_logger
from app.presentation.responses import ActionResult, respond

logger = get_logger("clothing_store.routes.guards")


def admin_required(view):
    """
    Like login_required, but also rejects authenticated customers:
    403 for API callers, flash + redirect for browsers.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if not current_user.is_admin:
            logger.warning(f"User {current_user.id} denied admin route {view.__name__}")
            return respond(ActionResult.failure('Forbidden', status=403))
        return view(*args, **kwargs)
    return wrapped
