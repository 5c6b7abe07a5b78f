"""
Response adapter shared by every route

Business managers raise domain errors and return models; routes wrap the
outcome in an ActionResult and hand it to respond(), which picks the
representation:

- API callers (paths under /api/, JSON bodies, or Accept: application/json)
  get a JSON body with the result's status code
- Browser form posts get the message flashed and a redirect
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flask import flash, jsonify, redirect, request, url_for

from app.buisness.core.errors import DomainError, ValidationFailed


@dataclass
class ActionResult:
    ok: bool
    status: int = 200
    message: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def success(cls, payload: Optional[Dict[str, Any]] = None, status: int = 200,
                message: Optional[str] = None) -> 'ActionResult':
        return cls(ok=True, status=status, message=message, payload=payload or {})

    @classmethod
    def failure(cls, message: str, status: int = 400,
                errors: Optional[Dict[str, List[str]]] = None) -> 'ActionResult':
        return cls(ok=False, status=status, message=message, errors=errors or {})

    @classmethod
    def from_error(cls, error: DomainError) -> 'ActionResult':
        return cls.failure(error.message, status=error.status_code, errors=error.errors)

    def flash_messages(self) -> List[str]:
        if self.errors:
            return ValidationFailed(self.message, self.errors).messages()
        return [self.message] if self.message else []

    def to_json(self) -> Dict[str, Any]:
        body = dict(self.payload)
        if self.message:
            body['message'] = self.message
        if self.errors:
            body['errors'] = self.errors
        return body


def wants_json() -> bool:
    if request.path.startswith('/api/') or request.is_json:
        return True
    best = request.accept_mimetypes.best_match(['application/json', 'text/html'])
    return best == 'application/json' and request.accept_mimetypes[best] > request.accept_mimetypes['text/html']


def request_data() -> Dict[str, Any]:
    """Submitted fields from a JSON body or a form post"""
    if request.is_json:
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            return data
        raise ValidationFailed('The request body must be a JSON object')
    return request.form.to_dict()


def _safe_referrer() -> Optional[str]:
    referrer = request.referrer
    if referrer and referrer.startswith(request.host_url):
        return referrer
    return None


def respond(result: ActionResult, redirect_to: Optional[str] = None):
    """
    Render an ActionResult for the current request.

    Args:
        result: outcome of the action
        redirect_to: where a browser goes on success; failures go back to the
                     referring page when it is on this host
    """
    if wants_json():
        return jsonify(result.to_json()), result.status

    category = 'success' if result.ok else 'error'
    for message in result.flash_messages():
        flash(message, category)

    if result.ok and redirect_to:
        return redirect(redirect_to)
    return redirect(_safe_referrer() or redirect_to or url_for('main.index'))
