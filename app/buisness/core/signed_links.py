"""
Signed, time-limited tokens for email links

Verification and password-reset links carry a token produced by
itsdangerous' URLSafeTimedSerializer, keyed on the app SECRET_KEY and salted
per purpose so a token minted for one flow is useless in the other.
"""

from typing import Any, Dict

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from app.buisness.core.errors import ValidationFailed
from app.logger import get_logger

logger = get_logger("clothing_store.buisness.core.signed_links")

VERIFICATION_SALT = 'email-verification'
PASSWORD_RESET_SALT = 'password-reset'


def _serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=salt)


def issue_token(payload: Dict[str, Any], salt: str) -> str:
    return _serializer(salt).dumps(payload)


def read_token(token: str, salt: str, max_age_minutes: int) -> Dict[str, Any]:
    """
    Decode a token minted by issue_token.

    Raises:
        ValidationFailed: token expired, tampered with, or minted for another purpose
    """
    try:
        return _serializer(salt).loads(token, max_age=max_age_minutes * 60)
    except SignatureExpired:
        logger.info(f"Expired {salt} token presented")
        raise ValidationFailed('This link has expired', errors={'token': ['This link has expired']})
    except BadSignature:
        logger.warning(f"Invalid {salt} token presented")
        raise ValidationFailed('This link is invalid', errors={'token': ['This link is invalid']})
