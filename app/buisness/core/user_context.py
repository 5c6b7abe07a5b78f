"""
User Context (Core)
Provides a clean interface for account operations.

Handles:
- Registration of unverified customers
- Email verification through signed links
- Credential checks for sign-in
- Password change and token-based password reset
"""

import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app import db, mailer
from app.buisness.core.errors import (
    AuthenticationFailed,
    NotFound,
    PersistenceFailure,
    ValidationFailed,
)
from app.buisness.core.signed_links import (
    PASSWORD_RESET_SALT,
    VERIFICATION_SALT,
    issue_token,
    read_token,
)
from app.data.core.user_info.password_validator import PasswordValidator
from app.data.core.user_info.user import CUSTOMER_ROLE, User
from app.logger import get_logger

logger = get_logger("clothing_store.buisness.core.user_context")

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
REGISTRATION_FIELDS = ('name', 'email', 'password', 'address', 'number')

# Builds the absolute URL a token is mailed inside
LinkBuilder = Callable[[str], str]


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _email_errors(email: Any) -> Dict[str, List[str]]:
    if is_missing(email):
        return {'email': ["The email field is required."]}
    if not isinstance(email, str):
        return {'email': ["The email must be a string."]}
    if not EMAIL_PATTERN.match(email.strip()):
        return {'email': ["The email must be a valid email address."]}
    return {}


class UserContext:
    """
    Core context for a single user account.

    Classmethods cover the flows that start without a known user
    (register, verify, authenticate, password reset); instance methods act on
    the wrapped user.
    """

    def __init__(self, user: User):
        self._user = user

    @property
    def user(self) -> User:
        return self._user

    @property
    def user_id(self) -> int:
        return self._user.id

    @classmethod
    def load(cls, user_id: int) -> 'UserContext':
        user = db.session.get(User, user_id)
        if user is None:
            logger.warning(f"User with ID {user_id} not found")
            raise NotFound('User not found')
        return cls(user)

    # ========== Registration & verification ==========

    @staticmethod
    def validate_registration(data: Dict[str, Any]) -> Dict[str, List[str]]:
        """
        Check registration input.

        Returns:
            dict: field -> messages; empty when the input is acceptable
        """
        errors: Dict[str, List[str]] = {}

        for field in REGISTRATION_FIELDS:
            value = data.get(field)
            if is_missing(value):
                errors.setdefault(field, []).append(f"The {field} field is required.")
            elif not isinstance(value, str):
                errors.setdefault(field, []).append(f"The {field} must be a string.")

        email = data.get('email')
        if 'email' not in errors:
            if not EMAIL_PATTERN.match(email.strip()):
                errors.setdefault('email', []).append("The email must be a valid email address.")
            elif User.query.filter_by(email=email.strip().lower()).first():
                errors.setdefault('email', []).append("The email has already been taken.")

        number = data.get('number')
        if 'number' not in errors and User.query.filter_by(number=number.strip()).first():
            errors.setdefault('number', []).append("The number has already been taken.")

        if 'password' not in errors:
            is_valid, message = PasswordValidator.validate(data.get('password'))
            if not is_valid:
                errors.setdefault('password', []).append(message)

        return errors

    @classmethod
    def register(cls, data: Dict[str, Any]) -> 'UserContext':
        """
        Create an unverified customer account.

        Args:
            data: name, email, password, address, number

        Raises:
            ValidationFailed: any field missing/invalid, email or number taken
            PersistenceFailure: the insert failed
        """
        errors = cls.validate_registration(data)
        if errors:
            raise ValidationFailed.for_fields(errors)

        user = User(
            name=data['name'].strip(),
            email=data['email'].strip().lower(),
            number=data['number'].strip(),
            address=data['address'].strip(),
            role_id=CUSTOMER_ROLE,
        )
        user.set_password(data['password'])

        try:
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error registering user {user.email}: {e}")
            raise PersistenceFailure('Registration failed')

        logger.info(f"Registered user {user.id} ({user.email}), awaiting verification")
        return cls(user)

    def issue_verification_token(self) -> str:
        return issue_token({'user_id': self.user_id}, VERIFICATION_SALT)

    def send_verification_mail(self, link_builder: LinkBuilder) -> str:
        """
        Mail a fresh verification link to the user.

        Returns:
            str: the link that was sent
        """
        minutes = current_app.config.get('VERIFICATION_LINK_MINUTES', 10)
        link = link_builder(self.issue_verification_token())
        mailer.send(
            self._user.email,
            'Verify your email address',
            f"Hello {self._user.name},\n\n"
            f"Please confirm your email address by opening the link below.\n"
            f"The link expires in {minutes} minutes.\n\n{link}\n",
        )
        return link

    @classmethod
    def verify_email(cls, token: str) -> 'UserContext':
        """
        Consume a verification token and mark the account verified.

        Raises:
            ValidationFailed: token expired or invalid
            NotFound: the user no longer exists
        """
        minutes = current_app.config.get('VERIFICATION_LINK_MINUTES', 10)
        payload = read_token(token, VERIFICATION_SALT, minutes)
        ctx = cls.load(payload.get('user_id'))

        if ctx.user.email_verified_at is None:
            ctx.user.email_verified_at = datetime.utcnow()
            cls._commit(f"verifying user {ctx.user_id}")
            logger.info(f"User {ctx.user_id} verified their email")
        return ctx

    # ========== Sign-in ==========

    @staticmethod
    def authenticate(email: Optional[str], password: Optional[str]) -> User:
        """
        Check credentials for sign-in.

        Unknown email, wrong password and unverified account all fail the
        same way so the caller cannot tell them apart.

        Raises:
            ValidationFailed: email or password missing or not a string
            AuthenticationFailed: credentials rejected
        """
        errors = _email_errors(email)
        if is_missing(password):
            errors['password'] = ["The password field is required."]
        elif not isinstance(password, str):
            errors['password'] = ["The password must be a string."]
        if errors:
            raise ValidationFailed.for_fields(errors)

        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None or not user.check_password(password):
            logger.warning(f"Failed login attempt for email: {email}")
            raise AuthenticationFailed()

        if not user.is_verified:
            logger.warning(f"Login attempt for unverified account: {email}")
            raise AuthenticationFailed()

        return user

    # ========== Passwords ==========

    def change_password(self, new_password: Optional[str]) -> None:
        """
        Raises:
            ValidationFailed: password does not meet requirements
        """
        self._set_validated_password(new_password)
        self._commit(f"changing password for user {self.user_id}")
        logger.info(f"User {self.user_id} changed their password")

    def _set_validated_password(self, new_password: Optional[str]) -> None:
        is_valid, message = PasswordValidator.validate(new_password)
        if not is_valid:
            raise ValidationFailed(message, errors={'password': [message]})
        self._user.set_password(new_password)

    def _reset_fingerprint(self) -> str:
        # Any password change invalidates outstanding reset links
        return self._user.password_hash[-16:]

    def issue_password_reset_token(self) -> str:
        return issue_token(
            {'user_id': self.user_id, 'fp': self._reset_fingerprint()},
            PASSWORD_RESET_SALT,
        )

    @classmethod
    def request_password_reset(cls, email: Optional[str], link_builder: LinkBuilder) -> 'UserContext':
        """
        Mail a single-use, time-limited password reset link.

        Raises:
            ValidationFailed: email missing, malformed or not registered
        """
        errors = _email_errors(email)
        if errors:
            raise ValidationFailed.for_fields(errors)

        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None:
            logger.warning(f"Password reset requested for unknown email: {email}")
            raise ValidationFailed.for_fields({'email': ["The selected email is invalid."]})

        ctx = cls(user)
        minutes = current_app.config.get('PASSWORD_RESET_MINUTES', 10)
        link = link_builder(ctx.issue_password_reset_token())
        mailer.send(
            user.email,
            'Reset your password',
            f"Hello {user.name},\n\n"
            f"A password reset was requested for your account. Open the link below\n"
            f"within {minutes} minutes to choose a new password. If you did not ask\n"
            f"for this, you can ignore this email.\n\n{link}\n",
        )
        logger.info(f"Password reset link sent to user {user.id}")
        return ctx

    @classmethod
    def reset_password(cls, token: str, new_password: Optional[str]) -> 'UserContext':
        """
        Consume a reset token and set the new password.

        Raises:
            ValidationFailed: token expired, invalid, already used; or weak password
            NotFound: the user no longer exists
        """
        minutes = current_app.config.get('PASSWORD_RESET_MINUTES', 10)
        payload = read_token(token, PASSWORD_RESET_SALT, minutes)
        ctx = cls.load(payload.get('user_id'))

        if payload.get('fp') != ctx._reset_fingerprint():
            logger.warning(f"Reused password reset token for user {ctx.user_id}")
            raise ValidationFailed('This link is invalid', errors={'token': ['This link is invalid']})

        ctx._set_validated_password(new_password)
        cls._commit(f"resetting password for user {ctx.user_id}")
        logger.info(f"User {ctx.user_id} reset their password")
        return ctx

    # ========== Helpers ==========

    @staticmethod
    def _commit(action: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error {action}: {e}")
            raise PersistenceFailure()

    def to_dict(self) -> Dict[str, Any]:
        data = self._user.to_dict()
        data['is_admin'] = self._user.is_admin
        return data
