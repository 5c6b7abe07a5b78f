"""
Domain exceptions for the store business logic

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer and turned into responses at the request
boundary by the presentation layer's response adapter.
"""

from typing import Dict, List, Optional


class DomainError(Exception):
    """Base exception for all store domain errors"""
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, List[str]]] = None):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(self.message)


class ValidationFailed(DomainError):
    """Raised when input is malformed or missing"""
    status_code = 422
    default_message = 'The given data was invalid'

    @classmethod
    def for_fields(cls, errors: Dict[str, List[str]]) -> 'ValidationFailed':
        return cls(errors=errors)

    def messages(self) -> List[str]:
        """Flat list of every field message, in field order"""
        return [msg for field_msgs in self.errors.values() for msg in field_msgs] or [self.message]


class NotFound(DomainError):
    """Raised when a referenced entity does not exist"""
    status_code = 404
    default_message = 'Not found'


class StorageNotFound(NotFound):
    """Raised when a cloth has no storage record to sell from"""
    default_message = 'Storage not Found'


class StorageQuantityExceeded(DomainError):
    """Raised when a purchase would drive a storage below zero"""
    status_code = 409
    default_message = 'Storage Quantity Exceeded!'


class AuthenticationFailed(DomainError):
    """Raised on bad credentials or an unverified account; never says which"""
    status_code = 401
    default_message = 'User not Found'


class AuthorizationFailed(DomainError):
    """Raised when a non-admin actor reaches an admin-only operation"""
    status_code = 403
    default_message = 'Forbidden'


class PersistenceFailure(DomainError):
    """Raised when the underlying database write failed"""
    status_code = 500
    default_message = 'Could not save changes'


class MailDeliveryFailed(PersistenceFailure):
    """Raised when an outgoing message could not be handed to the mail server"""
    default_message = 'Could not send email'
