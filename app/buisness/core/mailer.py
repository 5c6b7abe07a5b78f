"""
Mailer extension

Sends plain-text notification mail (verification and password-reset links).

- With MAIL_SERVER set, messages go out over SMTP; any SMTP or socket error
  is raised as MailDeliveryFailed
- With MAIL_SUPPRESS_SEND set, messages are kept in `outbox` instead,
  which holds only the most recent OUTBOX_LIMIT messages
- Otherwise delivery is not configured and send() raises MailDeliveryFailed
"""

import smtplib
from collections import deque
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Deque, Optional

from app.buisness.core.errors import MailDeliveryFailed
from app.logger import get_logger
from app.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("clothing_store.buisness.core.mailer")

OUTBOX_LIMIT = 100


@dataclass(frozen=True)
class OutgoingMail:
    recipient: str
    subject: str
    body: str
    sender: str


class Mailer:
    """Flask extension wrapping SMTP delivery"""

    def __init__(self, app=None):
        self.app = None
        self.outbox: Deque[OutgoingMail] = deque(maxlen=OUTBOX_LIMIT)
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions['mailer'] = self
        if not self.is_configured(app.config) and not self.is_suppressed(app.config):
            logger.warning("MAIL_SERVER not set - verification and password reset mail cannot be sent")

    @property
    def _config(self):
        from flask import current_app
        return current_app.config

    @staticmethod
    def is_configured(config) -> bool:
        return bool(config.get('MAIL_SERVER'))

    @staticmethod
    def is_suppressed(config) -> bool:
        return bool(config.get('MAIL_SUPPRESS_SEND'))

    def send(self, recipient: str, subject: str, body: str, sender: Optional[str] = None) -> OutgoingMail:
        """
        Send a message, or record it when delivery is suppressed.

        Raises:
            MailDeliveryFailed: no mail server configured, or delivery failed
        """
        mail = OutgoingMail(
            recipient=recipient,
            subject=subject,
            body=body,
            sender=sender or self._config.get('MAIL_DEFAULT_SENDER'),
        )

        if self.is_suppressed(self._config):
            self.outbox.append(mail)
            logger.info(f"Mail delivery suppressed, recorded '{subject}' for {recipient}")
            return mail

        if not self.is_configured(self._config):
            logger.error(f"Cannot send '{subject}' to {recipient}: MAIL_SERVER is not set")
            raise MailDeliveryFailed()

        message = EmailMessage()
        message['From'] = mail.sender
        message['To'] = mail.recipient
        message['Subject'] = mail.subject
        message.set_content(mail.body)

        try:
            with smtplib.SMTP(self._config['MAIL_SERVER'], self._config.get('MAIL_PORT', 587)) as smtp:
                if self._config.get('MAIL_USE_TLS'):
                    smtp.starttls()
                if self._config.get('MAIL_USERNAME'):
                    smtp.login(self._config['MAIL_USERNAME'], self._config.get('MAIL_PASSWORD') or '')
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' to {recipient}: {sanitize_exception_message(e)}")
            raise MailDeliveryFailed() from e

        logger.info(f"Sent '{subject}' to {recipient}")
        return mail
