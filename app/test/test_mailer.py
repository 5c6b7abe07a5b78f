"""
Mail delivery: suppressed outbox, SMTP failures and missing configuration
"""

import logging
import smtplib

import pytest

from app import create_app, mailer
from app.buisness.core.errors import MailDeliveryFailed
from app.buisness.core.mailer import OUTBOX_LIMIT
from app.data.core.user_info.user import User

BARE_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret-key',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'ENABLE_HTTPS': False,
}

SIGNUP = {
    'name': 'Jane Doe',
    'email': 'jane@example.com',
    'password': 'correct-horse',
    'address': '12 High Street',
    'number': '5551234',
}


class BrokenSMTP:
    """Stands in for smtplib.SMTP when the mail server is unreachable"""

    def __init__(self, *args, **kwargs):
        raise smtplib.SMTPException('connection refused')


@pytest.fixture
def smtp_down(app, monkeypatch):
    app.config['MAIL_SERVER'] = 'smtp.example.com'
    app.config['MAIL_SUPPRESS_SEND'] = False
    monkeypatch.setattr(smtplib, 'SMTP', BrokenSMTP)


class TestOutbox:

    def test_suppressed_mail_is_recorded(self, ctx):
        mailer.send('jane@example.com', 'Hello', 'Body')

        assert len(mailer.outbox) == 1
        assert mailer.outbox[0].sender == 'no-reply@clothing-store.local'

    def test_outbox_keeps_only_recent_mail(self, ctx):
        for n in range(OUTBOX_LIMIT + 5):
            mailer.send('jane@example.com', f'Message {n}', 'Body')

        assert len(mailer.outbox) == OUTBOX_LIMIT
        assert mailer.outbox[0].subject == 'Message 5'
        assert mailer.outbox[-1].subject == f'Message {OUTBOX_LIMIT + 4}'


class TestMissingServer:

    def test_send_fails_without_server(self, app, ctx):
        app.config['MAIL_SUPPRESS_SEND'] = False
        app.config['MAIL_SERVER'] = None

        with pytest.raises(MailDeliveryFailed):
            mailer.send('jane@example.com', 'Hello', 'Body')
        assert len(mailer.outbox) == 0

    def test_startup_warning(self, monkeypatch, caplog):
        monkeypatch.delenv('MAIL_SERVER', raising=False)

        with caplog.at_level(logging.WARNING):
            create_app(dict(BARE_CONFIG, MAIL_SUPPRESS_SEND=False))

        assert any('MAIL_SERVER not set' in record.getMessage() for record in caplog.records)

    def test_no_warning_when_suppressed(self, monkeypatch, caplog):
        monkeypatch.delenv('MAIL_SERVER', raising=False)

        with caplog.at_level(logging.WARNING):
            create_app(dict(BARE_CONFIG, MAIL_SUPPRESS_SEND=True))

        assert not any('MAIL_SERVER not set' in record.getMessage() for record in caplog.records)


class TestSmtpFailure:

    def test_send_raises_domain_error(self, app, ctx, smtp_down):
        with pytest.raises(MailDeliveryFailed) as excinfo:
            mailer.send('jane@example.com', 'Hello', 'Body')

        assert excinfo.value.status_code == 500
        assert isinstance(excinfo.value.__cause__, smtplib.SMTPException)

    def test_signup_still_creates_account(self, app, client, smtp_down):
        response = client.post('/api/signup', json=SIGNUP)

        assert response.status_code == 201
        body = response.get_json()
        assert body['resend_url'] == f"/api/email/resend/{body['user_id']}"
        assert 'could not be sent' in body['message']
        with app.app_context():
            assert User.query.filter_by(email='jane@example.com').count() == 1

    def test_browser_signup_goes_to_pending_page(self, client, smtp_down):
        response = client.post('/signup', data=SIGNUP)

        assert response.status_code == 302
        assert '/email/pending/' in response.headers['Location']

    def test_forgot_password_reports_failure(self, client, make_user, smtp_down):
        make_user('jane@example.com')

        response = client.post('/api/password/forgot', json={'email': 'jane@example.com'})

        assert response.status_code == 500
        assert response.get_json() == {'message': 'Could not send email'}

    def test_resend_reports_failure(self, client, make_user, smtp_down):
        user_id = make_user('jane@example.com', verified=False)

        response = client.get(f'/api/email/resend/{user_id}')

        assert response.status_code == 500
        assert response.get_json() == {'message': 'Could not send email'}
