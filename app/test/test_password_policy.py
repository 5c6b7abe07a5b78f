"""
Password requirements applied at registration, change and reset
"""

import pytest

from app.data.core.user_info.password_validator import PasswordValidator


@pytest.mark.parametrize('password, valid', [
    ('short', False),
    ('', False),
    (None, False),
    (12345678, False),
    ('x' * 129, False),
    ('eightchr', True),
    ('correct horse battery staple', True),
])
def test_validate(password, valid):
    is_valid, message = PasswordValidator.validate(password)

    assert is_valid is valid
    assert (message == '') is valid


def test_length_message():
    _, message = PasswordValidator.validate('short')
    assert message == 'Password must be at least 8 characters'


def test_optional_rules(monkeypatch):
    monkeypatch.setattr(PasswordValidator, 'REQUIRE_DIGIT', True)

    assert PasswordValidator.validate('no-digits-here')[0] is False
    assert PasswordValidator.validate('one-digit-9')[0] is True
    assert 'At least one digit (0-9)' in PasswordValidator.get_requirements_text()


def test_requirements_text():
    text = PasswordValidator.get_requirements_text()

    assert 'At least 8 characters long' in text
    assert 'No more than 128 characters' in text
