"""
Password validation utility
Implements the password requirements applied at registration, password change
and password reset.
"""

import re


class PasswordValidator:
    """Password validation"""

    MIN_LENGTH = 8
    MAX_LENGTH = 128
    REQUIRE_UPPERCASE = False
    REQUIRE_LOWERCASE = False
    REQUIRE_DIGIT = False

    @classmethod
    def validate(cls, password):
        """
        Validate password strength

        Args:
            password (str): The password to validate

        Returns:
            tuple: (is_valid, error_message)
                is_valid (bool): True if password meets all requirements
                error_message (str): Error message if validation fails, empty string if valid
        """
        if not password or not isinstance(password, str):
            return False, "Password is required"

        if len(password) < cls.MIN_LENGTH:
            return False, f"Password must be at least {cls.MIN_LENGTH} characters"

        if len(password) > cls.MAX_LENGTH:
            return False, f"Password must be less than {cls.MAX_LENGTH} characters"

        if cls.REQUIRE_UPPERCASE and not re.search(r'[A-Z]', password):
            return False, "Password must contain at least one uppercase letter"

        if cls.REQUIRE_LOWERCASE and not re.search(r'[a-z]', password):
            return False, "Password must contain at least one lowercase letter"

        if cls.REQUIRE_DIGIT and not re.search(r'\d', password):
            return False, "Password must contain at least one digit"

        return True, ""

    @classmethod
    def get_requirements_text(cls):
        """
        Get a human-readable description of password requirements

        Returns:
            str: Description of all password requirements
        """
        requirements = [
            f"At least {cls.MIN_LENGTH} characters long",
            f"No more than {cls.MAX_LENGTH} characters"
        ]

        if cls.REQUIRE_UPPERCASE:
            requirements.append("At least one uppercase letter (A-Z)")

        if cls.REQUIRE_LOWERCASE:
            requirements.append("At least one lowercase letter (a-z)")

        if cls.REQUIRE_DIGIT:
            requirements.append("At least one digit (0-9)")

        return "Password must be:\n" + "\n".join(f"- {req}" for req in requirements)
