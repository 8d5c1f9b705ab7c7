"""
Input validation utilities.

Validators return (is_valid, error_message) so callers can raise the
error type that fits their layer.
"""

import re
from typing import Tuple

# Deliberately loose: local part, @, domain with a dot-separated TLD
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: str) -> Tuple[bool, str]:
    """
    Validate the shape of an email address used for sharing.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not email.strip():
        return False, "Email is required"

    if not EMAIL_PATTERN.match(email.strip()):
        return False, f"Invalid email format: {email}"

    return True, ""


def validate_password(password: str) -> Tuple[bool, str]:
    """
    Validate password strength at registration.

    Requires at least 8 characters with a letter and a number.
    """
    if not password:
        return False, "Password is required"

    if len(password) < 8:
        return False, "Password must be at least 8 characters"

    if not re.search(r"[a-zA-Z]", password):
        return False, "Password must contain at least one letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one number"

    return True, ""
