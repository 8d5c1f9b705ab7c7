"""
Utility modules package.
"""

from renotefy.utils.validators import validate_email, validate_password

__all__ = [
    "validate_email",
    "validate_password",
]
