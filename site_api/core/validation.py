"""Input sanitizing and email syntax checks for form submissions."""

import re
from typing import Any

# local@domain.tld - deliberately loose, only rejects obviously malformed input
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return EMAIL_PATTERN.match(value) is not None


def sanitize(value: Any, lower: bool = False) -> str:
    """Trim a string field; anything that is not a string becomes ''."""
    if not isinstance(value, str):
        return ""
    value = value.strip()
    return value.lower() if lower else value


def sanitize_email(value: Any) -> str:
    return sanitize(value, lower=True)
