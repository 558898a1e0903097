"""Reusable input validators for pydantic models.

- Email validation
- Display-text sanitization (trim, length cap, markup/script rejection)
"""

import re

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# XSS patterns
XSS_PATTERNS = [
    r"<script[^>]*>.*?</script>",
    r"javascript:",
    r"on\w+\s*=",
    r"<iframe",
]


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """Trim and check free text that ends up rendered in the UI.

    Raises:
        ValueError: If the text is too long or carries markup/script
    """
    if not isinstance(value, str):
        raise ValueError("Must be a string")

    value = value.strip()

    if len(value) > max_length:
        raise ValueError(f"String too long (max {max_length} characters)")

    for pattern in XSS_PATTERNS:
        if re.search(pattern, value, re.IGNORECASE):
            raise ValueError("Invalid characters detected")

    return value


def validate_email(value: str) -> str:
    """Validate an email address and return it lower-cased.

    Raises:
        ValueError: If email is invalid
    """
    if not value:
        raise ValueError("Email is required")

    value = value.strip().lower()

    if len(value) > 254:  # RFC 5321
        raise ValueError("Email address too long")

    if not EMAIL_REGEX.match(value):
        raise ValueError("E-mail inválido")

    return value
