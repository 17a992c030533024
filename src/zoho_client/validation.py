"""
Input validation helpers.

Identifiers interpolated into URL paths must not be able to escape the
intended resource, so path separators and traversal sequences are rejected
before the path is built.
"""

import re
from typing import Any

from .runtime.errors import ErrorCode, ValidationError

_ID_PATTERN = re.compile(r"^[\w\-]+$", re.ASCII)


def validate_id(value: Any, field: str = "id") -> str:
    """
    Validate that an identifier is safe to use in a URL path.

    Args:
        value: Identifier to check
        field: Name used in error details

    Returns:
        The identifier unchanged

    Raises:
        ValidationError: If the identifier is unsafe
    """
    if not isinstance(value, str):
        raise ValidationError("ID must be a string", ErrorCode.INVALID_ID, {"field": field})

    if value.strip() == "":
        raise ValidationError("ID cannot be empty", ErrorCode.INVALID_ID, {"field": field})

    if ".." in value:
        raise ValidationError("Invalid ID: path traversal not allowed", ErrorCode.INVALID_ID,
                              {"field": field, "value": value})

    if "/" in value or "\\" in value:
        raise ValidationError("Invalid ID: path separators not allowed", ErrorCode.INVALID_ID,
                              {"field": field, "value": value})

    if not _ID_PATTERN.match(value):
        raise ValidationError(
            "Invalid ID: must contain only alphanumeric characters, underscores, or hyphens",
            ErrorCode.INVALID_ID,
            {"field": field, "value": value},
        )

    return value


def validate_ids(**ids: Any) -> None:
    """Validate several named identifiers at once."""
    for field, value in ids.items():
        validate_id(value, field)
