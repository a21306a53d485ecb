"""Parsing of entity ids taken from URL paths."""

import uuid

from app.exceptions import BadRequestError


def parse_identifier(raw: str, message: str) -> uuid.UUID:
    """
    Convert a path segment into a UUID.

    Raises:
        BadRequestError with `message` if the value is empty or not a UUID.
    """
    value = (raw or "").strip()
    if not value:
        raise BadRequestError(message=message)
    try:
        return uuid.UUID(value)
    except ValueError:
        raise BadRequestError(message=message, context={"identifier": value})
