"""Identifier helpers."""

from uuid import UUID


def is_valid_uuid(value: object) -> bool:
    """Check whether a value is a UUID string.

    Identifiers arrive from clients and external callers; anything that is
    not a UUID cannot match a row and must not reach the database.

    Args:
        value: Candidate identifier

    Returns:
        True if value parses as a UUID
    """
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True
