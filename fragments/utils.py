"""Utility helper functions for the Fragments server."""

import hashlib
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format with millisecond precision.

    Returns:
        Timestamp like "2026-01-07T10:30:45.123Z"
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def hash_owner(email: str) -> str:
    """
    Derive an opaque owner id from a user's email.

    Returns:
        Hex SHA-256 digest of the email
    """
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


def split_fragment_path(value: str) -> Tuple[str, Optional[str]]:
    """
    Split a "{id}.{ext}" path segment into id and extension.

    Args:
        value: Path segment (e.g., "3f2a...c9.html")

    Returns:
        Tuple of (id, extension with leading dot or None)
    """
    stem, dot, ext = value.rpartition(".")
    if not dot or not stem or not ext:
        return value, None
    return stem, f".{ext}"
