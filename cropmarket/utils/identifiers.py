"""
Identifier and timestamp helpers shared by the stores and services.
"""
from datetime import datetime, timezone

from bson import ObjectId


def new_id() -> str:
    """Generate an opaque, unique document identifier."""
    return str(ObjectId())


def utc_now() -> datetime:
    """
    Current UTC time truncated to milliseconds.

    BSON dates keep millisecond precision, so truncating here keeps
    timestamps equal after a round trip through MongoDB.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
