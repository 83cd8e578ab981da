"""Column helpers shared by the ORM models."""

from datetime import datetime
from uuid import uuid4


def new_id() -> str:
    """Generate a document ID."""
    return uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp with microsecond resolution."""
    return datetime.utcnow()
