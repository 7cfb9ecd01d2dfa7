"""Identifier and timestamp helpers shared by orders, pancakes and ingredients.

IDs are UUID v4 strings and are opaque to callers.  Timestamps are
``datetime`` with ``tzinfo=timezone.utc``, never naive.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Fresh opaque entity id."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)
