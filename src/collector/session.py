"""Lazily created analytics session ids.

A session id groups the events of one continuous visit. It is created
on the first recorded event and kept in session-scoped client storage.
"""

import random
import string
from datetime import datetime, timezone

from src.ab.storage import KeyValueStore
from src.config import SESSION_STORAGE_KEY

_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def new_session_id(now: datetime | None = None, rng: random.Random | None = None) -> str:
    """Build ``<epoch millis>-<9 base36 chars>``."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    suffix = "".join((rng or random).choices(_ALPHABET, k=_SUFFIX_LENGTH))
    return f"{millis}-{suffix}"


def get_or_create_session_id(
    session_storage: KeyValueStore,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    session_id = session_storage.get(SESSION_STORAGE_KEY)
    if not session_id:
        session_id = new_session_id(now, rng)
        session_storage.set(SESSION_STORAGE_KEY, session_id)
    return session_id
