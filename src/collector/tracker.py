"""Fire-and-forget event recording.

Recording an interaction must never block or break the action it
annotates. A failed write is logged and returned as a value; it is
never raised and never retried.
"""

import logging
import random
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from src.ab.experiment import Variant
from src.ab.storage import KeyValueStore
from src.collector.errors import BackendUnavailable, RecordError
from src.collector.schemas import Event, EventType
from src.collector.session import get_or_create_session_id

logger = logging.getLogger(__name__)


class EventStore(Protocol):
    def insert(self, event: Event) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventTracker:
    def __init__(
        self,
        store: EventStore,
        session_storage: KeyValueStore,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.session_storage = session_storage
        self.clock = clock
        self.rng = rng

    def record_event(
        self,
        kind: EventType | str,
        variant: Variant | str,
        metadata: dict[str, Any] | None = None,
    ) -> RecordError | None:
        """Append one event. Returns the error on failure, None on success."""
        now = self.clock()
        session_id = get_or_create_session_id(self.session_storage, now, self.rng)
        event = Event(
            event_type=EventType(kind),
            brand_variant=Variant(variant),
            session_id=session_id,
            metadata=metadata or {},
            created_at=now,
        )
        try:
            self.store.insert(event)
        except BackendUnavailable as exc:
            logger.error("Analytics tracking error for %s: %s", event.event_type.value, exc)
            return exc
        except Exception as exc:
            logger.exception("Failed to track event %s", event.event_type.value)
            return BackendUnavailable(str(exc))
        return None


def _log_rejected(future: Future) -> None:
    # Nobody is required to read the future; an invalid event must still be seen
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Event rejected before recording: %r", exc)


class AsyncEventTracker:
    """Submit events without waiting for the write.

    One worker thread drains a FIFO queue, so writes from one client are
    initiated in the order the client triggered them.
    """

    def __init__(self, tracker: EventTracker):
        self.tracker = tracker
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="analytics")

    def track(
        self,
        kind: EventType | str,
        variant: Variant | str,
        metadata: dict[str, Any] | None = None,
    ) -> "Future[RecordError | None]":
        future = self._executor.submit(self.tracker.record_event, kind, variant, metadata)
        future.add_done_callback(_log_rejected)
        return future

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "AsyncEventTracker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
