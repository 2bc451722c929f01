"""Tests for session ids and event recording."""

import random
import re
from datetime import datetime, timezone

import pytest

from src.ab.storage import MemoryStorage
from src.collector.errors import BackendUnavailable
from src.collector.schemas import Event, EventType
from src.collector.session import get_or_create_session_id, new_session_id
from src.collector.tracker import AsyncEventTracker, EventTracker
from src.config import SESSION_STORAGE_KEY

FIXED_NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


class ListStore:
    def __init__(self):
        self.events: list[Event] = []

    def insert(self, event: Event) -> None:
        self.events.append(event)


class DownStore:
    def insert(self, event: Event) -> None:
        raise BackendUnavailable("connection refused")


class BrokenStore:
    def insert(self, event: Event) -> None:
        raise RuntimeError("socket closed")


class TestSessionId:
    def test_format(self):
        sid = new_session_id(FIXED_NOW, random.Random(1))
        assert re.fullmatch(r"\d+-[0-9a-z]{9}", sid)
        assert sid.startswith(str(int(FIXED_NOW.timestamp() * 1000)))

    def test_created_once_per_session(self):
        storage = MemoryStorage()
        first = get_or_create_session_id(storage)
        assert get_or_create_session_id(storage) == first
        assert storage.get(SESSION_STORAGE_KEY) == first

    def test_new_session_gets_new_id(self):
        ids = {get_or_create_session_id(MemoryStorage()) for _ in range(200)}
        assert len(ids) == 200


class TestEventTracker:
    def test_records_event(self):
        store = ListStore()
        tracker = EventTracker(store, MemoryStorage(), clock=lambda: FIXED_NOW)
        assert tracker.record_event("hero_shop_click", "poetic") is None

        (event,) = store.events
        assert event.event_type == EventType.HERO_SHOP_CLICK
        assert event.brand_variant.value == "poetic"
        assert event.metadata == {}
        assert event.created_at == FIXED_NOW

    def test_events_share_session(self):
        store = ListStore()
        tracker = EventTracker(store, MemoryStorage())
        tracker.record_event(EventType.NAV_CLICK, "modern", {"target": "about"})
        tracker.record_event(EventType.HERO_VISIT_CLICK, "modern")
        assert store.events[0].session_id == store.events[1].session_id
        assert store.events[0].metadata == {"target": "about"}

    def test_backend_unavailable_is_returned_not_raised(self, caplog):
        tracker = EventTracker(DownStore(), MemoryStorage())
        result = tracker.record_event(EventType.PRE_ORDER_SUBMISSION, "poetic")
        assert isinstance(result, BackendUnavailable)
        assert "Analytics tracking error" in caplog.text

    def test_unexpected_store_failure_is_wrapped(self, caplog):
        tracker = EventTracker(BrokenStore(), MemoryStorage())
        result = tracker.record_event(EventType.CONTACT_SUBMISSION, "modern")
        assert isinstance(result, BackendUnavailable)
        assert "socket closed" in str(result)
        assert "Failed to track event" in caplog.text

    def test_unknown_kind_rejected(self):
        tracker = EventTracker(ListStore(), MemoryStorage())
        with pytest.raises(ValueError):
            tracker.record_event("page_scroll", "poetic")

    def test_writes_to_warehouse(self, warehouse, tracker):
        tracker.record_event(EventType.HERO_SHOP_CLICK, "poetic", {"section": "featured"})
        rows = warehouse.select_all("analytics_events")
        assert len(rows) == 1
        assert rows[0]["event_type"] == "hero_shop_click"
        assert rows[0]["metadata"] == {"section": "featured"}


class TestAsyncEventTracker:
    def test_preserves_submission_order(self):
        store = ListStore()
        kinds = [EventType.NAV_CLICK, EventType.HERO_SHOP_CLICK, EventType.PRE_ORDER_SUBMISSION] * 20
        with AsyncEventTracker(EventTracker(store, MemoryStorage())) as async_tracker:
            futures = [async_tracker.track(k, "poetic") for k in kinds]
        assert all(f.result() is None for f in futures)
        assert [e.event_type for e in store.events] == kinds

    def test_failure_resolves_to_error(self):
        with AsyncEventTracker(EventTracker(DownStore(), MemoryStorage())) as async_tracker:
            future = async_tracker.track(EventType.HERO_SHOP_CLICK, "modern")
            assert isinstance(future.result(timeout=5), BackendUnavailable)

    def test_writes_to_warehouse_from_worker(self, warehouse):
        with AsyncEventTracker(EventTracker(warehouse, MemoryStorage())) as async_tracker:
            for _ in range(5):
                async_tracker.track(EventType.HERO_VISIT_CLICK, "modern")
        assert warehouse.count("analytics_events") == 5

    def test_rejected_event_is_logged(self, caplog):
        store = ListStore()
        with AsyncEventTracker(EventTracker(store, MemoryStorage())) as async_tracker:
            future = async_tracker.track("page_scroll", "poetic")
        assert isinstance(future.exception(), ValueError)
        assert "Event rejected before recording" in caplog.text
        assert store.events == []
