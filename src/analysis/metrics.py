"""Per-variant metrics for the brand experiment.

summarize() is a pure function over a snapshot of recorded events. It
accepts Event objects or raw warehouse rows, and drops any row whose
variant or event type is not recognized instead of failing the report.

Conversion rate is conversions per entry event, as a percentage:
  entry events:      hero_shop_click, hero_visit_click
  conversion events: pre_order_submission, contact_submission
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from src.ab.experiment import Variant
from src.collector.errors import SummarizeInputInvalid
from src.collector.schemas import CONVERSION_EVENTS, ENTRY_EVENTS, Event, EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantMetrics:
    variant: Variant
    session_count: int = 0
    entry_count: int = 0
    conversion_count: int = 0
    conversion_rate: float = 0.0  # Percent, one decimal


@dataclass(frozen=True)
class Winner:
    variant: Variant
    margin_pp: float  # Percentage points, one decimal


@dataclass(frozen=True)
class Tie:
    pass


TIE = Tie()


def _coerce(record: Event | Mapping[str, Any]) -> tuple[EventType, Variant, str | None]:
    if isinstance(record, Event):
        return record.event_type, record.brand_variant, record.session_id
    if not isinstance(record, Mapping):
        raise SummarizeInputInvalid(f"Unsupported record type: {type(record).__name__}")
    try:
        kind = EventType(record.get("event_type"))
        variant = Variant(record.get("brand_variant"))
    except ValueError as exc:
        raise SummarizeInputInvalid(str(exc)) from exc
    session_id = record.get("session_id")
    return kind, variant, str(session_id) if session_id else None


def conversion_rate(conversions: int, entries: int) -> float:
    if entries <= 0:
        return 0.0
    return round(conversions / entries * 100, 1)


def summarize(events: Iterable[Event | Mapping[str, Any]]) -> dict[Variant, VariantMetrics]:
    """Group events by variant and compute metrics for every variant.

    Both variants are always present; with no events all values are zero.
    """
    sessions: dict[Variant, set[str]] = {v: set() for v in Variant}
    entries = {v: 0 for v in Variant}
    conversions = {v: 0 for v in Variant}
    skipped = 0

    for record in events:
        try:
            kind, variant, session_id = _coerce(record)
        except SummarizeInputInvalid as exc:
            skipped += 1
            logger.debug("Excluding record from aggregation: %s", exc)
            continue

        if session_id:
            sessions[variant].add(session_id)
        if kind in ENTRY_EVENTS:
            entries[variant] += 1
        elif kind in CONVERSION_EVENTS:
            conversions[variant] += 1

    if skipped:
        logger.info("Excluded %d malformed record(s) from aggregation", skipped)

    return {
        v: VariantMetrics(
            variant=v,
            session_count=len(sessions[v]),
            entry_count=entries[v],
            conversion_count=conversions[v],
            conversion_rate=conversion_rate(conversions[v], entries[v]),
        )
        for v in Variant
    }


def pick_winner(metrics: Mapping[Variant, VariantMetrics]) -> Winner | Tie:
    """Variant with the strictly higher conversion rate, or TIE."""
    if len(metrics) != 2:
        raise ValueError(f"Expected exactly 2 variants, got {len(metrics)}")

    a, b = sorted(metrics.values(), key=lambda m: m.variant.value)
    if a.conversion_rate == b.conversion_rate:
        return TIE
    best, other = (a, b) if a.conversion_rate > b.conversion_rate else (b, a)
    return Winner(
        variant=best.variant,
        margin_pp=round(best.conversion_rate - other.conversion_rate, 1),
    )


def summarize_event_kinds(events: Iterable[Event | Mapping[str, Any]]) -> list[dict]:
    """Event count and distinct sessions per event type, in type order."""
    counts = {k: 0 for k in EventType}
    sessions: dict[EventType, set[str]] = {k: set() for k in EventType}
    for record in events:
        try:
            kind, _, session_id = _coerce(record)
        except SummarizeInputInvalid:
            continue
        counts[kind] += 1
        if session_id:
            sessions[kind].add(session_id)
    return [
        {"event_type": k.value, "count": counts[k], "unique_sessions": len(sessions[k])}
        for k in EventType
    ]
