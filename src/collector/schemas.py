"""Event schema for landing-page interactions.

Events are append-only: once recorded they are never updated.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.ab.experiment import Variant


class EventType(str, Enum):
    HERO_SHOP_CLICK = "hero_shop_click"
    HERO_VISIT_CLICK = "hero_visit_click"
    PRE_ORDER_SUBMISSION = "pre_order_submission"
    CONTACT_SUBMISSION = "contact_submission"
    NAV_CLICK = "nav_click"


# Initial engagement with a primary call-to-action
ENTRY_EVENTS = frozenset({EventType.HERO_SHOP_CLICK, EventType.HERO_VISIT_CLICK})
# Completed desired outcomes
CONVERSION_EVENTS = frozenset({EventType.PRE_ORDER_SUBMISSION, EventType.CONTACT_SUBMISSION})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    event_type: EventType
    brand_variant: Variant
    session_id: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
