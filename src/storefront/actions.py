"""Storefront actions behind the landing page forms.

Each action writes its row first and only then records the matching
analytics event. The row write can fail the action; the event cannot.
"""

import logging
from typing import Any, Mapping

from src.ab.experiment import Variant
from src.collector.schemas import EventType
from src.collector.tracker import EventTracker
from src.storefront.forms import ContactMessage, PreOrder, find_tier
from src.warehouse.db import Warehouse

logger = logging.getLogger(__name__)


class AuthenticationRequired(Exception):
    pass


def submit_pre_order(
    warehouse: Warehouse,
    tracker: EventTracker,
    variant: Variant,
    form: PreOrder | Mapping[str, Any],
) -> str:
    """Reserve a book. Returns the pre-order id."""
    variant = Variant(variant)
    order = form if isinstance(form, PreOrder) else PreOrder.model_validate(form)
    order_id = warehouse.add_pre_order(order.name, order.email, order.book_title)
    logger.info("Pre-order %s placed for %r", order_id, order.book_title)
    tracker.record_event(
        EventType.PRE_ORDER_SUBMISSION,
        variant,
        metadata={"book_title": order.book_title},
    )
    return order_id


def submit_contact(
    warehouse: Warehouse,
    tracker: EventTracker,
    variant: Variant,
    form: ContactMessage | Mapping[str, Any],
) -> str:
    variant = Variant(variant)
    message = form if isinstance(form, ContactMessage) else ContactMessage.model_validate(form)
    message_id = warehouse.add_contact_message(message.name, message.email, message.message)
    tracker.record_event(EventType.CONTACT_SUBMISSION, variant)
    return message_id


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise AuthenticationRequired("Please sign in to continue")
    return user_id


def save_book(warehouse: Warehouse, user_id: str | None, book_title: str) -> bool:
    """Add a title to the user's wishlist. False if it was already saved."""
    user_id = _require_user(user_id)
    title = book_title.strip()
    if not title:
        raise ValueError("Book title is required")
    return warehouse.add_saved_book(user_id, title)


def unsave_book(warehouse: Warehouse, user_id: str | None, book_title: str) -> None:
    warehouse.remove_saved_book(_require_user(user_id), book_title.strip())


def select_tier(warehouse: Warehouse, user_id: str | None, tier_name: str) -> str:
    """Record the user's subscription tier choice. Returns the selection id."""
    user_id = _require_user(user_id)
    tier = find_tier(tier_name)
    selection_id = warehouse.add_subscription(user_id, tier.name, tier.price)
    logger.info("User %s selected %s ($%s/month)", user_id, tier.name, tier.price)
    return selection_id
