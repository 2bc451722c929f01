"""Simulation engine that generates realistic landing page events.

Each simulated visitor arrives with empty client storage and walks the
page:
  brand assignment -> nav click(s) -> hero click(s) -> pre-order / contact

Assignment goes through the same sticky random assignment real visitors
get, driven by the seeded RNG. Visitors on the modern brand get a
configurable uplift to pre-order probability. All randomness is seeded
for full reproducibility.
"""

import hashlib
import random
from datetime import datetime, timedelta, timezone

from src.ab.assignment import get_or_assign_variant
from src.ab.experiment import BRAND_EXPERIMENT, Variant
from src.ab.storage import MemoryStorage
from src.collector.schemas import Event, EventType
from src.collector.session import get_or_create_session_id
from src.simulator.config import SimulationConfig


def generate_events(config: SimulationConfig | None = None) -> list[Event]:
    """Generate a full set of simulated visitor events.

    Returns a list of Event objects sorted by timestamp.
    """
    if config is None:
        config = SimulationConfig()

    rng = random.Random(config.seed)
    all_events: list[Event] = []
    # End the simulation window 1 day before now to avoid future timestamps
    end_time = datetime.now(timezone.utc) - timedelta(days=1)
    start_time = end_time - timedelta(days=config.days)

    for _ in range(config.num_visitors):
        all_events.extend(_simulate_visit(start_time, config, rng))

    all_events.sort(key=lambda e: (e.created_at, e.event_id))
    return all_events


def _simulate_visit(
    start_time: datetime,
    config: SimulationConfig,
    rng: random.Random,
) -> list[Event]:
    """Simulate a single visitor's session on the landing page."""
    events: list[Event] = []
    # Random arrival time within the simulation window
    current_time = start_time + timedelta(seconds=rng.randint(0, config.days * 86400))

    # Fresh browser: nothing stored yet
    local_storage = MemoryStorage()
    session_storage = MemoryStorage()
    variant = get_or_assign_variant(local_storage, BRAND_EXPERIMENT, rng=rng)
    session_id = get_or_create_session_id(session_storage, current_time, rng)

    def emit(kind: EventType, metadata: dict | None = None) -> None:
        events.append(_make_event(kind, variant, session_id, current_time, rng, metadata))

    # --- Header navigation ---
    for _ in range(rng.randint(config.min_nav_clicks, config.max_nav_clicks)):
        current_time += timedelta(seconds=rng.randint(3, 60))
        emit(EventType.NAV_CLICK, {"target": rng.choice(config.nav_targets)})

    # --- Hero calls-to-action (entry gate) ---
    engaged = False
    if rng.random() < config.prob_shop_click:
        current_time += timedelta(seconds=rng.randint(2, 30))
        emit(EventType.HERO_SHOP_CLICK)
        engaged = True
    if rng.random() < config.prob_visit_click:
        current_time += timedelta(seconds=rng.randint(2, 30))
        emit(EventType.HERO_VISIT_CLICK)
        engaged = True

    if not engaged:
        return events  # bounced

    # --- Pre-order (conversion) ---
    # Modern brand gets an uplift to simulate a real experiment effect
    pre_order_prob = config.prob_pre_order
    if variant == Variant.MODERN:
        pre_order_prob = min(pre_order_prob + config.modern_uplift, 1.0)

    if rng.random() < pre_order_prob:
        current_time += timedelta(seconds=rng.randint(30, 600))
        title = rng.choices(config.books, weights=config.book_weights, k=1)[0]
        emit(EventType.PRE_ORDER_SUBMISSION, {"book_title": title})

    # --- Contact (conversion) ---
    if rng.random() < config.prob_contact:
        current_time += timedelta(seconds=rng.randint(30, 600))
        emit(EventType.CONTACT_SUBMISSION)

    return events


def _make_event(
    event_type: EventType,
    variant: Variant,
    session_id: str,
    timestamp: datetime,
    rng: random.Random,
    metadata: dict | None = None,
) -> Event:
    # Deterministic event ID derived from seeded RNG
    event_id = hashlib.md5(rng.randbytes(16)).hexdigest()
    return Event(
        event_id=event_id,
        event_type=event_type,
        brand_variant=variant,
        session_id=session_id,
        metadata=metadata or {},
        created_at=timestamp,
    )
