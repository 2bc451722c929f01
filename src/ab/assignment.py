"""Sticky random A/B assignment of the bookstore brand.

A visitor has no stable id before signing up, so assignment cannot be
hash-based. Instead the first visit draws a uniform bucket in [0.0, 1.0),
maps it onto the experiment's cumulative arm weights, and writes the
result to client-local storage. Every later visit reads it back.

This guarantees:
- Consistency: a client keeps its variant until its storage is cleared
- Recovery: a corrupted stored value is replaced, never surfaced
- No coordination: nothing outside the client is consulted
"""

import logging
import random

from src.ab.experiment import BRAND_EXPERIMENT, Experiment, Variant
from src.ab.storage import KeyValueStore
from src.collector.errors import AssignmentCorrupted
from src.config import VARIANT_STORAGE_KEY

logger = logging.getLogger(__name__)


def draw_variant(experiment: Experiment, rng: random.Random | None = None) -> Variant:
    """Draw a variant at random according to the arm weights."""
    bucket = (rng or random).random()

    cumulative = 0.0
    for arm in experiment.arms:
        cumulative += arm.weight
        if bucket < cumulative:
            return arm.variant

    # Fallback to last arm (handles floating point edge cases)
    return experiment.arms[-1].variant


def _read_assignment(storage: KeyValueStore, experiment: Experiment) -> Variant | None:
    stored = storage.get(VARIANT_STORAGE_KEY)
    if stored is None:
        return None
    try:
        variant = Variant(stored)
    except ValueError:
        raise AssignmentCorrupted(stored) from None
    if variant not in {a.variant for a in experiment.arms}:
        raise AssignmentCorrupted(stored)
    return variant


def get_or_assign_variant(
    storage: KeyValueStore,
    experiment: Experiment = BRAND_EXPERIMENT,
    rng: random.Random | None = None,
    override: Variant | str | None = None,
) -> Variant:
    """Return the client's variant, assigning and persisting one if needed.

    ``override`` forces a variant for QA without reading or writing
    storage, so a forced session never leaks into the real assignment.
    """
    if override is not None:
        return Variant(override)

    try:
        existing = _read_assignment(storage, experiment)
    except AssignmentCorrupted as exc:
        logger.warning("%s; reassigning", exc)
        existing = None

    if existing is not None:
        return existing

    variant = draw_variant(experiment, rng)
    storage.set(VARIANT_STORAGE_KEY, variant.value)
    logger.debug("Assigned brand variant %s (%s)", variant.value, experiment.experiment_id)
    return variant
