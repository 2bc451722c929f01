"""Admin dashboard report.

Access control lives here, not in the aggregation functions: only a
user holding the admin role may build the dashboard.
"""

import logging

from src.ab.experiment import BRAND_EXPERIMENT, display_name
from src.analysis.metrics import Winner, pick_winner, summarize, summarize_event_kinds
from src.warehouse.db import Warehouse

logger = logging.getLogger(__name__)

POPULAR_BOOKS_LIMIT = 5


class PermissionDenied(Exception):
    pass


def is_admin(warehouse: Warehouse, user_id: str | None) -> bool:
    if not user_id:
        return False
    return "admin" in warehouse.roles_for(user_id)


def build_report(warehouse: Warehouse) -> dict:
    """Assemble the JSON-serializable dashboard report."""
    events = warehouse.select_all("analytics_events")
    metrics = summarize(events)
    result = pick_winner(metrics)

    if isinstance(result, Winner):
        winner = {"variant": result.variant.value, "margin_pp": result.margin_pp, "tie": False}
    else:
        winner = {"variant": None, "margin_pp": 0.0, "tie": True}

    variants = []
    for arm in BRAND_EXPERIMENT.arms:
        m = metrics[arm.variant]
        variants.append({
            "name": arm.variant.value,
            "display_name": display_name(arm.variant),
            "session_count": m.session_count,
            "entry_count": m.entry_count,
            "conversion_count": m.conversion_count,
            "conversion_rate": m.conversion_rate,
        })

    popular = warehouse.popular_books(POPULAR_BOOKS_LIMIT)
    return {
        "event_summary": summarize_event_kinds(events),
        "experiment": {
            "experiment_id": BRAND_EXPERIMENT.experiment_id,
            "name": BRAND_EXPERIMENT.name,
            "variants": variants,
            "winner": winner,
        },
        "store": {
            "pre_orders": warehouse.count("pre_orders"),
            "saved_books": warehouse.count("saved_books"),
            "popular_books": [{"title": t, "count": n} for t, n in popular],
        },
    }


def build_dashboard(warehouse: Warehouse, user_id: str | None) -> dict:
    if not is_admin(warehouse, user_id):
        logger.warning("Dashboard access denied for user %s", user_id)
        raise PermissionDenied("Admin role required")
    return build_report(warehouse)
