"""CI validation: verify the exported dashboard report is complete and sane.

This script is the final gate in CI. It reads the exported report JSON
and asserts structural and logical invariants. If anything is wrong, it
exits non-zero and fails the build.

Usage:
    python ci/validate_analytics.py
    python ci/validate_analytics.py --data src/dashboard/data.json
"""

import argparse
import json
import sys
from pathlib import Path

REQUIRED_TOP_KEYS = {"event_summary", "experiment", "store"}
EVENT_TYPES = {
    "hero_shop_click",
    "hero_visit_click",
    "pre_order_submission",
    "contact_submission",
    "nav_click",
}
VARIANTS = {"poetic", "modern"}
VARIANT_FIELDS = {
    "name",
    "display_name",
    "session_count",
    "entry_count",
    "conversion_count",
    "conversion_rate",
}


def validate(data: dict) -> list[str]:
    """Return a list of validation errors (empty = pass)."""
    errors = []

    # --- Top-level structure ---
    for key in sorted(REQUIRED_TOP_KEYS):
        if key not in data:
            errors.append(f"Missing top-level key: {key}")

    if errors:
        return errors  # Can't continue without structure

    # --- Event summary ---
    summary = data["event_summary"]
    if not summary:
        errors.append("event_summary is empty: no events were exported")
    else:
        seen = {item["event_type"] for item in summary}
        for required in sorted(EVENT_TYPES - seen):
            errors.append(f"event_summary missing event type: {required}")
        for item in summary:
            if item["event_type"] not in EVENT_TYPES:
                errors.append(f"event_summary has unknown event type: {item['event_type']}")
            if item["count"] < 0:
                errors.append(f"event_summary {item['event_type']} has negative count")
            if item["unique_sessions"] > item["count"]:
                errors.append(
                    f"event_summary {item['event_type']} has more sessions than events"
                )
        if sum(item["count"] for item in summary) == 0:
            errors.append("event_summary has no events: nothing was recorded")

    # --- Experiment ---
    exp = data["experiment"]
    exp_id = exp.get("experiment_id", "UNKNOWN")
    variants = exp.get("variants") or []
    names = {v.get("name") for v in variants}
    if names != VARIANTS:
        errors.append(f"Experiment {exp_id} variants {sorted(map(str, names))} != {sorted(VARIANTS)}")

    rates = {}
    for v in variants:
        missing = VARIANT_FIELDS - set(v.keys())
        if missing:
            errors.append(f"Experiment {exp_id} variant {v.get('name')} missing fields: {sorted(missing)}")
            continue
        if v["conversion_rate"] < 0:
            errors.append(f"Experiment {exp_id} variant {v['name']} has negative rate")
        if v["entry_count"] == 0 and v["conversion_rate"] != 0:
            errors.append(f"Experiment {exp_id} variant {v['name']} has a rate without entries")
        rates[v["name"]] = v["conversion_rate"]

    winner = exp.get("winner")
    if winner is None:
        errors.append(f"Experiment {exp_id} missing winner")
    elif len(rates) == 2:
        low, high = sorted(rates.values())
        if winner.get("tie"):
            if low != high:
                errors.append(f"Experiment {exp_id} reports a tie between different rates")
        else:
            if rates.get(winner.get("variant")) != high or low == high:
                errors.append(f"Experiment {exp_id} winner {winner.get('variant')} is not the best rate")
            elif abs(winner.get("margin_pp", 0) - round(high - low, 1)) > 0.05:
                errors.append(f"Experiment {exp_id} winner margin does not match rates")

    # --- Store ---
    store = data["store"]
    for key in ("pre_orders", "saved_books"):
        if store.get(key, -1) < 0:
            errors.append(f"store.{key} missing or negative")
    popular = store.get("popular_books", [])
    if len(popular) > 5:
        errors.append(f"store.popular_books has {len(popular)} entries, expected at most 5")
    counts = [b["count"] for b in popular]
    if counts != sorted(counts, reverse=True):
        errors.append("store.popular_books not sorted by count")
    if sum(counts) > store.get("pre_orders", 0):
        errors.append("store.popular_books counts exceed total pre-orders")

    return errors


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate exported analytics report")
    parser.add_argument(
        "--data",
        default="src/dashboard/data.json",
        help="Path to exported report JSON",
    )
    opts = parser.parse_args()

    path = Path(opts.data)
    if not path.exists():
        print(f"FAIL: {opts.data} not found. Run 'python -m src.analysis.export' first.")
        sys.exit(1)

    data = json.loads(path.read_text())
    errors = validate(data)

    if errors:
        print(f"FAIL: {len(errors)} validation error(s):")
        for e in errors:
            print(f"  - {e}")
        sys.exit(1)

    total_events = sum(item["count"] for item in data["event_summary"])
    exp = data["experiment"]
    winner = exp["winner"]

    print("PASS: Analytics integrity validated")
    print(f"  Events: {total_events:,}")
    print(f"  Pre-orders: {data['store']['pre_orders']:,}")
    for v in exp["variants"]:
        print(f"  {v['display_name']}: {v['conversion_rate']:.1f}%")
    if winner["tie"]:
        print(f"  Experiment {exp['experiment_id']}: tie")
    else:
        print(f"  Experiment {exp['experiment_id']}: {winner['variant']} +{winner['margin_pp']:.1f} pp")


if __name__ == "__main__":
    main()
