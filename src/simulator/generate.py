"""CLI entrypoint: generate simulated visitors and load them into the warehouse.

Usage:
    python -m src.simulator.generate
    python -m src.simulator.generate --visitors 5000 --days 30
"""

import argparse
import logging

from src.ab.experiment import BRAND_EXPERIMENT
from src.collector.schemas import Event, EventType
from src.config import AppConfig, configure_logging
from src.simulator.config import SimulationConfig
from src.simulator.engine import generate_events
from src.warehouse.db import Warehouse

logger = logging.getLogger(__name__)


def _load_pre_orders(warehouse: Warehouse, events: list[Event], inserted_ids: set[str]) -> int:
    """Insert a pre-order row for every newly loaded pre-order submission."""
    loaded = 0
    for e in events:
        if e.event_type != EventType.PRE_ORDER_SUBMISSION or e.event_id not in inserted_ids:
            continue
        slug = e.session_id.replace("-", "")
        warehouse.add_pre_order(
            name=f"Visitor {slug[-6:]}",
            email=f"visitor.{slug}@example.com",
            book_title=e.metadata["book_title"],
        )
        loaded += 1
    return loaded


def main(args: list[str] | None = None) -> None:
    config = AppConfig.from_env()
    parser = argparse.ArgumentParser(description="Generate simulated bookstore visitor events")
    parser.add_argument("--visitors", type=int, default=2000, help="Number of visitors")
    parser.add_argument("--days", type=int, default=14, help="Simulation window in days")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--db", type=str, default=config.db_path, help="Database path")
    parser.add_argument("--log-level", type=str, default=config.log_level)
    opts = parser.parse_args(args)
    configure_logging(opts.log_level)

    sim = SimulationConfig(num_visitors=opts.visitors, days=opts.days, seed=opts.seed)

    print(f"Experiment: {BRAND_EXPERIMENT.name} ({BRAND_EXPERIMENT.experiment_id})")
    for arm in BRAND_EXPERIMENT.arms:
        print(f"  {arm.display_name} ({arm.variant.value}): {arm.weight:.0%} traffic")

    print(f"Generating events for {sim.num_visitors} visitors over {sim.days} days (seed={sim.seed})...")
    events = generate_events(sim)
    print(f"Generated {len(events)} events")

    by_type: dict[str, int] = {}
    for e in events:
        by_type[e.event_type.value] = by_type.get(e.event_type.value, 0) + 1
    print("Event breakdown:")
    for etype, count in sorted(by_type.items()):
        print(f"  {etype}: {count}")

    print(f"\nLoading into warehouse at {opts.db}...")
    warehouse = Warehouse.open(opts.db)
    try:
        inserted_ids = set(warehouse.add_events(events))
        # Events skipped as duplicates already have their pre-order rows
        pre_orders = _load_pre_orders(warehouse, events, inserted_ids)
    finally:
        warehouse.close()

    inserted = len(inserted_ids)
    dupes = len(events) - inserted
    logger.info("Loaded %d events (%d duplicates), %d pre-orders", inserted, dupes, pre_orders)
    print(f"Inserted: {inserted}, Duplicates skipped: {dupes}, Pre-orders: {pre_orders}")
    print("Done.")


if __name__ == "__main__":
    main()
