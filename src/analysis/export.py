"""CLI entrypoint: export the dashboard report as JSON.

Usage:
    python -m src.analysis.export
    python -m src.analysis.export --db data/analytics.duckdb --out src/dashboard/data.json
"""

import argparse
import json
from pathlib import Path

from src.analysis.dashboard import build_report
from src.config import AppConfig, configure_logging
from src.warehouse.db import Warehouse


def main(args: list[str] | None = None) -> None:
    config = AppConfig.from_env()
    parser = argparse.ArgumentParser(description="Export the analytics dashboard report")
    parser.add_argument("--db", type=str, default=config.db_path, help="Database path")
    parser.add_argument("--out", type=str, default=config.report_path, help="Output JSON path")
    parser.add_argument("--log-level", type=str, default=config.log_level)
    opts = parser.parse_args(args)
    configure_logging(opts.log_level)

    warehouse = Warehouse.open(opts.db)
    try:
        report = build_report(warehouse)
    finally:
        warehouse.close()

    out = Path(opts.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(report, indent=2))

    exp = report["experiment"]
    print(f"Experiment: {exp['name']} ({exp['experiment_id']})")
    for v in exp["variants"]:
        print(
            f"  {v['display_name']}: {v['entry_count']} entries, "
            f"{v['conversion_count']} conversions, {v['conversion_rate']:.1f}%"
        )
    winner = exp["winner"]
    if winner["tie"]:
        print("Result: tie")
    else:
        print(f"Result: {winner['variant']} leads by {winner['margin_pp']:.1f} pp")
    print(f"Report written to {out}")


if __name__ == "__main__":
    main()
