"""Tests for the admin dashboard report."""

import json

import pytest

from ci.validate_analytics import validate
from src.analysis.dashboard import PermissionDenied, build_dashboard, build_report, is_admin
from src.analysis.export import main as export_main
from src.collector.schemas import EventType
from src.simulator.config import SimulationConfig
from src.simulator.engine import generate_events
from src.storefront.actions import save_book, submit_pre_order
from src.warehouse.db import Warehouse


def _order(title):
    return {"name": "Reader", "email": "reader@example.com", "book_title": title}


class TestAccess:
    def test_admin_allowed(self, warehouse):
        warehouse.add_role("boss", "admin")
        assert is_admin(warehouse, "boss")
        assert build_dashboard(warehouse, "boss") == build_report(warehouse)

    @pytest.mark.parametrize("user_id", [None, "", "stranger", "mod"])
    def test_non_admin_denied(self, warehouse, user_id):
        warehouse.add_role("mod", "moderator")
        with pytest.raises(PermissionDenied):
            build_dashboard(warehouse, user_id)


class TestReport:
    def test_empty_warehouse(self, warehouse):
        report = build_report(warehouse)
        assert report["experiment"]["winner"]["tie"] is True
        assert report["store"] == {"pre_orders": 0, "saved_books": 0, "popular_books": []}
        assert all(v["conversion_rate"] == 0.0 for v in report["experiment"]["variants"])

    def test_store_and_experiment(self, warehouse, tracker):
        tracker.record_event(EventType.HERO_SHOP_CLICK, "poetic")
        tracker.record_event(EventType.HERO_VISIT_CLICK, "poetic")
        submit_pre_order(warehouse, tracker, "poetic", _order("Dune"))
        submit_pre_order(warehouse, tracker, "poetic", _order("Dune"))
        submit_pre_order(warehouse, tracker, "poetic", _order("Emma"))
        tracker.record_event(EventType.HERO_SHOP_CLICK, "modern")
        save_book(warehouse, "u1", "Dune")

        report = build_report(warehouse)
        assert report["store"]["pre_orders"] == 3
        assert report["store"]["saved_books"] == 1
        assert report["store"]["popular_books"] == [
            {"title": "Dune", "count": 2},
            {"title": "Emma", "count": 1},
        ]

        variants = {v["name"]: v for v in report["experiment"]["variants"]}
        assert variants["poetic"]["display_name"] == "Chapter & Verse"
        assert variants["poetic"]["conversion_rate"] == 150.0
        assert variants["modern"]["conversion_rate"] == 0.0
        assert report["experiment"]["winner"] == {"variant": "poetic", "margin_pp": 150.0, "tie": False}
        assert validate(report) == []

    def test_report_is_json_serializable(self, warehouse, tracker):
        tracker.record_event(EventType.NAV_CLICK, "modern", {"target": "pricing"})
        json.dumps(build_report(warehouse))


class TestExport:
    def test_simulated_report_passes_validation(self, tmp_path):
        db = str(tmp_path / "analytics.duckdb")
        out = tmp_path / "data.json"
        wh = Warehouse.open(db)
        events = generate_events(SimulationConfig(num_visitors=300, days=7, seed=5))
        wh.add_events(events)
        for e in events:
            if e.event_type == EventType.PRE_ORDER_SUBMISSION:
                wh.add_pre_order("Reader", "reader@example.com", e.metadata["book_title"])
        wh.close()

        export_main(["--db", db, "--out", str(out)])
        data = json.loads(out.read_text())
        assert validate(data) == []
        assert sum(item["count"] for item in data["event_summary"]) == len(events)
