"""Tests for storefront form handling."""

import pytest
from pydantic import ValidationError

from src.ab.experiment import Variant
from src.ab.storage import MemoryStorage
from src.collector.errors import BackendUnavailable
from src.collector.tracker import EventTracker
from src.storefront.actions import (
    AuthenticationRequired,
    save_book,
    select_tier,
    submit_contact,
    submit_pre_order,
    unsave_book,
)
from src.storefront.forms import PRICING_TIERS, PreOrder, find_tier


class DownStore:
    def insert(self, event):
        raise BackendUnavailable("analytics offline")


VALID_ORDER = {"name": "  Ada Lovelace ", "email": "ada@example.com", "book_title": "Dune"}


class TestPreOrderForm:
    def test_strips_whitespace(self):
        order = PreOrder.model_validate(VALID_ORDER)
        assert order.name == "Ada Lovelace"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("name", "   "),
            ("name", "x" * 101),
            ("email", "not-an-email"),
            ("book_title", ""),
            ("book_title", "x" * 201),
        ],
    )
    def test_rejects_invalid(self, field, value):
        with pytest.raises(ValidationError):
            PreOrder.model_validate({**VALID_ORDER, field: value})


class TestSubmitPreOrder:
    def test_writes_row_and_event(self, warehouse, tracker):
        submit_pre_order(warehouse, tracker, Variant.MODERN, VALID_ORDER)
        assert warehouse.count("pre_orders") == 1
        (event,) = warehouse.select_all("analytics_events")
        assert event["event_type"] == "pre_order_submission"
        assert event["brand_variant"] == "modern"
        assert event["metadata"] == {"book_title": "Dune"}

    def test_invalid_form_writes_nothing(self, warehouse, tracker):
        with pytest.raises(ValidationError):
            submit_pre_order(warehouse, tracker, Variant.POETIC, {**VALID_ORDER, "email": "nope"})
        assert warehouse.count("pre_orders") == 0
        assert warehouse.count("analytics_events") == 0

    def test_analytics_outage_does_not_fail_order(self, warehouse):
        tracker = EventTracker(DownStore(), MemoryStorage())
        order_id = submit_pre_order(warehouse, tracker, Variant.POETIC, VALID_ORDER)
        assert order_id
        assert warehouse.count("pre_orders") == 1


class TestSubmitContact:
    def test_writes_row_and_event(self, warehouse, tracker):
        submit_contact(
            warehouse,
            tracker,
            Variant.POETIC,
            {"name": "Bo", "email": "bo@example.com", "message": "Are you open Sundays?"},
        )
        assert warehouse.count("contact_messages") == 1
        (event,) = warehouse.select_all("analytics_events")
        assert event["event_type"] == "contact_submission"

    def test_empty_message_rejected(self, warehouse, tracker):
        with pytest.raises(ValidationError):
            submit_contact(
                warehouse, tracker, Variant.POETIC,
                {"name": "Bo", "email": "bo@example.com", "message": " "},
            )


class TestSavedBooks:
    def test_save_is_idempotent(self, warehouse):
        assert save_book(warehouse, "u1", "Dune") is True
        assert save_book(warehouse, "u1", " Dune ") is False
        assert warehouse.count("saved_books") == 1

    def test_unsave(self, warehouse):
        save_book(warehouse, "u1", "Dune")
        unsave_book(warehouse, "u1", "Dune")
        assert warehouse.count("saved_books") == 0

    def test_requires_sign_in(self, warehouse):
        with pytest.raises(AuthenticationRequired):
            save_book(warehouse, None, "Dune")

    def test_blank_title_rejected(self, warehouse):
        with pytest.raises(ValueError, match="required"):
            save_book(warehouse, "u1", "  ")


class TestSelectTier:
    def test_three_tiers(self):
        assert [t.price for t in PRICING_TIERS] == [5, 19, 49]
        assert [t.name for t in PRICING_TIERS if t.highlighted] == ["Curated Book Box"]

    def test_records_selection(self, warehouse):
        select_tier(warehouse, "u1", "Curated Book Box")
        (row,) = warehouse.select_all("subscription_selections")
        assert row["tier_name"] == "Curated Book Box"
        assert row["price_monthly"] == 19

    def test_unknown_tier(self, warehouse):
        with pytest.raises(ValueError, match="Unknown pricing tier"):
            select_tier(warehouse, "u1", "Platinum")

    def test_requires_sign_in(self, warehouse):
        with pytest.raises(AuthenticationRequired):
            select_tier(warehouse, "", find_tier("Monthly PDF Digest").name)


class TestVariantCheckedFirst:
    def test_pre_order_with_unknown_variant_writes_nothing(self, warehouse, tracker):
        with pytest.raises(ValueError):
            submit_pre_order(warehouse, tracker, "classic", VALID_ORDER)
        assert warehouse.count("pre_orders") == 0
        assert warehouse.count("analytics_events") == 0

    def test_contact_with_unknown_variant_writes_nothing(self, warehouse, tracker):
        with pytest.raises(ValueError):
            submit_contact(
                warehouse, tracker, "classic",
                {"name": "Bo", "email": "bo@example.com", "message": "Hello"},
            )
        assert warehouse.count("contact_messages") == 0
