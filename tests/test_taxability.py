"""Tests for the TaxabilityCatalog."""

from decimal import Decimal

import pytest

from tax_navigator.taxability import ExemptionType, TaxabilityCatalog, get_catalog


@pytest.fixture
def ny() -> TaxabilityCatalog:
    return get_catalog("NY")


# ── Catalog structure ────────────────────────────────────────────────


def test_ny_categories(ny: TaxabilityCatalog):
    ids = [c.id for c in ny.categories()]
    assert ids == ["clothing", "food", "digital", "medical", "services"]


def test_rules_reference_their_category(ny: TaxabilityCatalog):
    for category in ny.categories():
        for rule in category.rules:
            assert rule.category == category.id
            assert rule.tb_reference


def test_clothing_threshold_rule(ny: TaxabilityCatalog):
    rule = ny.get_rule("clothing-under-110")
    assert rule.exemption_type == ExemptionType.THRESHOLD
    assert rule.threshold == Decimal("110")
    assert rule.has_threshold is True
    assert rule.taxable is False


def test_threshold_rules(ny: TaxabilityCatalog):
    ids = {r.id for r in ny.threshold_rules()}
    assert ids == {"clothing-under-110", "footwear"}


def test_full_exemption_has_no_threshold(ny: TaxabilityCatalog):
    rule = ny.get_rule("groceries")
    assert rule.exemption_type == ExemptionType.FULL
    assert rule.has_threshold is False


def test_unknown_ids(ny: TaxabilityCatalog):
    assert ny.get_rule("spaceships") is None
    assert ny.get_category("spaceships") is None


def test_alabama_has_no_threshold_rules():
    assert get_catalog("AL").threshold_rules() == []


def test_unknown_state_raises():
    with pytest.raises(ValueError):
        TaxabilityCatalog("ZZ")


# ── Search ───────────────────────────────────────────────────────────


def test_search_is_case_insensitive(ny: TaxabilityCatalog):
    ids = {r.id for r in ny.search("SOFTWARE")}
    assert {"prewritten-software", "custom-software"} <= ids


def test_search_short_query_matches_nothing(ny: TaxabilityCatalog):
    assert ny.search("s") == []
    assert ny.search("  ") == []


def test_search_no_match(ny: TaxabilityCatalog):
    assert ny.search("submarine") == []


def test_get_catalog_ignores_case():
    assert get_catalog("al") is get_catalog("AL")
