"""Tests for the TaxCalculator engine."""

from decimal import Decimal

import pytest

from tax_navigator.calculator import (
    TaxCalculator,
    calculate_tax,
    coerce_price,
    round_tax,
)
from tax_navigator.jurisdictions import JurisdictionRegistry, get_registry
from tax_navigator.taxability import TaxabilityCatalog, get_catalog


@pytest.fixture
def registry() -> JurisdictionRegistry:
    return get_registry("NY")


@pytest.fixture
def catalog() -> TaxabilityCatalog:
    return get_catalog("NY")


@pytest.fixture
def calc(registry: JurisdictionRegistry) -> TaxCalculator:
    return TaxCalculator(registry)


# ── Component calculation ────────────────────────────────────────────


def test_manhattan_components(registry):
    result = calculate_tax(registry.get("NY-NYC-MANHATTAN"), Decimal("100"))
    assert result.state_amount == Decimal("4")
    assert result.local_amount == Decimal("4.5")
    assert result.mctd_amount == Decimal("0.375")
    assert result.total_tax == Decimal("8.875")
    assert result.effective_rate == 8.875
    assert result.total_with_tax == Decimal("108.875")


def test_total_equals_sum_of_components(registry):
    for j in registry.all():
        r = calculate_tax(j, Decimal("123.45"))
        assert r.total_tax == r.state_amount + r.local_amount + r.mctd_amount


def test_zero_subtotal(registry):
    result = calculate_tax(registry.get("NY-ERIE"), Decimal("0"))
    assert result.total_tax == 0
    assert result.effective_rate == 8.75


def test_calculate_for_zip_matched(calc: TaxCalculator):
    result, matched = calc.calculate_for_zip("10502", "100")
    assert matched is True
    assert result.jurisdiction.code == "NY-WESTCHESTER"
    assert result.total_tax == Decimal("8.375")


def test_calculate_for_zip_falls_back_to_state(calc: TaxCalculator):
    result, matched = calc.calculate_for_zip("00000", "100")
    assert matched is False
    assert result.total_tax == Decimal("4")


def test_calculate_for_unknown_code(calc: TaxCalculator):
    with pytest.raises(ValueError, match="Unknown jurisdiction"):
        calc.calculate_for_code("NY-ATLANTIS", "100")


# ── Price coercion and rounding ──────────────────────────────────────


@pytest.mark.parametrize(
    "raw,expected",
    [("85.50", Decimal("85.50")), (" 12 ", Decimal("12")), ("abc", Decimal("0")),
     ("-5", Decimal("0")), ("NaN", Decimal("0")), ("Infinity", Decimal("0")),
     (None, Decimal("0")), (40, Decimal("40"))],
)
def test_coerce_price(raw, expected):
    assert coerce_price(raw) == expected


def test_round_tax_half_up():
    assert round_tax(Decimal("8.375")) == Decimal("8.38")
    assert round_tax(Decimal("4.374")) == Decimal("4.37")


# ── Threshold exemptions ─────────────────────────────────────────────


def test_clothing_below_threshold_nyc_fully_exempt(calc, registry, catalog):
    rule = catalog.get_rule("clothing-under-110")
    result = calc.calculate_item(rule, Decimal("100"), registry.get("NY-NYC-MANHATTAN"))
    assert result.taxable is False
    assert result.threshold_exempt is True
    assert result.total_tax == 0
    assert result.calculation.effective_rate == 0.0
    assert result.exempt_components == ["state", "local", "mctd"]


def test_clothing_below_threshold_westchester_local_applies(calc, registry, catalog):
    rule = catalog.get_rule("clothing-under-110")
    result = calc.calculate_item(rule, Decimal("100"), registry.get("NY-WESTCHESTER"))
    c = result.calculation
    assert result.taxable is True
    assert c.state_amount == 0
    assert c.local_amount == Decimal("4.0")
    assert c.mctd_amount == Decimal("0.375")
    assert c.total_tax == Decimal("4.375")
    assert c.effective_rate == pytest.approx(4.375)
    assert result.exempt_components == ["state"]


def test_clothing_at_threshold_fully_taxable(calc, registry, catalog):
    rule = catalog.get_rule("clothing-under-110")
    result = calc.calculate_item(rule, Decimal("110"), registry.get("NY-NYC-MANHATTAN"))
    assert result.taxable is True
    assert result.threshold_exempt is False
    assert result.total_tax == Decimal("110") * Decimal("0.08875")
    assert result.calculation.effective_rate == 8.875


def test_clothing_just_below_threshold(calc, registry, catalog):
    rule = catalog.get_rule("footwear")
    result = calc.calculate_item(rule, Decimal("109.99"), registry.get("NY-CHAUTAUQUA"))
    assert result.taxable is False
    assert result.total_tax == 0


def test_below_threshold_zero_price(calc, registry, catalog):
    rule = catalog.get_rule("clothing-under-110")
    result = calc.calculate_item(rule, Decimal("0"), registry.get("NY-ALBANY"))
    assert result.total_tax == 0
    assert result.calculation.effective_rate == 0.0


def test_state_record_below_threshold_not_taxable(calc, registry, catalog):
    # No local rate to fall back on once the state portion is exempt.
    rule = catalog.get_rule("clothing-under-110")
    result = calc.calculate_item(rule, Decimal("50"), registry.state_jurisdiction())
    assert result.taxable is False
    assert result.total_tax == 0


# ── Non-threshold rules ──────────────────────────────────────────────


def test_exempt_rule_zeroes_all_components(calc, registry, catalog):
    rule = catalog.get_rule("groceries")
    result = calc.calculate_item(rule, Decimal("75"), registry.get("NY-ERIE"))
    assert result.taxable is False
    assert result.total_tax == 0
    assert result.calculation.effective_rate == 0.0
    assert "TB-ST-283" in result.notes[0]


def test_taxable_rule_full_rate(calc, registry, catalog):
    rule = catalog.get_rule("prewritten-software")
    result = calc.calculate_item(rule, Decimal("200"), registry.get("NY-ERIE"))
    assert result.taxable is True
    assert result.total_tax == Decimal("17.5")


def test_is_taxable(calc, registry, catalog):
    westchester = registry.get("NY-WESTCHESTER")
    assert calc.is_taxable(catalog.get_rule("candy"), Decimal("2"), westchester)
    assert not calc.is_taxable(catalog.get_rule("otc-drugs"), Decimal("2"), westchester)
