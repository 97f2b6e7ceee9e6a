"""Tests for compliance reference data (nexus, filing, calendar, programs)."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from tax_navigator.compliance import (
    ComplianceChecker,
    EventType,
    FilingFrequency,
    NexusLogic,
    NexusThreshold,
    NexusType,
    check_nexus,
    days_until,
    generate_compliance_calendar,
    supported_states,
    upcoming_events,
)


@pytest.fixture
def ny() -> ComplianceChecker:
    return ComplianceChecker("NY")


@pytest.fixture
def al() -> ComplianceChecker:
    return ComplianceChecker("AL")


def _threshold(logic: NexusLogic, transactions: int | None = 100) -> NexusThreshold:
    return NexusThreshold(
        type=NexusType.ECONOMIC,
        sales_threshold=Decimal("500000"),
        transaction_threshold=transactions,
        logic=logic,
        lookback_period="Previous four quarters",
        description="test threshold",
    )


# ── Nexus ────────────────────────────────────────────────────────────


def test_ny_requires_both_tests(ny: ComplianceChecker):
    result = ny.check_nexus(Decimal("600000"), 50)
    assert result.sales_met is True
    assert result.transactions_met is False
    assert result.has_nexus is False


def test_ny_nexus_when_both_met(ny: ComplianceChecker):
    assert ny.check_nexus(Decimal("600000"), 150).has_nexus is True


def test_or_logic_needs_one_test():
    result = check_nexus(_threshold(NexusLogic.OR), Decimal("600000"), 50)
    assert result.has_nexus is True


def test_thresholds_are_strict(ny: ComplianceChecker):
    result = ny.check_nexus(Decimal("500000"), 100)
    assert result.sales_met is False
    assert result.transactions_met is False


def test_al_sales_only(al: ComplianceChecker):
    assert al.nexus_threshold.transaction_threshold is None
    assert al.check_nexus(Decimal("250000"), 10000).has_nexus is False
    assert al.check_nexus(Decimal("250000.01"), 0).has_nexus is True


def test_nexus_percentages(ny: ComplianceChecker):
    result = ny.check_nexus(Decimal("250000"), 50)
    assert result.sales_pct_of_threshold == pytest.approx(50.0)
    assert result.transaction_pct_of_threshold == pytest.approx(50.0)


def test_no_transaction_percentage_without_threshold(al: ComplianceChecker):
    assert al.check_nexus(Decimal("1000"), 5).transaction_pct_of_threshold is None


# ── Filing frequency ─────────────────────────────────────────────────


@pytest.mark.parametrize(
    "sales,frequency",
    [("0", FilingFrequency.ANNUAL), ("2999.99", FilingFrequency.ANNUAL),
     ("3000", FilingFrequency.QUARTERLY), ("45000", FilingFrequency.QUARTERLY),
     ("300000", FilingFrequency.MONTHLY), ("5000000", FilingFrequency.MONTHLY)],
)
def test_ny_filing_bands(ny: ComplianceChecker, sales, frequency):
    assert ny.filing_requirement(Decimal(sales)).frequency == frequency


def test_ny_forms(ny: ComplianceChecker):
    forms = {r.frequency: r.form for r in ny.requirements}
    assert forms == {
        FilingFrequency.MONTHLY: "ST-809",
        FilingFrequency.QUARTERLY: "ST-100",
        FilingFrequency.ANNUAL: "ST-101",
    }


def test_al_liability_gap_has_no_band(al: ComplianceChecker):
    assert al.filing_requirement(Decimal("5")).frequency == FilingFrequency.ANNUAL
    assert al.filing_requirement(Decimal("100")) is None
    assert al.filing_requirement(Decimal("2400")).frequency == FilingFrequency.MONTHLY


# ── Calendar ─────────────────────────────────────────────────────────


def test_ny_calendar_contents():
    events = generate_compliance_calendar(2025, "NY")
    assert len(events) == 18
    quarterly = [e.due_date for e in events if e.id.startswith("quarterly-")]
    assert quarterly == [
        date(2025, 6, 20), date(2025, 9, 20), date(2025, 12, 20), date(2026, 3, 20),
    ]


def test_al_calendar_contents():
    events = generate_compliance_calendar(2025, "AL")
    assert len(events) == 20
    types = {e.type for e in events}
    assert EventType.RATE_CHANGE in types
    assert EventType.REGISTRATION in types


@pytest.mark.parametrize("state", ["NY", "AL"])
def test_calendar_sorted_and_idempotent(state):
    first = generate_compliance_calendar(2025, state)
    second = generate_compliance_calendar(2025, state)
    assert first == second
    dates = [e.due_date for e in first]
    assert dates == sorted(dates)
    assert len({e.id for e in first}) == len(first)


def test_december_monthly_due_next_year():
    events = {e.id: e for e in generate_compliance_calendar(2025, "NY")}
    assert events["monthly-filing-2025-12"].due_date == date(2026, 1, 20)
    assert events["monthly-filing-2025-1"].due_date == date(2025, 2, 20)


def test_calendar_unknown_state():
    with pytest.raises(ValueError):
        generate_compliance_calendar(2025, "ZZ")


def test_days_until():
    assert days_until(date(2025, 1, 20), date(2025, 1, 1)) == 19
    assert days_until(date(2025, 1, 1), date(2025, 1, 20)) == -19


def test_upcoming_window_inclusive():
    events = generate_compliance_calendar(2025, "NY")
    as_of = date(2025, 5, 20)
    upcoming = upcoming_events(events, as_of, window_days=31, limit=50)
    assert all(as_of <= e.due_date <= as_of + timedelta(days=31) for e in upcoming)
    assert date(2025, 6, 20) in {e.due_date for e in upcoming}


def test_upcoming_includes_prior_year_filings(ny: ComplianceChecker):
    upcoming = ny.upcoming(as_of=date(2026, 1, 5), window_days=30, limit=10)
    ids = {e.id for e in upcoming}
    assert "monthly-filing-2025-12" in ids
    assert [e.due_date for e in upcoming] == sorted(e.due_date for e in upcoming)


def test_upcoming_limit(ny: ComplianceChecker):
    assert len(ny.upcoming(as_of=date(2025, 1, 1), window_days=365, limit=3)) == 3


# ── State programs ───────────────────────────────────────────────────


def test_al_filing_discount(al: ComplianceChecker):
    discount = al.filing_discount
    assert discount.discount_for(Decimal("50")) == Decimal("2.50")
    assert discount.discount_for(Decimal("1000")) == Decimal("23.00")
    assert discount.discount_for(Decimal("100000")) == Decimal("400.00")
    assert discount.discount_for(Decimal("0")) == 0


def test_al_seller_use_tax(al: ComplianceChecker):
    ssut = al.seller_use_tax
    assert ssut.tax_for(Decimal("1000")) == Decimal("80.00")
    assert ssut.collection_discount(Decimal("1000")) == Decimal("20.00")
    assert ssut.collection_discount(Decimal("1000000")) == Decimal("8000.00")


def test_ny_has_no_programs(ny: ComplianceChecker):
    assert ny.filing_discount is None
    assert ny.seller_use_tax is None


def test_checker_unknown_state():
    with pytest.raises(ValueError):
        ComplianceChecker("ZZ")
    assert supported_states() == ["AL", "NY"]
