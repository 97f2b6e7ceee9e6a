"""
Sales tax compliance reference data.

Covers:
- Filing frequency bands by annual sales
- Economic nexus thresholds and determination
- Compliance calendar generation (filing due dates, reminders, holidays)
- State programs: timely filing discounts, simplified seller use tax
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from tax_navigator.calculator import round_tax

_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class FilingFrequency(Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class NexusType(Enum):
    ECONOMIC = "economic"  # revenue/transaction threshold
    PHYSICAL = "physical"  # office, warehouse, employees


class NexusLogic(Enum):
    AND = "AND"
    OR = "OR"


class EventType(Enum):
    FILING = "filing"
    PAYMENT = "payment"
    REGISTRATION = "registration"
    RATE_CHANGE = "rate_change"


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class FilingRequirement:
    """A filing frequency that applies to a band of annual sales [min, max)."""

    id: str
    frequency: FilingFrequency
    min_sales: Decimal
    form: str
    due_day: int
    electronic_required: bool
    description: str
    max_sales: Optional[Decimal] = None  # None = unbounded

    def applies_to(self, annual_sales: Decimal) -> bool:
        if annual_sales < self.min_sales:
            return False
        return self.max_sales is None or annual_sales < self.max_sales


@dataclass(frozen=True)
class NexusThreshold:
    """
    Economic nexus threshold for a state.

    ``logic`` combines the sales and transaction tests. A transaction
    threshold of None means the state only measures sales.
    """

    type: NexusType
    sales_threshold: Decimal
    transaction_threshold: Optional[int]
    logic: NexusLogic
    lookback_period: str
    description: str


@dataclass
class NexusResult:
    """Outcome of a nexus check."""

    sales: Decimal
    transactions: int
    sales_met: bool
    transactions_met: bool
    has_nexus: bool
    threshold: NexusThreshold
    sales_pct_of_threshold: float = 0.0
    transaction_pct_of_threshold: Optional[float] = None


@dataclass(frozen=True)
class ComplianceEvent:
    """A dated compliance obligation or reminder."""

    id: str
    title: str
    type: EventType
    due_date: date
    jurisdiction: str
    description: str
    priority: Priority
    form: Optional[str] = None


@dataclass(frozen=True)
class FilingDiscount:
    """Discount for timely filed returns: tiered percentage, monthly cap."""

    first_tier_amount: Decimal
    first_tier_pct: Decimal
    second_tier_pct: Decimal
    max_monthly: Decimal
    notes: str = ""

    def discount_for(self, tax_due: Decimal) -> Decimal:
        if tax_due <= 0:
            return Decimal("0")
        first = min(tax_due, self.first_tier_amount)
        rest = max(tax_due - self.first_tier_amount, Decimal("0"))
        discount = first * self.first_tier_pct / 100 + rest * self.second_tier_pct / 100
        return round_tax(min(discount, self.max_monthly))


@dataclass(frozen=True)
class SellerUseTaxProgram:
    """Flat-rate use tax program for remote sellers."""

    name: str
    rate: Decimal  # percentage covering state and local tax
    discount_pct: Decimal
    max_monthly_discount: Decimal
    effective_date: date
    legislative_reference: str
    eligibility: tuple[str, ...] = ()
    benefits: tuple[str, ...] = ()

    def tax_for(self, amount: Decimal) -> Decimal:
        return round_tax(amount * self.rate / 100)

    def collection_discount(self, tax_collected: Decimal) -> Decimal:
        if tax_collected <= 0:
            return Decimal("0")
        discount = tax_collected * self.discount_pct / 100
        return round_tax(min(discount, self.max_monthly_discount))


# -----------------------------------------------------------------------
# Reference data
# -----------------------------------------------------------------------

_FILING_REQUIREMENTS: dict[str, list[dict]] = {
    "NY": [
        {"id": "monthly", "frequency": "monthly", "min": 300000, "max": None,
         "form": "ST-809", "due_day": 20, "electronic": True,
         "description": "Vendors with annual taxable sales over $300,000 must "
                        "file monthly using Form ST-809."},
        {"id": "quarterly", "frequency": "quarterly", "min": 3000, "max": 300000,
         "form": "ST-100", "due_day": 20, "electronic": False,
         "description": "Vendors with annual taxable sales between $3,000 and "
                        "$300,000 file quarterly using Form ST-100."},
        {"id": "annual", "frequency": "annual", "min": 0, "max": 3000,
         "form": "ST-101", "due_day": 20, "electronic": False,
         "description": "Vendors with annual taxable sales under $3,000 may "
                        "file annually using Form ST-101."},
    ],
    # Alabama bands are measured on annual state tax liability.
    "AL": [
        {"id": "monthly", "frequency": "monthly", "min": 2400, "max": None,
         "form": "My Alabama Taxes (MAT)", "due_day": 20, "electronic": True,
         "description": "Default filing frequency. Returns due by the 20th of "
                        "the month following the reporting period."},
        {"id": "quarterly", "frequency": "quarterly", "min": 200, "max": 2400,
         "form": "My Alabama Taxes (MAT)", "due_day": 20, "electronic": True,
         "description": "Vendors with less than $2,400 annual state tax "
                        "liability may elect quarterly filing. Must request "
                        "by February 20."},
        {"id": "annual", "frequency": "annual", "min": 0, "max": 10,
         "form": "My Alabama Taxes (MAT)", "due_day": 20, "electronic": True,
         "description": "Vendors with less than $10 annual tax liability may "
                        "file annually. Return due January 20."},
    ],
}

_NEXUS_THRESHOLDS: dict[str, dict] = {
    "NY": {"sales": 500000, "transactions": 100, "logic": "AND",
           "lookback": "Previous four quarters",
           "description": "Remote sellers must collect NY sales tax if they "
                          "have more than $500,000 in NY sales AND more than "
                          "100 transactions to NY customers in the previous "
                          "four quarters."},
    "AL": {"sales": 250000, "transactions": None, "logic": "OR",
           "lookback": "Current or previous calendar year",
           "description": "Remote sellers with more than $250,000 in retail "
                          "sales into Alabama must collect sales/use tax. "
                          "There is no transaction count threshold."},
}

_FILING_DISCOUNTS: dict[str, FilingDiscount] = {
    "AL": FilingDiscount(
        first_tier_amount=Decimal("100"),
        first_tier_pct=Decimal("5"),
        second_tier_pct=Decimal("2"),
        max_monthly=Decimal("400"),
        notes="Available for timely filed and paid returns",
    ),
}

_SELLER_USE_TAX_PROGRAMS: dict[str, SellerUseTaxProgram] = {
    "AL": SellerUseTaxProgram(
        name="Simplified Sellers Use Tax (SSUT)",
        rate=Decimal("8.0"),
        discount_pct=Decimal("2.0"),
        max_monthly_discount=Decimal("8000"),
        effective_date=date(2015, 10, 1),
        legislative_reference="Act 2015-448",
        eligibility=(
            "Seller has no physical presence in Alabama",
            "Sells tangible personal property or services into Alabama",
            "Must register through My Alabama Taxes before collecting",
        ),
        benefits=(
            "Single flat rate of 8% covers all state and local taxes",
            "No need to track individual local rates",
            "Purchaser relieved of use tax obligation",
        ),
    ),
}


def _build_requirement(data: dict) -> FilingRequirement:
    return FilingRequirement(
        id=data["id"],
        frequency=FilingFrequency(data["frequency"]),
        min_sales=Decimal(str(data["min"])),
        max_sales=Decimal(str(data["max"])) if data["max"] is not None else None,
        form=data["form"],
        due_day=data["due_day"],
        electronic_required=data["electronic"],
        description=data["description"],
    )


def _build_threshold(data: dict) -> NexusThreshold:
    return NexusThreshold(
        type=NexusType.ECONOMIC,
        sales_threshold=Decimal(str(data["sales"])),
        transaction_threshold=data["transactions"],
        logic=NexusLogic(data["logic"]),
        lookback_period=data["lookback"],
        description=data["description"],
    )


# -----------------------------------------------------------------------
# Nexus and filing frequency
# -----------------------------------------------------------------------


def check_nexus(
    threshold: NexusThreshold, sales: Decimal, transactions: int
) -> NexusResult:
    """
    Decide economic nexus from observed sales and transaction counts.

    Both tests use strict "greater than": sales exactly at the threshold
    do not meet it.
    """
    sales_met = sales > threshold.sales_threshold
    transactions_met = (
        threshold.transaction_threshold is not None
        and transactions > threshold.transaction_threshold
    )
    if threshold.logic == NexusLogic.AND:
        has_nexus = sales_met and transactions_met
    else:
        has_nexus = sales_met or transactions_met

    sales_pct = (
        float(sales / threshold.sales_threshold) * 100
        if threshold.sales_threshold > 0
        else 0.0
    )
    txn_pct: Optional[float] = None
    if threshold.transaction_threshold:
        txn_pct = (transactions / threshold.transaction_threshold) * 100

    return NexusResult(
        sales=sales,
        transactions=transactions,
        sales_met=sales_met,
        transactions_met=transactions_met,
        has_nexus=has_nexus,
        threshold=threshold,
        sales_pct_of_threshold=sales_pct,
        transaction_pct_of_threshold=txn_pct,
    )


def determine_filing_requirement(
    requirements: list[FilingRequirement], annual_sales: Decimal
) -> Optional[FilingRequirement]:
    """Return the first requirement whose band contains ``annual_sales``."""
    for req in requirements:
        if req.applies_to(annual_sales):
            return req
    return None


# -----------------------------------------------------------------------
# Compliance calendar
# -----------------------------------------------------------------------


def _month_after(year: int, month: int, day: int) -> date:
    """The given day in the month following (year, month)."""
    if month == 12:
        return date(year + 1, 1, day)
    return date(year, month + 1, day)


def _monthly_filings(
    year: int, state: str, form: str, title: str, description: str, priority: Priority
) -> list[ComplianceEvent]:
    events: list[ComplianceEvent] = []
    for index, month in enumerate(_MONTHS):
        events.append(
            ComplianceEvent(
                id=f"monthly-filing-{year}-{index + 1}",
                title=title.format(month=month, year=year),
                type=EventType.FILING,
                due_date=_month_after(year, index + 1, 20),
                jurisdiction=state,
                form=form,
                description=description.format(month=month, year=year),
                priority=priority,
            )
        )
    return events


def _ny_calendar(year: int) -> list[ComplianceEvent]:
    # NY sales tax quarters run March-May, June-August, September-November
    # and December-February.
    quarters = [
        ("Q1", date(year, 6, 20), "Mar 1 - May 31"),
        ("Q2", date(year, 9, 20), "Jun 1 - Aug 31"),
        ("Q3", date(year, 12, 20), "Sep 1 - Nov 30"),
        ("Q4", date(year + 1, 3, 20), "Dec 1 - Feb 28/29"),
    ]
    events = [
        ComplianceEvent(
            id=f"quarterly-filing-{year}-{i + 1}",
            title=f"{q} {year} Sales Tax Return Due",
            type=EventType.FILING,
            due_date=due,
            jurisdiction="NY",
            form="ST-100",
            description=f"Quarterly sales tax return for {period}. File Form ST-100.",
            priority=Priority.HIGH,
        )
        for i, (q, due, period) in enumerate(quarters)
    ]

    events += _monthly_filings(
        year,
        "NY",
        form="ST-809",
        title="{month} {year} Monthly Sales Tax Due",
        description=(
            "Monthly sales tax return for {month} {year}. Required for "
            "vendors with annual sales over $300,000."
        ),
        priority=Priority.MEDIUM,
    )

    events.append(
        ComplianceEvent(
            id=f"annual-filing-{year}",
            title=f"{year} Annual Sales Tax Return Due",
            type=EventType.FILING,
            due_date=date(year + 1, 3, 20),
            jurisdiction="NY",
            form="ST-101",
            description=(
                f"Annual sales tax return for the period ending February "
                f"{year + 1}. For vendors with annual sales under $3,000."
            ),
            priority=Priority.HIGH,
        )
    )
    events.append(
        ComplianceEvent(
            id=f"registration-reminder-{year}",
            title="Certificate of Authority Renewal Check",
            type=EventType.REGISTRATION,
            due_date=date(year, 1, 1),
            jurisdiction="NY",
            description=(
                "Verify your Certificate of Authority is current and update "
                "business information if needed."
            ),
            priority=Priority.MEDIUM,
        )
    )
    return events


def _al_calendar(year: int) -> list[ComplianceEvent]:
    events = _monthly_filings(
        year,
        "AL",
        form="My Alabama Taxes",
        title="{month} {year} Sales Tax Due",
        description=(
            "Monthly sales tax return for {month} {year}. File and pay via "
            "the My Alabama Taxes portal."
        ),
        priority=Priority.HIGH,
    )

    quarters = [
        ("Q1", date(year, 4, 20), "Jan - Mar"),
        ("Q2", date(year, 7, 20), "Apr - Jun"),
        ("Q3", date(year, 10, 20), "Jul - Sep"),
        ("Q4", date(year + 1, 1, 20), "Oct - Dec"),
    ]
    for i, (q, due, period) in enumerate(quarters):
        events.append(
            ComplianceEvent(
                id=f"quarterly-filing-{year}-{i + 1}",
                title=f"{q} {year} Quarterly Sales Tax Due",
                type=EventType.FILING,
                due_date=due,
                jurisdiction="AL",
                form="My Alabama Taxes",
                description=(
                    f"Quarterly sales tax return for {period} {year}. For "
                    f"vendors with <$2,400 annual liability who elected "
                    f"quarterly filing."
                ),
                priority=Priority.MEDIUM,
            )
        )

    events += [
        ComplianceEvent(
            id=f"annual-filing-{year}",
            title=f"{year} Annual Sales Tax Due",
            type=EventType.FILING,
            due_date=date(year + 1, 1, 20),
            jurisdiction="AL",
            form="My Alabama Taxes",
            description=(
                f"Annual sales tax return for {year}. For vendors with <$10 "
                f"annual liability who elected annual filing."
            ),
            priority=Priority.MEDIUM,
        ),
        ComplianceEvent(
            id=f"tax-holiday-{year}",
            title="Back-to-School Tax-Free Weekend",
            type=EventType.RATE_CHANGE,
            due_date=date(year, 7, 19),
            jurisdiction="AL",
            description=(
                "Annual tax-free weekend for school supplies, clothing "
                "(<$100) and computers (<$750). Check ADOR for exact dates."
            ),
            priority=Priority.MEDIUM,
        ),
        ComplianceEvent(
            id=f"food-rate-{year}",
            title="Food Tax Rate: 2% State Rate in Effect",
            type=EventType.RATE_CHANGE,
            due_date=date(year, 9, 1),
            jurisdiction="AL",
            description=(
                "Reduced 2% state rate applies to SNAP-eligible food items. "
                "Local rates still apply."
            ),
            priority=Priority.LOW,
        ),
        ComplianceEvent(
            id=f"filing-election-{year}",
            title="Filing Frequency Election Deadline",
            type=EventType.REGISTRATION,
            due_date=date(year, 2, 20),
            jurisdiction="AL",
            description=(
                "Deadline to request a change to quarterly or annual filing "
                "frequency for the year."
            ),
            priority=Priority.MEDIUM,
        ),
    ]
    return events


_CALENDAR_RULES: dict[str, Callable[[int], list[ComplianceEvent]]] = {
    "NY": _ny_calendar,
    "AL": _al_calendar,
}


def generate_compliance_calendar(year: int, state_code: str = "NY") -> list[ComplianceEvent]:
    """
    Build the compliance calendar for ``year``, sorted by due date.

    Same-day events keep their generation order.
    """
    rule = _CALENDAR_RULES.get(state_code.upper())
    if rule is None:
        raise ValueError(f"Unknown state code: {state_code}")
    return sorted(rule(year), key=lambda e: e.due_date)


def days_until(due_date: date, as_of: Optional[date] = None) -> int:
    return (due_date - (as_of or date.today())).days


def upcoming_events(
    events: list[ComplianceEvent],
    as_of: Optional[date] = None,
    window_days: int = 90,
    limit: int = 10,
) -> list[ComplianceEvent]:
    """Events due between ``as_of`` and ``as_of + window_days`` inclusive."""
    start = as_of or date.today()
    end = start + timedelta(days=window_days)
    return [e for e in events if start <= e.due_date <= end][:limit]


# -----------------------------------------------------------------------
# Checker
# -----------------------------------------------------------------------


class ComplianceChecker:
    """
    Filing, nexus and calendar reference for a single state.
    """

    def __init__(self, state_code: str = "NY") -> None:
        self.state_code = state_code.upper()
        if self.state_code not in _NEXUS_THRESHOLDS:
            raise ValueError(f"Unknown state code: {state_code}")
        self.requirements = [
            _build_requirement(r) for r in _FILING_REQUIREMENTS[self.state_code]
        ]
        self.nexus_threshold = _build_threshold(_NEXUS_THRESHOLDS[self.state_code])
        self.filing_discount = _FILING_DISCOUNTS.get(self.state_code)
        self.seller_use_tax = _SELLER_USE_TAX_PROGRAMS.get(self.state_code)

    def check_nexus(self, sales: Decimal, transactions: int) -> NexusResult:
        return check_nexus(self.nexus_threshold, sales, transactions)

    def filing_requirement(self, annual_sales: Decimal) -> Optional[FilingRequirement]:
        return determine_filing_requirement(self.requirements, annual_sales)

    def calendar(self, year: int) -> list[ComplianceEvent]:
        return generate_compliance_calendar(year, self.state_code)

    def upcoming(
        self,
        as_of: Optional[date] = None,
        window_days: int = 90,
        limit: int = 10,
    ) -> list[ComplianceEvent]:
        """Upcoming events drawn from the as-of year and the year before it."""
        ref = as_of or date.today()
        # Prior-year calendars carry due dates into the current year.
        events = sorted(
            self.calendar(ref.year - 1) + self.calendar(ref.year),
            key=lambda e: e.due_date,
        )
        return upcoming_events(events, ref, window_days, limit)


def supported_states() -> list[str]:
    return sorted(_NEXUS_THRESHOLDS)
