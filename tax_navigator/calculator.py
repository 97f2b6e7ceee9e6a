"""
Sales tax resolution engine.

Handles:
- Component-wise tax computation (state, local, MCTD) for a jurisdiction
- Item taxability, including price-threshold exemptions whose local
  treatment depends on the jurisdiction's election
- ZIP and code based jurisdiction resolution for calculations
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from tax_navigator.jurisdictions import (
    Jurisdiction,
    JurisdictionRegistry,
    get_registry,
)
from tax_navigator.settings import get_settings
from tax_navigator.taxability import TaxabilityRule

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class RateCalculation:
    """Tax owed on a subtotal in one jurisdiction, split by component."""

    jurisdiction: Jurisdiction
    subtotal: Decimal
    state_amount: Decimal
    local_amount: Decimal
    mctd_amount: Decimal
    total_tax: Decimal
    effective_rate: float  # percentage

    @property
    def total_with_tax(self) -> Decimal:
        return self.subtotal + self.total_tax


@dataclass
class ItemTaxResult:
    """Taxability determination and amounts for one item purchase."""

    rule: TaxabilityRule
    price: Decimal
    calculation: RateCalculation
    taxable: bool
    threshold_exempt: bool = False
    exempt_components: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def total_tax(self) -> Decimal:
        return self.calculation.total_tax


def round_tax(amount: Decimal) -> Decimal:
    """Round to the nearest cent, halves away from zero."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def coerce_price(value: Optional[Number]) -> Decimal:
    """
    Sanitise user-entered prices before they reach the engine.

    Anything that is not a finite, non-negative number becomes zero.
    """
    if value is None:
        return _ZERO
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return _ZERO
    if not price.is_finite() or price < 0:
        return _ZERO
    return price


def _rate(percentage: float) -> Decimal:
    return Decimal(str(percentage)) / _HUNDRED


def calculate_tax(jurisdiction: Jurisdiction, subtotal: Number) -> RateCalculation:
    """
    Compute each rate component on ``subtotal``.

    The effective rate is the jurisdiction's published combined rate, not a
    figure derived from the computed amounts.
    """
    amount = subtotal if isinstance(subtotal, Decimal) else Decimal(str(subtotal))
    state_amount = amount * _rate(jurisdiction.state_rate)
    local_amount = amount * _rate(jurisdiction.local_rate)
    mctd_amount = amount * _rate(jurisdiction.mctd_rate)

    return RateCalculation(
        jurisdiction=jurisdiction,
        subtotal=amount,
        state_amount=state_amount,
        local_amount=local_amount,
        mctd_amount=mctd_amount,
        total_tax=state_amount + local_amount + mctd_amount,
        effective_rate=jurisdiction.combined_rate,
    )


def _exempt_calculation(jurisdiction: Jurisdiction, price: Decimal) -> RateCalculation:
    return RateCalculation(
        jurisdiction=jurisdiction,
        subtotal=price,
        state_amount=_ZERO,
        local_amount=_ZERO,
        mctd_amount=_ZERO,
        total_tax=_ZERO,
        effective_rate=0.0,
    )


class TaxCalculator:
    """
    Resolves item taxability and computes tax for a jurisdiction.

    A registry is only needed for ZIP and code lookups; item and rate
    calculations take a resolved Jurisdiction directly.
    """

    def __init__(self, registry: Optional[JurisdictionRegistry] = None) -> None:
        self.registry = registry or get_registry(get_settings().default_state)

    # ------------------------------------------------------------------
    # Jurisdiction-level calculations
    # ------------------------------------------------------------------

    def calculate_for_code(self, code: str, subtotal: Number) -> RateCalculation:
        jurisdiction = self.registry.get(code)
        if jurisdiction is None:
            raise ValueError(f"Unknown jurisdiction code: {code}")
        return calculate_tax(jurisdiction, coerce_price(subtotal))

    def calculate_for_zip(
        self, zip_code: str, subtotal: Number
    ) -> tuple[RateCalculation, bool]:
        """
        Calculate tax for the jurisdiction owning ``zip_code``.

        Returns (calculation, matched). ``matched`` is False when the ZIP
        is unknown and the state rate was used instead.
        """
        resolution = self.registry.resolve_zip(zip_code)
        return calculate_tax(resolution.jurisdiction, coerce_price(subtotal)), resolution.matched

    # ------------------------------------------------------------------
    # Item taxability
    # ------------------------------------------------------------------

    @staticmethod
    def is_below_threshold(rule: TaxabilityRule, price: Decimal) -> bool:
        return rule.has_threshold and price < rule.threshold

    def calculate_item(
        self,
        rule: TaxabilityRule,
        price: Number,
        jurisdiction: Jurisdiction,
    ) -> ItemTaxResult:
        """
        Determine taxability of an item and compute the tax owed.

        Threshold rules below their cutoff always exempt the state
        component. Local and MCTD components are exempt only where the
        jurisdiction has elected the exemption.
        """
        amount = price if isinstance(price, Decimal) else Decimal(str(price))

        if not rule.has_threshold:
            if not rule.taxable:
                return ItemTaxResult(
                    rule=rule,
                    price=amount,
                    calculation=_exempt_calculation(jurisdiction, amount),
                    taxable=False,
                    exempt_components=["state", "local", "mctd"],
                    notes=[f"Exempt under {rule.tb_reference}"],
                )
            return ItemTaxResult(
                rule=rule,
                price=amount,
                calculation=calculate_tax(jurisdiction, amount),
                taxable=True,
            )

        if amount >= rule.threshold:
            return ItemTaxResult(
                rule=rule,
                price=amount,
                calculation=calculate_tax(jurisdiction, amount),
                taxable=True,
                notes=[
                    f"Price ${amount:,.2f} is at or above the "
                    f"${rule.threshold:,.2f} threshold; fully taxable"
                ],
            )

        return self._below_threshold(rule, amount, jurisdiction)

    def _below_threshold(
        self,
        rule: TaxabilityRule,
        price: Decimal,
        jurisdiction: Jurisdiction,
    ) -> ItemTaxResult:
        local_exempt = bool(jurisdiction.clothing_exemption)
        exempt_components = ["state"]
        notes = [f"State tax exempt below ${rule.threshold:,.2f} ({rule.tb_reference})"]

        if local_exempt:
            local_amount = _ZERO
            mctd_amount = _ZERO
            exempt_components += ["local", "mctd"]
            notes.append(f"{jurisdiction.name} extends the exemption to local tax")
        else:
            local_amount = price * _rate(jurisdiction.local_rate)
            mctd_amount = price * _rate(jurisdiction.mctd_rate)
            notes.append(f"{jurisdiction.name} does not extend the exemption; local tax applies")

        total_tax = local_amount + mctd_amount
        effective = float(total_tax / price * _HUNDRED) if price > 0 else 0.0
        has_local_rate = jurisdiction.local_rate + jurisdiction.mctd_rate > 0
        taxable = not local_exempt and has_local_rate

        logger.debug(
            "Threshold rule %s below cutoff in %s: local_exempt=%s taxable=%s",
            rule.id, jurisdiction.code, local_exempt, taxable,
        )

        return ItemTaxResult(
            rule=rule,
            price=price,
            calculation=RateCalculation(
                jurisdiction=jurisdiction,
                subtotal=price,
                state_amount=_ZERO,
                local_amount=local_amount,
                mctd_amount=mctd_amount,
                total_tax=total_tax,
                effective_rate=effective,
            ),
            taxable=taxable,
            threshold_exempt=True,
            exempt_components=exempt_components,
            notes=notes,
        )

    def is_taxable(
        self,
        rule: TaxabilityRule,
        price: Number,
        jurisdiction: Jurisdiction,
    ) -> bool:
        """Whether any tax applies to the purchase."""
        return self.calculate_item(rule, price, jurisdiction).taxable
