"""
Item tax calculator flow.

A linear selection state machine: category -> item -> [price] ->
jurisdiction -> result. The price step is only visited for items whose
rule has a price threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from tax_navigator.calculator import ItemTaxResult, Number, TaxCalculator, coerce_price
from tax_navigator.jurisdictions import Jurisdiction
from tax_navigator.taxability import TaxabilityRule, TaxCategory

DEFAULT_PRICE = Decimal("100")


class WizardError(ValueError):
    """Raised when an action is not valid for the current step."""


class WizardStep(Enum):
    CATEGORY = "category"
    ITEM = "item"
    PRICE = "price"
    JURISDICTION = "jurisdiction"
    RESULT = "result"


@dataclass
class Selection:
    category: Optional[TaxCategory] = None
    item: Optional[TaxabilityRule] = None
    price: Decimal = DEFAULT_PRICE
    jurisdiction: Optional[Jurisdiction] = None

    @property
    def needs_price(self) -> bool:
        return self.item is not None and self.item.has_threshold


_BACK: dict[WizardStep, Callable[[Selection], WizardStep]] = {
    WizardStep.CATEGORY: lambda s: WizardStep.CATEGORY,
    WizardStep.ITEM: lambda s: WizardStep.CATEGORY,
    WizardStep.PRICE: lambda s: WizardStep.ITEM,
    WizardStep.JURISDICTION: lambda s: (
        WizardStep.PRICE if s.needs_price else WizardStep.ITEM
    ),
    WizardStep.RESULT: lambda s: WizardStep.JURISDICTION,
}


class CalculatorWizard:
    """Collects selections step by step and hands them to the engine."""

    def __init__(self, calculator: Optional[TaxCalculator] = None) -> None:
        self.calculator = calculator or TaxCalculator()
        self.step = WizardStep.CATEGORY
        self.selection = Selection()

    def _require(self, step: WizardStep) -> None:
        if self.step != step:
            raise WizardError(
                f"Cannot perform {step.value} selection on the {self.step.value} step"
            )

    @property
    def total_steps(self) -> int:
        return 5 if self.selection.needs_price else 4

    @property
    def step_number(self) -> int:
        order = [WizardStep.CATEGORY, WizardStep.ITEM]
        if self.selection.needs_price:
            order.append(WizardStep.PRICE)
        order += [WizardStep.JURISDICTION, WizardStep.RESULT]
        if self.step not in order:
            return 3  # price step
        return order.index(self.step) + 1

    def select_category(self, category: TaxCategory) -> WizardStep:
        self._require(WizardStep.CATEGORY)
        self.selection.category = category
        self.selection.item = None
        self.step = WizardStep.ITEM
        return self.step

    def select_item(self, rule: TaxabilityRule) -> WizardStep:
        self._require(WizardStep.ITEM)
        self.selection.item = rule
        self.step = WizardStep.PRICE if rule.has_threshold else WizardStep.JURISDICTION
        return self.step

    def submit_price(self, value: Number) -> WizardStep:
        """Accept user-entered price text; unparseable input becomes 0."""
        self._require(WizardStep.PRICE)
        self.selection.price = coerce_price(value)
        self.step = WizardStep.JURISDICTION
        return self.step

    def select_jurisdiction(
        self, jurisdiction: Jurisdiction, price: Optional[Number] = None
    ) -> WizardStep:
        self._require(WizardStep.JURISDICTION)
        if price is not None:
            self.selection.price = coerce_price(price)
        self.selection.jurisdiction = jurisdiction
        self.step = WizardStep.RESULT
        return self.step

    def back(self) -> WizardStep:
        self.step = _BACK[self.step](self.selection)
        return self.step

    def reset(self) -> None:
        self.step = WizardStep.CATEGORY
        self.selection = Selection()

    def result(self) -> ItemTaxResult:
        self._require(WizardStep.RESULT)
        sel = self.selection
        if sel.item is None or sel.jurisdiction is None:
            raise WizardError("Item and jurisdiction must be selected first")
        return self.calculator.calculate_item(sel.item, sel.price, sel.jurisdiction)
