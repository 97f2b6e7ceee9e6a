#!/usr/bin/env python3
"""
Quick Start Example
===================

Looks up a jurisdiction by ZIP code, computes tax on a purchase, and
shows how the $110 clothing threshold plays out in two NY counties.

Usage:
    python examples/quick_start.py
"""

from decimal import Decimal

from tax_navigator.calculator import TaxCalculator, round_tax
from tax_navigator.jurisdictions import get_registry
from tax_navigator.taxability import get_catalog


def main() -> None:
    registry = get_registry("NY")
    calculator = TaxCalculator(registry)

    # $500 purchase in Manhattan
    calc, matched = calculator.calculate_for_zip("10001", Decimal("500.00"))
    j = calc.jurisdiction
    print(f"Jurisdiction:   {j.name} ({j.code}){'' if matched else ' [state fallback]'}")
    print(f"State Tax:      ${round_tax(calc.state_amount):.2f}")
    print(f"Local Tax:      ${round_tax(calc.local_amount):.2f}")
    print(f"MCTD:           ${round_tax(calc.mctd_amount):.2f}")
    print(f"Total Tax:      ${round_tax(calc.total_tax):.2f}")
    print(f"Effective Rate: {calc.effective_rate:.3f}%")

    # $100 shirt: exempt in NYC, local tax still due in Westchester
    print("\n--- Clothing under $110 ---")
    rule = get_catalog("NY").get_rule("clothing-under-110")
    for code in ("NY-NYC-MANHATTAN", "NY-WESTCHESTER"):
        result = calculator.calculate_item(rule, Decimal("100"), registry.get(code))
        status = "taxable" if result.taxable else "exempt"
        print(f"{registry.get(code).name:<22} {status:<8} ${round_tax(result.total_tax):.2f}")
        for note in result.notes:
            print(f"    {note}")


if __name__ == "__main__":
    main()
