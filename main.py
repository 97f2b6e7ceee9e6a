#!/usr/bin/env python3
"""
Sales Tax Navigator - Entry Point

Jurisdiction rates, item taxability, filing and nexus reference, and a
research assistant for state sales tax.

Usage:
    python main.py rates --zip 10001
    python main.py calculate --amount 250 --code NY-WESTCHESTER
    python main.py item --rule clothing-under-110 --price 85 --zip 10001
    python main.py rules --search software
    python main.py calendar --upcoming
    python main.py nexus --sales 600000 --transactions 50
    python main.py filing --sales 45000
    python main.py bulletins --category Exemptions
    python main.py ask --state AL "Are groceries taxable?"
"""

from tax_navigator.cli import main

if __name__ == "__main__":
    main()
