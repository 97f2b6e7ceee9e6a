"""
Sales Tax Navigator
===================

Jurisdiction rate lookup, item taxability and compliance reference for
state sales tax.

Modules:
    jurisdictions   - Jurisdiction rate registry with ZIP code resolution
    taxability      - Item taxability rules grouped by category
    calculator      - Component-wise tax and threshold exemption engine
    compliance      - Filing frequencies, nexus checks, compliance calendar
    bulletins       - Technical bulletin catalog
    states          - Bundled state profiles
    wizard          - Step-by-step item tax calculator flow
    research_client - Client for the research assistant backend
    settings        - Environment-driven configuration
    cli             - Command-line interface
"""

__version__ = "1.0.0"

from tax_navigator.jurisdictions import JurisdictionRegistry, get_registry
from tax_navigator.taxability import TaxabilityCatalog, get_catalog
from tax_navigator.calculator import TaxCalculator
from tax_navigator.compliance import ComplianceChecker
from tax_navigator.bulletins import BulletinCatalog
from tax_navigator.wizard import CalculatorWizard
from tax_navigator.research_client import ResearchClient

__all__ = [
    "JurisdictionRegistry",
    "get_registry",
    "TaxabilityCatalog",
    "get_catalog",
    "TaxCalculator",
    "ComplianceChecker",
    "BulletinCatalog",
    "CalculatorWizard",
    "ResearchClient",
]
