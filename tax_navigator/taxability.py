"""
Taxability rule catalog.

Maps item classes to their sales tax treatment for each supported state,
with citations to the technical bulletin or department guidance that
establishes the rule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Optional


class ExemptionType(Enum):
    FULL = "full"
    PARTIAL = "partial"
    THRESHOLD = "threshold"  # exempt only below a price cutoff
    CONDITIONAL = "conditional"


@dataclass(frozen=True)
class TaxabilityRule:
    """Tax treatment of one item class."""

    id: str
    category: str
    description: str
    taxable: bool
    tb_reference: str
    tb_url: str
    subcategory: Optional[str] = None
    exemption_type: Optional[ExemptionType] = None
    threshold: Optional[Decimal] = None
    conditions: tuple[str, ...] = ()  # informational only
    notes: str = ""

    @property
    def has_threshold(self) -> bool:
        return (
            self.exemption_type == ExemptionType.THRESHOLD
            and self.threshold is not None
        )


@dataclass(frozen=True)
class TaxCategory:
    id: str
    name: str
    description: str
    rules: tuple[TaxabilityRule, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

_NY_TB = "https://www.tax.ny.gov/pubs_and_bulls/tg_bulletins/st/"

_NY_CATEGORIES: list[dict] = [
    {
        "id": "clothing",
        "name": "Clothing & Footwear",
        "description": "Apparel, footwear and accessories",
        "rules": [
            {"id": "clothing-under-110", "subcategory": "Clothing",
             "description": "Clothing and footwear sold for less than $110 per item",
             "taxable": False, "exemption": "threshold", "threshold": "110",
             "conditions": ["Price is per item, not per sale",
                            "State 4% always exempt below $110",
                            "Local tax depends on the locality's election"],
             "tb": "TB-ST-530", "url": _NY_TB + "clothing_and_footwear.htm"},
            {"id": "footwear", "subcategory": "Footwear",
             "description": "Shoes, boots and sneakers",
             "taxable": False, "exemption": "threshold", "threshold": "110",
             "conditions": ["Athletic footwear qualifies",
                            "Ski boots and cleats do not qualify"],
             "tb": "TB-ST-530", "url": _NY_TB + "clothing_and_footwear.htm"},
            {"id": "costumes", "subcategory": "Costumes",
             "description": "Costumes and formal wear rentals",
             "taxable": True,
             "tb": "TB-ST-530", "url": _NY_TB + "clothing_and_footwear.htm",
             "notes": "Rentals of clothing are taxable regardless of price."},
            {"id": "jewelry", "subcategory": "Accessories",
             "description": "Jewelry, watches and handbags",
             "taxable": True,
             "tb": "TB-ST-530", "url": _NY_TB + "clothing_and_footwear.htm",
             "notes": "Accessories are not clothing for exemption purposes."},
        ],
    },
    {
        "id": "food",
        "name": "Food & Beverages",
        "description": "Groceries, prepared food and beverages",
        "rules": [
            {"id": "groceries", "subcategory": "Food stores",
             "description": "Food and food products sold by food stores",
             "taxable": False, "exemption": "full",
             "tb": "TB-ST-283", "url": _NY_TB + "food_sold_by_food_stores.htm"},
            {"id": "prepared-food", "subcategory": "Restaurants",
             "description": "Meals and prepared food sold by restaurants",
             "taxable": True,
             "tb": "TB-ST-806", "url": _NY_TB + "food_sold_by_restaurants.htm"},
            {"id": "soft-drinks", "subcategory": "Beverages",
             "description": "Soft drinks and sweetened beverages",
             "taxable": True,
             "conditions": ["Juice with less than 70% natural fruit juice"],
             "tb": "TB-ST-765", "url": _NY_TB + "soft_drinks.htm"},
            {"id": "candy", "subcategory": "Confectionery",
             "description": "Candy and confectionery",
             "taxable": True,
             "tb": "TB-ST-103", "url": _NY_TB + "candy_and_confectionery.htm"},
        ],
    },
    {
        "id": "digital",
        "name": "Digital Products",
        "description": "Software and digital goods",
        "rules": [
            {"id": "prewritten-software", "subcategory": "Software",
             "description": "Pre-written (canned) software, including SaaS",
             "taxable": True,
             "tb": "TB-ST-128", "url": _NY_TB + "computer_software.htm"},
            {"id": "custom-software", "subcategory": "Software",
             "description": "Custom software written for a single customer",
             "taxable": False, "exemption": "conditional",
             "conditions": ["Must be designed for the exclusive use of one customer"],
             "tb": "TB-ST-128", "url": _NY_TB + "computer_software.htm"},
            {"id": "digital-downloads", "subcategory": "Digital media",
             "description": "Digital music, movies and e-books",
             "taxable": False, "exemption": "full",
             "tb": "TB-ST-128", "url": _NY_TB + "computer_software.htm"},
        ],
    },
    {
        "id": "medical",
        "name": "Medical & Health",
        "description": "Drugs, medicines and medical equipment",
        "rules": [
            {"id": "prescription-drugs", "subcategory": "Drugs",
             "description": "Prescription drugs and medicines",
             "taxable": False, "exemption": "full",
             "tb": "TB-ST-193", "url": _NY_TB + "drugs_and_medicines.htm"},
            {"id": "otc-drugs", "subcategory": "Drugs",
             "description": "Over-the-counter drugs and medicines",
             "taxable": False, "exemption": "full",
             "tb": "TB-ST-193", "url": _NY_TB + "drugs_and_medicines.htm"},
            {"id": "cosmetics", "subcategory": "Personal care",
             "description": "Cosmetics and toiletries",
             "taxable": True,
             "tb": "TB-ST-193", "url": _NY_TB + "drugs_and_medicines.htm"},
        ],
    },
    {
        "id": "services",
        "name": "Services",
        "description": "Repair, maintenance and professional services",
        "rules": [
            {"id": "repair-services", "subcategory": "Repair",
             "description": "Repair and maintenance of tangible personal property",
             "taxable": True,
             "tb": "TB-ST-875", "url": _NY_TB + "taxable_and_exempt_services.htm"},
            {"id": "professional-services", "subcategory": "Professional",
             "description": "Legal, accounting and medical services",
             "taxable": False, "exemption": "full",
             "tb": "TB-ST-875", "url": _NY_TB + "taxable_and_exempt_services.htm"},
            {"id": "manufacturing-equipment", "subcategory": "Manufacturing",
             "description": "Machinery and equipment used directly in production",
             "taxable": False, "exemption": "conditional",
             "conditions": ["Used predominantly (over 50%) in production",
                            "Exemption certificate ST-121 required"],
             "tb": "TB-ST-176", "url": _NY_TB + "manufacturing_equipment.htm"},
            {"id": "resale", "subcategory": "Resale",
             "description": "Purchases for resale",
             "taxable": False, "exemption": "conditional",
             "conditions": ["Resale certificate ST-120 on file"],
             "tb": "TB-ST-740", "url": _NY_TB + "resale_exemption.htm"},
        ],
    },
]

_AL_GUIDANCE = "https://www.revenue.alabama.gov/"

_AL_CATEGORIES: list[dict] = [
    {
        "id": "food",
        "name": "Food & Groceries",
        "description": "Grocery food and prepared meals",
        "rules": [
            {"id": "groceries", "subcategory": "SNAP-eligible food",
             "description": "Food eligible for SNAP purchase",
             "taxable": True, "exemption": "partial",
             "conditions": ["Reduced 2% state rate from September 1, 2025",
                            "Local rates still apply"],
             "tb": "ADOR-ST-005",
             "url": _AL_GUIDANCE + "notice-state-sales-and-use-tax-rate-reduced-on-food-beginning-september-1-2025/"},
            {"id": "prepared-food", "subcategory": "Restaurants",
             "description": "Restaurant meals and prepared food",
             "taxable": True,
             "tb": "ADOR-ST-001", "url": _AL_GUIDANCE + "sales-use/sales-tax/"},
        ],
    },
    {
        "id": "clothing",
        "name": "Clothing",
        "description": "Apparel and footwear",
        "rules": [
            {"id": "clothing", "subcategory": "Apparel",
             "description": "Clothing and footwear",
             "taxable": True, "exemption": "conditional",
             "conditions": ["Exempt during the back-to-school holiday if under $100 per item"],
             "tb": "ADOR-ST-011", "url": _AL_GUIDANCE},
        ],
    },
    {
        "id": "digital",
        "name": "Digital Products",
        "description": "Software and digital goods",
        "rules": [
            {"id": "prewritten-software", "subcategory": "Software",
             "description": "Canned software, downloaded or on physical media",
             "taxable": True,
             "tb": "ADOR-ST-006",
             "url": _AL_GUIDANCE + "ador-issues-guidance-on-taxability-of-computer-software/"},
            {"id": "saas", "subcategory": "Software",
             "description": "Software as a service",
             "taxable": False, "exemption": "full",
             "tb": "ADOR-ST-006",
             "url": _AL_GUIDANCE + "ador-issues-guidance-on-taxability-of-computer-software/"},
        ],
    },
    {
        "id": "medical",
        "name": "Medical",
        "description": "Drugs and medical supplies",
        "rules": [
            {"id": "prescription-drugs", "subcategory": "Drugs",
             "description": "Prescription drugs",
             "taxable": False, "exemption": "full",
             "tb": "ADOR-ST-008", "url": _AL_GUIDANCE + "tax-incentives/sales-use-tax/"},
        ],
    },
    {
        "id": "services",
        "name": "Labor & Services",
        "description": "Labor, repair and installation charges",
        "rules": [
            {"id": "repair-labor", "subcategory": "Repair",
             "description": "Separately stated repair labor",
             "taxable": False, "exemption": "conditional",
             "conditions": ["Labor must be separately stated on the invoice"],
             "tb": "ADOR-ST-007",
             "url": "https://www.law.cornell.edu/regulations/alabama/Ala-Admin-Code-r-810-6-1-.84"},
            {"id": "fabrication-labor", "subcategory": "Fabrication",
             "description": "Fabrication labor on items sold",
             "taxable": True,
             "tb": "ADOR-ST-007",
             "url": "https://www.law.cornell.edu/regulations/alabama/Ala-Admin-Code-r-810-6-1-.84"},
        ],
    },
]

_CATALOG_DATA: dict[str, list[dict]] = {
    "NY": _NY_CATEGORIES,
    "AL": _AL_CATEGORIES,
}


def _build_rule(category_id: str, data: dict) -> TaxabilityRule:
    exemption = data.get("exemption")
    threshold = data.get("threshold")
    return TaxabilityRule(
        id=data["id"],
        category=category_id,
        subcategory=data.get("subcategory"),
        description=data["description"],
        taxable=data["taxable"],
        exemption_type=ExemptionType(exemption) if exemption else None,
        threshold=Decimal(threshold) if threshold is not None else None,
        conditions=tuple(data.get("conditions", ())),
        tb_reference=data["tb"],
        tb_url=data["url"],
        notes=data.get("notes", ""),
    )


class TaxabilityCatalog:
    """Queryable taxability rules for a single state."""

    def __init__(self, state_code: str) -> None:
        self.state_code = state_code.upper()
        data = _CATALOG_DATA.get(self.state_code)
        if data is None:
            raise ValueError(f"Unknown state code: {state_code}")
        self._categories: dict[str, TaxCategory] = {}
        self._rules: dict[str, TaxabilityRule] = {}
        for cat in data:
            rules = tuple(_build_rule(cat["id"], r) for r in cat["rules"])
            self._categories[cat["id"]] = TaxCategory(
                id=cat["id"],
                name=cat["name"],
                description=cat["description"],
                rules=rules,
            )
            for rule in rules:
                self._rules[rule.id] = rule

    def categories(self) -> list[TaxCategory]:
        return list(self._categories.values())

    def get_category(self, category_id: str) -> Optional[TaxCategory]:
        return self._categories.get(category_id)

    def get_rule(self, rule_id: str) -> Optional[TaxabilityRule]:
        return self._rules.get(rule_id)

    def rules(self) -> list[TaxabilityRule]:
        return list(self._rules.values())

    def threshold_rules(self) -> list[TaxabilityRule]:
        return [r for r in self._rules.values() if r.has_threshold]

    def search(self, query: str) -> list[TaxabilityRule]:
        """
        Case-insensitive substring search across rule text.

        Queries shorter than two characters match nothing.
        """
        q = query.strip().lower()
        if len(q) < 2:
            return []
        results: list[TaxabilityRule] = []
        for rule in self._rules.values():
            haystack = [
                rule.description,
                rule.category,
                rule.subcategory or "",
                rule.notes,
                *rule.conditions,
            ]
            if any(q in text.lower() for text in haystack):
                results.append(rule)
        return results


def get_catalog(state_code: str) -> TaxabilityCatalog:
    return _load_catalog(state_code.upper())


@lru_cache(maxsize=None)
def _load_catalog(state_code: str) -> TaxabilityCatalog:
    return TaxabilityCatalog(state_code)
