"""
Technical bulletin catalog.

Official guidance documents that the taxability rules cite, searchable by
keyword and filterable by category.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Optional


@dataclass(frozen=True)
class TechnicalBulletin:
    id: str
    number: str
    title: str
    category: str
    published_date: date
    last_updated: date
    summary: str
    url: str
    related_topics: tuple[str, ...] = ()

    def matches(self, query: str) -> bool:
        q = query.lower()
        return (
            q in self.title.lower()
            or q in self.summary.lower()
            or q in self.category.lower()
            or q in self.number.lower()
            or any(q in t.lower() for t in self.related_topics)
        )


_NY_TB = "https://www.tax.ny.gov/pubs_and_bulls/tg_bulletins/st/"
_ADOR = "https://www.revenue.alabama.gov/"

# (number, title, category, published, updated, summary, url, topics)
_BULLETIN_DATA: dict[str, list[tuple]] = {
    "NY": [
        ("TB-ST-530", "Clothing and Footwear Exemption", "Exemptions",
         "2011-03-17", "2023-09-15",
         "Explains the exemption for clothing and footwear items sold for "
         "less than $110 per item.",
         _NY_TB + "clothing_and_footwear.htm",
         ("Clothing", "Footwear", "Exemptions", "$110 threshold")),
        ("TB-ST-283", "Food Sold by Food Stores", "Food & Beverages",
         "2010-06-09", "2022-11-01",
         "Describes the exemption for food and food products sold for human "
         "consumption.",
         _NY_TB + "food_sold_by_food_stores.htm",
         ("Food", "Groceries", "Exemptions", "Prepared food")),
        ("TB-ST-806", "Food Sold by Restaurants, Taverns, and Similar "
         "Establishments", "Food & Beverages", "2010-06-09", "2023-03-20",
         "Explains sales tax on food and beverages sold at restaurants and "
         "similar establishments.",
         _NY_TB + "food_sold_by_restaurants.htm",
         ("Restaurants", "Prepared food", "Catering")),
        ("TB-ST-128", "Computer Software", "Digital Products",
         "2008-12-15", "2024-01-10",
         "Describes the taxability of pre-written and custom computer "
         "software.",
         _NY_TB + "computer_software.htm",
         ("Software", "SaaS", "Digital downloads", "Custom software")),
        ("TB-ST-193", "Drugs and Medicines", "Medical & Health",
         "2010-09-17", "2023-06-01",
         "Explains exemptions for prescription and over-the-counter drugs "
         "and medicines.",
         _NY_TB + "drugs_and_medicines.htm",
         ("Prescription drugs", "OTC medications", "Medical equipment")),
        ("TB-ST-875", "Taxable and Exempt Services", "Services",
         "2013-03-25", "2024-02-15",
         "Overview of services that are taxable versus those that are "
         "exempt in NY.",
         _NY_TB + "taxable_and_exempt_services.htm",
         ("Services", "Repair services", "Professional services")),
        ("TB-ST-765", "Soft Drinks", "Food & Beverages",
         "2010-12-09", "2022-08-10",
         "Defines soft drinks and explains their taxable status.",
         _NY_TB + "soft_drinks.htm",
         ("Soft drinks", "Beverages", "Juice")),
        ("TB-ST-103", "Candy and Confectionery", "Food & Beverages",
         "2010-09-01", "2021-05-15",
         "Explains the definition and taxability of candy and confectionery "
         "items.",
         _NY_TB + "candy_and_confectionery.htm",
         ("Candy", "Confectionery", "Snacks")),
        ("TB-ST-740", "Resale Exemption", "Exemptions",
         "2011-06-17", "2023-12-01",
         "Explains exemption certificates and purchases for resale.",
         _NY_TB + "resale_exemption.htm",
         ("Resale", "Exemption certificates", "ST-120")),
        ("TB-ST-176", "Manufacturing Equipment Exemption", "Manufacturing",
         "2010-03-01", "2024-01-20",
         "Explains the exemption for machinery and equipment used in "
         "manufacturing.",
         _NY_TB + "manufacturing_equipment.htm",
         ("Manufacturing", "Equipment", "Production")),
        ("TB-ST-860", "Sales and Use Tax Rates", "Rates",
         "2008-06-01", "2024-03-01",
         "Overview of NY state and local sales tax rates including MCTD.",
         _NY_TB + "sales_tax_rates.htm",
         ("Tax rates", "Local taxes", "MCTD")),
        ("TB-ST-220", "Economic Nexus", "Nexus",
         "2019-06-01", "2024-01-15",
         "Explains economic nexus thresholds for remote sellers in NY.",
         _NY_TB + "economic_nexus.htm",
         ("Nexus", "Remote sellers", "Economic presence")),
    ],
    "AL": [
        ("ADOR-ST-001", "Sales Tax Overview", "General",
         "2024-01-01", "2024-01-01",
         "Overview of Alabama sales tax including rates, taxable items, and "
         "exemptions.",
         _ADOR + "sales-use/sales-tax/",
         ("Sales tax", "Overview", "Rates")),
        ("ADOR-ST-002", "Sales and Use Tax Rates", "Rates",
         "2024-01-01", "2024-01-01",
         "Complete listing of state and local sales tax rates including "
         "special rates for food, auto, and manufacturing.",
         _ADOR + "sales-use/tax-rates/",
         ("Tax rates", "Local taxes", "Special rates")),
        ("ADOR-ST-003", "Simplified Sellers Use Tax (SSUT)", "Remote Sellers",
         "2015-10-01", "2024-01-01",
         "Information about the SSUT program allowing remote sellers to "
         "collect a flat 8% rate.",
         _ADOR + "sales-use/simplified-sellers-use-tax-ssut/",
         ("SSUT", "Remote sellers", "Economic nexus", "Marketplace")),
        ("ADOR-ST-004", "Economic Nexus for Remote Sellers", "Nexus",
         "2019-01-01", "2024-01-01",
         "Rules for remote sellers regarding the $250,000 sales threshold and "
         "collection requirements.",
         _ADOR + "ador-announces-sales-and-use-tax-guidance-for-online-sellers/",
         ("Economic nexus", "Remote sellers", "$250,000 threshold")),
        ("ADOR-ST-005", "Food Sales Tax Rate", "Food & Groceries",
         "2023-09-01", "2025-09-01",
         "Information about the reduced state sales tax rate on SNAP-eligible "
         "food items (2% as of Sept 2025).",
         _ADOR + "notice-state-sales-and-use-tax-rate-reduced-on-food-beginning-september-1-2025/",
         ("Food tax", "Grocery", "SNAP", "Reduced rate")),
        ("ADOR-ST-006", "Taxability of Computer Software", "Digital Products",
         "2019-01-01", "2024-01-01",
         "Guidance on taxability of software including SaaS, downloaded "
         "software, and custom software.",
         _ADOR + "ador-issues-guidance-on-taxability-of-computer-software/",
         ("Software", "SaaS", "Digital products", "Downloads")),
        ("ADOR-ST-007", "Labor and Service Charges", "Services",
         "2024-01-01", "2024-01-01",
         "Rules for taxability of labor, installation, repair, and "
         "fabrication charges.",
         "https://www.law.cornell.edu/regulations/alabama/Ala-Admin-Code-r-810-6-1-.84",
         ("Labor", "Services", "Repair", "Installation", "Fabrication")),
        ("ADOR-ST-008", "Sales Tax Exemptions", "Exemptions",
         "2024-01-01", "2024-01-01",
         "Overview of Alabama sales tax exemptions including prescription "
         "drugs, agricultural items, and government sales.",
         _ADOR + "tax-incentives/sales-use-tax/",
         ("Exemptions", "Tax-exempt", "Agriculture", "Government")),
        ("ADOR-ST-009", "ONE SPOT Filing System", "Filing",
         "2013-10-01", "2024-01-01",
         "Filing state and local taxes through the ONE SPOT system in My "
         "Alabama Taxes.",
         _ADOR + "sales-use/one-spot/",
         ("ONE SPOT", "Filing", "Local taxes", "My Alabama Taxes")),
        ("ADOR-ST-010", "Non-State Administered Local Taxes", "Local Taxes",
         "2024-01-01", "2024-01-01",
         "Information about self-administered localities and how to file "
         "and pay their taxes.",
         _ADOR + "sales-use/non-state-administered-localities/",
         ("Local taxes", "Self-administered", "Cities", "Counties")),
        ("ADOR-ST-011", "Back-to-School Sales Tax Holiday", "Tax Holidays",
         "2024-01-01", "2024-01-01",
         "Annual tax-free weekend for clothing, school supplies, and "
         "computers.",
         _ADOR,
         ("Tax holiday", "Back-to-school", "Clothing", "School supplies")),
        ("ADOR-ST-012", "Automobile Sales Tax", "Automotive",
         "2024-01-01", "2024-01-01",
         "Special 2% state rate on automobile sales plus local taxes and "
         "registration fees.",
         _ADOR + "sales-use/tax-rates/",
         ("Automobile", "Vehicle", "Motor vehicle", "2% rate")),
    ],
}


def _build_bulletin(row: tuple) -> TechnicalBulletin:
    number, title, category, published, updated, summary, url, topics = row
    return TechnicalBulletin(
        id=number.lower(),
        number=number,
        title=title,
        category=category,
        published_date=date.fromisoformat(published),
        last_updated=date.fromisoformat(updated),
        summary=summary,
        url=url,
        related_topics=topics,
    )


class BulletinCatalog:
    """Searchable technical bulletins for one state."""

    def __init__(self, state_code: str) -> None:
        self.state_code = state_code.upper()
        rows = _BULLETIN_DATA.get(self.state_code)
        if rows is None:
            raise ValueError(f"Unknown state code: {state_code}")
        self._bulletins = [_build_bulletin(r) for r in rows]

    def all(self) -> list[TechnicalBulletin]:
        return list(self._bulletins)

    def get(self, number: str) -> Optional[TechnicalBulletin]:
        key = number.lower()
        return next((b for b in self._bulletins if b.id == key), None)

    def categories(self) -> list[str]:
        return sorted({b.category for b in self._bulletins})

    def by_category(self, category: str) -> list[TechnicalBulletin]:
        return [b for b in self._bulletins if b.category == category]

    def search(self, query: str) -> list[TechnicalBulletin]:
        return [b for b in self._bulletins if b.matches(query)]

    def filter(
        self, query: str = "", category: Optional[str] = None
    ) -> list[TechnicalBulletin]:
        """
        Combine keyword search and category filter.

        The keyword only applies once it is at least two characters long.
        """
        q = query.strip()
        results = self.search(q) if len(q) >= 2 else self.all()
        if category:
            results = [b for b in results if b.category == category]
        return results


def get_bulletins(state_code: str) -> BulletinCatalog:
    return _load_bulletins(state_code.upper())


@lru_cache(maxsize=None)
def _load_bulletins(state_code: str) -> BulletinCatalog:
    return BulletinCatalog(state_code)
