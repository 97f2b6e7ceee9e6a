"""Tests for the technical bulletin catalog and state profiles."""

from datetime import date

import pytest

from tax_navigator.bulletins import BulletinCatalog, get_bulletins
from tax_navigator.states import all_state_profiles, get_state_profile


@pytest.fixture
def ny() -> BulletinCatalog:
    return get_bulletins("NY")


def test_bulletin_counts(ny: BulletinCatalog):
    assert len(ny.all()) == 12
    assert len(get_bulletins("AL").all()) == 12


def test_get_by_number(ny: BulletinCatalog):
    tb = ny.get("TB-ST-530")
    assert tb.title == "Clothing and Footwear Exemption"
    assert tb.published_date == date(2011, 3, 17)
    assert ny.get("tb-st-530") is tb


def test_categories_sorted(ny: BulletinCatalog):
    cats = ny.categories()
    assert cats == sorted(cats)
    assert "Exemptions" in cats


def test_search_matches_topics(ny: BulletinCatalog):
    numbers = {b.number for b in ny.search("saas")}
    assert numbers == {"TB-ST-128"}


def test_filter_combines_query_and_category(ny: BulletinCatalog):
    results = ny.filter("exemption", "Exemptions")
    assert results
    assert all(b.category == "Exemptions" for b in results)


def test_filter_ignores_short_query(ny: BulletinCatalog):
    assert len(ny.filter(" x ")) == 12


def test_filter_by_category_only(ny: BulletinCatalog):
    assert {b.number for b in ny.filter(category="Food & Beverages")} == {
        "TB-ST-283", "TB-ST-806", "TB-ST-765", "TB-ST-103",
    }


def test_unknown_state():
    with pytest.raises(ValueError):
        BulletinCatalog("ZZ")


def test_state_profiles():
    assert [p.code for p in all_state_profiles()] == ["AL", "NY"]
    assert get_state_profile("al").max_combined_rate == 12.5
    assert get_state_profile("TX") is None


def test_get_bulletins_ignores_case():
    assert get_bulletins("ny") is get_bulletins("NY")
