"""Tests for the JurisdictionRegistry and ZIP resolution."""

import logging
from datetime import date

import pytest

from tax_navigator.jurisdictions import (
    Jurisdiction,
    JurisdictionLevel,
    JurisdictionRegistry,
    get_registry,
    is_valid_zip_code,
    supported_states,
)


@pytest.fixture
def ny() -> JurisdictionRegistry:
    return get_registry("NY")


@pytest.fixture
def al() -> JurisdictionRegistry:
    return get_registry("AL")


def _j(
    code: str,
    state: float = 4.0,
    local: float = 0.0,
    mctd: float = 0.0,
    combined: float | None = None,
    zips: tuple[str, ...] = (),
    level: JurisdictionLevel = JurisdictionLevel.COUNTY,
) -> Jurisdiction:
    return Jurisdiction(
        code=code,
        name=code.title(),
        level=level,
        state_rate=state,
        local_rate=local,
        mctd_rate=mctd,
        combined_rate=state + local + mctd if combined is None else combined,
        zip_codes=zips,
    )


# ── Bundled data ─────────────────────────────────────────────────────


def test_supported_states():
    assert supported_states() == ["AL", "NY"]


def test_every_combined_rate_equals_components(ny, al):
    for registry in (ny, al):
        for j in registry.all():
            assert j.combined_rate == pytest.approx(j.component_sum, abs=1e-9)


def test_state_record_present(ny, al):
    assert ny.state_jurisdiction().code == "NY"
    assert ny.state_jurisdiction().combined_rate == 4.0
    assert al.state_jurisdiction().level == JurisdictionLevel.STATE


def test_nyc_boroughs_share_rate(ny):
    boroughs = [j for j in ny.all() if j.code.startswith("NY-NYC-")]
    assert len(boroughs) == 5
    for j in boroughs:
        assert j.combined_rate == 8.875
        assert j.mctd_rate == 0.375
        assert j.in_mctd is True
        assert j.clothing_exemption is True


def test_westchester_rates(ny):
    j = ny.get("NY-WESTCHESTER")
    assert (j.state_rate, j.local_rate, j.mctd_rate) == (4.0, 4.0, 0.375)
    assert j.clothing_exemption is False


def test_get_is_case_insensitive(ny):
    assert ny.get("ny-westchester") is ny.get("NY-WESTCHESTER")
    assert ny.get("NY-NOWHERE") is None


def test_contains_and_len(ny):
    assert "NY-ERIE" in ny
    assert "TX" not in ny
    assert len(ny) == len(ny.all())


def test_default_effective_date(ny):
    assert ny.get("NY-ERIE").effective_date == date(2024, 1, 1)


def test_unknown_state_raises():
    with pytest.raises(ValueError, match="Unknown state"):
        JurisdictionRegistry.for_state("ZZ")


# ── ZIP resolution ───────────────────────────────────────────────────


def test_resolve_manhattan_zip(ny):
    res = ny.resolve_zip("10001")
    assert res.matched is True
    assert res.jurisdiction.code == "NY-NYC-MANHATTAN"


def test_resolve_zip_plus_four(ny):
    assert ny.lookup_zip("10502-1234").code == "NY-WESTCHESTER"


def test_unknown_zip_falls_back_to_state(ny):
    res = ny.resolve_zip("99999")
    assert res.matched is False
    assert res.jurisdiction.code == "NY"
    assert res.jurisdiction.combined_rate == 4.0


def test_hoover_owns_shared_zips(al):
    assert al.lookup_zip("35226").code == "AL-HOOVER"
    assert al.lookup_zip("35244").code == "AL-HOOVER"
    assert al.lookup_zip("35203").code == "AL-BIRMINGHAM"


def test_zip_codes_returns_copy(ny):
    index = ny.zip_codes()
    index["00000"] = "NY"
    assert "00000" not in ny.zip_codes()


@pytest.mark.parametrize(
    "zip_code,valid",
    [("10001", True), ("10001-1234", True), ("1000", False),
     ("abcde", False), ("100011", False), ("", False)],
)
def test_is_valid_zip_code(zip_code, valid):
    assert is_valid_zip_code(zip_code) is valid


# ── Queries ──────────────────────────────────────────────────────────


def test_counties_and_cities(al):
    assert all(j.level == JurisdictionLevel.COUNTY for j in al.counties())
    assert "AL-ARAB" in {j.code for j in al.cities()}


def test_children(al):
    codes = {j.code for j in al.children("AL-JEFFERSON")}
    assert codes == {"AL-BIRMINGHAM", "AL-HOOVER"}


def test_mctd_jurisdictions(ny):
    mctd = ny.mctd_jurisdictions()
    assert len(mctd) == 12
    assert all(j.mctd_rate == 0.375 for j in mctd)


def test_highest_rate(al):
    top = al.highest_rate(1)
    assert top[0].code == "AL-ARAB"
    assert top[0].combined_rate == 12.5


# ── Validation on load ───────────────────────────────────────────────


def test_duplicate_code_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        JurisdictionRegistry("XX", [_j("XX"), _j("XX")])


def test_negative_rate_rejected():
    with pytest.raises(ValueError, match="Negative"):
        JurisdictionRegistry("XX", [_j("XX", local=-1.0)])


def test_combined_mismatch_rejected():
    with pytest.raises(ValueError, match="does not equal"):
        JurisdictionRegistry("XX", [_j("XX", local=1.0, combined=6.0)])


def test_missing_state_record_rejected():
    with pytest.raises(ValueError, match="No state-level"):
        JurisdictionRegistry("XX", [_j("XX-A")])


def test_zip_override_last_wins_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="tax_navigator.jurisdictions"):
        registry = JurisdictionRegistry(
            "XX",
            [
                _j("XX", level=JurisdictionLevel.STATE),
                _j("XX-A", local=1.0, zips=("00001",)),
                _j("XX-B", local=2.0, zips=("00001",)),
            ],
        )
    assert registry.lookup_zip("00001").code == "XX-B"
    assert "00001" in caplog.text


def test_get_registry_ignores_case():
    assert get_registry("ny") is get_registry("NY")
