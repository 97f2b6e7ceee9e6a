"""
Sales tax jurisdiction registry.

Holds the state, county and city taxing authorities for each supported state
along with their rate components and ZIP code memberships. Rates are
percentages, e.g. 4.0 = 4%.

Sources: NY Publication 718, Alabama Department of Revenue local rate tables.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from functools import lru_cache
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

_ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
_RATE_TOLERANCE = 1e-9


class JurisdictionLevel(Enum):
    STATE = "state"
    COUNTY = "county"
    CITY = "city"
    DISTRICT = "district"


@dataclass(frozen=True)
class Jurisdiction:
    """A taxing authority and its rate components."""

    code: str
    name: str
    level: JurisdictionLevel
    state_rate: float
    local_rate: float
    mctd_rate: float
    combined_rate: float
    in_mctd: bool = False
    effective_date: date = date(2024, 1, 1)
    parent_code: Optional[str] = None
    zip_codes: tuple[str, ...] = ()
    # Whether the locality extends the state's clothing threshold exemption
    # to its own local and MCTD components.
    clothing_exemption: Optional[bool] = None

    @property
    def component_sum(self) -> float:
        return self.state_rate + self.local_rate + self.mctd_rate


@dataclass(frozen=True)
class ZipResolution:
    """Result of a ZIP lookup. ``matched`` is False when the state fallback was used."""

    zip_code: str
    jurisdiction: Jurisdiction
    matched: bool


def is_valid_zip_code(zip_code: str) -> bool:
    """Accept 5-digit ZIPs and ZIP+4."""
    return bool(_ZIP_PATTERN.match(zip_code or ""))


# ---------------------------------------------------------------------------
# Jurisdiction tables
# ---------------------------------------------------------------------------

_NY_JURISDICTIONS: list[dict] = [
    {"code": "NY", "name": "New York State", "level": "state",
     "state": 4.0, "local": 0.0, "mctd": 0.0, "combined": 4.0},
    # New York City: clothing under $110 fully exempt
    {"code": "NY-NYC-MANHATTAN", "name": "New York City - Manhattan",
     "level": "county", "parent": "NY", "state": 4.0, "local": 4.5,
     "mctd": 0.375, "combined": 8.875, "in_mctd": True, "clothing": True,
     "zips": ["10001", "10002", "10003", "10010", "10011", "10016",
              "10019", "10021", "10023", "10025", "10027", "10036"]},
    {"code": "NY-NYC-BROOKLYN", "name": "New York City - Brooklyn",
     "level": "county", "parent": "NY", "state": 4.0, "local": 4.5,
     "mctd": 0.375, "combined": 8.875, "in_mctd": True, "clothing": True,
     "zips": ["11201", "11205", "11206", "11211", "11215", "11217",
              "11220", "11222", "11230", "11238"]},
    {"code": "NY-NYC-QUEENS", "name": "New York City - Queens",
     "level": "county", "parent": "NY", "state": 4.0, "local": 4.5,
     "mctd": 0.375, "combined": 8.875, "in_mctd": True, "clothing": True,
     "zips": ["11101", "11354", "11355", "11368", "11372", "11373",
              "11375", "11385", "11432"]},
    {"code": "NY-NYC-BRONX", "name": "New York City - Bronx",
     "level": "county", "parent": "NY", "state": 4.0, "local": 4.5,
     "mctd": 0.375, "combined": 8.875, "in_mctd": True, "clothing": True,
     "zips": ["10451", "10452", "10453", "10456", "10458", "10461",
              "10462", "10467", "10468"]},
    {"code": "NY-NYC-STATEN-ISLAND", "name": "New York City - Staten Island",
     "level": "county", "parent": "NY", "state": 4.0, "local": 4.5,
     "mctd": 0.375, "combined": 8.875, "in_mctd": True, "clothing": True,
     "zips": ["10301", "10304", "10305", "10306", "10312", "10314"]},
    # MCTD counties outside the city
    {"code": "NY-NASSAU", "name": "Nassau County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.25, "mctd": 0.375,
     "combined": 8.625, "in_mctd": True, "clothing": False,
     "zips": ["11501", "11530", "11550", "11553", "11561", "11570",
              "11701", "11753", "11758", "11801"]},
    {"code": "NY-SUFFOLK", "name": "Suffolk County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.25, "mctd": 0.375,
     "combined": 8.625, "in_mctd": True, "clothing": False,
     "zips": ["11706", "11717", "11720", "11743", "11746", "11763",
              "11772", "11779", "11901", "11968"]},
    {"code": "NY-WESTCHESTER", "name": "Westchester County",
     "level": "county", "parent": "NY", "state": 4.0, "local": 4.0,
     "mctd": 0.375, "combined": 8.375, "in_mctd": True, "clothing": False,
     "zips": ["10502", "10510", "10522", "10530", "10549", "10570",
              "10583", "10591", "10598"]},
    {"code": "NY-ROCKLAND", "name": "Rockland County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.375,
     "combined": 8.375, "in_mctd": True, "clothing": False,
     "zips": ["10901", "10952", "10956", "10960", "10977", "10989"]},
    {"code": "NY-PUTNAM", "name": "Putnam County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.375,
     "combined": 8.375, "in_mctd": True, "clothing": False,
     "zips": ["10509", "10512", "10516", "10541", "10579"]},
    {"code": "NY-ORANGE", "name": "Orange County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 3.75, "mctd": 0.375,
     "combined": 8.125, "in_mctd": True, "clothing": False,
     "zips": ["10918", "10924", "10940", "10950", "12550", "12586"]},
    {"code": "NY-DUTCHESS", "name": "Dutchess County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 3.75, "mctd": 0.375,
     "combined": 8.125, "in_mctd": True, "clothing": False,
     "zips": ["12508", "12524", "12538", "12590", "12601", "12603"]},
    # Upstate counties
    {"code": "NY-ALBANY", "name": "Albany County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": False,
     "zips": ["12202", "12203", "12205", "12206", "12208", "12209",
              "12210", "12211"]},
    {"code": "NY-ERIE", "name": "Erie County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.75, "mctd": 0.0,
     "combined": 8.75, "clothing": False,
     "zips": ["14201", "14202", "14204", "14207", "14209", "14213",
              "14214", "14216", "14221", "14226"]},
    {"code": "NY-MONROE", "name": "Monroe County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": False,
     "zips": ["14604", "14605", "14607", "14608", "14610", "14618",
              "14620", "14623", "14625"]},
    {"code": "NY-ONONDAGA", "name": "Onondaga County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": False,
     "zips": ["13202", "13203", "13204", "13206", "13210", "13214",
              "13224"]},
    {"code": "NY-TOMPKINS", "name": "Tompkins County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": False,
     "zips": ["14850", "14853", "14882"]},
    # Counties that elected the clothing exemption
    {"code": "NY-CHAUTAUQUA", "name": "Chautauqua County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["14701", "14733", "14048", "14063"]},
    {"code": "NY-CHENANGO", "name": "Chenango County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["13815", "13830", "13778"]},
    {"code": "NY-COLUMBIA", "name": "Columbia County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["12534", "12037", "12075"]},
    {"code": "NY-DELAWARE", "name": "Delaware County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["13753", "13856", "12167"]},
    {"code": "NY-GREENE", "name": "Greene County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["12414", "12051", "12015"]},
    {"code": "NY-HAMILTON", "name": "Hamilton County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["12812", "12842", "12108"]},
    {"code": "NY-TIOGA", "name": "Tioga County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["13827", "13732", "13811"]},
    {"code": "NY-WAYNE", "name": "Wayne County", "level": "county",
     "parent": "NY", "state": 4.0, "local": 4.0, "mctd": 0.0,
     "combined": 8.0, "clothing": True,
     "zips": ["14522", "14513", "14589"]},
]

_AL_JURISDICTIONS: list[dict] = [
    {"code": "AL", "name": "Alabama State", "level": "state",
     "state": 4.0, "local": 0.0, "mctd": 0.0, "combined": 4.0},
    # Jefferson County
    {"code": "AL-BIRMINGHAM", "name": "Birmingham", "level": "city",
     "parent": "AL-JEFFERSON", "state": 4.0, "local": 6.0, "mctd": 0.0,
     "combined": 10.0,
     "zips": ["35201", "35202", "35203", "35204", "35205", "35206",
              "35207", "35208", "35209", "35210", "35211", "35212",
              "35213", "35214", "35215", "35216", "35217", "35218",
              "35219", "35220", "35221", "35222", "35223", "35224",
              "35226", "35228", "35229", "35231", "35232", "35233",
              "35234", "35235", "35236", "35237", "35238", "35242",
              "35243", "35244", "35246", "35249", "35253", "35254",
              "35255", "35259", "35260", "35261", "35266", "35270",
              "35282", "35283", "35285", "35287", "35288", "35290",
              "35291", "35292", "35293", "35294", "35295", "35296",
              "35297", "35298"]},
    # Hoover shares 35226 and 35244 with Birmingham; Hoover is listed last
    # and owns them.
    {"code": "AL-HOOVER", "name": "Hoover", "level": "city",
     "parent": "AL-JEFFERSON", "state": 4.0, "local": 6.0, "mctd": 0.0,
     "combined": 10.0, "zips": ["35226", "35244"]},
    {"code": "AL-JEFFERSON", "name": "Jefferson County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 3.0, "mctd": 0.0,
     "combined": 7.0},
    # Montgomery
    {"code": "AL-MONTGOMERY-CITY", "name": "Montgomery", "level": "city",
     "parent": "AL-MONTGOMERY", "state": 4.0, "local": 6.0, "mctd": 0.0,
     "combined": 10.0,
     "zips": ["36101", "36102", "36103", "36104", "36105", "36106",
              "36107", "36108", "36109", "36110", "36111", "36112",
              "36113", "36114", "36115", "36116", "36117", "36118",
              "36119", "36120", "36121", "36123", "36124", "36125",
              "36130", "36131", "36132", "36133", "36134", "36135",
              "36140", "36141", "36142"]},
    {"code": "AL-MONTGOMERY", "name": "Montgomery County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.5, "mctd": 0.0,
     "combined": 6.5},
    # Huntsville / Madison County
    {"code": "AL-HUNTSVILLE", "name": "Huntsville", "level": "city",
     "parent": "AL-MADISON", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0,
     "zips": ["35801", "35802", "35803", "35804", "35805", "35806",
              "35807", "35808", "35809", "35810", "35811", "35812",
              "35813", "35814", "35815", "35816", "35824", "35893",
              "35894", "35895", "35896", "35897", "35898", "35899"]},
    {"code": "AL-MADISON", "name": "Madison County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 0.5, "mctd": 0.0,
     "combined": 4.5},
    # Mobile
    {"code": "AL-MOBILE-CITY", "name": "Mobile", "level": "city",
     "parent": "AL-MOBILE", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0,
     "zips": ["36601", "36602", "36603", "36604", "36605", "36606",
              "36607", "36608", "36609", "36610", "36611", "36612",
              "36613", "36615", "36616", "36617", "36618", "36619",
              "36628", "36630", "36633", "36640", "36641", "36644",
              "36652", "36660", "36663", "36670", "36671", "36675",
              "36685", "36688", "36689", "36690", "36691", "36693",
              "36695"]},
    {"code": "AL-MOBILE", "name": "Mobile County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 1.0, "mctd": 0.0,
     "combined": 5.0},
    # Tuscaloosa
    {"code": "AL-TUSCALOOSA-CITY", "name": "Tuscaloosa", "level": "city",
     "parent": "AL-TUSCALOOSA", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0,
     "zips": ["35401", "35402", "35403", "35404", "35405", "35406",
              "35407", "35485", "35486", "35487"]},
    {"code": "AL-TUSCALOOSA", "name": "Tuscaloosa County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.0, "mctd": 0.0,
     "combined": 6.0},
    # Auburn / Lee County
    {"code": "AL-AUBURN", "name": "Auburn", "level": "city",
     "parent": "AL-LEE", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0, "zips": ["36830", "36831", "36832", "36849"]},
    {"code": "AL-LEE", "name": "Lee County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.0, "mctd": 0.0,
     "combined": 6.0},
    # Dothan / Houston County
    {"code": "AL-DOTHAN", "name": "Dothan", "level": "city",
     "parent": "AL-HOUSTON", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0,
     "zips": ["36301", "36302", "36303", "36304", "36305"]},
    {"code": "AL-HOUSTON", "name": "Houston County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 1.5, "mctd": 0.0,
     "combined": 5.5},
    # Decatur / Morgan County
    {"code": "AL-DECATUR", "name": "Decatur", "level": "city",
     "parent": "AL-MORGAN", "state": 4.0, "local": 5.5, "mctd": 0.0,
     "combined": 9.5, "zips": ["35601", "35602", "35603", "35609"]},
    {"code": "AL-MORGAN", "name": "Morgan County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.0, "mctd": 0.0,
     "combined": 6.0},
    # Florence / Lauderdale County
    {"code": "AL-FLORENCE", "name": "Florence", "level": "city",
     "parent": "AL-LAUDERDALE", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0,
     "zips": ["35630", "35631", "35632", "35633", "35634"]},
    {"code": "AL-LAUDERDALE", "name": "Lauderdale County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.0, "mctd": 0.0,
     "combined": 6.0},
    # Gadsden / Etowah County
    {"code": "AL-GADSDEN", "name": "Gadsden", "level": "city",
     "parent": "AL-ETOWAH", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0,
     "zips": ["35901", "35902", "35903", "35904", "35905", "35906",
              "35907"]},
    {"code": "AL-ETOWAH", "name": "Etowah County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.0, "mctd": 0.0,
     "combined": 6.0},
    # Arab has one of the highest combined rates in the state
    {"code": "AL-ARAB", "name": "Arab", "level": "city",
     "parent": "AL-MARSHALL", "state": 4.0, "local": 8.5, "mctd": 0.0,
     "combined": 12.5, "zips": ["35016"]},
    {"code": "AL-MARSHALL", "name": "Marshall County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 3.0, "mctd": 0.0,
     "combined": 7.0},
    # Baldwin County
    {"code": "AL-GULF-SHORES", "name": "Gulf Shores", "level": "city",
     "parent": "AL-BALDWIN", "state": 4.0, "local": 6.0, "mctd": 0.0,
     "combined": 10.0, "zips": ["36542", "36547"]},
    {"code": "AL-BALDWIN", "name": "Baldwin County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.0, "mctd": 0.0,
     "combined": 6.0},
    # Shelby County
    {"code": "AL-ALABASTER", "name": "Alabaster", "level": "city",
     "parent": "AL-SHELBY", "state": 4.0, "local": 5.0, "mctd": 0.0,
     "combined": 9.0, "zips": ["35007", "35114", "35144"]},
    {"code": "AL-SHELBY", "name": "Shelby County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 1.0, "mctd": 0.0,
     "combined": 5.0},
    # Calhoun County
    {"code": "AL-ANNISTON", "name": "Anniston", "level": "city",
     "parent": "AL-CALHOUN", "state": 4.0, "local": 6.0, "mctd": 0.0,
     "combined": 10.0,
     "zips": ["36201", "36202", "36203", "36204", "36205", "36206",
              "36207"]},
    {"code": "AL-CALHOUN", "name": "Calhoun County", "level": "county",
     "parent": "AL", "state": 4.0, "local": 2.5, "mctd": 0.0,
     "combined": 6.5},
]

_JURISDICTION_DATA: dict[str, list[dict]] = {
    "NY": _NY_JURISDICTIONS,
    "AL": _AL_JURISDICTIONS,
}


def _build_jurisdiction(data: dict) -> Jurisdiction:
    return Jurisdiction(
        code=data["code"],
        name=data["name"],
        level=JurisdictionLevel(data["level"]),
        state_rate=data["state"],
        local_rate=data["local"],
        mctd_rate=data["mctd"],
        combined_rate=data["combined"],
        in_mctd=data.get("in_mctd", False),
        effective_date=date.fromisoformat(data.get("effective", "2024-01-01")),
        parent_code=data.get("parent"),
        zip_codes=tuple(data.get("zips", ())),
        clothing_exemption=data.get("clothing"),
    )


class JurisdictionRegistry:
    """
    Read-only collection of a state's jurisdictions.

    Builds a ZIP -> jurisdiction code index once at construction time.
    When two jurisdictions list the same ZIP the later one wins.
    """

    def __init__(self, state_code: str, jurisdictions: Iterable[Jurisdiction]) -> None:
        self.state_code = state_code.upper()
        self._by_code: dict[str, Jurisdiction] = {}
        self._zip_index: dict[str, str] = {}
        self._load(jurisdictions)

    @classmethod
    def for_state(cls, state_code: str) -> "JurisdictionRegistry":
        code = state_code.upper()
        data = _JURISDICTION_DATA.get(code)
        if data is None:
            raise ValueError(f"Unknown state code: {state_code}")
        return cls(code, (_build_jurisdiction(d) for d in data))

    def _load(self, jurisdictions: Iterable[Jurisdiction]) -> None:
        for j in jurisdictions:
            if j.code in self._by_code:
                raise ValueError(f"Duplicate jurisdiction code: {j.code}")
            if min(j.state_rate, j.local_rate, j.mctd_rate) < 0:
                raise ValueError(f"Negative rate component for {j.code}")
            if abs(j.combined_rate - j.component_sum) > _RATE_TOLERANCE:
                raise ValueError(
                    f"Combined rate {j.combined_rate} for {j.code} does not "
                    f"equal its components ({j.component_sum})"
                )
            self._by_code[j.code] = j

            for zip_code in j.zip_codes:
                previous = self._zip_index.get(zip_code)
                if previous is not None and previous != j.code:
                    logger.warning(
                        "ZIP %s listed by %s and %s; using %s",
                        zip_code, previous, j.code, j.code,
                    )
                self._zip_index[zip_code] = j.code

        if self.state_code not in self._by_code:
            raise ValueError(
                f"No state-level jurisdiction configured for {self.state_code}"
            )
        logger.debug(
            "Loaded %d jurisdictions and %d ZIP codes for %s",
            len(self._by_code), len(self._zip_index), self.state_code,
        )

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def get(self, code: str) -> Optional[Jurisdiction]:
        """Look up a jurisdiction by its code."""
        return self._by_code.get(code.upper())

    def state_jurisdiction(self) -> Jurisdiction:
        return self._by_code[self.state_code]

    def all(self) -> list[Jurisdiction]:
        return list(self._by_code.values())

    def resolve_zip(self, zip_code: str) -> ZipResolution:
        """
        Resolve a ZIP code to its owning jurisdiction.

        Unregistered ZIPs resolve to the state-level record with
        ``matched=False``; callers decide how to tell the user.
        """
        zip5 = zip_code.strip()[:5]
        code = self._zip_index.get(zip5)
        if code is not None:
            return ZipResolution(zip5, self._by_code[code], matched=True)
        logger.debug("ZIP %s not registered for %s; using state rate", zip5, self.state_code)
        return ZipResolution(zip5, self.state_jurisdiction(), matched=False)

    def lookup_zip(self, zip_code: str) -> Jurisdiction:
        return self.resolve_zip(zip_code).jurisdiction

    def zip_codes(self) -> dict[str, str]:
        """Return a copy of the ZIP -> jurisdiction code index."""
        return dict(self._zip_index)

    def filter(self, predicate: Callable[[Jurisdiction], bool]) -> list[Jurisdiction]:
        return [j for j in self._by_code.values() if predicate(j)]

    def by_level(self, level: JurisdictionLevel) -> list[Jurisdiction]:
        return self.filter(lambda j: j.level == level)

    def counties(self) -> list[Jurisdiction]:
        return self.by_level(JurisdictionLevel.COUNTY)

    def cities(self) -> list[Jurisdiction]:
        return self.by_level(JurisdictionLevel.CITY)

    def mctd_jurisdictions(self) -> list[Jurisdiction]:
        return self.filter(lambda j: j.in_mctd)

    def children(self, parent_code: str) -> list[Jurisdiction]:
        parent = parent_code.upper()
        return self.filter(lambda j: j.parent_code == parent)

    def highest_rate(self, n: int = 5) -> list[Jurisdiction]:
        """Return the N jurisdictions with the highest combined rate."""
        return sorted(
            self._by_code.values(), key=lambda j: j.combined_rate, reverse=True
        )[:n]


def supported_states() -> list[str]:
    return sorted(_JURISDICTION_DATA)


def get_registry(state_code: str) -> JurisdictionRegistry:
    """Return the shared registry for a state, loading it on first use."""
    return _load_registry(state_code.upper())


@lru_cache(maxsize=None)
def _load_registry(state_code: str) -> JurisdictionRegistry:
    return JurisdictionRegistry.for_state(state_code)
