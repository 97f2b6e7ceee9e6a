"""State index: summary profiles for the states with reference data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StateProfile:
    code: str
    name: str
    state_rate: float  # percentage
    max_combined_rate: float
    highlights: tuple[str, ...] = ()


_STATE_PROFILES: dict[str, StateProfile] = {
    "NY": StateProfile(
        code="NY",
        name="New York",
        state_rate=4.0,
        max_combined_rate=8.875,
        highlights=(
            "Clothing under $110 exempt (per item)",
            "NYC has highest rate at 8.875%",
            "MCTD surcharge in metro area",
        ),
    ),
    "AL": StateProfile(
        code="AL",
        name="Alabama",
        state_rate=4.0,
        max_combined_rate=12.5,
        highlights=(
            "Local rates push combined rates above 10% in many cities",
            "Reduced 2% state rate on SNAP-eligible food",
            "Flat 8% SSUT option for remote sellers",
        ),
    ),
}


def get_state_profile(state_code: str) -> Optional[StateProfile]:
    return _STATE_PROFILES.get(state_code.upper())


def all_state_profiles() -> list[StateProfile]:
    return [_STATE_PROFILES[k] for k in sorted(_STATE_PROFILES)]
