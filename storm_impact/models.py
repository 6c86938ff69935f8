"""
Data model (StormEvent, GroupSummary)
=====================================

Each row of the NOAA storm CSV is converted into a `StormEvent` object.
Records are immutable (`frozen=True`): every pipeline stage returns *new*
records via `dataclasses.replace` instead of rewriting columns in place.
"""

from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class StormEvent:
    """One storm event record (a curated subset of the CSV columns)."""
    event_id: int
    event_type: str
    fatalities: int
    injuries: int
    prop_dmg: float
    prop_dmg_exp: str
    crop_dmg: float
    crop_dmg_exp: str
    remarks: str = ""
    # property + crop damage in US$; None when a unit code is not recognised
    total_damage: Optional[float] = None

    @property
    def damage_valid(self) -> bool:
        return self.total_damage is not None


@dataclass(frozen=True)
class GroupSummary:
    """Aggregate statistics for one normalized event-type label."""
    event_type: str
    count: int
    damage_count: int
    total_damage: float
    mean_damage: Optional[float]
    fatalities: int
    injuries: int
