"""
Damage calculator
=================

NOAA stores damage as a magnitude plus a unit code:

    PROPDMG=25, PROPDMGEXP="K"  ->  $25,000

Total damage = property damage + crop damage. Records with a unit code we
do not recognise get `total_damage=None` and are left out of every damage
sum, count and mean (they are *not* treated as zero). They still count for
fatalities and injuries.

The dataset also contains one well-known data-entry error: the largest
single record (the 2006 Napa flood) was entered in billions instead of
millions. `apply_outlier_override` replaces the arg-max record's damage with
a fixed, manually verified value.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple
import logging
from .models import StormEvent

logger = logging.getLogger(__name__)

EXP_MULTIPLIERS: Dict[str, float] = {
    "": 1.0,
    "U": 1.0,
    "K": 1e3,
    "M": 1e6,
    "B": 1e9,
}

# Napa flood, 2006: documented at ~$100M, recorded as $115B
OVERRIDE_DAMAGE = 1e8

@dataclass(frozen=True)
class OverrideResult:
    """Which record was corrected by `apply_outlier_override` (if any)."""
    event_id: Optional[int]
    original_damage: Optional[float]
    new_damage: Optional[float]
    remarks: str = ""

    @property
    def applied(self) -> bool:
        return self.event_id is not None

def exp_multiplier(code: Optional[str]) -> Optional[float]:
    """Return the multiplier for a unit code, or None for an unknown code.

    Codes are case-sensitive: lowercase "k" or "m" are not in the table.
    """
    return EXP_MULTIPLIERS.get((code or "").strip())

def compute_damage(event: StormEvent) -> Optional[float]:
    """Property + crop damage in US$, or None if either unit code is invalid."""
    m_prop = exp_multiplier(event.prop_dmg_exp)
    m_crop = exp_multiplier(event.crop_dmg_exp)
    if m_prop is None or m_crop is None:
        return None
    return event.prop_dmg * m_prop + event.crop_dmg * m_crop

def apply_damage(events: Sequence[StormEvent]) -> List[StormEvent]:
    """Return new records with `total_damage` filled in."""
    out = [replace(e, total_damage=compute_damage(e)) for e in events]
    invalid = sum(1 for e in out if e.total_damage is None)
    if invalid:
        logger.warning("%d of %d records have an unrecognised damage unit code and are excluded from damage totals",
                       invalid, len(out))
    return out

def apply_outlier_override(
    events: Sequence[StormEvent],
    value: float = OVERRIDE_DAMAGE,
) -> Tuple[List[StormEvent], OverrideResult]:
    """
    Replace the damage of the single largest record with `value`.

    Selection is arg-max over `total_damage` among damage-valid records; on a
    tie the earliest record wins. Nothing else is touched.
    """
    top_idx: Optional[int] = None
    for i, e in enumerate(events):
        if e.total_damage is None:
            continue
        if top_idx is None or e.total_damage > events[top_idx].total_damage:
            top_idx = i

    out = list(events)
    if top_idx is None:
        return out, OverrideResult(event_id=None, original_damage=None, new_damage=None)

    target = events[top_idx]
    out[top_idx] = replace(target, total_damage=float(value))
    logger.info("Overrode damage of record %d: %.0f -> %.0f", target.event_id, target.total_damage, value)
    return out, OverrideResult(
        event_id=target.event_id,
        original_damage=target.total_damage,
        new_damage=float(value),
        remarks=target.remarks,
    )
