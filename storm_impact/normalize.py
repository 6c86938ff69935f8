"""
Event-type normalizer
=====================

NOAA event-type labels are free text ("TSTM WIND", "Thunderstorm Winds",
"TORNADOES, TSTM WIND, HAIL", ...). We collapse them into a small set of
canonical labels:

1) uppercase (and squeeze whitespace)
2) expand abbreviations, e.g. TSTM -> THUNDERSTORM
3) walk an ordered keyword list; whenever the expanded label contains a
   keyword, the whole label becomes that keyword

Step 3 is "last match wins": every keyword is tested against the expanded
label, so one containing both TORNADO and HURRICANE ends up as whichever
keyword comes later in `KEYWORDS` ("TSTM WIND/HAIL" becomes HAIL). This is the
historical behaviour of the analysis and is kept as-is. Labels are not
validated against the official 48 NOAA categories.
"""

from __future__ import annotations
from dataclasses import replace
from typing import List, Mapping, Sequence, Tuple
import logging
import re
from .models import StormEvent

logger = logging.getLogger(__name__)

ABBREVIATIONS: Tuple[Tuple[str, str], ...] = (
    ("TSTM", "THUNDERSTORM"),
)

KEYWORDS: Tuple[str, ...] = (
    "THUNDERSTORM WIND",
    "TORNADO",
    "WATERSPOUT",
    "HAIL",
    "FLASH FLOOD",
    "COASTAL FLOOD",
    "RIP CURRENT",
    "HIGH WIND",
    "STRONG WIND",
    "WINTER STORM",
    "WINTER WEATHER",
    "ICE STORM",
    "BLIZZARD",
    "HEAVY SNOW",
    "HEAVY RAIN",
    "EXCESSIVE HEAT",
    "EXTREME COLD",
    "LIGHTNING",
    "HURRICANE",
    "TROPICAL STORM",
    "STORM SURGE",
    "WILDFIRE",
    "DROUGHT",
    "AVALANCHE",
    "DENSE FOG",
    "DUST STORM",
)

_WS = re.compile(r"\s+")

def normalize_event_type(
    label: str,
    abbreviations: Sequence[Tuple[str, str]] | Mapping[str, str] = ABBREVIATIONS,
    keywords: Sequence[str] = KEYWORDS,
) -> str:
    """Map one raw event-type label to its canonical form."""
    out = _WS.sub(" ", (label or "").upper()).strip()

    pairs = abbreviations.items() if isinstance(abbreviations, Mapping) else abbreviations
    for abbr, expansion in pairs:
        out = out.replace(abbr.upper(), expansion.upper())

    # every keyword is tested against the expanded label; the last hit wins
    expanded = out
    for kw in keywords:
        if kw in expanded:
            out = kw
    return out

def normalize_events(
    events: Sequence[StormEvent],
    abbreviations: Sequence[Tuple[str, str]] | Mapping[str, str] = ABBREVIATIONS,
    keywords: Sequence[str] = KEYWORDS,
) -> List[StormEvent]:
    """Return new records with `event_type` normalized."""
    # Many rows share the same raw label; normalize each distinct label once.
    cache = {}
    out: List[StormEvent] = []
    for e in events:
        label = cache.get(e.event_type)
        if label is None:
            label = normalize_event_type(e.event_type, abbreviations, keywords)
            cache[e.event_type] = label
        out.append(replace(e, event_type=label))
    logger.info("Normalized %d distinct raw labels into %d labels", len(cache), len(set(cache.values())))
    return out
