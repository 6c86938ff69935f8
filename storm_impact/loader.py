"""
Dataset loader (compressed CSV -> StormEvent list)
==================================================

This module fetches the NOAA storm CSV archive (once) and converts each row
into a `StormEvent` object.

Key ideas:
- The download is skipped when the archive already exists locally.
- pandas decompresses `.bz2` transparently (compression is inferred).
- We try exact column names first, then a case/punctuation-insensitive match.
- Conversion helpers (_to_int/_to_float/_to_str) turn blank cells into 0 / "".
"""

from __future__ import annotations
from typing import Dict, List, Sequence
import logging
import os
import re
import pandas as pd
import requests
from .models import StormEvent

logger = logging.getLogger(__name__)

DATA_URL = "https://d396qusza40orc.cloudfront.net/repdata%2Fdata%2FStormData.csv.bz2"
DEFAULT_DATA_PATH = os.path.join("data", "StormData.csv.bz2")

# CSV column -> StormEvent field
COLUMNS: Dict[str, str] = {
    "EVTYPE": "event_type",
    "FATALITIES": "fatalities",
    "INJURIES": "injuries",
    "PROPDMG": "prop_dmg",
    "PROPDMGEXP": "prop_dmg_exp",
    "CROPDMG": "crop_dmg",
    "CROPDMGEXP": "crop_dmg_exp",
    "REMARKS": "remarks",
}

def download_dataset(url: str = DATA_URL, path: str = DEFAULT_DATA_PATH, chunk_size: int = 1 << 16) -> str:
    """Fetch `url` into `path` unless the file is already present.

    Errors from the HTTP layer are not retried; they propagate to the caller.
    """
    if os.path.exists(path):
        logger.info("Dataset already present at %s, skipping download", path)
        return path

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    logger.info("Downloading %s -> %s", url, path)
    tmp_path = path + ".part"
    with requests.get(url, stream=True, timeout=60) as response:
        response.raise_for_status()
        try:
            with open(tmp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    if chunk:
                        f.write(chunk)
        except Exception:
            # drop the partial file so the next run starts over
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
    os.replace(tmp_path, path)
    logger.info("Downloaded %.1f MB", os.path.getsize(path) / 1024 / 1024)
    return path

def _to_int(x) -> int:
    """Convert a cell to int, treating missing/invalid as 0."""
    if pd.isna(x): return 0
    try: return int(float(x))
    except (TypeError, ValueError): return 0

def _to_float(x) -> float:
    """Convert a cell to float, treating missing/invalid as 0.0."""
    if pd.isna(x): return 0.0
    try: return float(x)
    except (TypeError, ValueError): return 0.0

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(columns: Sequence[str], name: str) -> str:
    cols = list(columns)
    if name in cols:
        return name
    norm_map = {_norm(c): c for c in cols}
    nn = _norm(name)
    if nn in norm_map:
        return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={name!r}. Available={cols}")

def load_storm_csv(path: str) -> List[StormEvent]:
    """
    Parse the storm CSV (plain or compressed) into a list of StormEvent records.

    Only the columns listed in `COLUMNS` are read. `total_damage` is left as
    None; it is filled in by `storm_impact.damage.apply_damage`.
    """
    header = pd.read_csv(path, nrows=0)
    resolved = {name: _col(header.columns, name) for name in COLUMNS}

    logger.info("Reading %s", path)
    text_cols = (resolved["EVTYPE"], resolved["PROPDMGEXP"], resolved["CROPDMGEXP"], resolved["REMARKS"])
    df = pd.read_csv(
        path,
        usecols=list(resolved.values()),
        dtype={c: str for c in text_cols},
        keep_default_na=False,
        na_values=[""],
    )

    events: List[StormEvent] = []
    rows = zip(*(df[resolved[name]] for name in COLUMNS))
    for i, (evtype, fat, inj, pdmg, pexp, cdmg, cexp, remarks) in enumerate(rows):
        events.append(StormEvent(
            event_id=i,
            event_type=_to_str(evtype),
            fatalities=_to_int(fat),
            injuries=_to_int(inj),
            prop_dmg=_to_float(pdmg),
            prop_dmg_exp=_to_str(pexp),
            crop_dmg=_to_float(cdmg),
            crop_dmg_exp=_to_str(cexp),
            remarks=_to_str(remarks),
        ))
    logger.info("Loaded %d storm events", len(events))
    return events

