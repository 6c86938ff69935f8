"""Shared fixtures: hand-built StormEvent records and a tiny storm CSV."""

import pandas as pd
import pytest

from storm_impact.models import StormEvent


def make_event(event_id, event_type, fatalities=0, injuries=0,
               prop_dmg=0.0, prop_dmg_exp="", crop_dmg=0.0, crop_dmg_exp="", remarks=""):
    return StormEvent(
        event_id=event_id,
        event_type=event_type,
        fatalities=fatalities,
        injuries=injuries,
        prop_dmg=prop_dmg,
        prop_dmg_exp=prop_dmg_exp,
        crop_dmg=crop_dmg,
        crop_dmg_exp=crop_dmg_exp,
        remarks=remarks,
    )


@pytest.fixture
def raw_events():
    """Six records across three event types, one with a bad unit code."""
    return [
        make_event(0, "TSTM WIND", fatalities=1, injuries=4, prop_dmg=10, prop_dmg_exp="K"),
        make_event(1, "THUNDERSTORM WINDS", injuries=2, prop_dmg=2, prop_dmg_exp="M", crop_dmg=5, crop_dmg_exp="K"),
        make_event(2, "Tornado", fatalities=5, injuries=30, prop_dmg=25, prop_dmg_exp="M"),
        make_event(3, "FLOOD", prop_dmg=115, prop_dmg_exp="B", crop_dmg=32.5, crop_dmg_exp="M",
                   remarks="Major flooding in Napa"),
        make_event(4, "FLOOD", fatalities=2, prop_dmg=3, prop_dmg_exp="B"),
        make_event(5, "tornado", fatalities=3, injuries=7, prop_dmg=9, prop_dmg_exp="?"),
    ]


@pytest.fixture
def storm_csv(tmp_path):
    """A bz2-compressed CSV laid out like the NOAA export (extra columns included)."""
    df = pd.DataFrame({
        "STATE__": [1.0, 1.0, 2.0, 6.0],
        "EVTYPE": ["TSTM WIND", "THUNDERSTORM WINDS", "Tornado", "FLOOD"],
        "FATALITIES": [0.0, 1.0, 5.0, 0.0],
        "INJURIES": [15.0, 0.0, 30.0, None],
        "PROPDMG": [25.0, 10.0, 2.5, 115.0],
        "PROPDMGEXP": ["K", "K", "M", "B"],
        "CROPDMG": [0.0, 0.0, 0.0, 32.5],
        # lowercase "k" is not a recognised unit code: the Tornado row is damage-invalid
        "CROPDMGEXP": [None, "", "k", "M"],
        "REMARKS": ["", "Trees down", None, "Napa River flooding"],
    })
    path = tmp_path / "StormData.csv.bz2"
    df.to_csv(path, index=False, compression="bz2")
    return path
