import types

import pandas as pd
import pytest
import requests

from storm_impact import loader
from storm_impact.loader import download_dataset, load_storm_csv


class DummyResp(types.SimpleNamespace):
    status_code: int = 200
    closed: bool = False
    fail_midway: bool = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        yield b"EVTYPE,FATALITIES\n"
        yield b""
        if self.fail_midway:
            raise requests.ConnectionError("connection reset")
        yield b"HAIL,0\n"


class TestDownload:
    def test_skips_when_present(self, tmp_path, monkeypatch):
        path = tmp_path / "StormData.csv.bz2"
        path.write_bytes(b"cached")

        def boom(*a, **kw):
            raise AssertionError("network must not be touched")

        monkeypatch.setattr(loader.requests, "get", boom)
        assert download_dataset("http://example.invalid/x", str(path)) == str(path)
        assert path.read_bytes() == b"cached"

    def test_streams_to_file(self, tmp_path, monkeypatch):
        calls = []

        def fake_get(url, stream=False, timeout=None):
            calls.append((url, stream))
            return DummyResp()

        monkeypatch.setattr(loader.requests, "get", fake_get)
        path = tmp_path / "nested" / "data.csv"
        out = download_dataset("http://example.invalid/data.csv", str(path))
        assert out == str(path)
        assert path.read_bytes() == b"EVTYPE,FATALITIES\nHAIL,0\n"
        assert calls == [("http://example.invalid/data.csv", True)]
        assert not (tmp_path / "nested" / "data.csv.part").exists()

    def test_response_closed(self, tmp_path, monkeypatch):
        resp = DummyResp()
        monkeypatch.setattr(loader.requests, "get", lambda *a, **kw: resp)
        download_dataset("http://example.invalid/data.csv", str(tmp_path / "data.csv"))
        assert resp.closed

    def test_interrupted_stream_leaves_no_files(self, tmp_path, monkeypatch):
        resp = DummyResp(fail_midway=True)
        monkeypatch.setattr(loader.requests, "get", lambda *a, **kw: resp)
        path = tmp_path / "data.csv"
        with pytest.raises(requests.ConnectionError):
            download_dataset("http://example.invalid/data.csv", str(path))
        assert not path.exists()
        assert not (tmp_path / "data.csv.part").exists()
        assert resp.closed

    def test_http_error_propagates(self, tmp_path, monkeypatch):
        monkeypatch.setattr(loader.requests, "get", lambda *a, **kw: DummyResp(status_code=404))
        path = tmp_path / "data.csv"
        with pytest.raises(requests.HTTPError):
            download_dataset("http://example.invalid/data.csv", str(path))
        assert not path.exists()


class TestLoadStormCsv:
    def test_records(self, storm_csv):
        events = load_storm_csv(str(storm_csv))
        assert len(events) == 4
        first = events[0]
        assert first.event_id == 0
        assert first.event_type == "TSTM WIND"
        assert first.injuries == 15
        assert first.prop_dmg == 25.0
        assert first.prop_dmg_exp == "K"
        assert first.crop_dmg_exp == ""
        assert first.total_damage is None

    def test_blank_cells(self, storm_csv):
        events = load_storm_csv(str(storm_csv))
        assert events[3].injuries == 0
        assert events[2].remarks == ""
        assert events[2].crop_dmg_exp == "k"
        assert events[3].remarks == "Napa River flooding"

    def test_column_names_matched_loosely(self, tmp_path):
        df = pd.DataFrame({
            "evtype": ["HAIL"], "Fatalities": [1], "injuries": [2],
            "propdmg": [1.0], "prop_dmg_exp": ["K"], "cropdmg": [0.0], "CROPDMGEXP": [""], "remarks": ["x"],
        })
        path = tmp_path / "storms.csv"
        df.to_csv(path, index=False)
        e = load_storm_csv(str(path))[0]
        assert (e.event_type, e.fatalities, e.injuries, e.prop_dmg_exp) == ("HAIL", 1, 2, "K")

    def test_missing_column(self, tmp_path):
        path = tmp_path / "storms.csv"
        pd.DataFrame({"EVTYPE": ["HAIL"], "FATALITIES": [0]}).to_csv(path, index=False)
        with pytest.raises(KeyError, match="INJURIES"):
            load_storm_csv(str(path))
