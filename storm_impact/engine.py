"""
Core engine
===========

This is the heart of the project. The analysis is a straight pipeline:

1) Load dataset -> list of StormEvent records (immutable)
2) Normalize event-type labels
3) Compute total damage per record (invalid unit codes -> None)
4) Correct the single known outlier record
5) Aggregate per event type -> GroupSummary list
6) Rank the groups for the reports

Every stage returns new records; nothing is edited in place, so the raw
records loaded in step 1 are still available for comparison.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging
from .aggregate import aggregate, rank, topk
from .damage import OVERRIDE_DAMAGE, OverrideResult, apply_damage, apply_outlier_override
from .loader import DATA_URL, DEFAULT_DATA_PATH, download_dataset, load_storm_csv
from .models import GroupSummary, StormEvent
from .normalize import ABBREVIATIONS, KEYWORDS, normalize_events

logger = logging.getLogger(__name__)

@dataclass
class PipelineConfig:
    """Knobs for one analysis run."""
    data_path: str = DEFAULT_DATA_PATH
    url: str = DATA_URL
    # Fetch the archive when `data_path` does not exist yet
    download: bool = True
    apply_override: bool = True
    override_value: float = OVERRIDE_DAMAGE
    abbreviations: Sequence[Tuple[str, str]] = ABBREVIATIONS
    keywords: Sequence[str] = KEYWORDS

@dataclass
class StormAnalysis:
    """Processed records plus their per-event-type aggregates."""
    events: List[StormEvent]
    summaries: List[GroupSummary]
    override: OverrideResult
    dataset_path: Optional[str] = None
    config: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def build(cls, raw_events: Sequence[StormEvent], config: Optional[PipelineConfig] = None,
              dataset_path: Optional[str] = None) -> "StormAnalysis":
        config = config or PipelineConfig()
        events = normalize_events(raw_events, config.abbreviations, config.keywords)
        events = apply_damage(events)
        if config.apply_override:
            events, override = apply_outlier_override(events, config.override_value)
        else:
            override = OverrideResult(event_id=None, original_damage=None, new_damage=None)
        summaries = aggregate(events)
        logger.info("Aggregated %d records into %d event types", len(events), len(summaries))
        return cls(events=events, summaries=summaries, override=override,
                   dataset_path=dataset_path, config=config)

    # ---------------- Rankings ----------------
    def ranked(self, metric: str) -> List[GroupSummary]:
        return rank(self.summaries, metric)

    def top_damage(self, k: int = 5) -> List[GroupSummary]:
        return topk(self.summaries, k, "total_damage")

    def top_fatalities(self, k: int = 5) -> List[GroupSummary]:
        return topk(self.summaries, k, "fatalities")

    def top_injuries(self, k: int = 5) -> List[GroupSummary]:
        return topk(self.summaries, k, "injuries")

    def top_frequency(self, k: int = 3) -> List[GroupSummary]:
        return topk(self.summaries, k, "count")

    def totals(self) -> Dict[str, float]:
        """Dataset-wide sums (denominators for the percentage columns)."""
        return {
            "count": sum(g.count for g in self.summaries),
            "damage_count": sum(g.damage_count for g in self.summaries),
            "total_damage": sum(g.total_damage for g in self.summaries),
            "fatalities": sum(g.fatalities for g in self.summaries),
            "injuries": sum(g.injuries for g in self.summaries),
        }

    # ---------------- Export ----------------
    def _rows(self, metric: str) -> List[Mapping[str, object]]:
        return [
            {
                "event_type": g.event_type,
                "count": g.count,
                "damage_count": g.damage_count,
                "total_damage": g.total_damage,
                "mean_damage": g.mean_damage,
                "fatalities": g.fatalities,
                "injuries": g.injuries,
            }
            for g in self.ranked(metric)
        ]

    def export_csv(self, path: str, metric: str = "total_damage") -> None:
        """Write the aggregates (ranked by `metric`) to a CSV file."""
        import csv
        rows = self._rows(metric)
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=["event_type", "count", "damage_count", "total_damage",
                                              "mean_damage", "fatalities", "injuries"])
            w.writeheader()
            for r in rows:
                w.writerow(r)

    def export_json(self, path: str, metric: str = "total_damage") -> None:
        """Write the aggregates (ranked by `metric`) to a JSON file."""
        import json
        payload = {
            "dataset": self.dataset_path,
            "records": len(self.events),
            "override": {
                "event_id": self.override.event_id,
                "original_damage": self.override.original_damage,
                "new_damage": self.override.new_damage,
            },
            "groups": self._rows(metric),
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

def run_pipeline(config: Optional[PipelineConfig] = None) -> StormAnalysis:
    """Download (if needed), load, and analyse the dataset."""
    config = config or PipelineConfig()
    path = config.data_path
    if config.download:
        path = download_dataset(config.url, config.data_path)
    raw = load_storm_csv(path)
    return StormAnalysis.build(raw, config, dataset_path=path)
