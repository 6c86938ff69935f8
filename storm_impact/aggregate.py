"""
Aggregator
==========

Groups records by normalized event type and ranks the groups.

Group-iteration order is ascending by label. Every ranking is a stable
descending sort on one metric, so ties keep that alphabetical order and the
"top N" tables never depend on incidental dictionary or file order.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Sequence, Tuple
from .dsa import merge_sort
from .models import GroupSummary, StormEvent

METRICS = ("total_damage", "mean_damage", "fatalities", "injuries", "count")

def aggregate(events: Sequence[StormEvent]) -> List[GroupSummary]:
    """Build one GroupSummary per event type (sorted by label)."""
    # label -> [count, damage_count, total_damage, fatalities, injuries]
    acc: Dict[str, list] = {}
    for e in events:
        a = acc.setdefault(e.event_type, [0, 0, 0.0, 0, 0])
        a[0] += 1
        if e.total_damage is not None:
            a[1] += 1
            a[2] += e.total_damage
        a[3] += e.fatalities
        a[4] += e.injuries

    out: List[GroupSummary] = []
    for label in sorted(acc):
        count, damage_count, total_damage, fatalities, injuries = acc[label]
        out.append(GroupSummary(
            event_type=label,
            count=count,
            damage_count=damage_count,
            total_damage=total_damage,
            mean_damage=(total_damage / damage_count) if damage_count else None,
            fatalities=fatalities,
            injuries=injuries,
        ))
    return out

def _metric_key(metric: str) -> Callable[[GroupSummary], Tuple[bool, float]]:
    m = metric.lower().strip()
    if m not in METRICS:
        raise ValueError(f"metric must be one of: {', '.join(METRICS)}")

    def key(g: GroupSummary) -> Tuple[bool, float]:
        v = getattr(g, m)
        # (False, 0) sorts below every real value, so None lands last
        return (v is not None, v if v is not None else 0.0)
    return key

def rank(summaries: Sequence[GroupSummary], metric: str) -> List[GroupSummary]:
    """Stable descending sort of the groups by `metric`."""
    return merge_sort(summaries, key=_metric_key(metric), reverse=True)

def topk(summaries: Sequence[GroupSummary], k: int, metric: str) -> List[GroupSummary]:
    """The first min(k, len(summaries)) groups of `rank(summaries, metric)`."""
    if k < 0:
        raise ValueError("k must be >= 0")
    return rank(summaries, metric)[:k]
