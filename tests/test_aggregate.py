import pytest

from storm_impact.aggregate import aggregate, rank, topk
from storm_impact.damage import apply_damage
from storm_impact.dsa import merge_sort
from storm_impact.models import GroupSummary
from storm_impact.normalize import normalize_events

from conftest import make_event


def _group(label, **kw):
    base = dict(event_type=label, count=1, damage_count=1, total_damage=0.0,
                mean_damage=0.0, fatalities=0, injuries=0)
    base.update(kw)
    return GroupSummary(**base)


class TestMergeSort:
    def test_descending_is_stable(self):
        items = [("a", 1), ("b", 2), ("c", 1), ("d", 2)]
        out = merge_sort(items, key=lambda x: x[1], reverse=True)
        assert out == [("b", 2), ("d", 2), ("a", 1), ("c", 1)]

    def test_ascending_is_stable(self):
        items = [("a", 1), ("b", 0), ("c", 1)]
        assert merge_sort(items, key=lambda x: x[1]) == [("b", 0), ("a", 1), ("c", 1)]

    def test_input_not_modified(self):
        items = [3, 1, 2]
        merge_sort(items)
        assert items == [3, 1, 2]


class TestAggregate:
    def test_end_to_end_merge(self):
        events = normalize_events([
            make_event(0, "TSTM WIND"),
            make_event(1, "THUNDERSTORM WINDS"),
            make_event(2, "Tornado"),
        ])
        groups = {g.event_type: g for g in aggregate(events)}
        assert set(groups) == {"THUNDERSTORM WIND", "TORNADO"}
        assert groups["THUNDERSTORM WIND"].count == 2
        assert groups["TORNADO"].count == 1

    def test_groups_in_label_order(self, raw_events):
        events = apply_damage(normalize_events(raw_events))
        assert [g.event_type for g in aggregate(events)] == ["FLOOD", "THUNDERSTORM WIND", "TORNADO"]

    def test_reconciliation(self, raw_events):
        events = apply_damage(normalize_events(raw_events))
        groups = aggregate(events)
        assert sum(g.count for g in groups) == len(events)
        assert sum(g.fatalities for g in groups) == sum(e.fatalities for e in events)
        assert sum(g.injuries for g in groups) == sum(e.injuries for e in events)
        assert sum(g.total_damage for g in groups) == pytest.approx(
            sum(e.total_damage for e in events if e.total_damage is not None))
        for g in groups:
            members = [e for e in events if e.event_type == g.event_type]
            assert g.fatalities == sum(e.fatalities for e in members)
            assert g.injuries == sum(e.injuries for e in members)

    def test_invalid_damage_excluded_but_health_counted(self, raw_events):
        events = apply_damage(normalize_events(raw_events))
        tornado = {g.event_type: g for g in aggregate(events)}["TORNADO"]
        # record 2 is valid, record 5 has PROPDMGEXP="?"
        assert tornado.count == 2
        assert tornado.damage_count == 1
        assert tornado.total_damage == 25e6
        assert tornado.mean_damage == 25e6
        assert tornado.fatalities == 8
        assert tornado.injuries == 37

    def test_mean_none_without_valid_damage(self):
        events = apply_damage([make_event(0, "X", fatalities=1, prop_dmg=1, prop_dmg_exp="?")])
        g = aggregate(events)[0]
        assert g.damage_count == 0
        assert g.total_damage == 0.0
        assert g.mean_damage is None
        assert g.fatalities == 1

    def test_empty(self):
        assert aggregate([]) == []


class TestRank:
    def test_descending_with_stable_ties(self):
        groups = [_group("A", fatalities=3), _group("B", fatalities=7),
                  _group("C", fatalities=3), _group("D", fatalities=7)]
        assert [g.event_type for g in rank(groups, "fatalities")] == ["B", "D", "A", "C"]

    def test_none_sorts_last(self):
        groups = [_group("A", mean_damage=None), _group("B", mean_damage=0.0), _group("C", mean_damage=5.0)]
        assert [g.event_type for g in rank(groups, "mean_damage")] == ["C", "B", "A"]

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            rank([_group("A")], "deaths")


class TestTopK:
    @pytest.mark.parametrize("k", [0, 1, 3, 5, 10])
    def test_length(self, k):
        groups = [_group(chr(65 + i), count=i) for i in range(4)]
        assert len(topk(groups, k, "count")) == min(k, 4)

    def test_sorted_descending(self):
        groups = [_group(chr(65 + i), injuries=(i * 7) % 5) for i in range(8)]
        values = [g.injuries for g in topk(groups, 5, "injuries")]
        assert values == sorted(values, reverse=True)

    def test_negative_k(self):
        with pytest.raises(ValueError):
            topk([], -1, "count")
