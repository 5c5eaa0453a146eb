"""Tests for snapshots, series merging and rate derivation."""

import pytest

from diffmetrik.errors import SerializationError
from diffmetrik.series import (
    MAX_SNAPSHOTS,
    LoadAverage,
    NetworkCounters,
    Snapshot,
    SnapshotSeries,
)
from helpers import FakeClock, FakeSource, counters, snap


def _times(series: SnapshotSeries) -> list[float]:
    return [s.seconds for s in series]


# ---------------------------------------------------------------------------
# merge
# ---------------------------------------------------------------------------

def test_merge_keeps_three_newest():
    a = SnapshotSeries([snap(1), snap(5), snap(9)])
    b = SnapshotSeries([snap(3), snap(7)])
    merged = SnapshotSeries.merge(a, b)
    assert len(merged) == 3
    assert _times(merged) == [9, 7, 5]


def test_merge_is_commutative_over_union():
    a = SnapshotSeries([snap(2), snap(4)])
    b = SnapshotSeries([snap(3)])
    assert SnapshotSeries.merge(a, b) == SnapshotSeries.merge(b, a)


def test_bound_and_ordering_hold_for_any_sequence_of_merges():
    series = SnapshotSeries()
    for t in [5, 1, 9, 3, 3, 12, 0, 7, 20, 15]:
        series = series.add(snap(t))
        assert len(series) <= MAX_SNAPSHOTS
        times = _times(series)
        assert times == sorted(times, reverse=True)
    assert _times(series) == [20, 15, 12]


def test_merge_does_not_deduplicate():
    s = snap(4)
    series = SnapshotSeries([s])
    merged = SnapshotSeries.merge(series, series)
    assert len(merged) == 2
    assert merged.snapshots == (s, s)


def test_construction_normalizes_order_and_bound():
    series = SnapshotSeries([snap(1), snap(4), snap(2), snap(3)])
    assert _times(series) == [4, 3, 2]


# ---------------------------------------------------------------------------
# get_rate
# ---------------------------------------------------------------------------

def test_rate_example():
    series = SnapshotSeries([snap(10, net_in=2000), snap(5, net_in=1000)])
    rate = series.get_rate()
    assert rate is not None
    assert rate.network.in_rate == 200.0
    assert rate.network.out_rate == 0.0


def test_rate_uses_newest_and_oldest_retained():
    series = SnapshotSeries([
        snap(10, net_in=5000, net_out=900),
        snap(7, net_in=4000, net_out=600),
        snap(6, net_in=1000, net_out=500),
    ])
    rate = series.get_rate()
    assert rate.network.in_rate == 1000.0
    assert rate.network.out_rate == 100.0


def test_rate_passes_newest_load_through():
    series = SnapshotSeries([
        snap(10, load=(1.5, 1.0, 0.5)),
        snap(2, load=(9.0, 9.0, 9.0)),
    ])
    assert series.get_rate().cpu == LoadAverage(1.5, 1.0, 0.5)


def test_single_entry_has_no_rate():
    assert SnapshotSeries([snap(10)]).get_rate() is None


def test_empty_series_has_no_rate():
    assert SnapshotSeries().get_rate() is None


@pytest.mark.parametrize("gap", [0.0, 0.5, 1.0])
def test_samples_too_close_have_no_rate(gap):
    series = SnapshotSeries([snap(100 + gap, net_in=10), snap(100, net_in=0)])
    assert series.get_rate() is None


def test_counter_reset_gives_negative_rate():
    series = SnapshotSeries([snap(12, net_in=100), snap(2, net_in=1100)])
    assert series.get_rate().network.in_rate == -100.0


def test_formatted_rates():
    series = SnapshotSeries([snap(3, net_in=2048, net_out=512), snap(1)])
    rate = series.get_rate()
    assert rate.network.formatted_in == "1.00 KiB/s"
    assert rate.network.formatted_out == "256.00 B/s"


# ---------------------------------------------------------------------------
# Snapshot construction and serialization
# ---------------------------------------------------------------------------

def test_take_uses_source_and_clock():
    clock = FakeClock(1000, 250_000_000)
    source = FakeSource([counters(123, 456, load_1=2.5)])
    s = Snapshot.take(source, clock)
    assert s.time_ns == 1_000_250_000_000
    assert s.network == NetworkCounters(123, 456)
    assert s.cpu.load_1 == 2.5
    assert source.calls == 1


def test_series_serialized_shape():
    series = SnapshotSeries([snap(10.5, net_in=1, net_out=2, load=(0.1, 0.2, 0.3))])
    assert series.to_dict() == {
        "metrics": [
            {
                "time": {"secs": 10, "nanos": 500_000_000},
                "network": {"total_ibytes": 1, "total_obytes": 2},
                "cpu": {"m1": 0.1, "m5": 0.2, "m15": 0.3},
            }
        ]
    }


def test_series_from_dict_round_trips():
    series = SnapshotSeries([snap(1_700_000_003.123456789, 10, 20), snap(1_700_000_000, 5, 6)])
    assert SnapshotSeries.from_dict(series.to_dict()) == series


def test_from_dict_normalizes_unsorted_overlong_history():
    raw = {"metrics": [snap(t).to_dict() for t in (1, 4, 2, 3)]}
    assert _times(SnapshotSeries.from_dict(raw)) == [4, 3, 2]


def test_from_dict_accepts_integer_loads():
    data = snap(1).to_dict()
    data["cpu"] = {"m1": 1, "m5": 0, "m15": 2}
    assert Snapshot.from_dict(data).cpu == LoadAverage(1.0, 0.0, 2.0)


@pytest.mark.parametrize("data", [
    {},
    {"metrics": "nope"},
    {"metrics": [{"time": {"secs": 1, "nanos": 0}, "cpu": {"m1": 0, "m5": 0, "m15": 0}}]},
    {"metrics": [{"time": {"secs": True, "nanos": 0},
                  "network": {"total_ibytes": 0, "total_obytes": 0},
                  "cpu": {"m1": 0, "m5": 0, "m15": 0}}]},
    {"metrics": [{"time": {"secs": 1, "nanos": 0},
                  "network": {"total_ibytes": "0", "total_obytes": 0},
                  "cpu": {"m1": 0, "m5": 0, "m15": 0}}]},
    {"metrics": [{"time": {"secs": 1, "nanos": 2_000_000_000},
                  "network": {"total_ibytes": 0, "total_obytes": 0},
                  "cpu": {"m1": 0, "m5": 0, "m15": 0}}]},
    {"metrics": [{"time": {"secs": 1, "nanos": 0},
                  "network": {"total_ibytes": 0, "total_obytes": 0},
                  "cpu": {"m1": 10**400, "m5": 0, "m15": 0}}]},
])
def test_from_dict_rejects_schema_mismatch(data):
    with pytest.raises(SerializationError):
        SnapshotSeries.from_dict(data)
