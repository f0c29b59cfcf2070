from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pyfleet.models.ping import Ping
from pyfleet.models.track import SpeedBand
from pyfleet.track.geo import haversine_m, sq_segment_distance
from pyfleet.track.processing import (
    classify_speed,
    compute_stats,
    filter_noise,
    process_track,
    simplify,
    sort_pings,
)

_T0 = datetime(2026, 1, 1, 8, 0, tzinfo=UTC)


def _ping(lat: float, lng: float, second: int, speed: float | None = None) -> Ping:
    return Ping(lat=lat, lng=lng, speed_kmh=speed, timestamp=_T0 + timedelta(seconds=second))


def test_haversine_short_distances_at_equator() -> None:
    assert haversine_m(0, 0, 0, 0.0001) == pytest.approx(11.12, abs=0.01)
    assert haversine_m(0, 0, 0, 0.00001) == pytest.approx(1.11, abs=0.01)
    assert haversine_m(10, 20, 10, 20) == 0.0


def test_sq_segment_distance_clamps_to_endpoints() -> None:
    assert sq_segment_distance(1, 1, 0, 0, 2, 0) == pytest.approx(1.0)
    assert sq_segment_distance(3, 0, 0, 0, 2, 0) == pytest.approx(1.0)
    # Degenerate segment: distance to the single point
    assert sq_segment_distance(3, 4, 0, 0, 0, 0) == pytest.approx(25.0)


def test_sort_pings_by_timestamp() -> None:
    pings = [_ping(0, 0.002, 2), _ping(0, 0, 0), _ping(0, 0.001, 1)]
    assert [p.lng for p in sort_pings(pings)] == [0, 0.001, 0.002]


def test_history_jitter_point_is_filtered() -> None:
    pings = [_ping(0, 0, 0), _ping(0, 0.00001, 1), _ping(0, 0.002, 2)]

    filtered = filter_noise(pings, 8.0)

    assert [p.lng for p in filtered] == [0, 0.002]
    track = process_track(pings)
    assert track.stats.ping_count == 2
    assert track.stats.total_distance_km > 0


def test_filter_noise_keeps_first_and_measures_from_last_kept() -> None:
    # Each step is ~5.6m, below 8m, but the third ping is ~11.1m from the first
    pings = [_ping(0, 0, 0), _ping(0, 0.00005, 1), _ping(0, 0.0001, 2)]
    assert [p.lng for p in filter_noise(pings, 8.0)] == [0, 0.0001]
    assert filter_noise([], 8.0) == []


def test_collinear_points_simplify_but_stats_use_filtered() -> None:
    pings = [_ping(0, 0, 0, 10), _ping(0, 0.0001, 1, 20), _ping(0, 0.0002, 2, 30)]

    track = process_track(pings)

    assert len(filter_noise(pings)) == 3
    assert [p.lng for p in track.points] == [0, 0.0002]
    assert track.stats.ping_count == 3
    assert track.stats.avg_speed_kmh == pytest.approx(20.0)
    assert track.stats.total_distance_km == pytest.approx(0.0222, abs=0.0001)


def test_simplify_keeps_corner_and_endpoints() -> None:
    pings = [_ping(0, 0, 0), _ping(0, 0.001, 1), _ping(0.001, 0.001, 2), _ping(0.001, 0.0015, 3)]

    simplified = simplify(pings, 0.00003)

    assert simplified[0] is pings[0]
    assert simplified[-1] is pings[-1]
    assert pings[1] in simplified


def test_simplify_short_input_unchanged() -> None:
    pings = [_ping(0, 0, 0), _ping(1, 1, 1)]
    assert simplify(pings) == pings


@pytest.mark.parametrize(
    ("speed", "band"),
    [
        (None, SpeedBand.LOW),
        (0, SpeedBand.LOW),
        (9.9, SpeedBand.LOW),
        (10, SpeedBand.MEDIUM),
        (39.9, SpeedBand.MEDIUM),
        (40, SpeedBand.HIGH),
        (120, SpeedBand.HIGH),
    ],
)
def test_classify_speed(speed: float | None, band: SpeedBand) -> None:
    assert classify_speed(speed) == band


def test_points_carry_speed_band() -> None:
    track = process_track([_ping(0, 0, 0, 5), _ping(0, 0.01, 1, 55)])
    assert [p.band for p in track.points] == [SpeedBand.LOW, SpeedBand.HIGH]
    assert track.segments[0].band == SpeedBand.HIGH


def test_fewer_than_two_pings_gives_empty_track() -> None:
    for pings in ([], [_ping(0, 0, 0)]):
        track = process_track(pings)
        assert track.points == ()
        assert track.stats.ping_count == 0
        assert track.stats.total_distance_km == 0.0


def test_all_pings_within_threshold_collapse_to_one_point() -> None:
    track = process_track([_ping(0, 0, 0), _ping(0, 0.00001, 1), _ping(0, 0.00002, 2)])

    assert len(track.points) == 1
    assert not track.has_path
    assert track.stats.total_distance_km == 0.0


def test_unsorted_input_processed_in_time_order() -> None:
    track = process_track([_ping(0, 0.002, 2), _ping(0, 0, 0)])
    assert track.start is not None and track.start.lng == 0
    assert track.end is not None and track.end.lng == 0.002


def test_compute_stats_treats_missing_speed_as_zero() -> None:
    stats = compute_stats([_ping(0, 0, 0, None), _ping(0, 0.001, 1, 10)])
    assert stats.avg_speed_kmh == pytest.approx(5.0)
