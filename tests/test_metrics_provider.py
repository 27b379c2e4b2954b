import json
import random

import pytest

from metrics_provider import (
    DEFAULT_GEAR_QUALITY,
    BandFileMetricsProvider,
    StaticMetricsProvider,
    validate_snapshot,
)
from performance_models import MetricsSnapshot, MetricsUnavailableError, PerformanceContext


def _write_roster(tmp_path, bands):
    roster_path = tmp_path / "bands.json"
    roster_path.write_text(json.dumps({"bands": bands}), encoding="utf-8")
    return roster_path


def test_band_file_aggregates_gear_and_familiarity(tmp_path):
    roster_path = _write_roster(
        tmp_path,
        {
            "band-1": {
                "name": "The Amps",
                "chemistry": 72,
                "equipment": [
                    {"name": "Tube Amp", "quality_rating": 80, "is_equipped": True},
                    {"name": "Pedal", "quality_rating": 60, "is_equipped": True},
                    {"name": "Spare", "quality_rating": 10, "is_equipped": False},
                ],
                "songs": [{"title": "A", "familiarity": 90}, {"title": "B", "familiarity": 50}],
                "setlist_flow": 78,
            }
        },
    )
    provider = BandFileMetricsProvider(roster_path)
    snapshot = provider.fetch(PerformanceContext(band_id="band-1"), random.Random(0))
    assert snapshot == MetricsSnapshot(song_familiarity=70.0, gear_quality=70.0, band_chemistry=72.0, setlist_flow=78.0)


def test_empty_gear_and_songs_fall_back_and_setlist_is_simulated(tmp_path):
    roster_path = _write_roster(tmp_path, {"band-2": {"chemistry": 40}})
    snapshot = BandFileMetricsProvider(roster_path).fetch(PerformanceContext(band_id="band-2"), random.Random(3))
    assert snapshot.gear_quality == DEFAULT_GEAR_QUALITY
    assert snapshot.song_familiarity == 50.0
    assert 70.0 <= snapshot.setlist_flow <= 90.0


@pytest.mark.parametrize(
    "bands, band_id",
    [
        ({}, "band-1"),
        ({"band-1": {"chemistry": 140}}, "band-1"),
        ({"band-1": {"chemistry": "high"}}, "band-1"),
        ({"band-1": {}}, "band-1"),
        ({"band-1": {"chemistry": 50}}, ""),
    ],
)
def test_bad_band_data_raises(tmp_path, bands, band_id):
    provider = BandFileMetricsProvider(_write_roster(tmp_path, bands))
    with pytest.raises(MetricsUnavailableError):
        provider.fetch(PerformanceContext(band_id=band_id), random.Random(0))


def test_missing_or_corrupt_roster_raises(tmp_path):
    with pytest.raises(MetricsUnavailableError):
        BandFileMetricsProvider(tmp_path / "missing.json").load_band("band-1")

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    with pytest.raises(MetricsUnavailableError):
        BandFileMetricsProvider(corrupt).load_band("band-1")

    wrong_shape = tmp_path / "wrong.json"
    wrong_shape.write_text("[]", encoding="utf-8")
    with pytest.raises(MetricsUnavailableError):
        BandFileMetricsProvider(wrong_shape).load_band("band-1")


def test_validate_snapshot_checks_every_field():
    good = MetricsSnapshot(song_familiarity=0, gear_quality=100, band_chemistry=50.5, setlist_flow=75)
    assert validate_snapshot(good) is good
    for bad in (
        MetricsSnapshot(song_familiarity=-1, gear_quality=50, band_chemistry=50, setlist_flow=50),
        MetricsSnapshot(song_familiarity=50, gear_quality=float("nan"), band_chemistry=50, setlist_flow=50),
        MetricsSnapshot(song_familiarity=50, gear_quality=50, band_chemistry=None, setlist_flow=50),
    ):
        with pytest.raises(MetricsUnavailableError):
            validate_snapshot(bad)


def test_static_provider_returns_its_snapshot():
    snapshot = MetricsSnapshot(song_familiarity=10, gear_quality=20, band_chemistry=30, setlist_flow=40)
    assert StaticMetricsProvider(snapshot).fetch(PerformanceContext(), random.Random(0)) == snapshot


@pytest.mark.parametrize("not_a_snapshot", [None, {"song_familiarity": 50}, (50, 50, 50, 50)])
def test_validate_snapshot_rejects_other_types(not_a_snapshot):
    with pytest.raises(MetricsUnavailableError):
        validate_snapshot(not_a_snapshot)
