import pytest

from outcome_store import JsonOutcomeStore, OutcomePersister, OutcomeStoreError
from performance_models import PerformanceContext, PerformanceMetrics, PerformanceResult


def _result(score=80, payment=9000, fame=1300, merch=1500, fans=250):
    metrics = PerformanceMetrics(80, 60, 70, 75, 65, 70)
    return PerformanceResult(
        performance_score=score,
        crowd_energy_peak=72.0,
        crowd_energy_avg=61,
        payment_earned=payment,
        fame_earned=fame,
        merch_revenue=merch,
        new_fans_gained=fans,
        critic_score=78,
        fan_score=85,
        review_headline="Energetic Show",
        review_summary="The band delivered a good performance with a score of 80/100.",
        highlights=("Great crowd interaction!",),
        metrics=metrics,
        crowd_energy_history=(50.0, 72.0, 61.0),
    )


def test_store_satisfies_the_persister_protocol(tmp_path):
    assert isinstance(JsonOutcomeStore(tmp_path / "history.json"), OutcomePersister)


def test_persist_records_history_and_applies_economy(tmp_path):
    store = JsonOutcomeStore(tmp_path / "nested" / "history.json", clock=lambda: 1000.0)
    context = PerformanceContext(band_id="band-1", venue_name="Riverside Fest", slot_type="headliner")
    store.persist(context, _result())
    store.persist(context, _result(payment=100, fame=10, merch=5, fans=1))
    store.persist(PerformanceContext(band_id="band-2"), _result())

    history = store.history("band-1")
    assert len(history) == 2
    assert history[0]["venue_name"] == "Riverside Fest"
    assert history[0]["recorded_at"] == 1000.0
    assert history[0]["result"]["highlights"] == ["Great crowd interaction!"]
    assert len(store.history()) == 3

    totals = store.band_totals("band-1")
    assert totals.fame == 1310
    assert totals.balance == 9000 + 1500 + 100 + 5
    assert totals.fans == 251
    assert totals.performances == 2


def test_unknown_band_has_zero_totals(tmp_path):
    totals = JsonOutcomeStore(tmp_path / "history.json").band_totals("nobody")
    assert (totals.fame, totals.balance, totals.performances) == (0, 0, 0)


def test_corrupt_store_raises(tmp_path):
    store_path = tmp_path / "history.json"
    store_path.write_text("nope", encoding="utf-8")
    with pytest.raises(OutcomeStoreError):
        JsonOutcomeStore(store_path).persist(PerformanceContext(band_id="b"), _result())
