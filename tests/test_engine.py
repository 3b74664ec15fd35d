"""Tests for IntervalEngine batch processing and settings."""

import numpy as np
import pytest

from battingci.core.config import Settings, settings
from battingci.stats.bayesian import posterior_estimate
from battingci.stats.engine import IntervalEngine
from battingci.stats.errors import FitDivergence, InvalidParameter
from battingci.stats.intervals import credible_interval, tails_for_level
from battingci.stats.schemas import EntityRecord

PRIOR = (78.66, 224.2)


@pytest.fixture
def records():
    """Simulated careers drawn around a .260 league average."""
    rng = np.random.default_rng(2024)
    at_bats = rng.integers(1, 3000, size=2000)
    true_avg = rng.beta(*PRIOR, size=2000)
    hits = rng.binomial(at_bats, true_avg)
    return [
        EntityRecord(entity_id=f"player{i:04d}", successes=int(h), trials=int(ab))
        for i, (h, ab) in enumerate(zip(hits, at_bats))
    ]


class TestAnalyze:
    def test_fits_prior_and_covers_every_record(self, records):
        engine = IntervalEngine(min_trials=500)
        report = engine.analyze(records)

        assert report.prior == engine.prior
        assert report.prior.method == settings.FIT_METHOD
        assert report.prior.n_used == sum(1 for r in records if r.trials >= 500)
        assert report.prior.mean == pytest.approx(PRIOR[0] / sum(PRIOR), abs=0.01)
        assert len(report.results) == len(records)
        assert report.failures == []
        for res in report.results:
            assert 0.0 <= res.low <= res.point_estimate <= res.high <= 1.0

    def test_bad_records_reported_without_affecting_others(self, records):
        bad = [
            EntityRecord(entity_id="no_at_bats", successes=0, trials=0),
            EntityRecord(entity_id="too_many_hits", successes=12, trials=10),
        ]
        clean = IntervalEngine(prior=PRIOR).analyze(records[:50])
        mixed = IntervalEngine(prior=PRIOR).analyze(records[:25] + bad + records[25:50])

        assert [f.entity_id for f in mixed.failures] == ["no_at_bats", "too_many_hits"]
        assert mixed.results == clean.results

    def test_bad_records_skipped_when_fitting(self, records):
        engine = IntervalEngine(min_trials=500)
        engine.analyze(records + [EntityRecord(entity_id="bad", successes=-1, trials=600)])
        assert engine.prior.n_used == sum(1 for r in records if r.trials >= 500)

    def test_fit_failure_propagates(self):
        engine = IntervalEngine(min_trials=500)
        short = [EntityRecord(entity_id="rookie", successes=1, trials=4)]
        with pytest.raises(FitDivergence):
            engine.analyze(short)
        assert engine.prior is None

    def test_accepts_generator(self, records):
        report = IntervalEngine(prior=PRIOR).analyze(r for r in records[:10])
        assert len(report.results) == 10


class TestEstimate:
    def test_matches_module_functions(self):
        """Hank Aaron's career line with the batting-average prior."""
        record = EntityRecord(entity_id="aaronha01", successes=3771, trials=12364)
        res = IntervalEngine(prior=PRIOR).estimate(record)

        est = posterior_estimate(3771, 12364, *PRIOR)
        low, high = credible_interval(est.shape1_posterior, est.shape2_posterior, *tails_for_level(0.95))
        assert res.point_estimate == est.point_estimate
        assert (res.low, res.high) == (low, high)
        assert res.ratio == pytest.approx(3771 / 12364)
        assert res.shrinkage == pytest.approx(sum(PRIOR) / (sum(PRIOR) + 12364))

    def test_level_controls_width(self):
        record = EntityRecord(entity_id="x", successes=30, trials=100)
        wide = IntervalEngine(prior=PRIOR, level=0.95).estimate(record)
        narrow = IntervalEngine(prior=PRIOR, level=0.8).estimate(record)
        assert (narrow.high - narrow.low) < (wide.high - wide.low)

    def test_requires_prior(self):
        with pytest.raises(RuntimeError):
            IntervalEngine().estimate(EntityRecord(entity_id="x", successes=1, trials=2))


class TestPriorLifecycle:
    def test_given_prior_is_validated(self):
        with pytest.raises(InvalidParameter):
            IntervalEngine(prior=(0.0, 10.0))

    def test_prior_cannot_be_refit(self, records):
        engine = IntervalEngine(min_trials=500)
        engine.fit(records)
        with pytest.raises(RuntimeError):
            engine.fit(records)

    def test_given_prior_is_used_as_is(self, records):
        engine = IntervalEngine(prior=PRIOR)
        report = engine.analyze(records[:5])
        assert (report.prior.shape1, report.prior.shape2) == PRIOR
        assert report.prior.method == "given"


class TestSettings:
    def test_defaults(self):
        fresh = Settings(_env_file=None)
        assert fresh.MIN_TRIALS == 500
        assert fresh.CREDIBLE_LEVEL == 0.95
        assert fresh.FIT_METHOD == "mle"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("BATTINGCI_MIN_TRIALS", "250")
        monkeypatch.setenv("BATTINGCI_CREDIBLE_LEVEL", "0.9")
        fresh = Settings(_env_file=None)
        assert fresh.MIN_TRIALS == 250
        assert fresh.CREDIBLE_LEVEL == 0.9

    def test_engine_defaults_follow_settings(self):
        engine = IntervalEngine()
        assert engine.level == settings.CREDIBLE_LEVEL
        assert engine.min_trials == settings.MIN_TRIALS
