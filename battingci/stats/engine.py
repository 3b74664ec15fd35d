"""IntervalEngine: fits the shared prior once, then computes posterior
estimates and credible intervals for every entity in a dataset.

Steps for ``analyze``:
1. Fit the empirical-Bayes prior from entities with enough trials (once)
2. Update the prior with each entity's counts
3. Compute the posterior mean and the equal-tailed credible interval
4. Collect per-entity failures without aborting the rest of the batch
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from battingci.core.config import settings
from battingci.stats.bayesian import posterior_estimate, shrinkage_factor
from battingci.stats.errors import EstimationError
from battingci.stats.intervals import (
    credible_interval,
    tails_for_level,
    validate_counts,
    validate_shapes,
)
from battingci.stats.priors import fit_prior_from_counts
from battingci.stats.schemas import (
    EntityFailure,
    EntityInterval,
    EntityRecord,
    IntervalReport,
    PriorFit,
)

logger = logging.getLogger(__name__)


class IntervalEngine:
    """Empirical-Bayes credible intervals over a batch of entity records.

    Parameters
    ----------
    prior : tuple[float, float] | None
        Known prior shapes.  When omitted the prior is fit from the first
        batch passed to ``fit`` or ``analyze``.
    level : float | None
        Credibility level; defaults to ``settings.CREDIBLE_LEVEL``.
    min_trials : int | None
        Trial threshold for prior fitting; defaults to ``settings.MIN_TRIALS``.
    method : str | None
        Prior fitting method; defaults to ``settings.FIT_METHOD``.
    """

    def __init__(
        self,
        prior: Optional[tuple[float, float]] = None,
        level: Optional[float] = None,
        min_trials: Optional[int] = None,
        method: Optional[str] = None,
    ) -> None:
        self.level = level if level is not None else settings.CREDIBLE_LEVEL
        self.lower_tail, self.upper_tail = tails_for_level(self.level)
        self.min_trials = min_trials if min_trials is not None else settings.MIN_TRIALS
        self.method = method or settings.FIT_METHOD
        self._prior: Optional[PriorFit] = None
        if prior is not None:
            validate_shapes(*prior)
            self._prior = PriorFit(shape1=prior[0], shape2=prior[1], method="given")

    @property
    def prior(self) -> Optional[PriorFit]:
        return self._prior

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fit(self, records: Iterable[EntityRecord]) -> PriorFit:
        """Fit the prior from ``records``.  The prior cannot be refit afterwards."""
        if self._prior is not None:
            raise RuntimeError("Prior is already set; create a new engine to refit")

        successes: list[int] = []
        trials: list[int] = []
        for record in records:
            try:
                validate_counts(record.successes, record.trials)
            except EstimationError as exc:
                logger.warning("Excluding %s from prior fit: %s", record.entity_id, exc)
                continue
            successes.append(record.successes)
            trials.append(record.trials)

        shape1, shape2 = fit_prior_from_counts(
            successes, trials, min_trials=self.min_trials, method=self.method
        )
        self._prior = PriorFit(
            shape1=shape1,
            shape2=shape2,
            method=self.method,
            n_used=sum(1 for t in trials if t >= self.min_trials),
        )
        return self._prior

    def estimate(self, record: EntityRecord) -> EntityInterval:
        """Posterior estimate and credible interval for one record."""
        if self._prior is None:
            raise RuntimeError("No prior available; call fit() first")
        shape1, shape2 = self._prior.shape1, self._prior.shape2

        estimate = posterior_estimate(record.successes, record.trials, shape1, shape2)
        low, high = credible_interval(
            estimate.shape1_posterior,
            estimate.shape2_posterior,
            self.lower_tail,
            self.upper_tail,
        )
        return EntityInterval(
            entity_id=record.entity_id,
            successes=record.successes,
            trials=record.trials,
            ratio=record.ratio,
            shape1_posterior=estimate.shape1_posterior,
            shape2_posterior=estimate.shape2_posterior,
            point_estimate=estimate.point_estimate,
            low=low,
            high=high,
            shrinkage=shrinkage_factor(record.trials, shape1, shape2),
        )

    def analyze(self, records: Iterable[EntityRecord]) -> IntervalReport:
        """Compute intervals for every record, fitting the prior first if needed.

        Records that fail validation are listed in ``failures``; they do not
        affect the results for other entities.
        """
        records = list(records)
        if self._prior is None:
            self.fit(records)

        results: list[EntityInterval] = []
        failures: list[EntityFailure] = []
        for record in records:
            try:
                results.append(self.estimate(record))
            except EstimationError as exc:
                logger.warning("Skipping %s: %s", record.entity_id, exc)
                failures.append(EntityFailure(entity_id=record.entity_id, error=str(exc)))

        logger.info(
            "Computed %d intervals at level %.3f (%d failed)",
            len(results),
            self.level,
            len(failures),
        )
        return IntervalReport(
            prior=self._prior,
            level=self.level,
            results=results,
            failures=failures,
        )
