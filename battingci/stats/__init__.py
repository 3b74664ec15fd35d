"""Empirical-Bayes credible intervals for success/trial data.

Public API:
- fit_prior: Maximum-likelihood Beta prior from observed ratios
- posterior_estimate: Posterior shapes and posterior mean for one entity
- credible_interval: Equal-tailed interval from the Beta quantile function
- BetaBinomial: Immutable conjugate model with HDI support
- IntervalEngine: Batch orchestrator over many entity records
"""

from battingci.stats.bayesian import (
    BetaBinomial,
    PosteriorEstimate,
    posterior_estimate,
    shrinkage_factor,
)
from battingci.stats.engine import IntervalEngine
from battingci.stats.errors import (
    EstimationError,
    FitDivergence,
    InvalidInput,
    InvalidParameter,
)
from battingci.stats.intervals import (
    clopper_pearson_interval,
    credible_interval,
    jeffreys_interval,
    tails_for_level,
)
from battingci.stats.priors import (
    fit_beta_moment_matching,
    fit_prior,
    fit_prior_from_counts,
)
from battingci.stats.schemas import EntityRecord

__all__ = [
    "BetaBinomial",
    "PosteriorEstimate",
    "posterior_estimate",
    "shrinkage_factor",
    "IntervalEngine",
    "EstimationError",
    "FitDivergence",
    "InvalidInput",
    "InvalidParameter",
    "clopper_pearson_interval",
    "credible_interval",
    "jeffreys_interval",
    "tails_for_level",
    "fit_beta_moment_matching",
    "fit_prior",
    "fit_prior_from_counts",
    "EntityRecord",
]
