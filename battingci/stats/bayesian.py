"""Conjugate Beta-Binomial posterior for a success rate.

The prior is normally the empirical-Bayes fit from ``battingci.stats.priors``
(for batting averages something close to Beta(79, 224)).  The model is
immutable: ``update()`` returns a *new* ``BetaBinomial`` so the shared prior
is never touched by per-entity updates.
"""

from __future__ import annotations

from typing import NamedTuple

from scipy import stats as sp_stats

from battingci.stats.errors import InvalidInput
from battingci.stats.intervals import (
    credible_interval,
    tails_for_level,
    validate_counts,
    validate_shapes,
)


class PosteriorEstimate(NamedTuple):
    shape1_posterior: float
    shape2_posterior: float
    point_estimate: float


def posterior_estimate(success: int, trial: int, shape1: float, shape2: float) -> PosteriorEstimate:
    """Posterior shapes and posterior mean for one entity.

    Parameters
    ----------
    success : int
        Observed successes (e.g. hits).
    trial : int
        Observed trials (e.g. at-bats); must be positive and >= ``success``.
    shape1, shape2 : float
        Prior Beta shapes.

    Returns
    -------
    PosteriorEstimate
        ``(success + shape1, trial - success + shape2, posterior mean)``

    Raises ``InvalidInput`` for counts that are not finite whole numbers
    (NaN, inf, 2.5 or a bool) or that break ``0 <= success <= trial``,
    ``trial > 0``.  With prior shapes below 0.5 the point estimate can sit
    outside the equal-tailed credible interval; see ``credible_interval``.
    """
    validate_shapes(shape1, shape2)
    validate_counts(success, trial)
    shape1_posterior = success + shape1
    shape2_posterior = (trial - success) + shape2
    point = shape1_posterior / (shape1_posterior + shape2_posterior)
    return PosteriorEstimate(shape1_posterior, shape2_posterior, point)


def shrinkage_factor(trial: int, shape1: float, shape2: float) -> float:
    """Weight of the prior mean in the posterior mean.

    The posterior mean is ``w * prior_mean + (1 - w) * success / trial`` with
    ``w = (shape1 + shape2) / (shape1 + shape2 + trial)``.
    """
    validate_shapes(shape1, shape2)
    prior_strength = shape1 + shape2
    return prior_strength / (prior_strength + trial)


class BetaBinomial:
    """Immutable Beta-Binomial conjugate model.

    Parameters
    ----------
    prior_alpha : float
        Alpha parameter of the Beta prior (pseudo-successes).
    prior_beta : float
        Beta parameter of the Beta prior (pseudo-failures).
    """

    __slots__ = ("alpha", "beta")

    def __init__(self, prior_alpha: float, prior_beta: float) -> None:
        validate_shapes(prior_alpha, prior_beta)
        self.alpha = prior_alpha
        self.beta = prior_beta

    # ------------------------------------------------------------------
    # Posterior update (returns new instance)
    # ------------------------------------------------------------------

    def update(self, successes: int, trials: int) -> BetaBinomial:
        """Return a **new** BetaBinomial with the posterior after observing data.

        Raises ``InvalidInput`` unless ``trials > 0`` and
        ``0 <= successes <= trials``.
        """
        estimate = posterior_estimate(successes, trials, self.alpha, self.beta)
        return BetaBinomial(
            prior_alpha=estimate.shape1_posterior,
            prior_beta=estimate.shape2_posterior,
        )

    # ------------------------------------------------------------------
    # Posterior summaries
    # ------------------------------------------------------------------

    def posterior_mean(self) -> float:
        """Expected value of the Beta distribution: alpha / (alpha + beta)."""
        return self.alpha / (self.alpha + self.beta)

    def posterior_variance(self) -> float:
        """Variance of the Beta distribution.

        Var = alpha * beta / ((alpha + beta)^2 * (alpha + beta + 1))
        """
        ab = self.alpha + self.beta
        return (self.alpha * self.beta) / (ab * ab * (ab + 1))

    def quantiles(self, lower_tail: float, upper_tail: float) -> tuple[float, float]:
        return credible_interval(self.alpha, self.beta, lower_tail, upper_tail)

    def credible_interval(self, width: float = 0.95) -> tuple[float, float]:
        """Equal-tailed credible interval containing ``width`` of the mass.

        Returns
        -------
        tuple[float, float]
            (lower_bound, upper_bound)
        """
        lower_tail, upper_tail = tails_for_level(width)
        return self.quantiles(lower_tail, upper_tail)

    # ------------------------------------------------------------------
    # HDI (Highest Density Interval)
    # ------------------------------------------------------------------

    def hdi(self, credible_mass: float = 0.95) -> tuple[float, float]:
        """Highest Density Interval.

        The narrowest single interval containing ``credible_mass`` of the
        probability.  Shape determines how it is found:

        - unimodal (both shapes > 1, or uniform): bounded search over the
          lower tail mass
        - monotone density (one shape <= 1 <= the other): the interval is
          pinned to the boundary where the density is highest
        - U-shaped (both shapes < 1, e.g. a weak prior with no data): the
          true highest-density region is two disjoint pieces at 0 and 1.
          The narrower of the two boundary-pinned intervals is returned, so
          the result always touches 0 or 1.

        Parameters
        ----------
        credible_mass : float
            Probability mass to include (e.g. 0.95 for 95% HDI).

        Returns
        -------
        tuple[float, float]
            (lower_bound, upper_bound)
        """
        from scipy.optimize import minimize_scalar

        if not 0 < credible_mass < 1:
            raise InvalidInput("credible_mass must be between 0 and 1 exclusive")
        dist = sp_stats.beta(self.alpha, self.beta)
        pinned_low = (0.0, float(dist.ppf(credible_mass)))
        pinned_high = (float(dist.ppf(1 - credible_mass)), 1.0)

        if self.alpha < 1 and self.beta < 1:
            return min(pinned_low, pinned_high, key=lambda iv: iv[1] - iv[0])
        if self.alpha != self.beta:
            if self.alpha <= 1 <= self.beta:
                return pinned_low
            if self.beta <= 1 <= self.alpha:
                return pinned_high

        def interval_width(low_tail: float) -> float:
            return float(dist.ppf(low_tail + credible_mass) - dist.ppf(low_tail))

        result = minimize_scalar(
            interval_width,
            bounds=(0.0, 1.0 - credible_mass),
            method="bounded",
        )
        return (float(dist.ppf(result.x)), float(dist.ppf(result.x + credible_mass)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BetaBinomial):
            return NotImplemented
        return self.alpha == other.alpha and self.beta == other.beta

    def __hash__(self) -> int:
        return hash((self.alpha, self.beta))

    def __repr__(self) -> str:
        return f"BetaBinomial(alpha={self.alpha:.3f}, beta={self.beta:.3f})"
