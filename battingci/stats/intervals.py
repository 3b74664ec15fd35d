"""Equal-tailed credible intervals from the Beta quantile function.

Also provides the two frequentist intervals the posterior intervals are
usually compared against: the Jeffreys interval and the exact
Clopper-Pearson interval.
"""

from __future__ import annotations

import math
import numbers

from scipy import stats as sp_stats
from scipy.special import betaincinv

from battingci.stats.errors import InvalidInput, InvalidParameter


# ======================================================================
# Boundary checks
# ======================================================================

def validate_shapes(shape1: float, shape2: float) -> None:
    """Raise ``InvalidParameter`` unless both Beta shapes are positive and finite."""
    for name, value in (("shape1", shape1), ("shape2", shape2)):
        if not math.isfinite(value) or value <= 0:
            raise InvalidParameter(f"{name} must be positive and finite, got {value!r}")


def _check_count(name: str, value) -> None:
    # bool is an Integral subclass but never a count
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInput(f"{name} must be an integer count, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    if not isinstance(value, numbers.Integral) and not float(value).is_integer():
        raise InvalidInput(f"{name} must be a whole number, got {value!r}")


def validate_counts(success: int, trial: int) -> None:
    """Raise ``InvalidInput`` unless both are finite whole numbers with
    ``trial > 0`` and ``0 <= success <= trial``.
    """
    _check_count("success", success)
    _check_count("trial", trial)
    if trial <= 0:
        raise InvalidInput(f"trial must be positive, got {trial}")
    if success < 0:
        raise InvalidInput(f"success must be non-negative, got {success}")
    if success > trial:
        raise InvalidInput(f"success ({success}) cannot exceed trial ({trial})")


def validate_tails(lower_tail: float, upper_tail: float) -> None:
    if not (0 <= lower_tail < upper_tail <= 1):
        raise InvalidInput(
            f"tails must satisfy 0 <= lower < upper <= 1, got ({lower_tail}, {upper_tail})"
        )


def tails_for_level(level: float) -> tuple[float, float]:
    """Split ``1 - level`` evenly between the two tails.

    The tails are not rounded, so a level just below 1 keeps a small but
    non-zero tail on each side.
    """
    if not 0 < level < 1:
        raise InvalidInput("level must be between 0 and 1 exclusive")
    lower_tail = (1 - level) / 2
    return (lower_tail, 1 - lower_tail)


# ======================================================================
# Bayesian credible interval
# ======================================================================

def credible_interval(
    shape1_posterior: float,
    shape2_posterior: float,
    lower_tail: float = 0.025,
    upper_tail: float = 0.975,
) -> tuple[float, float]:
    """Quantiles of Beta(shape1_posterior, shape2_posterior) at the given tails.

    Parameters
    ----------
    shape1_posterior, shape2_posterior : float
        Posterior Beta shapes; both must be strictly positive.
    lower_tail, upper_tail : float
        Tail probabilities, e.g. 0.025 and 0.975 for a 95% interval.

    Returns
    -------
    tuple[float, float]
        (low, high)

    Notes
    -----
    The posterior mean lies inside the interval whenever both shapes are at
    least 0.5.  Below that the density piles up at a boundary and an
    equal-tailed quantile can fall on the wrong side of the mean: Beta(0.001,
    1.001) has mean ~1e-3 but a 97.5% quantile ~1e-11.  The quantiles are
    returned as computed, never clamped.
    """
    validate_shapes(shape1_posterior, shape2_posterior)
    validate_tails(lower_tail, upper_tail)
    dist = sp_stats.beta(shape1_posterior, shape2_posterior)
    return (float(dist.ppf(lower_tail)), float(dist.ppf(upper_tail)))


# ======================================================================
# Frequentist comparisons
# ======================================================================

def jeffreys_interval(success: int, trial: int, level: float = 0.95) -> tuple[float, float]:
    """Jeffreys interval for a binomial proportion.

    Evaluated directly from the inverse regularized incomplete beta function
    with half a pseudo-count added to each outcome.  No boundary adjustment
    is applied at ``success == 0`` or ``success == trial``.
    """
    validate_counts(success, trial)
    lower_tail, upper_tail = tails_for_level(level)
    a = success + 0.5
    b = trial - success + 0.5
    return (float(betaincinv(a, b, lower_tail)), float(betaincinv(a, b, upper_tail)))


def clopper_pearson_interval(success: int, trial: int, level: float = 0.95) -> tuple[float, float]:
    """Exact (Clopper-Pearson) interval for ``success`` out of ``trial``.

    The bound on the side of an extreme observation is pinned to 0 or 1.
    """
    validate_counts(success, trial)
    lower_tail, upper_tail = tails_for_level(level)
    if success == 0:
        low = 0.0
    else:
        low = float(sp_stats.beta.ppf(lower_tail, success, trial - success + 1))
    if success == trial:
        high = 1.0
    else:
        high = float(sp_stats.beta.ppf(upper_tail, success + 1, trial - success))
    return (low, high)
