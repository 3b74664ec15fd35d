"""Empirical-Bayes estimation of the shared Beta prior.

The prior is fit once per dataset from the observed success ratios of
entities with enough trials (for batting averages, players with at least
500 at-bats), so that small-sample noise does not widen the prior.  Two
estimators are available:

1. ``mle``: maximum likelihood, optimized over log-shapes with L-BFGS-B
   and started from the method-of-moments estimate.
2. ``moments``: the closed-form method-of-moments estimate.

Fitting never falls back to a default prior: empty, degenerate or
non-converging input raises ``FitDivergence``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from scipy.optimize import minimize
from scipy.special import betaln, digamma

from battingci.core.config import settings
from battingci.stats.errors import FitDivergence, InvalidInput

logger = logging.getLogger(__name__)

FIT_METHODS = ("mle", "moments")


# ======================================================================
# Input checks
# ======================================================================

def _check_ratios(arr: np.ndarray) -> None:
    if arr.size == 0:
        raise FitDivergence("No ratios left to fit after filtering")
    if not np.all(np.isfinite(arr)):
        raise FitDivergence("Ratios must be finite")
    if np.any(arr <= 0) or np.any(arr >= 1):
        raise FitDivergence("Ratios must lie strictly between 0 and 1 for a Beta fit")
    if arr.size < 2:
        raise FitDivergence("Need at least 2 ratios to fit a Beta prior")
    if np.ptp(arr) == 0:
        raise FitDivergence("All ratios are identical; the prior variance is zero")


# ======================================================================
# Method of moments
# ======================================================================

def _moment_estimate(arr: np.ndarray) -> Optional[tuple[float, float]]:
    m = float(np.mean(arr))
    v = float(np.var(arr, ddof=1))  # unbiased sample variance
    if v <= 0 or v >= m * (1 - m):
        return None
    common = m * (1 - m) / v - 1
    return (m * common, (1 - m) * common)


def fit_beta_moment_matching(ratios: Sequence[float]) -> tuple[float, float]:
    """Fit a Beta distribution to observed ratios via moment matching.

    Given sample mean m and variance v:
        alpha = m * (m*(1-m)/v - 1)
        beta  = (1-m) * (m*(1-m)/v - 1)

    Raises
    ------
    FitDivergence
        If the ratios are degenerate or their variance is too large for
        any Beta distribution (v >= m*(1-m)).
    """
    arr = np.asarray(ratios, dtype=float)
    _check_ratios(arr)
    estimate = _moment_estimate(arr)
    if estimate is None:
        raise FitDivergence("Sample variance is outside the range a Beta distribution can match")
    return estimate


# ======================================================================
# Maximum likelihood
# ======================================================================

def beta_log_likelihood(ratios: Sequence[float], shape1: float, shape2: float) -> float:
    """Total log-likelihood of ``ratios`` under Beta(shape1, shape2)."""
    arr = np.asarray(ratios, dtype=float)
    return float(
        np.sum((shape1 - 1) * np.log(arr) + (shape2 - 1) * np.log1p(-arr))
        - arr.size * betaln(shape1, shape2)
    )


def _fit_mle(arr: np.ndarray, max_iter: int) -> tuple[float, float]:
    # Sufficient statistics; the objective is the per-observation NLL so the
    # optimizer tolerance does not depend on the sample size.
    mean_log = float(np.mean(np.log(arr)))
    mean_log1m = float(np.mean(np.log1p(-arr)))

    def nll(theta: np.ndarray) -> float:
        a, b = np.exp(theta)
        return float(betaln(a, b) - (a - 1) * mean_log - (b - 1) * mean_log1m)

    def grad(theta: np.ndarray) -> np.ndarray:
        a, b = np.exp(theta)
        psi_ab = digamma(a + b)
        return np.array([
            a * (digamma(a) - psi_ab - mean_log),
            b * (digamma(b) - psi_ab - mean_log1m),
        ])

    start = _moment_estimate(arr) or (1.0, 1.0)
    with np.errstate(over="ignore", invalid="ignore"):
        result = minimize(
            nll,
            np.log(start),
            jac=grad,
            method="L-BFGS-B",
            options={"maxiter": max_iter},
        )
    if not result.success:
        raise FitDivergence(f"Beta MLE did not converge: {result.message}")
    shape1, shape2 = (float(x) for x in np.exp(result.x))
    return (shape1, shape2)


# ======================================================================
# Public entry points
# ======================================================================

def fit_prior(
    ratios: Sequence[float],
    min_trials: Optional[int] = None,
    trials: Optional[Sequence[int]] = None,
    method: Optional[str] = None,
) -> tuple[float, float]:
    """Fit the shared Beta prior to observed success ratios.

    Parameters
    ----------
    ratios : Sequence[float]
        Observed success/trial ratios, one per entity.
    min_trials : int | None
        Only entities with at least this many trials contribute.  Applied
        only when ``trials`` is given, defaulting to ``settings.MIN_TRIALS``.
        Without ``trials`` the ratios are taken as already filtered.
    trials : Sequence[int] | None
        Trial counts parallel to ``ratios``.
    method : str | None
        ``"mle"`` or ``"moments"``; defaults to ``settings.FIT_METHOD``.

    Returns
    -------
    tuple[float, float]
        (shape1, shape2) of the fitted Beta prior.

    Raises
    ------
    FitDivergence
        Empty or degenerate input after filtering, or the optimizer failed.
    InvalidInput
        Mismatched ``ratios``/``trials`` or an unknown method.
    """
    method = method or settings.FIT_METHOD
    if method not in FIT_METHODS:
        raise InvalidInput(f"Unknown fit method {method!r}; expected one of {FIT_METHODS}")

    arr = np.asarray(ratios, dtype=float)
    if arr.ndim != 1:
        raise InvalidInput("ratios must be a one-dimensional sequence")

    if trials is not None:
        if min_trials is None:
            min_trials = settings.MIN_TRIALS
        counts = np.asarray(trials, dtype=float)
        if counts.shape != arr.shape:
            raise InvalidInput("ratios and trials must have the same length")
        arr = arr[counts >= min_trials]
    elif min_trials:
        logger.debug("No trial counts given; treating ratios as filtered at %d trials", min_trials)

    logger.debug("Fitting Beta prior (%s) to %d ratios", method, arr.size)
    try:
        _check_ratios(arr)
        if method == "moments":
            shape1, shape2 = fit_beta_moment_matching(arr)
        else:
            shape1, shape2 = _fit_mle(arr, settings.FIT_MAX_ITER)
        _check_fitted(shape1, shape2)
    except FitDivergence as exc:
        logger.warning("Prior fit failed on %d ratios: %s", arr.size, exc)
        raise

    logger.info("Fitted Beta prior: shape1=%.4f shape2=%.4f (n=%d)", shape1, shape2, arr.size)
    return (shape1, shape2)


def fit_prior_from_counts(
    successes: Sequence[int],
    trials: Sequence[int],
    min_trials: Optional[int] = None,
    method: Optional[str] = None,
) -> tuple[float, float]:
    """Like ``fit_prior`` but computes the ratios from raw counts."""
    raw_s = np.asarray(successes)
    raw_t = np.asarray(trials)
    if raw_s.shape != raw_t.shape:
        raise InvalidInput("successes and trials must have the same length")
    if raw_s.dtype == bool or raw_t.dtype == bool:
        raise InvalidInput("counts must be integers, not booleans")
    try:
        s = raw_s.astype(float)
        t = raw_t.astype(float)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"counts must be numeric: {exc}") from exc
    if not (np.all(np.isfinite(s)) and np.all(np.isfinite(t))):
        raise InvalidInput("counts must be finite")
    if np.any(s != np.floor(s)) or np.any(t != np.floor(t)):
        raise InvalidInput("counts must be whole numbers")
    if np.any(t <= 0):
        raise InvalidInput("trials must be positive")
    if np.any(s < 0) or np.any(s > t):
        raise InvalidInput("successes must lie between 0 and trials")
    return fit_prior(s / t, min_trials=min_trials, trials=t, method=method)


def _check_fitted(shape1: float, shape2: float) -> None:
    for value in (shape1, shape2):
        if not np.isfinite(value) or value <= 0:
            raise FitDivergence(f"Fitted shape {value!r} is not positive and finite")
        if value > settings.FIT_MAX_SHAPE:
            raise FitDivergence(
                f"Fitted shape {value:.4g} exceeds FIT_MAX_SHAPE={settings.FIT_MAX_SHAPE:.4g}"
            )
