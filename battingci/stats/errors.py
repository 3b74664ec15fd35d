"""Exceptions raised by the estimation pipeline.

All of them subclass ``ValueError`` so existing ``except ValueError`` handlers
keep catching bad input.
"""


class EstimationError(ValueError):
    """Base class for prior-fitting, posterior and interval failures."""


class FitDivergence(EstimationError):
    """Prior fitting did not converge, or its input was empty or degenerate."""


class InvalidInput(EstimationError):
    """Success/trial counts or tail probabilities are out of range."""


class InvalidParameter(EstimationError):
    """A Beta shape parameter is not strictly positive and finite."""
