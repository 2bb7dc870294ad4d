"""
wlearn.exceptions
=================

Errors raised by the storage, generator and weak-learner layers.

All of them derive from :class:`ValueError` so callers that already guard
scikit-learn style estimators with ``except ValueError`` keep working.
An empty fit (no candidate feature with any given value) is *not* an error:
weak learners report it through an infinite score.
"""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Malformed configuration, index or value passed to the library."""


class IncompatibleDataset(ValueError):
    """A fitted weak learner does not match the dataset it is applied to."""


class NotFittedError(ValueError):
    """A generator or weak learner was used before calling ``fit``."""

    def __init__(self, what: str = "Estimator"):
        super().__init__(f"{what} not fitted. Call fit(...) first.")
