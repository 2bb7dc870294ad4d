"""
wlearn.gboost
=============

Weak learners fitted on residuals, as used by a gradient boosting loop.
"""
from functools import partial

from . import registry
from .affine import AffineWeakLearner, LinearWeakLearner
from .base import FeatureWeakLearner, WeakLearner
from .cluster import Cluster
from .product import ProductWeakLearner
from .stump import StumpWeakLearner
from .table import TableWeakLearner

registry.register("linear", LinearWeakLearner, "linear weak learner: a * x + b")
registry.register("lin1", partial(AffineWeakLearner, fun="lin"), "affine weak learner: a * x + b")
registry.register("log1", partial(AffineWeakLearner, fun="log"), "affine weak learner: a * sign(x) * log(1 + |x|) + b")
registry.register("sin1", partial(AffineWeakLearner, fun="sin"), "affine weak learner: a * sin(x) + b")
registry.register("cos1", partial(AffineWeakLearner, fun="cos"), "affine weak learner: a * cos(x) + b")
registry.register("table", TableWeakLearner, "look-up table on a single-label feature")
registry.register("stump", StumpWeakLearner, "decision stump on a scalar feature")
registry.register("product", ProductWeakLearner, "feature-wise product weak learner")

__all__ = [
    "WeakLearner",
    "FeatureWeakLearner",
    "AffineWeakLearner",
    "LinearWeakLearner",
    "TableWeakLearner",
    "StumpWeakLearner",
    "ProductWeakLearner",
    "Cluster",
    "registry",
]
