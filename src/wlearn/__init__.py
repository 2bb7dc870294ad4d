# wlearn/__init__.py
"""
wlearn: typed sample storage, feature generators and closed-form weak
learners for gradient boosting (scikit-learn style).

Exports:
    - Feature, FeatureType, MemoryDataset, Fold
    - DatasetGenerator and the generators in ``wlearn.generator``
    - the weak learners in ``wlearn.gboost``
"""
import logging

from .config import Execution, config_context, get_config, set_config
from .dataset import Fold, MemoryDataset, split_folds
from .exceptions import IncompatibleDataset, InvalidArgument, NotFittedError
from .feature import Feature, FeatureType, TaskType
from .generator import DatasetGenerator
from .gboost import (
    AffineWeakLearner,
    LinearWeakLearner,
    ProductWeakLearner,
    StumpWeakLearner,
    TableWeakLearner,
)
from .histogram import Histogram

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Execution",
    "config_context",
    "get_config",
    "set_config",
    "Feature",
    "FeatureType",
    "TaskType",
    "MemoryDataset",
    "Fold",
    "split_folds",
    "DatasetGenerator",
    "Histogram",
    "AffineWeakLearner",
    "LinearWeakLearner",
    "TableWeakLearner",
    "StumpWeakLearner",
    "ProductWeakLearner",
    "InvalidArgument",
    "IncompatibleDataset",
    "NotFittedError",
]
__version__ = "0.2.0"
