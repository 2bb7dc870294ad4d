"""
wlearn.generator
================

Feature generators: derived features computed lazily from a dataset.
"""
from .base import Generator
from .dataset import DatasetGenerator
from .elemwise import ElemwiseGenerator, MClassIdentity, ScalarIdentity, SClassIdentity, StructIdentity
from .gradient import ElemwiseGradient
from .histogram import HistogramMedians, PercentileHistogramMedians, RatioHistogramMedians
from .mapping import make_pairwise, select_mclass, select_scalar, select_sclass, select_struct
from .pairwise import PairwiseGenerator, PairwiseProduct, PairwiseProductSignClass
from .scalar import Scalar2Scalar, Scalar2SClass, Sign, SignClass, SLog1p

__all__ = [
    "Generator",
    "DatasetGenerator",
    "ElemwiseGenerator",
    "SClassIdentity",
    "MClassIdentity",
    "ScalarIdentity",
    "StructIdentity",
    "ElemwiseGradient",
    "HistogramMedians",
    "RatioHistogramMedians",
    "PercentileHistogramMedians",
    "PairwiseGenerator",
    "PairwiseProduct",
    "PairwiseProductSignClass",
    "Scalar2Scalar",
    "Scalar2SClass",
    "SLog1p",
    "Sign",
    "SignClass",
    "select_scalar",
    "select_struct",
    "select_sclass",
    "select_mclass",
    "make_pairwise",
]
