"""
Product weak learner: element-wise product of a fixed number of terms.

The terms are fit greedily:

* start with ``product(x) = 1``;
* for every term ``k < degree``, fit each prototype on the residual divided
  by the current product, keep the one minimizing
  ``sum (residual - product(x) * term_k(x))^2`` and fold it into the product.

A missing feature value of any term makes the prediction zero.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from sklearn.base import clone

from ..exceptions import IncompatibleDataset, InvalidArgument, NotFittedError
from . import registry
from .base import WeakLearner, prepare_fit, read_field, write_field
from .cluster import Cluster

logger = logging.getLogger(__name__)


class ProductWeakLearner(WeakLearner):
    """Greedy product of weak learners chosen among prototypes.

    Parameters
    ----------
    mode : {"real"}, default="real"
    degree : int, default=1
        Number of terms.
    prototypes : list, optional
        Candidate terms: registry identifiers or ``(id, learner)`` pairs.
        Extended with :meth:`add`.

    Attributes
    ----------
    terms_ : list of (str, WeakLearner)
        Fitted terms with the identifier of their prototype.
    score_ : float
    """

    def __init__(self, mode: str = "real", degree: int = 1, prototypes=None):
        super().__init__(mode)
        self.degree = degree
        self.prototypes = prototypes
        self.terms_ = []
        self.score_ = math.inf

    def add(self, id: str, prototype=None) -> "ProductWeakLearner":
        """Add a prototype term, by default the registered learner ``id``."""
        if prototype is None:
            prototype = registry.get(id)
        if not isinstance(prototype, WeakLearner):
            raise InvalidArgument(f"product weak learner: invalid prototype {prototype!r}")
        self.prototypes = list(self.prototypes or []) + [(id, prototype)]
        return self

    def _prototypes(self) -> list:
        protos = []
        for proto in self.prototypes or []:
            if isinstance(proto, str):
                protos.append((proto, registry.get(proto)))
            else:
                id, learner = proto
                protos.append((id, learner))
        return protos

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def fit(self, dataset, fold, gradients, indices=None, execution=None) -> float:
        self._check_mode()
        if int(self.degree) < 1:
            raise InvalidArgument(f"product weak learner: invalid degree {self.degree}")
        protos = self._prototypes()
        if not protos:
            raise InvalidArgument("product weak learner: no prototype to fit")

        samples, residuals, indices = prepare_fit(dataset, fold, gradients, indices)
        axes = tuple(range(1, residuals.ndim))
        product = np.ones_like(residuals)
        terms, score = [], math.inf
        for _ in range(int(self.degree)):
            usable = indices[np.all(product[indices] != 0.0, axis=axes)]
            pseudo = np.zeros_like(residuals)
            pseudo[usable] = -residuals[usable] / product[usable]

            best = None
            for id, proto in protos:
                term = clone(proto)
                if math.isinf(term.fit(dataset, fold, pseudo, usable, execution)):
                    continue
                outputs = term.predict(dataset, fold)
                error = residuals[indices] - product[indices] * outputs[indices]
                term_score = float((error * error).sum())
                if best is None or term_score < best[0]:
                    best = (term_score, id, term, outputs)

            if best is None:
                logger.warning("product weak learner: no term could be fit")
                self.terms_, self.score_ = [], math.inf
                return self.score_

            score, id, term, outputs = best
            product = product * outputs
            terms.append((id, term))

        self.terms_ = terms
        self.score_ = score
        logger.debug("product weak learner: terms %s with score %.6g", [id for id, _ in terms], score)
        return self.score_

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def compatible(self, dataset) -> None:
        if not self.terms_:
            raise IncompatibleDataset("product weak learner: empty weak learner")
        for _, term in self.terms_:
            term.compatible(dataset)

    def predict(self, dataset, fold, out=None) -> np.ndarray:
        self.compatible(dataset)
        outputs = None
        for _, term in self.terms_:
            values = term.predict(dataset, fold)
            outputs = values if outputs is None else outputs * values
        if out is None:
            return outputs
        if out.shape != outputs.shape:
            raise InvalidArgument(f"prediction buffer must be of shape {outputs.shape}, got {out.shape}")
        out[...] = outputs
        return out

    def split(self, dataset, fold, indices=None) -> Cluster:
        """A single group holding the samples where every term has a value."""
        self.compatible(dataset)
        clusters = [term.split(dataset, fold, indices) for _, term in self.terms_]
        given = np.all([cluster.assignment >= 0 for cluster in clusters], axis=0)
        cluster = Cluster(given.size, 1)
        cluster.assign(np.flatnonzero(given), 0)
        return cluster

    def scale(self, vector) -> None:
        if not self.terms_:
            raise NotFittedError(type(self).__name__)
        self.terms_[0][1].scale(vector)

    def groups(self) -> int:
        return 1

    def features(self) -> np.ndarray:
        if not self.terms_:
            return np.zeros(0, dtype=np.int64)
        return np.concatenate([term.features() for _, term in self.terms_])

    def odim(self) -> tuple:
        if not self.terms_:
            raise NotFittedError(type(self).__name__)
        return self.terms_[0][1].odim()

    def describe(self, dataset) -> str:
        if not self.terms_:
            raise NotFittedError(type(self).__name__)
        return " * ".join(f"({term.describe(dataset)})" for _, term in self.terms_)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def write(self, stream) -> None:
        super().write(stream)
        write_field(stream, "i", int(self.degree))
        write_field(stream, "i", len(self.terms_))
        for id, term in self.terms_:
            encoded = id.encode("utf-8")
            write_field(stream, "i", len(encoded))
            stream.write(encoded)
            term.write(stream)

    def read(self, stream) -> "ProductWeakLearner":
        super().read(stream)
        self.degree = read_field(stream, "i")
        terms = []
        for _ in range(read_field(stream, "i")):
            size = read_field(stream, "i")
            id = stream.read(size).decode("utf-8")
            terms.append((id, registry.get(id).read(stream)))
        self.terms_ = terms
        return self
