# -*- coding: utf-8 -*-
"""
textree.splitter
================

Splitters own the rows that reach one node of a tree under construction and
decide how to divide them.  :meth:`Splitter.split` returns a
:class:`SplitResult` holding the decision rule ``X[:, feature] <= threshold``
and two child splitters, or ``None`` when the node should become a leaf.

:class:`GiniSplitter` searches every feature and every observed threshold for
the split with the highest information gain (decrease in Gini impurity).
Children remember the size of the original training set, and a split is only
accepted when its gain, scaled by the fraction of the training set that
reached the node, is at least ``min_impurity_decrease``.

:class:`RandomSplitter` splits on a random row's value of a random feature
until a depth budget runs out.  It is useful to exercise tree code
independently of the Gini search.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from joblib import effective_n_jobs
from sklearn.utils import check_random_state

from ._parallel import parallel_map

# The minimum impurity improvement required to continue splitting.
MIN_IMPURITY_DECREASE = 0.001
# The minimum number of rows required to continue splitting.
MIN_SIZE_SPLIT = 5


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def gini_impurity(count: int, size: int) -> float:
    """Gini impurity of ``size`` binary labels of which ``count`` are positive.

    ``1 - (p**2 + (1 - p)**2)`` with ``p = count / size``; 0.0 for pure and
    empty sets.
    """
    if size <= 0 or count == 0 or count == size:
        return 0.0
    p = count / size
    return 1.0 - ((p * p) + ((1.0 - p) * (1.0 - p)))


def _gini(count: np.ndarray, size: np.ndarray) -> np.ndarray:
    # vectorized gini_impurity
    p = np.divide(count, size, out=np.zeros(len(size), dtype=float), where=size > 0)
    g = 1.0 - ((p * p) + ((1.0 - p) * (1.0 - p)))
    return np.where((count == 0) | (count == size), 0.0, g)


@dataclass(frozen=True)
class SplitCandidate:
    """A decision rule ``X[:, feature_index] <= threshold`` and its gain."""

    feature_index: int
    threshold: float
    gain: float


@dataclass(frozen=True)
class SplitResult:
    """An accepted split and the splitters for its two sides."""

    feature_index: int
    threshold: float
    gain: float
    left: "Splitter"
    right: "Splitter"


# -----------------------------------------------------------------------------
# Splitters
# -----------------------------------------------------------------------------
class Splitter(ABC):
    """Rows of a design matrix with their binary labels.

    Parameters
    ----------
    matrix : array-like of shape (n_samples, n_features)
    labels : array-like of shape (n_samples,)

    Raises
    ------
    ValueError
        If the matrix is not two-dimensional or its row count differs from
        the number of labels.
    """

    def __init__(self, matrix, labels):
        matrix = np.asarray(matrix, dtype=float)
        if matrix.ndim == 1 and matrix.size == 0:
            matrix = matrix.reshape(0, 0)
        if matrix.ndim != 2:
            raise ValueError(f"matrix must be 2-dimensional, got shape {matrix.shape}")
        labels = np.asarray(labels, dtype=bool)
        if labels.ndim != 1 or labels.shape[0] != matrix.shape[0]:
            raise ValueError(
                f"matrix length != labels length ({matrix.shape[0]} != {labels.shape[0] if labels.ndim else 0})"
            )
        self.matrix = matrix
        self.labels = labels
        self.n_positive = int(labels.sum())
        self.impurity = gini_impurity(self.n_positive, self.size)

    @abstractmethod
    def split(self) -> SplitResult | None:
        """Return the chosen split, or ``None`` when no split should be made."""

    @property
    def size(self) -> int:
        """Number of rows held by this splitter."""
        return self.matrix.shape[0]

    @property
    def n_features(self) -> int:
        return self.matrix.shape[1]

    @property
    def label(self) -> bool:
        """Majority label; ties and empty splitters give ``False``."""
        return 2 * self.n_positive > self.size

    def _rows(self, mask: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        # boolean indexing copies and keeps the relative row order
        return self.matrix[mask], self.labels[mask]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size}, n_positive={self.n_positive})"


class GiniSplitter(Splitter):
    """
    Greedy splitter maximizing the decrease in Gini impurity.

    Parameters
    ----------
    matrix : array-like of shape (n_samples, n_features)
        Design matrix rows reaching this node.
    labels : array-like of shape (n_samples,)
        Boolean labels parallel to ``matrix``.
    min_samples_split : int, default=5
        Nodes with fewer rows are never split.
    min_impurity_decrease : float, default=0.001
        A split is accepted only when
        ``gain * n_samples / original_size >= min_impurity_decrease``.
    n_jobs : int or None, default=None
        Number of threads used to search features.  ``None`` means one.
    original_size : int or None, default=None
        Size of the full training set; ``None`` uses ``len(labels)``.
        Children created by :meth:`split` pass their parent's value.

    Notes
    -----
    Ties are broken deterministically: within a feature the smallest
    threshold with the maximal gain wins, and across features the lowest
    feature index wins.  A threshold has to improve on a gain of zero to be
    considered at all.
    """

    def __init__(
        self,
        matrix,
        labels,
        *,
        min_samples_split: int = MIN_SIZE_SPLIT,
        min_impurity_decrease: float = MIN_IMPURITY_DECREASE,
        n_jobs: int | None = None,
        original_size: int | None = None,
    ):
        super().__init__(matrix, labels)
        self.min_samples_split = int(min_samples_split)
        self.min_impurity_decrease = float(min_impurity_decrease)
        self.n_jobs = n_jobs
        self.original_size = self.size if original_size is None else int(original_size)

    def split(self) -> SplitResult | None:
        if self.size == 0 or self.size < self.min_samples_split or self.n_features == 0:
            return None
        best = self.best_split()
        if best is None:
            return None
        subsample = self.size / self.original_size
        if subsample * best.gain < self.min_impurity_decrease:
            return None
        left = self.matrix[:, best.feature_index] <= best.threshold
        return SplitResult(
            best.feature_index, best.threshold, best.gain,
            self._child(left), self._child(~left),
        )

    def best_split(self) -> SplitCandidate | None:
        """Return the candidate with the highest positive gain over all
        features, or ``None`` if no threshold improves on the parent."""
        n_chunks = 1 if self.n_jobs is None else max(1, effective_n_jobs(self.n_jobs))
        chunks = [c for c in np.array_split(np.arange(self.n_features), n_chunks) if c.size]
        best = None
        # chunks come back in feature order; pick by value, first wins ties
        for candidates in parallel_map(self._search, chunks, self.n_jobs):
            for candidate in candidates:
                if candidate is not None and (best is None or candidate.gain > best.gain):
                    best = candidate
        return best

    def _search(self, features) -> list[SplitCandidate | None]:
        return [self.best_threshold(int(j)) for j in features]

    def best_threshold(self, index: int) -> SplitCandidate | None:
        """Return the best split on feature ``index`` or ``None``.

        Every distinct value of the column is a candidate threshold.  Gains
        are computed for all of them at once from cumulative label counts
        over the sorted column.
        """
        if self.size == 0:
            return None
        column = self.matrix[:, index]
        order = np.argsort(column, kind="mergesort")
        values = column[order]
        positives = np.cumsum(self.labels[order], dtype=np.int64)
        # last position of every run of equal values
        last = np.flatnonzero(np.append(values[1:] != values[:-1], True))

        n_left = last + 1
        pos_left = positives[last]
        n_right = self.size - n_left
        pos_right = self.n_positive - pos_left
        weighted = n_left * _gini(pos_left, n_left) + n_right * _gini(pos_right, n_right)
        gains = self.impurity - weighted / self.size
        # the largest value sends every row left
        gains[n_right == 0] = 0.0

        k = int(np.argmax(gains))
        if not gains[k] > 0.0:
            return None
        return SplitCandidate(index, float(values[last[k]]), float(gains[k]))

    def information_gain(self, index: int, threshold: float) -> float:
        """Gain of the split ``X[:, index] <= threshold`` on this node."""
        left = self.matrix[:, index] <= threshold
        n_left = int(left.sum())
        pos_left = int(self.labels[left].sum())
        n_right = self.size - n_left
        pos_right = self.n_positive - pos_left
        weighted = n_left * gini_impurity(pos_left, n_left) + n_right * gini_impurity(pos_right, n_right)
        return self.impurity - weighted / self.size

    def _child(self, mask: np.ndarray) -> "GiniSplitter":
        matrix, labels = self._rows(mask)
        return GiniSplitter(
            matrix, labels,
            min_samples_split=self.min_samples_split,
            min_impurity_decrease=self.min_impurity_decrease,
            n_jobs=self.n_jobs,
            original_size=self.original_size,
        )


class RandomSplitter(Splitter):
    """
    Splits on the value of a random row at a random feature.

    Parameters
    ----------
    matrix, labels : array-like
        Rows and labels reaching this node.
    depth : int, default=2
        Remaining number of levels to split.
    random_state : int, RandomState instance or None, default=None
        Seed or generator; children share their parent's generator.
    """

    def __init__(self, matrix, labels, *, depth: int = 2, random_state=None):
        super().__init__(matrix, labels)
        self.depth = int(depth)
        self.random_state = check_random_state(random_state)

    def split(self) -> SplitResult | None:
        if self.depth <= 0 or self.size == 0 or self.n_features == 0:
            return None
        rng = self.random_state
        row = rng.randint(self.size)
        index = int(rng.randint(self.n_features))
        threshold = float(self.matrix[row, index])
        left = self.matrix[:, index] <= threshold
        return SplitResult(index, threshold, float("nan"), self._child(left), self._child(~left))

    def _child(self, mask: np.ndarray) -> "RandomSplitter":
        matrix, labels = self._rows(mask)
        return RandomSplitter(matrix, labels, depth=self.depth - 1, random_state=self.random_state)
