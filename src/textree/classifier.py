"""Decision tree text classifier over BM25+ features."""

from __future__ import annotations

import logging

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, clone
from sklearn.exceptions import NotFittedError
from sklearn.utils.validation import check_is_fitted

from .splitter import MIN_IMPURITY_DECREASE, MIN_SIZE_SPLIT, Splitter
from .tree import GiniTreeClassifier
from .vectorizer import BM25Vectorizer

logger = logging.getLogger(__name__)


class TextClassifier(ClassifierMixin, BaseEstimator):
    """
    Binary text classifier: a fitted vectorizer followed by a decision tree.

    ``fit`` vectorizes the training texts (a fresh :class:`BM25Vectorizer`
    unless ``vectorizer`` is given, in which case a clone of it is fitted)
    and grows a :class:`GiniTreeClassifier` on the design matrix.  New texts
    are classified by running the *same* fitted vectorizer and walking the
    tree.

    Use :meth:`from_matrix` or :meth:`from_splitter` to wrap a vectorizer
    that is already fitted.

    Parameters
    ----------
    vectorizer : estimator or None, default=None
        Unfitted text vectorizer with ``fit_transform``/``transform``.
    min_samples_split : int, default=5
    min_impurity_decrease : float, default=0.001
    max_depth : int or None, default=None
    n_jobs : int or None, default=None
        See :class:`GiniTreeClassifier`.  ``n_jobs`` is also passed to the
        default vectorizer.

    Attributes
    ----------
    vectorizer_ : estimator
        The fitted vectorizer.
    tree_ : GiniTreeClassifier
        The fitted tree.

    Examples
    --------
    >>> clf = TextClassifier().fit(messages, labels)      # doctest: +SKIP
    >>> clf.classify("WINNER!! claim your free prize")    # doctest: +SKIP
    True
    """

    def __init__(
        self,
        vectorizer=None,
        *,
        min_samples_split: int = MIN_SIZE_SPLIT,
        min_impurity_decrease: float = MIN_IMPURITY_DECREASE,
        max_depth: int | None = None,
        n_jobs: int | None = None,
    ):
        self.vectorizer = vectorizer
        self.min_samples_split = min_samples_split
        self.min_impurity_decrease = min_impurity_decrease
        self.max_depth = max_depth
        self.n_jobs = n_jobs

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _make_tree(self) -> GiniTreeClassifier:
        return GiniTreeClassifier(
            min_samples_split=self.min_samples_split,
            min_impurity_decrease=self.min_impurity_decrease,
            max_depth=self.max_depth,
            n_jobs=self.n_jobs,
        )

    def fit(self, texts, labels):
        """Fit the vectorizer and the tree on ``texts`` and boolean ``labels``."""
        if isinstance(texts, str):
            raise ValueError("Iterable over raw text documents expected, string object received.")
        texts = list(texts)
        labels = np.asarray(labels, dtype=bool)
        if labels.shape != (len(texts),):
            raise ValueError(f"Got {len(texts)} texts but {labels.size} labels")
        if self.vectorizer is None:
            vectorizer = BM25Vectorizer(n_jobs=self.n_jobs)
        else:
            vectorizer = clone(self.vectorizer)
        X = vectorizer.fit_transform(texts)
        self.vectorizer_ = vectorizer
        self.tree_ = self._make_tree().fit(X, labels)
        self.classes_ = self.tree_.classes_
        logger.debug("Fitted text classifier on %d texts with %d features", X.shape[0], X.shape[1])
        return self

    @classmethod
    def from_matrix(cls, vectorizer, X, y, **params) -> "TextClassifier":
        """Grow a tree on the design matrix ``X`` produced by the fitted
        ``vectorizer`` and wrap both.  ``params`` go to the constructor."""
        clf = cls(vectorizer=vectorizer, **params)
        check_is_fitted(vectorizer)
        clf.vectorizer_ = vectorizer
        clf.tree_ = clf._make_tree().fit(X, y)
        clf.classes_ = clf.tree_.classes_
        return clf

    @classmethod
    def from_splitter(cls, vectorizer, splitter: Splitter, **params) -> "TextClassifier":
        """Grow a tree from a prepared root ``splitter`` over rows produced
        by the fitted ``vectorizer``."""
        clf = cls(vectorizer=vectorizer, **params)
        check_is_fitted(vectorizer)
        clf.vectorizer_ = vectorizer
        clf.tree_ = clf._make_tree().build(splitter)
        clf.classes_ = clf.tree_.classes_
        return clf

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    def _check_fitted(self) -> None:
        if getattr(self, "tree_", None) is None:
            raise NotFittedError(f"This {type(self).__name__} instance is not fitted yet. Call 'fit' first.")

    def classify(self, text: str) -> bool:
        """Return the label of the leaf reached by ``text``."""
        self._check_fitted()
        x = self.vectorizer_.transform([text])
        return bool(self.tree_.predict(x)[0])

    def predict(self, texts):
        self._check_fitted()
        if isinstance(texts, str):
            raise ValueError("Iterable over raw text documents expected, string object received.")
        return self.tree_.predict(self.vectorizer_.transform(list(texts)))

    def predict_proba(self, texts):
        self._check_fitted()
        if isinstance(texts, str):
            raise ValueError("Iterable over raw text documents expected, string object received.")
        return self.tree_.predict_proba(self.vectorizer_.transform(list(texts)))

    # ------------------------------------------------------------------
    # Tree maintenance and display
    # ------------------------------------------------------------------
    def prune(self, n: int) -> int:
        """Collapse internal nodes with fewer than ``n`` training rows.

        The vectorizer is not touched.  Returns the number of internal nodes
        removed.
        """
        self._check_fitted()
        return self.tree_.prune(n)

    def feature_names(self):
        """Vocabulary terms naming the tree's features, or ``None`` when the
        vectorizer does not expose them."""
        self._check_fitted()
        getter = getattr(self.vectorizer_, "get_feature_names_out", None)
        if getter is None:
            return None
        return [str(name) for name in getter()]

    def export_text(self, decimals: int = 4) -> str:
        """Indented text rendering of the tree with features named by term."""
        self._check_fitted()
        return self.tree_.export_text(feature_names=self.feature_names(), decimals=decimals)

    def print_tree(self, decimals: int = 4) -> None:
        """Print :meth:`export_text` to ``stdout``."""
        print(self.export_text(decimals))

    def export_rules(self, class_names=None):
        self._check_fitted()
        return self.tree_.export_rules(feature_names=self.feature_names(), class_names=class_names)
