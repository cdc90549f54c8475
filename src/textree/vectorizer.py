# -*- coding: utf-8 -*-
"""
textree.vectorizer
==================

Okapi BM25+ text vectorizer (scikit-learn style).

Fitting computes corpus statistics once: the document frequency of every
term, the average document length, the selected vocabulary and one inverse
document frequency per selected term

    idf(t) = ln((N - df(t) + 0.5) / (df(t) + 0.5))

The IDF is signed: a term found in more than half the documents gets a
negative weight and a term found in exactly half of them gets zero.

Transforming a document scores every vocabulary term with the BM25+
normalized term frequency (Lv & Zhai, "Lower-bounding term frequency
normalization", CIKM 2011)

    tfn(tf, n) = tf * (k1 + 1) / (tf + k1 * ((1 - b) + b * n)) + delta

where ``n`` is the document length over the average length.  The additive
``delta`` gives absent terms the floor value ``delta * idf``.

The module also provides :class:`LSAVectorizer`, which projects the BM25+
design matrix onto its leading right singular vectors.
"""

from __future__ import annotations

import logging
import numbers
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import numpy as np
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.exceptions import NotFittedError

from ._parallel import parallel_map
from .bow import BagOfWords, Preprocessor

logger = logging.getLogger(__name__)

# BM25 calibration parameter for term-frequency scaling.
K1 = 1.2
# BM25 calibration parameter for document length scaling.
B = 0.75
# BM25+ floor for long, matching documents.
DELTA = 1.0
# Minimum proportion of documents a term needs to appear in.
MIN_DF = 0.002
# Maximum proportion of documents a term can appear in.
MAX_DF = 0.05
# Number of latent components kept by LSAVectorizer.
N_COMPONENTS = 50


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _tfn(tf: float, n: float, k1: float, b: float, delta: float) -> float:
    return (tf * (k1 + 1)) / (tf + k1 * ((1 - b) + b * n)) + delta


def _df_count(value, n_documents: int, name: str) -> float:
    """Translate ``min_df``/``max_df`` into an absolute document count."""
    if isinstance(value, numbers.Integral):
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")
        return float(value)
    if isinstance(value, numbers.Real):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} as a proportion must lie in [0, 1], got {value}")
        return value * n_documents
    raise ValueError(f"{name} must be an int or a float, got {value!r}")


def _check_texts(texts) -> list:
    if isinstance(texts, str):
        raise ValueError("Iterable over raw text documents expected, string object received.")
    return list(texts)


@dataclass(frozen=True)
class CorpusStatistics:
    """Frozen result of :meth:`BM25Vectorizer.fit`.

    Attributes
    ----------
    n_documents : int
        Number of documents in the fitting corpus.
    average_length : float
        Mean number of terms per document (0.0 for an empty corpus).
    document_frequency : Mapping[str, int]
        Number of documents containing each term, over all terms seen.
    features : tuple[str, ...]
        Selected vocabulary in ascending order; position ``j`` is column ``j``
        of every design matrix.
    vocabulary : Mapping[str, int]
        Inverse of ``features``.
    idf : ndarray of shape (n_features,)
        Read-only inverse document frequencies parallel to ``features``.
    """

    n_documents: int
    average_length: float
    document_frequency: Mapping[str, int]
    features: tuple[str, ...]
    vocabulary: Mapping[str, int]
    idf: np.ndarray

    @property
    def n_features(self) -> int:
        return len(self.features)

    @classmethod
    def from_bags(cls, bags: list[BagOfWords], min_df: float, max_df: float) -> "CorpusStatistics":
        """Compute the statistics of ``bags`` keeping terms with
        ``min_df <= df <= max_df`` (absolute counts)."""
        df: Counter = Counter()
        total = 0
        for bag in bags:
            df.update(bag.unique())
            total += bag.size
        n = len(bags)
        features = tuple(sorted(t for t, c in df.items() if min_df <= c <= max_df))
        counts = np.array([df[t] for t in features], dtype=float)
        idf = np.log((n - counts + 0.5) / (counts + 0.5))
        idf.setflags(write=False)
        return cls(
            n_documents=n,
            average_length=total / n if n else 0.0,
            document_frequency=MappingProxyType(dict(df)),
            features=features,
            vocabulary=MappingProxyType({t: j for j, t in enumerate(features)}),
            idf=idf,
        )


# -----------------------------------------------------------------------------
# BM25+
# -----------------------------------------------------------------------------
class BM25Vectorizer(TransformerMixin, BaseEstimator):
    """
    Convert raw texts to a matrix of BM25+ term weights.

    Parameters
    ----------
    k1 : float, default=1.2
        Term-frequency saturation.
    b : float, default=0.75
        Strength of document length normalization.
    delta : float, default=1.0
        BM25+ lower bound added to every normalized term frequency.
    min_df : int or float, default=0.002
        Terms found in fewer documents are dropped.  An ``int`` is an
        absolute count, a ``float`` a proportion of the corpus.
    max_df : int or float, default=0.05
        Terms found in more documents are dropped.  ``1.0`` keeps every term.
    stop_words : None, "english" or iterable of str, default=None
        Tokens to discard before stemming.  ``"english"`` uses
        scikit-learn's built-in list.
    drop_punctuation : bool or None, default=None
        Drop tokens made only of punctuation.  ``None`` drops them exactly
        when ``stop_words`` is set.
    preprocessor : Preprocessor or None, default=None
        Custom text-to-bag pipeline.  When given, ``stop_words`` and
        ``drop_punctuation`` are ignored.
    n_jobs : int or None, default=None
        Number of threads used to preprocess and score documents.  ``None``
        means one; ``-1`` means all processors.

    Attributes
    ----------
    statistics_ : CorpusStatistics
        Corpus statistics frozen by ``fit``.
    preprocessor_ : Preprocessor
        Pipeline used by both ``fit`` and ``transform``.

    Notes
    -----
    ``transform`` never recomputes or updates the fitted statistics, so
    documents seen after ``fit`` cannot leak into the model.
    """

    def __init__(
        self,
        *,
        k1: float = K1,
        b: float = B,
        delta: float = DELTA,
        min_df: int | float = MIN_DF,
        max_df: int | float = MAX_DF,
        stop_words=None,
        drop_punctuation: bool | None = None,
        preprocessor: Preprocessor | None = None,
        n_jobs: int | None = None,
    ):
        self.k1 = k1
        self.b = b
        self.delta = delta
        self.min_df = min_df
        self.max_df = max_df
        self.stop_words = stop_words
        self.drop_punctuation = drop_punctuation
        self.preprocessor = preprocessor
        self.n_jobs = n_jobs

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def fit(self, texts, y=None):
        """Learn the vocabulary and IDF of ``texts``; return ``self``."""
        self._fit(texts)
        return self

    def fit_transform(self, texts, y=None, **fit_params):
        """Fit to ``texts`` and return their design matrix.

        Equivalent to ``fit(texts).transform(texts)`` but each text is only
        tokenized and stemmed once.
        """
        return self._matrix(self._fit(texts))

    def _fit(self, texts) -> list[BagOfWords]:
        texts = _check_texts(texts)
        preprocessor = self.preprocessor
        if preprocessor is None:
            preprocessor = Preprocessor(stop_words=self.stop_words, drop_punctuation=self.drop_punctuation)
        bags = parallel_map(preprocessor.process, texts, self.n_jobs)

        n = len(bags)
        lo = _df_count(self.min_df, n, "min_df")
        hi = _df_count(self.max_df, n, "max_df")
        if n and hi < lo:
            raise ValueError("max_df corresponds to fewer documents than min_df")

        self.preprocessor_ = preprocessor
        self.statistics_ = CorpusStatistics.from_bags(bags, lo, hi)
        logger.debug(
            "Fitted BM25+ vocabulary of %d/%d terms on %d documents (avg length %.2f)",
            self.statistics_.n_features, len(self.statistics_.document_frequency),
            n, self.statistics_.average_length,
        )
        return bags

    # ------------------------------------------------------------------
    # Transforming
    # ------------------------------------------------------------------
    def transform(self, texts):
        """Return the BM25+ design matrix of shape ``(len(texts), n_features)``.

        Raises
        ------
        NotFittedError
            If called before ``fit``.
        """
        self._check_fitted("transform")
        texts = _check_texts(texts)
        bags = parallel_map(self.preprocessor_.process, texts, self.n_jobs)
        return self._matrix(bags)

    def _matrix(self, bags: list[BagOfWords]) -> np.ndarray:
        n_features = self.statistics_.n_features
        if not bags:
            return np.empty((0, n_features), dtype=float)
        rows = parallel_map(self._vector, bags, self.n_jobs)
        return np.vstack(rows)

    def _vector(self, bag: BagOfWords) -> np.ndarray:
        stats = self.statistics_
        # tfn(0, n) is exactly delta
        row = stats.idf * self.delta
        if not stats.n_features:
            return row
        n = bag.size / stats.average_length
        for term, tf in bag.items():
            j = stats.vocabulary.get(term)
            if j is not None:
                row[j] = stats.idf[j] * _tfn(tf, n, self.k1, self.b, self.delta)
        return row

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def _check_fitted(self, what: str) -> None:
        if getattr(self, "statistics_", None) is None:
            raise NotFittedError(
                f"This {type(self).__name__} instance is not fitted yet. "
                f"Call 'fit' before '{what}'."
            )

    def get_feature(self, index: int) -> str:
        """Return the vocabulary term of feature ``index``."""
        self._check_fitted("get_feature")
        return self.statistics_.features[index]

    def get_feature_names_out(self, input_features=None):
        self._check_fitted("get_feature_names_out")
        return np.asarray(self.statistics_.features, dtype=object)

    @property
    def vocabulary_(self) -> Mapping[str, int]:
        self._check_fitted("vocabulary_")
        return self.statistics_.vocabulary

    @property
    def idf_(self) -> np.ndarray:
        self._check_fitted("idf_")
        return self.statistics_.idf

    @property
    def average_length_(self) -> float:
        self._check_fitted("average_length_")
        return self.statistics_.average_length


# -----------------------------------------------------------------------------
# Latent semantic analysis
# -----------------------------------------------------------------------------
class LSAVectorizer(TransformerMixin, BaseEstimator):
    """
    BM25+ followed by a truncated projection onto latent semantic axes.

    The BM25+ design matrix ``X`` is decomposed as ``X = U S V^T`` and texts
    are mapped to ``X V_k`` where ``V_k`` holds the first ``n_components``
    right singular vectors (fewer when the vocabulary is smaller).

    Parameters
    ----------
    n_components : int, default=50
        Number of latent dimensions to keep.
    k1, b, delta, min_df, max_df, stop_words, drop_punctuation, n_jobs
        Forwarded to the inner :class:`BM25Vectorizer`.

    Attributes
    ----------
    bm25_ : BM25Vectorizer
        The fitted inner vectorizer.
    components_ : ndarray of shape (n_bm25_features, n_kept_components)
        Projection matrix.
    """

    def __init__(
        self,
        *,
        n_components: int = N_COMPONENTS,
        k1: float = K1,
        b: float = B,
        delta: float = DELTA,
        min_df: int | float = MIN_DF,
        max_df: int | float = MAX_DF,
        stop_words=None,
        drop_punctuation: bool | None = None,
        n_jobs: int | None = None,
    ):
        self.n_components = n_components
        self.k1 = k1
        self.b = b
        self.delta = delta
        self.min_df = min_df
        self.max_df = max_df
        self.stop_words = stop_words
        self.drop_punctuation = drop_punctuation
        self.n_jobs = n_jobs

    def fit(self, texts, y=None):
        self._fit(texts)
        return self

    def fit_transform(self, texts, y=None, **fit_params):
        X = self._fit(texts)
        return X @ self.components_

    def _fit(self, texts) -> np.ndarray:
        if int(self.n_components) <= 0:
            raise ValueError(f"n_components must be positive, got {self.n_components}")
        bm25 = BM25Vectorizer(
            k1=self.k1, b=self.b, delta=self.delta, min_df=self.min_df,
            max_df=self.max_df, stop_words=self.stop_words,
            drop_punctuation=self.drop_punctuation, n_jobs=self.n_jobs,
        )
        X = bm25.fit_transform(texts)
        if min(X.shape) == 0:
            components = np.zeros((X.shape[1], 0), dtype=float)
        else:
            _, _, vt = np.linalg.svd(X, full_matrices=False)
            components = vt[: min(int(self.n_components), vt.shape[0])].T.copy()
        self.bm25_ = bm25
        self.components_ = components
        logger.debug("Kept %d latent components of %d BM25+ features", components.shape[1], X.shape[1])
        return X

    def transform(self, texts):
        if getattr(self, "components_", None) is None:
            raise NotFittedError(
                f"This {type(self).__name__} instance is not fitted yet. "
                "Call 'fit' before 'transform'."
            )
        return self.bm25_.transform(texts) @ self.components_
