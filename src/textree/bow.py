"""Bag-of-words document model and the text preprocessing pipeline."""

from __future__ import annotations

import string
from collections import Counter
from typing import Iterable

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from .stemmer import PorterStemmer
from .tokenizer import Tokenizer

_PUNCTUATION = frozenset(string.punctuation)


class BagOfWords:
    """
    Term-frequency counts for a single document.

    The bag keeps the ordered word sequence it was built from, so two bags
    compare equal only when they hold the same words in the same order.

    Attributes:
        size (int): Total number of words in the document.
        maxtf (int): Largest count of any single term.
    """

    __slots__ = ("_words", "_counts", "_maxtf")

    def __init__(self, words: Iterable[str]):
        self._words = tuple(words)
        self._counts = Counter(self._words)
        self._maxtf = max(self._counts.values(), default=0)

    @property
    def size(self) -> int:
        return len(self._words)

    def __len__(self) -> int:
        return len(self._words)

    @property
    def maxtf(self) -> int:
        return self._maxtf

    @property
    def words(self) -> tuple[str, ...]:
        return self._words

    def unique(self) -> frozenset[str]:
        """Return the distinct terms in this bag."""
        return frozenset(self._counts)

    def tf(self, term: str) -> int:
        """Return the count of ``term``, 0 when absent."""
        return self._counts.get(term, 0)

    def items(self):
        return self._counts.items()

    def __contains__(self, term) -> bool:
        return term in self._counts

    def __eq__(self, other) -> bool:
        if not isinstance(other, BagOfWords):
            return NotImplemented
        return self._words == other._words

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        return f"BagOfWords({list(self._words)!r})"


def _resolve_stop_words(stop_words) -> frozenset[str]:
    if stop_words is None:
        return frozenset()
    if isinstance(stop_words, str):
        if stop_words == "english":
            return ENGLISH_STOP_WORDS
        raise ValueError(f"not a built-in stop list: {stop_words!r}")
    return frozenset(w.lower() for w in stop_words)


def is_punctuation(token: str) -> bool:
    """``True`` for a non-empty token made only of ASCII punctuation
    (``!``, ``,``, ``...``, ``--``)."""
    return bool(token) and all(c in _PUNCTUATION for c in token)


class Preprocessor:
    """
    Turns raw text into a :class:`BagOfWords`.

    Each token from the tokenizer is stemmed and then lower-cased.  When a
    stop list is given, tokens whose lower-cased form is on the list are
    dropped before stemming, and so are punctuation tokens unless
    ``drop_punctuation`` says otherwise.

    Parameters:
        stop_words (None, "english" or iterable of str): Words to drop.
        drop_punctuation (bool or None): Drop tokens made only of
            punctuation.  ``None`` follows ``stop_words``: on when a stop
            list is given, off otherwise.
        tokenizer (callable): ``str -> iterable of str``.
        stemmer (callable): ``str -> str``.
    """

    def __init__(self, *, stop_words=None, drop_punctuation=None, tokenizer=None, stemmer=None):
        self.stop_words = stop_words
        self.drop_punctuation = drop_punctuation
        self.tokenizer = tokenizer if tokenizer is not None else Tokenizer(lazy=True)
        self.stemmer = stemmer if stemmer is not None else PorterStemmer()
        self._stop = _resolve_stop_words(stop_words)
        if drop_punctuation is None:
            self._drop_punctuation = stop_words is not None
        else:
            self._drop_punctuation = bool(drop_punctuation)

    def terms(self, text: str):
        """Yield the normalized terms of ``text``."""
        for token in self.tokenizer(text):
            if self._stop and token.lower() in self._stop:
                continue
            if self._drop_punctuation and is_punctuation(token):
                continue
            yield self.stemmer(token).lower()

    def process(self, text: str) -> BagOfWords:
        return BagOfWords(self.terms(text))

    __call__ = process
