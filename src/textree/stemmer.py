# -*- coding: utf-8 -*-
"""
textree.stemmer
===============

Porter stemming (https://tartarus.org/martin/PorterStemmer/) on top of
NLTK's implementation, run in its ``MARTIN_EXTENSIONS`` mode: the
rules of Martin Porter's reference C version, which differ from the 1980
paper in step 2 (``bli -> ble`` instead of ``abli -> able``, plus
``logi -> log``).  Examples: ``money -> monei``, ``ties -> ti``,
``possibly -> possibl``, ``archaeology -> archaeolog``.

Words are stemmed as given; lower-casing is left to the caller.  Words of
two letters or fewer are returned untouched.
"""

from __future__ import annotations

from functools import lru_cache

from nltk.stem.porter import PorterStemmer as _NLTKPorterStemmer


class PorterStemmer:
    """Porter stemmer with a small memo of recent words.

    Parameters
    ----------
    cache_size : int, default=4096
        Number of stemmed words to memoize.  ``0`` disables the cache.
    """

    def __init__(self, *, cache_size: int = 4096):
        self.cache_size = int(cache_size)
        self._porter = _NLTKPorterStemmer(mode=_NLTKPorterStemmer.MARTIN_EXTENSIONS)
        if self.cache_size > 0:
            self._stem = lru_cache(maxsize=self.cache_size)(self._porter_stem)
        else:
            self._stem = self._porter_stem

    def _porter_stem(self, word: str) -> str:
        if len(word) <= 2:
            return word
        return self._porter.stem(word, to_lowercase=False)

    def stem(self, word: str) -> str:
        return self._stem(word)

    __call__ = stem

    def __repr__(self) -> str:
        return f"PorterStemmer(cache_size={self.cache_size})"


def stem(word: str) -> str:
    """Return the Porter stem of ``word``.

    >>> stem("caresses"), stem("ponies"), stem("relational"), stem("hopping")
    ('caress', 'poni', 'relat', 'hop')
    """
    return _DEFAULT.stem(word)


_DEFAULT = PorterStemmer()
