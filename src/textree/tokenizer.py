# -*- coding: utf-8 -*-
"""
textree.tokenizer
=================

Rule-based word tokenizer after Grefenstette (1999) and Palmer (2000).

The tokenizer works on the raw string with a fixed sequence of regular
expression rewrites that put blanks around punctuation and clitics, then
splits on whitespace.  Periods are the ambiguous case: a period-terminated
token that looks like an abbreviation (``U.S.``, ``Mr.``, ``3.``) is kept as
one token, anything else has its final period split off.

Case is preserved; callers fold case downstream.
"""

from __future__ import annotations

import re
from typing import Iterator

# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------
_LETTER_NUMBER = r"[a-zA-Z0-9]"
_NOT_LETTER_NUMBER = r"[^a-zA-Z0-9]"
_SEPARATOR = r"[?!()\";/|`]"
# order matters: the bare apostrophe is tried first and backtracks into the
# longer clitics
_CLITICS = r"'|:|-|'S|'D|'M|'LL|'RE|'VE|N'T|'s|'d|'m|'ll|'re|'ve|n't"

_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\t"), " "),
    (re.compile(rf"({_SEPARATOR})"), r" \1 "),
    (re.compile(r"([^\s]),"), r"\1 ,"),
    (re.compile(r",([^\s])"), r" , \1"),
    (re.compile(r"^(')"), r"\1 "),
    (re.compile(rf"({_NOT_LETTER_NUMBER})'"), r"\1 '"),
    (re.compile(rf"({_CLITICS})$"), r" \1"),
    (re.compile(rf"({_CLITICS})({_NOT_LETTER_NUMBER})"), r" \1 \2"),
)

_WHITESPACE = re.compile(r"\s+")
_ENDS_LETTER_NUMBER_PERIOD = re.compile(rf".*{_LETTER_NUMBER}\.")


def _is_abbreviation(word: str) -> bool:
    # covers acronyms (U.S.) and titles (Mr.) too
    return _ENDS_LETTER_NUMBER_PERIOD.fullmatch(word) is not None


def iter_tokens(text: str) -> Iterator[str]:
    """Yield the tokens of ``text`` in order."""
    for pattern, replacement in _RULES:
        text = pattern.sub(replacement, text)
    for word in _WHITESPACE.split(text.strip()):
        if not word:
            continue
        if len(word) > 1 and word.endswith(".") and not _is_abbreviation(word):
            yield word[:-1]
            yield "."
        else:
            yield word


def tokenize(text: str) -> list[str]:
    """Return the tokens of ``text`` as a list.

    >>> tokenize("Don't stop, it's free!")
    ['Do', "n't", 'stop', ',', 'it', "'s", 'free', '!']
    """
    return list(iter_tokens(text))


class Tokenizer:
    """Callable tokenizer.

    Every call re-runs the rules, so the returned sequence can be produced
    again at any time for the same text.

    Parameters
    ----------
    lazy : bool, default=False
        If ``True`` calls return a generator instead of a list.
    """

    def __init__(self, *, lazy: bool = False):
        self.lazy = bool(lazy)

    def __call__(self, text: str):
        if self.lazy:
            return iter_tokens(text)
        return tokenize(text)

    def __repr__(self) -> str:
        return f"Tokenizer(lazy={self.lazy})"
