"""Loading labelled message corpora from tab-separated files."""

from __future__ import annotations

import csv

import numpy as np
import pandas as pd

_BOOLEAN_LABELS = {"true": True, "false": False, "1": True, "0": False}


def load_corpus(path, *, label_column: str = "label", text_column: str = "message", nrows=None):
    """
    Read a TSV file with a header row into parallel labels and messages.

    Parameters
    ----------
    path : str or path-like
        File with at least a boolean label column and a text column.
    label_column : str, default="label"
        Column holding ``true``/``false`` (any case) or ``1``/``0``.
    text_column : str, default="message"
        Column holding the raw text.
    nrows : int or None, default=None
        Read only the first ``nrows`` data rows.

    Returns
    -------
    labels : ndarray of shape (n,), dtype bool
    messages : list[str]

    Raises
    ------
    ValueError
        If a column is missing or a label cannot be read as a boolean.
    """
    df = pd.read_csv(
        path,
        sep="\t",
        quoting=csv.QUOTE_NONE,
        keep_default_na=False,
        dtype=str,
        nrows=nrows,
    )
    missing = [c for c in (label_column, text_column) if c not in df.columns]
    if missing:
        raise ValueError(f"Missing column(s) {missing} in {path}; found {list(df.columns)}")

    labels = df[label_column].str.strip().str.lower().map(_BOOLEAN_LABELS)
    bad = df.loc[labels.isna(), label_column]
    if len(bad):
        raise ValueError(f"Unrecognized label values in {path}: {sorted(set(bad))[:5]}")
    return labels.to_numpy(dtype=bool), df[text_column].tolist()
