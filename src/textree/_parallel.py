"""Thread fan-out shared by the vectorizer and the splitter."""

from __future__ import annotations

from joblib import Parallel, delayed, effective_n_jobs


def parallel_map(func, items, n_jobs=None) -> list:
    """Apply ``func`` to every item, returning results in input order.

    Work runs on joblib threads when ``n_jobs`` asks for more than one
    worker, and inline otherwise.
    """
    if n_jobs is None or effective_n_jobs(n_jobs) == 1:
        return [func(item) for item in items]
    return Parallel(n_jobs=n_jobs, prefer="threads")(delayed(func)(item) for item in items)
