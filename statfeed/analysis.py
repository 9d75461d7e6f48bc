"""
Measurements over the result of a Selector

These functions answer how far a run is from the ideal distribution given
by its weights: :func:`frequencies` vs :func:`expectedFrequencies`,
:func:`maxDeviation` and the :func:`spread` of the statistics.
"""
from __future__ import annotations
import numpy as np
import tabulate

from statfeed.config import config

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from statfeed.selector import Selector


def counts(selector: Selector) -> np.ndarray:
    """
    How many times each option was chosen in the last run

    Returns:
        an int array with one count per option
    """
    return np.bincount(np.asarray(selector.choice_indices, dtype=int),
                       minlength=len(selector.options))


def frequencies(selector: Selector) -> np.ndarray:
    """
    The share of decisions won by each option in the last run

    Returns:
        a float array with one value per option, summing to 1 (or all 0
        if no decisions were made)
    """
    c = counts(selector)
    total = c.sum()
    if total == 0:
        return np.zeros(len(c), dtype=float)
    return c / total


def expectedFrequencies(selector: Selector) -> np.ndarray:
    """
    The share each option should win according to the weights

    Each decision contributes its normalized weights, so decisions with
    a larger total weight do not count more than others
    """
    weights = selector.weights
    totals = weights.sum(axis=1, keepdims=True)
    rows = np.divide(weights, totals, out=np.zeros_like(weights), where=totals > 0)
    if not len(rows):
        return np.zeros(len(selector.options), dtype=float)
    return rows.mean(axis=0)


def maxDeviation(selector: Selector) -> float:
    """
    The largest absolute difference between observed and expected shares
    """
    if selector.size == 0:
        return 0.
    return float(np.abs(frequencies(selector) - expectedFrequencies(selector)).max())


def spread(statistics: np.ndarray) -> np.ndarray | float:
    """
    Difference between the highest and lowest statistic

    Args:
        statistics: a 1D array (the statistics of a selector) or a 2D
            array (the history of a selector)

    Returns:
        a float for a 1D input, an array with the spread at each
        decision for a 2D input
    """
    statistics = np.asarray(statistics, dtype=float)
    if statistics.ndim == 1:
        return float(statistics.max() - statistics.min())
    return statistics.max(axis=1) - statistics.min(axis=1)


def report(selector: Selector, ndigits: int = None) -> str:
    """
    Returns a table summarizing the last run of selector

    One row per option: the option, its expected and observed share,
    the number of times it was chosen and its current statistic

    Args:
        selector: the selector to report
        ndigits: number of digits to round values to (default: config['repr.ndigits'])
    """
    ndigits = ndigits if ndigits is not None else config['repr.ndigits']
    expected = expectedFrequencies(selector)
    observed = frequencies(selector)
    c = counts(selector)
    stats = selector.statistics
    rows = []
    for i, option in enumerate(selector.options):
        rows.append((str(option),
                     round(float(expected[i]), ndigits),
                     round(float(observed[i]), ndigits),
                     int(c[i]),
                     round(float(stats[i]), ndigits)))
    headers = ('option', 'expected', 'observed', 'count', 'statistic')
    return tabulate.tabulate(rows, headers=headers)
