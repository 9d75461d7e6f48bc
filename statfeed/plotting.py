"""
Plots for the result of a Selector (needs matplotlib)
"""
from __future__ import annotations
import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from statfeed import analysis
from statfeed.config import config

import typing as _t
if _t.TYPE_CHECKING:
    from matplotlib.axes import Axes
    from statfeed.selector import Selector


def _getAxes(ax: Axes | None) -> Axes:
    if ax is None:
        _, ax = plt.subplots(1, 1)
    return ax


def plotStatistics(selector: Selector, ax: Axes = None, colormap: str = None) -> Axes:
    """
    Plot the evolution of the statistic of each option

    Args:
        selector: a selector which has already run (with ``config['history']``
            enabled)
        ax: the axes to draw on. If not given a new figure is created
        colormap: the colormap used, one color per option
            (default: ``config['plot.colormap']``)

    Returns:
        the axes used

    Example
    -------

    >>> import matplotlib.pyplot as plt
    >>> from statfeed import Selector, plotting
    >>> sel = Selector(['a', 'b', 'c'], 100)
    >>> sel.populate_choices()
    >>> plotting.plotStatistics(sel)
    >>> plt.show()
    """
    history = selector.history
    if history is None:
        raise ValueError("The selector has no history. Run populate_choices with "
                         "config['history'] enabled")
    ax = _getAxes(ax)
    cmap = matplotlib.colormaps[colormap or config["plot.colormap"]]
    numoptions = len(selector.options)
    X = np.arange(history.shape[0])
    for i, option in enumerate(selector.options):
        color = cmap(i / max(numoptions - 1, 1))
        ax.plot(X, history[:, i], color=color, label=str(option))
    ax.set_xlabel("decision")
    ax.set_ylabel("statistic")
    ax.legend()
    return ax


def plotChoices(selector: Selector, ax: Axes = None) -> Axes:
    """
    Bar plot of the observed vs expected share of each option

    Args:
        selector: a selector which has already run
        ax: the axes to draw on. If not given a new figure is created

    Returns:
        the axes used
    """
    ax = _getAxes(ax)
    labels = [str(option) for option in selector.options]
    X = np.arange(len(labels))
    width = 0.4
    ax.bar(X - width/2, analysis.expectedFrequencies(selector), width, label='expected')
    ax.bar(X + width/2, analysis.frequencies(selector), width, label='observed')
    ax.set_xticks(X)
    ax.set_xticklabels(labels)
    ax.set_ylabel("share")
    ax.legend()
    return ax
