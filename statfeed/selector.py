"""
Statistical feedback selection

A :class:`Selector` picks one option for each of a sequence of decisions so
that, in the long run, each option is chosen with a frequency proportional
to its weight. Each option carries a running statistic (a "debt"): choosing
an option raises its statistic, and after every decision the statistics of
all participating options are lowered by a common amount. At each decision
the option with the lowest scheduling value wins::

    value(d, o) = statistics[o] + (accent[d] + heterogeneity[d] * random[d][o]) / weight[d][o]

The random term breaks ties and avoids lock-step orderings when many
decisions share the same weights.

Example
~~~~~~~

    >>> from statfeed import Selector
    >>> sel = Selector(['a', 'b', 'c'], 12, rng=0)
    >>> sel.configure(weights=[[1, 2, 1]] * 12)
    >>> choices = sel.populate_choices()
    >>> len(choices)
    12
"""
from __future__ import annotations
import copy as _copy
import dataclasses
import logging

import numpy as np

from statfeed import rnd
from statfeed.config import config as _config

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from typing import Callable, Sequence, TypeVar, Any
    from numpy.typing import ArrayLike
    T = TypeVar("T")
    predicate_t = Callable[[Any, int], bool]


logger = logging.getLogger("statfeed.selector")


class InvalidConfiguration(ValueError):
    """Raised when a selector is built or reconfigured with invalid values"""


class DegenerateWeight(InvalidConfiguration):
    """Raised for negative or non-finite weights"""


class NoAcceptableOption(Exception):
    """
    Raised when no option can be selected at a given decision

    This happens when all options have a weight of 0 at the decision, or
    when the acceptability predicate rejects every option with a positive
    weight.
    """
    def __init__(self, decision: int, msg=''):
        self.decision = decision
        super().__init__(msg or f"No acceptable option at decision {decision}")


def acceptAll(option, decision: int) -> bool:
    """
    Default acceptability predicate: every option is acceptable
    """
    return True


@dataclasses.dataclass
class Configuration:
    """
    Per-decision configuration of a Selector

    Any field left as None keeps the current (or default) value. Matrices
    have one row per decision and one column per option, vectors have one
    value per decision.

    Attributes:
        weights: relative priority of each option at each decision
        randoms: uniform values in [0, 1) used to perturb scheduling values
        heterogeneities: strength of the random perturbation per decision
        accents: cost charged to a chosen option (divided by its weight)
    """
    weights: ArrayLike | None = None
    randoms: ArrayLike | None = None
    heterogeneities: ArrayLike | None = None
    accents: ArrayLike | None = None


def sort_options(options: Sequence[T], values: ArrayLike) -> list[T]:
    """
    Sort options according to values, in ascending order

    The sort is stable: options with equal values keep their original order.
    NaN values are sorted last.

    Args:
        options: the options to sort
        values: a value for each option

    Returns:
        a list with the options, sorted by value

    Example
    ~~~~~~~

        >>> sort_options(['a', 'b', 'c'], [0.3, 0.5, 0.4])
        ['a', 'c', 'b']
    """
    return [options[i] for i in _ranking(values, len(options))]


def _ranking(values: ArrayLike, numoptions: int) -> np.ndarray:
    values = np.asarray(values, dtype=float)
    if values.shape != (numoptions,):
        raise ValueError(f"Expected {numoptions} values, got {values.shape}")
    return np.argsort(values, kind='stable')


def _asMatrix(name: str, data, shape: tuple[int, int]) -> np.ndarray:
    try:
        arr = np.array(data, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{name} should be a matrix of numbers: {e}")
    if shape[0] == 0 and arr.size == 0:
        return np.zeros(shape, dtype=float)
    if arr.shape != shape:
        raise InvalidConfiguration(f"{name} should have shape {shape} (decisions x options), "
                                   f"got {arr.shape}")
    return arr


def _asVector(name: str, data, size: int) -> np.ndarray:
    try:
        arr = np.array(data, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{name} should be a sequence of numbers: {e}")
    if arr.ndim == 0:
        arr = np.full(size, float(arr))
    if arr.shape != (size,):
        raise InvalidConfiguration(f"{name} should have one value per decision ({size}), "
                                   f"got shape {arr.shape}")
    if not np.all(np.isfinite(arr)) or np.any(arr < 0):
        raise InvalidConfiguration(f"{name} should hold finite, non-negative values")
    return arr


def _checkWeights(weights: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(weights)):
        raise DegenerateWeight("weights should be finite")
    if np.any(weights < 0):
        cells = [tuple(int(x) for x in idx) for idx in np.argwhere(weights < 0)[:4]]
        raise DegenerateWeight(f"weights should not be negative, negative cells "
                               f"(decision, option): {cells}")
    return weights


def _checkRandoms(randoms: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(randoms)):
        raise InvalidConfiguration("randoms should be finite")
    return randoms


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class Selector:
    """
    Chooses one option per decision, proportionally to the given weights

    Args:
        options: the options to choose from. At least one option is needed
        size: the number of decisions
        config: a Configuration to override the default weights, randoms,
            heterogeneities and/or accents
        rng: the random source used to fill the randoms matrix. Can be
            None, a seed, a numpy Generator, a random.Random or a callable
            (see :mod:`statfeed.rnd`)
        accept: a function ``(option, decision) -> bool``, determines if an
            option can be selected at a given decision. At least one option
            with a positive weight must be accepted at each decision

    Defaults (see :mod:`statfeed.config`):

    * weights: ``1/N`` for each option, where N is the number of options
    * randoms: uniform values in [0, 1) drawn from *rng*
    * heterogeneities: ``config['heterogeneity']``
    * accents: ``config['accent']``

    .. note::

        Calling :meth:`populate_choices` twice without :meth:`reset` continues
        from the statistics left by the previous call

    .. note::

        By default the chosen option is charged after each decision
        (``incrementTarget='choice'``). Legacy statfeed charged the option whose
        index equals the winner's rank, which is almost always option 0. For
        options ``['a', 'b', 'c']`` with uniform weights and randoms
        ``[[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]`` the default gives
        ``['a', 'b', 'c']``, while ``incrementTarget='rank'`` reproduces the legacy
        result ``['a', 'b', 'b']``. Only the default keeps the choice frequencies
        proportional to the weights
    """

    def __init__(self, options: Sequence[T], size: int, config: Configuration = None,
                 rng: rnd.source_t = None, accept: predicate_t = None):
        options = tuple(options)
        if not options:
            logger.error("Selector: no options given")
            raise InvalidConfiguration("A Selector needs at least one option")
        if not isinstance(size, (int, np.integer)) or isinstance(size, bool) or size < 0:
            raise InvalidConfiguration(f"size should be an int >= 0, got {size!r}")
        size = int(size)
        numoptions = len(options)
        self._options = options
        self._size = size
        self._accept = accept or acceptAll
        self._target = _config['increment.target']
        self._recordHistory = _config['history']
        self._weights = np.full((size, numoptions), 1 / numoptions)
        self._randoms = rnd.randomMatrix((size, numoptions), rng)
        self._heterogeneities = np.full(size, float(_config['heterogeneity']))
        self._accents = np.full(size, float(_config['accent']))
        self._statistics = np.zeros(numoptions, dtype=float)
        self._history: np.ndarray | None = None
        self.choices: list[T] = []
        self.choice_indices: list[int] = []
        for arr in (self._weights, self._randoms, self._heterogeneities, self._accents):
            _readonly(arr)
        if config is not None:
            self.configure(**dataclasses.asdict(config))

    def __repr__(self):
        return f"Selector(options={list(self._options)}, size={self._size})"

    @property
    def options(self) -> tuple:
        """The options to choose from"""
        return self._options

    @property
    def size(self) -> int:
        """The number of decisions"""
        return self._size

    @property
    def weights(self) -> np.ndarray:
        """A (decisions x options) matrix of weights"""
        return self._weights

    @weights.setter
    def weights(self, weights: ArrayLike):
        self.configure(weights=weights)

    @property
    def randoms(self) -> np.ndarray:
        """A (decisions x options) matrix of uniform values"""
        return self._randoms

    @randoms.setter
    def randoms(self, randoms: ArrayLike):
        self.configure(randoms=randoms)

    @property
    def heterogeneities(self) -> np.ndarray:
        """Strength of the random perturbation, per decision"""
        return self._heterogeneities

    @heterogeneities.setter
    def heterogeneities(self, values: ArrayLike):
        self.configure(heterogeneities=values)

    @property
    def accents(self) -> np.ndarray:
        """Cost charged to the chosen option, per decision"""
        return self._accents

    @accents.setter
    def accents(self, values: ArrayLike):
        self.configure(accents=values)

    @property
    def statistics(self) -> np.ndarray:
        """A copy of the running statistic of each option"""
        return self._statistics.copy()

    @property
    def history(self) -> np.ndarray | None:
        """
        The statistics after each decision of the last run, as a
        (decisions x options) matrix, or None if not recorded
        """
        return self._history

    @property
    def incrementTarget(self) -> str:
        """One of 'choice', 'rank' (see config['increment.target'])"""
        return self._target

    @incrementTarget.setter
    def incrementTarget(self, target: str):
        if target not in ('choice', 'rank'):
            raise InvalidConfiguration(f"incrementTarget should be 'choice' or 'rank', got {target!r}")
        self._target = target

    def configure(self, weights: ArrayLike = None, randoms: ArrayLike = None,
                  heterogeneities: ArrayLike = None, accents: ArrayLike = None
                  ) -> None:
        """
        Override the per-decision configuration

        All given values are validated before any of them is applied, so
        an invalid value leaves the selector untouched.

        Args:
            weights: a (decisions x options) matrix of non-negative weights
            randoms: a (decisions x options) matrix of random values
            heterogeneities: a value per decision, or a single value for all
            accents: a value per decision, or a single value for all

        Raises:
            InvalidConfiguration if any of the values has the wrong shape
            DegenerateWeight if any weight is negative or not finite
        """
        shape = (self._size, len(self._options))
        updates = {}
        if weights is not None:
            updates['_weights'] = _checkWeights(_asMatrix('weights', weights, shape))
        if randoms is not None:
            updates['_randoms'] = _checkRandoms(_asMatrix('randoms', randoms, shape))
        if heterogeneities is not None:
            updates['_heterogeneities'] = _asVector('heterogeneities', heterogeneities, self._size)
        if accents is not None:
            updates['_accents'] = _asVector('accents', accents, self._size)
        for attr, value in updates.items():
            setattr(self, attr, _readonly(value))
        if updates:
            logger.debug(f"configure: updated {', '.join(k[1:] for k in updates)}")

    def reset(self) -> None:
        """
        Reset statistics, history and choices to their initial state
        """
        self._statistics[:] = 0
        self._history = None
        self.choices = []
        self.choice_indices = []

    def copy(self) -> Selector:
        """
        Returns an independent copy of this Selector
        """
        return _copy.deepcopy(self)

    def true_increment(self, decision: int, option: int) -> float:
        """
        The amount charged to *option* when chosen at *decision*

        This is ``accent / weight``. An option with weight 0 has an infinite
        increment
        """
        weight = self._weights[decision, option]
        if weight <= 0:
            return float('inf')
        return float(self._accents[decision] / weight)

    def expected_increment(self, decision: int, option: int) -> float:
        """
        The increment including the random perturbation

        This is ``(accent + heterogeneity * random) / weight``. An option
        with weight 0 has an infinite increment
        """
        weight = self._weights[decision, option]
        if weight <= 0:
            return float('inf')
        numer = self._accents[decision] + self._heterogeneities[decision] * self._randoms[decision, option]
        return float(numer / weight)

    def scheduling_values(self, decision: int) -> np.ndarray:
        """
        The scheduling value of each option at the given decision

        The option with the lowest value is the best candidate. Options
        with weight 0 have a value of +inf

        Returns:
            an array with one value per option
        """
        weights = self._weights[decision]
        numer = self._accents[decision] + self._heterogeneities[decision] * self._randoms[decision]
        increments = np.divide(numer, weights, out=np.full(weights.shape, np.inf),
                               where=weights > 0)
        return self._statistics + increments

    def normalization_value(self, decision: int) -> float:
        """
        The amount subtracted from each participating option after a decision
        """
        total = self._weights[decision].sum()
        if total <= 0:
            return 0.
        return float(self._accents[decision] / total)

    def sort_options(self, values: ArrayLike) -> list[T]:
        """
        Sort the options of this selector according to values

        See :func:`sort_options`
        """
        return sort_options(self._options, values)

    def select(self, decision: int) -> tuple[int, int]:
        """
        Select the best acceptable option for the given decision

        The statistics are not modified

        Returns:
            a tuple (option index, rank), where rank is the position of the
            selected option within the sorted scheduling values

        Raises:
            NoAcceptableOption if no option with positive weight is accepted
        """
        weights = self._weights[decision]
        ranking = _ranking(self.scheduling_values(decision), len(self._options))
        for rank, idx in enumerate(ranking):
            if weights[idx] <= 0:
                continue
            if self._accept(self._options[idx], decision):
                return int(idx), rank
        if not np.any(weights > 0):
            msg = f"All options have weight 0 at decision {decision}"
        else:
            msg = f"No option was accepted at decision {decision}"
        logger.error(msg)
        raise NoAcceptableOption(decision, msg)

    def increment_statistics(self, decision: int, option: int) -> None:
        self._statistics[option] += self.true_increment(decision, option)

    def normalize_statistics(self, decision: int) -> None:
        participating = self._weights[decision] > 0
        self._statistics[participating] -= self.normalization_value(decision)

    def populate_choices(self, reset=False) -> list[T]:
        """
        Choose an option for every decision, in order

        Each decision selects the option with the lowest scheduling value
        (among the acceptable options with positive weight), then charges it
        and normalizes the statistics. If any decision fails, the selector is
        restored to its state before the call.

        Args:
            reset: if True, reset the statistics before running. Otherwise
                the statistics left by a previous run are kept

        Returns:
            the chosen options, one per decision (also stored as
            ``self.choices``)

        Raises:
            NoAcceptableOption if no option can be selected at some decision.
            Any exception raised by the acceptability predicate is propagated,
            after restoring the selector
        """
        saved = (self._statistics.copy(), self._history, self.choices, self.choice_indices)
        if reset:
            self.reset()
        elif self.choices or np.any(self._statistics != 0):
            logger.debug("populate_choices: continuing from the statistics of a previous run")
        numoptions = len(self._options)
        history = np.empty((self._size, numoptions)) if self._recordHistory else None
        choices, indices = [], []
        try:
            for decision in range(self._size):
                option, rank = self.select(decision)
                choices.append(self._options[option])
                indices.append(option)
                charged = option if self._target == 'choice' else rank
                self.increment_statistics(decision, charged)
                self.normalize_statistics(decision)
                if history is not None:
                    history[decision] = self._statistics
                logger.debug(f"decision {decision}: chose {self._options[option]!r} (#{option}), "
                             f"statistics={self._statistics}")
        except BaseException:
            self._statistics, self._history, self.choices, self.choice_indices = saved
            raise
        self._history = history
        self.choices = choices
        self.choice_indices = indices
        return choices

    def report(self, ndigits: int = None) -> str:
        """
        A table summarizing the last run (see :func:`statfeed.analysis.report`)
        """
        from statfeed import analysis
        return analysis.report(self, ndigits=ndigits)
