"""
Random sources

A random source is anything that can deliver uniform floats in the range
``[0, 1)``. The following are accepted wherever a source is expected:

* ``None``: a fresh, unseeded ``numpy.random.Generator``
* an int: used as seed for a ``numpy.random.Generator``
* a ``numpy.random.Generator``
* a ``random.Random`` instance (or the ``random`` module itself)
* a callable taking no arguments and returning a float
"""
from __future__ import annotations
import random as _random
import numpy as np

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from typing import Callable, Union
    source_t = Union[None, int, np.random.Generator, _random.Random, Callable[[], float]]


def makeRng(seed: int | None = None) -> np.random.Generator:
    """
    Create a numpy random generator

    Args:
        seed: if given, the generator is seeded with this value

    Returns:
        a numpy Generator
    """
    return np.random.default_rng(seed)


def uniformSource(source: source_t = None) -> Callable[[], float]:
    """
    Normalize a random source to a function returning a float in [0, 1)

    Args:
        source: any of the accepted random sources (see module docs)

    Returns:
        a function with no arguments returning uniform floats

    Example
    ~~~~~~~

        >>> import random
        >>> f = uniformSource(random.Random(1))
        >>> 0 <= f() < 1
        True
    """
    if source is None or isinstance(source, (int, np.integer)) and not isinstance(source, bool):
        rng = makeRng(source)
        return rng.random
    if isinstance(source, np.random.Generator):
        return source.random
    if hasattr(source, 'random') and callable(source.random):
        # random.Random, the random module, np.random.RandomState
        return source.random
    if callable(source):
        return source
    raise TypeError(f"Expected a random source (seed, Generator, Random or callable), "
                    f"got {type(source).__name__}")


def randomMatrix(shape: tuple[int, int], source: source_t = None) -> np.ndarray:
    """
    Create a matrix of the given shape filled with uniform floats in [0, 1)

    Args:
        shape: a tuple (numrows, numcolumns)
        source: the random source (see module docs)

    Returns:
        a 2D float array of the given shape. The matrix is filled row by row

    Raises:
        ValueError if the source delivers values outside of [0, 1)
    """
    numrows, numcols = shape
    if isinstance(source, np.random.Generator):
        return source.random((numrows, numcols))
    func = uniformSource(source)
    out = np.empty((numrows, numcols), dtype=float)
    for i in range(numrows):
        for j in range(numcols):
            out[i, j] = func()
    if out.size and (out.min() < 0 or out.max() >= 1):
        raise ValueError(f"The random source should deliver values within [0, 1), "
                         f"got values between {out.min()} and {out.max()}")
    return out
