"""
Package wide configuration

The values here are used as defaults when a :class:`~statfeed.selector.Selector`
is created. Changing them does not modify selectors which already exist.

Example::

    >>> from statfeed import config
    >>> config['heterogeneity'] = 0.25
    >>> config['increment.target'] = 'rank'
"""
import math
from statfeed.conftools import CheckedDict


_default = {
    'heterogeneity': 0.1,
    'accent': 1.0,
    'increment.target': 'choice',
    'history': True,
    'repr.ndigits': 4,
    'plot.colormap': 'viridis',
}

_validator = {
    'heterogeneity::range': (0, math.inf),
    'accent::range': (0, math.inf),
    'increment.target::choices': ('choice', 'rank'),
    'repr.ndigits::type': int,
    'repr.ndigits::range': (0, 16),
}

_help = {
    'heterogeneity':
        "Default scaling of the random perturbation applied to the scheduling "
        "values of each decision",
    'accent':
        "Default cost charged to a chosen option, divided by its weight",
    'increment.target':
        "Which statistic is charged after a decision. 'choice' charges the chosen "
        "option. 'rank' charges the option whose index equals the winner's "
        "position within the sorted ranking (legacy statfeed behaviour)",
    'history':
        "Keep a snapshot of the statistics after each decision",
    'repr.ndigits':
        "Number of digits used when reporting values",
    'plot.colormap':
        "matplotlib colormap used when plotting one line per option"
}


config = CheckedDict(default=_default, validator=_validator, help=_help)
