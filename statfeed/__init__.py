"""
**statfeed** implements statistical feedback selection: choosing one option
per decision so that, in the long run, every option is chosen in proportion
to its weight, while avoiding the repetitive patterns of a deterministic
scheduler.

Features
--------

- selector: the Selector engine, its configuration and errors
- rnd: pluggable random sources
- analysis: observed vs expected shares, spread of the statistics, reports
- plotting: matplotlib views of a run
- config: package wide defaults, validated via conftools.CheckedDict
"""
from .config import config
from .selector import (
    Selector,
    Configuration,
    InvalidConfiguration,
    DegenerateWeight,
    NoAcceptableOption,
    acceptAll,
    sort_options
)

__all__ = [
    'config',
    'Selector',
    'Configuration',
    'InvalidConfiguration',
    'DegenerateWeight',
    'NoAcceptableOption',
    'acceptAll',
    'sort_options'
]
