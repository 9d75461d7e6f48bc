"""
A validated configuration dict

A :class:`CheckedDict` holds a fixed set of keys, given by its defaults.
Values are checked on assignment against the rules of a validator dict::

    {'accent::range': (0, math.inf),
     'increment.target::choices': ('choice', 'rank'),
     'repr.ndigits::type': int}

Keys without a rule are checked against the type of their default. Nothing
is read from or written to disk.
"""
from __future__ import annotations
import logging
import textwrap
from typing import NamedTuple, Any

import tabulate


logger = logging.getLogger("statfeed.conftools")


class _Rule(NamedTuple):
    type: type | tuple
    choices: frozenset | None
    range: tuple | None


def _defaultType(value) -> type:
    if isinstance(value, bool):
        return bool
    if isinstance(value, (int, float)):
        # numeric keys accept ints and floats alike, unless typed explicitly
        return float
    return type(value)


def _parseRules(default: dict, validator: dict) -> dict[str, _Rule]:
    byKey: dict[str, dict] = {key: {} for key in default}
    for fullkey, value in validator.items():
        key, _, kind = fullkey.partition("::")
        if key not in byKey:
            raise KeyError(f"Validator key {fullkey} refers to an unknown key {key}")
        if kind not in ('type', 'choices', 'range'):
            raise KeyError(f"Unknown validation '{kind}' in {fullkey}, "
                           f"expected one of 'type', 'choices', 'range'")
        byKey[key][kind] = value
    rules = {}
    for key, parts in byKey.items():
        choices = parts.get('choices')
        if choices is not None:
            choices = frozenset(choices)
            keytype = tuple({type(choice) for choice in choices})
        else:
            keytype = parts.get('type') or _defaultType(default[key])
        rules[key] = _Rule(type=keytype, choices=choices, range=parts.get('range'))
    return rules


def _typeName(t: type | tuple) -> str:
    if isinstance(t, tuple):
        return "(" + ", ".join(sorted(x.__name__ for x in t)) + ")"
    return t.__name__


class CheckedDict(dict):
    """
    A dict with a fixed set of keys and validated values

    Args:
        default: all keys with their default values
        validator: rules for some keys, as ``key::type``, ``key::choices``
            or ``key::range`` (an inclusive ``(min, max)`` tuple)
        help: a short description for some keys, shown in the repr

    Example
    ~~~~~~~

        >>> d = CheckedDict({'accent': 1.0}, validator={'accent::range': (0, 10)})
        >>> d['accent'] = 20
        ValueError: Value for accent should be within range (0, 10), got 20
    """

    def __init__(self, default: dict, validator: dict = None, help: dict = None):
        super().__init__()
        self.default = dict(default)
        self._rules = _parseRules(self.default, validator or {})
        self._help = help or {}
        for key, value in self.default.items():
            error = self.checkValue(key, value)
            if error:
                raise ValueError(f"Invalid default: {error}")
        super().update(self.default)

    def rule(self, key: str) -> _Rule:
        try:
            return self._rules[key]
        except KeyError:
            raise KeyError(f"Unknown key: {key}. Possible keys: {sorted(self._rules)}")

    def checkValue(self, key: str, value: Any) -> str | None:
        """
        Returns an error message if value is not valid for key, None otherwise
        """
        rule = self.rule(key)
        if rule.choices is not None:
            if value not in rule.choices:
                return f"{key} should be one of {sorted(rule.choices, key=str)}, got {value!r}"
            return None
        if rule.type is float:
            # bools are ints, but not numbers here
            valid = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            valid = isinstance(value, rule.type)
        if not valid:
            return f"Expected {_typeName(rule.type)} for key {key}, got {type(value).__name__}"
        if rule.range is not None:
            lo, hi = rule.range
            if not lo <= value <= hi:
                return f"Value for {key} should be within range {rule.range}, got {value}"
        return None

    def __setitem__(self, key: str, value) -> None:
        error = self.checkValue(key, value)
        if error:
            raise ValueError(error)
        logger.debug(f"{key} = {value!r}")
        super().__setitem__(key, value)

    def update(self, d: dict) -> None:
        errors = [self.checkValue(key, value) for key, value in d.items()]
        errors = [error for error in errors if error]
        if errors:
            raise ValueError(f"dict is invalid: {'; '.join(errors)}")
        super().update(d)

    def getChoices(self, key: str) -> frozenset | None:
        return self.rule(key).choices

    def getRange(self, key: str) -> tuple | None:
        return self.rule(key).range

    def getHelp(self, key: str) -> str | None:
        return self._help.get(key)

    def reset(self) -> None:
        """Set all keys back to their defaults"""
        super().update(self.default)

    def __repr__(self) -> str:
        rows = []
        for key in sorted(self):
            rule = self._rules[key]
            if rule.choices is not None:
                info = " | ".join(sorted(str(ch) for ch in rule.choices))
            else:
                info = _typeName(rule.type)
                if rule.range is not None:
                    info += f" between {rule.range}"
            rows.append((key, repr(self[key]), info))
            doc = self._help.get(key)
            if doc:
                rows.extend(("", "", line) for line in textwrap.wrap(doc, 58))
        return tabulate.tabulate(rows, headers=("key", "value", "accepts"))
