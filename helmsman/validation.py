"""
Helmsman validation engine: type coercion and rule evaluation.

Scope
- coerce(raw, type): text -> typed value (bool, int, float, Path, str).
- canonical(value): typed value -> the text coerce() maps back to it.
- validate(value, rules): every violated rule, in declaration order.
- check(raw, spec): coerce then validate against a field spec's rules and choices.

Conventions
- Numbers are parsed from ASCII decimal text only, independent of locale; digit
  separators ("1_000") and non-ASCII digits are rejected.
- Integers are bounded to the signed 64-bit range.
- Paths are normalized lexically (os.path.normpath); existence is only checked
  by the MustExist rule.
- Faults carry the field name (`name`) and the offending text (`value`).
"""
import math
import os
import re
from pathlib import Path, PurePath

from .faults import *
from .schema import *
from .utils import *

TRUTHY = frozenset({"true", "yes", "1", "on"})
FALSY = frozenset({"false", "no", "0", "off"})

INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(r"[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?)", re.IGNORECASE)
_INFINITY = re.compile(r"[+-]?inf(?:inity)?", re.IGNORECASE)


def _label(name):
    return repr(name) if name else "value"


def coerce(raw, type, /, *, name=None):
    """
    Convert the raw text `raw` into a value of ArgumentType `type`.

    Accepted forms
    - bool: true/false, yes/no, 1/0, on/off (case-insensitive, surrounding
      whitespace ignored).
    - integer: optional sign and ASCII digits, within the signed 64-bit range.
    - float: ASCII decimal or exponent notation, or inf/infinity; nan is rejected,
      and so is a finite literal too large to represent.
    - path: any non-empty text without NUL, normalized lexically.
    - string: returned unchanged.

    Raises
    - InvalidBoolError, InvalidNumberError, InvalidPathError (with `name`/`value`).
    - TypeError: when `raw` is not a string.
    """
    if not isinstance(raw, str):
        raise TypeError("coerce() argument must be a string")

    match ArgumentType(type):
        case ArgumentType.STRING:
            return raw

        case ArgumentType.BOOL:
            if (text := raw.strip().lower()) in TRUTHY:
                return True
            if text in FALSY:
                return False
            raise InvalidBoolError(
                f"{_label(name)} expects a boolean, got {raw!r}",
                name=name,
                value=raw,
                hint="use one of true/false, yes/no, 1/0 or on/off"
            )

        case ArgumentType.INTEGER:
            if not re.fullmatch(_INTEGER, text := raw.strip()):
                raise InvalidNumberError(
                    f"{_label(name)} expects an integer, got {raw!r}",
                    name=name,
                    value=raw,
                    hint="write a whole number such as 42 or -7"
                )
            if not INT_MIN <= (value := int(text)) <= INT_MAX:
                raise InvalidNumberError(
                    f"{_label(name)} integer {raw!r} does not fit in 64 bits",
                    name=name,
                    value=raw,
                    hint=f"use a number between {INT_MIN} and {INT_MAX}"
                )
            return value

        case ArgumentType.FLOAT:
            if not re.fullmatch(_FLOAT, text := raw.strip()):
                raise InvalidNumberError(
                    f"{_label(name)} expects a number, got {raw!r}",
                    name=name,
                    value=raw,
                    hint="write a decimal number such as 3.14 or 1e-3"
                )
            if math.isinf(value := float(text)) and not re.fullmatch(_INFINITY, text):
                raise InvalidNumberError(
                    f"{_label(name)} number {raw!r} is too large",
                    name=name,
                    value=raw,
                    hint="write 'inf' for an unbounded value"
                )
            return value

        case ArgumentType.PATH:
            if not raw or "\0" in raw:
                raise InvalidPathError(
                    f"{_label(name)} expects a path, got {raw!r}",
                    name=name,
                    value=raw,
                    hint="paths cannot be empty or contain NUL characters"
                )
            return Path(os.path.normpath(raw))


def canonical(value, /):
    """
    Render a coerced value as its canonical text.

    coerce(canonical(coerce(text, t)), t) == coerce(text, t) for every accepted
    text and type.
    """
    match value:
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case float():
            return repr(value)
        case PurePath():
            return str(value)
        case str():
            return value
        case _:
            raise TypeError("canonical() argument must be a coerced value")


def _violations(value, rule, name, raw):
    match rule:
        case MustExist():
            if not isinstance(value, PurePath):
                raise TypeError("must-exist rule only applies to paths")
            if not Path(value).exists():
                yield NotFoundError(
                    f"{_label(name)} path {raw!r} does not exist",
                    name=name,
                    value=raw,
                    hint="check the path and try again"
                )

        case Extensions():
            if not isinstance(value, PurePath):
                raise TypeError("extensions rule only applies to paths")
            filename = value.name.lower()
            if not any(filename.endswith("." + extension) for extension in rule.extensions):
                accepted = ", ".join("." + extension for extension in rule.extensions)
                yield BadExtensionError(
                    f"{_label(name)} expects a {accepted} file, got {raw!r}",
                    name=name,
                    value=raw,
                    accepted=tuple(rule.extensions),
                    hint=f"accepted extensions: {accepted}"
                )

        case Range():
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise TypeError("range rule only applies to numbers")
            if rule.min is not None and not value >= rule.min:
                yield OutOfRangeError(
                    f"{_label(name)} must be at least {rule.min}, got {raw}",
                    name=name,
                    value=raw,
                    bound=rule.min,
                    hint=f"use a value of {rule.min} or more"
                )
            if rule.max is not None and not value <= rule.max:
                yield OutOfRangeError(
                    f"{_label(name)} must be at most {rule.max}, got {raw}",
                    name=name,
                    value=raw,
                    bound=rule.max,
                    hint=f"use a value of {rule.max} or less"
                )

        case Choices():
            if canonical(value) not in rule.choices:
                accepted = ", ".join(rule.choices)
                yield NotAChoiceError(
                    f"{_label(name)} must be one of {accepted}, got {raw!r}",
                    name=name,
                    value=raw,
                    choices=tuple(rule.choices),
                    hint=f"choose one of: {accepted}"
                )

        case _:
            raise TypeError("validate() rules must be validation rules")


def validate(value, rules, /, *, name=None, raw=Unset):
    """
    Evaluate every rule against `value` and return all violations (a list).

    An empty list means the value passed. Rules are evaluated in order and the
    first violation never hides later ones. `raw` is the user's original text,
    quoted in messages; it defaults to the canonical rendering of `value`.

    Raises
    - TypeError: when a rule cannot apply to the value's type (a path rule on a
      number, a range rule on text); schemas reject such declarations up front.
    """
    raw = canonical(value) if raw is Unset else raw
    violations = []
    for rule in rules:
        violations.extend(_violations(value, rule, name, raw))
    return violations


def check(raw, spec, /):
    """
    Coerce `raw` for the field `spec` (ArgumentSpec or OptionSpec) and validate it.

    Returns (value, violations). When coercion fails the value is None and the
    coercion error is the only violation reported for the field.
    """
    try:
        value = coerce(raw, spec.type, name=spec.name)
    except CoercionError as error:
        return None, [error]

    rules = spec.rules
    if spec.choices:
        rules.append(Choices(spec.choices))
    return value, validate(value, rules, name=spec.name, raw=raw)


__all__ = (
    "TRUTHY",
    "FALSY",
    "INT_MIN",
    "INT_MAX",
    "coerce",
    "canonical",
    "validate",
    "check",
)
