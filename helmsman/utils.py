"""
Helmsman utilities (internal helpers shared by the schema, parser and faults).

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “not declared”, distinct from None and from "".
  • Falsey, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a default while preserving None/0/""/[].

- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated accessors (clean tracebacks and reprs).

- mirror("attr")
  • Read-only property over a private backing field (self._attr), handing out fresh
    container copies so the backing value can never be mutated through the public API.

- pluralize(text) / counted(number, text)
  • English pluralization for fault messages ("2 arguments", "1 argument").

- host(name, default)
  • Read a host-application override (a dunder attribute on __main__).

Usage guidance
- Declared-but-empty and not-declared are different things for schema fields (an
  option default of "" is a real default); use Unset for the latter.
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for “the schema did not declare this field”.

    Characteristics
    - Boolean-false, but distinct from None, 0 and "".
    - repr(Unset) -> "Unset".
    - Sealed and singleton: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `object` unless it is Unset, in which case return `default`.

    Falsey values such as None, 0, "" or [] are returned as-is; only the
    sentinel is replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or build a decorator doing so.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name) -> decorator

    Raises
    - TypeError: on a non-callable target, a non-string name, or a wrong arity.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy containers (lists, dicts, sets); other objects pass through.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property reading self._{name}.

    Containers are copied on every access, so callers may freely mutate what
    they receive without touching the schema object behind it.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(text, /):
    """
    Best-effort English pluralizer for the last word of a label.

    Examples
    - pluralize("argument")      -> "arguments"
    - pluralize("alias")         -> "aliases"
    - pluralize("global option") -> "global options"
    - pluralize("entry")         -> "entries"
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")

    if not text:
        return text

    match = re.search(r'(\S+)(\s*)$', text)
    if not match:
        return text

    head = text[:match.start(1)]
    last = match.group(1)
    trail = match.group(2)
    lower = last.lower()

    if lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = lower[:-1] + "ies"
    else:
        plural = lower + "s"

    if last.isupper():
        plural = plural.upper()
    elif last[:1].isupper():
        plural = plural[:1].upper() + plural[1:]

    return head + plural + trail


def counted(number, text, /):
    """
    Render "<number> <text>" with the label pluralized when number != 1.
    """
    return "%d %s" % (number, text if number == 1 else pluralize(text))


def host(name, default=None, /):
    """
    Return the host application's override `__main__.<name>`, or `default`.

    The host declares module-level dunders in its entry-point script, e.g.
    `__styles__ = {...}` or `__suggestions__ = {"limit": 5}`.
    """
    return getattr(__import__("__main__"), name, default)


Unset = UnsetType()
"""
Sentinel for “not declared”. See UnsetType.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "counted",
    "host",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
