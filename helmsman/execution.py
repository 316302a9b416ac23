"""
Helmsman execution context and dispatcher.

Handlers are plain callables `handler(context, arguments)`. The @handler
decorator records the implementation identifier a handler serves and,
optionally, the context type it needs; the dispatcher checks that capability
before the handler ever runs, so a handler never receives state of the wrong
shape.

Dispatch is synchronous: one handler at a time, under the dispatcher's lock.
Handler exceptions propagate unchanged (no retry, no rollback of context
mutations).
"""
import builtins
import logging
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .faults import *
from .utils import *

lg = logging.getLogger(__name__)


class HandlerError(Fault):
    """
    Base class for user-facing failures raised by handlers.

    Front-ends render it like any other fault and exit with status 1.
    """
    title = "command failed"
    status = 1


class Context:
    """
    Base class for application state shared by every handler.

    Subclasses add whatever fields the application needs; handlers recover the
    concrete type with view().
    """

    def view(self, cls, /):
        """
        Return this context as an instance of `cls`.

        Raises
        - ContextTypeMismatchError: when the context is not a `cls`.
        """
        if not isinstance(cls, type):
            raise TypeError("view() argument must be a type")
        if not isinstance(self, cls):
            raise ContextTypeMismatchError(
                "context is %s, not %s" % (type(self).__name__, cls.__name__),
                expected=cls.__name__,
                actual=type(self).__name__,
                hint="pass a %s to the dispatcher" % cls.__name__
            )
        return self


def handler(*parameters, context=Unset):
    """
    Mark a callable as the handler of an implementation identifier.

    Forms
    - @handler                         -> implementation is the function name
    - @handler("name")                 -> explicit implementation
    - @handler("name", context=Type)   -> also requires a context of `Type`
    - handler(callable, "name")        -> direct call

    The callable receives (context, arguments) and its return value is handed
    back to whoever dispatched it.
    """
    if context is not Unset and not isinstance(context, type):
        raise TypeError("handler() 'context' must be a type")

    def mark(callable, implementation=Unset):
        if not builtins.callable(callable):
            raise TypeError("@handler() must be applied to a callable")
        if not isinstance(implementation := coalesce(implementation, getattr(callable, "__name__", None)), str) or not implementation:
            raise TypeError("handler implementation must be a non-empty string")
        try:
            callable.__implementation__ = implementation
            callable.__capability__ = coalesce(context, object)
        except (AttributeError, TypeError):
            raise TypeError("@handler() must be applied to a callable accepting attributes") from None
        return callable

    match parameters:
        case (target,) if builtins.callable(target):
            return mark(target)
        case (target, str() as implementation) if builtins.callable(target):
            return mark(target, implementation)
        case (str() as implementation,):
            return rename(lambda callable: mark(callable, implementation), "handler")
        case ():
            return rename(mark, "handler")
        case _:
            raise TypeError("handler() takes a callable and/or an implementation name")


def handlers(*callables):
    """
    Build a handler table (implementation -> callable).

    Unmarked callables serve the implementation named after them.

    Raises
    - TypeError: when an unmarked callable has no __name__.
    - ValueError: when two callables serve the same implementation.
    """
    table = {}
    for callable in callables:
        if not hasattr(callable, "__implementation__"):
            callable = handler(callable)
        if callable.__implementation__ in table:
            raise ValueError("implementation %r has more than one handler" % callable.__implementation__)
        table[callable.__implementation__] = callable
    return table


def _check_capability(callable, context):
    if not isinstance(context, required := getattr(callable, "__capability__", object)):
        raise ContextTypeMismatchError(
            "handler %r needs a %s context, got %s" % (
                getattr(callable, "__implementation__", None) or repr(callable),
                required.__name__,
                type(context).__name__,
            ),
            expected=required.__name__,
            actual=type(context).__name__,
            hint="pass a %s to the dispatcher" % required.__name__
        )


def dispatch(invocation, context, handlers, /):
    """
    Invoke the handler of `invocation.command` with (context, arguments).

    Returns whatever the handler returns.

    Raises
    - HandlerNotRegisteredError: when no handler serves the implementation.
    - ContextTypeMismatchError: when the handler needs another context type.
    - anything the handler raises, unchanged.
    """
    command = invocation.command
    try:
        callable = handlers[command.implementation]
    except KeyError:
        raise HandlerNotRegisteredError(
            "command %r has no handler %r" % (command.name, command.implementation),
            name=command.name,
            implementation=command.implementation,
            hint="register a handler with this implementation name"
        ) from None

    _check_capability(callable, context)
    lg.debug("dispatching %r to %r", command.name, command.implementation)
    return callable(context, invocation.arguments)


class Dispatcher:
    """
    Owns the execution context and the handler table for the process lifetime.

    Every handler's context capability is checked at construction. dispatch()
    holds a lock for the duration of the handler call and releases it on every
    exit path, including handler exceptions. The lock is not re-entrant: a
    handler must not dispatch through its own dispatcher.
    """

    def __init__(self, context, callables=(), /):
        if isinstance(callables, Mapping):
            table = dict(callables)
        elif isinstance(callables, Iterable):
            table = handlers(*callables)
        else:
            raise TypeError("dispatcher handlers must be a mapping or an iterable of callables")

        for callable in table.values():
            _check_capability(callable, context)

        self._context = context
        self._handlers = MappingProxyType(table)
        self._lock = threading.Lock()

    @property
    def context(self):
        return self._context

    @property
    def handlers(self):
        return self._handlers

    @property
    def busy(self):
        """
        Whether a handler is currently running.
        """
        return self._lock.locked()

    def dispatch(self, invocation, /):
        with self._lock:
            return dispatch(invocation, self._context, self._handlers)


__all__ = (
    "HandlerError",
    "Context",
    "handler",
    "handlers",
    "dispatch",
    "Dispatcher",
)
