"""
Helmsman builder: fluent assembly of a runnable program.

    >>> program = (
    ...     Builder()
    ...     .schema("commands.yaml")
    ...     .context(State())
    ...     .handler(save)
    ...     .handler(load_file, name="load")
    ...     .build()
    ... )
    >>> raise SystemExit(program.run())

build() turns startup mistakes into faults before anything runs: a missing
schema or context, alias collisions, and required commands without a handler.
Commands that are not required may lack a handler; they stay registered and
fail with HandlerNotRegisteredError when invoked.
"""
import builtins
import logging
import os
import sys
from collections.abc import Mapping

from . import loader
from .execution import Dispatcher
from .faults import *
from .interface import Shell, run
from .registry import Registry
from .schema import Schema
from .utils import *

lg = logging.getLogger(__name__)


class Program:
    """
    A built application: registry, dispatcher and prompt, ready to run.
    """

    def __init__(self, schema, registry, dispatcher, /, *, prompt, suffix):
        self._schema = schema
        self._registry = registry
        self._dispatcher = dispatcher
        self._prompt = prompt
        self._suffix = suffix

    @property
    def schema(self):
        return self._schema

    @property
    def registry(self):
        return self._registry

    @property
    def dispatcher(self):
        return self._dispatcher

    @property
    def context(self):
        return self._dispatcher.context

    @property
    def prompt(self):
        return self._prompt + self._suffix

    def run_cli(self, argv, /, **options):
        """
        Run one invocation from `argv` and return its exit status.
        """
        return run(argv, self._registry, self._dispatcher, self._schema.global_options, **options)

    def run_shell(self, **options):
        """
        Run the interactive shell until exit and return 0.
        """
        return Shell(
            self._registry,
            self._dispatcher,
            self._schema.global_options,
            prompt=self._prompt,
            suffix=self._suffix,
            **options
        ).run()

    def run(self, argv=Unset, /, **options):
        """
        Run one-shot when `argv` (default: sys.argv[1:]) holds tokens, else the shell.
        """
        argv = sys.argv[1:] if argv is Unset else list(argv)
        if argv:
            return self.run_cli(argv, **options)
        return self.run_shell(**options)


class Builder:
    """
    Collects schema, context, handlers and prompt; build() validates the whole.

    Every setter returns the builder itself so calls can be chained.
    """

    def __init__(self):
        self._schema = Unset
        self._context = Unset
        self._handlers = {}
        self._prompt = Unset
        self._suffix = Unset

    def schema(self, schema, /):
        """
        Use `schema`: a Schema, a deserialized document, or a YAML/JSON file path.

        Files and documents are loaded immediately, so loader faults surface here.
        """
        if isinstance(schema, str | os.PathLike):
            schema = loader.load(schema)
        elif isinstance(schema, Mapping):
            schema = loader.build(schema)
        elif not isinstance(schema, Schema):
            raise TypeError("builder schema must be a schema, a mapping or a path")
        self._schema = schema
        return self

    def context(self, context, /):
        """
        Use `context` as the state handed to every handler.
        """
        self._context = context
        return self

    def handler(self, callable, /, name=Unset):
        """
        Register `callable` for the implementation `name`.

        The name defaults to the callable's @handler implementation, then to
        its __name__.

        Raises
        - TypeError: when no name is given and the callable has none (a
          functools.partial, a callable instance).
        - ValueError: when the implementation already has a handler.
        """
        if not builtins.callable(callable):
            raise TypeError("builder handler must be callable")
        if name is Unset:
            name = getattr(callable, "__implementation__", None) or getattr(callable, "__name__", None)
        if not isinstance(name, str) or not name:
            raise TypeError("builder handler needs an implementation name; pass name=...")
        if name in self._handlers:
            raise ValueError("implementation %r has more than one handler" % name)
        self._handlers[name] = callable
        return self

    def handlers(self, *callables):
        for callable in callables:
            self.handler(callable)
        return self

    def prompt(self, prompt, /, suffix=Unset):
        """
        Override the shell prompt (and optionally its suffix) from the schema.
        """
        if not isinstance(prompt, str) or not isinstance(suffix, str | Unset):
            raise TypeError("builder prompt must be a string")
        self._prompt = prompt
        self._suffix = suffix if suffix is not Unset else self._suffix
        return self

    def build(self):
        """
        Validate the collected parts and return a Program.

        Raises
        - InvalidSchemaError: when no schema or no context was given.
        - DuplicateAliasError: when two commands share a name or alias.
        - HandlerNotRegisteredError: when a required command has no handler.
        - ContextTypeMismatchError: when a handler needs another context type.
        """
        if self._schema is Unset:
            raise InvalidSchemaError(
                "no schema was given",
                hint="call .schema(...) before .build()"
            )
        if self._context is Unset:
            raise InvalidSchemaError(
                "no execution context was given",
                hint="call .context(...) before .build()"
            )

        registry = Registry(self._schema.commands)
        for command in registry.commands.values():
            if command.implementation in self._handlers:
                continue
            if command.required:
                raise HandlerNotRegisteredError(
                    "required command %r has no handler %r" % (command.name, command.implementation),
                    name=command.name,
                    implementation=command.implementation,
                    hint="register it with .handler(callable, name=%r)" % command.implementation
                )
            lg.warning("command %r has no handler %r", command.name, command.implementation)

        dispatcher = Dispatcher(self._context, self._handlers)
        metadata = self._schema.metadata
        lg.debug("built program with %d commands and %d handlers", len(registry), len(self._handlers))
        return Program(
            self._schema,
            registry,
            dispatcher,
            prompt=coalesce(self._prompt, metadata.prompt or host("__prog__", "helmsman")),
            suffix=coalesce(self._suffix, metadata.prompt_suffix),
        )


__all__ = (
    "Program",
    "Builder",
)
