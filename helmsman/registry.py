"""
Helmsman command registry: name and alias resolution.

A Registry is built once from the command specs and never mutated. It keeps two
read-only maps built together: every alias (and every command's own name) to
the canonical name, and every canonical name to its CommandSpec. Concurrent
readers need no locking.
"""
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .faults import *
from .schema import *

lg = logging.getLogger(__name__)


class Registry(Mapping):
    """
    Read-only mapping of canonical command name -> CommandSpec.

    Raises
    - DuplicateAliasError: when a name or alias is claimed by two commands
      (including a command reusing another command's name).
    - TypeError: when `commands` holds something other than command specs.
    """

    def __init__(self, commands=(), /):
        if isinstance(commands, Schema):
            commands = commands.commands
        if not isinstance(commands, Iterable):
            raise TypeError("registry commands must be iterable")

        aliases = {}
        specs = {}
        for command in commands:
            if not isinstance(command, CommandSpec):
                raise TypeError("registry commands must be command specs")
            for alias in command.names:
                if (owner := aliases.get(alias)) is not None:
                    raise DuplicateAliasError(
                        f"{alias!r} is claimed by both {owner!r} and {command.name!r}",
                        alias=alias,
                        first=owner,
                        second=command.name,
                        hint="rename one of the commands or drop the alias"
                    )
                aliases[alias] = command.name
            specs[command.name] = command

        self._aliases = MappingProxyType(aliases)
        self._commands = MappingProxyType(specs)
        lg.debug("registry built with %d commands and %d names", len(specs), len(aliases))

    @property
    def commands(self):
        """
        The read-only canonical name -> CommandSpec map.
        """
        return self._commands

    @property
    def aliases(self):
        """
        The read-only alias -> canonical name map (own names included).
        """
        return self._aliases

    def resolve(self, token, /):
        """
        Return the CommandSpec `token` names (by name or alias), or None.
        """
        if (name := self._aliases.get(token)) is None:
            lg.debug("unresolved command token %r", token)
            return None
        return self._commands[name]

    def names(self):
        """
        Every name and alias, sorted; the candidate set for suggestions.
        """
        return sorted(self._aliases)

    def check(self, handlers, /):
        """
        Ensure every command's implementation has a handler in `handlers`.

        Raises
        - HandlerNotRegisteredError: naming the first command without a handler.
        """
        for command in self._commands.values():
            if command.implementation not in handlers:
                raise HandlerNotRegisteredError(
                    f"command {command.name!r} has no handler {command.implementation!r}",
                    name=command.name,
                    implementation=command.implementation,
                    hint="register a handler with this implementation name"
                )

    def __getitem__(self, name):
        return self._commands[name]

    def __iter__(self):
        return iter(self._commands)

    def __len__(self):
        return len(self._commands)

    def __contains__(self, token):
        return token in self._aliases

    def __repr__(self):
        return f"registry({', '.join(self._commands)})"


__all__ = (
    "Registry",
)
