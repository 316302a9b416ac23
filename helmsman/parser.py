r"""
Helmsman parser: tokens -> validated invocation.

Overview
- tokenize(line): shell-like splitting (quotes group words, backslash escapes).
- parse(tokens, registry, global_options): resolve the command, bind options and
  positionals, inject defaults, check required fields, then coerce and
  validate every value, reporting all violations at once.
- parse_line(line, ...): tokenize then parse; blank input is a no-op (None).

Token grammar
- "--name", "--name=value": long option (value inline or in the next token).
- "-n", "-nVALUE": short option (value attached or in the next token).
- bool options are presence flags ("true"), or take an inline value
  ("--force=no", "-fno"); they never consume the next token.
- "-5", "-2.5", "-.5" and a bare "-" are positional values, not flags.
- "--" ends option scanning; everything after it is positional.
- a flag given twice keeps its last value.

Failure order (first failing step wins)
1. UnknownCommandError (with suggestions)
2. UnknownFlagError (with suggestions), MissingFlagValueError
3. TooManyArgumentsError
4. MissingArgumentError / MissingRequiredError
5. ValidationFailedError (every coercion error and rule violation)
"""
import logging
import re
import shlex
from collections.abc import Mapping
from typing import NamedTuple

from .faults import *
from .schema import *
from .suggestions import suggest
from .utils import *
from .validation import canonical, check

lg = logging.getLogger(__name__)

_NUMBER = re.compile(r"-\.?[0-9].*", re.DOTALL)


def _ordinal(number):
    """
    1 -> "first", 2 -> "second", ..., 11 -> "11th", 21 -> "21st".
    """
    if 1 <= number <= 10:
        return ("first", "second", "third", "fourth", "fifth",
                "sixth", "seventh", "eighth", "ninth", "tenth")[number - 1]
    if 10 <= number % 100 <= 20:
        return "%dth" % number
    return "%d%s" % (number, {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th"))


class Arguments(Mapping):
    """
    Read-only map of field name -> canonical text, with typed access.

    >>> arguments["port"]
    '8080'
    >>> arguments.typed("port")
    8080
    """

    def __init__(self, values=(), /):
        self._typed = dict(values)
        self._values = {name: canonical(value) for name, value in self._typed.items()}

    def typed(self, name, default=Unset, /):
        """
        Return the coerced value of `name` (bool, int, float, Path or str).

        Raises KeyError when the field is absent and no default is given.
        """
        try:
            return self._typed[name]
        except KeyError:
            if default is Unset:
                raise
            return default

    def __getitem__(self, name):
        return self._values[name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return "arguments(%r)" % self._values


class ParsedInvocation(NamedTuple):
    """
    A resolved command with its validated fields.

    - command: the CommandSpec the first token resolved to.
    - arguments: every bound field (arguments, options, global options).
    - globals: the global options given on the command line, by name.
    """
    command: CommandSpec
    arguments: Arguments
    globals: Arguments


def tokenize(line, /):
    """
    Split `line` into tokens the way a POSIX shell would.

    Raises
    - MalformedInputError: on an unbalanced quote or a dangling escape.
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")
    try:
        return shlex.split(line)
    except ValueError as error:
        raise MalformedInputError(
            "cannot split input: %s" % str(error).lower(),
            line=line,
            hint="close every quote you open, or escape it with a backslash"
        ) from None


def _flags(command, global_options):
    table = {}
    for option in (*command.options, *global_options):
        for flag in option.flags:
            table[flag] = option
    return table


def _split_switch(token):
    # -> (flag, inline value or None); None when the token is not a switch.
    if token == "-" or token == "--" or not token.startswith("-") or re.fullmatch(_NUMBER, token):
        return None
    if token.startswith("--"):
        name, sep, value = token[2:].partition("=")
        return "--" + name, value if sep else None
    return token[:2], token[2:].removeprefix("=") if len(token) > 2 else None


def parse(tokens, registry, global_options=(), /, *, max_distance=Unset, limit=Unset):
    """
    Parse `tokens` (command token first) against `registry`.

    Parameters
    - tokens: sequence of strings; must not be empty.
    - registry: the Registry resolving the first token.
    - global_options: OptionSpecs accepted by every command.
    - max_distance/limit: suggestion bounds for unknown commands and flags.

    Returns
    - ParsedInvocation.

    Raises
    - ValueError: when `tokens` is empty (callers filter blank input first).
    - the parse faults listed in this module's documentation.
    """
    if not (tokens := list(tokens)):
        raise ValueError("parse() requires at least one token")
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() tokens must be strings")
    global_options = tuple(global_options)

    # 1. command resolution
    if (command := registry.resolve(token := tokens[0])) is None:
        suggestions = suggest(token, registry.names(), max_distance, limit)
        try:
            hint = "did you mean %r? run 'help' to see all commands" % suggestions[0]
        except IndexError:
            hint = "run 'help' to see all commands"
        raise UnknownCommandError(
            "unknown command %r" % token,
            token=token,
            suggestions=suggestions,
            hint=hint
        )

    # 2. option scanning
    table = _flags(command, global_options)
    raw = {}
    positionals = []
    scanning = True
    index = 1
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if scanning and token == "--":
            scanning = False
            continue
        if not scanning or (switch := _split_switch(token)) is None:
            positionals.append(token)
            continue

        flag, value = switch
        try:
            option = table[flag]
        except KeyError:
            suggestions = suggest(flag, table.keys(), max_distance, limit)
            try:
                hint = "did you mean %r? run 'help %s' to see its options" % (suggestions[0], command.name)
            except IndexError:
                hint = "run 'help %s' to see its options" % command.name
            raise UnknownFlagError(
                "unknown option %r at %s position" % (flag, _ordinal(index - 1)),
                flag=flag,
                command=command.name,
                suggestions=suggestions,
                hint=hint
            ) from None

        if value is None and option.type is ArgumentType.BOOL:
            value = "true"
        elif value is None:
            if index >= len(tokens):
                raise MissingFlagValueError(
                    "option %r requires a value" % flag,
                    flag=flag,
                    name=option.name,
                    hint="write %s=<value> or %s <value>" % (flag, flag)
                )
            value = tokens[index]
            index += 1

        if option.name in raw:
            lg.debug("option %r given more than once, keeping %r", option.name, value)
        raw[option.name] = value

    # 3. positional binding
    arguments = command.arguments
    if len(positionals) > len(arguments):
        raise TooManyArgumentsError(
            "%r expects at most %s, got %d" % (command.name, counted(len(arguments), "argument"), len(positionals)),
            command=command.name,
            expected=len(arguments),
            got=len(positionals),
            hint="quote values containing spaces, or drop the extra %s" % (
                "value" if len(positionals) - len(arguments) == 1 else "values"
            )
        )
    for argument, value in zip(arguments, positionals):
        raw[argument.name] = value

    # 4. defaults, then required fields
    supplied = set(raw)
    options = command.options
    for spec in (*arguments, *options, *global_options):
        if spec.name not in raw and spec.default is not Unset:
            raw[spec.name] = spec.default

    for argument in arguments:
        if argument.required and argument.name not in raw:
            fault = MissingArgumentError if positionals else MissingRequiredError
            raise fault(
                "%r requires the argument %r" % (command.name, argument.name),
                command=command.name,
                name=argument.name,
                hint="run 'help %s' to see its arguments" % command.name
            )
    for option in (*options, *global_options):
        if option.required and option.name not in raw:
            raise MissingRequiredError(
                "%r requires the option %s" % (command.name, " / ".join(option.flags)),
                command=command.name,
                name=option.name,
                hint="pass %s <value>" % option.flags[-1]
            )

    # 5. coercion and validation, every field reported
    values = []
    violations = []
    for spec in (*arguments, *options, *global_options):
        if spec.name not in raw:
            continue
        value, failures = check(raw[spec.name], spec)
        violations.extend(failures)
        values.append((spec.name, value))
    if violations:
        raise ValidationFailedError(violations, command=command.name)

    names = {option.name for option in global_options} & supplied
    lg.debug("parsed %r with %d fields", command.name, len(values))
    return ParsedInvocation(
        command,
        Arguments(values),
        Arguments((name, value) for name, value in values if name in names),
    )


def parse_line(line, registry, global_options=(), /, **options):
    """
    Tokenize and parse one line of input; a blank line yields None.
    """
    if not (tokens := tokenize(line)):
        return None
    return parse(tokens, registry, global_options, **options)


__all__ = (
    "Arguments",
    "ParsedInvocation",
    "tokenize",
    "parse",
    "parse_line",
)
