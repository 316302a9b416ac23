"""
Helmsman faults (errors) and their rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing fault, grouped by
  pipeline stage so logs and searches stay predictable.
- Fault: base exception carrying a lowercase message plus a read-only `options`
  mapping of structured context (field names, offending tokens, suggestion lists).
  Every option is also readable as an attribute: `fault.suggestions`.
- Stage bases: ConstructionError, ConfigError, ParseError, DispatchError.
  Coercion errors and rule violations are values produced by the validation
  engine; the parser batches them in a ValidationFailedError group.
- render()/report(): rich rendering honouring host overrides on __main__.

Host overrides (module-level dunders on __main__)
- __styles__: palette overrides (keys as in the default palettes below).
- __codes__: FaultCode -> label remapping.
- __docs__: FaultCode -> short documentation line.
- __prog__: program name in headers.

Exit status
- Each stage base declares `status`: parse faults 2, dispatch faults 1, startup
  faults (construction/config) 3. Front-ends use it as the process exit status.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, host

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - construction (101xx): DUPLICATE_ALIAS
    - config (102xx): CONFIG_NOT_FOUND, UNSUPPORTED_FORMAT, MALFORMED_CONFIG, INVALID_SCHEMA
    - routing/parsing (111xx): UNKNOWN_COMMAND, MALFORMED_INPUT, UNKNOWN_FLAG,
      MISSING_FLAG_VALUE, TOO_MANY_ARGUMENTS, MISSING_ARGUMENT, MISSING_REQUIRED,
      VALIDATION_FAILED
    - coercion (121xx): INVALID_BOOL, INVALID_NUMBER, INVALID_PATH
    - rules (122xx): NOT_FOUND, BAD_EXTENSION, OUT_OF_RANGE, NOT_A_CHOICE
    - dispatch (131xx): HANDLER_NOT_REGISTERED, CONTEXT_TYPE_MISMATCH
    """
    # --- construction (101xx) ---
    DUPLICATE_ALIAS        = 10101

    # --- config (102xx) ---
    CONFIG_NOT_FOUND       = 10201
    UNSUPPORTED_FORMAT     = 10202
    MALFORMED_CONFIG       = 10203
    INVALID_SCHEMA         = 10204

    # --- parsing (111xx) ---
    UNKNOWN_COMMAND        = 11101
    MALFORMED_INPUT        = 11102
    UNKNOWN_FLAG           = 11111
    MISSING_FLAG_VALUE     = 11112
    TOO_MANY_ARGUMENTS     = 11121
    MISSING_ARGUMENT       = 11122
    MISSING_REQUIRED       = 11123
    VALIDATION_FAILED      = 11131

    # --- coercion (121xx) ---
    INVALID_BOOL           = 12101
    INVALID_NUMBER         = 12102
    INVALID_PATH           = 12103

    # --- rules (122xx) ---
    NOT_FOUND              = 12201
    BAD_EXTENSION          = 12202
    OUT_OF_RANGE           = 12203
    NOT_A_CHOICE           = 12204

    # --- dispatch (131xx) ---
    HANDLER_NOT_REGISTERED = 13101
    CONTEXT_TYPE_MISMATCH  = 13102

    def normalize(self):
        """
        return the host label for this code (__main__.__codes__), or its number.
        """
        return str(host("__codes__", {}).get(self, self.value))


def getdoc(code, /):
    """
    optional documentation line for a fault code, from __main__.__docs__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return host("__docs__", {}).get(code)


def _palette(defaults, options):
    styles = defaultdict(str, defaults | host("__styles__", {}))

    def styler(style):
        return styles[style] if options.get("colorful", True) else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if options.get("colorful", True) else Text(fragment.plain)
        return Text(str(fragment), styler(style) if style else "")

    return styler, text


class Fault(Exception):
    """
    base class of every helmsman fault.

    contract
    - message: one lowercase sentence.
    - options: read-only mapping of structured context; `hint` is the single
      actionable next step shown under the message.
    - code/title: class-level identity used in rendered headers.
    """
    code = Unset
    title = "fault"
    status = 1

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError("fault message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # Only reached when normal lookup fails; expose structured options as attributes.
        if name != "options" and not name.startswith("__"):
            try:
                return self.options[name]
            except (KeyError, AttributeError):
                pass
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __str__(self):
        return self.message

    def __rich__(self):
        styler, text = _palette({
            # header
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "docs": "underline #00E5FF dim",
        }, self.options)

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", host("__prog__", "helmsman")), "prog-name"),
            " — ",
            text(self.code.normalize() if self.code else "-", "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]"
        )
        renders = [text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        if self.code and (docs := getdoc(self.code)):
            renders.append(text(docs, "docs"))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        # Subclasses may define their own __init__; clone without calling it.
        clone = Exception.__new__(type(self), *self.args)
        clone.__dict__.update(self.__dict__)
        clone.options = MappingProxyType({**self.options, **overrides})
        return clone


# --- stage bases ---

class ConstructionError(Fault):
    status = 3


class ConfigError(Fault):
    status = 3


class ParseError(Fault):
    status = 2


class DispatchError(Fault):
    status = 1


class CoercionError(Fault):
    """
    a raw token could not be converted to the declared type.
    """
    title = "invalid value"
    status = 2


class RuleViolation(Fault):
    """
    a typed value failed one declared validation rule.
    """
    title = "rule violation"
    status = 2


# --- construction ---

class DuplicateAliasError(ConstructionError):
    code = FaultCode.DUPLICATE_ALIAS
    title = "duplicate alias"


# --- config ---

class ConfigNotFoundError(ConfigError):
    code = FaultCode.CONFIG_NOT_FOUND
    title = "configuration not found"


class UnsupportedFormatError(ConfigError):
    code = FaultCode.UNSUPPORTED_FORMAT
    title = "unsupported format"


class MalformedConfigError(ConfigError):
    code = FaultCode.MALFORMED_CONFIG
    title = "malformed configuration"


class InvalidSchemaError(ConfigError):
    code = FaultCode.INVALID_SCHEMA
    title = "invalid schema"


# --- parsing ---

class UnknownCommandError(ParseError):
    code = FaultCode.UNKNOWN_COMMAND
    title = "unknown command"


class MalformedInputError(ParseError):
    code = FaultCode.MALFORMED_INPUT
    title = "malformed input"


class UnknownFlagError(ParseError):
    code = FaultCode.UNKNOWN_FLAG
    title = "unknown option"


class MissingFlagValueError(ParseError):
    code = FaultCode.MISSING_FLAG_VALUE
    title = "missing option value"


class TooManyArgumentsError(ParseError):
    code = FaultCode.TOO_MANY_ARGUMENTS
    title = "too many arguments"


class MissingRequiredError(ParseError):
    code = FaultCode.MISSING_REQUIRED
    title = "missing required value"


class MissingArgumentError(MissingRequiredError):
    code = FaultCode.MISSING_ARGUMENT
    title = "missing argument"


# --- coercion ---

class InvalidBoolError(CoercionError):
    code = FaultCode.INVALID_BOOL


class InvalidNumberError(CoercionError):
    code = FaultCode.INVALID_NUMBER


class InvalidPathError(CoercionError):
    code = FaultCode.INVALID_PATH


# --- rules ---

class NotFoundError(RuleViolation):
    code = FaultCode.NOT_FOUND
    title = "path not found"


class BadExtensionError(RuleViolation):
    code = FaultCode.BAD_EXTENSION
    title = "bad extension"


class OutOfRangeError(RuleViolation):
    code = FaultCode.OUT_OF_RANGE
    title = "out of range"


class NotAChoiceError(RuleViolation):
    code = FaultCode.NOT_A_CHOICE
    title = "invalid choice"


# --- dispatch ---

class HandlerNotRegisteredError(DispatchError):
    code = FaultCode.HANDLER_NOT_REGISTERED
    title = "handler not registered"


class ContextTypeMismatchError(DispatchError):
    code = FaultCode.CONTEXT_TYPE_MISMATCH
    title = "context type mismatch"


class ValidationFailedError(ExceptionGroup, ParseError):
    """
    every coercion error and rule violation of one invocation, in field order.
    """
    code = FaultCode.VALIDATION_FAILED
    title = "validation failed"

    def __new__(cls, violations, /, **options):
        return super().__new__(cls, "validation failed", tuple(violations))

    def __init__(self, violations, /, **options):
        super().__init__("validation failed", tuple(violations))
        self.options = MappingProxyType(options)

    @property
    def violations(self):
        return self.exceptions

    def derive(self, excs):
        return type(self)(excs, **self.options)

    def __rich__(self):
        styler, text = _palette({
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        }, self.options)

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", host("__prog__", "helmsman")), "prog-name"),
            " — ",
            text("%d %s" % (len(self.exceptions), self.title), "title"),
            " ]"
        )
        renders = []
        for violation in self.exceptions:
            renders.append(copy.replace(violation, **{
                key: value for key, value in self.options.items() if key in ("colorful", "prog")
            }))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def render(fault, /, **options):
    """
    return a rich renderable for `fault`, merging rendering options into it.

    typical options: colorful (bool, default True), fancy (bool, default False),
    prog (str).
    """
    if not isinstance(fault, Fault):
        raise TypeError("render() argument must be a fault")
    return copy.replace(fault, **options)


def report(fault, /, *, output=Unset, **options):
    """
    print `fault` to `output` (a rich Console; stderr by default).
    """
    (console if output is Unset else output).print(render(fault, **options))


__all__ = (
    "FaultCode",
    "Fault",
    "ConstructionError",
    "ConfigError",
    "ParseError",
    "DispatchError",
    "CoercionError",
    "RuleViolation",
    "DuplicateAliasError",
    "ConfigNotFoundError",
    "UnsupportedFormatError",
    "MalformedConfigError",
    "InvalidSchemaError",
    "UnknownCommandError",
    "MalformedInputError",
    "UnknownFlagError",
    "MissingFlagValueError",
    "TooManyArgumentsError",
    "MissingRequiredError",
    "MissingArgumentError",
    "ValidationFailedError",
    "InvalidBoolError",
    "InvalidNumberError",
    "InvalidPathError",
    "NotFoundError",
    "BadExtensionError",
    "OutOfRangeError",
    "NotAChoiceError",
    "HandlerNotRegisteredError",
    "ContextTypeMismatchError",
    "getdoc",
    "render",
    "report",
)
