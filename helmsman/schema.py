r"""
Helmsman schema model: the data an application declares its surface with.

Overview
- Types
  • ArgumentType: string | integer | float | bool | path (serialized lowercase).
- Rules (declarative, stateless)
  • MustExist(): the path must exist.
  • Extensions(extensions): the path suffix must be one of the accepted set.
  • Range(min, max): inclusive numeric bounds (at least one present).
  • Choices(choices): the value's canonical text must be one of a finite set.
- Specs
  • ArgumentSpec: positional argument (required by default).
  • OptionSpec: named option with a short (-v) and/or long (--verbose) flag.
  • CommandSpec: name, aliases, arguments, options, handler identifier.
  • Metadata / Schema: the unit the loader produces and the builder consumes.

Introspection & representation
- SpecType metaclass exposes the fields listed in __introspectable__ through
  read-only properties (mirror), derives __typename__ from the class name and
  provides stable __repr__/__rich_repr__/__eq__.

Structural checks (at construction)
- names are non-empty and contain no whitespace; uniqueness of argument,
  option and flag names within a command and against global options;
- a required positional argument may not follow an optional one;
- MustExist/Extensions only on paths, Range only on numbers;
- a default outside a non-empty choice set is rejected; bool fields declare no
  choices.
Misuse raises TypeError (wrong kind of value) or ValueError (wrong value),
with messages shaped "<typename> '<field>' must ...". The loader turns them
into InvalidSchemaError with a dotted location.

Quick example:
    >>> from helmsman.schema import *
    >>> copy = CommandSpec(
    ...     "copy", aliases=("cp",),
    ...     arguments=(ArgumentSpec("source", "path"), ArgumentSpec("dest", "path")),
    ...     options=(OptionSpec("force", "f", "force", "bool"),),
    ... )
"""
import functools
import numbers
import operator
import re
from collections.abc import Iterable
from enum import StrEnum

from .faults import CoercionError
from .utils import *


class ArgumentType(StrEnum):
    """
    Declared type of an argument or option value.
    """
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"
    PATH = "path"


class SpecType(type):
    """
    Metaclass giving schema classes read-only, introspectable fields.

    Responsibilities
    - Expose each name in __introspectable__ as a read-only property over the
      private field self._<name> (containers are copied on access).
    - Derive __typename__ from the class name ("OptionSpec" -> "option-spec")
      for messages.
    - Provide __repr__, __rich_repr__, __eq__ and __hash__ computed from the
      introspectable fields.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__eq__")
        def __eq__(self, other):
            if type(self) is not type(other):
                return NotImplemented
            return list(self.__rich_repr__()) == list(other.__rich_repr__())
        self.__eq__ = __eq__

        @rename("__hash__")
        def __hash__(self):
            return hash((type(self), repr(self)))
        self.__hash__ = __hash__

        return self


def _sanitize_identifier(cls, field, value, /):
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} '{field}' must be a string")
    elif not (value := value.strip()):
        raise ValueError(f"{cls.__typename__} '{field}' cannot be empty")
    elif re.search(r"\s", value):
        raise ValueError(f"{cls.__typename__} '{field}' cannot contain whitespace")
    return value


def _sanitize_descr(cls, metadata, /):
    if not isinstance(descr := metadata["descr"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    metadata["descr"] = (descr.strip() or None) if descr else None


def _sanitize_type(cls, metadata, /):
    if not isinstance(type := metadata["type"], str):
        raise TypeError(f"{cls.__typename__} 'type' must be a string")
    try:
        metadata["type"] = ArgumentType(type.strip().lower())
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'type' must be one of {', '.join(map(str, ArgumentType))}") from None


def _canonical_text(value, /):
    # Defaults and choices are kept as the text a user would type.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Real):
        return str(value)
    return value


def _canonical_value(cls, field, value, type, /):
    # Stored as the text canonical() renders for the coerced value, which is
    # what the choices rule compares against.
    from .validation import canonical, coerce
    try:
        return canonical(coerce(_canonical_text(value), type))
    except CoercionError:
        raise ValueError(f"{cls.__typename__} '{field}' must only hold {type} values") from None


def _sanitize_field_metadata(cls, metadata, /):
    """
    Internal: validate fields shared by ArgumentSpec and OptionSpec.

    Responsibilities
    - name: non-empty identifier without whitespace.
    - type: ArgumentType or its lowercase name.
    - rules: iterable of Rule, each applicable to the declared type.
    - default: Unset or a scalar of the declared type (stored as its canonical
      text; coerced again when used).
    - choices: iterable of scalars of the declared type, without duplicates once
      canonicalized (stored as canonical text, so 1 and "1.0" are the same float
      choice and "./out.txt" the same path as "out.txt"); bool
      fields cannot declare choices; a default must be one of the choices.

    Notes
    - This function mutates the provided metadata dict in place.
    """
    metadata["name"] = _sanitize_identifier(cls, "name", metadata["name"])
    _sanitize_type(cls, metadata)
    _sanitize_descr(cls, metadata)

    if not isinstance(metadata["rules"], Iterable) or isinstance(metadata["rules"], str):
        raise TypeError(f"{cls.__typename__} 'rules' must be iterable")
    rules = []
    for rule in metadata["rules"]:
        if not isinstance(rule, Rule):
            raise TypeError(f"{cls.__typename__} 'rules' must only contain validation rules")
        if not rule.supports(metadata["type"]):
            raise ValueError(f"{type(rule).__typename__} rule cannot apply to a {metadata['type']} value")
        rules.append(rule)
    metadata["rules"] = tuple(rules)

    if not isinstance(default := metadata["default"], str | numbers.Real | Unset):
        raise TypeError(f"{cls.__typename__} 'default' must be a string")
    metadata["default"] = _canonical_value(cls, "default", default, metadata["type"]) if default is not Unset else Unset

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
    sanitized = []
    for choice in choices:
        if not isinstance(choice, str | numbers.Real):
            raise TypeError(f"{cls.__typename__} 'choices' must only contain strings")
        if (choice := _canonical_value(cls, "choices", choice, metadata["type"])) in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if metadata["choices"] and metadata["type"] is ArgumentType.BOOL:
        raise ValueError(f"bool {cls.__typename__} cannot declare 'choices'")
    if metadata["choices"] and metadata["default"] is not Unset and metadata["default"] not in metadata["choices"]:
        raise ValueError(f"{cls.__typename__} 'default' must be one of its 'choices'")


class Rule(metaclass=SpecType):
    """
    Base class of declarative validation rules.

    A rule never mutates the value it checks; the validation engine evaluates
    rules in declaration order and reports every violation.
    """
    __types__ = tuple(ArgumentType)

    @classmethod
    def supports(cls, type, /):
        """
        Return whether this rule can apply to values of `type`.
        """
        return ArgumentType(type) in cls.__types__

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        if "__new__" not in cls.__dict__:
            return
        # Every concrete rule is sealed.
        seal = cls

        def __init_subclass__(cls, **options):
            raise TypeError(f"type {seal.__name__!r} is not an acceptable base type")
        cls.__init_subclass__ = classmethod(__init_subclass__)


class MustExist(Rule):
    """
    The path must exist on the filesystem when the value is validated.
    """
    __types__ = (ArgumentType.PATH,)

    def __new__(cls):
        return super().__new__(cls)


class Extensions(Rule):
    """
    The path suffix must be one of `extensions` (case-insensitive).

    A leading dot is optional: Extensions(["yaml", ".YML"]) accepts both
    "config.yaml" and "CONFIG.yml".
    """
    __introspectable__ = ("extensions",)
    __types__ = (ArgumentType.PATH,)

    def __new__(cls, extensions, /):
        if not isinstance(extensions, Iterable) or isinstance(extensions, str):
            raise TypeError(f"{cls.__typename__} 'extensions' must be iterable")
        sanitized = []
        for extension in extensions:
            if not isinstance(extension, str):
                raise TypeError(f"{cls.__typename__} 'extensions' must only contain strings")
            if not (extension := extension.strip().removeprefix(".").lower()):
                raise ValueError(f"{cls.__typename__} 'extensions' cannot contain empty strings")
            if extension not in sanitized:
                sanitized.append(extension)
        if not sanitized:
            raise ValueError(f"{cls.__typename__} must accept at least one extension")

        self = super().__new__(cls)
        self._extensions = tuple(sanitized)
        return self


class Range(Rule):
    """
    The numeric value must lie within [min, max] (either bound may be absent).
    """
    __introspectable__ = ("min", "max")
    __types__ = (ArgumentType.INTEGER, ArgumentType.FLOAT)

    def __new__(cls, min=Unset, max=Unset):
        for field, bound in (("min", min), ("max", max)):
            if bound is not Unset and (isinstance(bound, bool) or not isinstance(bound, numbers.Real)):
                raise TypeError(f"{cls.__typename__} '{field}' must be a number")
            if bound is not Unset and bound != bound:
                raise ValueError(f"{cls.__typename__} '{field}' cannot be nan")
        if min is Unset and max is Unset:
            raise ValueError(f"{cls.__typename__} must declare 'min' or 'max'")
        if min is not Unset and max is not Unset and min > max:
            raise ValueError(f"{cls.__typename__} 'min' must not be greater than 'max'")

        self = super().__new__(cls)
        self._min = coalesce(min)
        self._max = coalesce(max)
        return self


class Choices(Rule):
    """
    The canonical text of the value must be one of `choices` (exact match).
    """
    __introspectable__ = ("choices",)
    __types__ = (ArgumentType.STRING, ArgumentType.INTEGER, ArgumentType.FLOAT, ArgumentType.PATH)

    def __new__(cls, choices, /):
        if not isinstance(choices, Iterable) or isinstance(choices, str):
            raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
        if not (choices := tuple(dict.fromkeys(map(_canonical_text, choices)))):
            raise ValueError(f"{cls.__typename__} must accept at least one choice")

        self = super().__new__(cls)
        self._choices = choices
        return self


class ArgumentSpec(metaclass=SpecType):
    """
    Positional argument specification.

    Arguments bind to positional tokens in declaration order. They are required
    unless declared otherwise; an optional argument may carry a default.
    """
    __introspectable__ = (
        "name",
        "type",
        "descr",
        "rules",
        "required",
        "default",
        "choices",
    )

    def __new__(
            cls,
            name,
            /,
            type=ArgumentType.STRING,
            descr=Unset,
            rules=(),
            *,
            required=True,
            default=Unset,
            choices=()
    ):
        metadata = {
            "name": name,
            "type": type,
            "descr": descr,
            "rules": rules,
            "required": bool(required),
            "default": default,
            "choices": choices,
        }
        _sanitize_field_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class OptionSpec(metaclass=SpecType):
    """
    Named option specification.

    Options are addressed by a short flag (-o), a long flag (--output), or both;
    at least one is required. Flags are declared without their dashes. Boolean
    options are presence flags: "--force" alone means true.
    """
    __introspectable__ = (
        "name",
        "short",
        "long",
        "type",
        "descr",
        "rules",
        "required",
        "default",
        "choices",
    )

    def __new__(
            cls,
            name,
            /,
            short=Unset,
            long=Unset,
            type=ArgumentType.STRING,
            descr=Unset,
            rules=(),
            *,
            required=False,
            default=Unset,
            choices=()
    ):
        metadata = {
            "name": name,
            "short": short,
            "long": long,
            "type": type,
            "descr": descr,
            "rules": rules,
            "required": bool(required),
            "default": default,
            "choices": choices,
        }
        _sanitize_field_metadata(cls, metadata)

        if not isinstance(short, str | Unset | None):
            raise TypeError(f"{cls.__typename__} 'short' must be a string")
        if short:
            if not re.fullmatch(r"[^\W\d]", short := short.strip().removeprefix("-")):
                raise ValueError(f"{cls.__typename__} 'short' must be a single non-digit character")
        metadata["short"] = short or None

        if not isinstance(long, str | Unset | None):
            raise TypeError(f"{cls.__typename__} 'long' must be a string")
        if long:
            if not re.fullmatch(r"[^\W\d_][\w-]*", long := long.strip().removeprefix("--")):
                raise ValueError(f"{cls.__typename__} 'long' must be a valid option word")
        metadata["long"] = long or None

        if not metadata["short"] and not metadata["long"]:
            raise ValueError(f"{cls.__typename__} must declare a 'short' or a 'long' flag")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def flags(self):
        """
        The user-facing spellings of this option ("-o", "--output").
        """
        return tuple(flag for flag in (
            "-" + self._short if self._short else None,
            "--" + self._long if self._long else None,
        ) if flag)


def _check_options(cls, options, taken, /):
    # taken: flag/name -> owner, shared across global and command options.
    for option in options:
        if option.name in taken:
            raise ValueError(f"{cls.__typename__} declares {option.name!r} more than once")
        taken[option.name] = option
        for flag in option.flags:
            if flag in taken:
                raise ValueError(f"{cls.__typename__} flag {flag!r} is declared more than once")
            taken[flag] = option


class CommandSpec(metaclass=SpecType):
    """
    Command specification: name, aliases, positional arguments and options.

    `implementation` is the identifier of the handler the dispatcher invokes;
    it defaults to the command name. `required` flags commands an application
    must provide a handler for before it can start.
    """
    __introspectable__ = (
        "name",
        "aliases",
        "descr",
        "arguments",
        "options",
        "implementation",
        "required",
    )

    def __new__(
            cls,
            name,
            /,
            aliases=(),
            descr=Unset,
            arguments=(),
            options=(),
            implementation=Unset,
            *,
            required=False
    ):
        metadata = {
            "name": _sanitize_identifier(cls, "name", name),
            "aliases": aliases,
            "descr": descr,
            "arguments": arguments,
            "options": options,
            "implementation": implementation,
            "required": bool(required),
        }
        _sanitize_descr(cls, metadata)

        if not isinstance(aliases, Iterable) or isinstance(aliases, str):
            raise TypeError(f"{cls.__typename__} 'aliases' must be iterable")
        sanitized = []
        for alias in aliases:
            alias = _sanitize_identifier(cls, "aliases", alias)
            if alias in sanitized or alias == metadata["name"]:
                raise ValueError(f"{cls.__typename__} 'aliases' cannot contain duplicates")
            sanitized.append(alias)
        metadata["aliases"] = tuple(sanitized)

        if implementation is Unset:
            implementation = metadata["name"]
        metadata["implementation"] = _sanitize_identifier(cls, "implementation", implementation)

        if not isinstance(arguments, Iterable) or isinstance(arguments, str):
            raise TypeError(f"{cls.__typename__} 'arguments' must only contain argument specs")
        arguments = tuple(arguments)
        if not all(isinstance(spec, ArgumentSpec) for spec in arguments):
            raise TypeError(f"{cls.__typename__} 'arguments' must only contain argument specs")
        names = set()
        optional = None
        for argument in arguments:
            if argument.name in names:
                raise ValueError(f"{cls.__typename__} declares {argument.name!r} more than once")
            names.add(argument.name)
            if argument.required and optional:
                raise ValueError(f"required argument {argument.name!r} cannot follow optional argument {optional!r}")
            if not argument.required:
                optional = argument.name
        metadata["arguments"] = arguments

        if not isinstance(options, Iterable) or isinstance(options, str):
            raise TypeError(f"{cls.__typename__} 'options' must only contain option specs")
        options = tuple(options)
        if not all(isinstance(spec, OptionSpec) for spec in options):
            raise TypeError(f"{cls.__typename__} 'options' must only contain option specs")
        _check_options(cls, options, dict.fromkeys(names))
        metadata["options"] = options

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        """
        The command name followed by its aliases.
        """
        return (self._name, *self._aliases)


class Metadata(metaclass=SpecType):
    """
    Application metadata: version string and interactive prompt.
    """
    __introspectable__ = ("version", "prompt", "prompt_suffix")

    def __new__(cls, version=Unset, prompt=Unset, prompt_suffix=" > "):
        for field, value in (("version", version), ("prompt", prompt), ("prompt_suffix", prompt_suffix)):
            if not isinstance(value, str | Unset | None):
                raise TypeError(f"{cls.__typename__} '{field}' must be a string")

        self = super().__new__(cls)
        self._version = coalesce(version)
        self._prompt = coalesce(prompt)
        self._prompt_suffix = prompt_suffix or ""
        return self


class Schema(metaclass=SpecType):
    """
    A complete command surface: commands, global options and metadata.

    Global options are accepted by every command; a command may not declare an
    argument or option whose name or flag collides with a global option.
    Alias collisions between commands are reported by the registry.
    """
    __introspectable__ = ("commands", "global_options", "metadata")

    def __new__(cls, commands=(), global_options=(), metadata=Unset):
        if not isinstance(commands, Iterable) or isinstance(commands, str):
            raise TypeError(f"{cls.__typename__} 'commands' must only contain command specs")
        commands = tuple(commands)
        if not all(isinstance(spec, CommandSpec) for spec in commands):
            raise TypeError(f"{cls.__typename__} 'commands' must only contain command specs")
        if not isinstance(global_options, Iterable) or isinstance(global_options, str):
            raise TypeError(f"{cls.__typename__} 'global_options' must only contain option specs")
        global_options = tuple(global_options)
        if not all(isinstance(spec, OptionSpec) for spec in global_options):
            raise TypeError(f"{cls.__typename__} 'global_options' must only contain option specs")
        if not isinstance(metadata, Metadata | Unset):
            raise TypeError(f"{cls.__typename__} 'metadata' must be a metadata")

        _check_options(cls, global_options, taken := {})
        for command in commands:
            reserved = dict(taken)
            try:
                _check_options(cls, command.options, reserved)
                for argument in command.arguments:
                    if argument.name in reserved:
                        raise ValueError(f"{cls.__typename__} declares {argument.name!r} more than once")
            except ValueError as error:
                raise ValueError(f"command {command.name!r} conflicts with global options: {error}") from None

        self = super().__new__(cls)
        self._commands = commands
        self._global_options = global_options
        self._metadata = Metadata() if metadata is Unset else metadata
        return self


__all__ = (
    # Types
    "ArgumentType",
    "SpecType",

    # Rules
    "Rule",
    "MustExist",
    "Extensions",
    "Range",
    "Choices",

    # Specs
    "ArgumentSpec",
    "OptionSpec",
    "CommandSpec",
    "Metadata",
    "Schema",
)
