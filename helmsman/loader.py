"""
Helmsman schema loader: YAML/JSON documents -> Schema.

Document layout
    metadata:
      version: "1.0.0"
      prompt: "app"
      prompt_suffix: " > "
    commands:
      - name: process
        aliases: [proc, p]
        description: "Process data files"
        required: true
        implementation: process_handler
        arguments:
          - name: input
            arg_type: path
            required: true
            description: "Input file"
            validation:
              - must_exist: true
              - extensions: [csv, tsv]
        options:
          - name: format
            short: f
            long: format
            option_type: string
            default: json
            choices: [json, xml]
    global_options:
      - name: verbose
        short: v
        long: verbose
        option_type: bool

Validation entries: {must_exist: true}, {extensions: [...]}, {min: n, max: n}
(either bound may be omitted). {must_exist: false} declares nothing.

Faults
- ConfigNotFoundError: the file does not exist or cannot be read.
- UnsupportedFormatError: the suffix is not .yaml, .yml or .json.
- MalformedConfigError: the file is not utf-8, or the document is not valid
  YAML/JSON (with line/column).
- InvalidSchemaError: the document does not describe a valid schema; `location`
  names the offending entry, e.g. "commands[2].options[0].short".
"""
import json
import logging
from collections.abc import Mapping
from pathlib import Path

import yaml

from .faults import *
from .schema import *
from .suggestions import suggest
from .utils import *

lg = logging.getLogger(__name__)

FORMATS = {
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
}

_METADATA_FIELDS = ("version", "prompt", "prompt_suffix")
_COMMAND_FIELDS = ("name", "aliases", "description", "required", "arguments", "options", "implementation")
_ARGUMENT_FIELDS = ("name", "arg_type", "required", "description", "validation", "default", "choices")
_OPTION_FIELDS = ("name", "short", "long", "option_type", "required", "default", "description", "choices", "validation")


def _invalid(location, message, /, **options):
    return InvalidSchemaError(
        "%s: %s" % (location or "document", message),
        location=location,
        **({"hint": "fix the schema document and try again"} | options)
    )


def _mapping(value, location, fields, /):
    if not isinstance(value, Mapping):
        raise _invalid(location, "expected a mapping, got %s" % type(value).__name__)
    for key in value:
        if key not in fields:
            suggestions = suggest(str(key), fields)
            raise _invalid(
                location,
                "unknown field %r" % key,
                suggestions=suggestions,
                **({"hint": "did you mean %r?" % suggestions[0]} if suggestions else {})
            )
    return value


def _sequence(value, location, /):
    if value is None:
        return []
    if not isinstance(value, list):
        raise _invalid(location, "expected a list, got %s" % type(value).__name__)
    return value


def _build(cls, location, /, *args, **kwargs):
    # Misuse errors of the schema model become located schema faults.
    try:
        return cls(*args, **kwargs)
    except (TypeError, ValueError) as error:
        raise _invalid(location, str(error)) from None


def _rules(entries, location, /):
    rules = []
    for index, entry in enumerate(_sequence(entries, location)):
        here = "%s[%d]" % (location, index)
        entry = _mapping(entry, here, ("must_exist", "extensions", "min", "max"))
        match sorted(entry):
            case ["must_exist"]:
                if not isinstance(entry["must_exist"], bool):
                    raise _invalid(here, "'must_exist' must be true or false")
                if entry["must_exist"]:
                    rules.append(_build(MustExist, here))
            case ["extensions"]:
                rules.append(_build(Extensions, here, _sequence(entry["extensions"], here + ".extensions")))
            case ["max"] | ["min"] | ["max", "min"]:
                rules.append(_build(Range, here, **entry))
            case _:
                raise _invalid(here, "a validation entry declares must_exist, extensions, or min/max")
    return rules


def _scalar(value):
    # YAML turns 8080, 1.5 and true into numbers and booleans; keep user text.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return value


def _argument(entry, location, /):
    entry = _mapping(entry, location, _ARGUMENT_FIELDS)
    return _build(
        ArgumentSpec,
        location,
        entry.get("name"),
        entry.get("arg_type", ArgumentType.STRING),
        entry.get("description"),
        _rules(entry.get("validation"), location + ".validation"),
        required=entry.get("required", True),
        default=_scalar(entry.get("default", Unset)),
        choices=list(map(_scalar, _sequence(entry.get("choices"), location + ".choices"))),
    )


def _option(entry, location, /):
    entry = _mapping(entry, location, _OPTION_FIELDS)
    return _build(
        OptionSpec,
        location,
        entry.get("name"),
        _scalar(entry.get("short")),
        entry.get("long"),
        entry.get("option_type", ArgumentType.STRING),
        entry.get("description"),
        _rules(entry.get("validation"), location + ".validation"),
        required=entry.get("required", False),
        default=_scalar(entry.get("default", Unset)),
        choices=list(map(_scalar, _sequence(entry.get("choices"), location + ".choices"))),
    )


def _command(entry, location, /):
    entry = _mapping(entry, location, _COMMAND_FIELDS)
    return _build(
        CommandSpec,
        location,
        entry.get("name"),
        _sequence(entry.get("aliases"), location + ".aliases"),
        entry.get("description"),
        [
            _argument(argument, "%s.arguments[%d]" % (location, index))
            for index, argument in enumerate(_sequence(entry.get("arguments"), location + ".arguments"))
        ],
        [
            _option(option, "%s.options[%d]" % (location, index))
            for index, option in enumerate(_sequence(entry.get("options"), location + ".options"))
        ],
        entry.get("implementation", Unset),
        required=entry.get("required", False),
    )


def build(document, /):
    """
    Build a Schema from a deserialized document (nested dicts and lists).

    Raises
    - InvalidSchemaError: with the location of the first invalid entry.
    """
    document = _mapping(document, "", ("metadata", "commands", "global_options"))

    metadata = Unset
    if (entry := document.get("metadata")) is not None:
        entry = _mapping(entry, "metadata", _METADATA_FIELDS)
        metadata = _build(Metadata, "metadata", **{
            field: _scalar(entry[field]) for field in _METADATA_FIELDS if entry.get(field) is not None
        })

    commands = [
        _command(command, "commands[%d]" % index)
        for index, command in enumerate(_sequence(document.get("commands"), "commands"))
    ]
    global_options = [
        _option(option, "global_options[%d]" % index)
        for index, option in enumerate(_sequence(document.get("global_options"), "global_options"))
    ]
    return _build(Schema, "", commands, global_options, metadata)


def loads(text, format="yaml", /):
    """
    Parse `text` as a `format` ("yaml" or "json") schema document.

    Raises
    - UnsupportedFormatError, MalformedConfigError, InvalidSchemaError.
    """
    if not isinstance(text, str):
        raise TypeError("loads() argument must be a string")

    match format:
        case "yaml":
            try:
                document = yaml.safe_load(text)
            except yaml.YAMLError as error:
                mark = getattr(error, "problem_mark", None)
                raise MalformedConfigError(
                    "invalid yaml%s: %s" % (
                        " at line %d, column %d" % (mark.line + 1, mark.column + 1) if mark else "",
                        getattr(error, "problem", None) or error,
                    ),
                    format=format,
                    line=mark.line + 1 if mark else None,
                    column=mark.column + 1 if mark else None,
                    hint="check indentation and quoting around the reported position"
                ) from None
        case "json":
            try:
                document = json.loads(text)
            except json.JSONDecodeError as error:
                raise MalformedConfigError(
                    "invalid json at line %d, column %d: %s" % (error.lineno, error.colno, error.msg.lower()),
                    format=format,
                    line=error.lineno,
                    column=error.colno,
                    hint="check commas, brackets and quotes around the reported position"
                ) from None
        case _:
            raise UnsupportedFormatError(
                "unsupported schema format %r" % format,
                format=format,
                hint="use one of: %s" % ", ".join(sorted(set(FORMATS.values())))
            )

    return build(document)


def load(path, /):
    """
    Load the schema document at `path`; the format follows the file suffix.

    Raises
    - UnsupportedFormatError: for a suffix other than .yaml, .yml or .json.
    - ConfigNotFoundError: when the file is missing or unreadable.
    - MalformedConfigError: when the file is not valid utf-8 (with `position`).
    - MalformedConfigError, InvalidSchemaError: as loads().
    """
    path = Path(path)
    if (format := FORMATS.get(path.suffix.lower())) is None:
        raise UnsupportedFormatError(
            "cannot load %r: unsupported file type %r" % (str(path), path.suffix or "(none)"),
            path=str(path),
            hint="name the schema file with one of: %s" % ", ".join(FORMATS)
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigNotFoundError(
            "cannot read schema %r: %s" % (str(path), (error.strerror or str(error)).lower()),
            path=str(path),
            hint="check the path and its permissions"
        ) from None
    except UnicodeDecodeError as error:
        raise MalformedConfigError(
            "cannot decode schema %r: invalid utf-8 byte at position %d" % (str(path), error.start),
            path=str(path),
            format=format,
            position=error.start,
            hint="save the schema file as utf-8"
        ) from None

    schema = loads(text, format)
    lg.debug("loaded %d commands from %s", len(schema.commands), path)
    return schema


__all__ = (
    "FORMATS",
    "build",
    "loads",
    "load",
)
