"""
Schema loader tests (YAML/JSON documents, files, located faults).

Scope
- Validate that a complete document builds the expected Schema.
- Validate file loading by suffix and the config faults.
- Validate that schema mistakes carry the location of the offending entry.

Conventions
- Test method names follow CamelCase per project convention.
- Files are written to a TemporaryDirectory per test.
"""
import json
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase

from helmsman.faults import *
from helmsman.loader import *
from helmsman.schema import *

DOCUMENT = """
metadata:
  version: "2.0.0"
  prompt: "app"
  prompt_suffix: " $ "

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
      - name: output
        arg_type: path
        required: false
        default: output.txt
    options:
      - name: format
        short: f
        long: format
        option_type: string
        default: json
        choices: [json, xml]
      - name: threads
        short: t
        long: threads
        option_type: integer
        validation:
          - min: 1
            max: 64

global_options:
  - name: verbose
    short: v
    long: verbose
    option_type: bool
"""


class TestBuild(TestCase):

    def assertDocument(self, schema):
        self.assertEqual(schema.metadata.version, "2.0.0")
        self.assertEqual(schema.metadata.prompt, "app")
        self.assertEqual(schema.metadata.prompt_suffix, " $ ")

        [command] = schema.commands
        self.assertEqual(command.name, "process")
        self.assertEqual(command.aliases, ["proc", "p"])
        self.assertEqual(command.descr, "Process data files")
        self.assertEqual(command.implementation, "process_handler")
        self.assertTrue(command.required)

        source, output = command.arguments
        self.assertIs(source.type, ArgumentType.PATH)
        self.assertEqual(source.rules, [MustExist(), Extensions(["csv", "tsv"])])
        self.assertFalse(output.required)
        self.assertEqual(output.default, "output.txt")

        format, threads = command.options
        self.assertEqual(format.flags, ("-f", "--format"))
        self.assertEqual(format.choices, ["json", "xml"])
        self.assertEqual(format.default, "json")
        self.assertEqual(threads.rules, [Range(min=1, max=64)])

        [verbose] = schema.global_options
        self.assertIs(verbose.type, ArgumentType.BOOL)

    def testYaml(self):
        self.assertDocument(loads(DOCUMENT))

    def testJson(self):
        import yaml
        self.assertDocument(loads(json.dumps(yaml.safe_load(DOCUMENT)), "json"))

    def testEmptySections(self):
        schema = loads("commands:\nglobal_options:\n")
        self.assertEqual(schema.commands, [])
        self.assertEqual(schema.metadata.prompt_suffix, " > ")

    def testMustExistFalseDeclaresNothing(self):
        schema = build({"commands": [{"name": "open", "arguments": [
            {"name": "file", "arg_type": "path", "validation": [{"must_exist": False}]},
        ]}]})
        self.assertEqual(schema.commands[0].arguments[0].rules, [])

    def testScalarDefaultsBecomeText(self):
        schema = loads("""
commands:
  - name: serve
    options:
      - name: port
        short: p
        option_type: integer
        default: 8080
      - name: debug
        long: debug
        option_type: bool
        default: false
""")
        port, debug = schema.commands[0].options
        self.assertEqual(port.default, "8080")
        self.assertEqual(debug.default, "false")

    def testFloatChoicesAreCanonical(self):
        schema = loads("""
commands:
  - name: scale
    options:
      - name: ratio
        short: r
        option_type: float
        default: 1
        choices: [1, 2.5]
""")
        [ratio] = schema.commands[0].options
        self.assertEqual(ratio.choices, ["1.0", "2.5"])
        self.assertEqual(ratio.default, "1.0")

    def testUncoercibleChoiceIsLocated(self):
        with self.assertRaises(InvalidSchemaError) as context:
            build({"commands": [{"name": "run", "options": [
                {"name": "level", "short": "l", "option_type": "integer", "choices": ["low", "high"]},
            ]}]})
        self.assertEqual(context.exception.location, "commands[0].options[0]")


class TestFaults(TestCase):

    def testEmptyDocument(self):
        with self.assertRaises(InvalidSchemaError):
            loads("")

    def testUnknownFormat(self):
        with self.assertRaises(UnsupportedFormatError):
            loads("commands: []", "toml")

    def testMalformedYaml(self):
        with self.assertRaises(MalformedConfigError) as context:
            loads("commands: [unclosed")
        self.assertIsNotNone(context.exception.line)

    def testMalformedJson(self):
        with self.assertRaises(MalformedConfigError) as context:
            loads('{"commands": [}', "json")
        self.assertEqual(context.exception.line, 1)

    def testLocatedSchemaFault(self):
        with self.assertRaises(InvalidSchemaError) as context:
            build({"commands": [{"name": "run", "options": [{"name": "output", "short": "out"}]}]})
        self.assertEqual(context.exception.location, "commands[0].options[0]")
        self.assertIn("commands[0].options[0]", str(context.exception))

    def testUnknownFieldSuggestion(self):
        with self.assertRaises(InvalidSchemaError) as context:
            build({"commands": [{"name": "run", "descripton": "typo"}]})
        self.assertEqual(context.exception.location, "commands[0]")
        self.assertEqual(context.exception.suggestions[0], "description")

    def testBadValidationEntry(self):
        with self.assertRaises(InvalidSchemaError) as context:
            build({"commands": [{"name": "run", "arguments": [
                {"name": "count", "arg_type": "integer", "validation": [{"min": 5, "max": 1}]},
            ]}]})
        self.assertEqual(context.exception.location, "commands[0].arguments[0].validation[0]")

    def testDuplicateAliasesAreLeftToTheRegistry(self):
        schema = build({"commands": [{"name": "a", "aliases": ["x"]}, {"name": "b", "aliases": ["x"]}]})
        self.assertEqual(len(schema.commands), 2)


class TestFiles(TestCase):

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.root = Path(self.directory.name)

    def tearDown(self):
        self.directory.cleanup()

    def testLoadBySuffix(self):
        for name in ("schema.yaml", "schema.YML"):
            (path := self.root / name).write_text(DOCUMENT, encoding="utf-8")
            self.assertEqual(load(path).commands[0].name, "process")
        (path := self.root / "schema.json").write_text('{"commands": [{"name": "run"}]}', encoding="utf-8")
        self.assertEqual(load(str(path)).commands[0].name, "run")

    def testUnsupportedSuffix(self):
        for name in ("schema.toml", "schema"):
            (path := self.root / name).write_text(DOCUMENT, encoding="utf-8")
            with self.assertRaises(UnsupportedFormatError):
                load(path)

    def testUndecodableFile(self):
        (path := self.root / "schema.yaml").write_bytes(b"commands:\n  - name: \xff\xfe\n")
        with self.assertRaises(MalformedConfigError) as context:
            load(path)
        self.assertEqual(context.exception.path, str(path))
        self.assertEqual(context.exception.position, 20)
        self.assertEqual(context.exception.status, 3)

    def testMissingFile(self):
        with self.assertRaises(ConfigNotFoundError) as context:
            load(self.root / "missing.yaml")
        self.assertEqual(context.exception.path, str(self.root / "missing.yaml"))


if __name__ == "__main__":
    unittest.main()
