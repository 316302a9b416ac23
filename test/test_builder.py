"""
Builder tests (startup validation and the assembled program).

Scope
- Validate that build() rejects incomplete or inconsistent programs.
- Validate schema sources (Schema, mapping, file path) and prompt resolution.
- Validate Program.run choosing one-shot or interactive mode.

Conventions
- Test method names follow CamelCase per project convention.
"""
import functools
import io
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase, mock

from rich.console import Console

from helmsman.builder import *
from helmsman.execution import *
from helmsman.faults import *
from helmsman.schema import *
from helmsman.utils import Unset

DOCUMENT = {
    "metadata": {"prompt": "counter", "prompt_suffix": ": "},
    "commands": [
        {"name": "increment", "aliases": ["inc"], "required": True, "arguments": [
            {"name": "step", "arg_type": "integer", "required": False, "default": 1},
        ]},
        {"name": "reset"},
    ],
}


class Counter(Context):
    def __init__(self):
        self.value = 0


@handler(context=Counter)
def increment(context, arguments):
    context.value += arguments.typed("step")


class TestBuilder(TestCase):

    def setUp(self):
        self.output = Console(file=io.StringIO(), width=120)
        self.errors = Console(file=io.StringIO(), width=120)

    def build(self, document=DOCUMENT, context=Unset):
        with self.assertLogs("helmsman.builder", "WARNING"):
            return Builder().schema(document).context(Counter() if context is Unset else context).handler(increment).build()

    def testMissingSchema(self):
        with self.assertRaises(InvalidSchemaError):
            Builder().context(Counter()).build()

    def testMissingContext(self):
        with self.assertRaises(InvalidSchemaError):
            Builder().schema(DOCUMENT).build()

    def testRequiredCommandNeedsAHandler(self):
        with self.assertRaises(HandlerNotRegisteredError) as context:
            Builder().schema(DOCUMENT).context(Counter()).build()
        self.assertEqual(context.exception.name, "increment")

    def testOptionalCommandWarns(self):
        with self.assertLogs("helmsman.builder", "WARNING") as logs:
            program = Builder().schema(DOCUMENT).context(Counter()).handler(increment).build()
        self.assertIn("'reset'", logs.output[0])
        self.assertEqual(program.run_cli(["reset"], output=self.output, errors=self.errors), 1)

    def testDuplicateAliasRaisesAtBuild(self):
        schema = Schema([CommandSpec("copy", ("c",)), CommandSpec("clear", ("c",))])
        with self.assertRaises(DuplicateAliasError):
            Builder().schema(schema).context(Counter()).build()

    def testDuplicateHandlerRaises(self):
        def other(context, arguments):
            pass
        with self.assertRaises(ValueError):
            Builder().handler(increment).handler(other, "increment")

    def testNamelessHandlerNeedsAName(self):
        def other(context, arguments):
            pass
        with self.assertRaises(TypeError):
            Builder().handler(functools.partial(other))
        Builder().handler(functools.partial(other), "other")

    def testContextMismatch(self):
        with self.assertRaises(ContextTypeMismatchError):
            self.build(context=Context())

    def testSchemaFromPath(self):
        with tempfile.TemporaryDirectory() as directory:
            path = Path(directory) / "counter.yaml"
            path.write_text("commands:\n  - name: reset\n", encoding="utf-8")
            with self.assertLogs("helmsman.builder", "WARNING"):
                program = Builder().schema(path).context(Counter()).build()
        self.assertEqual(list(program.registry), ["reset"])

    def testSchemaTypeIsChecked(self):
        with self.assertRaises(TypeError):
            Builder().schema(42)

    def testPromptFromMetadata(self):
        self.assertEqual(self.build().prompt, "counter: ")

    def testPromptOverride(self):
        with self.assertLogs("helmsman.builder", "WARNING"):
            program = Builder().schema(DOCUMENT).context(Counter()).handler(increment).prompt("count", " $ ").build()
        self.assertEqual(program.prompt, "count $ ")

    def testRunOneShot(self):
        program = self.build()
        self.assertEqual(program.run(["inc", "3"], output=self.output, errors=self.errors), 0)
        self.assertEqual(program.run(["increment"], output=self.output, errors=self.errors), 0)
        self.assertEqual(program.context.value, 4)
        self.assertEqual(program.run(["inc", "x"], output=self.output, errors=self.errors), 2)

    def testRunShellWithoutArguments(self):
        program = self.build()
        with mock.patch("builtins.input", side_effect=["inc 2", "inc", EOFError()]):
            self.assertEqual(program.run([], output=self.output, errors=self.errors), 0)
        self.assertEqual(program.context.value, 3)
        self.assertIn("counter: ", self.output.file.getvalue())


if __name__ == "__main__":
    unittest.main()
