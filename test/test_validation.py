"""
Validation engine tests (coercion, canonical text, rule evaluation).

Scope
- Validate accepted and rejected forms of every declared type.
- Validate that canonical text coerces back to the same value.
- Validate that every violated rule is reported, in declaration order.

Conventions
- Test method names follow CamelCase per project convention.
"""
import math
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase

from helmsman.faults import *
from helmsman.schema import *
from helmsman.validation import *


class TestCoercion(TestCase):
    """Text to typed values."""

    def testBoolAcceptedForms(self):
        for text in ("true", "YES", " on ", "1"):
            self.assertIs(coerce(text, "bool"), True, text)
        for text in ("false", "No", "0", "OFF"):
            self.assertIs(coerce(text, "bool"), False, text)

    def testBoolRejection(self):
        with self.assertRaises(InvalidBoolError) as context:
            coerce("maybe", "bool", name="force")
        self.assertEqual(context.exception.name, "force")
        self.assertEqual(context.exception.value, "maybe")
        self.assertIn("'force'", str(context.exception))

    def testIntegers(self):
        self.assertEqual(coerce("42", "integer"), 42)
        self.assertEqual(coerce("-7", "integer"), -7)
        self.assertEqual(coerce("+3", "integer"), 3)

    def testIntegerRejections(self):
        for text in ("4.2", "1_000", "٣", "", "0x10", "ten"):
            with self.assertRaises(InvalidNumberError, msg=text):
                coerce(text, "integer")

    def testIntegerBounds(self):
        self.assertEqual(coerce(str(INT_MIN), "integer"), -2 ** 63)
        self.assertEqual(coerce(str(INT_MAX), "integer"), 2 ** 63 - 1)
        with self.assertRaises(InvalidNumberError):
            coerce(str(2 ** 63), "integer")

    def testFloats(self):
        self.assertEqual(coerce("2.5", "float"), 2.5)
        self.assertEqual(coerce("-.5", "float"), -0.5)
        self.assertEqual(coerce("1e3", "float"), 1000.0)
        self.assertEqual(coerce("inf", "float"), math.inf)
        self.assertEqual(coerce("-Infinity", "float"), -math.inf)

    def testFloatRejections(self):
        for text in ("nan", "1e999", "abc", "1,5", ""):
            with self.assertRaises(InvalidNumberError, msg=text):
                coerce(text, "float")

    def testPathNormalization(self):
        self.assertEqual(coerce("a/./b/../c", "path"), Path("a/c"))

    def testPathRejections(self):
        with self.assertRaises(InvalidPathError):
            coerce("", "path")
        with self.assertRaises(InvalidPathError):
            coerce("bad\0name", "path")

    def testStringsPassThrough(self):
        self.assertEqual(coerce("  as typed  ", "string"), "  as typed  ")

    def testNonStringRaises(self):
        with self.assertRaises(TypeError):
            coerce(42, "integer")

    def testCoercionErrorsShareABase(self):
        with self.assertRaises(CoercionError) as context:
            coerce("x", "integer")
        self.assertEqual(context.exception.status, 2)


class TestCanonical(TestCase):
    """Typed values back to text."""

    def testCanonicalText(self):
        self.assertEqual(canonical(True), "true")
        self.assertEqual(canonical(8), "8")
        self.assertEqual(canonical(2.5), "2.5")
        self.assertEqual(canonical(Path("a/c")), str(Path("a/c")))
        self.assertEqual(canonical("text"), "text")

    def testRoundTrip(self):
        cases = {
            "bool": ("yes", "OFF"),
            "integer": ("+08", "-7"),
            "float": ("1e3", "-.5", "inf"),
            "path": ("a/./b/../c", "/tmp//x"),
            "string": ("hello world",),
        }
        for type, texts in cases.items():
            for text in texts:
                value = coerce(text, type)
                self.assertEqual(coerce(canonical(value), type), value, (type, text))

    def testUnsupportedValueRaises(self):
        with self.assertRaises(TypeError):
            canonical(None)


class TestRules(TestCase):
    """Rule evaluation."""

    def testEveryViolationIsReported(self):
        violations = validate(
            Path("definitely/missing/file.txt"),
            [MustExist(), Extensions(["yaml", "yml"])],
            name="config",
        )
        self.assertEqual([type(violation) for violation in violations], [NotFoundError, BadExtensionError])
        self.assertEqual(violations[1].accepted, ("yaml", "yml"))

    def testExtensionsIgnoreCase(self):
        self.assertEqual(validate(Path("CONFIG.YML"), [Extensions(["yml"])]), [])
        self.assertEqual(len(validate(Path("config.yml.bak"), [Extensions(["yml"])])), 1)

    def testMustExistPasses(self):
        with tempfile.NamedTemporaryFile() as file:
            self.assertEqual(validate(Path(file.name), [MustExist()]), [])

    def testRangeBounds(self):
        rule = Range(min=1, max=10)
        self.assertEqual(validate(1, [rule]), [])
        self.assertEqual(validate(10, [rule]), [])
        [violation] = validate(0, [rule], name="count")
        self.assertIsInstance(violation, OutOfRangeError)
        self.assertEqual(violation.bound, 1)
        [violation] = validate(11, [rule])
        self.assertEqual(violation.bound, 10)

    def testRangeIsInclusiveForFloats(self):
        self.assertEqual(validate(0.5, [Range(min=0.5)]), [])
        self.assertEqual(len(validate(0.49, [Range(min=0.5)])), 1)

    def testChoicesAreExact(self):
        rule = Choices(["json", "xml"])
        self.assertEqual(validate("json", [rule]), [])
        [violation] = validate("JSON", [rule])
        self.assertIsInstance(violation, NotAChoiceError)
        self.assertEqual(violation.choices, ("json", "xml"))

    def testMismatchedRuleRaises(self):
        with self.assertRaises(TypeError):
            validate(5, [MustExist()])
        with self.assertRaises(TypeError):
            validate("five", [Range(max=5)])


class TestCheck(TestCase):
    """Coerce-then-validate against a field spec."""

    def testCoercionFailureIsTheOnlyViolation(self):
        spec = OptionSpec("threads", "t", type="integer", rules=[Range(min=1)])
        value, violations = check("many", spec)
        self.assertIsNone(value)
        self.assertEqual(len(violations), 1)
        self.assertIsInstance(violations[0], InvalidNumberError)

    def testChoicesAreChecked(self):
        spec = OptionSpec("format", "f", choices=["json", "xml"])
        value, violations = check("csv", spec)
        self.assertEqual(value, "csv")
        self.assertIsInstance(violations[0], NotAChoiceError)

    def testNumericChoicesCompareCanonically(self):
        spec = OptionSpec("level", "l", type="integer", choices=[1, 2])
        self.assertEqual(check("+2", spec), (2, []))

    def testFloatChoicesCompareCanonically(self):
        spec = OptionSpec("ratio", "r", type="float", choices=[1, 2.5])
        self.assertEqual(spec.choices, ["1.0", "2.5"])
        self.assertEqual(check("1", spec), (1.0, []))
        self.assertEqual(check("2.50", spec), (2.5, []))
        self.assertIsInstance(check("3", spec)[1][0], NotAChoiceError)

    def testPathChoicesCompareNormalized(self):
        spec = ArgumentSpec("out", "path", choices=["./out.txt"])
        self.assertEqual(check("./out.txt", spec), (Path("out.txt"), []))
        self.assertEqual(check("out.txt", spec), (Path("out.txt"), []))

    def testDefaultIsCanonicalized(self):
        spec = OptionSpec("ratio", "r", type="float", default="1", choices=["1", "2.5"])
        self.assertEqual(spec.default, "1.0")
        self.assertEqual(check(spec.default, spec), (1.0, []))

    def testRulesAndChoicesTogether(self):
        spec = ArgumentSpec("level", "integer", rules=[Range(max=2)], choices=[1, 2, 3])
        value, violations = check("3", spec)
        self.assertEqual(value, 3)
        self.assertEqual([type(violation) for violation in violations], [OutOfRangeError])


if __name__ == "__main__":
    unittest.main()
