"""
Suggestion engine tests (edit distance, ranking, host overrides).

Conventions
- Test method names follow CamelCase per project convention.
"""
import sys
import unittest
from unittest import TestCase, mock

from helmsman.suggestions import *


class TestDistance(TestCase):

    def testKnownDistances(self):
        self.assertEqual(distance("kitten", "sitting"), 3)
        self.assertEqual(distance("", "abc"), 3)
        self.assertEqual(distance("abc", ""), 3)
        self.assertEqual(distance("abc", "abc"), 0)
        self.assertEqual(distance("flaw", "lawn"), 2)

    def testSymmetry(self):
        self.assertEqual(distance("save", "sav"), distance("sav", "save"))

    def testNonStringRaises(self):
        with self.assertRaises(TypeError):
            distance("abc", None)


class TestSuggest(TestCase):

    def testCloseCandidate(self):
        self.assertEqual(suggest("sav", {"save", "load", "list"}, 2, 3), ["save"])

    def testNothingClose(self):
        self.assertEqual(suggest("zzz", {"save", "load"}, 2, 3), [])

    def testTiesAreAlphabetical(self):
        self.assertEqual(suggest("cat", ["rat", "hat", "cut", "bat"], 1, 10), ["bat", "cut", "hat", "rat"])

    def testLimitApplies(self):
        self.assertEqual(suggest("lst", ["lost", "list", "last", "lust"], 2, 3), ["last", "list", "lost"])

    def testNearestFirst(self):
        self.assertEqual(suggest("save", ["sav", "sage", "save"], 2, 3), ["save", "sage", "sav"])

    def testDuplicatesCollapse(self):
        self.assertEqual(suggest("sav", ["save", "save"], 2, 3), ["save"])

    def testNegativeBoundsRaise(self):
        with self.assertRaises(ValueError):
            suggest("sav", ["save"], -1, 3)
        with self.assertRaises(ValueError):
            suggest("sav", ["save"], 2, -1)

    def testHostOverrides(self):
        with mock.patch.object(sys.modules["__main__"], "__suggestions__", {"limit": 1}, create=True):
            self.assertEqual(suggest("lst", ["lost", "list", "last"]), ["last"])
            self.assertEqual(suggest("lst", ["lost", "list", "last"], limit=2), ["last", "list"])


if __name__ == "__main__":
    unittest.main()
