"""
Flags module behavioral tests (definition, parsing, inspection, assignment).

Scope
- Validate flag definition: defaults written into params, attr naming, redefinition.
- Validate parse() syntax: single/double dash, inline and spaced values, boolean
  shorthand, terminators, and where parsing stops.
- Validate parser faults and their exact messages.
- Validate visit()/visit_all() ordering and explicit-set tracking, set().

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest import TestCase

from flagtree import FlagError, FlagSet, HelpRequested


def _flagset():
    params = SimpleNamespace()
    fs = FlagSet("tool")
    fs.string(params, "env", "production", "environment name")
    fs.int(params, "count", 1, "how many")
    fs.bool(params, "v", False, "verbose output", attr="verbose")
    fs.uint(params, "port", 5000)
    return fs, params


class TestDefinition(TestCase):
    """Definition helpers and their bindings."""

    def testDefaultsWrittenImmediately(self):
        _, params = _flagset()
        self.assertEqual(params.env, "production")
        self.assertEqual(params.count, 1)
        self.assertIs(params.verbose, False)
        self.assertEqual(params.port, 5000)

    def testAttrDefaultsToFlagNameWithUnderscores(self):
        params = SimpleNamespace()
        fs = FlagSet()
        fs.bool(params, "dry-run", False)
        fs.parse(["-dry-run"])
        self.assertIs(params.dry_run, True)

    def testMappingParams(self):
        params = {}
        fs = FlagSet()
        fs.string(params, "env", "production")
        fs.parse(["-env", "dev"])
        self.assertEqual(params, {"env": "dev"})

    def testRedefinitionRejected(self):
        fs, params = _flagset()
        with self.assertRaisesRegex(ValueError, "flag redefined: env"):
            fs.string(params, "env", "")

    def testMalformedNameRejected(self):
        fs = FlagSet()
        with self.assertRaises(ValueError):
            fs.string(SimpleNamespace(), "-env", "")
        with self.assertRaises(ValueError):
            fs.string(SimpleNamespace(), "a=b", "")

    def testDefaultText(self):
        fs, _ = _flagset()
        self.assertEqual(fs.lookup("port").default, "5000")
        self.assertEqual(fs.lookup("v").default, "false")
        self.assertIsNone(fs.lookup("missing"))

    def testFuncFlag(self):
        received = []
        fs = FlagSet()
        fs.func("tag", "add a tag", received.append)
        fs.parse(["-tag", "a", "-tag=b"])
        self.assertEqual(received, ["a", "b"])
        self.assertFalse(fs.lookup("tag").is_bool)


class TestParse(TestCase):
    """Accepted syntax and stopping rules."""

    def testInlineAndSpacedValues(self):
        fs, params = _flagset()
        fs.parse(["-env=dev", "--count", "3"])
        self.assertEqual(params.env, "dev")
        self.assertEqual(params.count, 3)
        self.assertEqual(fs.args(), [])

    def testBooleanShorthand(self):
        fs, params = _flagset()
        fs.parse(["-v"])
        self.assertIs(params.verbose, True)

    def testBooleanExplicitValue(self):
        fs, params = _flagset()
        fs.parse(["-v=false"])
        self.assertIs(params.verbose, False)
        self.assertEqual([flag.name for flag in fs.visit()], ["v"])

    def testBooleanDoesNotConsumeNextArgument(self):
        fs, params = _flagset()
        fs.parse(["-v", "false"])
        self.assertIs(params.verbose, True)
        self.assertEqual(fs.args(), ["false"])

    def testStopsAtFirstPositional(self):
        fs, params = _flagset()
        fs.parse(["-env=dev", "serve", "-count=3"])
        self.assertEqual(fs.args(), ["serve", "-count=3"])
        self.assertEqual(params.count, 1)

    def testDoubleDashTerminatorConsumed(self):
        fs, _ = _flagset()
        fs.parse(["-v", "--", "-env=dev"])
        self.assertEqual(fs.args(), ["-env=dev"])

    def testLoneDashIsPositional(self):
        fs, _ = _flagset()
        fs.parse(["-", "-v"])
        self.assertEqual(fs.args(), ["-", "-v"])
        self.assertEqual(fs.narg(), 2)
        self.assertEqual(fs.arg(0), "-")
        self.assertEqual(fs.arg(5), "")

    def testParsedMarker(self):
        fs, _ = _flagset()
        self.assertFalse(fs.parsed)
        fs.parse([])
        self.assertTrue(fs.parsed)


class TestParseFaults(TestCase):
    """Parser errors and their messages."""

    def assertFault(self, arguments, message):
        fs, _ = _flagset()
        with self.assertRaises(FlagError) as context:
            fs.parse(arguments)
        self.assertEqual(str(context.exception), message)

    def testUndefinedFlag(self):
        self.assertFault(["-nope"], "flag provided but not defined: -nope")

    def testMissingArgument(self):
        self.assertFault(["-env"], "flag needs an argument: -env")

    def testBadSyntax(self):
        self.assertFault(["---env"], "bad flag syntax: ---env")
        self.assertFault(["-=dev"], "bad flag syntax: -=dev")

    def testInvalidValue(self):
        self.assertFault(["-count=invalid"], 'invalid value "invalid" for flag -count: parse error')

    def testInvalidBooleanValue(self):
        self.assertFault(["-v=maybe"], 'invalid boolean value "maybe" for -v: parse error')

    def testHelpRequested(self):
        for token in ("-h", "-help", "--help"):
            fs, _ = _flagset()
            with self.assertRaises(HelpRequested):
                fs.parse([token])

    def testDefinedHelpFlagIsNotAHelpRequest(self):
        params = SimpleNamespace()
        fs = FlagSet()
        fs.bool(params, "h", False)
        fs.parse(["-h"])
        self.assertIs(params.h, True)


class TestInspection(TestCase):
    """visit_all(), visit() and set()."""

    def testVisitAllSortedByName(self):
        fs, _ = _flagset()
        self.assertEqual([flag.name for flag in fs.visit_all()], ["count", "env", "port", "v"])

    def testVisitOnlyExplicit(self):
        fs, _ = _flagset()
        fs.parse(["-port", "80", "-env=dev"])
        self.assertEqual([flag.name for flag in fs.visit()], ["env", "port"])
        self.assertEqual(fs.nflag(), 2)

    def testBooleanPredicate(self):
        fs, _ = _flagset()
        self.assertTrue(fs.lookup("v").is_bool)
        self.assertFalse(fs.lookup("env").is_bool)

    def testSetMarksExplicit(self):
        fs, params = _flagset()
        fs.parse([])
        fs.set("count", "9")
        self.assertEqual(params.count, 9)
        self.assertEqual([flag.name for flag in fs.visit()], ["count"])

    def testSetUnknownFlag(self):
        fs, _ = _flagset()
        with self.assertRaisesRegex(FlagError, "^no such flag -nope$"):
            fs.set("nope", "1")

    def testSetBadValuePropagatesCause(self):
        fs, _ = _flagset()
        with self.assertRaisesRegex(ValueError, "^parse error$"):
            fs.set("count", "x")
        self.assertEqual(fs.nflag(), 0)


if __name__ == "__main__":
    unittest.main()
