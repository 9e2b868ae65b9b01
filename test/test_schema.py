"""
Argument schema builder tests (directives, conflicts, argparse adapter).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from pathlib import Path
from unittest import TestCase

from helmsman import (
    BASE_FIELDS,
    Kind,
    SchemaConflictError,
    UnparsedArgumentsError,
    InvalidValueError,
    build_schema,
    configtype,
    flag,
    integer,
    paths,
    string,
)


class TestBuildSchema(TestCase):
    """Directive generation and conflict detection."""

    def testBaseFlagsComeFirst(self):
        schema = build_schema([flag("count", long="count")])
        self.assertEqual(
            [directive.dest for directive in schema],
            [field.name for field in BASE_FIELDS] + ["count"],
        )

    def testDirectiveShape(self):
        schema = build_schema([
            flag("count", "c", "count", help="Count lines"),
            string("pattern", "p", "pattern"),
            paths("extra", long="extra", metavar="PATH"),
        ])
        count = schema.directive("count")
        self.assertEqual(count.names, ("-c", "--count"))
        self.assertEqual(count.nargs, 0)
        self.assertIs(count.default, False)
        self.assertEqual(count.help, "Count lines")
        self.assertIsNone(count.metavar)

        pattern = schema.directive("pattern")
        self.assertIs(pattern.kind, Kind.STRING)
        self.assertEqual(pattern.nargs, 1)
        self.assertEqual(pattern.metavar, "PATTERN")

        extra = schema.directive("extra")
        self.assertEqual(extra.nargs, 1)
        self.assertTrue(extra.repeatable)
        self.assertFalse(pattern.repeatable)
        self.assertEqual(extra.default, ())
        self.assertEqual(extra.metavar, "PATH")

        with self.assertRaises(KeyError):
            schema.directive("missing")

    def testDuplicateShortFlagAcrossFields(self):
        first = flag("count", "c", "count")
        second = flag("check", "c", "check")
        with self.assertRaises(SchemaConflictError) as context:
            build_schema([first, second])
        self.assertIs(context.exception.first, first)
        self.assertIs(context.exception.second, second)
        self.assertEqual(context.exception.identity, "-c")

    def testClashWithBaseFlags(self):
        with self.assertRaises(SchemaConflictError) as context:
            build_schema([flag("value", "v", "value")])
        self.assertEqual(context.exception.first.name, "verbose")
        self.assertEqual(context.exception.identity, "-v")

        with self.assertRaises(SchemaConflictError):
            build_schema([flag("show", long="version")])

    def testDuplicateName(self):
        with self.assertRaises(SchemaConflictError) as context:
            build_schema([flag("count", long="count"), flag("count", long="tally")])
        self.assertEqual(context.exception.identity, "count")

    def testNonFieldRejected(self):
        with self.assertRaises(TypeError):
            build_schema(["--count"])


class TestParse(TestCase):
    """The argparse adapter."""

    def setUp(self):
        self.schema = build_schema([
            flag("count", "c", "count"),
            string("pattern", "p", "pattern"),
            integer("limit", long="limit", default=10),
        ])

    def testAbsentOptionsAreLeftOut(self):
        self.assertEqual(vars(self.schema.parse([])), {})

    def testValuesStayRaw(self):
        namespace = self.schema.parse(["-c", "--limit", "7", "-p", "x"])
        self.assertEqual(vars(namespace), {"count": True, "limit": "7", "pattern": "x"})

    def testRepeatedInput(self):
        namespace = self.schema.parse(["-i", "a.txt", "-i", "b.txt", "--dry-run"])
        self.assertEqual(namespace.input, ["a.txt", "b.txt"])
        self.assertTrue(namespace.dry_run)

    def testInputWithoutValue(self):
        with self.assertRaises(UnparsedArgumentsError):
            self.schema.parse(["-i"])
        with self.assertRaises(UnparsedArgumentsError):
            self.schema.parse(["--count", "-i"])

    def testInputTakesOneValuePerOccurrence(self):
        with self.assertRaises(UnparsedArgumentsError):
            self.schema.parse(["-i", "a.txt", "b.txt"])

    def testUnknownSwitch(self):
        with self.assertRaises(UnparsedArgumentsError) as context:
            self.schema.parse(["--bogus"], prog="demo")
        self.assertIsInstance(context.exception, InvalidValueError)
        self.assertIn("--bogus", str(context.exception))
        self.assertEqual(context.exception.options["prog"], "demo")

    def testMissingValue(self):
        with self.assertRaises(UnparsedArgumentsError):
            self.schema.parse(["--pattern"])

    def testNoAbbreviations(self):
        with self.assertRaises(UnparsedArgumentsError):
            self.schema.parse(["--pat", "x"])

    def testHelpIsNotHandledByParser(self):
        self.assertTrue(self.schema.parse(["--help"]).help)
        self.assertTrue(self.schema.parse(["-V"]).version)

    def testRoundTripReproducesDefaults(self):
        DemoConfig = configtype("DemoConfig", self.schema.fields[len(BASE_FIELDS):])
        config = DemoConfig.materialize(self.schema.parse([]))
        self.assertEqual(config, DemoConfig())
        self.assertEqual(config.limit, 10)
        self.assertEqual(config.input, ())

    def testParsedPathsMaterialize(self):
        DemoConfig = configtype("DemoConfig", self.schema.fields[len(BASE_FIELDS):])
        config = DemoConfig.materialize(self.schema.parse(["-i", "a", "-i", "b", "-o", "c"]))
        self.assertEqual(config.input, (Path("a"), Path("b")))
        self.assertEqual(config.output, Path("c"))


if __name__ == "__main__":
    unittest.main()
