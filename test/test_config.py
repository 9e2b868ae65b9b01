"""
Configuration type and materializer tests.

Conventions
- Test method names follow CamelCase per project convention.
- Matches are simulated with plain mappings or argparse namespaces.
"""

from __future__ import annotations

import argparse
import unittest
from pathlib import Path
from unittest import TestCase

from helmsman import (
    Config,
    InvalidValueError,
    SchemaConflictError,
    configtype,
    flag,
    integer,
    path,
    paths,
    string,
)


def demo():
    return configtype("DemoConfig", (
        flag("count", "c", "count"),
        string("pattern", "p", "pattern"),
        integer("limit", long="limit", default=10),
        path("log", long="log"),
        paths("extra", long="extra"),
    ))


class TestConfigType(TestCase):
    """Generated configuration types."""

    def testBaseConfigDefaults(self):
        config = Config()
        self.assertEqual(config.asdict(), {
            "version": False,
            "help": False,
            "verbose": False,
            "dry_run": False,
            "quiet": False,
            "input": (),
            "output": None,
        })

    def testGeneratedTypeExtendsBase(self):
        DemoConfig = demo()
        self.assertTrue(issubclass(DemoConfig, Config))
        self.assertEqual(DemoConfig.__name__, "DemoConfig")
        self.assertEqual(
            [field.name for field in DemoConfig.__fields__][-5:],
            ["count", "pattern", "limit", "log", "extra"],
        )

    def testImmutable(self):
        config = demo()()
        with self.assertRaises(AttributeError):
            config.count = True
        with self.assertRaises(AttributeError):
            config.anything = 1
        with self.assertRaises(AttributeError):
            del config.count

    def testEqualityAndHash(self):
        DemoConfig = demo()
        first = DemoConfig(count=True, input=["a.txt"])
        second = DemoConfig(count=True, input=("a.txt",))
        self.assertEqual(first, second)
        self.assertEqual(hash(first), hash(second))
        self.assertNotEqual(first, DemoConfig())

    def testReplace(self):
        config = demo()()
        changed = config.replace(count=True, limit="3")
        self.assertFalse(config.count)
        self.assertTrue(changed.count)
        self.assertEqual(changed.limit, 3)

    def testUnknownKeywordRejected(self):
        with self.assertRaises(TypeError):
            Config(colour=True)

    def testVerbosity(self):
        self.assertEqual(Config().verbosity, 0)
        self.assertEqual(Config(verbose=True).verbosity, 1)
        self.assertEqual(Config(quiet=True).verbosity, -1)
        self.assertEqual(Config(verbose=True, quiet=True).verbosity, 0)

    def testDuplicateFieldNameRejected(self):
        with self.assertRaises(SchemaConflictError):
            configtype("BrokenConfig", (flag("verbose", long="chatty"),))

    def testRepr(self):
        self.assertTrue(repr(Config()).startswith("Config(version=False, help=False"))


class TestMaterializer(TestCase):
    """Conversion of parsed matches into configuration values."""

    def testDefaultsWhenNothingGiven(self):
        config = demo().materialize({})
        self.assertFalse(config.count)
        self.assertIsNone(config.pattern)
        self.assertEqual(config.limit, 10)
        self.assertIsNone(config.log)
        self.assertEqual(config.extra, ())
        self.assertEqual(config.input, ())
        self.assertIsNone(config.output)

    def testNoneMeansAbsent(self):
        config = demo().materialize({"limit": None, "pattern": None})
        self.assertEqual(config.limit, 10)
        self.assertIsNone(config.pattern)

    def testNamespaceMatches(self):
        namespace = argparse.Namespace(count=True, pattern="TODO", input=["a.txt", "b.txt"], output="out.txt")
        config = demo().materialize(namespace)
        self.assertTrue(config.count)
        self.assertEqual(config.pattern, "TODO")
        self.assertEqual(config.input, (Path("a.txt"), Path("b.txt")))
        self.assertEqual(config.output, Path("out.txt"))

    def testIntegerConversion(self):
        self.assertEqual(demo().materialize({"limit": "42"}).limit, 42)
        self.assertEqual(demo().materialize({"limit": -1}).limit, -1)

    def testNonNumericIntegerNamesFieldAndText(self):
        with self.assertRaises(InvalidValueError) as context:
            demo().materialize({"limit": "abc"})
        self.assertEqual(context.exception.field, "limit")
        self.assertEqual(context.exception.text, "abc")
        self.assertIn("limit", str(context.exception))
        self.assertIn("abc", str(context.exception))

    def testWrongKindsRejected(self):
        for matches in ({"count": "yes"}, {"pattern": 3}, {"limit": True}, {"log": ""}, {"extra": [1]}):
            with self.subTest(matches=matches), self.assertRaises(InvalidValueError):
                demo().materialize(matches)

    def testSinglePathForRepeatable(self):
        self.assertEqual(demo().materialize({"extra": "x.txt"}).extra, (Path("x.txt"),))

    def testRequiredField(self):
        RequiredConfig = configtype("RequiredConfig", (string("name", long="name", required=True),))
        with self.assertRaises(InvalidValueError) as context:
            RequiredConfig.materialize({})
        self.assertEqual(context.exception.field, "name")
        self.assertEqual(RequiredConfig.materialize({"name": "x"}).name, "x")

    def testRequiredFieldWaivedForVersionAndHelp(self):
        RequiredConfig = configtype("RequiredConfig", (string("name", long="name", required=True),))
        self.assertIsNone(RequiredConfig.materialize({"version": True}).name)
        self.assertIsNone(RequiredConfig.materialize({"help": True}).name)


if __name__ == "__main__":
    unittest.main()
