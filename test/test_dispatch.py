"""
Dispatch tests (entries, table ordering, single execution, faults).

Conventions
- Test method names follow CamelCase per project convention.
- Actions record their runs in a shared list to observe side effects.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import (
    ActionFailureError,
    Dispatcher,
    Entry,
    InvalidValueError,
    LOWEST,
    NoHandlerError,
    State,
    Table,
    always,
    configtype,
    entry,
    flag,
)

DemoConfig = configtype("DemoConfig", (flag("count", long="count"), flag("copy", long="copy")))


class TestEntry(TestCase):
    """Entry validation."""

    def testDefaults(self):
        def count(config):
            """Count lines.

            Longer explanation.
            """

        item = Entry("count", always, count)
        self.assertEqual(item.priority, 100)
        self.assertEqual(item.descr, "Count lines.")

    def testPriorityBounds(self):
        Entry("low", always, print, 0)
        Entry("high", always, print, LOWEST)
        with self.assertRaises(ValueError):
            Entry("bad", always, print, 256)
        with self.assertRaises(ValueError):
            Entry("bad", always, print, -1)
        with self.assertRaises(TypeError):
            Entry("bad", always, print, True)

    def testCallablesRequired(self):
        with self.assertRaises(TypeError):
            Entry("bad", True, print)
        with self.assertRaises(TypeError):
            Entry("bad", always, "print")

    def testDecorator(self):
        @entry(when=lambda config: config.count, priority=2)
        def count(config):
            return "counted"

        self.assertIsInstance(count, Entry)
        self.assertEqual(count.name, "count")
        self.assertEqual(count.priority, 2)
        self.assertIsNone(count.descr)


class TestTable(TestCase):
    """Ordering and freezing."""

    def testStableOrderByPriority(self):
        table = Table([
            Entry("c", always, print, 5),
            Entry("a", always, print, 2),
            Entry("b", always, print, 5),
            Entry("d", always, print, 2),
        ])
        self.assertEqual([item.name for item in table], ["a", "d", "c", "b"])

    def testRegisterIsChainable(self):
        table = Table().register(Entry("a", always, print)).register(Entry("b", always, print))
        self.assertEqual(len(table), 2)
        self.assertIn("a", table)
        self.assertEqual(table["b"].name, "b")

    def testDuplicateNameRejected(self):
        table = Table([Entry("a", always, print)])
        with self.assertRaises(ValueError):
            table.register(Entry("a", always, print, 3))

    def testFrozenTableRejectsRegistration(self):
        table = Table().freeze()
        self.assertTrue(table.frozen)
        with self.assertRaises(RuntimeError):
            table.register(Entry("a", always, print))


class TestDispatcher(TestCase):
    """Selection and execution."""

    def setUp(self):
        self.runs = []

        def record(name):
            def action(config):
                self.runs.append(name)
                return name
            return action

        self.table = Table([
            Entry("count", lambda config: config.count, record("count"), 2),
            Entry("copy", always, record("copy"), 3),
        ])

    def testFirstMatchRuns(self):
        selection = Dispatcher(self.table).dispatch(DemoConfig(count=True))
        self.assertEqual(self.runs, ["count"])
        self.assertIs(selection.state, State.EXECUTED)
        self.assertEqual(selection.entry.name, "count")
        self.assertEqual(selection.result, "count")

    def testOverlappingPredicatesRunOnce(self):
        # both predicates accept, only the higher priority side effect occurs
        Dispatcher(self.table).dispatch(DemoConfig(count=True, copy=True))
        self.assertEqual(self.runs, ["count"])

    def testCatchAll(self):
        Dispatcher(self.table).dispatch(DemoConfig())
        self.assertEqual(self.runs, ["copy"])

    def testSelectDoesNotRun(self):
        self.assertEqual(Dispatcher(self.table).select(DemoConfig(count=True)).name, "count")
        self.assertEqual(self.runs, [])

    def testNoHandler(self):
        table = Table([Entry("count", lambda config: config.count, print, 2)])
        config = DemoConfig()
        with self.assertRaises(NoHandlerError) as context:
            Dispatcher(table).dispatch(config)
        self.assertIs(context.exception.config, config)

    def testPredicatesAfterMatchAreNotEvaluated(self):
        seen = []

        def predicate(name, result):
            def check(config):
                seen.append(name)
                return result
            return check

        table = Table([
            Entry("first", predicate("first", False), print, 2),
            Entry("second", predicate("second", True), lambda config: None, 3),
            Entry("third", predicate("third", True), print, 4),
        ])
        Dispatcher(table).dispatch(DemoConfig())
        self.assertEqual(seen, ["first", "second"])

    def testActionFailureIsWrapped(self):
        def broken(config):
            raise OSError("disk full")

        table = Table([Entry("broken", always, broken, 2), Entry("copy", always, print, 3)])
        with self.assertRaises(ActionFailureError) as context:
            Dispatcher(table).dispatch(DemoConfig())
        self.assertEqual(context.exception.entry, "broken")
        self.assertIsInstance(context.exception.cause, OSError)
        self.assertIs(context.exception.__cause__, context.exception.cause)

    def testHelmsmanFaultsPassThrough(self):
        def strict(config):
            raise InvalidValueError("count", "x")

        with self.assertRaises(InvalidValueError) as context:
            Dispatcher(Table([Entry("strict", always, strict)])).dispatch(DemoConfig())
        self.assertNotIsInstance(context.exception, ActionFailureError)

    def testSelectionRunsAtMostOnce(self):
        selection = Dispatcher(self.table).dispatch(DemoConfig())
        with self.assertRaises(RuntimeError):
            selection.execute()
        self.assertEqual(self.runs, ["copy"])

    def testSnapshotIgnoresLaterRegistration(self):
        dispatcher = Dispatcher(self.table)
        self.table.register(Entry("early", always, print, 0))
        dispatcher.dispatch(DemoConfig())
        self.assertEqual(self.runs, ["copy"])


if __name__ == "__main__":
    unittest.main()
