"""
Faults module behavioral tests (error payloads, rendering, trigger).

Scope
- Validate the string form of CommandError with and without data.
- Validate codes and titles of the concrete faults.
- Validate trigger(): raising outside shell mode, printing and exiting inside.
- Validate copy.replace() on faults (options merge, cause kept).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import contextlib
import copy
import io
import unittest
from unittest import TestCase

from cotree import (
    CommandError,
    CommandMessage,
    FaultCode,
    InvalidNumberError,
    InvalidEnumValueError,
    TypeConversionError,
    CombinedFlagError,
    MissingRequiredArgumentsError,
    UnknownSubcommandError,
    UnmatchedQuoteError,
    trigger,
)


class TestCommandError(TestCase):
    """Behavioral tests for CommandError payloads."""

    def testMessageOnly(self):
        self.assertEqual(str(CommandError("boom")), "boom")

    def testDataIsAppendedAsJson(self):
        self.assertEqual(str(CommandError("boom", {"a": 1})), 'boom\n{\n  "a": 1\n}')

    def testMessagesAreSerializedThroughToObject(self):
        error = CommandError("boom", {"message": CommandMessage(name="x")})
        self.assertIn('"name": "x"', str(error))

    def testNonStringMessageRejected(self):
        with self.assertRaises(TypeError):
            CommandError(42)

    def testHintDefaultsToEmpty(self):
        self.assertEqual(CommandError("boom").hint, "")
        self.assertEqual(CommandError("boom", hint="try again").hint, "try again")

    def testCodesAndHierarchy(self):
        faults = {
            UnmatchedQuoteError: FaultCode.UNMATCHED_QUOTE,
            InvalidNumberError: FaultCode.INVALID_NUMBER,
            InvalidEnumValueError: FaultCode.INVALID_ENUM_VALUE,
            TypeConversionError: FaultCode.TYPE_CONVERSION_FAILURE,
            CombinedFlagError: FaultCode.COMBINED_FLAG,
            MissingRequiredArgumentsError: FaultCode.MISSING_REQUIRED_ARGUMENTS,
            UnknownSubcommandError: FaultCode.UNKNOWN_SUBCOMMAND,
        }
        for fault, code in faults.items():
            self.assertTrue(issubclass(fault, CommandError))
            self.assertEqual(fault.code, code)

    def testNormalizedCode(self):
        self.assertEqual(FaultCode.INVALID_NUMBER.normalize(), "21111")

    def testReplaceMergesOptionsAndKeepsCause(self):
        error = InvalidNumberError("bad", {"provided_value": "x"}, hint="use digits")
        error.__cause__ = ValueError("x")
        replica = copy.replace(error, shell=False, colorful=True)
        self.assertIsInstance(replica, InvalidNumberError)
        self.assertEqual(replica.message, "bad")
        self.assertEqual(replica.hint, "use digits")
        self.assertEqual(dict(replica.options), {"shell": False, "colorful": True})
        self.assertIs(replica.__cause__, error.__cause__)


class TestTrigger(TestCase):
    """Behavioral tests for trigger()."""

    def testRaisesOutsideShell(self):
        with self.assertRaises(InvalidNumberError):
            trigger(InvalidNumberError("bad"))

    def testRaisedFaultSuppressesContext(self):
        try:
            try:
                raise InvalidNumberError("bad")
            except InvalidNumberError as fault:
                trigger(fault, shell=False)
        except InvalidNumberError as raised:
            self.assertTrue(raised.__suppress_context__)
            self.assertIsNone(raised.__cause__)

    def testRaisedFaultKeepsConversionCause(self):
        fault = TypeConversionError("bad")
        fault.__cause__ = ValueError("x")
        with self.assertRaises(TypeConversionError) as context:
            trigger(fault)
        self.assertIs(context.exception.__cause__, fault.__cause__)
        self.assertTrue(context.exception.__suppress_context__)

    def testPrintsAndExitsInShell(self):
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream), self.assertRaises(SystemExit) as context:
            trigger(InvalidNumberError("Invalid number for count: x", hint="use digits"), shell=True)
        self.assertEqual(context.exception.code, 1)
        output = stream.getvalue()
        self.assertIn("Invalid Number", output)
        self.assertIn("Invalid number for count: x", output)
        self.assertIn("use digits", output)

    def testRejectsNonTriggerable(self):
        with self.assertRaises(TypeError):
            trigger(object())


if __name__ == "__main__":
    unittest.main()
