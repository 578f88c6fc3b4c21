"""
Options module behavioral tests (CommandOption construction and display).

Scope
- Validate the declaration shapes accepted by CommandOption.from_value.
- Validate metadata sanitization (names, aliases, help, required).
- Validate defaults, optionality and the display record.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cotree import CommandOption, Boolean, Number, String, Choice


class TestCommandOption(TestCase):
    """Behavioral tests for CommandOption."""

    def testFullConstruction(self):
        option = CommandOption("verbose", bool, False, "Be verbose", "v")
        self.assertEqual(option.name, "verbose")
        self.assertEqual(option.type, Boolean())
        self.assertIs(option.default, False)
        self.assertEqual(option.alias, "v")
        self.assertTrue(option.is_flag)
        self.assertFalse(option.is_wildcard)

    def testNameIsStripped(self):
        self.assertEqual(CommandOption("  file ").name, "file")

    def testBareStringDeclaration(self):
        option = CommandOption.from_value("name")
        self.assertEqual(option.type, String())
        self.assertEqual(option.get_default(), "")

    def testSequenceDeclaration(self):
        option = CommandOption.from_value(["count", int, 1, "How many", "c"])
        self.assertEqual(option.type, Number(int))
        self.assertEqual(option.default, 1)
        self.assertEqual(option.help, "How many")
        self.assertEqual(option.alias, "c")

    def testMappingDeclaration(self):
        option = CommandOption.from_value({"name": "mode", "type": ["fast", "safe"], "default": "safe"})
        self.assertEqual(option.type, Choice(("fast", "safe")))
        self.assertEqual(option.default, "safe")

    def testInstanceDeclarationPassesThrough(self):
        option = CommandOption("x")
        self.assertIs(CommandOption.from_value(option), option)

    def testMalformedDeclarationsRejected(self):
        with self.assertRaises(TypeError):
            CommandOption.from_value({})
        with self.assertRaises(TypeError):
            CommandOption.from_value([])
        with self.assertRaises(TypeError):
            CommandOption.from_value(42)
        with self.assertRaises(TypeError):
            CommandOption.from_value(["x", str, "", "", "", False, "extra"])

    def testMetadataSanitization(self):
        with self.assertRaises(ValueError):
            CommandOption("  ")
        with self.assertRaises(TypeError):
            CommandOption(1)
        with self.assertRaises(ValueError):
            CommandOption("x", alias="xy")
        with self.assertRaises(ValueError):
            CommandOption("x", alias="-")
        with self.assertRaises(TypeError):
            CommandOption("x", help=1)
        with self.assertRaises(TypeError):
            CommandOption("x", required="yes")

    def testOptionality(self):
        self.assertTrue(CommandOption("x").is_optional())
        self.assertFalse(CommandOption("x", required=True).is_optional())
        self.assertTrue(CommandOption("x", default="a", required=True).is_optional())

    def testDisplayRecord(self):
        record = CommandOption("help", bool, False, "Show help", "h").to_object()
        self.assertEqual(record["type"], "bool")
        self.assertEqual(record["default_text"], " (default: false)")
        self.assertEqual(CommandOption("x").to_object()["default_text"], "")
        self.assertEqual(CommandOption("mode", ["a", "b"]).to_object()["type"], "a|b")

    def testWildcard(self):
        self.assertTrue(CommandOption("*").is_wildcard)

    def testFieldsAreReadOnly(self):
        option = CommandOption("x")
        with self.assertRaises(AttributeError):
            option.name = "y"

    def testRepr(self):
        self.assertTrue(repr(CommandOption("verbose", bool)).startswith("command-option(name='verbose'"))


if __name__ == "__main__":
    unittest.main()
