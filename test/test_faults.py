"""
Faults module behavioral tests (taxonomy, options, rendering).

Scope
- Validate the exit code and fault code of every fault family.
- Validate option access and replace().
- Validate the rich rendering: header, message and hint.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured through a plain rich Console writing to a StringIO.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from commandeer import (
    AmbiguousOptionError,
    Command,
    CommandException,
    ExitCode,
    FaultCode,
    InvalidChoiceError,
    MiddlewareError,
    MissingRequiredArgumentError,
    TokenizationError,
    UnrecognizedCommandOrArgumentError,
    ValueConversionError,
)


def render(fault):
    console = Console(file=io.StringIO(), color_system=None, width=100)
    console.print(fault)
    return console.file.getvalue()


class TestTaxonomy(TestCase):
    """Exit codes and fault codes per family."""

    def testExitCodes(self):
        self.assertEqual(TokenizationError().exit_code, ExitCode.TOKENIZATION)
        self.assertEqual(UnrecognizedCommandOrArgumentError().exit_code, ExitCode.UNRECOGNIZED)
        self.assertEqual(AmbiguousOptionError().exit_code, ExitCode.AMBIGUOUS_OPTION)
        self.assertEqual(MissingRequiredArgumentError().exit_code, ExitCode.MISSING_REQUIRED)
        self.assertEqual(ValueConversionError().exit_code, ExitCode.VALUE_CONVERSION)
        self.assertEqual(MiddlewareError().exit_code, ExitCode.MIDDLEWARE)

    def testInvalidChoiceIsAConversionFault(self):
        fault = InvalidChoiceError("nope")
        self.assertIsInstance(fault, ValueConversionError)
        self.assertEqual(fault.exit_code, ExitCode.VALUE_CONVERSION)
        self.assertEqual(fault.code, FaultCode.INVALID_CHOICE)

    def testEveryFaultIsACommandException(self):
        for fault in (TokenizationError(), AmbiguousOptionError(), MiddlewareError()):
            self.assertIsInstance(fault, CommandException)

    def testFixedExitCodeValues(self):
        self.assertEqual(
            [int(code) for code in ExitCode],
            [0, 1, 2, 3, 4, 5, 70],
        )


class TestOptions(TestCase):
    """Message and option access."""

    def testMessageAndOptions(self):
        fault = ValueConversionError("invalid value 'x'", input="x", index=2)
        self.assertEqual(str(fault), "invalid value 'x'")
        self.assertEqual(fault.input, "x")
        self.assertEqual(fault.options["index"], 2)
        with self.assertRaises(AttributeError):
            fault.missing

    def testNoMessage(self):
        self.assertEqual(str(MiddlewareError()), "")

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            MiddlewareError("x", hint="h").options["hint"] = "other"

    def testReplaceKeepsTypeAndMessage(self):
        fault = UnrecognizedCommandOrArgumentError("unrecognized 'x'", input="x")
        other = fault.replace(prog="tool")
        self.assertIsInstance(other, UnrecognizedCommandOrArgumentError)
        self.assertEqual(str(other), "unrecognized 'x'")
        self.assertEqual(other.options, {"input": "x", "prog": "tool"})
        self.assertNotIn("prog", fault.options)


class TestRendering(TestCase):
    """Rich rendering of faults."""

    def testHeaderMessageAndHint(self):
        fault = UnrecognizedCommandOrArgumentError("unrecognized 'x'", hint="check the spelling", prog="tool")
        lines = render(fault).splitlines()
        self.assertEqual(lines[0], "[ tool — 21113 | Unrecognized Input ]")
        self.assertEqual(lines[1], "unrecognized 'x'")
        self.assertEqual(lines[2], " → check the spelling")

    def testProgramNameFromCommandRoot(self):
        app = Command("app")
        child = Command("child", app)
        output = render(MissingRequiredArgumentError("<x> is required", command=child))
        self.assertIn("[ app — 21121 | Missing Argument ]", output)

    def testOverriddenCodeAndTitle(self):
        fault = TokenizationError("bad", code=FaultCode.RESPONSE_FILE, title="unreadable response file", prog="tool")
        self.assertIn("[ tool — 21102 | Unreadable Response File ]", render(fault))


if __name__ == "__main__":
    unittest.main()
