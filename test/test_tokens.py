"""
Tokens module behavioral tests (token kinds, directives, response files).

Scope
- Validate the token kinds produced for directives, options, separators and values.
- Validate that directives are recognized only at the very start (and only when enabled).
- Validate inline values and negative numbers.
- Validate response-file expansion and its faults.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import os
import tempfile
import unittest
from unittest import TestCase

from commandeer import (
    ArgumentSeparator,
    Directive,
    ExitCode,
    FaultCode,
    OptionToken,
    TokenizationError,
    Value,
    expand_response_files,
    split_directives,
    tokenize,
)


class TestTokenize(TestCase):
    """Behavioral tests for tokenize()."""

    def testTokenKinds(self):
        tokens = tokenize(["[parse]", "--name=v", "-x:1", "-v", "run", "--", "-y", "z"])
        self.assertEqual(tokens, [
            Directive("parse", None),
            OptionToken("--name", "v"),
            OptionToken("-x", "1"),
            OptionToken("-v", None),
            Value("run"),
            ArgumentSeparator(),
            Value("-y"),
            Value("z"),
        ])

    def testDirectivesOnlyAtTheStart(self):
        self.assertEqual(tokenize(["run", "[parse]"]), [Value("run"), Value("[parse]")])

    def testDirectiveValues(self):
        self.assertEqual(tokenize(["[log:info]", "[log=debug]"]), [
            Directive("log", "info"),
            Directive("log", "debug"),
        ])

    def testDirectivesDisabled(self):
        self.assertEqual(tokenize(["[parse]"], directives=False), [Value("[parse]")])

    def testMalformedDirectiveRaises(self):
        with self.assertRaises(TokenizationError) as context:
            tokenize(["[oops"])
        self.assertEqual(context.exception.exit_code, ExitCode.TOKENIZATION)
        self.assertIn("first", str(context.exception))

    def testNegativeNumbersAndDashAreValues(self):
        self.assertEqual(tokenize(["-1", "-2.5", "-3e2", "-"]), [
            Value("-1"),
            Value("-2.5"),
            Value("-3e2"),
            Value("-"),
        ])

    def testInlineValueSplitsAtFirstSeparator(self):
        self.assertEqual(tokenize(["--define=a=b"]), [OptionToken("--define", "a=b")])
        self.assertEqual(tokenize(["--url:http://host"]), [OptionToken("--url", "http://host")])
        self.assertEqual(tokenize(["--empty="]), [OptionToken("--empty", "")])

    def testNonStringArgumentsRejected(self):
        with self.assertRaises(TypeError):
            tokenize(["ok", 1])

    def testStringForms(self):
        self.assertEqual(str(OptionToken("--name", "v")), "--name=v")
        self.assertEqual(str(OptionToken("-v", None)), "-v")
        self.assertEqual(str(Directive("log", "info")), "[log:info]")
        self.assertEqual(str(ArgumentSeparator()), "--")

    def testSplitDirectives(self):
        directives, tokens = split_directives(tokenize(["[parse]", "[log:debug]", "run"]))
        self.assertEqual(directives, {"parse": None, "log": "debug"})
        self.assertEqual(tokens, [Value("run")])


class TestResponseFiles(TestCase):
    """Behavioral tests for expand_response_files()."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)

    def write(self, name, content):
        path = os.path.join(self.directory.name, name)
        with open(path, "w", encoding="utf-8") as file:
            file.write(content)
        return path

    def testExpandsFileContentInPlace(self):
        path = self.write("args.rsp", '# comment\n--name "John Smith"\n\nrun\n')
        tokens = expand_response_files([Value("@" + path), Value("tail")])
        self.assertEqual(tokens, [
            OptionToken("--name", None),
            Value("John Smith"),
            Value("run"),
            Value("tail"),
        ])

    def testExpandsNestedFiles(self):
        inner = self.write("inner.rsp", "x y\n")
        outer = self.write("outer.rsp", "@%s\nz\n" % inner)
        self.assertEqual(expand_response_files([Value("@" + outer)]), [Value("x"), Value("y"), Value("z")])

    def testMissingFileRaises(self):
        with self.assertRaises(TokenizationError) as context:
            expand_response_files([Value("@" + os.path.join(self.directory.name, "missing.rsp"))])
        self.assertEqual(context.exception.options["code"], FaultCode.RESPONSE_FILE)

    def testUnterminatedQuoteRaises(self):
        path = self.write("bad.rsp", 'say "hello\n')
        with self.assertRaises(TokenizationError):
            expand_response_files([Value("@" + path)])

    def testSelfInclusionRaises(self):
        path = os.path.join(self.directory.name, "loop.rsp")
        self.write("loop.rsp", "@%s\n" % path)
        with self.assertRaises(TokenizationError):
            expand_response_files([Value("@" + path)])

    def testSeparatorInFileCoversLaterTokens(self):
        inner = self.write("inner.rsp", "@missing.rsp\n")
        path = self.write("args.rsp", "a --\n")
        tokens = expand_response_files([Value("@" + path), OptionToken("-v", None), Value("@" + inner)])
        self.assertEqual(tokens, [
            Value("a"),
            ArgumentSeparator(),
            Value("-v"),
            Value("@" + inner),
        ])

    def testValuesAfterSeparatorAreKept(self):
        tokens = [ArgumentSeparator(), Value("@whatever")]
        self.assertEqual(expand_response_files(tokens), tokens)


if __name__ == "__main__":
    unittest.main()
