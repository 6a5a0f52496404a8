"""
Commandeer faults (errors raised or captured during an execution) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by pipeline phase (tokenizing, resolving, binding, executing)
  so logs and searches stay predictable.
- ExitCode: fixed process exit codes, one per fault family.
- CommandException: base type carrying a message + options that knows how to render
  itself in a friendly, lowercased, actionable way (rich protocol).
- The concrete taxonomy: TokenizationError, UnrecognizedCommandOrArgumentError,
  AmbiguousOptionError, MissingRequiredArgumentError, ValueConversionError
  (InvalidChoiceError) and MiddlewareError.

Propagation
- Tokenizing, parsing and binding faults are not thrown across stage boundaries:
  the owning middleware appends them to CommandContext.faults and the fault gate
  renders them once, uniformly, then ends the execution with the fault's exit code.
- MiddlewareError wraps an unexpected exception escaping user or framework code. It
  is only built at the outermost edge of an execution (see AppRunner.run_async).

UX goals
- Position-first messages: parse faults name the ordinal position of the token.
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Host palette overrides via a __styles__ mapping in __main__.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by pipeline phase)
    - tokenizing (2110x)
      • MALFORMED_DIRECTIVE, RESPONSE_FILE
    - resolving (2111x)
      • UNRECOGNIZED_COMMAND, UNRECOGNIZED_OPTION, UNRECOGNIZED_OPERAND,
        MISSING_COMMAND, AMBIGUOUS_OPTION
    - binding (2112x)
      • MISSING_REQUIRED, MISSING_OPTION_VALUE, VALUE_CONVERSION, INVALID_CHOICE
    - executing (2113x)
      • MIDDLEWARE_ERROR

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- tokenizing ---
    MALFORMED_DIRECTIVE  = 21101
    RESPONSE_FILE        = 21102

    # --- resolving ---
    UNRECOGNIZED_COMMAND = 21111
    UNRECOGNIZED_OPTION  = 21112
    UNRECOGNIZED_OPERAND = 21113
    MISSING_COMMAND      = 21114
    AMBIGUOUS_OPTION     = 21115

    # --- binding ---
    MISSING_REQUIRED     = 21121
    MISSING_OPTION_VALUE = 21122
    VALUE_CONVERSION     = 21123
    INVALID_CHOICE       = 21124

    # --- executing ---
    MIDDLEWARE_ERROR     = 21131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ExitCode(IntEnum):
    """
    process exit codes produced by the framework itself.

    user handlers are free to return any integer; these are the values used
    when an execution ends because of a fault.
    """
    OK               = 0
    UNRECOGNIZED     = 1
    TOKENIZATION     = 2
    AMBIGUOUS_OPTION = 3
    MISSING_REQUIRED = 4
    VALUE_CONVERSION = 5
    MIDDLEWARE       = 70


class CommandException(Exception):
    """
    base fault: a message plus free-form options.

    well-known options
    - title: short label shown in the header (defaults to the class title).
    - code: FaultCode shown in the header.
    - hint: one actionable sentence.
    - command: the Command the fault was found on (used for the program name).
    - prog: explicit program name (wins over command).
    any other option (input, index, argument, raw, ...) is kept for reporters.
    """
    title = "command error"
    code = Unset
    exit_code = ExitCode.UNRECOGNIZED

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message if isinstance(self.message, str) else ""

    def __getattr__(self, name):
        # options read as attributes (fault.input, fault.argument, ...)
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def replace(self, **overrides):
        """
        return a copy of this fault with options merged with `overrides`.
        """
        return type(self)(self.message, **{**self.options, **overrides})

    __replace__ = replace

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style])

        command = self.options.get("command")
        prog = self.options.get("prog") or (command.root.name if command is not None else getattr(main, "__prog__", ""))
        code = self.options.get("code", self.code)
        title = self.options.get("title", self.title)

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code.normalize() if code else "", "code"),
            " | ",
            text(title.title(), "error-title"),
            " ]"
        )
        renders = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*renders)


class TokenizationError(CommandException):
    title = "malformed input"
    code = FaultCode.MALFORMED_DIRECTIVE
    exit_code = ExitCode.TOKENIZATION


class UnrecognizedCommandOrArgumentError(CommandException):
    title = "unrecognized input"
    code = FaultCode.UNRECOGNIZED_OPERAND
    exit_code = ExitCode.UNRECOGNIZED


class AmbiguousOptionError(CommandException):
    title = "ambiguous option"
    code = FaultCode.AMBIGUOUS_OPTION
    exit_code = ExitCode.AMBIGUOUS_OPTION


class MissingRequiredArgumentError(CommandException):
    title = "missing argument"
    code = FaultCode.MISSING_REQUIRED
    exit_code = ExitCode.MISSING_REQUIRED


class ValueConversionError(CommandException):
    title = "invalid value"
    code = FaultCode.VALUE_CONVERSION
    exit_code = ExitCode.VALUE_CONVERSION


class InvalidChoiceError(ValueConversionError):
    title = "invalid choice"
    code = FaultCode.INVALID_CHOICE


class MiddlewareError(CommandException):
    title = "unexpected failure"
    code = FaultCode.MIDDLEWARE_ERROR
    exit_code = ExitCode.MIDDLEWARE


__all__ = (
    "FaultCode",
    "ExitCode",
    "CommandException",
    "TokenizationError",
    "UnrecognizedCommandOrArgumentError",
    "AmbiguousOptionError",
    "MissingRequiredArgumentError",
    "ValueConversionError",
    "InvalidChoiceError",
    "MiddlewareError",
)
