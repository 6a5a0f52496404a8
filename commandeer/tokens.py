"""
Tokenizer: raw argument vector → ordered, immutable tokens.

Token kinds
- Directive(name, value): leading "[name]", "[name:value]" or "[name=value]".
  Only recognized before any other token; consumed by the tokenize middleware.
- OptionToken(identifier, value): "-x", "--name", "--name=value", "-x:value".
  value is None without an inline value. Negative numbers ("-1", "-2.5") are values.
- ArgumentSeparator(): a bare "--". Every later token is a Value.
- Value(text): everything else.

Token transformations
- Named functions `tokens -> tokens` applied in ascending order after tokenizing.
- expand_response_files: "@path" values expand to the file's content, split
  shell-style line by line ('#' comment lines skipped), recursively.

Faults
- TokenizationError for malformed directives, missing response files and
  unterminated quotes inside a response file.
"""
import collections
import logging
import os.path
import re
import shlex

from .faults import FaultCode, TokenizationError
from .pipeline import State
from .utils import *

logger = logging.getLogger(__name__)

_DIRECTIVE = re.compile(r"\[(?P<name>[^\W\d][\w-]*)(?:[:=](?P<value>[^\]]*))?\]")
_NUMBER = re.compile(r"-\d+(\.\d+)?([eE][-+]?\d+)?")


class Directive(collections.namedtuple("Directive", ("name", "value"))):
    __slots__ = ()

    def __str__(self):
        return "[%s]" % self.name if self.value is None else "[%s:%s]" % self


class OptionToken(collections.namedtuple("OptionToken", ("identifier", "value"))):
    __slots__ = ()

    def __str__(self):
        return self.identifier if self.value is None else "%s=%s" % self


class ArgumentSeparator(collections.namedtuple("ArgumentSeparator", ())):
    __slots__ = ()

    def __str__(self):
        return "--"


class Value(collections.namedtuple("Value", ("text",))):
    __slots__ = ()

    def __str__(self):
        return self.text


TokenTransformation = collections.namedtuple("TokenTransformation", ("name", "callback", "order"))


def tokenize(args, /, *, directives=True):
    """
    Split `args` into tokens, in input order.

    Parameters
    - args: Iterable[str]
    - directives: bool
      When False, leading bracketed tokens are plain values.

    Raises
    - TypeError: a non-string argument.
    - TokenizationError: a leading token opening with '[' that is not a directive.
    """
    tokens = []
    leading = directives
    separated = False

    for index, arg in enumerate(args, 1):
        if not isinstance(arg, str):
            raise TypeError("tokenize() arguments must be strings")

        if leading and arg.startswith("["):
            if not (match := _DIRECTIVE.fullmatch(arg)):
                raise TokenizationError(
                    "malformed directive %r at %s position" % (arg, ordinal(index)),
                    title="malformed directive",
                    code=FaultCode.MALFORMED_DIRECTIVE,
                    hint="write directives as [name] or [name:value] before any other argument",
                    input=arg,
                    index=index,
                )
            tokens.append(Directive(match["name"], match["value"]))
            continue
        leading = False

        if separated:
            tokens.append(Value(arg))
        elif arg == "--":
            tokens.append(ArgumentSeparator())
            separated = True
        elif arg.startswith("-") and arg != "-" and not _NUMBER.fullmatch(arg):
            # the first '=' or ':' splits the identifier from its inline value
            if match := re.search(r"[=:]", arg):
                tokens.append(OptionToken(arg[:match.start()], arg[match.end():]))
            else:
                tokens.append(OptionToken(arg, None))
        else:
            tokens.append(Value(arg))

    return tokens


def split_directives(tokens, /):
    """
    Return (directives, tokens): the leading Directive tokens as a name → value
    mapping, and the remaining tokens.
    """
    directives = {}
    tokens = list(tokens)
    while tokens and isinstance(tokens[0], Directive):
        directive = tokens.pop(0)
        directives[directive.name] = directive.value
    return directives, tokens


def expand_response_files(tokens, /, *, _seen=frozenset()):
    """
    Replace every "@path" Value with the tokens read from `path`, up to the first
    separator. A separator read from a file turns every later token into a Value.

    Raises
    - TokenizationError: missing/unreadable file, unterminated quote, or a file
      that includes itself.
    """
    expanded = []
    separated = False
    for token in tokens:
        if separated:
            # a separator read from a file also covers the tokens after that file
            expanded.append(token if isinstance(token, Value) else Value(str(token)))
            continue
        if isinstance(token, ArgumentSeparator):
            separated = True
        if not isinstance(token, Value) or not token.text.startswith("@") or token.text == "@":
            expanded.append(token)
            continue

        path = os.path.abspath(token.text[1:])
        if path in _seen:
            raise TokenizationError(
                "response file %r includes itself" % token.text[1:],
                title="recursive response file",
                code=FaultCode.RESPONSE_FILE,
                hint="remove the self reference from the response file",
                input=token.text,
            )
        try:
            with open(path, encoding="utf-8") as file:
                lines = file.read().splitlines()
        except OSError as exception:
            raise TokenizationError(
                "cannot read response file %r" % token.text[1:],
                title="unreadable response file",
                code=FaultCode.RESPONSE_FILE,
                hint="check that the file exists and is readable",
                input=token.text,
                exception=exception,
            ) from None

        args = []
        for number, line in enumerate(lines, 1):
            if not (line := line.strip()) or line.startswith("#"):
                continue
            try:
                args.extend(shlex.split(line))
            except ValueError:
                raise TokenizationError(
                    "unterminated quote in response file %r at line %d" % (token.text[1:], number),
                    title="unterminated quote",
                    code=FaultCode.RESPONSE_FILE,
                    hint="close the quote on the same line",
                    input=token.text,
                    line=number,
                ) from None

        logger.debug("expanded response file %r into %d arguments", path, len(args))
        inner = expand_response_files(tokenize(args, directives=False), _seen=_seen | {path})
        separated = any(isinstance(token, ArgumentSeparator) for token in inner)
        expanded.extend(inner)
    return expanded


def tokenize_input(context, next):
    """
    TOKENIZE middleware: tokenize the raw args, split directives off, apply the
    configured token transformations, then move to TOKENIZED.

    A TokenizationError is captured on the context; parsing is then skipped and
    the fault gate reports it.
    """
    try:
        directives, tokens = split_directives(tokenize(context.args, directives=context.settings.directives))
        for transformation in sorted(context.app.token_transformations, key=lambda x: x.order):
            tokens = list(transformation.callback(tokens))
    except TokenizationError as fault:
        context.faults.append(fault)
        return next(context)

    context.directives = directives
    context.tokens = tuple(tokens)
    context.advance(State.TOKENIZED)
    return next(context)


__all__ = (
    "Directive",
    "OptionToken",
    "ArgumentSeparator",
    "Value",
    "TokenTransformation",
    "tokenize",
    "split_directives",
    "expand_response_files",
    "tokenize_input",
)
