"""
Parser / resolver: tokens + command tree → target command and raw value assignments.

Rules
- Values naming a child of the current command descend into it, as long as no
  operand of the current command has received a value.
- OptionTokens match the options of the current command by exact name. A short
  token such as "-abc" that is no declared name expands to clubbed flags when
  every letter names a flag; otherwise it is ambiguous.
- Value-taking options consume their inline value, else the next Value token.
- Values fill operands in declaration order up to each operand's maximum; the
  unbounded operand takes every remaining value.
- After "--" everything goes to the unbounded operand, when there is one.
- Leftovers are unrecognized, and become faults unless ignored.

Nothing is thrown: faults are collected on the ParseResult.
"""
import logging

from .faults import *
from .pipeline import State
from .tokens import ArgumentSeparator, OptionToken, Value
from .utils import *

logger = logging.getLogger(__name__)


class ParseResult:
    """
    Outcome of resolving one token sequence.

    Attributes
    - target: Command              the resolved command.
    - values: dict[Argument, list[str]]
      raw values per argument, in the order they were seen (arguments keyed by
      identity; ancestors' options included).
    - unrecognized: list[Token]
    - separated: list[str]         raw tokens following "--".
    - help: bool                   a help option was seen.
    - faults: list[CommandException]
    """

    def __init__(self, target, /):
        self.target = target
        self.values = {}
        self.unrecognized = []
        self.separated = []
        self.help = False
        self.faults = []

    def __repr__(self):
        return "parse-result(target=%r, values=%r, unrecognized=%r)" % (
            " ".join(command.name for command in self.target.path),
            {getattr(argument, "name", None) or argument.template: values for argument, values in self.values.items()},
            [str(token) for token in self.unrecognized],
        )


def _unclub(switches, identifier, /):
    """
    Return the flags clubbed in `identifier` ("-abc"), None when no letter is a
    declared short name, or False when the club is ambiguous.
    """
    if identifier.startswith("--") or len(identifier) < 3:
        return None
    options = [switches.get("-" + letter) for letter in identifier[1:]]
    if all(option is None for option in options):
        return None
    if all(option is not None and option.flag for option in options):
        return options
    return False


def parse(tokens, root, /, *, argument_separator=True, ignore_unrecognized=False):
    """
    Resolve `tokens` against the tree rooted at `root`.

    Parameters
    - tokens: Iterable[Token]       directives excluded.
    - root: Command
    - argument_separator: bool      honor "--".
    - ignore_unrecognized: bool     keep leftovers without turning them into faults.

    Returns
    - ParseResult
    """
    tokens = list(tokens)
    result = ParseResult(root)
    command = root
    switches = command.switches
    position = 0
    index = 0

    def fault(cls, message, /, **options):
        result.faults.append(cls(message, command=root, **options))

    def assigned(argument):
        return result.values.setdefault(argument, [])

    while index < len(tokens):
        token = tokens[index]
        index += 1

        match token:
            case ArgumentSeparator() if argument_separator:
                rest = tokens[index:]
                index = len(tokens)
                result.separated = [str(token) for token in rest]
                if (unbounded := command.unbounded) is not None:
                    assigned(unbounded).extend(result.separated)
                else:
                    result.unrecognized.extend(rest)

            case OptionToken(identifier=identifier, value=inline):
                option = switches.get(identifier)
                if option is None and inline is None:
                    match _unclub(switches, identifier):
                        case False:
                            fault(
                                AmbiguousOptionError,
                                "%r at %s position mixes flags with other input" % (identifier, ordinal(index)),
                                hint="spell each option separately",
                                input=identifier,
                                index=index,
                            )
                            continue
                        case list() as flags:
                            for flag in flags:
                                if flag is command.help_option:
                                    result.help = True
                                else:
                                    assigned(flag).append("true")
                            continue
                if option is None:
                    result.unrecognized.append(token)
                elif option is command.help_option:
                    result.help = True
                elif option.flag:
                    assigned(option).append("true" if inline is None else inline)
                elif inline is not None:
                    assigned(option).append(inline)
                elif index < len(tokens) and isinstance(tokens[index], Value):
                    assigned(option).append(tokens[index].text)
                    index += 1
                else:
                    fault(
                        MissingRequiredArgumentError,
                        "option %r at %s position requires a value" % (identifier, ordinal(index)),
                        code=FaultCode.MISSING_OPTION_VALUE,
                        hint="write %s <value> or %s=<value>" % (identifier, identifier),
                        argument=option,
                        index=index,
                    )

            case Value(text=text):
                operands = command.operands
                child = command.children.get(text)
                if child is not None and not any(operand in result.values for operand in operands):
                    logger.debug("descending into %r", text)
                    command = result.target = child
                    switches = command.switches
                    position = 0
                    continue
                while position < len(operands) and operands[position].arity.full(len(result.values.get(operands[position], ()))):
                    position += 1
                if position < len(operands):
                    assigned(operands[position]).append(text)
                else:
                    result.unrecognized.append(token)

            case _:
                result.unrecognized.append(token)

    if not ignore_unrecognized:
        for token in result.unrecognized:
            is_command = isinstance(token, Value) and command.children and not command.operands
            fault(
                UnrecognizedCommandOrArgumentError,
                "unrecognized %s %r" % ("command" if is_command else "command or argument", str(token)),
                code=FaultCode.UNRECOGNIZED_COMMAND if is_command else (
                    FaultCode.UNRECOGNIZED_OPTION if isinstance(token, OptionToken) else FaultCode.UNRECOGNIZED_OPERAND
                ),
                hint="use --help to list what %r accepts" % command.name,
                input=str(token),
            )

    if command.invocation is None and (ignore_unrecognized or not result.unrecognized):
        fault(
            UnrecognizedCommandOrArgumentError,
            "required command was not provided",
            code=FaultCode.MISSING_COMMAND,
            hint="choose one of: %s" % ", ".join(command.children),
        )

    logger.debug("parsed %r", result)
    return result


def parse_input(context, next):
    """
    PARSE_INPUT middleware: resolve the target and raw values, then move to RESOLVED.
    Skipped when tokenizing failed.
    """
    if context.state is State.TOKENIZED:
        result = parse(
            context.tokens,
            context.app.root,
            argument_separator=context.settings.argument_separator,
            ignore_unrecognized=context.settings.ignore_unrecognized,
        )
        context.parse_result = result
        context.faults.extend(result.faults)
        context.advance(State.RESOLVED)
    return next(context)


__all__ = (
    "ParseResult",
    "parse",
    "parse_input",
)
