"""
Binder: raw values → typed handler arguments.

Overview
- ConverterRegistry: type-keyed converters (str, int, float, bool, Path, Decimal,
  Enum subclasses; any other type is called with the raw string).
- bind_argument(): one argument's raw values → its bound value.
- bind(): fill an InvocationStep's values (ancestors bind their options only).
- Middleware: piped_input (POST_PARSE_INPUT_PRE_BIND_VALUES) merges redirected
  stdin lines into the target's unbounded operand; bind_values (BIND_VALUES)
  binds every step and moves to BOUND.

Binding rules
- No raw value: the default; without default, a required arity is a
  MissingRequiredArgumentError, otherwise the empty value ([] / None / False).
- Multi-valued arguments bind to lists; single-valued ones to their last value.
- Values outside 'choices' are an InvalidChoiceError.
"""
import decimal
import enum
import logging
from pathlib import Path

from .arguments import Option
from .faults import *
from .pipeline import State
from .utils import *

logger = logging.getLogger(__name__)

PIPED_INPUT = "piped-input"


def _boolean(text, /):
    match text.strip().lower():
        case "true" | "1" | "yes" | "on":
            return True
        case "false" | "0" | "no" | "off":
            return False
    raise ValueError("not a boolean: %r" % text)


def _enumeration(cls, /):
    @rename(cls.__name__)
    def convert(text):
        for member in cls:
            if member.name.lower() == text.lower() or str(member.value) == text:
                return member
        raise ValueError("not a %s: %r" % (cls.__name__, text))
    return convert


class ConverterRegistry:
    """
    Type-keyed converters from raw strings to values.

    Lookup order: an exact registration, then an Enum subclass converter, then
    the type itself called with the raw string.
    """

    def __init__(self):
        self._converters = {
            str: str,
            int: int,
            float: float,
            bool: _boolean,
            Path: Path,
            decimal.Decimal: decimal.Decimal,
        }

    def register(self, type, converter, /):
        """
        Register (or replace) the converter of `type`. Returns the converter.
        """
        if not callable(type) or not callable(converter):
            raise TypeError("converters and their types must be callable")
        self._converters[type] = converter
        return converter

    def lookup(self, type, /):
        if (converter := self._converters.get(type)) is not None:
            return converter
        if isinstance(type, enum.EnumMeta):
            return _enumeration(type)
        return type

    def convert(self, argument, text, /):
        """
        Convert one raw value for `argument`.

        Raises
        - ValueConversionError naming the argument and the raw value.
        """
        converter = self.lookup(bool if argument.flag else argument.type)
        try:
            return converter(text)
        except (ValueError, TypeError, ArithmeticError) as exception:
            raise ValueConversionError(
                "invalid value %r for %s" % (text, argument.template),
                hint="expected %s" % getattr(argument.type, "__name__", "a valid value"),
                argument=argument,
                input=text,
                exception=exception,
            ) from None


def bind_argument(argument, raw, converters, /):
    """
    Return the bound value of `argument` for the raw values `raw`.

    Raises
    - MissingRequiredArgumentError, ValueConversionError, InvalidChoiceError,
      UnrecognizedCommandOrArgumentError (more values than the arity allows).
    """
    raw = list(raw or ())
    if not raw:
        if argument.default is not Unset:
            return argument.default
        if argument.arity.required:
            raise MissingRequiredArgumentError(
                "%s is required" % argument.template,
                hint="provide a value for %s" % argument.template,
                argument=argument,
            )
        return argument.empty()

    if argument.arity.many and len(raw) < argument.arity.min:
        raise MissingRequiredArgumentError(
            "%s expects at least %d values, got %d" % (argument.template, argument.arity.min, len(raw)),
            argument=argument,
        )
    if argument.arity.many and argument.arity.full(len(raw) - 1):
        raise UnrecognizedCommandOrArgumentError(
            "%s accepts at most %d values, got %d" % (argument.template, argument.arity.max, len(raw)),
            code=FaultCode.UNRECOGNIZED_OPTION,
            argument=argument,
        )

    values = [converters.convert(argument, text) for text in raw]
    if argument.choices:
        for text, value in zip(raw, values):
            if value not in argument.choices:
                raise InvalidChoiceError(
                    "invalid choice %r for %s" % (text, argument.template),
                    hint="choose one of: %s" % ", ".join(map(str, argument.choices)),
                    argument=argument,
                    input=text,
                )
    return values if argument.arity.many else values[-1]


def bind(step, result, converters, /, *, options_only=False):
    """
    Fill `step.values` from the parse result. Returns the faults met, in
    declaration order; arguments that failed are left out of the values.
    """
    faults = []
    for argument in step.command.arguments:
        if options_only and not isinstance(argument, Option):
            continue
        try:
            step.values[argument.dest] = bind_argument(argument, result.values.get(argument), converters)
        except CommandException as fault:
            faults.append(fault.replace(command=step.command))
    logger.debug("bound %r: %r", step.command.name, step.values)
    return faults


def piped_input(context, next):
    """
    Append redirected input lines to the target's unbounded operand, after any
    explicit value. Lines are read once per execution and kept in context.data.
    """
    if (
        context.settings.piped_input
        and context.parse_result is not None
        and context.console.is_input_redirected
    ):
        operand = context.parse_result.target.unbounded
        if operand is None:
            logger.debug("redirected input ignored: %r has no unbounded operand", context.parse_result.target.name)
        else:
            if PIPED_INPUT not in context.data:
                text = context.console.read_redirected_input()
                context.data[PIPED_INPUT] = [line.strip() for line in text.splitlines()]
            context.parse_result.values.setdefault(operand, []).extend(context.data[PIPED_INPUT])
    return next(context)


def bind_values(context, next):
    """
    BIND_VALUES middleware: bind the target's arguments and every ancestor
    interceptor's options, then move to BOUND.
    """
    if context.invocation_pipeline is not None and not context.faults:
        converters = context.app.converters
        for step in context.invocation_pipeline.ancestors:
            context.faults.extend(bind(step, context.parse_result, converters, options_only=True))
        context.faults.extend(bind(context.invocation_pipeline.target, context.parse_result, converters))
        context.advance(State.BOUND)
    return next(context)


__all__ = (
    "PIPED_INPUT",
    "ConverterRegistry",
    "bind_argument",
    "bind",
    "piped_input",
    "bind_values",
)
