"""
Built-in directives, enabled with AppSettings.directives.

- [parse]: report how the input was tokenized and resolved, then stop with
  exit code 0 without invoking anything.
- [log] / [log:LEVEL]: route the package's log records to standard error
  through a rich handler, for this execution only (default level DEBUG).
"""
import collections
import contextvars
import logging
import threading

from rich.logging import RichHandler
from rich.text import Text

from .faults import ExitCode, FaultCode, TokenizationError

PACKAGE = __name__.rpartition(".")[0]


_execution = contextvars.ContextVar("commandeer.execution", default=None)


class _CurrentExecution(logging.Filter):
    """
    Pass only the records logged while `context` is the running execution.
    """

    def __init__(self, context):
        super().__init__()
        self.context = context

    def filter(self, record):
        return _execution.get() is self.context


class _LevelRequests:
    """
    Levels requested on the package logger by the running [log] executions.

    The logger is lowered to the smallest requested level while any request is
    live, and put back to its own level once the last one is released.
    """

    def __init__(self, logger):
        self.logger = logger
        self.lock = threading.Lock()
        self.requests = collections.Counter()
        self.baseline = None

    def _apply(self):
        if self.requests:
            self.logger.setLevel(min(min(self.requests), self.baseline[1]))
        else:
            self.logger.setLevel(self.baseline[0])

    def acquire(self, level, /):
        with self.lock:
            if not self.requests:
                self.baseline = (self.logger.level, self.logger.getEffectiveLevel())
            self.requests[level] += 1
            self._apply()

    def release(self, level, /):
        with self.lock:
            self.requests[level] -= 1
            if not self.requests[level]:
                del self.requests[level]
            self._apply()


_levels = _LevelRequests(logging.getLogger(PACKAGE))


async def log_to_console(context, next):
    """
    TOKENIZE middleware (after tokenizing): honor the [log] directive.

    The handler only emits records of this execution, so concurrent executions
    never see each other's output.
    """
    if "log" not in context.directives:
        return await next(context)

    name = (context.directives["log"] or "DEBUG").upper()
    if not isinstance(level := logging.getLevelNamesMapping().get(name), int):
        context.faults.append(TokenizationError(
            "unknown log level %r" % context.directives["log"],
            title="malformed directive",
            code=FaultCode.MALFORMED_DIRECTIVE,
            hint="use one of: debug, info, warning, error, critical",
            command=context.app.root,
        ))
        return await next(context)

    handler = RichHandler(level, console=context.console.err, show_time=False, show_path=False)
    handler.addFilter(_CurrentExecution(context))
    token = _execution.set(context)
    _levels.acquire(level)
    _levels.logger.addHandler(handler)
    try:
        return await next(context)
    finally:
        _levels.logger.removeHandler(handler)
        _levels.release(level)
        _execution.reset(token)


def report_parse(context, next):
    """
    POST_PARSE_INPUT_PRE_BIND_VALUES middleware (before the fault gate): honor
    the [parse] directive.
    """
    if "parse" not in context.directives:
        return next(context)

    lines = [Text.assemble(("tokens: ", "bold"), " ".join(map(str, context.tokens)) or "(none)")]
    if (result := context.parse_result) is not None:
        lines.append(Text.assemble(("target: ", "bold"), " ".join(command.name for command in result.target.path)))
        for argument, values in result.values.items():
            label = getattr(argument, "name", None) or argument.template
            lines.append(Text.assemble("  ", (label, "bold"), " = ", repr(values)))
        if result.unrecognized:
            lines.append(Text.assemble(("unrecognized: ", "bold"), " ".join(map(str, result.unrecognized))))
        if result.separated:
            lines.append(Text.assemble(("separated: ", "bold"), " ".join(result.separated)))
    for fault in context.faults:
        lines.append(Text.assemble(("fault: ", "bold"), str(fault)))

    context.console.write_out(*lines, sep="\n")
    return ExitCode.OK


__all__ = (
    "log_to_console",
    "report_parse",
)
