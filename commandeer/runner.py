"""
Runner: settings, collaborators, default middleware and executions.

Default middleware (stage / priority)
- TOKENIZE          tokenize_input (FIRST), log_to_console (FIRST + 1)
- PARSE_INPUT       parse_input (FIRST), show_help, assemble_invocation_pipeline
- POST_PARSE_INPUT_PRE_BIND_VALUES
                    piped_input (0), report_parse (LAST - 1), report_faults (LAST)
- BIND_VALUES       bind_values (FIRST), resolve_instances (FIRST + 1)
- INVOKE            report_faults (FIRST), invoke_invocation_pipeline (LAST)

Middleware added with use_middleware() at the default priority 0 therefore run
after the framework has done its part of a stage and before the fault gates.

Quick example:
    from commandeer import AppRunner, command

    @command
    def greet(name, *, shout):
        print(name.upper() if shout else name)

    greet.operand("name")
    greet.option("-s", "--shout", type=bool)

    if __name__ == "__main__":
        raise SystemExit(AppRunner(greet).run())
"""
import asyncio
import collections
import logging
import sys

from .binding import ConverterRegistry, bind_values, piped_input
from .commands import Command
from .console import Console
from .directives import log_to_console, report_parse
from .faults import ExitCode, MiddlewareError
from .help import HelpTextProvider, show_help
from .invocation import (
    assemble_invocation_pipeline,
    exit_code,
    invoke_invocation_pipeline,
    resolve_instances,
)
from .parsing import parse_input
from .pipeline import CommandContext, MiddlewareStage, Pipeline, State
from .tokens import TokenTransformation, expand_response_files, tokenize_input
from .utils import *

logger = logging.getLogger(__name__)

FIRST = -sys.maxsize
LAST = sys.maxsize


class AppSettings(collections.namedtuple(
    "AppSettings",
    (
        "argument_separator",
        "ignore_unrecognized",
        "directives",
        "response_files",
        "piped_input",
        "rethrow",
        "name",
    ),
    defaults=(True, False, True, False, True, False, None),
)):
    """
    Immutable runner configuration.

    - argument_separator: honor "--".
    - ignore_unrecognized: keep unknown tokens instead of failing with exit code 1.
    - directives: recognize leading [directive] tokens.
    - response_files: expand "@path" values.
    - piped_input: merge redirected stdin lines into the unbounded operand.
    - rethrow: let unexpected exceptions escape run() instead of reporting them.
    - name: program name shown in help and faults (default: the root's name).
    """
    __slots__ = ()

    def __new__(cls, *args, **kwargs):
        self = super().__new__(cls, *args, **kwargs)
        for field in self._fields[:-1]:
            if not isinstance(getattr(self, field), bool):
                raise TypeError(f"settings {field!r} must be a boolean")
        if self.name is not None and not isinstance(self.name, str):
            raise TypeError("settings 'name' must be a string")
        return self


def report_faults(context, next):
    """
    Fault gate: render every captured fault to standard error and end the
    execution with the first fault's exit code. Nothing later runs.
    """
    if not context.faults:
        return next(context)

    for fault in context.faults:
        if context.settings.name is not None and "prog" not in fault.options:
            fault = fault.replace(prog=context.settings.name)
        logger.debug("fault %s: %s", type(fault).__name__, fault)
        context.console.write_err(fault)
    return context.faults[0].exit_code


class AppRunner:
    """
    Run a command tree against argument vectors.

    Parameters
    - root: Command                         the tree root.
    - settings: AppSettings
    - console: Console                      output/input endpoints.
    - resolver: object | None               `resolve(type)` provider for instance types.
    - converters: ConverterRegistry
    - help: HelpTextProvider

    Registrations (middleware, token transformations) are accepted until the
    first execution. The tree is frozen by the first execution as well.
    """

    def __init__(self, root, /, *, settings=Unset, console=Unset, resolver=None, converters=Unset, help=Unset):
        if not isinstance(root, Command):
            raise TypeError("app-runner 'root' must be a command")
        if root.parent is not None:
            raise ValueError("app-runner 'root' must be the root of its tree")
        if not isinstance(settings := coalesce(settings, AppSettings()), AppSettings):
            raise TypeError("app-runner 'settings' must be app-settings")

        self.root = root
        self.settings = settings
        self.console = coalesce(console, Console())
        self.resolver = resolver
        self.converters = coalesce(converters, ConverterRegistry())
        self.help = coalesce(help, HelpTextProvider())
        self.pipeline = Pipeline()
        self._transformations = []

        if settings.response_files:
            self.use_token_transformation("response-files", expand_response_files)

        use = self.pipeline.use
        use(tokenize_input, MiddlewareStage.TOKENIZE, FIRST)
        if settings.directives:
            use(log_to_console, MiddlewareStage.TOKENIZE, FIRST + 1)
        use(parse_input, MiddlewareStage.PARSE_INPUT, FIRST)
        use(show_help, MiddlewareStage.PARSE_INPUT, FIRST + 1)
        use(assemble_invocation_pipeline, MiddlewareStage.PARSE_INPUT, FIRST + 2)
        use(piped_input, MiddlewareStage.POST_PARSE_INPUT_PRE_BIND_VALUES)
        if settings.directives:
            use(report_parse, MiddlewareStage.POST_PARSE_INPUT_PRE_BIND_VALUES, LAST - 1)
        use(report_faults, MiddlewareStage.POST_PARSE_INPUT_PRE_BIND_VALUES, LAST)
        use(bind_values, MiddlewareStage.BIND_VALUES, FIRST)
        use(resolve_instances, MiddlewareStage.BIND_VALUES, FIRST + 1)
        use(report_faults, MiddlewareStage.INVOKE, FIRST)
        use(invoke_invocation_pipeline, MiddlewareStage.INVOKE, LAST)

    @property
    def token_transformations(self):
        return tuple(self._transformations)

    def use_middleware(self, middleware, stage, /, priority=0):
        """
        Register `middleware(context, next)` at `stage`. Returns the middleware.

        Raises
        - RuntimeError: after the first execution.
        """
        return self.pipeline.use(middleware, stage, priority)

    def use_token_transformation(self, name, transformation, /, order=0):
        """
        Register a named `tokens -> tokens` function, applied in ascending order
        right after tokenizing. Returns the transformation.
        """
        if self.pipeline.frozen:
            raise RuntimeError("cannot register token transformations after the first execution")
        if not callable(transformation):
            raise TypeError("token transformations must be callable")
        if any(existing.name == name for existing in self._transformations):
            raise ValueError(f"token transformation {name!r} is already registered")
        self._transformations.append(TokenTransformation(name, transformation, order))
        return transformation

    async def run_async(self, args=Unset, /):
        """
        Execute once against `args` (default: sys.argv[1:]) and return the exit code.
        """
        args = sys.argv[1:] if args is Unset else args
        self.root.freeze()

        context = CommandContext(args, self)
        logger.debug("running %r with %r", self.root.name, context.args)
        try:
            code = exit_code(await self.pipeline.execute(context))
        except Exception as exception:
            if self.settings.rethrow:
                raise
            logger.debug("unhandled exception", exc_info=True)
            self.console.write_err(MiddlewareError(
                str(exception) or type(exception).__name__,
                hint="run again with [log] for details",
                command=self.root,
                prog=self.settings.name,
                exception=exception,
            ))
            code = ExitCode.MIDDLEWARE
        finally:
            context.advance(State.TERMINAL)

        context.exit_code = code
        return code

    def run(self, args=Unset, /):
        """
        Execute once against `args` in a fresh event loop and return the exit code.
        """
        return asyncio.run(self.run_async(args))


__all__ = (
    "FIRST",
    "LAST",
    "AppSettings",
    "AppRunner",
    "report_faults",
)
