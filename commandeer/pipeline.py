"""
Middleware pipeline engine.

What this module provides
- MiddlewareStage: the ordered stages every execution goes through.
- State: the per-execution state machine (Unparsed → Tokenized → Resolved → Bound →
  Invoked → Terminal).
- CommandContext: mutable state of one execution, threaded through every middleware.
- Pipeline: the ordered middleware registrations and the engine that drives them.

Middleware contract
- A middleware is `middleware(context, next)`; `next` is a coroutine function
  representing the rest of the pipeline (later middleware of the same stage, then
  every later stage).
- It must either return `next(context)` (or `await next(context)`), return a result
  without calling `next` (short-circuit: nothing later runs), or await `next` and
  inspect or replace its result. Only `async def` middleware can wrap a result.
- `next` may be called at most once per execution.
- Within a stage, middleware run in ascending priority; ties keep registration order.

Engine
- The engine never branches: all control flow lives in middleware.
- Registrations freeze at the first execution; the continuation chain is built fresh
  for every execution and discarded when it ends. The innermost continuation
  returns 0.
"""
import collections
import inspect
import logging
from enum import IntEnum

from .utils import *

logger = logging.getLogger(__name__)


class MiddlewareStage(IntEnum):
    """
    stages in execution order. values are spaced for readability only; the
    order is what matters.
    """
    PRE_TOKENIZE                     = 100
    TOKENIZE                         = 200
    PARSE_INPUT                      = 300
    POST_PARSE_INPUT_PRE_BIND_VALUES = 400
    BIND_VALUES                      = 500
    INVOKE                           = 600


class State(IntEnum):
    """
    execution state machine. each transition is owned by one component:
    tokenizer → TOKENIZED, parser → RESOLVED, binder → BOUND, invoker → INVOKED,
    runner → TERMINAL.
    """
    UNPARSED  = 0
    TOKENIZED = 1
    RESOLVED  = 2
    BOUND     = 3
    INVOKED   = 4
    TERMINAL  = 5


class CommandContext:
    """
    Mutable state of a single execution.

    Attributes
    - args: tuple[str, ...]         raw argument vector.
    - app: AppRunner                the configured runner (settings, console, resolver, ...).
    - tokens: tuple[Token, ...]     tokens, directives excluded.
    - directives: dict[str, str|None]
    - parse_result: ParseResult | None
    - invocation_pipeline: InvocationPipeline | None
    - faults: list[CommandException]  captured tokenize/parse/bind faults.
    - data: dict                    free-form bag for cross-middleware data.
    - state: State
    - exit_code: int                set once, at the end of the execution.

    Owned by exactly one execution; never shared.
    """

    def __init__(self, args, app, /):
        self.args = tuple(args)
        self.app = app
        self.tokens = ()
        self.directives = {}
        self.parse_result = None
        self.invocation_pipeline = None
        self.faults = []
        self.data = {}
        self._state = State.UNPARSED
        self._exit_code = Unset

    @property
    def console(self):
        return self.app.console

    @property
    def settings(self):
        return self.app.settings

    @property
    def state(self):
        return self._state

    def advance(self, state, /):
        """
        Move to `state`. Transitions cannot be skipped nor repeated; TERMINAL can
        be reached from any state but left from none.
        """
        state = State(state)
        if self._state is State.TERMINAL:
            raise RuntimeError("execution already terminated")
        if state is not State.TERMINAL and state != self._state + 1:
            raise RuntimeError("cannot move from %s to %s" % (self._state.name.lower(), state.name.lower()))
        logger.debug("state %s → %s", self._state.name.lower(), state.name.lower())
        self._state = state

    @property
    def exit_code(self):
        return coalesce(self._exit_code)

    @exit_code.setter
    def exit_code(self, value):
        if self._exit_code is not Unset:
            raise RuntimeError("exit code is already set")
        self._exit_code = int(value)

    def __repr__(self):
        return "command-context(args=%r, state=%s)" % (self.args, self._state.name.lower())


Middleware = collections.namedtuple("Middleware", ("callback", "stage", "priority", "order"))


class Pipeline:
    """
    Ordered middleware registrations and the engine that executes them.
    """

    def __init__(self):
        self._registrations = []
        self._frozen = Unset

    @property
    def frozen(self):
        return self._frozen is not Unset

    def use(self, callback, stage, /, priority=0):
        """
        Register `callback` at `stage` with `priority` (lower runs first).

        Raises
        - TypeError: non-callable middleware, non-stage, or non-integer priority.
        - RuntimeError: the pipeline already ran (registrations are frozen).
        """
        if not callable(callback):
            raise TypeError("middleware must be callable")
        if not isinstance(priority, int) or isinstance(priority, bool):
            raise TypeError("middleware 'priority' must be an integer")
        stage = MiddlewareStage(stage)
        if self.frozen:
            raise RuntimeError("cannot register middleware after the first execution")
        self._registrations.append(Middleware(callback, stage, priority, len(self._registrations)))
        return callback

    def freeze(self):
        """
        Fix and return the execution order: stage, then priority, then registration.
        """
        if not self.frozen:
            self._frozen = tuple(sorted(self._registrations, key=lambda x: (x.stage, x.priority, x.order)))
        return self._frozen

    @property
    def middleware(self):
        return self.freeze()

    async def execute(self, context, /):
        """
        Build the continuation chain for this execution and run it.
        """
        async def terminal(context):
            return 0

        next = terminal
        for middleware in reversed(self.freeze()):
            next = _link(middleware, next)
        return await next(context)


def once(next, owner, /):
    """
    Return a continuation running `next` at most once; a second call raises
    RuntimeError naming `owner`.
    """
    called = False

    @rename("next")
    async def continuation(context):
        nonlocal called
        if called:
            raise RuntimeError("%s called its continuation more than once" % owner)
        called = True
        return await next(context)

    return continuation


def _link(middleware, next, /):
    """
    Wrap one middleware into a continuation. The continuation handed to the
    middleware refuses to run twice.
    """
    guarded = once(next, "middleware %r" % _name(middleware.callback))

    @rename(_name(middleware.callback))
    async def continuation(context):
        logger.debug("%s: %s", middleware.stage.name.lower(), _name(middleware.callback))
        result = middleware.callback(context, guarded)
        if inspect.isawaitable(result):
            result = await result
        return result

    return continuation


def _name(callback, /):
    return getattr(callback, "__qualname__", None) or type(callback).__name__


__all__ = (
    "MiddlewareStage",
    "State",
    "CommandContext",
    "Middleware",
    "Pipeline",
)
