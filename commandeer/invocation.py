"""
Invocation chain: descriptors, steps, the ancestor-interceptor pipeline and its invoker.

Overview
- Invocation: describes how to call a handler or an interceptor (callable + optional
  instance type resolved per execution).
- InvocationStep: a command paired with its invocation, the resolved instance and the
  bound values for that command's arguments.
- InvocationPipeline: ancestor interceptor steps (root first) + exactly one target step.
- build_invocation_pipeline(target): walks root → target and keeps ancestors that
  declared an interceptor.
- Middleware: assemble_invocation_pipeline (PARSE_INPUT), resolve_instances
  (BIND_VALUES) and invoke_invocation_pipeline (INVOKE, last).

Calling conventions
- target handler:  handler([instance,] **values[, context=context])
- interceptor:     interceptor([instance,] context, next, **values)
  'next' is a coroutine function: `await next(context)` runs the next ancestor,
  or the target when none remain. Not calling it short-circuits the rest;
  calling it twice raises RuntimeError.
- Handlers and interceptors may be plain functions or `async def`.
- The return value is the exit code: int as-is, None as 0.
"""
import inspect
import logging
from inspect import Parameter

from .faults import ExitCode
from .pipeline import State, once
from .utils import *

logger = logging.getLogger(__name__)


class Invocation:
    """
    Invocation descriptor for a command's handler or interceptor.

    Parameters
    - callback: Callable
      The function (or unbound method when 'instance' is given) to call.
    - instance: Unset | type
      When given, an instance of this type is obtained through the instance
      resolver at bind time and passed as the first argument.
    - interceptor: bool
      Interceptors receive (context, next) before their option values.
    """

    def __init__(self, callback, /, *, instance=Unset, interceptor=False):
        if not callable(callback):
            raise TypeError("invocation 'callback' must be callable")
        if not isinstance(instance, type | Unset):
            raise TypeError("invocation 'instance' must be a type")

        try:
            parameters = list(inspect.signature(callback).parameters.values())
        except (TypeError, ValueError):
            raise TypeError("invocation 'callback' must be an inspectable callable") from None

        if instance is not Unset:
            if not parameters:
                raise TypeError("invocation 'callback' must accept the instance as first parameter")
            parameters = parameters[1:]

        if interceptor:
            positionals = [
                parameter for parameter in parameters
                if parameter.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
            ]
            variadic = any(parameter.kind is Parameter.VAR_POSITIONAL for parameter in parameters)
            if len(positionals) < 2 and not variadic:
                raise TypeError("interceptor must accept (context, next) parameters")
            parameters = parameters[2:]

        self.callback = callback
        self.instance = instance
        self.interceptor = interceptor
        self.keywords = frozenset(
            parameter.name for parameter in parameters
            if parameter.kind in (Parameter.POSITIONAL_OR_KEYWORD, Parameter.KEYWORD_ONLY)
        )
        self.variadic = any(parameter.kind is Parameter.VAR_KEYWORD for parameter in parameters)
        self.contextual = not interceptor and "context" in self.keywords

    def accepts(self, name, /):
        return self.variadic or name in self.keywords

    async def __call__(self, context, step, next=Unset):
        """
        Call the described callable for `step`; await it when it returns an awaitable.
        """
        args = () if self.instance is Unset else (step.instance,)
        if self.interceptor:
            args += (context, next)
        kwargs = dict(step.values)
        if self.contextual:
            kwargs["context"] = context

        result = self.callback(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self):
        kind = "interceptor" if self.interceptor else "handler"
        return "invocation(%s=%s, instance=%r)" % (kind, getattr(self.callback, "__qualname__", self.callback), self.instance)


class InvocationStep:
    """
    One link of the invocation chain: a command, its invocation, the resolved
    instance (Unset until resolve_instances runs) and its bound values.
    """

    def __init__(self, command, invocation, /):
        self.command = command
        self.invocation = invocation
        self.instance = Unset
        self.values = {}

    def __repr__(self):
        return "invocation-step(command=%r, invocation=%r)" % (self.command.name, self.invocation)


class InvocationPipeline:
    """
    Ancestor interceptor steps (root → target) plus the target step.

    Built once per execution by assemble_invocation_pipeline, discarded after.
    """

    def __init__(self, target, ancestors=(), /):
        self.target = target
        self.ancestors = list(ancestors)

    @property
    def steps(self):
        return (*self.ancestors, self.target)

    def __repr__(self):
        return "invocation-pipeline(ancestors=%r, target=%r)" % (self.ancestors, self.target)


def build_invocation_pipeline(target, /):
    """
    Return the InvocationPipeline for `target`.

    Walks the path from the tree root down to (excluding) the target, keeping the
    ancestors that declared an interceptor, root first. Interceptors on commands
    off that path (siblings, descendants) never participate.
    """
    ancestors = [
        InvocationStep(command, command.interception)
        for command in target.path[:-1]
        if command.interception is not None
    ]
    return InvocationPipeline(InvocationStep(target, target.invocation), ancestors)


def exit_code(result, /):
    """
    Normalize a handler/interceptor result to an exit code.
    """
    if result is None:
        return ExitCode.OK
    if isinstance(result, int):
        return int(result)
    raise TypeError("handlers must return an integer exit code or None, not %r" % type(result).__name__)


async def invoke(pipeline, context, /):
    """
    Run the chain outermost-first and return the final exit code.

    The continuation chain is built innermost-out right before running: the
    target call first, then each ancestor wrapping the previous continuation.
    """
    target = pipeline.target

    async def call_target(context):
        logger.debug("invoking %s", " ".join(command.name for command in target.command.path))
        return exit_code(await target.invocation(context, target))

    def wrap(step, next):
        next = once(next, "interceptor of %r" % step.command.name)

        async def call_interceptor(context):
            logger.debug("entering interceptor of %r", step.command.name)
            return exit_code(await step.invocation(context, step, next))
        return call_interceptor

    next = call_target
    for step in reversed(pipeline.ancestors):
        next = wrap(step, next)
    return await next(context)


def assemble_invocation_pipeline(context, next):
    """
    PARSE_INPUT middleware: build the InvocationPipeline for the resolved target.
    """
    if context.parse_result is not None and context.parse_result.target.invocation is not None:
        context.invocation_pipeline = build_invocation_pipeline(context.parse_result.target)
    return next(context)


def resolve_instances(context, next):
    """
    BIND_VALUES middleware: resolve the instance of every step declaring an instance type.

    The configured resolver is asked first; without one the type is constructed
    with no arguments. Resolution failures propagate (no fallback). Skipped when
    binding left faults, so the fault gate reports those instead.
    """
    if context.invocation_pipeline is not None and not context.faults:
        resolver = context.app.resolver
        for step in context.invocation_pipeline.steps:
            if step.invocation.instance is Unset:
                continue
            if resolver is not None:
                step.instance = resolver.resolve(step.invocation.instance)
            else:
                step.instance = step.invocation.instance()
    return next(context)


async def invoke_invocation_pipeline(context, next):
    """
    INVOKE middleware (registered last): run the chain. It calls `next` only
    when there is nothing to invoke; otherwise the chain's result is the result
    of the whole pipeline.
    """
    if context.invocation_pipeline is None:
        return await next(context)
    result = await invoke(context.invocation_pipeline, context)
    context.advance(State.INVOKED)
    return result


__all__ = (
    "Invocation",
    "InvocationStep",
    "InvocationPipeline",
    "build_invocation_pipeline",
    "invoke",
    "exit_code",
    "assemble_invocation_pipeline",
    "resolve_instances",
    "invoke_invocation_pipeline",
)
