"""
Pipeline module behavioral tests (ordering, short-circuit, wrapping, state machine).

Scope
- Validate middleware ordering: stage, then priority, then registration order.
- Validate short-circuit and result wrapping through continuations.
- Validate the freeze-on-first-execution rule and the single-call continuation.
- Validate CommandContext state transitions and the single-assignment exit code.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import asyncio
import unittest
from unittest import TestCase

from commandeer import CommandContext, MiddlewareStage, Pipeline, State


def execute(pipeline):
    return asyncio.run(pipeline.execute(CommandContext([], None)))


class TestPipeline(TestCase):
    """Behavioral tests for Pipeline."""

    def setUp(self):
        self.pipeline = Pipeline()
        self.calls = []

    def recorder(self, label):
        def middleware(context, next):
            self.calls.append(label)
            return next(context)
        return middleware

    def testOrderingByStagePriorityAndRegistration(self):
        use = self.pipeline.use
        use(self.recorder("invoke"), MiddlewareStage.INVOKE)
        use(self.recorder("tokenize-late"), MiddlewareStage.TOKENIZE, 5)
        use(self.recorder("tokenize-a"), MiddlewareStage.TOKENIZE)
        use(self.recorder("tokenize-b"), MiddlewareStage.TOKENIZE)
        use(self.recorder("tokenize-early"), MiddlewareStage.TOKENIZE, -5)
        use(self.recorder("pre"), MiddlewareStage.PRE_TOKENIZE, 100)

        self.assertEqual(execute(self.pipeline), 0)
        self.assertEqual(self.calls, ["pre", "tokenize-early", "tokenize-a", "tokenize-b", "tokenize-late", "invoke"])

    def testShortCircuitStopsEverythingLater(self):
        self.pipeline.use(self.recorder("first"), MiddlewareStage.PARSE_INPUT)
        self.pipeline.use(lambda context, next: 7, MiddlewareStage.PARSE_INPUT)
        self.pipeline.use(self.recorder("same-stage"), MiddlewareStage.PARSE_INPUT)
        self.pipeline.use(self.recorder("later-stage"), MiddlewareStage.INVOKE)

        self.assertEqual(execute(self.pipeline), 7)
        self.assertEqual(self.calls, ["first"])

    def testAsyncMiddlewareCanWrapTheResult(self):
        async def outer(context, next):
            return await next(context) + 1

        async def inner(context, next):
            return 41

        self.pipeline.use(inner, MiddlewareStage.INVOKE)
        self.pipeline.use(outer, MiddlewareStage.PRE_TOKENIZE)
        self.assertEqual(execute(self.pipeline), 42)

    def testRegistrationAfterFirstExecutionRaises(self):
        execute(self.pipeline)
        with self.assertRaises(RuntimeError):
            self.pipeline.use(self.recorder("late"), MiddlewareStage.INVOKE)

    def testContinuationRunsOnlyOnce(self):
        async def twice(context, next):
            await next(context)
            return await next(context)

        self.pipeline.use(twice, MiddlewareStage.TOKENIZE)
        with self.assertRaises(RuntimeError):
            execute(self.pipeline)

    def testRegistrationValidation(self):
        with self.assertRaises(TypeError):
            self.pipeline.use("not callable", MiddlewareStage.INVOKE)
        with self.assertRaises(TypeError):
            self.pipeline.use(self.recorder("x"), MiddlewareStage.INVOKE, "high")
        with self.assertRaises(ValueError):
            self.pipeline.use(self.recorder("x"), 999)

    def testRegistrationsAreFrozenInOrder(self):
        self.pipeline.use(self.recorder("b"), MiddlewareStage.INVOKE)
        self.pipeline.use(self.recorder("a"), MiddlewareStage.TOKENIZE)
        stages = [middleware.stage for middleware in self.pipeline.freeze()]
        self.assertEqual(stages, [MiddlewareStage.TOKENIZE, MiddlewareStage.INVOKE])
        self.assertTrue(self.pipeline.frozen)


class TestCommandContext(TestCase):
    """Behavioral tests for the execution state machine."""

    def setUp(self):
        self.context = CommandContext(["a", "b"], None)

    def testStartsUnparsed(self):
        self.assertIs(self.context.state, State.UNPARSED)
        self.assertEqual(self.context.args, ("a", "b"))
        self.assertIsNone(self.context.exit_code)

    def testAdvancesOneStepAtATime(self):
        self.context.advance(State.TOKENIZED)
        self.context.advance(State.RESOLVED)
        self.assertIs(self.context.state, State.RESOLVED)

    def testSkippingAStateRaises(self):
        with self.assertRaises(RuntimeError):
            self.context.advance(State.RESOLVED)

    def testRepeatingAStateRaises(self):
        self.context.advance(State.TOKENIZED)
        with self.assertRaises(RuntimeError):
            self.context.advance(State.TOKENIZED)

    def testTerminalFromAnyStateAndFinal(self):
        self.context.advance(State.TERMINAL)
        with self.assertRaises(RuntimeError):
            self.context.advance(State.TERMINAL)

    def testExitCodeIsSetOnce(self):
        self.context.exit_code = 3
        self.assertEqual(self.context.exit_code, 3)
        with self.assertRaises(RuntimeError):
            self.context.exit_code = 4


if __name__ == "__main__":
    unittest.main()
