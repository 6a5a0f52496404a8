"""
Test tools: run a configured runner in-process and capture what it prints.

    from commandeer.testing import run_scenario

    result = run_scenario(runner, ["sub", "abc"], piped_input="a\\nb\\n")
    assert result.exit_code == 0
    assert "abc" in result.out

run_scenario swaps a fresh TestConsole into the runner for the duration of
the run, then restores the runner's own console.
"""
import collections
import io

from rich.console import Console as RichConsole

from .console import Console

WIDTH = 100


class TestConsole(Console):
    """
    Console writing to in-memory buffers (no color, fixed width) with optional
    piped input.
    """
    __test__ = False

    def __init__(self, piped_input=None, /, *, width=WIDTH):
        def capture():
            return RichConsole(
                file=io.StringIO(),
                color_system=None,
                force_terminal=False,
                highlight=False,
                width=width,
            )

        super().__init__(
            out=capture(),
            err=capture(),
            stdin=io.StringIO(piped_input) if piped_input is not None else None,
        )

    @property
    def out_text(self):
        return self.out.file.getvalue()

    @property
    def err_text(self):
        return self.err.file.getvalue()


ScenarioResult = collections.namedtuple("ScenarioResult", ("exit_code", "out", "err"))


def run_scenario(runner, args, /, *, piped_input=None):
    """
    Run `runner` once against `args` with a fresh TestConsole and return the
    ScenarioResult (exit code, captured stdout, captured stderr).
    """
    console = TestConsole(piped_input)
    previous, runner.console = runner.console, console
    try:
        exit_code = runner.run(list(args))
    finally:
        runner.console = previous
    return ScenarioResult(exit_code, console.out_text, console.err_text)


__all__ = (
    "TestConsole",
    "ScenarioResult",
    "run_scenario",
)
