"""
Console collaborator: standard output, standard error and redirected input.

Output goes through rich consoles, so strings and rich renderables (faults,
help, tables) are both accepted. Markup and highlighting are off unless asked
for, so user text containing brackets prints verbatim.
"""
import sys

from rich.console import Console as RichConsole

from .utils import *


class Console:
    """
    Output/input endpoints of one runner.

    Parameters
    - out: rich.console.Console        standard output (default: sys.stdout).
    - err: rich.console.Console        standard error (default: sys.stderr).
    - stdin: TextIO | None             redirected input source (default: sys.stdin).
    """

    def __init__(self, *, out=Unset, err=Unset, stdin=Unset):
        self.out = coalesce(out, RichConsole(highlight=False))
        self.err = coalesce(err, RichConsole(stderr=True, highlight=False))
        self._stdin = coalesce(stdin, sys.stdin)

    @property
    def is_input_redirected(self):
        """True when stdin is a pipe or a file rather than a terminal."""
        try:
            return self._stdin is not None and not self._stdin.isatty()
        except ValueError:
            # closed stream
            return False

    def read_redirected_input(self):
        """
        Return the whole redirected input, or "" when input is a terminal.
        """
        if not self.is_input_redirected:
            return ""
        return self._stdin.read()

    def write_out(self, *renderables, **options):
        self.out.print(*renderables, **{"markup": False, "highlight": False} | options)

    def write_err(self, *renderables, **options):
        self.err.print(*renderables, **{"markup": False, "highlight": False} | options)


__all__ = (
    "Console",
)
