"""
Help rendering and the help middleware.

HelpTextProvider.render(command, ...) returns a rich Group with, in order:
- the command description,
- usage: program name, command path, then [command] / [arguments] / [options]
  placeholders and the argument separator form when it is enabled,
- arguments: operands (template, type, default, description, choices),
- options: every visible option except the help option,
- commands: the subcommands plus a hint on reaching their own help,
- the extended help text.

Sections without content are skipped. Every method is overridable.

Styling
- Palette keys: description, section-label, program-name, template, type-name,
  default, argument-description, choice, command-name, hint, extended.
- Host overrides are read from __main__.__styles__.
"""
from collections import defaultdict

from rich.console import Group
from rich.text import Text

from .faults import ExitCode
from .utils import *


class HelpTextProvider:
    """
    Parameters
    - colorful: bool
      When False, styles are dropped (plain text output).
    """

    def __init__(self, *, colorful=True):
        self.colorful = bool(colorful)

    def styles(self):
        return defaultdict(str, {
            "description": "italic #A3A3A3",
            "section-label": "bold #FFFFFF",
            "program-name": "bold #FF4D94",
            "template": "bold #00E6FF",
            "type-name": "bold #FFD600",
            "default": "#737373",
            "argument-description": "#9CA3AF",
            "choice": "bold #FF4D94",
            "command-name": "bold #36C5F0",
            "hint": "#22C55E",
            "extended": "#737373",
        } | getattr(__import__("__main__"), "__styles__", {}))

    def text(self, fragment, style=""):
        if isinstance(fragment, Text):
            return fragment if self.colorful else Text(fragment.plain)
        return Text(str(fragment), self.styles()[style] if self.colorful else "")

    def name(self, command, /, prog=None):
        """Program name followed by the command path (root excluded)."""
        return " ".join((prog or command.root.name, *(step.name for step in command.path[1:])))

    def usage(self, command, /, *, prog=None, argument_separator=True):
        usage = Text.assemble(self.text(self.name(command, prog), "program-name"))
        if command.children:
            usage.append(" [command]")
        if any(not operand.hidden for operand in command.operands):
            usage.append(" [arguments]")
        if any(not option.hidden for option in self._options(command)):
            usage.append(" [options]")
        if argument_separator:
            usage.append(" [[--] <arg>...]")
        return usage

    def _options(self, command, /):
        return [option for option in command.options if option is not command.help_option]

    def _rows(self, arguments, /):
        arguments = [argument for argument in arguments if not argument.hidden]
        if not arguments:
            return None

        width = max(len(argument.template) for argument in arguments)
        rows = Text()
        for index, argument in enumerate(arguments):
            if index:
                rows.append("\n")
            row = Text.assemble("  ", self.text(argument.template.ljust(width), "template"))
            if not argument.flag:
                row.append("  ").append(self.text(getattr(argument.type, "__name__", "value"), "type-name"))
            if argument.default is not Unset:
                row.append("  ").append(self.text("[%s]" % (argument.default,), "default"))
            rows.append(row)
            if argument.descr:
                rows.append("\n    ").append(self.text(argument.descr, "argument-description"))
            if argument.choices:
                rows.append("\n    ").append("allowed values: ").append(
                    Text(", ").join(self.text(choice, "choice") for choice in argument.choices)
                )
        return rows

    def operands_section(self, command, /):
        return self._rows(command.operands)

    def options_section(self, command, /):
        return self._rows(self._options(command))

    def commands_section(self, command, /, *, prog=None):
        children = command.children
        if not children:
            return None

        width = max(map(len, children))
        rows = Text()
        for name, child in sorted(children.items()):
            rows.append("  ").append(self.text(name.ljust(width), "command-name"))
            if child.descr:
                rows.append("  ").append(self.text(child.descr, "argument-description"))
            rows.append("\n")
        rows.append("\n").append(self.hint(command, prog=prog))
        return rows

    def hint(self, command, /, *, prog=None):
        return self.text(
            'Use "%s [command] --help" for more information about a command.' % self.name(command, prog),
            "hint",
        )

    def render(self, command, /, *, prog=None, argument_separator=True):
        """
        Return the help of `command` as a rich renderable.
        """
        sections = [
            (None, command.descr and self.text(command.descr, "description")),
            ("Usage", self.usage(command, prog=prog, argument_separator=argument_separator)),
            ("Arguments", self.operands_section(command)),
            ("Options", self.options_section(command)),
            ("Commands", self.commands_section(command, prog=prog)),
            (None, command.extended and self.text(command.extended, "extended")),
        ]

        renders = []
        for label, body in sections:
            if not body:
                continue
            if renders:
                renders.append(Text(""))
            if label is None:
                renders.append(body)
            elif label == "Usage":
                renders.append(Text.assemble(self.text(label, "section-label"), ": ", body))
            else:
                renders.append(Text.assemble(self.text(label, "section-label"), ":"))
                renders.append(body)
        return Group(*renders)


def show_help(context, next):
    """
    PARSE_INPUT middleware (after parsing): when a help option was given, render
    the target's help to standard output and end the execution with exit code 0.
    Help wins over parse faults.
    """
    if context.parse_result is None or not context.parse_result.help:
        return next(context)

    context.console.write_out(context.app.help.render(
        context.parse_result.target,
        prog=context.settings.name,
        argument_separator=context.settings.argument_separator,
    ))
    return ExitCode.OK


__all__ = (
    "HelpTextProvider",
    "show_help",
)
