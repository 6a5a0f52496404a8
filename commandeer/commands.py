"""
Commandeer command layer: build the command tree the pipeline runs against.

What this module provides
- Command: one node of the command tree with
  • ordered children (subcommands), operands and options,
  • an optional target handler and an optional interceptor,
  • a non-owning parent reference (root/path traversal),
  • an implicit help option (-h/--help) unless one is declared.
- command(...): create a Command directly or as a decorator around a handler.

Building a tree
    from commandeer import command

    @command(descr="file tools")
    def app():
        ...

    @app.command(descr="concatenate text")
    def cat(text, *, upper):
        print(" ".join(text).upper() if upper else " ".join(text))

    cat.operand("text", nargs="*")
    cat.option("-u", "--upper", type=bool)

    @app.interceptor
    async def around(context, next):
        return await next(context)

Lifecycle
- Built once, then frozen (explicitly through freeze() or by the first execution).
  freeze() validates the whole tree; afterwards every mutation raises TypeError and
  the tree is safe to share between executions.

Invariants (checked when adding, or when freezing)
- Command names are unique among siblings.
- At most one operand of a command is unbounded, and it is the last operand.
- Option names are unique within a command; dests are unique within a command.
- Leaf commands declare a handler; handlers and interceptors accept every dest.
"""
import functools
import inspect
import operator
import re

from rich.text import Text

from .arguments import Operand, Option
from .invocation import Invocation
from .utils import *


class CommandType(type):
    """
    Metaclass that turns Command into an introspectable class.

    - Provide stable, readable __repr__/__rich_repr__ for diagnostics.
    - Expose every name listed in __introspectable__ as a read-only property (mirror()).
    - __typename__ is derived from the class name for messages.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='build', descr=None, ...)
            """
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return f"{type(self).__typename__}({fields})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                value = getattr(self, name)
                # parent/children are shown by name to keep reprs finite
                if name == "parent":
                    value = getattr(value, "name", None)
                elif name == "children":
                    value = tuple(value)
                yield name, value
        self.__rich_repr__ = __rich_repr__

        return self


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing unique names.
    """
    if parent is None:
        return
    if parent._children.setdefault(self.name, self) is self:
        return
    typeof = "subcommand" if parent.parent else "command"
    raise ValueError(f"{type(self).__typename__} {typeof} name {self.name!r} is already in use")


class Command(metaclass=CommandType):
    """
    One node of the command tree.

    Responsibilities
    - Introspection: name, descr, extended, parent, children, operands, options,
      invocation (handler descriptor), interception (interceptor descriptor),
      frozen (read-only properties).
    - Composition: command() adds children; operand()/option() add arguments;
      handler()/interceptor() attach invocations.
    - Validation: freeze() checks the tree invariants once and seals it.

    Notes
    - children is exposed as a name → Command mapping (declaration order).
    - The implicit help option is `help_option`; it is not passed to handlers.
    """

    __introspectable__ = (
        "name",
        "descr",
        "extended",
        "parent",
        "children",
        "operands",
        "options",
        "invocation",
        "interception",
        "frozen",
    )

    __displayable__ = (
        "name",
        "descr",
        "parent",
        "children",
        "operands",
        "options",
    )

    def __init__(self, name, /, parent=None, descr=Unset, extended=Unset):
        """
        Construct a command and attach it to `parent` (when given).

        Parameters
        - name: str
          Command name as typed on the command line (no whitespace, no leading '-').
        - parent: Command | None
          Parent command. None makes this command a tree root.
        - descr: Unset | str | Text
          Short description for help.
        - extended: Unset | str | Text
          Extended help text shown after the help sections.

        Raises
        - TypeError/ValueError on invalid metadata, a frozen parent, or a sibling
          with the same name.
        """
        if not isinstance(parent, Command | None):
            raise TypeError(f"{type(self).__typename__} 'parent' must be a command")
        if parent is not None and parent.frozen:
            raise TypeError(f"{type(self).__typename__} 'parent' is frozen")

        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        if not (name := name.strip()) or re.search(r"\s", name) or name.startswith(("-", "[", "@")):
            raise ValueError(f"{type(self).__typename__} 'name' must be a non-empty word not starting with '-', '[' or '@'")

        for field, object in (("descr", descr), ("extended", extended)):
            if not isinstance(object, str | Text | Unset):
                raise TypeError(f"{type(self).__typename__} {field!r} must be a string")
            elif isinstance(object, str) and not object.strip():
                raise ValueError(f"{type(self).__typename__} {field!r} cannot be empty")

        self._name = name
        self._descr = coalesce(descr.strip() if isinstance(descr, str) else descr)
        self._extended = coalesce(extended.strip() if isinstance(extended, str) else extended)
        self._parent = parent
        self._children = {}
        self._operands = []
        self._options = []
        self._switches = {}
        self._invocation = None
        self._interception = None
        self._frozen = False

        _attach_to_parent(self, parent)

        self._help = Option("-h", "--help", type=bool, descr="show help information and exit")
        self._add_option(self._help)

    @property
    def root(self):
        """
        Return the topmost command of the tree.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from root to this command as a tuple (root first).
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def switches(self):
        """
        Option lookup by name: every alias maps to its Option.
        """
        return dict(self._switches)

    @property
    def help_option(self):
        return self._help

    @property
    def arguments(self):
        """
        Operands then options, the help option excluded.
        """
        return (*self._operands, *(option for option in self._options if option is not self._help))

    @property
    def unbounded(self):
        """
        The unbounded operand, or None.
        """
        for operand in self._operands:
            if operand.arity.unbounded:
                return operand
        return None

    def __bool__(self):
        return True

    def _mutable(self):
        if self._frozen:
            raise TypeError(f"{type(self).__typename__} {self.name!r} is frozen")

    def _check_dest(self, argument):
        for other in self.arguments:
            if other.dest == argument.dest:
                raise ValueError(f"{type(self).__typename__} dest {argument.dest!r} is already in use")

    def _add_option(self, option):
        for name in option.names:
            if name in self._switches:
                raise ValueError(f"{type(self).__typename__} option name {name!r} is already in use")
        self._switches.update(dict.fromkeys(option.names, option))
        self._options.append(option)

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a subcommand of this command.

        Same modes as the module-level command(...):
        - self.command("name", ...) -> Command
        - self.command(handler, ...) -> Command named after the handler
        - @self.command(...) decorator
        """
        return command(source, *args, parent=self, **kwargs)

    def operand(self, name, /, *args, **kwargs):
        """
        Declare an operand (positional argument) and return it.

        Accepts either an Operand instance or the Operand(...) constructor arguments.

        Raises
        - ValueError: an operand is added after an unbounded one, or its dest clashes.
        """
        self._mutable()
        operand = name if isinstance(name, Operand) else Operand(name, *args, **kwargs)
        if (unbounded := self.unbounded) is not None:
            raise ValueError(
                f"{type(self).__typename__} operand {operand.name!r} cannot follow the unbounded operand {unbounded.name!r}"
            )
        self._check_dest(operand)
        self._operands.append(operand)
        return operand

    def option(self, *names, **kwargs):
        """
        Declare an option and return it.

        Accepts either an Option instance or the Option(...) constructor arguments.
        Declaring -h or --help replaces the implicit help option.
        """
        self._mutable()
        option = names[0] if len(names) == 1 and isinstance(names[0], Option) else Option(*names, **kwargs)
        if self._help is not None and option.names & self._help.names:
            self._options.remove(self._help)
            for name in self._help.names:
                del self._switches[name]
            self._help = None
        self._check_dest(option)
        self._add_option(option)
        return option

    def handler(self, callback=Unset, /, *, instance=Unset):
        """
        Attach the target handler (direct call or decorator). Returns the callback.

        - instance: a type resolved per execution and passed as first argument.
        """
        def wrapper(callback, /):
            self._mutable()
            if self._invocation is not None:
                raise TypeError(f"{type(self).__typename__} handler cannot be overridden")
            self._invocation = Invocation(callback, instance=instance)
            return callback

        return wrapper(callback) if callback is not Unset else rename(wrapper, "handler")

    def interceptor(self, callback=Unset, /, *, instance=Unset):
        """
        Attach the interceptor wrapping every descendant's invocation (direct call
        or decorator). Returns the callback.

        The interceptor is called as interceptor(context, next, **option values).
        """
        def wrapper(callback, /):
            self._mutable()
            if self._interception is not None:
                raise TypeError(f"{type(self).__typename__} interceptor cannot be overridden")
            self._interception = Invocation(callback, instance=instance, interceptor=True)
            return callback

        return wrapper(callback) if callback is not Unset else rename(wrapper, "interceptor")

    def freeze(self):
        """
        Validate the whole tree (from the root) and seal it. Idempotent.

        Raises
        - TypeError: a leaf without handler, or a handler/interceptor that does not
          accept some argument dest.
        """
        root = self.root
        if not root._frozen:
            stack = [root]
            while stack:
                command = stack.pop()
                command._validate()
                stack.extend(command._children.values())
            stack = [root]
            while stack:
                command = stack.pop()
                command._frozen = True
                stack.extend(command._children.values())
        return self

    def _validate(self):
        route = " ".join(step.name for step in self.path)
        if self._invocation is None and not self._children:
            raise TypeError(f"{type(self).__typename__} {route!r} has no handler and no subcommands")
        if self._invocation is not None:
            for argument in self.arguments:
                if not self._invocation.accepts(argument.dest):
                    raise TypeError(f"{type(self).__typename__} {route!r} handler does not accept {argument.dest!r}")
        if self._interception is not None:
            for option in self.arguments:
                if isinstance(option, Option) and not self._interception.accepts(option.dest):
                    raise TypeError(f"{type(self).__typename__} {route!r} interceptor does not accept {option.dest!r}")


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator that builds one around a handler.

    Invocation modes
    - By name:           command("tool", descr=...) -> Command
    - Around a handler:  command(func, ...) -> Command named after func
      (underscores become dashes; descr defaults to the docstring)
    - Decorator:         @command(...) / @command

    Parameters
    - source: Unset | str | Callable
    - *args, **kwargs: forwarded to Command(...) (parent, descr, extended) plus
      'name' and 'instance' in handler mode.
    """
    @rename("command")
    def wrapper(source, /):
        if isinstance(source, str):
            return Command(source, *args, **kwargs)
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        options = dict(kwargs)
        name = options.pop("name", Unset)
        instance = options.pop("instance", Unset)
        options.setdefault("descr", inspect.getdoc(source) or Unset)
        self = Command(coalesce(name, source.__name__.strip("_").replace("_", "-")), *args, **options)
        self.handler(source, instance=instance)
        return self

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "Command",
    "command",
)

# Not part of the public API.
del CommandType
