r"""
Commandeer argument specifications.

Overview
- Arity(min, max): how many raw values an argument accepts. max=None means unbounded.
- Operand: positional, value-bearing argument matched by position.
- Option: named argument with one or more names (e.g., -o/--output). Options with
  arity (0, 0) are flags: presence-only, bound to a bool.

Both share the Argument capability: name, arity, type, default, choices, descr and
dest (the python identifier under which the bound value reaches the handler).

Arity vocabulary ('nargs')
- Unset: the kind's default (operand: exactly one, or optional when a default is
  given; option: optional single value; bool option: flag).
- "?": zero or one. "*": zero or more. "+": one or more.
- int n: exactly n (0 makes an option a flag).
- Ellipsis: zero or more (alias of "*", reads as "the rest").
- (min, max) / Arity: explicit bounds.

Introspection & representation
- ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the fields
  listed in __introspectable__ as read-only properties.

Validation highlights
- Names must match r"--?[^\W\d_](-?[^\W_]+)*" and be unique within a command.
- Operand names must be non-empty identifiers-ish strings (letters, digits, '-' and '_').
- Collections (choices) reject duplicates unless provided as a Set.
- descr strings are trimmed; empty strings are rejected.

Quick example:
    >>> from commandeer.arguments import Operand, Option
    >>> files = Operand("files", nargs="*")
    >>> verbose = Option("-v", "--verbose", type=bool)
    >>> verbose.flag
    True
"""
import collections
import functools
import operator
import re
from collections.abc import Iterable, Set
from types import EllipsisType

from rich.text import Text

from .utils import *


class Arity(collections.namedtuple("Arity", ("min", "max"))):
    """
    Minimum/maximum number of raw values an argument accepts.

    max is None for unbounded ("zero or more" / "one or more").
    """
    __slots__ = ()

    @property
    def unbounded(self):
        return self.max is None

    @property
    def many(self):
        """True when more than one value may be bound (values bind to a list)."""
        return self.max is None or self.max > 1

    @property
    def required(self):
        return self.min > 0

    def full(self, count, /):
        """True when `count` values already reach the maximum."""
        return self.max is not None and count >= self.max

    @classmethod
    def parse(cls, nargs, /):
        """
        Translate the 'nargs' vocabulary into an Arity.

        Raises
        - TypeError: unsupported kind of value.
        - ValueError: negative bounds, min > max, or an unknown string.
        """
        match nargs:
            case Arity():
                arity = nargs
            case "?":
                arity = cls(0, 1)
            case "*" | EllipsisType():
                arity = cls(0, None)
            case "+":
                arity = cls(1, None)
            case str():
                raise ValueError("'nargs' must be one of '?', '+', '*', or '...'")
            case bool():
                raise TypeError("'nargs' must be a string, an integer, or a pair of bounds")
            case int():
                arity = cls(nargs, nargs)
            case (int() as minimum, int() | None as maximum):
                arity = cls(minimum, maximum)
            case _:
                raise TypeError("'nargs' must be a string, an integer, or a pair of bounds")

        if arity.min < 0 or (arity.max is not None and arity.max < 0):
            raise ValueError("'nargs' bounds cannot be negative")
        if arity.max is not None and arity.min > arity.max:
            raise ValueError("'nargs' minimum cannot exceed its maximum")
        return arity

    def __str__(self):
        return "%d..%s" % (self.min, "*" if self.max is None else self.max)


class ArgumentType(type):
    """
    Metaclass that turns argument specs into introspectable, read-only descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics and help output.
    - Expose the names listed in __introspectable__ as read-only properties using mirror().

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__.
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
            - option(names=frozenset({'-v', '--verbose'}), arity=Arity(min=0, max=0), ...)
            """
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return f"{type(self).__typename__}({fields})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate metadata shared by every argument.

    - type: must be callable (converter key); the binder looks it up in the registry.
    - descr: optional short description; if omitted (Unset) it becomes None.
    - choices: must be iterable. If not a Set, duplicates are rejected and the
      collection is normalized to a tuple.
    - dest: optional python identifier; derived by the caller when Unset.

    Mutates the metadata dict in place.
    """
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
    if not isinstance(choices, Set):
        sanitized = []
        for choice in choices:
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        choices = tuple(sanitized)
    metadata["choices"] = choices

    if not isinstance(dest := metadata["dest"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'dest' must be a string")
    elif isinstance(dest, str) and not dest.isidentifier():
        raise ValueError(f"{cls.__typename__} 'dest' must be a valid python identifier")


def _sanitize_names(cls, metadata, /):
    r"""
    Internal: validate the names of an option.

    Accepted forms: "-x", "-long-name", "--long", "--long-name". Unicode letters are
    allowed; underscores and leading digits are not. Duplicates are rejected. The
    names are normalized into a frozenset (order is not significant).
    """
    names = set()
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (unicodes are allowed)")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.add(name)

    metadata["names"] = frozenset(names)


class Argument(metaclass=ArgumentType):
    """
    Capability shared by Operand and Option.

    Every argument has a name, an arity, a converter key ('type'), an optional
    default, optional allowed values ('choices'), an optional description and a
    'dest' identifier. Instances are immutable after construction and compare by
    identity, which makes them usable as mapping keys in parse results.
    """

    @property
    def required(self):
        """True when no value means a missing-argument fault."""
        return self.arity.required and self.default is Unset

    @property
    def flag(self):
        return False

    def empty(self):
        """
        Return the value bound when no raw value was given and there is no default.
        """
        return [] if self.arity.many else None


class Operand(Argument):
    """
    Positional, value-bearing argument specification.

    Highlights
    - Arity: exactly one by default; "?" / "*" / "+" / int / Ellipsis / (min, max).
      A default makes a single operand optional.
    - At most one operand of a command may be unbounded and it must be the last
      one (enforced by the command tree).
    """

    __introspectable__ = (
        "name",
        "arity",
        "type",
        "default",
        "choices",
        "descr",
        "dest",
        "hidden",
    )

    __displayable__ = (
        "name",
        "arity",
        "type",
        "default",
        "choices",
    )

    def __init__(
            self,
            name,
            /,
            type=str,
            nargs=Unset,
            default=Unset,
            choices=(),
            descr=Unset,
            *,
            dest=Unset,
            hidden=False
    ):
        """
        Construct an Operand.

        Parameters
        - name: str
          Display name (usage shows it as <name>). Letters, digits, '-' and '_'.
        - type: Callable
          Converter key; values are converted through the ConverterRegistry.
        - nargs: see the module docstring.
        - default: Any
          Bound when no value was given. Unset means "no default".
        - choices: Iterable
          Allowed values (compared after conversion).
        - descr: Unset | str
          Short description for help. If Unset, becomes None.
        - dest: Unset | str
          Handler keyword; defaults to the name with '-' replaced by '_'.
        - hidden: bool
          Suppress from help output.
        """
        if not isinstance(name, str):
            raise TypeError(f"{Operand.__typename__} 'name' must be a string")
        if not re.fullmatch(r"[^\W\d](-?[\w]+)*", name := name.strip()):
            raise ValueError(f"{Operand.__typename__} 'name' must be a word (letters, digits, '-' and '_')")

        metadata = {
            "name": name,
            "type": type,
            "default": default,
            "choices": choices,
            "descr": descr,
            "dest": dest,
            "hidden": bool(hidden),
        }
        _sanitize_metadata(Operand, metadata)

        if nargs is Unset:
            arity = Arity(0 if default is not Unset else 1, 1)
        else:
            arity = Arity.parse(nargs)
        if arity.max == 0:
            raise ValueError(f"{Operand.__typename__} must accept at least one value")
        metadata["arity"] = arity
        metadata["dest"] = coalesce(metadata["dest"], name.replace("-", "_"))

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def template(self):
        return "<%s>%s" % (self.name, "..." if self.arity.many else "")


class Option(Argument):
    """
    Named argument specification with one or more aliases.

    Highlights
    - Supports aliases via 'names' (e.g., "-o", "--output").
    - Arity: optional single value by default; bool options default to flags
      (arity (0, 0)). Repeating a multi-valued option accumulates values.
    - Flags bind True when present, otherwise their default (False when Unset).
    """

    __introspectable__ = (
        "names",
        "arity",
        "type",
        "default",
        "choices",
        "descr",
        "dest",
        "hidden",
    )

    __displayable__ = (
        "names",
        "arity",
        "type",
        "default",
    )

    def __init__(
            self,
            *names,
            type=str,
            nargs=Unset,
            default=Unset,
            choices=(),
            descr=Unset,
            dest=Unset,
            hidden=False
    ):
        """
        Construct an Option.

        Parameters
        - names: str
          One or more shell-style names ("-v", "--verbose").
        - type: Callable
          Converter key. bool with Unset nargs makes a flag.
        - nargs: see the module docstring. 0 makes a flag.
        - default, choices, descr, hidden: as for Operand.
        - dest: Unset | str
          Handler keyword; defaults to the longest name without dashes, '-' → '_'.
        """
        metadata = {
            "names": names,
            "type": type,
            "default": default,
            "choices": choices,
            "descr": descr,
            "dest": dest,
            "hidden": bool(hidden),
        }
        _sanitize_names(Option, metadata)
        _sanitize_metadata(Option, metadata)

        if nargs is Unset:
            arity = Arity(0, 0) if type is bool else Arity(0, 1)
        else:
            arity = Arity.parse(nargs)
        metadata["arity"] = arity

        if arity.max == 0 and metadata["choices"]:
            raise TypeError(f"{Option.__typename__} flags cannot have 'choices'")

        longest = max(sorted(metadata["names"]), key=len)
        metadata["dest"] = coalesce(metadata["dest"], longest.lstrip("-").replace("-", "_"))

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def flag(self):
        return self.arity.max == 0

    @property
    def template(self):
        """
        Display form, short names first (e.g., "-v | --verbose").
        """
        shorts = sorted((name for name in self.names if not name.startswith("--")), key=len)
        longs = sorted((name for name in self.names if name.startswith("--")), key=len)
        return " | ".join(shorts + longs)

    def empty(self):
        if self.flag:
            return False
        return super().empty()


__all__ = (
    "Arity",
    "Argument",
    "Operand",
    "Option",
)

# Not part of the public API.
del ArgumentType
