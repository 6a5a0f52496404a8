"""
Small helpers shared by the command tree, the parser, the binder and the pipeline.

- Unset: "no value given" marker for parameters where None is a real value.
  Materialize it with coalesce(value, default).
- rename: give generated callables (decorator wrappers, continuations) a
  readable __name__/__qualname__ for tracebacks and debug logs.
- mirror: read-only property over a "_name" field; containers come back as
  copies so public getters never leak internal state.
- ordinal: position labels for fault messages ("first", ..., "tenth", "11th").

    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> ordinal(2), ordinal(12), ordinal(22)
    ('second', '12th', '22nd')
"""
import builtins
import functools
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset singleton: falsy, printable, sealed.

    `str | Unset` (either side) builds a union usable with isinstance().
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    `object`, or `default` when `object` is Unset. Falsy values are kept.
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    rename(callable, name) -> callable, renamed in place.
    rename(name) -> decorator doing the same.
    """
    if len(parameters) == 1:
        name, = parameters
        if not isinstance(name, str):
            raise TypeError("@rename() argument must be a string")
        return rename(functools.partial(_rename, name=name), "rename")
    if len(parameters) == 2:
        callable, name = parameters
        if not isinstance(name, str):
            raise TypeError("rename() second argument must be a string")
        return _rename(callable, name=name)
    raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _rename(callable, /, *, name):
    if not builtins.callable(callable):
        raise TypeError("rename() target must be callable")
    try:
        callable.__name__ = callable.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError("rename() target does not allow renaming") from None
    return callable


def _copy(object):
    # immutable containers are shared, mutable ones copied all the way down
    match object:
        case str() | bytes() | tuple() | frozenset():
            return object
        case Mapping():
            return {key: _copy(value) for key, value in object.items()}
        case Sequence():
            return [_copy(value) for value in object]
        case Set():
            return {_copy(value) for value in object}
    return object


def mirror(name, /):
    """
    Read-only property returning (a copy of) `self._<name>`.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    field = "_" + name

    def getter(self):
        return _copy(getattr(self, field))

    return property(rename(getter, name))


_ORDINALS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")


def ordinal(number, /):
    """
    Label of a 1-based position.
    """
    if 1 <= number <= len(_ORDINALS):
        return _ORDINALS[number - 1]
    if number % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return "%d%s" % (number, suffix)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
)
