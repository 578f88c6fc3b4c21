"""
Value coercion for options and arguments.

A declared type is resolved once, when the option is declared, into one of a
closed set of variants:

    Boolean()             bool, or a bool sample such as True
    Number(target)        int / float, or a numeric sample such as 0
    String()              str, or a string sample such as ""
    Choice(values)        list / tuple / set / frozenset of permitted literals
    Factory(cls)          class exposing a callable from_value(value)
    StringFactory(cls)    class exposing a callable from_string(text)
    Constructible(cls)    any other class, instantiated with the value
    Plain(function)       any other callable, invoked with the value

convert_value() then dispatches on the variant with a match statement; it
never probes the declared object for hooks at parse time.
"""
import inspect
import math
from collections.abc import Set

from .faults import InvalidNumberError, InvalidEnumValueError, TypeConversionError
from .utils import Introspectable


class ValueType(metaclass=Introspectable):
    """Base of the coercion variants; instances are immutable and hashable."""
    __slots__ = ()

    def _key(self):
        return tuple(getattr(self, field) for field in type(self).__introspectable__)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash((type(self), self._key()))


class Boolean(ValueType):
    __slots__ = ()
    __introspectable__ = ()


class Number(ValueType):
    __slots__ = ("_target",)
    __introspectable__ = ("target",)
    __match_args__ = ("target",)

    def __init__(self, target=float, /):
        if target not in (int, float):
            raise TypeError(f"{type(self).__typename__} 'target' must be int or float")
        self._target = target


class String(ValueType):
    __slots__ = ()
    __introspectable__ = ()


class Choice(ValueType):
    __slots__ = ("_values",)
    __introspectable__ = ("values",)
    __match_args__ = ("values",)

    def __init__(self, values, /):
        if isinstance(values, Set):
            values = sorted(values, key=str)
        sanitized = []
        for value in values:
            if value in sanitized:
                raise ValueError(f"{type(self).__typename__} 'values' cannot contain duplicates")
            sanitized.append(value)
        if not sanitized:
            raise ValueError(f"{type(self).__typename__} 'values' cannot be empty")
        self._values = tuple(sanitized)

    # tuple view, mirror() would hand out a list
    values = property(lambda self: self._values)


class _Hooked(ValueType):
    __slots__ = ("_target",)
    __introspectable__ = ("target",)
    __match_args__ = ("target",)

    def __init__(self, target, /):
        if not callable(target):
            raise TypeError(f"{type(self).__typename__} 'target' must be callable")
        self._target = target


class Factory(_Hooked):
    __slots__ = ()


class StringFactory(_Hooked):
    __slots__ = ()


class Constructible(_Hooked):
    __slots__ = ()


class Plain(_Hooked):
    __slots__ = ()


def resolve_type(type, /):
    """
    Pick the coercion variant for a declared type.

    Raises
    - TypeError when the declaration is neither a variant, a sample literal, a
      literal collection nor a callable.
    """
    if isinstance(type, ValueType):
        return type
    if type is bool:
        return Boolean()
    if type is int or type is float:
        return Number(type)
    if type is str:
        return String()
    match type:
        # samples: True, 0, 0.0, ""
        case bool():
            return Boolean()
        case int():
            return Number(int)
        case float():
            return Number(float)
        case str():
            return String()
        case list() | tuple() | set() | frozenset():
            return Choice(type)
    if inspect.isclass(type):
        if callable(getattr(type, "from_value", None)):
            return Factory(type)
        if callable(getattr(type, "from_string", None)):
            return StringFactory(type)
        return Constructible(type)
    if callable(type):
        return Plain(type)
    raise TypeError("type must be a class, a callable, a literal sample or a collection of literals, not %r" % (type,))


def label(kind, /):
    """
    Human-readable label of a variant: choices joined by '|', else the type name.
    """
    match kind:
        case Boolean():
            return "bool"
        case Number(target):
            return target.__name__
        case String():
            return "str"
        case Choice(values):
            return "|".join(map(str, values))
        case Factory(target) | StringFactory(target) | Constructible(target) | Plain(target):
            return getattr(target, "__name__", type(target).__name__)
    raise TypeError("label() argument must be a value type")


def _hook(kind, value, name, call):
    try:
        return call(value)
    except Exception as exception:
        raise TypeConversionError(
            f"Failed to parse {name}: {exception}",
            {"value": value, "type": label(kind), "error": str(exception)},
            hint="check the expected format of %s" % name,
        ) from exception


def convert_value(value, kind, name, /):
    """
    Coerce a raw value to the given variant.

    Lists (repeated options) are coerced element-wise, except for Boolean
    which collapses them into a single flag.

    Raises
    - InvalidNumberError, InvalidEnumValueError, TypeConversionError.
    """
    if isinstance(value, list) and not isinstance(kind, Boolean):
        return [convert_value(item, kind, name) for item in value]

    match kind:
        case Boolean():
            if isinstance(value, list):
                return all(convert_value(item, kind, name) for item in value)
            return value != "false" and value is not False
        case Number(target):
            try:
                number = target(value)
            except (TypeError, ValueError):
                number = math.nan
            if isinstance(number, float) and math.isnan(number):
                raise InvalidNumberError(
                    f"Invalid number for {name}: {value}",
                    {"provided_value": value},
                    hint="pass a numeric value to %s" % name,
                )
            return number
        case String():
            return str(value)
        case Choice(values):
            for candidate in values:
                if candidate == value or str(candidate) == value:
                    return candidate
            raise InvalidEnumValueError(
                f"Invalid value for {name}: {value}\nValid values: {", ".join(map(str, values))}",
                {"valid_values": list(values), "provided_value": value},
                hint="pick one of: %s" % ", ".join(map(str, values)),
            )
        case Factory(target):
            return _hook(kind, value, name, target.from_value)
        case StringFactory(target):
            return _hook(kind, value, name, target.from_string)
        case Constructible(target) | Plain(target):
            return _hook(kind, value, name, target)
    raise TypeError("convert_value() second argument must be a value type")


__all__ = (
    "ValueType",
    "Boolean",
    "Number",
    "String",
    "Choice",
    "Factory",
    "StringFactory",
    "Constructible",
    "Plain",
    "resolve_type",
    "label",
    "convert_value",
)
