r"""
Option and argument specifications.

Overview
- CommandOption: normalized declaration shared by named options (--name, -a) and
  positional arguments. One class serves both roles; the owning Command
  decides which table it lives in.

Declaration shapes (CommandOption.from_value)
- "name"                                   str option, default ""
- ["name", type, default, help, alias, required]   trailing items optional
- {"name": ..., "type": ..., "default": ..., "help": ..., "alias": ..., "required": ...}
- an existing CommandOption                returned unchanged

Metadata (sanitized on construction)
- name: non-empty str; "*" is reserved for the variadic argument.
- type: resolved once into a coercion variant (see cotree.coercion).
- default: any value, returned verbatim by get_default().
- help: str, may be empty.
- alias: "" or a single character other than "-".
- required: bool.
"""
from collections.abc import Mapping, Sequence

from .coercion import Boolean, label, resolve_type
from .utils import Introspectable

WILDCARD = "*"


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize option metadata in place.

    Raises
    - TypeError: when a field has the wrong type (or type cannot be resolved).
    - ValueError: when name is empty or alias is not a single usable character.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    metadata["type"] = resolve_type(metadata["type"])

    if not isinstance(metadata["help"], str):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")

    if not isinstance(alias := metadata["alias"], str):
        raise TypeError(f"{cls.__typename__} 'alias' must be a string")
    elif len(alias) > 1 or alias == "-" or alias.isspace():
        raise ValueError(f"{cls.__typename__} 'alias' must be a single character")

    if not isinstance(metadata["required"], bool):
        raise TypeError(f"{cls.__typename__} 'required' must be a boolean")


def _display(value, /):
    # CLI spelling of a default: booleans as the literals the parser understands
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list | tuple):
        return ", ".join(map(_display, value))
    return str(value)


class CommandOption(metaclass=Introspectable):
    """
    Normalized declaration of one option or positional argument.

    Instances are immutable once built: every field is exposed through a
    read-only property (see Introspectable) and the declared type is already
    resolved into its coercion variant.
    """

    __introspectable__ = (
        "name",
        "type",
        "default",
        "help",
        "alias",
        "required",
    )

    def __init__(self, name, /, type=str, default=None, help="", alias="", required=False):
        metadata = {
            "name": name,
            "type": type,
            "default": default,
            "help": help,
            "alias": alias,
            "required": required,
        }
        # 'type' is shadowed by the parameter
        _sanitize_metadata(self.__class__, metadata)
        for field, object in metadata.items():
            setattr(self, "_" + field, object)

    @property
    def is_flag(self):
        """True when the option is boolean-typed (usable in -abc clusters)."""
        return isinstance(self._type, Boolean)

    @property
    def is_wildcard(self):
        return self._name == WILDCARD

    def get_default(self):
        """Return the configured default verbatim."""
        return self._default

    def is_optional(self):
        """
        True unless the option is required and has no usable default.
        """
        return not self._required or self._default is not None

    def to_object(self):
        """
        Display record used by help tables and JSON error data.
        """
        return {
            "name": self._name,
            "type": label(self._type),
            "default": self._default,
            "default_text": "" if self._default is None else " (default: %s)" % _display(self._default),
            "help": self._help,
            "alias": self._alias,
            "required": self._required,
        }

    @classmethod
    def from_value(cls, input, /):
        """
        Build an option from any supported declaration shape.

        Raises
        - TypeError when the shape is not supported (or fields are invalid).
        """
        if isinstance(input, cls):
            return input
        if isinstance(input, str):
            return cls(input, str, "")
        if isinstance(input, Mapping):
            fields = dict(input)
            try:
                name = fields.pop("name")
            except KeyError:
                raise TypeError(f"{cls.__typename__} declaration must have a 'name'") from None
            return cls(name, **fields)
        if isinstance(input, Sequence):
            if not input:
                raise TypeError(f"{cls.__typename__} declaration cannot be empty")
            name, *fields = input
            if len(fields) > 5:
                raise TypeError(f"{cls.__typename__} declaration takes at most 6 items")
            return cls(name, *fields)
        raise TypeError(f"{cls.__typename__} declaration must be a string, a sequence or a mapping, not {input!r}")


__all__ = (
    "WILDCARD",
    "CommandOption",
)
