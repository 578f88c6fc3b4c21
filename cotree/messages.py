"""
Command messages: the flat and the typed result of parsing a command line.

A CommandMessage holds
- name: the command name (first bare token of a flat parse, the command's
  own name in a typed result),
- argv: positional values after the name,
- opts: option values keyed by option name,
- children: messages of the subcommands that were selected (zero or one in
  practice),
- body: the raw input line.

Messages are never mutated after construction. Derive changed copies with
copy.replace(message, name=...), which goes through __replace__.

Quick example
    >>> message = CommandMessage.parse('git commit -m "Initial commit" --verbose')
    >>> message.name, message.argv, message.opts
    ('git', ['commit'], {'m': 'Initial commit', 'verbose': True})
"""
from collections.abc import Iterable, Mapping

from .tokens import TokenKind, join, quote, scan, tokenize
from .utils import Introspectable, Unset, coalesce


def _store(opts, key, value):
    # first occurrence is a scalar, later ones turn it into a list
    if key not in opts:
        opts[key] = value
    elif isinstance(opts[key], list):
        opts[key].append(value)
    else:
        opts[key] = [opts[key], value]


def _render_option(key, value):
    if value is True:
        yield "--%s" % key
    elif value is None:
        return
    elif isinstance(value, list):
        for item in value:
            yield from _render_option(key, item)
    else:
        value = "false" if value is False else str(value)
        if value.startswith("-"):
            yield quote("--%s=%s" % (key, value))
        else:
            yield "--%s" % key
            yield quote(value)


class CommandMessage(metaclass=Introspectable):
    """
    Parsed command line, flat or typed.

    Construction
    - CommandMessage(name="", argv=(), opts=None, children=(), body=Unset)
    - CommandMessage.parse(argv): flat parse of a string or a token sequence.
    - CommandMessage.from_value(input): instance passthrough, parse, or mapping.

    Subclasses may add fields: accept them as keyword arguments with defaults
    in __init__ and extend __introspectable__ so copy.replace() keeps them.
    """

    __introspectable__ = (
        "name",
        "argv",
        "opts",
        "children",
        "body",
    )

    def __init__(self, name="", argv=(), opts=None, children=(), body=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        if isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError(f"{type(self).__typename__} 'argv' must be an iterable of values")
        if opts is None:
            opts = {}
        if not isinstance(opts, Mapping):
            raise TypeError(f"{type(self).__typename__} 'opts' must be a mapping")

        self._name = name
        self._argv = list(argv)
        self._opts = dict(opts)
        # children keep their own message class
        self._children = [CommandMessage.from_value(child) for child in children]
        self._body = coalesce(body, "")
        if body is Unset:
            self._body = str(self)

    @property
    def args(self):
        """Full positional line: the name (when set) followed by argv."""
        return ([self._name] if self._name else []) + list(self._argv)

    @property
    def subcommand(self):
        """Name of the selected subcommand, or an empty string."""
        return self._children[0].name if self._children else ""

    @property
    def submessage(self):
        """Message of the selected subcommand, or None."""
        return self._children[0] if self._children else None

    @classmethod
    def parse(cls, argv=(), /):
        """
        Flat parse: split tokens into name, positional values and raw options.

        No option is declared at this level: every key is kept as written,
        values stay strings (or True for bare flags) and repeated keys become
        lists.

        Raises
        - UnmatchedQuoteError for an unterminated quote in a string input.
        """
        tokens = tokenize(argv)
        name = Unset
        positional = []
        opts = {}

        for token in scan(tokens):
            if token.kind is TokenKind.BARE:
                if name is Unset:
                    name = token.value
                else:
                    positional.append(token.value)
            else:
                _store(opts, token.key, token.value)

        return cls(
            name=coalesce(name, ""),
            argv=positional,
            opts=opts,
            body=argv if isinstance(argv, str) else join(tokens),
        )

    @classmethod
    def from_value(cls, input, /):
        """
        Return an instance of this class for the given input.

        - an instance of this class is returned unchanged
        - a string or a token sequence is parsed
        - a mapping is used as constructor keywords
        """
        if isinstance(input, cls):
            return input
        if isinstance(input, CommandMessage):
            return cls(**{field: getattr(input, field) for field in CommandMessage.__introspectable__})
        if isinstance(input, Mapping):
            return cls(**input)
        if isinstance(input, str | Iterable):
            return cls.parse(input)
        raise TypeError(f"{cls.__typename__} cannot be built from {input!r}")

    def to_object(self):
        """Plain-dict snapshot, children included."""
        return {
            "name": self._name,
            "argv": list(self._argv),
            "opts": dict(self._opts),
            "children": [child.to_object() for child in self._children],
            "body": self._body,
        }

    def __replace__(self, **changes):
        fields = {field: getattr(self, field) for field in type(self).__introspectable__}
        if "body" not in changes:
            # body is re-derived from the changed fields
            del fields["body"]
        return type(self)(**(fields | changes))

    def __str__(self):
        """
        Canonical command line: name, positional values, then options.

        Children follow on their own lines, indented by two spaces.
        """
        parts = []
        if self._name or self._argv or self._children:
            # an empty name still holds the first slot so argv is not read back as the name
            parts.append(quote(self._name))
        parts.extend(map(quote, self._argv))
        for key, value in self._opts.items():
            parts.extend(_render_option(key, value))

        lines = [" ".join(parts)]
        for child in self._children:
            lines.extend("  " + line for line in str(child).splitlines())
        return "\n".join(lines)


__all__ = (
    "CommandMessage",
)
