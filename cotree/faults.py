"""
cotree faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every parse failure.
- CommandError: base type carrying a message plus arbitrary context data, able
  to render itself with rich and to serialize its data as JSON.
- trigger(): central entry point to surface a fault (raise, or print and exit
  in shell mode).

Contract
- Parse failures are always raised synchronously to the caller of parse();
  nothing in the parsing core catches, retries or prints them.
- Declaration mistakes (bad option specs, duplicated aliases, a misplaced
  wildcard argument) are programming errors and raise TypeError/ValueError
  instead of CommandError.

Host integration
- __main__.__styles__ overrides palette entries used by __rich__.
- __main__.__prog__ overrides the program name shown in the header.
- __main__.__codes__ maps FaultCode members to custom labels.
"""
import copy
import json
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - tokens (2110x): UNMATCHED_QUOTE
    - values (2111x): INVALID_NUMBER, INVALID_ENUM_VALUE, TYPE_CONVERSION_FAILURE,
      COMBINED_FLAG
    - positionals (2112x): MISSING_REQUIRED_ARGUMENTS
    - routing (2113x): UNKNOWN_SUBCOMMAND
    """
    # --- tokenizer errors ---
    UNMATCHED_QUOTE             = 21101

    # --- value errors ---
    INVALID_NUMBER              = 21111
    INVALID_ENUM_VALUE          = 21112
    TYPE_CONVERSION_FAILURE     = 21113
    COMBINED_FLAG               = 21114

    # --- positional errors ---
    MISSING_REQUIRED_ARGUMENTS  = 21121

    # --- routing errors ---
    UNKNOWN_SUBCOMMAND          = 21131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _jsonable(object):
    # Messages and options know how to flatten themselves; anything else is shown by repr.
    if hasattr(object, "to_object") and callable(object.to_object):
        return object.to_object()
    if isinstance(object, set | frozenset | tuple):
        return list(object)
    return repr(object)


class CommandError(Exception):
    """
    Structured parse failure carrying a message and context data.

    Attributes
    - message: str, the human-readable reason.
    - data: any JSON-friendly context (offending value, valid values, the
      partially built message). None when there is nothing to add.
    - hint: one actionable sentence shown under the message when rendered.
    - options: rendering options (colorful, fancy, tool, shell) merged in by
      trigger() through copy.replace().
    """
    title = "command error"
    code = None

    def __init__(self, message="", data=None, /, *, hint=Unset, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.data = data
        self.hint = coalesce(hint, "")
        self.options = MappingProxyType(options)

    def __str__(self):
        if self.data is None:
            return self.message
        return "%s\n%s" % (self.message, json.dumps(self.data, indent=2, default=_jsonable, ensure_ascii=False))

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        tool = self.options.get("tool")
        prog = getattr(main, "__prog__", getattr(tool, "name", "") or "cli")
        code = self.code.normalize() if self.code is not None else "-"

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " - ",
            text(code, "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]",
        )
        body = [text(self.message, "error-message")]
        if self.hint:
            body.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __trigger__(self):
        if not self.options.get("shell", False):
            # context suppressed, a cause carried over by __replace__ stays chained
            raise self from self.__cause__
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replica = type(self)(self.message, self.data, hint=self.hint or Unset, **{**self.options, **overrides})
        replica.__cause__ = self.__cause__
        return replica


class UnmatchedQuoteError(CommandError):
    title = "unmatched quote"
    code = FaultCode.UNMATCHED_QUOTE


class InvalidNumberError(CommandError):
    title = "invalid number"
    code = FaultCode.INVALID_NUMBER


class InvalidEnumValueError(CommandError):
    title = "invalid value"
    code = FaultCode.INVALID_ENUM_VALUE


class TypeConversionError(CommandError):
    title = "type conversion failure"
    code = FaultCode.TYPE_CONVERSION_FAILURE


class CombinedFlagError(CommandError):
    title = "combined non-flag option"
    code = FaultCode.COMBINED_FLAG


class MissingRequiredArgumentsError(CommandError):
    title = "missing required arguments"
    code = FaultCode.MISSING_REQUIRED_ARGUMENTS


class UnknownSubcommandError(CommandError):
    title = "unknown subcommand"
    code = FaultCode.UNKNOWN_SUBCOMMAND


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandError).
    - options are merged into the fault via copy.replace() before triggering.
    - with shell=True the fault is printed to stderr and the process exits with
      status 1; otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandError",
    "UnmatchedQuoteError",
    "InvalidNumberError",
    "InvalidEnumValueError",
    "TypeConversionError",
    "CombinedFlagError",
    "MissingRequiredArgumentsError",
    "UnknownSubcommandError",
    "trigger",
)
