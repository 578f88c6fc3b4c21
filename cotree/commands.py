"""
cotree command layer: declare, parse and describe command trees.

What this module provides
- Command: a declarative node owning named options, ordered positional
  arguments and named subcommands. parse() turns a command line into a typed
  CommandMessage tree:
  • defaults are filled for every declared option and argument,
  • aliases (-v) are resolved to their option names (--verbose),
  • values are coerced through the declared types,
  • required arguments are validated,
  • the first positional naming a subcommand hands the rest of the line over
    to that subcommand, recursively.
- invoke(command, prompt): host runner printing help/version and faults with
  rich, the only place where faults become exit codes.

Quick start
    from cotree import Command, invoke

    tool = Command(
        "tool",
        help="Copy files around",
        options={
            "count": [int, 1, "How many copies", "c"],
            "mode": [["fast", "safe"], "safe", "Copy strategy"],
        },
        arguments={
            "source": {"help": "File to copy", "required": True},
            "*": "Destinations",
        },
    )

    message = tool.parse("tool -c 2 --mode fast a.txt b.txt c.txt")
    # message.opts == {"count": 2, "mode": "fast", "help": False, "version": False}
    # message.argv == ["a.txt", "b.txt", "c.txt"]

Design notes
- A Command holds no per-parse state: every parse() builds a fresh result
  tree, so one declaration tree can serve many (even concurrent) parses as
  long as nobody mutates the declarations meanwhile.
- Resolution is greedy: the first remaining positional that names a
  subcommand is always consumed as that subcommand.
"""
import difflib
import sys
from collections import defaultdict
from collections.abc import Mapping, Iterable

from rich.console import Console, Group
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .coercion import ValueType, convert_value, resolve_type
from .faults import *
from .messages import CommandMessage
from .options import WILDCARD, CommandOption
from .tokens import TokenKind, join, scan, tokenize
from .utils import Introspectable, Unset, coalesce

# Built-in switches injected by Command.init(): name -> (alias, help)
BUILTINS = {
    "help": ("h", "Show help"),
    "version": ("V", "Show version"),
}


def _declare(cls, name, declaration):
    """
    Build a CommandOption named after its key in an options/arguments mapping.

    - CommandOption: reused (rebuilt when its name differs from the key)
    - str: help text of a str-typed option
    - mapping: option fields, the key is injected as name
    - sequence: [type, default, help, alias, required], the key is prepended
    - a bare type (class, callable or value type): option of that type
    """
    if isinstance(declaration, CommandOption):
        if declaration.name == name:
            return declaration
        return CommandOption(
            name,
            declaration.type,
            declaration.default,
            declaration.help,
            declaration.alias,
            declaration.required,
        )
    if isinstance(declaration, str):
        return CommandOption(name, help=declaration)
    if isinstance(declaration, Mapping):
        return CommandOption.from_value({**declaration, "name": name})
    if callable(declaration) or isinstance(declaration, ValueType):
        return CommandOption(name, declaration)
    if isinstance(declaration, Iterable):
        return CommandOption.from_value([name, *declaration])
    raise TypeError(f"{cls.__typename__} declaration of {name!r} must be an option, a string, a sequence or a mapping")


def _declarations(cls, field, declarations):
    """
    Yield CommandOption specs from a mapping or an iterable of specs/names.
    """
    if isinstance(declarations, Mapping):
        for name, declaration in declarations.items():
            if not isinstance(name, str):
                raise TypeError(f"{cls.__typename__} {field!r} keys must be strings")
            yield _declare(cls, name, declaration)
    elif isinstance(declarations, Iterable) and not isinstance(declarations, str):
        for declaration in declarations:
            yield CommandOption.from_value(declaration)
    else:
        raise TypeError(f"{cls.__typename__} {field!r} must be a mapping or an iterable of options")


def _merge(opts, key, value):
    # same rule as repeated keys: the second spelling turns the value into a list
    if key not in opts:
        opts[key] = value
    elif isinstance(opts[key], list):
        opts[key] = opts[key] + (value if isinstance(value, list) else [value])
    else:
        opts[key] = [opts[key]] + (value if isinstance(value, list) else [value])


class Command(metaclass=Introspectable):
    """
    Declarative command node.

    Parameters
    - name: str, the command (or subcommand) name; may be empty for an
      anonymous root.
    - help: str, description paragraph shown in help.
    - usage: str, explicit usage line; synthesized from the declarations when
      empty.
    - version: str | None, shown by --version through invoke().
    - options: mapping name -> declaration, or an iterable of options/names.
    - arguments: same shapes as options; declaration order is positional
      order and "*" (last only) collects every remaining value.
    - subcommands: iterable of Command.
    - shell, colorful, fancy: runtime flags read by invoke() and the rich
      renderers.

    Class attributes
    - message_type: CommandMessage subclass used for flat and typed results.

    Raises
    - TypeError/ValueError on malformed declarations, duplicated aliases,
      a misplaced wildcard argument or duplicated subcommand names.
    """

    message_type = CommandMessage

    __introspectable__ = (
        "name",
        "help",
        "usage",
        "version",
        "options",
        "arguments",
        "subcommands",
        "aliases",
        "shell",
        "colorful",
        "fancy",
    )

    __displayable__ = (
        "name",
        "help",
        "usage",
        "version",
        "subcommands",
    )

    def __init__(
            self,
            name="",
            /,
            help="",
            usage="",
            version=None,
            options=(),
            arguments=(),
            subcommands=(),
            *,
            shell=False,
            colorful=False,
            fancy=False,
    ):
        cls = type(self)
        for field, object in (("name", name), ("help", help), ("usage", usage)):
            if not isinstance(object, str):
                raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        if not isinstance(version, str | None):
            raise TypeError(f"{cls.__typename__} 'version' must be a string")
        if not issubclass(self.message_type, CommandMessage):
            raise TypeError(f"{cls.__typename__} 'message_type' must be a command-message class")

        self._name = name.strip()
        self._help = help.strip()
        self._usage = usage.strip()
        self._version = version
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._options = {}
        self._arguments = {}
        self._subcommands = {}
        self._aliases = {}

        for option in _declarations(cls, "options", options):
            self._register_option(option)
        for argument in _declarations(cls, "arguments", arguments):
            self._register_argument(argument)
        for subcommand in subcommands:
            self.add_subcommand(subcommand)

        self.init()

    def init(self):
        """
        Inject the built-in boolean help/version options unless declared.

        Idempotent: running it again changes nothing. A built-in alias that is
        already taken is simply left out.
        """
        for name, (alias, help) in BUILTINS.items():
            if name in self._options:
                continue
            if alias in self._aliases or alias in self._options:
                alias = ""
            self._register_option(CommandOption(name, bool, False, help, alias))

    def _register_option(self, option):
        typename = type(self).__typename__

        if option.alias:
            owner = self._aliases.get(option.alias, option.name)
            if owner != option.name:
                raise ValueError(f"{typename} alias {option.alias!r} is already bound to option {owner!r}")
            if option.alias in self._options and option.alias != option.name:
                raise ValueError(f"{typename} alias {option.alias!r} shadows option {option.alias!r}")
        if self._aliases.get(option.name, option.name) != option.name:
            raise ValueError(f"{typename} option {option.name!r} shadows the alias of option {self._aliases[option.name]!r}")

        if (previous := self._options.get(option.name)) and previous.alias:
            del self._aliases[previous.alias]
        self._options[option.name] = option
        if option.alias:
            self._aliases[option.alias] = option.name

    def _register_argument(self, argument):
        if WILDCARD in self._arguments and argument.name not in self._arguments:
            raise ValueError(f"{type(self).__typename__} wildcard argument {WILDCARD!r} must be the last argument")
        self._arguments[argument.name] = argument

    def add_option(self, name, type=str, default=None, help="", alias=""):
        """
        Declare (or redeclare) an option. Returns self for chaining.
        """
        self._register_option(CommandOption(name, type, default, help, alias))
        return self

    def add_argument(self, name, type=str, default=None, help="", required=False):
        """
        Declare (or redeclare) a positional argument. Returns self for chaining.
        """
        self._register_argument(CommandOption(name, type, default, help, required=required))
        return self

    def add_subcommand(self, subcommand):
        """
        Register a subcommand under its name. Returns self for chaining.
        """
        typename = type(self).__typename__
        if not isinstance(subcommand, Command):
            raise TypeError(f"{typename} subcommand must be a command")
        if not subcommand.name:
            raise ValueError(f"{typename} subcommand must have a name")
        if self._subcommands.setdefault(subcommand.name, subcommand) is not subcommand:
            raise ValueError(f"{typename} subcommand name {subcommand.name!r} is already in use")
        return self

    def get_option(self, name):
        return self._options.get(name)

    def get_command(self, name):
        return self._subcommands.get(name)

    def convert_value(self, value, type, name):
        """
        Coerce value to the declared type (see cotree.coercion.convert_value).
        """
        return convert_value(value, resolve_type(type), name)

    def parse(self, argv=(), /):
        """
        Parse a command line (string or token sequence) into a typed message.

        Steps
        1. tokenize and classify the line; a leading token equal to this
           command's name is the program name and is skipped.
        2. the first remaining positional naming a subcommand hands the tokens
           from that position on to the subcommand; its result becomes the
           only child and this command keeps the tokens before it.
        3. flat parse of the kept tokens, then alias resolution.
        4. every declared option is defaulted or coerced.
        5. every declared argument is bound in order ("*" takes the rest),
           coerced or defaulted; undeclared extra positionals stay raw.
        6. required arguments without a value are reported together.

        Raises
        - UnmatchedQuoteError, InvalidNumberError, InvalidEnumValueError,
          TypeConversionError, CombinedFlagError, MissingRequiredArgumentsError,
          UnknownSubcommandError.
        """
        tokens = tokenize(argv)
        body = argv if isinstance(argv, str) else join(tokens)
        scanned = list(scan(tokens))

        positionals = [token for token in scanned if token.kind is TokenKind.BARE]
        if positionals and self._name and positionals[0].value == self._name:
            del positionals[0]

        children = []
        if positionals and positionals[0].value in self._subcommands:
            subcommand = self._subcommands[positionals[0].value]
            split = positionals[0].index
            child = subcommand.parse(tokens[split:])
            children.append(child)
            tokens = tokens[:split]
            scanned = [token for token in scanned if token.index < split]
        elif positionals and self._subcommands and not self._arguments:
            self._unknown(positionals[0].value)

        message = self.message_type.parse(tokens)

        values = list(message.args)
        if values and self._name and values[0] == self._name:
            del values[0]

        opts = {}
        for key, value in message.opts.items():
            _merge(opts, self._aliases.get(key, key), value)

        for token in scanned:
            if token.kind is not TokenKind.CLUSTER:
                continue
            name = self._aliases.get(token.key, token.key)
            if (option := self._options.get(name)) and not option.is_flag:
                raise CombinedFlagError(
                    f"Option {name} cannot be combined with other flags: -{token.key}",
                    {"token": tokens[token.index], "option": name},
                    hint="pass it on its own, for example: -%s <value>" % token.key,
                )

        for name, option in self._options.items():
            if name not in opts:
                opts[name] = option.get_default()
            else:
                opts[name] = convert_value(opts[name], option.type, name)

        args = []
        for index, (name, argument) in enumerate(self._arguments.items()):
            if argument.is_wildcard:
                args.extend(convert_value(value, argument.type, name) for value in values[index:])
                break
            elif index < len(values):
                args.append(convert_value(values[index], argument.type, name))
            else:
                args.append(argument.get_default())
        else:
            args.extend(values[len(self._arguments):])

        missing = [
            name for index, (name, argument) in enumerate(self._arguments.items())
            if argument.required and index >= len(values)
        ]
        # a selected subcommand or a help/version request answers without the positionals
        if missing and not children and not any(opts.get(name) is True for name in BUILTINS):
            raise MissingRequiredArgumentsError(
                f"Missing required arguments: {", ".join(missing)}",
                {"missing": missing, "message": message},
                hint="run '%s --help' to see the expected arguments" % (self._name or "command"),
            )

        return self.message_type(
            name=self._name,
            argv=args,
            opts=opts,
            children=children,
            body=body,
        )

    def _unknown(self, name):
        suggestions = difflib.get_close_matches(name, self._subcommands.keys(), 5)
        route = self._name or "command"
        try:
            hint = "did you mean %r? you can also run '%s --help' to see available subcommands" % (suggestions[0], route)
        except IndexError:
            hint = "run '%s --help' to see available subcommands" % route
        raise UnknownSubcommandError(
            f"Cannot find a sub-command: {name}",
            {"subcommand": name, "available": list(self._subcommands), "suggestions": suggestions},
            hint=hint,
        )

    def render_help(self, *, colorful=Unset):
        """
        Build the help screen as a rich renderable.

        Sections
        - usage line (explicit usage, or synthesized from declarations)
        - description paragraph
        - arguments, options and subcommands tables

        Palette keys (override through __main__.__styles__)
        - usage-label, program-name, usage-section, description-section,
          section-label, argument-name, option-name, subcommand-name,
          description, panel-title
        """
        colorful = coalesce(colorful, self._colorful)
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "usage-section": "bold #36C5F0",
            "description-section": "italic #A3A3A3",
            "section-label": "bold #FFFFFF",
            "argument-name": "bold #FFD600",
            "option-name": "bold #00E6FF",
            "subcommand-name": "bold #36C5F0",
            "description": "#9CA3AF",
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        def table(rows, style):
            grid = Table.grid(padding=(0, 3))
            grid.add_column(no_wrap=True)
            grid.add_column()
            for name, description in rows:
                grid.add_row(text(name, style), text(description, "description"))
            return Padding(grid, (0, 0, 0, 2))

        renders = []

        usage = Text.assemble(text("Usage", "usage-label"), ": ")
        if self._usage:
            usage.append_text(text(self._usage, "usage-section"))
        else:
            words = [f"[--{name}]" for name in self._options]
            for name, argument in self._arguments.items():
                words.append(f"[{name}]" if argument.is_optional() else f"<{name}>")
            if self._subcommands:
                words.append("<subcommand>")
            usage.append_text(text(self._name, "program-name"))
            if words:
                usage.append(" ").append_text(text(" ".join(words), "usage-section"))
        renders.append(usage)
        renders.append(Text(""))

        if self._help:
            renders.append(text(self._help, "description-section"))
            renders.append(Text(""))

        if self._arguments:
            rows = []
            for name, argument in self._arguments.items():
                record = argument.to_object()
                rows.append((
                    f"[{name}]" if argument.is_optional() else f"<{name}>",
                    record["help"] + record["default_text"],
                ))
            renders.extend((text("Arguments:", "section-label"), table(rows, "argument-name"), Text("")))

        if self._options:
            rows = []
            for name, option in self._options.items():
                record = option.to_object()
                rows.append((
                    f"--{name}, -{option.alias}" if option.alias else f"--{name}",
                    record["help"] + record["default_text"],
                ))
            renders.extend((text("Options:", "section-label"), table(rows, "option-name"), Text("")))

        if self._subcommands:
            rows = [(name, subcommand.help or "No description") for name, subcommand in self._subcommands.items()]
            renders.extend((text("Subcommands:", "section-label"), table(rows, "subcommand-name"), Text("")))

        renderable = Group(*renders[:-1])
        if self._fancy:
            return Panel(renderable, title=text(f"{self._name} help".upper(), "panel-title"), title_align="left")
        return renderable

    def render_version(self, *, colorful=Unset):
        """
        Build the version line as a rich renderable.
        """
        colorful = coalesce(colorful, self._colorful)
        return Text.assemble(
            (self._name or "command", "bold #FF4D94" if colorful else ""),
            " ",
            (self._version or "(unversioned)", "bold #FFD600" if colorful else ""),
        )

    def _plain(self, renderable):
        console = Console(width=100, color_system=None, highlight=False, emoji=False, force_terminal=False)
        with console.capture() as capture:
            console.print(renderable)
        return "\n".join(line.rstrip() for line in capture.get().rstrip("\n").splitlines())

    def generate_help(self):
        """
        Help screen as plain text (see render_help for the layout).
        """
        return self._plain(self.render_help(colorful=False))

    def run_help(self):
        """
        Return the help string; callers decide whether to print it.
        """
        return self.generate_help()

    def generate_version(self):
        return self._plain(self.render_version(colorful=False))

    def __str__(self):
        return "%s\n%s" % (type(self).__name__, self.generate_help())


def invoke(command, prompt=Unset, /):
    """
    Host runner: parse, then print help or version, surface faults.

    Parameters
    - command: Command to run.
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: command line, tokenized by cotree.tokens.tokenize.
      • Iterable[str]: pre-tokenized sequence.

    Behavior
    - When the deepest selected command received --help (or --version), its
      help (or version) is printed to stdout.
    - Faults go through trigger(): in shell mode the command help and the
      fault are printed to stderr and the process exits with status 1,
      otherwise the fault is raised.

    Returns
    - The parsed CommandMessage tree.
    """
    if not isinstance(command, Command):
        raise TypeError("invoke() first argument must be a command")

    if prompt is Unset:
        prompt = sys.argv[1:]

    try:
        message = command.parse(prompt)
    except CommandError as fault:
        if command.shell:
            Console(stderr=True).print(command.render_help())
        trigger(fault, tool=command, shell=command.shell, colorful=command.colorful, fancy=command.fancy)
        raise

    target, selected = command, message
    while selected.children:
        selected = selected.children[0]
        target = target.get_command(selected.name)

    console = Console()
    if selected.opts.get("help") is True:
        console.print(target.render_help())
    elif selected.opts.get("version") is True:
        console.print(target.render_version())
    return message


__all__ = (
    "Command",
    "invoke",
)
