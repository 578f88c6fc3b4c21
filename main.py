from rich.pretty import pprint

from cotree import *


class Remote(Command):
    def __init__(self):
        super().__init__(
            "remote",
            help="Manage tracked repositories",
            options={"verbose": [bool, False, "Be verbose", "v"]},
            arguments={"action": [["add", "remove", "list"], "list", "What to do with remotes"]},
        )


tool = Command(
    "tool",
    help="Demonstrates a command tree with one subcommand",
    version="0.0.0",
    options={
        "count": [int, 1, "How many times", "c"],
        "dry": [bool, False, "Print without doing", "n"],
    },
    arguments={"*": "Files to work on"},
    subcommands=[Remote()],
    shell=True,
    colorful=True,
)


if __name__ == '__main__':
    pprint(invoke(tool))
