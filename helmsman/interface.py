"""
Helmsman front-ends: one-shot runner, interactive shell, help rendering.

Exit statuses (run, Shell.execute)
- 0: success (including help and blank input)
- 1: dispatch faults and HandlerError
- 2: parse and validation faults
Other exceptions raised by handlers propagate unchanged.

Built-ins
- help [command]: the command table, or one command's usage.
- exit, quit: leave the shell (interactive mode only).
A command registered under a built-in's name takes precedence over it.

Customization
- __styles__ on __main__ overrides palette entries (keys below), as for faults.
"""
import logging
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .execution import HandlerError
from .faults import *
from .parser import parse, tokenize
from .schema import *
from .utils import *

lg = logging.getLogger(__name__)

console = Console()

HELP = "help"
EXITS = ("exit", "quit")


def _palette(colorful):
    styles = defaultdict(str, {
        "table": "#4B5563",
        "title": "bold #FFFFFF",
        "command": "bold #36C5F0",
        "alias": "#36C5F0 dim",
        "description": "#9CA3AF",
        "usage-label": "bold #00E6FF",
        "argument": "bold #FFD600",
        "option": "bold #00E6FF",
        "flag": "bold #22C55E",
        "type": "italic #A3A3A3",
        "required": "bold #FF4D94",
    } | host("__styles__", {}))

    def text(fragment, style=""):
        return Text(str(fragment), styles[style] if colorful and style else "")

    return styles, text


def _usage(command, global_options, text):
    parts = [text(command.name, "command")]
    for argument in command.arguments:
        label = "<%s>" % argument.name if argument.required else "[%s]" % argument.name
        parts.append(text(label, "argument"))
    for option in (*command.options, *global_options):
        flag = option.flags[-1]
        if option.type is not ArgumentType.BOOL:
            flag += " <%s>" % option.name
        parts.append(text(flag if option.required else "[%s]" % flag, "flag" if option.type is ArgumentType.BOOL else "option"))
    return Text.assemble(text("usage: ", "usage-label"), Text(" ").join(parts))


def render_help(registry, global_options=(), /, *, command=Unset, colorful=True):
    """
    Build a rich renderable describing the registry, or one `command` in it.

    Parameters
    - registry: the Registry to describe.
    - global_options: OptionSpecs accepted by every command (listed in usage).
    - command: a CommandSpec; when given, its usage and fields are shown.
    - colorful: when False, styling is suppressed.
    """
    styles, text = _palette(colorful)
    global_options = tuple(global_options)

    if command is Unset:
        table = Table(
            "name", "aliases", "description",
            title=text("commands", "title"),
            box=ROUNDED,
            style=styles["table"] if colorful else "",
            header_style=styles["title"] if colorful else "",
        )
        for spec in sorted(registry.commands.values(), key=lambda spec: spec.name):
            table.add_row(
                text(spec.name, "command"),
                text(", ".join(spec.aliases), "alias"),
                text(spec.descr or "no description", "description"),
            )
        return table

    table = Table(
        "field", "type", "description",
        box=ROUNDED,
        style=styles["table"] if colorful else "",
        header_style=styles["title"] if colorful else "",
    )
    for argument in command.arguments:
        table.add_row(
            text(argument.name, "argument"),
            text(argument.type, "type"),
            Text.assemble(
                text(argument.descr or "", "description"),
                text(" (required)" if argument.required else "", "required"),
            ),
        )
    for option in (*command.options, *global_options):
        table.add_row(
            text(", ".join(option.flags), "flag" if option.type is ArgumentType.BOOL else "option"),
            text(option.type, "type"),
            Text.assemble(
                text(option.descr or "", "description"),
                text(" [default: %s]" % option.default if option.default is not Unset else "", "type"),
                text(" (one of: %s)" % ", ".join(option.choices) if option.choices else "", "type"),
                text(" (required)" if option.required else "", "required"),
            ),
        )

    renders = [_usage(command, global_options, text)]
    if command.descr:
        renders.append(text(command.descr, "description"))
    if command.aliases:
        renders.append(Text.assemble(text("aliases: ", "usage-label"), text(", ".join(command.aliases), "alias")))
    if table.row_count:
        renders.append(table)
    return Group(*renders)


def _help(tokens, registry, global_options, output, colorful):
    # "help" alone, or "help <command>"; anything else is a parse fault.
    if len(tokens) > 2:
        raise TooManyArgumentsError(
            "'help' expects at most 1 argument, got %d" % (len(tokens) - 1),
            command=HELP,
            expected=1,
            got=len(tokens) - 1,
            hint="run 'help <command>'"
        )
    if len(tokens) == 1:
        output.print(render_help(registry, global_options, colorful=colorful))
        return
    if (command := registry.resolve(tokens[1])) is None:
        # Let the parser word the fault and compute suggestions.
        parse(tokens[1:], registry, global_options)
    output.print(render_help(registry, global_options, command=command, colorful=colorful))


def run(tokens, registry, dispatcher, global_options=(), /, *, output=Unset, errors=Unset, colorful=True, **options):
    """
    Parse and dispatch one invocation; return the process exit status.

    Parameters
    - tokens: the command token followed by its arguments (e.g. sys.argv[1:]).
    - registry/dispatcher/global_options: the application surface.
    - output/errors: rich Consoles for help and faults (stdout/stderr by default).
    - colorful: forwarded to help and fault rendering.
    - options: suggestion bounds (max_distance, limit) for the parser.

    Empty `tokens` print the command table and yield status 2.
    """
    output = console if output is Unset else output
    tokens = list(tokens)

    try:
        if not tokens:
            output.print(render_help(registry, global_options, colorful=colorful))
            return 2
        if tokens[0] == HELP and HELP not in registry:
            _help(tokens, registry, global_options, output, colorful)
            return 0
        invocation = parse(tokens, registry, global_options, **options)
        dispatcher.dispatch(invocation)
    except (ParseError, DispatchError, HandlerError) as fault:
        lg.debug("invocation failed with %s", type(fault).__name__)
        report(fault, output=errors, colorful=colorful)
        return fault.status
    return 0


class Shell:
    """
    Interactive loop reading one command per line.

    Blank lines are skipped, faults are rendered and the loop continues; Ctrl-C
    cancels the current line, Ctrl-D (EOF), 'exit' and 'quit' end the loop.
    """

    def __init__(
            self,
            registry,
            dispatcher,
            global_options=(),
            /,
            *,
            prompt="helmsman",
            suffix=" > ",
            output=Unset,
            errors=Unset,
            colorful=True,
            **options
    ):
        self._registry = registry
        self._dispatcher = dispatcher
        self._global_options = tuple(global_options)
        self._prompt = "%s%s" % (prompt, suffix)
        self._output = console if output is Unset else output
        self._errors = errors
        self._colorful = colorful
        self._options = options
        self.running = False

    @property
    def prompt(self):
        return self._prompt

    def execute(self, line, /):
        """
        Run one line of input and return its status (see the module docstring).
        """
        try:
            if not (tokens := tokenize(line)):
                return 0
            if tokens[0] in EXITS and tokens[0] not in self._registry:
                self.running = False
                return 0
            if tokens[0] == HELP and HELP not in self._registry:
                _help(tokens, self._registry, self._global_options, self._output, self._colorful)
                return 0
            invocation = parse(tokens, self._registry, self._global_options, **self._options)
            self._dispatcher.dispatch(invocation)
        except (ParseError, DispatchError, HandlerError) as fault:
            report(fault, output=self._errors, colorful=self._colorful)
            return fault.status
        return 0

    def run(self):
        """
        Read and execute lines until exit; return 0.
        """
        self.running = True
        lg.debug("shell started")
        while self.running:
            try:
                line = self._output.input(self._prompt, markup=False)
            except EOFError:
                self._output.print()
                break
            except KeyboardInterrupt:
                self._output.print()
                continue
            self.execute(line)
        self.running = False
        lg.debug("shell stopped")
        return 0


__all__ = (
    "HELP",
    "EXITS",
    "render_help",
    "run",
    "Shell",
)
