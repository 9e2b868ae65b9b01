"""
Helmsman built-in entries: show version and show help.

- versioner(metadata, console): Entry "version", priority 0, runs when
  config.version is set. Prints the four-line build metadata block unstyled.
- helper(schema, name, ...): Entry "help", priority 1, runs when config.help is
  set. Prints usage, description, the option list and the supplement.

Both run before any user entry (user entries conventionally use priorities
from 2 upward), whatever other flags are set.

Help palette keys (overridable through __main__.__styles__, honored only when
colorful is set)
- usage-label, program-name, usage-section, description-section
- group-label, option-name, flag-name, metavar, greedy-metavar
- argument-description, supplement-section, panel-title
"""
import logging
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .dispatch import Entry
from .utils import *
from .version import Version, current

logger = logging.getLogger(__name__)

VERSION_PRIORITY = 0
HELP_PRIORITY = 1


def _wants_version(config, /):
    return config.version


def _wants_help(config, /):
    return config.help


def versioner(metadata=Unset, /, console=Unset):
    """
    Build the "version" entry.

    Parameters
    - metadata: Unset | Version
      Printed metadata; helmsman.version.current() at run time when omitted.
    - console: Unset | rich.console.Console
      Output console; standard output when omitted.

    The action raises RuntimeError when no metadata is available.
    """
    if not isinstance(metadata, Version | Unset):
        raise TypeError("versioner() argument must be a version")

    @rename("version")
    def action(config, /):
        if (resolved := coalesce(metadata) or current()) is None:
            raise RuntimeError("build metadata is not initialized")
        output = Console() if console is Unset else console
        # one plain Text keeps the block byte-exact
        output.print(Text(str(resolved)), highlight=False, soft_wrap=True)
        return resolved

    return Entry("version", _wants_version, action, VERSION_PRIORITY, "Show version information")


def render_help(schema, name, /, descr=Unset, supplement=Unset, *, colorful=False, fancy=False, width=80):
    """
    Build the help renderable for a schema.

    Layout
    - usage: <name> [-V | --version] ... [-p | --pattern PATTERN] ...
    - description paragraph (when given)
    - "options:" followed by one line per directive: names, metavar, help
    - supplementary text (when given), verbatim

    The usage line and help texts are wrapped to width with hanging indents.
    """
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",
        "description-section": "italic #A3A3A3",
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "greedy-metavar": "bold italic #FFD600",
        "argument-description": "#9CA3AF",
        "supplement-section": "#D1D5DB",
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        return Text(str(fragment), styles[style] if colorful and style else "")

    def names(directive, separator):
        style = "option-name" if directive.nargs else "flag-name"
        return Text(separator).join(text(x, style) for x in directive.names)

    def metavar(directive):
        if directive.repeatable:
            return Text.assemble(text(directive.metavar, "greedy-metavar"), " ...")
        return text(directive.metavar, "metavar")

    width -= 4 * fancy
    renders = []

    # Usage line, items wrapped under the first one
    usage = Text.assemble(text("usage", "usage-label"), ": ", text(name, "program-name"), " ")
    offset = len(usage)
    items = []
    for directive in schema:
        item = names(directive, " | ")
        if directive.nargs:
            item = Text.assemble(item, " ", metavar(directive))
        items.append(item if directive.required else Text.assemble("[", item, "]"))

    line = Text()
    for item in items:
        if line and offset + len(line) + 1 + len(item) > width:
            usage.append(line).append("\n").append(" " * offset)
            line = Text()
        line.append(Text(" ") if line else Text()).append(item)
    renders.append(usage.append(line))

    if coalesce(descr):
        renders.append(Text.assemble("\n", text(descr, "description-section")))

    # Option list; descriptions start at a shared column
    padding = 2
    columns = []
    for directive in schema:
        column = names(directive, ", ")
        if directive.nargs:
            column = Text.assemble(column, " ", metavar(directive))
        columns.append(column)
    indent = min(max(map(len, columns), default=0) + padding * 2, width // 2)

    options = Text.assemble("\n", text("options", "group-label"), ":")
    console = Console(width=max(width, indent + 20))
    for directive, column in zip(schema, columns):
        section = Text.assemble("\n", " " * padding, column)
        if directive.help:
            if padding + len(column) + 2 > indent:
                section.append("\n").append(" " * indent)
            else:
                section.append(" " * (indent - padding - len(column)))
            wrapped = text(directive.help, "argument-description").wrap(console, width - indent)
            section.append(Text("\n" + " " * indent).join(wrapped))
        options.append(section)
    renders.append(options)

    if coalesce(supplement):
        renders.append(Text.assemble("\n", text(supplement.strip("\n"), "supplement-section")))

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", f"{name} HELP".upper(), " ]", style=styles["panel-title"] if colorful else ""),
            title_align="left",
        )
    return renderable


def helper(schema, name, /, descr=Unset, supplement=Unset, *, console=Unset, colorful=False, fancy=False):
    """
    Build the "help" entry for a schema.

    Parameters
    - schema: helmsman.schema.Schema
    - name: str, program name shown in the usage line.
    - descr: Unset | str, description paragraph.
    - supplement: Unset | str, free-form text appended after the options
      (examples, notes).
    - console: Unset | rich.console.Console, standard output when omitted.
    - colorful, fancy: styling switches.
    """
    @rename("help")
    def action(config, /):
        output = Console() if console is Unset else console
        output.print(render_help(
            schema,
            name,
            descr,
            supplement,
            colorful=colorful,
            fancy=fancy,
            width=output.width,
        ), highlight=False)

    return Entry("help", _wants_help, action, HELP_PRIORITY, "Show help information")


__all__ = (
    "versioner",
    "helper",
    "render_help",
    "VERSION_PRIORITY",
    "HELP_PRIORITY",
)
