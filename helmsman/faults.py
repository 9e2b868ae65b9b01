"""
Helmsman faults (errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every fault the framework raises.
  Codes are grouped by the layer that raises them so logs stay searchable.
- HelmsmanError: base type carrying a message plus rendering options; knows how
  to render itself through rich as a header, a one-sentence body and a hint.
- The four fault kinds of the framework:
  • SchemaConflictError (schema build time, application-author defect)
  • InvalidValueError / UnparsedArgumentsError (user input, recoverable)
  • NoHandlerError (dispatch table without catch-all, application-author defect)
  • ActionFailureError (an action raised; the original exception is chained)
- trigger(): render a fault on the error console (process boundary).

Host customization (read from __main__)
- __styles__: palette overrides for the keys used in render().
- __codes__: mapping FaultCode -> label, see FaultCode.normalize().
- __prog__: program name used in the header when none was given.

Propagation
- Faults are never swallowed inside the framework; they surface to the caller
  of App.run(), which renders them with trigger() and exits non-zero.
"""
import os.path
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
    - schema (2110x): SCHEMA_CONFLICT
    - user input (2120x): INVALID_VALUE, UNPARSED_ARGUMENTS
    - dispatch (2130x): NO_HANDLER
    - actions (2140x): ACTION_FAILURE
    """
    SCHEMA_CONFLICT    = 21101
    INVALID_VALUE      = 21201
    UNPARSED_ARGUMENTS = 21202
    NO_HANDLER         = 21301
    ACTION_FAILURE     = 21401

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids; otherwise the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class HelmsmanError(Exception):
    """
    Base class of every fault raised by the framework.

    Class attributes
    - code: FaultCode shown in the rendered header.
    - title: short lowercase title.
    - hint: one actionable sentence; may reference {prog}.

    Options
    - Free-form rendering context (prog, colorful, fancy, ...) stored read-only
      in self.options. render(**overrides) merges overrides on top.
    """
    code = Unset
    title = "error"
    hint = Unset

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def render(self, **overrides):
        """
        Build the rich renderable for this fault.

        Layout
        - header: "[ <prog> — <code> | <Title> ]"
        - body:   the message
        - hint:   " → <hint>" (omitted when the fault has no hint)

        When fancy is set the body and hint are wrapped in a Panel titled by the
        header. Styles apply only when colorful is set.
        """
        options = {**self.options, **overrides}
        main = __import__("__main__")
        colorful = options.get("colorful", False)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = options.get("prog") or getattr(main, "__prog__", os.path.basename(sys.argv[0]) or "helmsman")
        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(self.code.normalize() if self.code else "?", "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]",
        )
        renders = [text(self.message, "error-message")]
        if hint := coalesce(options.get("hint", self.hint)):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint.format(prog=prog), "hint")))

        if options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __rich__(self):
        return self.render()


class SchemaConflictError(HelmsmanError):
    """
    Two descriptors claim the same identity (field name, short or long flag).

    Attributes
    - first: the descriptor that claimed the identity first.
    - second: the descriptor that collided with it.
    - identity: the clashing identity as shown to users (e.g. "-p", "--count").
    """
    code = FaultCode.SCHEMA_CONFLICT
    title = "schema conflict"
    hint = "give every field a distinct name, short flag and long flag"

    def __init__(self, first, second, identity, /, **options):
        super().__init__(
            f"field {second.name!r} reuses {identity!r}, already taken by field {first.name!r}",
            **options,
        )
        self.first = first
        self.second = second
        self.identity = identity


class InvalidValueError(HelmsmanError):
    """
    A user-supplied value does not fit the kind of its field.

    Attributes
    - field: the field name (None when the parser could not attribute the error).
    - text: the offending input text (None when the value was missing).
    """
    code = FaultCode.INVALID_VALUE
    title = "invalid value"
    hint = "run '{prog} --help' to see the expected values"

    def __init__(self, field, text, /, reason=Unset, **options):
        if reason is Unset:
            reason = f"value {text!r} is not valid for {field!r}" if text is not None else f"{field!r} requires a value"
        super().__init__(reason, **options)
        self.field = field
        self.text = text


class UnparsedArgumentsError(InvalidValueError):
    """
    The argument parser rejected the command line (unknown switch, missing
    value, stray token). The parser's own message is kept as the fault message.
    """
    code = FaultCode.UNPARSED_ARGUMENTS
    title = "unparsed arguments"
    hint = "run '{prog} --help' for usage"

    def __init__(self, message, /, **options):
        super().__init__(None, None, message, **options)


class NoHandlerError(HelmsmanError):
    """
    No entry of the dispatch table accepted the configuration.

    Attributes
    - config: the configuration nothing matched.
    """
    code = FaultCode.NO_HANDLER
    title = "no handler"
    hint = "register a catch-all command at the lowest priority"

    def __init__(self, config, /, **options):
        super().__init__("no command could handle this request", **options)
        self.config = config


class ActionFailureError(HelmsmanError):
    """
    The selected entry's action raised.

    Attributes
    - entry: name of the entry whose action failed.
    - cause: the original exception (also chained as __cause__).
    """
    code = FaultCode.ACTION_FAILURE
    title = "action failure"

    def __init__(self, entry, cause, /, **options):
        super().__init__(f"command {entry!r} failed: {cause}", **options)
        self.entry = entry
        self.cause = cause


def trigger(fault, /, console=console, **options):
    """
    render a fault on the given console (standard error by default).

    options are merged on top of the fault's own options (prog, colorful,
    fancy, hint). the fault is not raised; callers decide the exit code.
    """
    if not isinstance(fault, HelmsmanError):
        raise TypeError("trigger() argument must be a helmsman fault")
    console.print(fault.render(**options))


__all__ = (
    "FaultCode",
    "HelmsmanError",
    "SchemaConflictError",
    "InvalidValueError",
    "UnparsedArgumentsError",
    "NoHandlerError",
    "ActionFailureError",
    "trigger",
)
