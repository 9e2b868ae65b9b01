"""
Helmsman registration API and process boundary.

An App collects fields and command entries, then freezes them into a Blueprint
(schema, configuration type, dispatch table, dispatcher) on first use:

    app = App("textkit", descr="Small text utilities", version=metadata)
    app.field(flag("count", long="count", help="Count lines"))

    @app.command(when=lambda config: config.count, priority=2)
    def count(config):
        ...

    @app.default
    def copy(config):
        ...

    if __name__ == "__main__":
        app.main()

run(prompt) drives one invocation: parse, materialize, configure logging,
dispatch. It returns 0 on success and 1 on any helmsman fault, which is
rendered on the error console. main(prompt) exits the process with that code.
"""
import logging
import re
import shlex
import sys
from collections.abc import Iterable
from typing import NamedTuple

from rich.console import Console
from rich.logging import RichHandler

from .config import configtype
from .dispatch import DEFAULT_PRIORITY, LOWEST, Dispatcher, Entry, Table, always
from .faults import HelmsmanError, trigger
from .fields import Field
from .schema import build_schema
from .standard import helper, versioner
from .utils import *
from .utils import DeclarativeType
from .version import Version

logger = logging.getLogger(__name__)


class Blueprint(NamedTuple):
    """
    Frozen artifacts of an application.

    - schema: helmsman.schema.Schema
    - config: the generated configuration type
    - table: the frozen dispatch table (built-ins first)
    - dispatcher: helmsman.dispatch.Dispatcher over the table
    """
    schema: object
    config: type
    table: Table
    dispatcher: Dispatcher


class _Handler(RichHandler):
    """
    Internal: the handler installed by App.run, replaced on every run.
    """


def _typename(name, /):
    """
    Internal: configuration type name for an application name.

    "textkit" -> "TextkitConfig", "my-tool" -> "MyToolConfig".
    """
    words = [word for word in re.split(r"[\W_]+", name) if word]
    typename = "".join(word[:1].upper() + word[1:] for word in words) + "Config"
    return typename if typename.isidentifier() else "AppConfig"


def _tokenize(prompt, /):
    """
    Internal: normalize a prompt into a list of tokens.

    - Unset: sys.argv[1:]
    - str: shell-like string, split with shlex.split
    - Iterable[str]: used as-is (each item must be a string)
    """
    if prompt is Unset:
        return sys.argv[1:]
    elif isinstance(prompt, str):
        return shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("run() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("run() argument must be a string or an iterable of strings")


class App(metaclass=DeclarativeType):
    """
    Declarative command-line application.

    Parameters
    - name: str
      Program name (usage line, fault headers, parser errors).
    - descr: Unset | str
      Description shown under the usage line.
    - fields: Iterable[Field]
      Application fields; more can be added with field().
    - version: Unset | helmsman.version.Version
      Metadata printed by --version; helmsman.version.current() when omitted.
    - supplement: Unset | str
      Free-form text appended to the help output (examples, notes).
    - colorful: bool
      Style help and fault output.
    - fancy: bool
      Wrap help and fault output in panels.
    - console, stderr: Unset | rich.console.Console
      Output and error consoles.
    - logs: bool
      Install a rich logging handler on the "helmsman" logger and on the
      logger named after the program on each run, leveled by verbosity.
      Handlers installed by the host are left in place.
    - verbosity: Unset | callable(config) -> int
      Verbosity policy; Config.verbosity when omitted.
    """

    __introspectable__ = (
        "name",
        "descr",
        "fields",
        "version",
        "supplement",
        "colorful",
        "fancy",
    )

    __displayable__ = (
        "name",
        "fields",
    )

    def __new__(
            cls,
            name,
            /,
            descr=Unset,
            fields=(),
            version=Unset,
            supplement=Unset,
            *,
            colorful=False,
            fancy=False,
            console=Unset,
            stderr=Unset,
            logs=True,
            verbosity=Unset
    ):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")

        for key, value in (("descr", descr), ("supplement", supplement)):
            if not isinstance(value, str | Unset):
                raise TypeError(f"{cls.__typename__} {key!r} must be a string")

        if not isinstance(version, Version | Unset):
            raise TypeError(f"{cls.__typename__} 'version' must be a version")

        for key, value in (("console", console), ("stderr", stderr)):
            if not isinstance(value, Console | Unset):
                raise TypeError(f"{cls.__typename__} {key!r} must be a rich console")

        if verbosity is not Unset and not callable(verbosity):
            raise TypeError(f"{cls.__typename__} 'verbosity' must be callable")

        self = super().__new__(cls)
        self._name = name
        self._descr = coalesce(descr)
        self._fields = ()
        self._version = version
        self._supplement = coalesce(supplement)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._console = console
        self._stderr = Console(stderr=True) if stderr is Unset else stderr
        self._logs = bool(logs)
        self._verbosity = verbosity
        self._entries = []
        self._blueprint = None

        for field in fields:
            self.field(field)
        return self

    def _check_open(self, what, /):
        if self._blueprint is not None:
            raise RuntimeError(f"{type(self).__typename__} {self._name!r} is already built, cannot add {what}")

    def field(self, field, /):
        """
        Add a field; returns the field.

        Raises
        - TypeError when field is not a Field.
        - RuntimeError after build().
        """
        self._check_open("fields")
        if not isinstance(field, Field):
            raise TypeError(f"{type(self).__typename__} field() argument must be a field")
        self._fields += (field,)
        return field

    def register(self, entry, /):
        """
        Register a prebuilt Entry; returns the entry.
        """
        self._check_open("entries")
        if not isinstance(entry, Entry):
            raise TypeError(f"{type(self).__typename__} register() argument must be an entry")
        self._entries.append(entry)
        return entry

    def command(self, name=Unset, /, when=always, priority=DEFAULT_PRIORITY, descr=Unset):
        """
        Decorator registering an action as a command entry.

        Parameters
        - name: Unset | str, the action's __name__ when omitted.
        - when: callable(config) -> bool, the predicate.
        - priority: int, 0..255, lower runs first (built-ins use 0 and 1).
        - descr: Unset | str, the action's docstring when omitted.

        Returns
        - A decorator returning the registered Entry.
        """
        @rename("command")
        def wrapper(action, /):
            if not callable(action):
                raise TypeError("@command() must be applied to a callable")
            return self.register(Entry(coalesce(name, getattr(action, "__name__", "")), when, action, priority, descr))

        return wrapper

    def default(self, action=Unset, /, *, name=Unset, descr=Unset):
        """
        Register a catch-all entry at the LOWEST priority.

        Usable bare (@app.default) or with options (@app.default(name="copy")).
        """
        @rename("default")
        def wrapper(action, /):
            return self.command(name, when=always, priority=LOWEST, descr=descr)(action)

        return wrapper(action) if action is not Unset else wrapper

    def build(self):
        """
        Validate and freeze the application into a Blueprint.

        Idempotent: later calls return the same Blueprint. After the first call
        field(), register(), command() and default() raise RuntimeError.

        Raises
        - SchemaConflictError on clashing field names or flags.
        - ValueError when a user entry reuses the name "version" or "help".
        """
        if self._blueprint is not None:
            return self._blueprint

        schema = build_schema(self._fields)
        config = configtype(_typename(self._name), self._fields)
        table = Table((
            versioner(self._version, console=self._console),
            helper(
                schema,
                self._name,
                self._descr,
                self._supplement,
                console=self._console,
                colorful=self._colorful,
                fancy=self._fancy,
            ),
            *self._entries,
        )).freeze()

        self._blueprint = Blueprint(schema, config, table, Dispatcher(table))
        logger.debug("built %r with %d entries", self._name, len(table))
        return self._blueprint

    def _configure_logging(self, config, /):
        if not self._logs:
            return
        verbosity = config.verbosity if self._verbosity is Unset else self._verbosity(config)
        if verbosity < 0:
            level = logging.ERROR
        elif verbosity > 0:
            level = logging.DEBUG
        else:
            level = logging.WARNING
        handler = _Handler(console=self._stderr, show_path=False, log_time_format="[%X]")
        handler.setFormatter(logging.Formatter("%(message)s"))
        for name in dict.fromkeys((__package__, self._name)):
            target = logging.getLogger(name)
            for installed in [x for x in target.handlers if isinstance(x, _Handler)]:
                target.removeHandler(installed)
            target.setLevel(level)
            target.addHandler(handler)

    def run(self, prompt=Unset, /):
        """
        Run one invocation and return its exit code.

        Parameters
        - prompt: Unset | str | Iterable[str]
          sys.argv[1:] when omitted; a string is split like a shell would.

        Returns
        - 0 when the selected action completed, 1 on any helmsman fault (the
          fault is rendered on the error console).

        Raises
        - TypeError on a malformed prompt (programming error).
        """
        tokens = _tokenize(prompt)
        try:
            blueprint = self.build()
            namespace = blueprint.schema.parse(tokens, prog=self._name)
            config = blueprint.config.materialize(namespace)
            self._configure_logging(config)
            blueprint.dispatcher.dispatch(config)
        except HelmsmanError as fault:
            logger.debug("fault %s: %s", type(fault).__name__, fault)
            trigger(fault, console=self._stderr, prog=self._name, colorful=self._colorful, fancy=self._fancy)
            return 1
        return 0

    def main(self, prompt=Unset, /):
        """
        Run and exit the process with the resulting code.
        """
        sys.exit(self.run(prompt))


__all__ = (
    "App",
    "Blueprint",
)
