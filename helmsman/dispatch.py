"""
Helmsman command entries, dispatch table and dispatcher.

Overview
- Entry: (name, priority, predicate, action, descr). Lower priorities run first;
  priorities are integers in 0..255, DEFAULT_PRIORITY is 100 and LOWEST (255) is
  reserved by convention for catch-all entries.
- entry(): decorator building an Entry from an action.
- Table: entries sorted by priority, ties kept in registration order. A frozen
  table rejects further registration.
- Dispatcher: evaluates predicates in table order and runs the first matching
  action, exactly once per dispatch.

Dispatch
    selecting ──first true predicate──▶ executed
        │
        └──no predicate true──▶ NoHandlerError

- Exceptions raised by an action are wrapped in ActionFailureError (original
  chained as __cause__); helmsman faults raised by an action pass through.
- Nothing is retried and no other entry is tried after a failure.
"""
import inspect
import logging
from enum import Enum

from .faults import ActionFailureError, HelmsmanError, NoHandlerError
from .utils import *
from .utils import DeclarativeType

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 100
LOWEST = 255


@rename("always")
def always(config, /):
    """Predicate accepting every configuration (catch-all entries)."""
    return True


class Entry(metaclass=DeclarativeType):
    """
    One command of the dispatch table.

    Properties
    - name: unique name within a table (diagnostics, logs).
    - priority: 0..255, lower runs first.
    - predicate: callable(config) -> bool, expected to be pure.
    - action: callable(config) -> Any; failure is an exception.
    - descr: one-line description (first docstring line of the action when
      omitted, else None).
    """

    __introspectable__ = (
        "name",
        "priority",
        "predicate",
        "action",
        "descr",
    )

    __displayable__ = (
        "name",
        "priority",
    )

    def __new__(cls, name, predicate, action, /, priority=DEFAULT_PRIORITY, descr=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")

        if not callable(predicate):
            raise TypeError(f"{cls.__typename__} 'predicate' must be callable")
        if not callable(action):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")

        if isinstance(priority, bool) or not isinstance(priority, int):
            raise TypeError(f"{cls.__typename__} 'priority' must be an integer")
        elif not 0 <= priority <= LOWEST:
            raise ValueError(f"{cls.__typename__} 'priority' must be between 0 and {LOWEST}, got {priority}")

        if descr is Unset:
            descr = (inspect.getdoc(action) or "").strip().partition("\n")[0] or None
        elif descr is not None and not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")

        self = super().__new__(cls)
        self._name = name
        self._priority = priority
        self._predicate = predicate
        self._action = action
        self._descr = descr
        return self


def entry(name=Unset, /, when=always, priority=DEFAULT_PRIORITY, descr=Unset):
    """
    Decorator building an Entry from an action.

    Parameters
    - name: Unset | str
      Entry name; the action's __name__ when omitted.
    - when: callable(config) -> bool
      Predicate; always matches when omitted.
    - priority: int
      0..255, lower runs first.
    - descr: Unset | str
      One-line description; the action's docstring when omitted.

    Example
        @entry(when=lambda config: config.count, priority=2)
        def count(config):
            ...
    """
    @rename("entry")
    def wrapper(action, /):
        if not callable(action):
            raise TypeError("@entry() must be applied to a callable")
        return Entry(coalesce(name, getattr(action, "__name__", "")), when, action, priority, descr)

    return wrapper


class Table(metaclass=DeclarativeType):
    """
    Ordered collection of entries.

    Entries are kept sorted ascending by priority; equal priorities keep their
    registration order. Names are unique. Once frozen, register() raises
    RuntimeError.
    """

    __introspectable__ = (
        "entries",
        "frozen",
    )

    def __new__(cls, entries=(), /):
        self = super().__new__(cls)
        self._entries = ()
        self._frozen = False
        for item in entries:
            self.register(item)
        return self

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, name, /):
        return any(item.name == name for item in self._entries)

    def __getitem__(self, name, /):
        for item in self._entries:
            if item.name == name:
                return item
        raise KeyError(name)

    def register(self, entry, /):
        """
        Add an entry and return the table (chainable).

        Raises
        - TypeError when entry is not an Entry.
        - ValueError when the name is already registered.
        - RuntimeError when the table is frozen.
        """
        if self._frozen:
            raise RuntimeError(f"{type(self).__typename__} is frozen, cannot register {entry!r}")
        if not isinstance(entry, Entry):
            raise TypeError(f"{type(self).__typename__} can only register entries")
        if entry.name in self:
            raise ValueError(f"{type(self).__typename__} already has an entry named {entry.name!r}")
        self._entries = tuple(sorted(self._entries + (entry,), key=lambda x: x.priority))
        return self

    def freeze(self):
        """
        Reject any further registration; returns the table.
        """
        self._frozen = True
        return self


class State(Enum):
    SELECTING = "selecting"
    EXECUTED = "executed"


class Selection(metaclass=DeclarativeType):
    """
    One dispatch of one configuration.

    Starts in State.SELECTING; execute() moves it to State.EXECUTED and may be
    called once. After execution, entry holds the entry that ran and result its
    return value.
    """

    __introspectable__ = (
        "config",
        "state",
        "entry",
        "result",
    )

    __displayable__ = (
        "state",
        "entry",
    )

    def __new__(cls, entries, config, /):
        self = super().__new__(cls)
        self._entries = tuple(entries)
        self._config = config
        self._state = State.SELECTING
        self._entry = None
        self._result = None
        return self

    def select(self):
        """
        Return the first entry whose predicate accepts the configuration,
        without running it.

        Raises
        - NoHandlerError when no predicate is true.
        """
        for item in self._entries:
            if item.predicate(self._config):
                logger.debug("selected %r (priority %d)", item.name, item.priority)
                return item
            logger.debug("skipped %r", item.name)
        raise NoHandlerError(self._config)

    def execute(self):
        """
        Run the selected entry's action once and return its result.

        Raises
        - RuntimeError when this selection already executed.
        - NoHandlerError when nothing matches.
        - ActionFailureError wrapping any non-helmsman exception of the action.
        """
        if self._state is State.EXECUTED:
            raise RuntimeError(f"{type(self).__typename__} already executed {self._entry.name!r}")

        item = self.select()
        self._entry = item
        self._state = State.EXECUTED
        logger.info("running %r", item.name)
        try:
            self._result = item.action(self._config)
        except HelmsmanError:
            raise
        except Exception as error:
            raise ActionFailureError(item.name, error) from error
        return self._result


class Dispatcher(metaclass=DeclarativeType):
    """
    Runs exactly one entry per configuration.

    The dispatcher keeps a snapshot of the table taken at construction; later
    changes to an unfrozen table are not seen.
    """

    __introspectable__ = (
        "entries",
    )

    def __new__(cls, table, /):
        if not isinstance(table, Table):
            table = Table(table)
        self = super().__new__(cls)
        self._entries = table.entries
        return self

    def select(self, config, /):
        """
        Return the entry that dispatch(config) would run, without running it.
        """
        return Selection(self._entries, config).select()

    def dispatch(self, config, /):
        """
        Select and run one entry; returns the executed Selection.
        """
        selection = Selection(self._entries, config)
        selection.execute()
        return selection


__all__ = (
    # Types
    "Entry",
    "Table",
    "State",
    "Selection",
    "Dispatcher",

    # Functions
    "entry",
    "always",

    # Constants
    "DEFAULT_PRIORITY",
    "LOWEST",
)
