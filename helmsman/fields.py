r"""
Helmsman field schema: declarative option descriptors.

Overview
- Kind: the value kind of a field.
  • FLAG     presence-only boolean, empty value False
  • STRING   optional single string, empty value None
  • INTEGER  optional single integer, empty value None
  • PATH     optional single path, empty value None
  • PATHS    repeatable path list, empty value ()
- Field: one application option (name, kind, short/long flags, help, default).
- Shorthands: flag(), string(), integer(), path(), paths().
- BASE_FIELDS: the fixed options every application carries
  (version, help, verbose, dry_run, quiet, input, output).

Metadata (sanitized on construction)
- name: Python identifier; no leading underscore, no keyword, not one of the
  configuration members listed in RESERVED.
- short: Unset | one letter or digit (a leading "-" is tolerated).
- long: Unset | r"[^\W_](-?[^\W_]+)*" (leading "--" is tolerated).
- At least one of short/long is required.
- help: Unset | non-empty string (trimmed), None when omitted.
- default: Unset | a value of the field's kind (normalized: paths become
  pathlib.Path, path lists become tuples).
- metavar: Unset | non-empty string; flags cannot carry one; value-bearing kinds
  default to the upper-cased name.
- required: bool; flags and fields with a default cannot be required.

Uniqueness across a whole schema is not checked here; see
helmsman.schema.build_schema(), which raises SchemaConflictError.

Quick example:
    >>> from helmsman.fields import flag, string
    >>> count = flag("count", long="count", help="Count lines in input")
    >>> pattern = string("pattern", "p", "pattern", help="Pattern to search for")
    >>> pattern.names
    ('-p', '--pattern')
"""
import keyword
import os
import re
from enum import Enum
from pathlib import Path

from .utils import *
from .utils import DeclarativeType

RESERVED = frozenset({
    "asdict",
    "replace",
    "verbosity",
    "materialize",
})
"""Configuration members a field name cannot shadow."""


class Kind(Enum):
    """
    Value kind of a field.

    Each kind knows
    - empty: the value materialized when the field is absent and has no default.
    - nargs: values consumed per occurrence on the command line (0 or 1).
    - valued: whether the option consumes a value on the command line.
    - repeatable: whether the option may occur several times, one value each.
    """
    FLAG = "flag"
    STRING = "string"
    INTEGER = "integer"
    PATH = "path"
    PATHS = "paths"

    @property
    def empty(self):
        match self:
            case Kind.FLAG:
                return False
            case Kind.PATHS:
                return ()
            case _:
                return None

    @property
    def nargs(self):
        match self:
            case Kind.FLAG:
                return 0
            case _:
                return 1

    @property
    def valued(self):
        return self is not Kind.FLAG

    @property
    def repeatable(self):
        return self is Kind.PATHS


def _sanitize_identity(cls, metadata, /):
    """
    Internal: validate name, kind, short and long.

    Raises
    - TypeError: wrong types.
    - ValueError: malformed or reserved names, missing flags.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not name.isidentifier() or keyword.iskeyword(name):
        raise ValueError(f"{cls.__typename__} 'name' must be a valid identifier, got {name!r}")
    elif name.startswith("_"):
        raise ValueError(f"{cls.__typename__} 'name' cannot start with an underscore")
    elif name in RESERVED:
        raise ValueError(f"{cls.__typename__} 'name' {name!r} is reserved by the configuration type")

    if isinstance(kind := metadata["kind"], str):
        try:
            kind = Kind(kind)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'kind' {kind!r} is not a known kind") from None
    elif not isinstance(kind, Kind):
        raise TypeError(f"{cls.__typename__} 'kind' must be a kind")
    metadata["kind"] = kind

    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif isinstance(short, str):
        short = short.strip().removeprefix("-")
        if not re.fullmatch(r"[^\W_]", short):
            raise ValueError(f"{cls.__typename__} 'short' must be a single letter or digit")
    metadata["short"] = coalesce(short)

    if not isinstance(long := metadata["long"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'long' must be a string")
    elif isinstance(long, str):
        long = long.strip().removeprefix("--")
        if not re.fullmatch(r"[^\W_](-?[^\W_]+)*", long):
            raise ValueError(f"{cls.__typename__} 'long' must be a valid shell-style option name, got {long!r}")
    metadata["long"] = coalesce(long)

    if metadata["short"] is None and metadata["long"] is None:
        raise ValueError(f"{cls.__typename__} {name!r} must specify a short or a long flag")


def _normalize_default(cls, kind, default, /):
    """
    Internal: check a default against its kind and freeze it.
    """
    if default is None:
        if kind in (Kind.FLAG, Kind.PATHS):
            raise TypeError(f"{cls.__typename__} {kind.value} default cannot be None")
        return None

    match kind:
        case Kind.FLAG:
            if not isinstance(default, bool):
                raise TypeError(f"{cls.__typename__} flag default must be a boolean")
            return default
        case Kind.STRING:
            if not isinstance(default, str):
                raise TypeError(f"{cls.__typename__} string default must be a string")
            return default
        case Kind.INTEGER:
            if isinstance(default, bool) or not isinstance(default, int):
                raise TypeError(f"{cls.__typename__} integer default must be an integer")
            return default
        case Kind.PATH:
            if not isinstance(default, str | os.PathLike):
                raise TypeError(f"{cls.__typename__} path default must be a string or a path")
            return Path(default)
        case Kind.PATHS:
            if isinstance(default, str | os.PathLike):
                raise TypeError(f"{cls.__typename__} paths default must be an iterable of paths")
            try:
                items = tuple(default)
            except TypeError:
                raise TypeError(f"{cls.__typename__} paths default must be an iterable of paths") from None
            if not all(isinstance(item, str | os.PathLike) for item in items):
                raise TypeError(f"{cls.__typename__} paths default must be an iterable of paths")
            return tuple(map(Path, items))


def _sanitize_presentation(cls, metadata, /):
    """
    Internal: validate help, default, metavar and required.
    """
    kind = metadata["kind"]

    if not isinstance(help := metadata["help"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    elif isinstance(help, str) and not (help := help.strip()):
        raise ValueError(f"{cls.__typename__} 'help' cannot be empty")
    metadata["help"] = coalesce(help)

    if metadata["default"] is not Unset:
        metadata["default"] = _normalize_default(cls, kind, metadata["default"])

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str):
        if not kind.valued:
            raise TypeError(f"{cls.__typename__} flag cannot have a 'metavar'")
        if not (metavar := metavar.strip()):
            raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar, metadata["name"].upper() if kind.valued else None)

    if metadata["required"]:
        if not kind.valued:
            raise TypeError(f"{cls.__typename__} flag cannot be required")
        if metadata["default"] is not Unset:
            raise TypeError(f"{cls.__typename__} required field cannot have a 'default'")


class Field(metaclass=DeclarativeType):
    """
    Declarative description of one configuration option.

    Fields are pure data: they carry no parsing or conversion behavior. The
    schema builder turns them into parser directives and the configuration type
    materializes their values.

    Properties
    - name, kind, short, long, help, default, metavar, required (read-only).
    - names: the option strings, short first ("-p", "--pattern").
    - empty: the value used when the field is absent and has no default.
    """

    __introspectable__ = (
        "name",
        "kind",
        "short",
        "long",
        "help",
        "default",
        "metavar",
        "required",
    )

    __displayable__ = (
        "name",
        "kind",
        "short",
        "long",
        "default",
    )

    def __new__(
            cls,
            name,
            kind=Kind.FLAG,
            /,
            short=Unset,
            long=Unset,
            help=Unset,
            default=Unset,
            metavar=Unset,
            *,
            required=False
    ):
        """
        Construct a field.

        Parameters
        - name: str
          Attribute name on the configuration type (and parser destination).
        - kind: Kind | str
          Value kind; strings are looked up by value ("flag", "paths", ...).
        - short: Unset | str
          Single-character flag, e.g. "p" for "-p".
        - long: Unset | str
          Long flag, e.g. "pattern" for "--pattern".
        - help: Unset | str
          One-line help text.
        - default: Any
          Value used when the option is absent. Unset means the kind's empty
          value. None is accepted for single-value kinds only.
        - metavar: Unset | str
          Value label in help; value-bearing kinds only.
        - required: bool
          The option must be given on the command line.
        """
        metadata = {
            "name": name,
            "kind": kind,
            "short": short,
            "long": long,
            "help": help,
            "default": default,
            "metavar": metavar,
            "required": bool(required),
        }
        _sanitize_identity(cls, metadata)
        _sanitize_presentation(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        """
        Option strings in display order (short first, then long).
        """
        names = []
        if self.short:
            names.append("-" + self.short)
        if self.long:
            names.append("--" + self.long)
        return tuple(names)

    @property
    def empty(self):
        """
        The value materialized for an absent option: the default when one was
        declared, otherwise the kind's empty value.
        """
        return coalesce(self.default, self.kind.empty)


def _factory(kind, /):
    """
    Internal: build a shorthand constructor for one kind.
    """
    @rename(kind.value)
    def factory(name, /, short=Unset, long=Unset, help=Unset, **options):
        return Field(name, kind, short, long, help, **options)

    factory.__doc__ = f"""
        Shorthand for Field(name, Kind.{kind.name}, short, long, help, **options).

        Example
            {kind.value}("{kind.value}_field", long="{kind.value}-field", help="...")
    """
    return factory


flag = _factory(Kind.FLAG)
string = _factory(Kind.STRING)
integer = _factory(Kind.INTEGER)
path = _factory(Kind.PATH)
paths = _factory(Kind.PATHS)


BASE_FIELDS = (
    flag("version", "V", "version", help="Show version information"),
    flag("help", "h", "help", help="Show help information"),
    flag("verbose", "v", "verbose", help="Increase output verbosity"),
    flag("dry_run", "n", "dry-run", help="Show what would be done without doing it"),
    flag("quiet", "q", "quiet", help="Suppress non-essential output"),
    paths("input", "i", "input", help="Input file(s), standard input when omitted", metavar="FILE"),
    path("output", "o", "output", help="Output file, standard output when omitted", metavar="FILE"),
)
"""
Fields present in every configuration type, in schema order. Not extensible.
"""


__all__ = (
    # Types
    "Kind",
    "Field",

    # Shorthands
    "flag",
    "string",
    "integer",
    "path",
    "paths",

    # Constants
    "BASE_FIELDS",
    "RESERVED",
)
