"""
Helmsman configuration types and the configuration materializer.

What this module provides
- Config: the base configuration record. It carries the base flags
  (version, help, verbose, dry_run, quiet, input, output) and is itself a usable
  configuration type for applications without fields of their own.
- configtype(name, fields): generate the concrete configuration type of an
  application (Config plus the application's fields).
- ConfigType.materialize(matches): build an instance from the parser's matches.

Instances
- Immutable: assigning or deleting attributes raises AttributeError.
- Hashable and comparable by value (same type, same values).
- replace(**changes) returns a modified copy; asdict() exports values in
  schema order.
- verbosity: +1 when verbose, -1 when quiet, 0 otherwise (both cancel out).

Materialization policy (per field)
- present: converted to the field's kind (InvalidValueError on mismatch)
- absent, or None: the declared default, else the kind's empty value
- absent and required: InvalidValueError (unless --version or --help is set)

Quick example
    >>> from helmsman.config import configtype
    >>> from helmsman.fields import flag
    >>> DemoConfig = configtype("DemoConfig", [flag("count", long="count")])
    >>> DemoConfig.materialize({"count": True}).count
    True
"""
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from .faults import InvalidValueError, SchemaConflictError
from .fields import BASE_FIELDS, Kind, Field
from .utils import *

logger = logging.getLogger(__name__)


def _lookup(matches, name, /):
    """
    Internal: query parsed matches by field name.

    Accepts any Mapping (simulated matches) or any object with attributes
    (argparse.Namespace). Absence and None both map to Unset.
    """
    if isinstance(matches, Mapping):
        value = matches.get(name, Unset)
    else:
        value = getattr(matches, name, Unset)
    return Unset if value is None else value


def _convert(field, value, /):
    """
    Internal: convert a present value to the field's kind.

    Raises
    - InvalidValueError naming the field and the offending text.
    """
    match field.kind:
        case Kind.FLAG:
            if isinstance(value, bool):
                return value
            raise InvalidValueError(field.name, str(value), f"{field.name!r} is a flag and takes no value, got {value!r}")
        case Kind.STRING:
            if isinstance(value, str):
                return value
            raise InvalidValueError(field.name, str(value), f"{field.name!r} expects a string, got {value!r}")
        case Kind.INTEGER:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, str):
                try:
                    return int(value, 10)
                except ValueError:
                    pass
            raise InvalidValueError(field.name, str(value), f"{field.name!r} expects an integer, got {value!r}")
        case Kind.PATH:
            if isinstance(value, str | os.PathLike) and str(value):
                return Path(value)
            raise InvalidValueError(field.name, str(value), f"{field.name!r} expects a path, got {value!r}")
        case Kind.PATHS:
            if isinstance(value, str | os.PathLike):
                value = (value,)
            try:
                items = tuple(value)
            except TypeError:
                raise InvalidValueError(field.name, str(value), f"{field.name!r} expects a list of paths, got {value!r}") from None
            for item in items:
                if not isinstance(item, str | os.PathLike) or not str(item):
                    raise InvalidValueError(field.name, str(item), f"{field.name!r} expects a list of paths, got {item!r}")
            return tuple(map(Path, items))


class ConfigType(type):
    """
    Metaclass generating configuration types from fields.

    Options (class construction keywords)
    - fields: Iterable[Field] declared by this class; they are appended to the
      fields inherited from the base configuration type.

    Responsibilities
    - Collect __fields__ (inherited + declared) in schema order.
    - Reserve one slot per declared field ("_<name>") and publish a read-only
      property for it.
    - Reject duplicate field names (SchemaConflictError) and fields shadowing
      members of the configuration type (ValueError).
    """

    def __new__(cls, name, bases, namespace, **options):
        inherited = tuple(field for base in bases for field in getattr(base, "__fields__", ()))
        declared = tuple(options.get("fields", ()))

        claimed = {}
        for field in inherited + declared:
            if not isinstance(field, Field):
                raise TypeError(f"configuration type {name!r} fields must be fields")
            if field.name in claimed:
                raise SchemaConflictError(claimed[field.name], field, field.name)
            claimed[field.name] = field

        for field in declared:
            if field.name in namespace or any(hasattr(base, field.name) for base in bases):
                raise ValueError(f"configuration type {name!r} field {field.name!r} shadows a configuration member")

        return super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__fields__": inherited + declared,
                "__slots__": tuple("_" + field.name for field in declared),
            } | {
                field.name: mirror(field.name) for field in declared
            },
        )

    def materialize(cls, matches, /):
        """
        Build a configuration instance from parsed matches.

        Parameters
        - matches: argparse.Namespace | Mapping[str, Any]
          Queried by field name; absent names and None values fall back to the
          field default (or the kind's empty value).

        Returns
        - An instance of this configuration type.

        Raises
        - InvalidValueError when a value does not fit its field's kind, or when a
          required field is absent.
        """
        values = {}
        for field in cls.__fields__:
            if (value := _lookup(matches, field.name)) is not Unset:
                values[field.name] = value
        self = cls(**values)
        logger.debug("materialized %r", self)
        return self


class Config(metaclass=ConfigType, fields=BASE_FIELDS):
    """
    Base configuration record: the base flags only.

    Generated configuration types (see configtype()) subclass it. Construct
    instances with ConfigType.materialize() after parsing, or directly with
    keyword arguments (values go through the same conversion rules).
    """

    def __init__(self, /, **values):
        # --version and --help must run even when required options are missing
        exempt = values.get("version") is True or values.get("help") is True
        for field in type(self).__fields__:
            if (value := values.pop(field.name, Unset)) is Unset or value is None:
                if field.required and not exempt:
                    raise InvalidValueError(field.name, None, f"{field.names[-1]} is required")
                value = field.empty
            else:
                value = _convert(field, value)
            object.__setattr__(self, "_" + field.name, value)
        if values:
            raise TypeError(f"{type(self).__name__} got unexpected fields: {', '.join(sorted(values))}")

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __delattr__(self, name, /):
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __eq__(self, other, /):
        if type(self) is not type(other):
            return NotImplemented
        return self.asdict() == other.asdict()

    def __hash__(self):
        return hash((type(self), tuple(self.asdict().values())))

    def __repr__(self):
        return f"{type(self).__name__}({', '.join('%s=%r' % item for item in self.asdict().items())})"

    def __rich_repr__(self):
        yield from self.asdict().items()

    def asdict(self):
        """
        Field values keyed by name, in schema order (base flags first).
        """
        return {field.name: getattr(self, field.name) for field in type(self).__fields__}

    def replace(self, /, **changes):
        """
        Return a copy with some fields replaced (converted like any other input).
        """
        return type(self)(**(self.asdict() | changes))

    __replace__ = replace

    @property
    def verbosity(self):
        """
        Verbosity level: +1 verbose, -1 quiet, 0 otherwise (verbose and quiet
        together cancel out).
        """
        return int(self.verbose) - int(self.quiet)


def configtype(name, fields=(), /):
    """
    Generate the configuration type of an application.

    Parameters
    - name: str
      Class name of the generated type (e.g. "DemoConfig").
    - fields: Iterable[Field]
      Application fields, appended after the base flags.

    Returns
    - A Config subclass whose instances expose every field as a read-only
      attribute.

    Raises
    - SchemaConflictError on duplicate field names (including base flags).
    - ValueError when a field shadows a configuration member.
    """
    if not isinstance(name, str) or not name.isidentifier():
        raise TypeError("configtype() name must be an identifier")
    return ConfigType(name, (Config,), {"__module__": __name__, "__qualname__": name}, fields=tuple(fields))


__all__ = (
    "ConfigType",
    "Config",
    "configtype",
)
