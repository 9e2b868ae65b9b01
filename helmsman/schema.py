"""
Helmsman argument schema builder and argparse adapter.

Scope
- build_schema(fields) turns the application's fields (prefixed by the base
  flags) into an ordered tuple of parser directives, rejecting any clash of
  field names, short flags or long flags with SchemaConflictError.
- Schema.parser(prog, descr) renders the directives into an argparse parser.
- Schema.parse(tokens, prog) runs that parser and returns the raw namespace.

Parser contract
- help/version handling, abbreviations and defaults are all disabled on the
  argparse side: options absent from the command line are also absent from the
  namespace, and values stay raw strings. The configuration materializer owns
  defaults and conversion.
- Parser errors never exit the process; they raise UnparsedArgumentsError.
"""
import argparse
import logging
from typing import NamedTuple

from .faults import SchemaConflictError, UnparsedArgumentsError
from .fields import BASE_FIELDS, Kind, Field
from .utils import *
from .utils import DeclarativeType

logger = logging.getLogger(__name__)


class Directive(NamedTuple):
    """
    One parser instruction derived from a field.

    nargs is 0 for flags and 1 for valued options; a repeatable directive takes
    one value per occurrence and collects them in order.
    default is the value materialized when the option is absent.
    """
    dest: str
    names: tuple
    kind: Kind
    nargs: int
    repeatable: bool
    required: bool
    default: object
    help: object
    metavar: object

    @classmethod
    def from_field(cls, field, /):
        return cls(
            field.name,
            field.names,
            field.kind,
            field.kind.nargs,
            field.kind.repeatable,
            field.required,
            field.empty,
            field.help,
            field.metavar,
        )


class _Parser(argparse.ArgumentParser):
    """
    ArgumentParser that raises instead of printing usage and exiting.
    """

    def error(self, message):
        raise UnparsedArgumentsError(message, prog=self.prog)


class Schema(metaclass=DeclarativeType):
    """
    Ordered parser directives for one application (base flags first).

    Properties
    - fields: the fields the schema was built from, base flags included.
    - directives: one Directive per field, same order.
    """

    __introspectable__ = (
        "fields",
        "directives",
    )

    __displayable__ = (
        "directives",
    )

    def __new__(cls, fields, /):
        self = super().__new__(cls)
        self._fields = tuple(fields)
        self._directives = tuple(map(Directive.from_field, self._fields))
        return self

    def __iter__(self):
        return iter(self._directives)

    def __len__(self):
        return len(self._directives)

    def directive(self, dest, /):
        """
        Return the directive for a destination name (KeyError when unknown).
        """
        for directive in self._directives:
            if directive.dest == dest:
                return directive
        raise KeyError(dest)

    def parser(self, prog=Unset, descr=Unset):
        """
        Render the directives into an argparse parser.

        Parameters
        - prog: Unset | str
          Program name used in parser error messages.
        - descr: Unset | str
          Description attached to the parser.

        Returns
        - argparse.ArgumentParser whose error() raises UnparsedArgumentsError.
        """
        parser = _Parser(
            prog=coalesce(prog),
            description=coalesce(descr),
            add_help=False,
            allow_abbrev=False,
            argument_default=argparse.SUPPRESS,
        )
        for directive in self._directives:
            options = {
                "dest": directive.dest,
                "default": argparse.SUPPRESS,
                "help": directive.help,
            }
            if not directive.nargs:
                options |= {"action": "store_true"}
            elif directive.repeatable:
                options |= {"action": "append", "metavar": directive.metavar}
            else:
                options |= {"action": "store", "metavar": directive.metavar}
            parser.add_argument(*directive.names, **options)
        return parser

    def parse(self, tokens, /, prog=Unset):
        """
        Parse tokens into a raw namespace.

        Only options present in tokens appear in the namespace; flags map to
        True, single values to their raw string, repeatable values to the list of
        raw strings given by each occurrence.

        Raises
        - UnparsedArgumentsError on unknown switches, missing values or stray
          positional tokens.
        """
        tokens = list(tokens)
        logger.debug("parsing %r", tokens)
        namespace = self.parser(prog).parse_args(tokens)
        logger.debug("parsed %r", namespace)
        return namespace


def build_schema(fields=(), /):
    """
    Build the argument schema of an application.

    Parameters
    - fields: Iterable[Field]
      Application fields in declaration order (base flags are added in front).

    Returns
    - Schema

    Raises
    - TypeError when an item is not a Field.
    - SchemaConflictError when two fields share a name, a short flag or a long
      flag (base flags included). The error carries both fields and the
      clashing identity ("count", "-c", "--count").
    """
    fields = tuple(fields)
    for field in fields:
        if not isinstance(field, Field):
            raise TypeError("build_schema() argument must be an iterable of fields")

    claimed = {}
    for field in BASE_FIELDS + fields:
        for identity in (field.name, *field.names):
            if identity in claimed:
                raise SchemaConflictError(claimed[identity], field, identity)
            claimed[identity] = field

    schema = Schema(BASE_FIELDS + fields)
    logger.debug("built schema with %d directives", len(schema))
    return schema


__all__ = (
    "Directive",
    "Schema",
    "build_schema",
)
