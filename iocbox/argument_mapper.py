"""Default constructor arguments per type.

An ArgumentMapper lets configuration live outside the composition root. It
maps an interface/class identifier to the arguments that ``autowire`` should
use when it builds that type::

    mapper = ArgumentMapper({
        "app.views.ThemeConfig": {"theme_dir": "/srv/themes/default"},
        "app.db.Engine": lambda: {"dsn": os.environ["DATABASE_URL"]},
    })

Arguments passed to ``autowire`` always take precedence over mapped ones.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .exceptions import NotRegisteredError, ResolutionError, ValidationError
from .introspection import type_identifier
from .logging_config import get_logger
from .validation import accepts_no_arguments, validate_identifier

logger = get_logger(__name__)


@dataclass(frozen=True)
class LiteralArguments:
    """A fixed argument map."""

    values: Mapping[str, Any]

    def resolve(self, identifier: str) -> Mapping[str, Any]:
        return self.values


@dataclass(frozen=True)
class DeferredArguments:
    """A producer called on every lookup; it must return an argument map."""

    producer: Callable[[], Any]

    def resolve(self, identifier: str) -> Mapping[str, Any]:
        produced = self.producer()
        if not isinstance(produced, Mapping):
            raise ResolutionError(identifier, type_identifier(type(produced)))
        return produced


ArgumentEntry = Union[LiteralArguments, DeferredArguments]


class ArgumentMapper:
    """Immutable table of identifier -> default constructor arguments."""

    def __init__(self, table: Mapping[Any, Any]):
        if not isinstance(table, Mapping):
            raise ValidationError(
                f"Argument table must be a mapping, got {type(table).__name__}",
                field="table",
            )

        entries: Dict[str, ArgumentEntry] = {}
        for position, (key, value) in enumerate(table.items()):
            identifier = self._key(key, position)
            entries[identifier] = self._entry(identifier, value)

        self._entries = MappingProxyType(entries)
        logger.debug(f"Argument mapper created with {len(entries)} entries")

    @staticmethod
    def _key(key: Any, position: int) -> str:
        if isinstance(key, type):
            return type_identifier(key)
        if not isinstance(key, str) or not key.strip():
            raise ValidationError(
                f"Key for element at position {position} must be a non-empty string",
                field="key",
                value=key,
                suggestion="Use interface/class names (or classes) as keys",
            )
        return key

    @staticmethod
    def _entry(identifier: str, value: Any) -> ArgumentEntry:
        if isinstance(value, Mapping):
            return LiteralArguments(MappingProxyType(dict(value)))
        if callable(value) and accepts_no_arguments(value):
            return DeferredArguments(value)
        raise ValidationError(
            f"{identifier} value must be a mapping or a zero-argument callable",
            field=identifier,
            value=value,
        )

    def has_argument(self, identifier: Any) -> bool:
        """Test if the mapper contains the supplied interface/class."""
        if isinstance(identifier, type):
            identifier = type_identifier(identifier)
        return isinstance(identifier, str) and bool(identifier.strip()) and identifier in self._entries

    def get_arguments(self, identifier: Any) -> Mapping[str, Any]:
        """Retrieve the argument map for an interface/class.

        Deferred entries are produced again on every call.

        Raises:
            NotRegisteredError: If the identifier is not in the table
            ResolutionError: If a deferred entry produces something other than a mapping
        """
        if isinstance(identifier, type):
            identifier = type_identifier(identifier)
        validate_identifier(identifier)
        if identifier not in self._entries:
            raise NotRegisteredError(identifier, registry="argument mapper")
        return self._entries[identifier].resolve(identifier)

    def map(self, identifier: Any, args: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
        """Merge the mapped defaults for identifier under args.

        Keys already present in args are kept. Returns args itself when the
        identifier has no entry.
        """
        if isinstance(identifier, type):
            identifier = type_identifier(identifier)
        if args is None:
            args = {}
        if not self.has_argument(identifier):
            return args

        merged = dict(args)
        for name, value in self.get_arguments(identifier).items():
            if name not in merged:
                merged[name] = value

        logger.debug(
            f"Mapped {len(merged) - len(args)} default argument(s)",
            extra={"identifier": identifier},
        )
        return merged

    def identifiers(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, identifier: Any) -> bool:
        return self.has_argument(identifier)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ArgumentMapper({self.identifiers()!r})"
