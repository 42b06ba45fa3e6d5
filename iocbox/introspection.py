"""Type introspection for autowiring.

Maps identifiers to classes and reads constructor signatures. The container
only ever queries this module; nothing here has side effects beyond
importing the module an identifier points at and remembering classes it has
already seen.
"""

import builtins
import importlib
import inspect
import sys
import types
import typing
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, List, NamedTuple, Optional

from .logging_config import get_logger
from .validation import validate_identifier

logger = get_logger(__name__)

MAPPING_TYPES = (dict, Mapping, MutableMapping)

_UNION_TYPES = tuple(
    t for t in (typing.Union, getattr(types, "UnionType", None)) if t is not None
)


def type_identifier(cls: type) -> str:
    """Canonical identifier for a class: ``module.qualname``, bare name for builtins."""
    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", cls.__name__)
    if module in (None, "builtins"):
        return qualname
    return f"{module}.{qualname}"


class ConstructorParameter(NamedTuple):
    """One constructor parameter as the container sees it."""

    name: str
    declared_type: Optional[str]
    is_variadic: bool
    kind: Any
    has_default: bool
    default: Any = inspect.Parameter.empty


class TypeIntrospector:
    """Resolves identifiers to classes and reports constructor parameters."""

    def __init__(self) -> None:
        self._known_types: Dict[str, type] = {}

    def identify(self, target: Any) -> str:
        """Turn a class or identifier string into an identifier.

        Classes are remembered so that identifiers of classes which cannot be
        imported by name (for example those defined inside a function) still
        resolve.
        """
        if isinstance(target, type):
            identifier = type_identifier(target)
            self._known_types[identifier] = target
            return identifier
        return validate_identifier(target)

    def resolve_type(self, identifier: str) -> Optional[type]:
        """Return the class an identifier names, or None."""
        known = self._known_types.get(identifier)
        if known is not None:
            return known

        candidate = self._import_path(identifier)
        if isinstance(candidate, type):
            self._known_types[identifier] = candidate
            return candidate
        return None

    @staticmethod
    def _import_path(identifier: str) -> Any:
        if "." not in identifier:
            return getattr(builtins, identifier, None)

        parts = identifier.split(".")
        if not all(parts):
            return None
        for index in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:index])
            try:
                target: Any = importlib.import_module(module_name)
            except ImportError:
                continue

            for attribute in parts[index:]:
                target = getattr(target, attribute, None)
                if target is None:
                    return None
            return target
        return None

    def is_constructible(self, identifier: str) -> bool:
        """True if identifier names a concrete, non-builtin class."""
        cls = self.resolve_type(identifier)
        if cls is None:
            return False
        if cls.__module__ == "builtins":
            return False
        if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            return False
        return True

    def is_mapping_type(self, identifier: Optional[str]) -> bool:
        """True if identifier is the generic mapping type (dict, Mapping, MutableMapping)."""
        if not identifier:
            return False
        cls = self.resolve_type(identifier)
        return cls is not None and cls in MAPPING_TYPES

    def is_instance(self, obj: Any, identifier: str) -> bool:
        cls = self.resolve_type(identifier)
        if cls is None:
            return False
        try:
            return isinstance(obj, cls)
        except TypeError:
            # protocols that are not runtime_checkable refuse isinstance()
            return False

    def constructor_parameters(self, cls: type) -> Optional[List[ConstructorParameter]]:
        """Ordered constructor parameters of cls, excluding self.

        Returns None when the class has no inspectable constructor of its own.
        """
        if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
            return None

        try:
            signature = inspect.signature(cls)
        except (TypeError, ValueError):
            logger.debug(f"No inspectable constructor for {type_identifier(cls)}")
            return None

        hints = self._type_hints(cls)
        parameters = []
        for name, param in signature.parameters.items():
            annotation = hints.get(name, param.annotation)
            if isinstance(annotation, str):
                annotation = _resolve_annotation(annotation, cls)

            parameters.append(ConstructorParameter(
                name=name,
                declared_type=self._declared_identifier(annotation),
                is_variadic=param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD),
                kind=param.kind,
                has_default=param.default is not param.empty,
                default=param.default,
            ))
        return parameters

    @staticmethod
    def _type_hints(cls: type) -> Dict[str, Any]:
        constructor = cls.__init__ if cls.__init__ is not object.__init__ else cls.__new__
        try:
            return typing.get_type_hints(constructor, localns={cls.__name__: cls})
        except (NameError, TypeError, AttributeError) as e:
            # fall back to resolving each raw annotation on its own
            logger.debug(f"Type hints of {type_identifier(cls)} not fully resolvable: {e}")
            return {}

    def _declared_identifier(self, annotation: Any) -> Optional[str]:
        if annotation is inspect.Parameter.empty or annotation is None:
            return None
        if isinstance(annotation, str):
            return annotation.strip() or None

        origin = typing.get_origin(annotation)
        if origin in _UNION_TYPES:
            members = [a for a in typing.get_args(annotation) if a is not type(None)]
            if len(members) != 1:
                return repr(annotation)
            return self._declared_identifier(members[0])

        if isinstance(origin, type):
            annotation = origin

        if isinstance(annotation, type):
            return self.identify(annotation)
        return repr(annotation)


def _resolve_annotation(annotation: str, cls: type) -> Any:
    """Resolve a string annotation against the module that defines cls."""
    if annotation in (cls.__name__, cls.__qualname__):
        return cls

    module = sys.modules.get(cls.__module__)
    target: Any = module
    for attribute in annotation.split("."):
        target = getattr(target, attribute, None)
        if target is None:
            break

    if isinstance(target, type):
        return target

    builtin = getattr(builtins, annotation, None)
    if isinstance(builtin, type):
        return builtin
    return annotation
