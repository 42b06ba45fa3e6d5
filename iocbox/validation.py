"""Input validation shared by the container and the argument mapper."""

import inspect
from typing import Any, Callable

from .exceptions import ValidationError


def validate_identifier(identifier: Any, field: str = "identifier") -> str:
    """Validate a registry identifier.

    Args:
        identifier: Candidate identifier

    Returns:
        The identifier, unchanged

    Raises:
        ValidationError: If identifier is not a non-empty, non-whitespace string
    """
    if identifier is None:
        raise ValidationError(
            f"{field} must not be None",
            field=field,
            suggestion="Pass an interface/class name or a class object"
        )

    if not isinstance(identifier, str):
        raise ValidationError(
            f"{field} must be a string, got {type(identifier).__name__}",
            field=field,
            value=identifier,
            suggestion="Pass an interface/class name or a class object"
        )

    if not identifier.strip():
        raise ValidationError(
            f"{field} must not be null or empty",
            field=field,
            value=repr(identifier),
            suggestion="Pass a non-empty interface/class name"
        )

    return identifier


def validate_factory(factory: Any, field: str = "factory") -> Callable[[], Any]:
    """Validate that a factory is present and callable."""
    if factory is None:
        raise ValidationError(
            f"{field} must not be None",
            field=field,
            suggestion="Pass a zero-argument callable that returns the instance"
        )

    if not callable(factory):
        raise ValidationError(
            f"{field} must be callable, got {type(factory).__name__}",
            field=field,
            value=factory,
            suggestion="Pass a zero-argument callable that returns the instance"
        )

    return factory


def accepts_no_arguments(func: Callable[..., Any]) -> bool:
    """Test whether a callable can be invoked with no arguments.

    Callables without an inspectable signature (some builtins) are assumed
    to accept none.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return True

    try:
        signature.bind()
    except TypeError:
        return False
    return True
