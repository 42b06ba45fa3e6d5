"""Exception hierarchy for iocbox."""

import sys
from typing import Optional, Any, Dict, List
from enum import Enum


class ExitCode(Enum):
    """Exit codes for different error types."""
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIGURATION_ERROR = 2
    REGISTRATION_ERROR = 3
    RESOLUTION_ERROR = 4
    VALIDATION_ERROR = 5


class AutowireReason(Enum):
    """Why an autowire call could not build its target."""
    TYPE_NOT_FOUND = "type_not_found"
    VARIADIC_PARAMETER = "variadic_parameter"
    UNTYPED_PARAMETER = "untyped_parameter"
    UNRESOLVABLE_PARAMETER = "unresolvable_parameter"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    DEPTH_EXCEEDED = "depth_exceeded"
    UNEXPECTED_ARGUMENTS = "unexpected_arguments"


class IocboxError(Exception):
    """Base exception for all iocbox errors."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
        exit_code: ExitCode = ExitCode.GENERAL_ERROR
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.suggestion = suggestion
        self.exit_code = exit_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        msg = f"Error: {self.message}"

        if self.context:
            context_parts = []
            for key, value in self.context.items():
                context_parts.append(f"{key}={value}")
            if context_parts:
                msg += f" ({', '.join(context_parts)})"

        if self.suggestion:
            msg += f"\nSuggestion: {self.suggestion}"

        return msg


class ValidationError(IocboxError, ValueError):
    """Malformed identifiers, factories or argument tables."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None
    ):
        error_context = context or {}
        if field:
            error_context['field'] = field
        if value is not None:
            error_context['value'] = str(value)[:50] + "..." if len(str(value)) > 50 else str(value)

        default_suggestion = suggestion or "Check the input and try again"
        if field and not suggestion:
            default_suggestion += f". Verify that '{field}' has a valid value"

        super().__init__(
            message,
            context=error_context,
            suggestion=default_suggestion,
            exit_code=ExitCode.VALIDATION_ERROR
        )


class ConfigError(IocboxError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None
    ):
        error_context = context or {}
        if config_path:
            error_context['config_path'] = config_path

        default_suggestion = suggestion or "Check your configuration file and environment variables"
        if config_path and not suggestion:
            default_suggestion += f". Verify that {config_path} exists and is readable"

        super().__init__(
            message,
            context=error_context,
            suggestion=default_suggestion,
            exit_code=ExitCode.CONFIGURATION_ERROR
        )


class DuplicateRegistrationError(IocboxError):
    """An identifier was registered twice without overwrite."""

    def __init__(self, identifier: str, suggestion: Optional[str] = None):
        self.identifier = identifier
        super().__init__(
            f"{identifier} has already been added to this container",
            context={'identifier': identifier},
            suggestion=suggestion or "Pass overwrite=True to replace the existing factory",
            exit_code=ExitCode.REGISTRATION_ERROR
        )


class NotRegisteredError(IocboxError, LookupError):
    """An identifier was queried that nothing registered."""

    def __init__(
        self,
        identifier: str,
        registry: str = "container",
        suggestion: Optional[str] = None
    ):
        self.identifier = identifier
        super().__init__(
            f"{identifier} has not been registered with this {registry}",
            context={'identifier': identifier},
            suggestion=suggestion or f"Register {identifier} in the composition root before resolving it",
            exit_code=ExitCode.REGISTRATION_ERROR
        )


class ContainerTypeError(IocboxError, TypeError):
    """Strict mode: a factory produced an object of the wrong type."""

    def __init__(self, identifier: str, actual: str, suggestion: Optional[str] = None):
        self.identifier = identifier
        self.expected = identifier
        self.actual = actual
        super().__init__(
            f"Container contains an incorrect definition for type {identifier}, got {actual}",
            context={'expected': identifier, 'actual': actual},
            suggestion=suggestion or "Make the factory return an instance of the registered type, "
                                     "or create the container with strict=False",
            exit_code=ExitCode.RESOLUTION_ERROR
        )


class AutowireError(IocboxError):
    """Autowiring could not build its target."""

    def __init__(
        self,
        message: str,
        target: str,
        reason: AutowireReason,
        parameter: Optional[str] = None,
        declared_type: Optional[str] = None,
        chain: Optional[List[str]] = None,
        suggestion: Optional[str] = None
    ):
        self.target = target
        self.reason = reason
        self.parameter = parameter
        self.declared_type = declared_type
        self.chain = list(chain or [])

        error_context: Dict[str, Any] = {'target': target, 'reason': reason.value}
        if parameter:
            error_context['parameter'] = parameter
        if declared_type:
            error_context['declared_type'] = declared_type
        if self.chain:
            error_context['chain'] = " -> ".join(self.chain)

        super().__init__(
            message,
            context=error_context,
            suggestion=suggestion,
            exit_code=ExitCode.RESOLUTION_ERROR
        )


class ResolutionError(IocboxError):
    """A deferred argument producer returned something other than a mapping."""

    def __init__(self, identifier: str, actual_type: str):
        self.identifier = identifier
        self.actual_type = actual_type
        super().__init__(
            f"Stored value for {identifier} is a producer and its result must be a mapping. Got {actual_type}.",
            context={'identifier': identifier, 'actual_type': actual_type},
            suggestion="Return a dict of parameter name -> value from the producer",
            exit_code=ExitCode.RESOLUTION_ERROR
        )


def handle_cli_error(error: Exception, verbose: bool = False) -> None:
    """Handle CLI errors with appropriate exit codes and user-friendly messages."""
    from rich import print
    from rich.panel import Panel
    from rich.text import Text

    if isinstance(error, IocboxError):
        error_text = Text(str(error))
        print(Panel(error_text, title="[red]iocbox error[/]", border_style="red"))

        if verbose:
            import traceback
            print("\n[dim]Debug information:[/]")
            traceback.print_exception(type(error), error, error.__traceback__)

        sys.exit(error.exit_code.value)
    else:
        print(f"[red]Unexpected error: {error}[/]")

        if verbose:
            import traceback
            print("\n[dim]Debug information:[/]")
            traceback.print_exception(type(error), error, error.__traceback__)
            print(f"[dim]Error type: {type(error).__name__}[/]")
        else:
            print("[dim]Run with --verbose for detailed error information[/]")

        sys.exit(ExitCode.GENERAL_ERROR.value)
