"""iocbox: a small inversion-of-control container with constructor autowiring."""

from .argument_mapper import ArgumentMapper, DeferredArguments, LiteralArguments
from .config import ContainerConfig, load_config
from .container import Container
from .exceptions import (
    AutowireError,
    AutowireReason,
    ConfigError,
    ContainerTypeError,
    DuplicateRegistrationError,
    ExitCode,
    IocboxError,
    NotRegisteredError,
    ResolutionError,
    ValidationError,
)
from .introspection import ConstructorParameter, TypeIntrospector, type_identifier

__version__ = "0.1.0"

__all__ = [
    "ArgumentMapper",
    "AutowireError",
    "AutowireReason",
    "ConfigError",
    "ConstructorParameter",
    "Container",
    "ContainerConfig",
    "ContainerTypeError",
    "DeferredArguments",
    "DuplicateRegistrationError",
    "ExitCode",
    "IocboxError",
    "LiteralArguments",
    "NotRegisteredError",
    "ResolutionError",
    "TypeIntrospector",
    "ValidationError",
    "load_config",
    "type_identifier",
    "__version__",
]
