"""Inversion of control container.

The container keeps a single shared reference to every registered service.
Services are registered with ``add_interface``; the factory holds the call
that builds the object. Nothing is instantiated until ``new_instance`` or
``get_instance`` is called, and ``get_instance`` caches the first result for
the lifetime of the container.

All services should be registered in one place (the composition root). The
container is not meant to be handed around as a service locator.

Example::

    container = Container()
    container.add_interface(Mailer, lambda: SmtpMailer("localhost"))
    container.add_auto_interface(SignupService, SignupService)

    signup = container.get_instance(SignupService)

In strict mode (the default) every object a factory returns is checked
against the class its identifier names.

Registration and resolution are not synchronised. Register everything from a
single thread before resolving from several.
"""

import inspect
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from .argument_mapper import ArgumentMapper
from .config import ContainerConfig, DEFAULT_MAX_AUTOWIRE_DEPTH
from .exceptions import (
    AutowireError,
    AutowireReason,
    ContainerTypeError,
    DuplicateRegistrationError,
    NotRegisteredError,
    ValidationError,
)
from .introspection import TypeIntrospector, type_identifier
from .logging_config import LoggerMixin
from .validation import validate_factory

_MISSING = object()


class Container(LoggerMixin):
    """Registry of identifier -> factory with a shared instance cache."""

    def __init__(
        self,
        strict: bool = True,
        argument_mapper: Optional[ArgumentMapper] = None,
        introspector: Optional[TypeIntrospector] = None,
        max_autowire_depth: int = DEFAULT_MAX_AUTOWIRE_DEPTH,
    ) -> None:
        """
        Args:
            strict: Check every produced instance against its identifier
            argument_mapper: Default constructor arguments used by autowire
            introspector: Type introspection facility
            max_autowire_depth: Longest chain of nested autowire calls allowed
        """
        if max_autowire_depth < 1:
            raise ValidationError(
                f"max_autowire_depth must be positive, got {max_autowire_depth}",
                field="max_autowire_depth",
                value=max_autowire_depth,
            )

        self._strict = strict
        self._argument_mapper = argument_mapper
        self._introspector = introspector or TypeIntrospector()
        self._max_autowire_depth = max_autowire_depth
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._instances: Dict[str, Any] = {}
        self._autowiring: List[str] = []

    @classmethod
    def from_config(
        cls,
        config: ContainerConfig,
        argument_mapper: Optional[ArgumentMapper] = None,
    ) -> "Container":
        return cls(
            strict=config.strict,
            argument_mapper=argument_mapper,
            max_autowire_depth=config.max_autowire_depth,
        )

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def argument_mapper(self) -> Optional[ArgumentMapper]:
        return self._argument_mapper

    @property
    def introspector(self) -> TypeIntrospector:
        return self._introspector

    def _key(self, identifier: Any) -> str:
        return self._introspector.identify(identifier)

    def add_interface(self, identifier: Any, factory: Callable[[], Any], overwrite: bool = False) -> None:
        """Register a factory responsible for creating instances of identifier.

        Overwriting does not evict an instance that get_instance already cached.

        Raises:
            ValidationError: If identifier is empty or factory is not callable
            DuplicateRegistrationError: If identifier exists and overwrite is False
        """
        key = self._key(identifier)
        validate_factory(factory)

        if key in self._factories and not overwrite:
            raise DuplicateRegistrationError(key)

        self._factories[key] = factory
        self.logger.debug(
            "Registered" + (" (overwrite)" if overwrite else ""), extra={"identifier": key}
        )

    def add_auto_interface(
        self,
        identifier: Any,
        target_type: Any,
        args: Optional[Mapping] = None,
        overwrite: bool = False,
    ) -> None:
        """Register identifier with a factory that autowires target_type on first use.

        A class registered as its own implementation is built directly;
        going through autowire would find the registration and recurse.
        """
        key = self._key(identifier)
        target = self._key(target_type)

        if target == key:
            self.add_interface(key, lambda: self._build(target, args), overwrite)
        else:
            self.add_interface(key, lambda: self.autowire(target, args), overwrite)

    def add_instance(self, identifier: Any, instance: Any, overwrite: bool = False) -> None:
        """Register a ready-made instance as the shared instance of identifier."""
        key = self._key(identifier)
        self._check_type(key, instance)
        self.add_interface(key, lambda: instance, overwrite)
        self._instances[key] = instance

    def has_interface(self, identifier: Any) -> bool:
        """Test if identifier has been registered with this container.

        Raises:
            ValidationError: If identifier is empty or not a string or class
        """
        return self._key(identifier) in self._factories

    def get_instance_list(self) -> List[str]:
        """Identifiers of every registration, in insertion order."""
        return list(self._factories)

    def new_instance(self, identifier: Any) -> Any:
        """Create a new instance of identifier; never cached.

        Raises:
            NotRegisteredError: If identifier has not been registered
            ContainerTypeError: In strict mode, if the factory returned the wrong type
        """
        key = self._registered_key(identifier)
        instance = self._factories[key]()
        self._check_type(key, instance)
        return instance

    def get_instance(self, identifier: Any) -> Any:
        """Retrieve the shared instance of identifier, creating it on first call."""
        key = self._registered_key(identifier)

        if key not in self._instances:
            self._instances[key] = self.new_instance(key)
            self.logger.debug("Created shared instance", extra={"identifier": key})

        return self._instances[key]

    def autowire(self, target_type: Any, args: Optional[Mapping] = None) -> Any:
        """Build target_type, resolving its constructor arguments.

        A registered target is returned through get_instance and args are
        ignored. Otherwise each constructor parameter is taken, in order, from
        args, from the container (registered declared type), or by autowiring
        its declared class. Parameters with a default that none of these can
        supply keep their default. The result is never cached.

        Args:
            target_type: Class or identifier to build
            args: Parameter name -> value. A nested mapping under a parameter
                name is passed on as the args of that parameter's own autowire.

        Raises:
            AutowireError: If the target or one of its parameters cannot be resolved
        """
        target = self._key(target_type)

        if self.has_interface(target):
            return self.get_instance(target)

        return self._build(target, args)

    def _build(self, target: str, args: Optional[Mapping]) -> Any:
        if args is None:
            args = {}
        if self._argument_mapper is not None:
            args = self._argument_mapper.map(target, args)

        if target in self._autowiring:
            chain = self._autowiring[self._autowiring.index(target):] + [target]
            raise AutowireError(
                f"Circular dependency while autowiring {target}",
                target=target,
                reason=AutowireReason.CIRCULAR_DEPENDENCY,
                chain=chain,
                suggestion="Register one of the classes in the cycle with an explicit factory",
            )

        if len(self._autowiring) >= self._max_autowire_depth:
            raise AutowireError(
                f"Autowiring {target} exceeds the maximum depth of {self._max_autowire_depth}",
                target=target,
                reason=AutowireReason.DEPTH_EXCEEDED,
                chain=self._autowiring + [target],
            )

        if not self._introspector.is_constructible(target):
            raise AutowireError(
                f"{target} cannot be found",
                target=target,
                reason=AutowireReason.TYPE_NOT_FOUND,
                suggestion="Use an importable, concrete class or register the identifier first",
            )

        cls = self._introspector.resolve_type(target)
        self._autowiring.append(target)
        try:
            instance = self._construct(target, cls, args)
        finally:
            self._autowiring.pop()

        self.logger.debug("Autowired", extra={"target": target})
        return instance

    def _construct(self, target: str, cls: type, args: Mapping) -> Any:
        parameters = self._introspector.constructor_parameters(cls)
        if parameters is None:
            # no inspectable constructor; a TypeError from cls itself propagates
            return cls(**args)
        if not parameters:
            if args:
                raise AutowireError(
                    f"{target} takes no constructor arguments, got {', '.join(sorted(args))}",
                    target=target,
                    reason=AutowireReason.UNEXPECTED_ARGUMENTS,
                    suggestion=f"Remove the arguments mapped or passed for {target}",
                )
            return cls()

        positional: List[Any] = []
        keywords: Dict[str, Any] = {}

        for param in parameters:
            if param.is_variadic:
                raise AutowireError(
                    f"{target} constructor argument {param.name}: variadic arguments may not be autowired",
                    target=target,
                    reason=AutowireReason.VARIADIC_PARAMETER,
                    parameter=param.name,
                )

            if param.declared_type is None:
                raise AutowireError(
                    f"{target} constructor argument {param.name}: "
                    "constructor arguments must have a declared type",
                    target=target,
                    reason=AutowireReason.UNTYPED_PARAMETER,
                    parameter=param.name,
                    suggestion=f"Add a type annotation to {param.name}",
                )

            value = self._resolve_parameter(param.name, param.declared_type, args)

            if value is _MISSING:
                if not param.has_default:
                    raise AutowireError(
                        f"Cannot determine value for {target} constructor argument "
                        f"{param.name} of type {param.declared_type}. Try declaring this argument",
                        target=target,
                        reason=AutowireReason.UNRESOLVABLE_PARAMETER,
                        parameter=param.name,
                        declared_type=param.declared_type,
                        suggestion=f"Pass {param.name} in args, map it with an ArgumentMapper "
                                   f"or register {param.declared_type}",
                    )
                if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                    positional.append(param.default)
                continue

            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                positional.append(value)
            else:
                keywords[param.name] = value

        return cls(*positional, **keywords)

    def _resolve_parameter(self, name: str, declared_type: str, args: Mapping) -> Any:
        supplied = args.get(name, _MISSING)

        if supplied is not _MISSING:
            if not isinstance(supplied, Mapping) or self._introspector.is_mapping_type(declared_type):
                return supplied

        if self.has_interface(declared_type):
            return self.get_instance(declared_type)

        if self._introspector.is_constructible(declared_type):
            nested = supplied if isinstance(supplied, Mapping) else {}
            return self.autowire(declared_type, nested)

        return _MISSING

    def _registered_key(self, identifier: Any) -> str:
        key = self._key(identifier)
        if key not in self._factories:
            raise NotRegisteredError(key)
        return key

    def _check_type(self, key: str, instance: Any) -> None:
        if self._strict and not self._introspector.is_instance(instance, key):
            raise ContainerTypeError(key, type_identifier(type(instance)))

    def __contains__(self, identifier: Any) -> bool:
        return self.has_interface(identifier)

    def __len__(self) -> int:
        return len(self._factories)

    def __repr__(self) -> str:
        return f"Container(strict={self._strict}, interfaces={len(self._factories)})"
