"""Tests for constructor autowiring."""

from typing import Dict, Mapping, Optional

import pytest

from iocbox import (
    ArgumentMapper,
    AutowireError,
    AutowireReason,
    Container,
    ContainerTypeError,
    type_identifier,
)
from wiring_app import (
    AuditLog,
    Chicken,
    Clock,
    Egg,
    Empty,
    FixedClock,
    Greeter,
    Legacy,
    Pipeline,
    Repository,
    Service,
    Settings,
)


class Counter:
    def __init__(self, start: int, labels: Dict[str, str], extra: Mapping):
        self.start = start
        self.labels = labels
        self.extra = extra


class Report:
    def __init__(self, title: "str", log: "AuditLog"):
        self.title = title
        self.log = log


class Positional:
    def __init__(self, clock: Clock, /, label: str = "pos"):
        self.clock = clock
        self.label = label


class TestAutowireBasics:
    """Test the autowire resolution order."""

    def test_missing_scalar_fails(self, wired_container):
        with pytest.raises(AutowireError) as exc_info:
            wired_container.autowire(Service, {})

        error = exc_info.value
        assert error.reason is AutowireReason.UNRESOLVABLE_PARAMETER
        assert error.parameter == "name"
        assert error.declared_type == "str"
        assert error.target == type_identifier(Service)
        assert "name" in str(error)
        assert "try declaring this argument" in str(error).lower()

    def test_resolves_concrete_registered_and_supplied(self, wired_container):
        service = wired_container.autowire(Service, {"name": "x"})

        assert isinstance(service, Service)
        assert isinstance(service.audit, AuditLog)
        assert service.name == "x"
        assert service.clock is wired_container.get_instance(Clock)

    def test_concrete_dependencies_are_fresh(self, wired_container):
        first = wired_container.autowire(Service, {"name": "x"})
        second = wired_container.autowire(Service, {"name": "x"})

        assert first is not second
        assert first.audit is not second.audit
        assert first.clock is second.clock

    def test_supplied_object_is_used_verbatim(self, wired_container):
        audit = AuditLog()
        service = wired_container.autowire(Service, {"name": "x", "audit": audit})

        assert service.audit is audit

    def test_supplied_none_is_used(self, wired_container):
        greeter = wired_container.autowire(Greeter, {"audit": None})
        assert greeter.audit is None

    def test_registered_target_ignores_args(self, wired_container):
        clock = wired_container.autowire(Clock, {"value": 1.0})

        assert clock is wired_container.get_instance(Clock)
        assert clock.now() == 42.0

    def test_registered_dependency_wins_over_nested_mapping(self, wired_container):
        service = wired_container.autowire(Service, {"name": "x", "clock": {"value": 1.0}})
        assert service.clock.now() == 42.0

    def test_string_target(self, wired_container):
        service = wired_container.autowire(type_identifier(Service), {"name": "x"})
        assert isinstance(service, Service)

    def test_args_are_not_mutated(self, wired_container):
        args = {"name": "x"}
        wired_container.autowire(Service, args)
        assert args == {"name": "x"}


class TestAutowireNesting:
    """Test nested argument maps and mapping-typed parameters."""

    def test_nested_mapping_is_passed_down(self, container):
        repository = container.autowire(
            Repository, {"settings": {"dsn": "postgres://db", "options": {"pool": 5}}}
        )

        assert repository.settings.dsn == "postgres://db"
        assert repository.settings.options == {"pool": 5}

    def test_mapping_parameters_take_mappings_verbatim(self, container):
        labels = {"env": "test"}
        counter = container.autowire(Counter, {"start": 3, "labels": labels, "extra": {}})

        assert counter.start == 3
        assert counter.labels is labels
        assert counter.extra == {}

    def test_nested_failure_names_inner_parameter(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(Repository, {"settings": {"dsn": "x"}})

        assert exc_info.value.parameter == "options"
        assert exc_info.value.target == type_identifier(Settings)


class TestAutowireFailures:
    """Test each reason autowiring can fail."""

    def test_unknown_type(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire("no.such.Thing")

        assert exc_info.value.reason is AutowireReason.TYPE_NOT_FOUND
        assert "cannot be found" in str(exc_info.value)
        assert "no.such.Thing" in str(exc_info.value)

    def test_abstract_type_is_not_constructible(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(Clock)
        assert exc_info.value.reason is AutowireReason.TYPE_NOT_FOUND

    def test_builtin_type_is_not_constructible(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire("str")
        assert exc_info.value.reason is AutowireReason.TYPE_NOT_FOUND

    def test_variadic_parameter(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(Pipeline)

        assert exc_info.value.reason is AutowireReason.VARIADIC_PARAMETER
        assert exc_info.value.parameter == "stages"
        assert "variadic arguments may not be autowired" in str(exc_info.value)

    def test_untyped_parameter_fails_even_when_supplied(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(Legacy, {"thing": 1})

        assert exc_info.value.reason is AutowireReason.UNTYPED_PARAMETER
        assert "must have a declared type" in str(exc_info.value)

    def test_circular_dependency(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(Chicken)

        error = exc_info.value
        assert error.reason is AutowireReason.CIRCULAR_DEPENDENCY
        assert error.chain == [
            type_identifier(Chicken),
            type_identifier(Egg),
            type_identifier(Chicken),
        ]
        assert "->" in str(error)

    def test_container_recovers_after_cycle(self, container):
        with pytest.raises(AutowireError):
            container.autowire(Chicken)

        assert isinstance(container.autowire(AuditLog), AuditLog)

    def test_cycle_through_registration(self, container):
        container.add_auto_interface(Chicken, Chicken)

        with pytest.raises(AutowireError) as exc_info:
            container.get_instance(Chicken)
        assert exc_info.value.reason is AutowireReason.CIRCULAR_DEPENDENCY
        assert not container.has_interface(Egg)

    def test_depth_limit(self):
        container = Container(max_autowire_depth=1)

        with pytest.raises(AutowireError) as exc_info:
            container.autowire(Repository, {"settings": {"dsn": "x", "options": {}}})
        assert exc_info.value.reason is AutowireReason.DEPTH_EXCEEDED

    def test_mapping_for_type_that_cannot_be_built(self, wired_container):
        with pytest.raises(AutowireError) as exc_info:
            wired_container.autowire(Service, {"name": {"nested": 1}})

        assert exc_info.value.reason is AutowireReason.UNRESOLVABLE_PARAMETER
        assert exc_info.value.parameter == "name"
        assert exc_info.value.declared_type == "str"

    def test_mapping_for_type_that_cannot_be_built_keeps_default(self, wired_container):
        greeter = wired_container.autowire(Greeter, {"greeting": {"text": "hi"}})
        assert greeter.greeting == "hello"

    @pytest.mark.parametrize("identifier", [".Foo", "..Foo", "a..Foo"])
    def test_empty_module_segment(self, container, identifier):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(identifier)
        assert exc_info.value.reason is AutowireReason.TYPE_NOT_FOUND

    def test_arguments_for_parameterless_constructor(self, container):
        with pytest.raises(AutowireError) as exc_info:
            container.autowire(AuditLog, {"verbose": True, "level": 2})

        error = exc_info.value
        assert error.reason is AutowireReason.UNEXPECTED_ARGUMENTS
        assert error.target == type_identifier(AuditLog)
        assert "level, verbose" in str(error)

    def test_mapped_arguments_for_parameterless_constructor(self):
        container = Container(argument_mapper=ArgumentMapper({AuditLog: {"verbose": True}}))

        with pytest.raises(AutowireError) as exc_info:
            container.autowire(AuditLog)
        assert exc_info.value.reason is AutowireReason.UNEXPECTED_ARGUMENTS

    def test_arguments_for_class_without_constructor_propagate(self, container):
        with pytest.raises(TypeError):
            container.autowire(Empty, {"verbose": True})


class TestAutowireDefaults:
    """Test parameters with defaults, optionals and unusual signatures."""

    def test_default_used_when_unresolvable(self, wired_container):
        greeter = wired_container.autowire(Greeter)

        assert greeter.greeting == "hello"
        assert greeter.clock is wired_container.get_instance(Clock)

    def test_optional_concrete_dependency_is_autowired(self, wired_container):
        greeter = wired_container.autowire(Greeter)
        assert isinstance(greeter.audit, AuditLog)

    def test_builtin_default(self, container):
        assert container.autowire(FixedClock).now() == 0.0
        assert container.autowire(FixedClock, {"value": 5.0}).now() == 5.0

    def test_class_without_constructor(self, container):
        assert isinstance(container.autowire(Empty), Empty)

    def test_constructor_without_parameters(self, container):
        assert isinstance(container.autowire(AuditLog), AuditLog)

    def test_string_annotations_resolve(self, container):
        report = container.autowire(Report, {"title": "Q3"})

        assert report.title == "Q3"
        assert isinstance(report.log, AuditLog)

    def test_positional_only_parameters(self, wired_container):
        positional = wired_container.autowire(Positional)

        assert positional.clock is wired_container.get_instance(Clock)
        assert positional.label == "pos"

    def test_local_class(self, wired_container):
        class Local:
            def __init__(self, clock: Clock, tag: Optional[str] = None):
                self.clock = clock
                self.tag = tag

        local = wired_container.autowire(Local, {"tag": "t"})
        assert local.tag == "t"
        assert local.clock.now() == 42.0


class TestAutoInterface:
    """Test add_auto_interface."""

    def test_lazy_and_shared(self, wired_container):
        before = AuditLog.created
        wired_container.add_auto_interface(Service, Service, {"name": "auto"})
        assert AuditLog.created == before

        service = wired_container.get_instance(Service)
        assert AuditLog.created == before + 1
        assert service.name == "auto"
        assert wired_container.get_instance(Service) is service

    def test_interface_bound_to_implementation(self, container):
        container.add_auto_interface(Clock, FixedClock, {"value": 9.0})
        assert container.get_instance(Clock).now() == 9.0

    def test_registered_dependency_used_by_autowire(self, container):
        container.add_auto_interface(Clock, FixedClock)
        container.add_auto_interface(Greeter, Greeter, {"greeting": "hi"})

        greeter = container.get_instance(Greeter)
        assert greeter.clock is container.get_instance(Clock)
        assert greeter.greeting == "hi"

    def test_strict_mode_checks_autowired_result(self, container):
        container.add_auto_interface(Clock, AuditLog)

        with pytest.raises(ContainerTypeError):
            container.get_instance(Clock)


class TestArgumentMapperIntegration:
    """Test autowire with mapped default arguments."""

    def test_mapped_defaults(self):
        container = Container(argument_mapper=ArgumentMapper({Service: {"name": "default"}}))
        container.add_interface(Clock, lambda: FixedClock(1.0))

        assert container.autowire(Service, {}).name == "default"
        assert container.autowire(Service).name == "default"

    def test_caller_args_take_precedence(self):
        container = Container(argument_mapper=ArgumentMapper({Service: {"name": "default"}}))
        container.add_interface(Clock, lambda: FixedClock(1.0))

        assert container.autowire(Service, {"name": "override"}).name == "override"

    def test_mapped_nested_type(self):
        mapper = ArgumentMapper({
            type_identifier(Settings): lambda: {"dsn": "mapped://", "options": {"retries": 2}},
        })
        container = Container(argument_mapper=mapper)

        repository = container.autowire(Repository)
        assert repository.settings.dsn == "mapped://"
        assert repository.settings.options == {"retries": 2}

    def test_nested_args_merge_with_mapped_defaults(self):
        mapper = ArgumentMapper({Settings: {"dsn": "mapped://", "options": {}}})
        container = Container(argument_mapper=mapper)

        repository = container.autowire(Repository, {"settings": {"dsn": "explicit://"}})
        assert repository.settings.dsn == "explicit://"
        assert repository.settings.options == {}

    def test_registered_target_skips_mapper(self):
        calls = []
        mapper = ArgumentMapper({Clock: lambda: calls.append(1) or {}})
        container = Container(argument_mapper=mapper)
        container.add_interface(Clock, FixedClock)

        container.autowire(Clock)
        assert calls == []
