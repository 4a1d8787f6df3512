"""Tests for resolving capabilities through the injector."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Optional, Protocol

import pytest

from injection_kit import (
    InjectionRule,
    Injector,
    ParameterCastingError,
    UndefinedInjectionError,
)


class Greeter(Protocol):
    def greet(self) -> str: ...


class ConcreteGreeter:
    def __init__(self, greeting: str) -> None:
        self.greeting = greeting

    def greet(self) -> str:
        return self.greeting


class Logger:
    pass


class DefaultLogger(Logger):
    pass


class ReportLogger(Logger):
    pass


class ReportModule:
    pass


class SomeOtherModule:
    pass


class Dummy:
    pass


class DummyForDestination(Dummy):
    pass


class Unknown:
    pass


class Settings:
    def __init__(self, name: str) -> None:
        self.name = name


class Configured:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings


class CountingFactory:
    """Factory recording how often it was invoked."""

    def __init__(self, product: type) -> None:
        self.product = product
        self.calls = 0

    def __call__(self) -> object:
        self.calls += 1
        return self.product()


@pytest.fixture
def injector() -> Iterator[Injector]:
    injector = Injector()
    yield injector
    injector.reset()


def test_greeter_singleton_returns_same_instance(injector: Injector) -> None:
    """A singleton rule should return the same greeter on every call."""

    injector.add(InjectionRule.shared(Greeter, lambda: ConcreteGreeter("hi")))

    first = injector.inject(Greeter)
    second = injector.inject(Greeter)

    assert isinstance(first, ConcreteGreeter)
    assert first.greet() == "hi"
    assert second is first


def test_singleton_factory_invoked_once(injector: Injector) -> None:
    """The factory of a singleton rule should run only once."""

    factory = CountingFactory(Dummy)
    injector.add(InjectionRule.shared(Dummy, factory))

    first = injector.inject(Dummy)
    second = injector.inject(Dummy)

    assert first is second
    assert factory.calls == 1


def test_non_singleton_rule_builds_fresh_instances(injector: Injector) -> None:
    """Plain rules should build a new instance on every call."""

    factory = CountingFactory(Dummy)
    injector.add(InjectionRule(Dummy, factory))

    assert injector.inject(Dummy) is not injector.inject(Dummy)
    assert factory.calls == 2


def test_unrestricted_rule_serves_any_parameter_and_destination(
    injector: Injector,
) -> None:
    """A capability-only rule should match any parameter and destination."""

    factory = CountingFactory(Dummy)
    injector.add(InjectionRule(Dummy, factory))

    assert isinstance(injector.inject(Dummy, "text", ReportModule), Dummy)
    assert isinstance(injector.inject(Dummy, 3, SomeOtherModule()), Dummy)
    assert isinstance(injector.inject(Dummy), Dummy)
    assert factory.calls == 3


def test_unregistered_capability_is_undefined(injector: Injector) -> None:
    """Capabilities without rules should raise UndefinedInjectionError."""

    injector.add(InjectionRule(Dummy, Dummy))

    with pytest.raises(UndefinedInjectionError):
        injector.inject(Unknown)
    with pytest.raises(UndefinedInjectionError):
        injector.inject(Unknown, "param", ReportModule)


def test_logger_for_destination_uses_specific_rule(injector: Injector) -> None:
    """Destination rules should win for their destination only."""

    injector.configure(
        [
            InjectionRule(Logger, DefaultLogger),
            InjectionRule(Logger, ReportLogger, destination_type=ReportModule),
        ]
    )

    assert isinstance(injector.inject(Logger, destination=ReportModule), ReportLogger)
    assert isinstance(injector.inject(Logger, destination=ReportModule()), ReportLogger)
    assert type(injector.inject(Logger, destination=SomeOtherModule)) is DefaultLogger
    assert type(injector.inject(Logger)) is DefaultLogger


def test_destination_and_general_singletons_do_not_collide(
    injector: Injector,
) -> None:
    """Destination and general singletons should be cached separately."""

    injector.add(InjectionRule.shared(Dummy, Dummy))
    injector.add(
        InjectionRule.shared(Dummy, DummyForDestination, destination_type=ReportModule)
    )

    common = injector.inject(Dummy)
    special = injector.inject(Dummy, destination=ReportModule)

    assert type(common) is Dummy
    assert isinstance(special, DummyForDestination)
    assert injector.inject(Dummy) is common
    assert injector.inject(Dummy, destination=ReportModule) is special


def test_general_singleton_reused_for_unscoped_destination(injector: Injector) -> None:
    """A general singleton should serve destinations without their own rule."""

    factory = CountingFactory(Dummy)
    injector.add(InjectionRule.shared(Dummy, factory))

    common = injector.inject(Dummy)

    assert injector.inject(Dummy, destination=SomeOtherModule) is common
    assert factory.calls == 1


def test_reset_makes_previous_capabilities_undefined(injector: Injector) -> None:
    """reset should drop both rules and cached singletons."""

    injector.add(InjectionRule.shared(Dummy, Dummy))
    injector.inject(Dummy)

    injector.reset()

    with pytest.raises(UndefinedInjectionError):
        injector.inject(Dummy)
    assert len(injector.cache) == 0


def test_reconfigure_does_not_serve_stale_singleton(injector: Injector) -> None:
    """Replacing a singleton rule should not serve the old instance."""

    injector.configure([InjectionRule.shared(Logger, DefaultLogger)])
    injector.inject(Logger)

    injector.add(InjectionRule.shared(Logger, ReportLogger))

    assert isinstance(injector.inject(Logger), ReportLogger)


def test_configure_replaces_existing_rules(injector: Injector) -> None:
    """configure should discard rules missing from the new set."""

    injector.add(InjectionRule(Dummy, Dummy))

    injector.configure([InjectionRule(Logger, DefaultLogger)])

    with pytest.raises(UndefinedInjectionError):
        injector.inject(Dummy)
    assert isinstance(injector.inject(Logger), DefaultLogger)


def test_extend_keeps_existing_rules(injector: Injector) -> None:
    """extend should add rules without dropping existing ones."""

    injector.add(InjectionRule(Dummy, Dummy))

    injector.extend([InjectionRule(Logger, DefaultLogger)])

    assert isinstance(injector.inject(Dummy), Dummy)
    assert isinstance(injector.inject(Logger), DefaultLogger)


def test_parameter_rule_requires_matching_parameter(injector: Injector) -> None:
    """Parameter rules should reject missing or mistyped parameters."""

    injector.add(InjectionRule(Configured, Configured, parameter_type=Settings))
    settings = Settings("prod")

    with pytest.raises(ParameterCastingError):
        injector.inject(Configured)
    with pytest.raises(ParameterCastingError):
        injector.inject(Configured, "prod")

    configured = injector.inject(Configured, settings)
    assert configured.settings is settings


def test_factory_rejecting_parameter_raises_casting_error(injector: Injector) -> None:
    """Casting errors raised by a factory should reach the caller."""

    def build(settings: Settings) -> Configured:
        if not settings.name:
            raise ParameterCastingError("settings need a name")
        return Configured(settings)

    injector.add(InjectionRule(Configured, build, parameter_type=Settings))

    with pytest.raises(ParameterCastingError):
        injector.inject(Configured, Settings(""))


def test_factory_output_must_satisfy_capability(injector: Injector) -> None:
    """Factory results of the wrong type should be undefined injections."""

    injector.add(InjectionRule(Logger, Dummy))

    with pytest.raises(UndefinedInjectionError):
        injector.inject(Logger)


def test_factory_errors_propagate_unchanged(injector: Injector) -> None:
    """Other factory errors should propagate unchanged."""

    def broken() -> Dummy:
        raise RuntimeError("boom")

    injector.add(InjectionRule(Dummy, broken))

    with pytest.raises(RuntimeError, match="boom"):
        injector.inject(Dummy)


def test_optional_capability_resolves_inner_type(injector: Injector) -> None:
    """Optional[X] should resolve the rule registered for X."""

    injector.add(InjectionRule(Dummy, Dummy))

    assert isinstance(injector.inject(Optional[Dummy]), Dummy)


def test_try_inject_returns_none_on_failure(injector: Injector) -> None:
    """try_inject should return None instead of raising."""

    injector.add(InjectionRule(Dummy, Dummy))

    assert injector.try_inject(Unknown) is None
    assert isinstance(injector.try_inject(Dummy), Dummy)


def test_failures_are_logged(
    injector: Injector, caplog: pytest.LogCaptureFixture
) -> None:
    """Failures should log at error level and successes at debug level."""

    with caplog.at_level(logging.DEBUG, logger="injection_kit"):
        with pytest.raises(UndefinedInjectionError):
            injector.inject(Unknown)
        injector.add(InjectionRule(Dummy, Dummy))
        injector.inject(Dummy)

    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert any("Unknown" in record.getMessage() for record in errors)
    assert any(
        "Successfully injected" in record.getMessage() for record in caplog.records
    )


def test_describe_configuration_lists_rules(injector: Injector) -> None:
    """describe_configuration should list rules ordered by capability."""

    injector.configure(
        [
            InjectionRule(Logger, DefaultLogger, meta=DefaultLogger),
            InjectionRule(Dummy, Dummy, destination_type=ReportModule),
        ]
    )

    description = injector.describe_configuration()

    lines = description.splitlines()
    assert lines[0] == "Configured injection rules:"
    assert f"{__name__}.Dummy -> {__name__}.ReportModule" in lines
    assert f"{__name__}.Logger : {__name__}.DefaultLogger" in lines
    assert lines.index(f"{__name__}.Dummy -> {__name__}.ReportModule") < lines.index(
        f"{__name__}.Logger : {__name__}.DefaultLogger"
    )


def test_print_configuration_writes_to_stdout(
    injector: Injector, capsys: pytest.CaptureFixture[str]
) -> None:
    """print_configuration should write the rules to stdout."""

    injector.add(InjectionRule(Dummy, Dummy))

    injector.print_configuration()

    assert f"{__name__}.Dummy" in capsys.readouterr().out


def test_unmatched_destination_is_undefined(injector: Injector) -> None:
    """A rule scoped to another destination should not look like a casting error."""

    injector.add(InjectionRule(Logger, ReportLogger, destination_type=ReportModule))

    with pytest.raises(UndefinedInjectionError):
        injector.inject(Logger, destination=SomeOtherModule)


def test_parameter_rule_for_other_destination_is_undefined(
    injector: Injector,
) -> None:
    """A correctly typed parameter for an unmatched destination is undefined."""

    injector.add(
        InjectionRule(
            Configured,
            Configured,
            parameter_type=Settings,
            destination_type=ReportModule,
        )
    )

    with pytest.raises(UndefinedInjectionError):
        injector.inject(Configured, Settings("prod"), SomeOtherModule)
    with pytest.raises(ParameterCastingError):
        injector.inject(Configured, destination=ReportModule)


def test_parameter_scoped_singleton_is_cached_per_parameter_type(
    injector: Injector,
) -> None:
    """Values of the same parameter type should share one singleton."""

    calls: list[Settings] = []

    def build(settings: Settings) -> Configured:
        calls.append(settings)
        return Configured(settings)

    injector.add(InjectionRule.shared(Configured, build, parameter_type=Settings))

    first = injector.inject(Configured, Settings("first"))
    second = injector.inject(Configured, Settings("second"))

    assert second is first
    assert first.settings.name == "first"
    assert len(calls) == 1


def test_parameter_and_general_singletons_do_not_collide(
    injector: Injector,
) -> None:
    """Parameter-scoped and general singletons should be cached separately."""

    injector.add(InjectionRule.shared(Dummy, Dummy))
    injector.add(
        InjectionRule.shared(
            Dummy, lambda settings: DummyForDestination(), parameter_type=Settings
        )
    )

    common = injector.inject(Dummy)
    scoped = injector.inject(Dummy, Settings("prod"))

    assert type(common) is Dummy
    assert isinstance(scoped, DummyForDestination)
    assert injector.inject(Dummy) is common
    assert injector.inject(Dummy, Settings("other")) is scoped


def test_instance_built_during_reset_is_not_cached(injector: Injector) -> None:
    """A singleton built across a reset should not survive re-adding its rule."""

    built: list[Dummy] = []

    def build() -> Dummy:
        if not built:
            injector.reset()
            injector.add(rule)
        dummy = Dummy()
        built.append(dummy)
        return dummy

    rule = InjectionRule.shared(Dummy, build)
    injector.add(rule)

    first = injector.inject(Dummy)
    second = injector.inject(Dummy)

    assert second is not first
    assert injector.inject(Dummy) is second
    assert len(built) == 2
