from dataclasses import dataclass

import pytest

from switchboard.annotations import inject
from switchboard.builders import make_injectors
from switchboard.config import InjectorConfig
from switchboard.domain import Phase, ProviderKind
from switchboard.errors import (
    CircularDependencyError,
    DependencyError,
    UnknownProviderError,
)
from switchboard.injector import make_config_injector
from switchboard.registry import ProviderRegistry


@dataclass
class Greeter:
    greeting: str

    def greet(self):
        return self.greeting


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self, result=None):
        self.calls += 1
        return result if result is not None else object()


@pytest.fixture
def registry():
    return ProviderRegistry()


def run_injector(registry):
    return make_injectors(registry).run_injector


def test_greeter_is_built_from_constant_and_cached(registry):
    registry.register("greeting", ProviderKind.CONSTANT, "hi")
    registry.register(
        "greeter",
        ProviderKind.FACTORY,
        ["greeting", lambda g: Greeter(g)],
    )
    injector = run_injector(registry)

    greeter = injector.get("greeter")

    assert greeter.greet() == "hi"
    assert injector.get("greeter") is greeter


class ThingService:
    pass


class ThingProvider:
    def get(self):
        return object()


@pytest.mark.parametrize(
    "kind, invokable",
    [
        (ProviderKind.VALUE, object()),
        (ProviderKind.CONSTANT, object()),
        (ProviderKind.FACTORY, lambda: object()),
        (ProviderKind.SERVICE, ThingService),
        (ProviderKind.PROVIDER, ThingProvider),
    ],
)
def test_each_kind_resolves_to_one_instance_per_injector(registry, kind, invokable):
    registry.register("thing", kind, invokable)
    injector = run_injector(registry)

    assert injector.get("thing") is injector.get("thing")


def test_factory_is_invoked_once(registry):
    factory = Counter()
    registry.register("x", ProviderKind.FACTORY, inject()(factory))
    registry.register("y", ProviderKind.FACTORY, ["x", lambda x: x])
    injector = run_injector(registry)

    injector.get("x")
    injector.get("y")
    injector.get("x")

    assert factory.calls == 1


def test_service_is_constructed_with_dependencies(registry):
    @inject("greeting")
    class Polite:
        def __init__(self, greeting):
            self.greeting = greeting

    registry.register("greeting", ProviderKind.VALUE, "hello")
    registry.register("polite", ProviderKind.SERVICE, Polite)

    polite = run_injector(registry).get("polite")

    assert isinstance(polite, Polite)
    assert polite.greeting == "hello"


def test_mutual_dependency_is_reported_as_a_cycle(registry):
    registry.register("a", ProviderKind.FACTORY, ["b", lambda b: b])
    registry.register("b", ProviderKind.FACTORY, ["a", lambda a: a])

    with pytest.raises(CircularDependencyError, match="Circular dependency found: a -> b -> a") as raised:
        run_injector(registry).get("a")

    assert raised.value.path == "a -> b -> a"


def test_cycle_through_nested_get_is_detected(registry):
    registry.register(
        "a", ProviderKind.FACTORY, ["injector", lambda injector: injector.get("a")]
    )

    with pytest.raises(CircularDependencyError, match="a -> a"):
        run_injector(registry).get("a")


def test_missing_provider_is_named(registry):
    with pytest.raises(UnknownProviderError, match="Unknown provider: missing") as raised:
        run_injector(registry).get("missing")

    assert raised.value.key == "missing"


def test_missing_transitive_provider_reports_full_path(registry):
    registry.register("a", ProviderKind.FACTORY, ["b", lambda b: b])
    registry.register("b", ProviderKind.FACTORY, ["missing", lambda m: m])

    with pytest.raises(UnknownProviderError) as raised:
        run_injector(registry).get("a")

    assert raised.value.path == "missing <- b <- a"


def test_path_only_reflects_the_active_call(registry):
    registry.register("a", ProviderKind.FACTORY, ["missing", lambda m: m])
    registry.register("b", ProviderKind.FACTORY, ["missing", lambda m: m])
    injector = run_injector(registry)

    with pytest.raises(UnknownProviderError):
        injector.get("a")
    with pytest.raises(UnknownProviderError) as raised:
        injector.get("b")

    assert raised.value.path == "missing <- b"


def test_dependencies_resolve_left_to_right_and_stop_at_first_failure(registry):
    resolved = []
    registry.register("first", ProviderKind.FACTORY, lambda: resolved.append("first"))
    registry.register("third", ProviderKind.FACTORY, lambda: resolved.append("third"))
    registry.register(
        "consumer",
        ProviderKind.FACTORY,
        ["first", "missing", "third", lambda first, missing, third: None],
    )

    with pytest.raises(UnknownProviderError, match="missing <- consumer"):
        run_injector(registry).get("consumer")

    assert resolved == ["first"]


def test_scope_wins_over_registered_provider(registry):
    def explode():
        raise AssertionError("provider must not be invoked")

    registry.register("x", ProviderKind.FACTORY, explode)

    assert run_injector(registry).get("x", {"x": 42}) == 42


def test_scope_applies_transitively_and_is_never_cached(registry):
    registry.register("x", ProviderKind.VALUE, 1)
    registry.register("y", ProviderKind.FACTORY, ["x", lambda x: x + 10])
    injector = run_injector(registry)

    assert injector.get("y", {"x": 5}) == 15
    assert injector.get("x") == 1
    assert injector.get("y") == 11


def test_invoke_returns_result_without_caching(registry):
    registry.register("x", ProviderKind.VALUE, 2)
    calls = Counter()
    injector = run_injector(registry)

    def double(x):
        calls()
        return x * 2

    assert injector.invoke(["x", double]) == 4
    assert injector.invoke(["x", double]) == 4
    assert calls.calls == 2


def test_invoke_passes_scope_values(registry):
    registry.register("greeting", ProviderKind.VALUE, "hi")
    injector = run_injector(registry)

    result = injector.invoke(
        ["greeting", "name", lambda greeting, name: f"{greeting} {name}"],
        {"name": "Arthur"},
    )

    assert result == "hi Arthur"


def test_instantiate_builds_a_new_object_each_time(registry):
    registry.register("greeting", ProviderKind.VALUE, "hi")
    injector = run_injector(registry)

    @inject("greeting", "context")
    class Widget:
        def __init__(self, greeting, context):
            self.greeting = greeting
            self.context = context

    first = injector.instantiate(Widget, {"context": "first"})
    second = injector.instantiate(Widget, {"context": "second"})

    assert first is not second
    assert (first.greeting, first.context) == ("hi", "first")
    assert second.context == "second"


def test_instantiate_requires_a_class(registry):
    with pytest.raises(DependencyError, match="is not a class"):
        run_injector(registry).instantiate(lambda: None)


def test_decorators_wrap_in_registration_order(registry):
    registry.register("suffix", ProviderKind.VALUE, "!")
    registry.register("words", ProviderKind.FACTORY, lambda: ["base"])
    registry.register(
        "words", ProviderKind.DECORATOR, ["delegate", lambda delegate: delegate + ["first"]]
    )
    registry.register(
        "words",
        ProviderKind.DECORATOR,
        ["suffix", "delegate", lambda suffix, delegate: delegate + ["second" + suffix]],
    )
    injector = run_injector(registry)

    assert injector.get("words") == ["base", "first", "second!"]
    assert injector.get("words") is injector.get("words")


def test_decorator_delegate_is_not_visible_to_its_dependencies(registry):
    registry.register("x", ProviderKind.VALUE, 1)
    registry.register("helper", ProviderKind.FACTORY, ["delegate", lambda d: d])
    registry.register(
        "x", ProviderKind.DECORATOR, ["helper", lambda helper: helper]
    )

    with pytest.raises(UnknownProviderError, match="delegate <- helper <- x"):
        run_injector(registry).get("x")


def test_injector_resolves_itself(registry):
    injector = run_injector(registry)

    assert injector.get("injector") is injector
    assert injector.phase is Phase.RUN


def test_has_reports_visible_services(registry):
    registry.register("x", ProviderKind.VALUE, 1)
    injector = run_injector(registry)

    assert injector.has("x")
    assert injector.has("injector")
    assert not injector.has("y")


def test_annotate_uses_injector_strictness(registry):
    injector = run_injector(registry)

    assert injector.annotate(["a", "b", lambda a, b: None]) == ("a", "b")


def test_implicit_annotation_when_not_strict():
    registry = ProviderRegistry(InjectorConfig(strict=False))
    registry.register("x", ProviderKind.VALUE, 1)

    def make_y(x):
        return x + 1

    registry.register("y", ProviderKind.FACTORY, make_y)
    injector = run_injector(registry)

    assert injector.get("y") == 2
    assert injector.invoke(lambda y: y * 10) == 20


class GreetingProvider:
    constructed = 0

    def __init__(self):
        GreetingProvider.constructed += 1
        self.greeting = "hello"

    @inject("name")
    def get(self, name):
        return f"{self.greeting} {name}"


def test_config_injector_sees_only_constants_and_provider_objects(registry):
    registry.register("name", ProviderKind.CONSTANT, "world")
    registry.register("x", ProviderKind.VALUE, 1)
    registry.register("greeting", ProviderKind.PROVIDER, GreetingProvider)
    hierarchy = make_injectors(registry)
    config_injector = hierarchy.config_injector

    assert config_injector.phase is Phase.CONFIG
    assert config_injector.get("name") == "world"
    assert isinstance(config_injector.get("greetingProvider"), GreetingProvider)
    with pytest.raises(UnknownProviderError, match="Unknown provider: x"):
        config_injector.get("x")
    with pytest.raises(UnknownProviderError, match="Unknown provider: greeting"):
        config_injector.get("greeting")


def test_run_injector_does_not_see_provider_objects(registry):
    registry.register("name", ProviderKind.CONSTANT, "world")
    registry.register("greeting", ProviderKind.PROVIDER, GreetingProvider)
    run = make_injectors(registry).run_injector

    assert run.get("greeting") == "hello world"
    assert not run.has("greetingProvider")


def test_provider_object_is_constructed_once_across_phases(registry):
    GreetingProvider.constructed = 0
    registry.register("name", ProviderKind.CONSTANT, "world")
    registry.register("greeting", ProviderKind.PROVIDER, GreetingProvider)
    hierarchy = make_injectors(registry)

    hierarchy.run_injector.get("greeting")
    hierarchy.config_injector.get("greetingProvider")

    assert GreetingProvider.constructed == 1


def test_provider_object_instance_is_used_as_is(registry):
    provider_object = GreetingProvider()
    registry.register("name", ProviderKind.CONSTANT, "you")
    registry.register("greeting", ProviderKind.PROVIDER, provider_object)
    hierarchy = make_injectors(registry)

    assert hierarchy.config_injector.get("greetingProvider") is provider_object
    assert hierarchy.run_injector.get("greeting") == "hello you"


def test_phases_keep_separate_caches(registry):
    registry.register("name", ProviderKind.CONSTANT, "world")
    registry.register("x", ProviderKind.FACTORY, lambda: object())
    hierarchy = make_injectors(registry)

    hierarchy.run_injector.get("x")

    assert hierarchy.run_injector.has("x")
    assert not hierarchy.config_injector.has("x")


def test_decorators_apply_to_constants_in_run_phase_only(registry):
    registry.register("limit", ProviderKind.CONSTANT, 10)
    registry.register("limit", ProviderKind.DECORATOR, ["delegate", lambda d: d * 2])
    hierarchy = make_injectors(registry)

    assert hierarchy.config_injector.get("limit") == 10
    assert hierarchy.run_injector.get("limit") == 20


def test_services_built_without_scope_values_are_still_cached(registry):
    registry.register("x", ProviderKind.VALUE, 1)
    registry.register("shared", ProviderKind.FACTORY, lambda: object())
    registry.register(
        "y", ProviderKind.FACTORY, ["shared", "x", lambda shared, x: (shared, x)]
    )
    injector = run_injector(registry)

    shared, x = injector.get("y", {"x": 5})

    assert x == 5
    assert injector.get("shared") is shared
    assert injector.get("y") == (shared, 1)


def test_config_injector_forgets_replaced_definitions(registry):
    registry.register("c", ProviderKind.CONSTANT, 1)
    registry.register("greeting", ProviderKind.PROVIDER, GreetingProvider)
    config_injector = make_config_injector(registry)
    first_provider = config_injector.get("greetingProvider")

    assert config_injector.get("c") == 1
    registry.register("c", ProviderKind.CONSTANT, 2)
    registry.register("greeting", ProviderKind.PROVIDER, GreetingProvider)

    assert config_injector.get("c") == 2
    assert config_injector.get("greetingProvider") is not first_provider


def test_config_injector_keeps_builtins_when_a_name_is_reused(registry):
    config_injector = make_config_injector(registry)
    registrar = config_injector.get("provide")

    registry.register("provide", ProviderKind.CONSTANT, "shadow")

    assert config_injector.get("provide") is registrar
