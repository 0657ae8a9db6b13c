"""Tests for the Event base class, the @event decorator and the registry."""

from dataclasses import dataclass

import pytest

from haulengine.core import Event, event, get_event, list_events
from haulengine.core.registry import clear_registry


class TestEventRegistration:
    """Subclasses of Event register themselves on definition."""

    def test_subclass_registers_snake_case_name(self, clean_registry):
        @dataclass(slots=True)
        class ReportDeficits(Event):
            def execute(self, sched):
                pass

        assert ReportDeficits.name == "report_deficits"
        assert get_event("report_deficits") is ReportDeficits

    def test_subclass_with_explicit_name(self, clean_registry):
        class Tagged(Event, name="my_tag"):
            def execute(self, sched):
                pass

        assert Tagged.name == "my_tag"
        assert get_event("my_tag") is Tagged

    def test_get_event_unknown_raises(self, clean_registry):
        with pytest.raises(KeyError, match="not found in registry"):
            get_event("does_not_exist")

    def test_list_and_clear(self, clean_registry):
        class Alpha(Event):
            def execute(self, sched):
                pass

        class Beta(Event):
            def execute(self, sched):
                pass

        assert list_events() == ["alpha", "beta"]
        clear_registry()
        assert list_events() == []

    def test_builtin_events_are_registered(self):
        names = set(list_events())
        assert {
            "cleanup_unobserved_zones",
            "refresh_energy_levels",
            "expire_leases",
            "discover_logistic_tasks",
            "match_idle_carriers",
        } <= names

    def test_event_is_abstract(self):
        with pytest.raises(TypeError):
            Event()  # type: ignore[abstract]


class TestEventDecorator:
    """Test the @event decorator."""

    def test_decorator_without_parens(self, clean_registry):
        @event
        class CountTurns:
            def execute(self, sched):
                sched.counter += 1

        assert issubclass(CountTurns, Event)
        assert hasattr(CountTurns, "__slots__")
        assert get_event("count_turns") is CountTurns

    def test_decorator_with_name(self, clean_registry):
        @event(name="custom_step")
        class SomeStep:
            def execute(self, sched):
                pass

        assert SomeStep.name == "custom_step"
        assert get_event("custom_step") is SomeStep

    def test_decorated_event_executes(self, clean_registry):
        @event
        class Bump:
            def execute(self, sched):
                sched.append("bumped")

        calls: list[str] = []
        Bump().execute(calls)
        assert calls == ["bumped"]

    def test_get_logger_is_namespaced_by_event(self, clean_registry):
        @event
        class Noisy:
            def execute(self, sched):
                pass

        assert Noisy().get_logger().name == "haulengine.events.noisy"
        assert hasattr(Noisy().get_logger(), "deep")


class TestPublicDecoratorBinding:
    """The ``event`` name exported by the packages is the decorator."""

    def test_core_event_is_decorator(self):
        import haulengine.core as core
        from haulengine.core.decorators import event as event_decorator

        assert core.event is event_decorator
        assert callable(core.event)

    def test_top_level_event_is_decorator(self):
        import haulengine as he
        from haulengine.core.decorators import event as event_decorator

        assert he.event is event_decorator
