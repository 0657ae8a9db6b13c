"""Event, registry and pipeline machinery."""

from typing import Any, Callable

from haulengine.core.decorators import event as event_decorator
from haulengine.core.event import Event
from haulengine.core.pipeline import Pipeline
from haulengine.core.registry import clear_registry, get_event, list_events

# Importing the ``event`` submodule rebinds ``haulengine.core.event`` to the
# module; restore the decorator under its public name.
event: Callable[..., Any] = event_decorator

__all__ = [
    "Event",
    "Pipeline",
    "event",
    "get_event",
    "list_events",
    "clear_registry",
]
