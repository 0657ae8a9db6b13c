"""Event base class: one named, orderable step of a scheduler turn."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from haulengine.logging import HaulLogger, getLogger

if TYPE_CHECKING:
    from haulengine.scheduler import Scheduler


def _camel_to_snake(name: str) -> str:
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


@dataclass(slots=True)
class Event(ABC):
    """
    Base class for scheduler events.

    An event wraps one system function: it pulls what the system needs from
    the :class:`~haulengine.scheduler.Scheduler` (state, world, pathfinder,
    config) and calls it. Events run in the order the pipeline lists them.

    Subclasses register themselves on definition under ``name``, which
    defaults to the class name in snake_case.
    """

    name: ClassVar[str] = ""

    def __init_subclass__(cls, name: str = "", **kwargs: Any) -> None:
        super(Event, cls).__init_subclass__(**kwargs)

        # @dataclass(slots=True) rebuilds the class and re-enters this hook
        # without the keyword, so keep a name that is already set
        if name != "":
            cls.name = name
        elif cls.name == "":
            cls.name = _camel_to_snake(cls.__name__)

        from haulengine.core.registry import _EVENT_REGISTRY

        _EVENT_REGISTRY[cls.name] = cls

    def get_logger(self) -> HaulLogger:
        """Logger ``haulengine.events.<name>``; per-event levels apply to it."""
        return getLogger(f"haulengine.events.{self.name}")

    @abstractmethod
    def execute(self, sched: Scheduler) -> None:
        """Run the event against *sched*, mutating its state in place."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
