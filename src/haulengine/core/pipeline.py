"""Ordered event pipeline run once per scheduler turn."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from haulengine.core.event import Event
from haulengine.core.registry import get_event

if TYPE_CHECKING:
    from haulengine.scheduler import Scheduler

_REPEAT = re.compile(r"^(.+?)\s+x\s+(\d+)$")


@dataclass(slots=True)
class Pipeline:
    """
    Events executed in exactly the listed order.

    The order is the caller's responsibility; the default ordering lives in
    ``default_pipeline.yml``.

    Attributes
    ----------
    events : list[Event]
        Event instances in execution order.
    """

    events: list[Event] = field(default_factory=list)
    _event_map: dict[str, Event] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._event_map = {e.name: e for e in self.events}

    @classmethod
    def from_event_list(cls, event_names: list[str]) -> Pipeline:
        """
        Build a pipeline from registered event names.

        Raises
        ------
        KeyError
            If a name is not in the event registry.
        """
        return cls(events=[get_event(name)() for name in event_names])

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> Pipeline:
        """
        Build a pipeline from a YAML file with an ``events`` list.

        Entries are event names, optionally suffixed ``x N`` to run the
        event ``N`` times in a row.

        Raises
        ------
        ValueError
            If the file has no ``events`` list.
        KeyError
            If an entry names an unregistered event.
        """
        yaml_path = Path(yaml_path)
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        specs = data.get("events") if isinstance(data, dict) else None
        if not isinstance(specs, list):
            raise ValueError(f"YAML file must have an 'events' list: {yaml_path}")

        names: list[str] = []
        for spec in specs:
            names.extend(cls._parse_event_spec(str(spec)))
        return cls.from_event_list(names)

    @staticmethod
    def _parse_event_spec(spec: str) -> list[str]:
        """``'name'`` -> ``['name']``; ``'name x 3'`` -> three copies."""
        spec = spec.strip()
        match = _REPEAT.match(spec)
        if match:
            return [match.group(1).strip()] * int(match.group(2))
        return [spec]

    def execute(self, sched: Scheduler) -> None:
        for event in self.events:
            event.execute(sched)

    def insert_after(self, after: str, event: Event | str) -> None:
        """
        Insert *event* right after the event named *after*.

        Raises
        ------
        ValueError
            If *after* is not in the pipeline.
        """
        if after not in self._event_map:
            raise ValueError(f"Event '{after}' not found in pipeline")
        if isinstance(event, str):
            event = get_event(event)()
        idx = self.events.index(self._event_map[after])
        self.events.insert(idx + 1, event)
        self._event_map[event.name] = event

    def remove(self, event_name: str) -> None:
        if event_name not in self._event_map:
            raise ValueError(f"Event '{event_name}' not found in pipeline")
        event = self._event_map.pop(event_name)
        self.events = [e for e in self.events if e is not event]

    def replace(self, old_name: str, new_event: Event | str) -> None:
        if old_name not in self._event_map:
            raise ValueError(f"Event '{old_name}' not found in pipeline")
        if isinstance(new_event, str):
            new_event = get_event(new_event)()
        old = self._event_map.pop(old_name)
        self.events = [new_event if e is old else e for e in self.events]
        self._event_map[new_event.name] = new_event

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def __len__(self) -> int:
        return len(self.events)

    def __repr__(self) -> str:
        return f"Pipeline(n_events={len(self.events)})"
