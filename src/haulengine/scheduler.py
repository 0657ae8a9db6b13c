# src/haulengine/scheduler.py
from __future__ import annotations

from dataclasses import dataclass, field, fields
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

import haulengine.events  # noqa: F401 - needed to register events
from haulengine import logging
from haulengine.config import Config, ConfigValidator
from haulengine.core.default_pipeline import create_default_pipeline
from haulengine.core.event import Event
from haulengine.core.pipeline import Pipeline
from haulengine.state import SchedulerState
from haulengine.systems.discovery import LogisticsTasks
from haulengine.systems.matching import Match
from haulengine.typing import ZoneName
from haulengine.world import PathFinder, WorldSensor

__all__ = ["Scheduler"]

log = logging.getLogger(__name__)


# helpers
# ---------------------------------------------------------------------------
def _read_yaml(obj: str | Path | Mapping[str, Any] | None) -> Dict[str, Any]:
    """Return a plain dict; {} if *obj* is None."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    p = Path(obj)
    with p.open("rt", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"config root must be mapping, got {type(data)!r}")
    return dict(data)


def _package_defaults() -> Dict[str, Any]:
    """Load haulengine/defaults.yml"""
    txt = resources.files("haulengine").joinpath("defaults.yml").read_text()
    return yaml.safe_load(txt) or {}


@dataclass(slots=True)
class Scheduler:
    """
    Turn-stepped energy-logistics scheduler.

    Holds the registry state, the host-world collaborators and the event
    pipeline. Each :meth:`step` advances the tick and runs the pipeline once;
    systems read and write ``state`` in place.

    Attributes
    ----------
    state : SchedulerState
        Entities, leases and hauling deficits.
    world : WorldSensor
        Live energy readings and withdrawals.
    pathfinder : PathFinder
        Path-cost oracle for the auction.
    config : Config
        Validated, immutable parameters.
    pipeline : Pipeline
        Events run by :meth:`step`.
    tasks : LogisticsTasks or None
        Output of the latest discovery pass.
    matches : list[Match]
        Reservations written by the latest matching pass.
    last_refreshed_zone : str or None
        Zone refreshed during the latest step.

    Examples
    --------
    >>> import haulengine as he
    >>> world = he.InMemoryWorld()
    >>> world.add_zone("W1N1")
    >>> sched = he.Scheduler.init(world, he.GridPathFinder())
    >>> sched.step()
    >>> sched.state.tick
    1
    """

    state: SchedulerState
    world: WorldSensor
    pathfinder: PathFinder
    config: Config
    pipeline: Pipeline
    tasks: LogisticsTasks | None = None
    matches: list[Match] = field(default_factory=list)
    last_refreshed_zone: ZoneName | None = None

    # Constructor
    # ---------------------------------------------------------------------
    @classmethod
    def init(
        cls,
        world: WorldSensor,
        pathfinder: PathFinder,
        config: str | Path | Mapping[str, Any] | None = None,
        state: SchedulerState | None = None,
        **overrides: Any,  # anything here wins last
    ) -> "Scheduler":
        """
        Build a Scheduler.

        Order of precedence (later overrides earlier):

            1. package defaults  (haulengine/defaults.yml)
            2. *config*  (Path / str / Mapping / None)
            3. explicit keyword arguments (**overrides)

        Parameters
        ----------
        world : WorldSensor
            Host-world sensor.
        pathfinder : PathFinder
            Path-cost oracle.
        config : str, Path, Mapping or None
            User configuration layer.
        state : SchedulerState, optional
            Existing state to resume (e.g. from :meth:`SchedulerState.load`);
            a fresh one is created otherwise.
        **overrides
            Individual config keys.

        Raises
        ------
        ValueError
            If a parameter is invalid or unknown.
        TypeError
            If a config file's root is not a mapping.
        """
        cfg_dict: Dict[str, Any] = _package_defaults()
        cfg_dict.update(_read_yaml(config))
        cfg_dict.update(overrides)

        known = {f.name for f in fields(Config)}
        unknown = sorted(set(cfg_dict) - known)
        if unknown:
            raise ValueError(f"Unknown config parameter(s): {unknown}")

        ConfigValidator.validate_config(cfg_dict)

        pipeline_path = cfg_dict.get("pipeline_path")
        if pipeline_path is not None:
            ConfigValidator.validate_pipeline_path(pipeline_path)
            ConfigValidator.validate_pipeline_yaml(pipeline_path)
            pipeline = Pipeline.from_yaml(pipeline_path)
        else:
            pipeline = create_default_pipeline()

        cfg = Config(**cfg_dict)
        logging.configure(cfg.logging)

        if state is None:
            state = SchedulerState.from_config(cfg)

        log.debug(f"Scheduler initialised with {len(pipeline)} event(s)")
        return cls(
            state=state,
            world=world,
            pathfinder=pathfinder,
            config=cfg,
            pipeline=pipeline,
        )

    # public API
    # ---------------------------------------------------------------------
    def step(self, tick: int | None = None) -> None:
        """
        Advance one turn and run the pipeline.

        Parameters
        ----------
        tick : int, optional
            World tick to adopt; defaults to the previous tick plus one.
        """
        self.state.tick = self.state.tick + 1 if tick is None else int(tick)
        self.tasks = None
        self.matches = []
        self.pipeline.execute(self)

    def run(self, n_turns: int) -> None:
        """Call :meth:`step` *n_turns* times."""
        for _ in range(int(n_turns)):
            self.step()

    def get_event(self, name: str) -> Event:
        """
        Get an event instance from the pipeline by name.

        Raises
        ------
        KeyError
            If the event is not in the pipeline.
        """
        for event in self.pipeline.events:
            if event.name == name:
                return event
        raise KeyError(
            f"Event '{name}' not found in pipeline. Available: {self.pipeline.names}"
        )
