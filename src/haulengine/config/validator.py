"""Centralized configuration validation for haul-engine."""

from __future__ import annotations

import re
import warnings
from pathlib import Path
from typing import Any

import yaml


class ConfigValidator:
    """
    Validation of a merged configuration mapping.

    Runs once inside :meth:`Scheduler.init`, before the :class:`Config` is
    frozen, and raises ``ValueError`` with an actionable message on the
    first problem found.
    """

    VALID_LOG_LEVELS = {"DEEP_DEBUG", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    VALID_DEMAND_BASES = {"due_deficit", "production_rate"}

    @staticmethod
    def validate_config(cfg: dict[str, Any]) -> None:
        """
        Validate all configuration parameters.

        Raises
        ------
        ValueError
            If any validation check fails.
        """
        ConfigValidator._validate_types(cfg)
        ConfigValidator._validate_ranges(cfg)
        ConfigValidator._validate_choices(cfg)
        ConfigValidator._validate_relationships(cfg)
        if "urgency" in cfg:
            ConfigValidator._validate_urgency(cfg["urgency"])
        if "logging" in cfg:
            ConfigValidator._validate_logging(cfg["logging"])

    @staticmethod
    def _validate_types(cfg: dict[str, Any]) -> None:
        int_params = [
            "haul_threshold",
            "lease_ttl",
            "plain_cost",
            "swamp_cost",
            "max_ops",
            "goal_range",
            "carrier_lifetime",
            "renew_threshold",
        ]
        float_params = ["deficit_margin", "default_haul_distance"]

        for key in int_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, int):
                raise ValueError(
                    f"Config parameter '{key}' must be int, got {type(val).__name__}"
                )

        for key in float_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ValueError(
                    f"Config parameter '{key}' must be float, got {type(val).__name__}"
                )

        if "demand_basis" in cfg and not isinstance(cfg["demand_basis"], str):
            raise ValueError(
                f"Config parameter 'demand_basis' must be str, "
                f"got {type(cfg['demand_basis']).__name__}"
            )

        if "pipeline_path" in cfg:
            val = cfg["pipeline_path"]
            if val is not None and not isinstance(val, str):
                raise ValueError(
                    f"Config parameter 'pipeline_path' must be str or None, "
                    f"got {type(val).__name__}"
                )

    @staticmethod
    def _validate_ranges(cfg: dict[str, Any]) -> None:
        # (min, max); None means unbounded
        constraints: dict[str, tuple[float | None, float | None]] = {
            "haul_threshold": (0, None),
            "deficit_margin": (0.0, None),
            "default_haul_distance": (1e-9, None),
            "lease_ttl": (1, None),
            "plain_cost": (1, 255),
            "swamp_cost": (1, 255),
            "max_ops": (1, None),
            "goal_range": (0, None),
            "carrier_lifetime": (1, None),
            "renew_threshold": (0, None),
        }
        for key, (min_val, max_val) in constraints.items():
            if key not in cfg or cfg[key] is None:
                continue
            val = cfg[key]
            if min_val is not None and val < min_val:
                raise ValueError(
                    f"Config parameter '{key}' must be >= {min_val}, got {val}"
                )
            if max_val is not None and val > max_val:
                raise ValueError(
                    f"Config parameter '{key}' must be <= {max_val}, got {val}"
                )

    @staticmethod
    def _validate_choices(cfg: dict[str, Any]) -> None:
        basis = cfg.get("demand_basis")
        if basis is not None and basis not in ConfigValidator.VALID_DEMAND_BASES:
            raise ValueError(
                f"Config parameter 'demand_basis' must be one of "
                f"{sorted(ConfigValidator.VALID_DEMAND_BASES)}, got {basis!r}"
            )

    @staticmethod
    def _validate_relationships(cfg: dict[str, Any]) -> None:
        lifetime = cfg.get("carrier_lifetime")
        renew = cfg.get("renew_threshold")
        if lifetime is not None and renew is not None and renew >= lifetime:
            raise ValueError(
                f"renew_threshold ({renew}) must be < carrier_lifetime ({lifetime})"
            )

        plain = cfg.get("plain_cost", 1)
        swamp = cfg.get("swamp_cost", plain)
        if swamp < plain:
            warnings.warn(
                f"swamp_cost ({swamp}) < plain_cost ({plain}). "
                "Paths will prefer swamps over open ground.",
                UserWarning,
                stacklevel=3,
            )

    @staticmethod
    def _validate_urgency(urgency: Any) -> None:
        if not isinstance(urgency, dict):
            raise ValueError(f"Config 'urgency' must be dict, got {type(urgency).__name__}")
        for kind, value in urgency.items():
            if not isinstance(value, dict) or set(value) != {"peace", "war"}:
                raise ValueError(
                    f"Urgency for '{kind}' must be a mapping with 'peace' and 'war'"
                )
            for key, level in value.items():
                if isinstance(level, bool) or not isinstance(level, int):
                    raise ValueError(
                        f"Urgency '{kind}.{key}' must be int, got {type(level).__name__}"
                    )

    @staticmethod
    def _validate_logging(log_config: Any) -> None:
        """
        Validate the ``logging`` block.

        Keys: ``default_level`` (str) and ``events`` (event name -> level).
        """
        if not isinstance(log_config, dict):
            raise ValueError(
                f"Config 'logging' must be dict, got {type(log_config).__name__}"
            )

        if "default_level" in log_config:
            level = log_config["default_level"]
            if not isinstance(level, str):
                raise ValueError(
                    f"Logging default_level must be str, got {type(level).__name__}"
                )
            if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                raise ValueError(
                    f"Invalid log level '{level}'. "
                    f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                )

        events = log_config.get("events")
        if events is None:
            return
        if not isinstance(events, dict):
            raise ValueError(f"Logging events must be dict, got {type(events).__name__}")
        for event_name, level in events.items():
            if not isinstance(level, str):
                raise ValueError(
                    f"Log level for event '{event_name}' must be str, "
                    f"got {type(level).__name__}"
                )
            if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                raise ValueError(
                    f"Invalid log level '{level}' for event '{event_name}'. "
                    f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                )

    @staticmethod
    def validate_pipeline_path(pipeline_path: str) -> None:
        """
        Check that *pipeline_path* points at a readable file.

        Raises
        ------
        ValueError
            If the path does not exist or is not a file.
        """
        path = Path(pipeline_path)
        if not path.exists():
            raise ValueError(f"Pipeline path '{pipeline_path}' does not exist")
        if not path.is_file():
            raise ValueError(f"Pipeline path '{pipeline_path}' is not a file")
        if path.suffix not in (".yml", ".yaml"):
            warnings.warn(
                f"Pipeline path '{pipeline_path}' does not have .yml/.yaml extension",
                UserWarning,
                stacklevel=2,
            )

    @staticmethod
    def validate_pipeline_yaml(yaml_path: str | Path) -> None:
        """
        Check a pipeline YAML's structure and that every event is registered.

        Raises
        ------
        ValueError
            If the structure is invalid or an event name is unknown.
        """
        from haulengine.core.registry import list_events

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(
                f"Pipeline YAML must be a dictionary, got {type(data).__name__}"
            )
        if "events" not in data:
            raise ValueError(f"Pipeline YAML must have 'events' key: {yaml_path}")
        specs = data["events"]
        if not isinstance(specs, list):
            raise ValueError(
                f"Pipeline 'events' must be a list, got {type(specs).__name__}"
            )

        registered = set(list_events())
        for i, spec in enumerate(specs):
            if not isinstance(spec, str):
                raise ValueError(
                    f"Event spec at index {i} must be str, got {type(spec).__name__}"
                )
            name = re.sub(r"\s+x\s+\d+$", "", spec.strip())
            if name not in registered:
                raise ValueError(
                    f"Event '{name}' (from spec '{spec}') not found in registry. "
                    f"Available events: {sorted(registered)}"
                )
