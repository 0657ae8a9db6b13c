"""
Custom logging configuration for haul-engine.

Extends Python's standard logging with a custom DEEP_DEBUG level (5)
for very verbose debugging output, such as per-round auction proposals.
Provides the HaulLogger class with per-event log level configuration support.

Log Levels
----------
- CRITICAL (50): Critical errors
- ERROR (40): Errors
- WARNING (30): Warnings
- INFO (20): Informational messages (default)
- DEBUG (10): Debug messages
- DEEP_DEBUG (5): Very verbose debug messages

Examples
--------
Use logger in systems:

>>> from haulengine import logging
>>> logger = logging.getLogger("haulengine.systems.matching")
>>> logger.info("Auction starting")
>>> logger.deep("Round proposals: %s", proposals)

Configure per-event log levels:

>>> import haulengine as he
>>> log_config = {
...     "default_level": "INFO",
...     "events": {
...         "match_idle_carriers": "DEBUG",
...         "refresh_energy_levels": "WARNING",
...     },
... }
>>> sched = he.Scheduler.init(world, pathfinder, logging=log_config)

See Also
--------
Event.get_logger : Get logger for specific event
haulengine.config.ConfigValidator : Validates the logging block
"""

import logging
from typing import Any

(CRITICAL, ERROR, WARNING, INFO, DEBUG) = (
    logging.CRITICAL,
    logging.ERROR,
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
)
DEEP_DEBUG = 5
logging.addLevelName(DEEP_DEBUG, "DEEP")


class HaulLogger(logging.Logger):
    """
    Custom logger with DEEP_DEBUG level support.

    Extends Python's Logger to add the `deep()` method for very verbose
    debugging output (level 5).

    Examples
    --------
    >>> logger = HaulLogger("test")
    >>> logger.setLevel(5)  # DEEP_DEBUG
    >>> logger.deep("Very verbose message")
    """

    def deep(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """
        Log message at DEEP_DEBUG level (5).

        Parameters
        ----------
        msg : str
            Message format string.
        *args : Any
            Arguments for message formatting.
        **kwargs : Any
            Additional logging kwargs.
        """
        if self.isEnabledFor(DEEP_DEBUG):
            self._log(DEEP_DEBUG, msg, args, **kwargs)


# Make the logging module hand out our subclass from now on
logging.setLoggerClass(HaulLogger)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)


def getLogger(name: str | None = None) -> HaulLogger:
    """
    Get a HaulLogger instance.

    Convenience wrapper around logging.getLogger() that returns
    a HaulLogger instance with DEEP_DEBUG support.

    Parameters
    ----------
    name : str, optional
        Logger name. If None, returns root logger.

    Returns
    -------
    HaulLogger
        Logger instance with deep() method.
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def configure(log_config: dict[str, Any]) -> None:
    """
    Apply a ``logging`` configuration block to the haulengine loggers.

    Parameters
    ----------
    log_config : dict
        Logging configuration with keys:
        - default_level: str (e.g., 'INFO', 'DEBUG', 'DEEP_DEBUG')
        - events: dict[str, str] (per-event overrides)
    """
    default_level = log_config.get("default_level", "INFO")
    logging.getLogger("haulengine").setLevel(_level_value(default_level))

    for event_name, level in (log_config.get("events") or {}).items():
        logger_name = f"haulengine.events.{event_name}"
        logging.getLogger(logger_name).setLevel(_level_value(level))


def _level_value(name: str) -> int:
    name = name.upper()
    if name == "DEEP_DEBUG":
        return DEEP_DEBUG
    return int(getattr(logging, name))
