# src/haulengine/core/decorators.py
"""
Decorator shorthand for defining events.

Instead of::

    @dataclass(slots=True)
    class ReportDeficits(Event):
        def execute(self, sched): ...

you can write::

    @event
    class ReportDeficits:
        def execute(self, sched): ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def event(
    cls: type[T] | None = None,
    *,
    name: str | None = None,
    **dataclass_kwargs: Any,
) -> type[T] | Callable[[type[T]], type[T]]:
    """
    Make *cls* an :class:`~haulengine.core.event.Event` dataclass.

    Parameters
    ----------
    cls : type, optional
        Class to decorate (supplied implicitly by bare ``@event``).
    name : str, optional
        Registry name; defaults to the class name in snake_case.
    **dataclass_kwargs : Any
        Forwarded to :func:`dataclasses.dataclass`; ``slots=True`` by default.

    Returns
    -------
    type or Callable
        The event class, or a decorator when called with arguments.
    """
    from haulengine.core.event import Event

    dataclass_kwargs.setdefault("slots", True)

    def decorator(cls: type[T]) -> type[T]:
        if not issubclass(cls, Event):
            # rebuild with Event as the only base so slots stay valid
            namespace = {
                "__module__": cls.__module__,
                "__qualname__": cls.__qualname__,
                "__annotations__": getattr(cls, "__annotations__", {}),
            }
            for attr_name in dir(cls):
                if not attr_name.startswith("__"):
                    namespace[attr_name] = getattr(cls, attr_name)
            cls = type(cls.__name__, (Event,), namespace)

        if name is not None:
            cls.name = name  # type: ignore[attr-defined]

        return dataclass(**dataclass_kwargs)(cls)

    if cls is None:
        return decorator
    return decorator(cls)
