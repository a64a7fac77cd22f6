"""Shared values that the logic publishes and the display pages read."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar


@dataclass
class DisplayFacade:
    """The latest values to show on screen."""

    satellites: int = 0
    bt_connected: bool = False
    speed_kmph: float = 0.0
    pb: int = 0
    lap_time: int = 0
    best_lap_time: int = 0
    stored_best_lap: int = 0

    _shared: ClassVar[DisplayFacade | None] = None

    @classmethod
    def instance(cls) -> DisplayFacade:
        """The process-wide facade."""
        if cls._shared is None:
            cls._shared = cls()
        return cls._shared

    def reset(self) -> None:
        """Put every value back to its default."""
        for item in fields(self):
            setattr(self, item.name, item.default)