"""Identifiers and plain data records shared by the lap timer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000
MS_PER_SECOND = 1_000
MS_PER_HUNDREDTH = 10
MS_PER_DAY = 24 * MS_PER_HOUR


class PageId(IntEnum):
    WAIT_GPS = 1
    SPEEDOMETER = 2
    WAIT_LAP = 3
    TRACKING = 4


class LogicStateId(IntEnum):
    WAIT_GPS = 0
    WAIT_LAP_START = 1
    TRACKING = 2
    SPEEDOMETER = 3


@dataclass
class TrapLine:
    """A timing line given in degrees, with its projection in metres."""

    name: str
    lat1: float
    lon1: float
    lat2: float
    lon2: float
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    bearing: float = 0.0


@dataclass
class NmeaTime:
    """A UTC date and time of day as reported by the receiver."""

    year: int = 0
    month: int = 0
    day: int = 0
    hour: int = 0
    minute: int = 0
    second: int = 0
    hundredths: int = 0
    valid: bool = False

    def ms_of_day(self) -> int:
        """Milliseconds since midnight, or 0 when the time is not valid."""
        if not self.valid:
            return 0
        return (
            self.hour * MS_PER_HOUR
            + self.minute * MS_PER_MINUTE
            + self.second * MS_PER_SECOND
            + self.hundredths * MS_PER_HUNDREDTH
        )


@dataclass
class GpsData:
    """One processed position fix."""

    latitude: float = 0.0
    longitude: float = 0.0
    speed_kmph: float = 0.0
    hdop: float = 0.0
    satellites: int = 0
    location_valid: bool = False
    speed_valid: bool = False
    hdop_valid: bool = False
    ms_of_day: int = 0
    millis_received: int = 0
    nmea_time: NmeaTime = field(default_factory=NmeaTime)