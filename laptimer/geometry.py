"""Projection, crossing detection and NMEA time arithmetic for lap timing."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from laptimer.model import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_HUNDREDTH,
    MS_PER_MINUTE,
    MS_PER_SECOND,
    NmeaTime,
    TrapLine,
)

TRACK_LENGTH_METERS = 1200.0
MAX_SPEED_KMH = 300.0
MIN_LAP_TIME_MS = int((TRACK_LENGTH_METERS / (MAX_SPEED_KMH / 3.6)) * 1000.0)
GPS_TIMEOUT_MS = 5000

LAT0 = 52.4449
LON0 = 20.6400
EARTH_RADIUS_M = 6378137.0

DEFAULT_FIX_INTERVAL_MS = 100
_MAX_PLAUSIBLE_INTERVAL_MS = 12 * MS_PER_HOUR
_EPSILON = 1e-9

Point = tuple[float, float]


@dataclass(frozen=True)
class Intersection:
    """Where two segments meet; t is the position along the first segment."""

    x: float
    y: float
    t: float


def lat_lon_to_meters(lat: float, lon: float) -> Point:
    """Project degrees to local metres around the reference point."""
    x = EARTH_RADIUS_M * math.radians(lon - LON0) * math.cos(math.radians(LAT0))
    y = EARTH_RADIUS_M * math.radians(lat - LAT0)
    return x, y


def calculate_bearing(x1: float, y1: float, x2: float, y2: float) -> float:
    """Direction of travel between two projected points, in [0, 360)."""
    bearing = 90.0 - math.degrees(math.atan2(x2 - x1, y2 - y1))
    if bearing < 0:
        bearing += 360.0
    return bearing


def nmea_fix_interval_ms(current: NmeaTime, previous: NmeaTime) -> int:
    """Milliseconds between two consecutive fixes, handling one midnight."""
    if not current.valid or not previous.valid:
        return DEFAULT_FIX_INTERVAL_MS

    prev_ms = previous.ms_of_day()
    cur_ms = current.ms_of_day()

    if current.year == previous.year and current.month == previous.month:
        if current.day == previous.day:
            return cur_ms - prev_ms
        if current.day == previous.day + 1:
            return (MS_PER_DAY - prev_ms) + cur_ms

    diff = cur_ms - prev_ms
    if abs(diff) > _MAX_PLAUSIBLE_INTERVAL_MS:
        return DEFAULT_FIX_INTERVAL_MS
    return diff


def lap_duration_ms(end: NmeaTime, start: NmeaTime) -> int:
    """Lap length in ms within a day or across one midnight; 0 otherwise."""
    if not end.valid or not start.valid:
        return 0

    same_month = end.year == start.year and end.month == start.month
    if same_month and end.day == start.day:
        return max(end.ms_of_day() - start.ms_of_day(), 0)
    if same_month and end.day == start.day + 1:
        return (MS_PER_DAY - start.ms_of_day()) + end.ms_of_day()
    return 0


def add_ms_to_nmea_time(base_time: NmeaTime, ms_to_add: int) -> NmeaTime:
    """Shift a time of day by a small offset, wrapping at midnight without changing the date."""
    if not base_time.valid:
        return base_time

    total = base_time.ms_of_day() + ms_to_add
    if total >= MS_PER_DAY:
        total -= MS_PER_DAY
    elif total < 0:
        total += MS_PER_DAY

    hour, rest = divmod(total, MS_PER_HOUR)
    minute, rest = divmod(rest, MS_PER_MINUTE)
    second, rest = divmod(rest, MS_PER_SECOND)
    return replace(
        base_time,
        hour=hour,
        minute=minute,
        second=second,
        hundredths=rest // MS_PER_HUNDREDTH,
    )


def segments_intersect(p0: Point, p1: Point, p2: Point, p3: Point) -> Intersection | None:
    """Intersection of segment p0-p1 with segment p2-p3, or None."""
    s1_x, s1_y = p1[0] - p0[0], p1[1] - p0[1]
    s2_x, s2_y = p3[0] - p2[0], p3[1] - p2[1]

    det = -s2_x * s1_y + s1_x * s2_y
    if abs(det) < _EPSILON:
        return None

    dx, dy = p0[0] - p2[0], p0[1] - p2[1]
    s = (-s1_y * dx + s1_x * dy) / det
    t = (s2_x * dy - s2_y * dx) / det

    lo, hi = -_EPSILON, 1.0 + _EPSILON
    if not (lo <= s <= hi and lo <= t <= hi):
        return None

    return Intersection(
        x=p0[0] + t * s1_x,
        y=p0[1] + t * s1_y,
        t=max(0.0, min(1.0, t)),
    )


def crossed_line_interpolated(prev: Point, curr: Point, trap: TrapLine) -> float | None:
    """Fraction of the prev-curr move at which the trap line was crossed.

    Points are (lat, lon). Returns None when the line is not crossed or is
    crossed against its bearing.
    """
    x1, y1 = lat_lon_to_meters(*prev)
    x2, y2 = lat_lon_to_meters(*curr)

    hit = segments_intersect((x1, y1), (x2, y2), (trap.x1, trap.y1), (trap.x2, trap.y2))
    if hit is None:
        return None

    diff = abs(trap.bearing - calculate_bearing(x1, y1, x2, y2))
    if diff > 180.0:
        diff = 360.0 - diff
    if diff > 90.0:
        return None
    return hit.t