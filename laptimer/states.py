"""The lap timer's logic states."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from laptimer.geometry import (
    GPS_TIMEOUT_MS,
    MIN_LAP_TIME_MS,
    add_ms_to_nmea_time,
    crossed_line_interpolated,
    lap_duration_ms,
    nmea_fix_interval_ms,
)
from laptimer.model import LogicStateId, NmeaTime, PageId
from laptimer.statemachine import State

if TYPE_CHECKING:
    from laptimer.logic import LogicController

_ULONG_MASK = 0xFFFFFFFF
_MIN_FIX_INTERVAL_MS = 10
_MAX_FIX_INTERVAL_MS = 1000
_CROSS_DEBOUNCE_MS = MIN_LAP_TIME_MS // 4


def _elapsed_ms(now: int, then: int) -> int:
    return (now - then) & _ULONG_MASK


class BaseLogicState(State[LogicStateId]):
    """A state with access to its owning controller."""

    def __init__(self, logic: LogicController) -> None:
        super().__init__(logic.state_machine)
        self.logic = logic

    def _fix_is_fresh(self, now: int) -> bool:
        data = self.logic.latest_gps_data
        return data.location_valid and _elapsed_ms(now, data.millis_received) <= GPS_TIMEOUT_MS

    def _fix_is_usable(self, now: int) -> bool:
        return self._fix_is_fresh(now) and self.logic.latest_gps_data.nmea_time.valid

    def _crossing_time(self) -> NmeaTime | None:
        """Interpolated time at which the last move crossed the start line."""
        lc = self.logic
        data = lc.latest_gps_data
        if not lc.prev_fix_valid:
            return None
        t_ratio = crossed_line_interpolated(
            (lc.prev_lat, lc.prev_lon), (data.latitude, data.longitude), lc.trap_lines[0]
        )
        if t_ratio is None:
            return None
        return self._interpolate(t_ratio)

    def _interpolate(self, t_ratio: float) -> NmeaTime | None:
        lc = self.logic
        interval = nmea_fix_interval_ms(lc.latest_gps_data.nmea_time, lc.prev_fix_time)
        if not _MIN_FIX_INTERVAL_MS <= interval <= _MAX_FIX_INTERVAL_MS:
            return None
        return add_ms_to_nmea_time(lc.prev_fix_time, int(t_ratio * interval))


class WaitGpsState(BaseLogicState):
    """Waits for a fresh fix with enough satellites and a valid time."""

    def enter(self) -> None:
        self.logic.bus.broadcast(PageId.WAIT_GPS)
        self.logic.logger.log("PAGE_WAIT_GPS")

    def loop(self, dt: int) -> None:
        data = self.logic.latest_gps_data
        if self._fix_is_fresh(self.logic.clock()) and data.satellites >= 4 and data.nmea_time.valid:
            self.state_machine.set_state(LogicStateId.WAIT_LAP_START)
            self.logic.logger.log("setState LOGIC_WAIT_LAP_START")


class WaitLapStartState(BaseLogicState):
    """Waits for the first crossing of the start line."""

    def enter(self) -> None:
        self.logic.bus.broadcast(PageId.WAIT_LAP)
        self.logic.logger.log("enter PAGE_WAIT_LAP")

    def loop(self, dt: int) -> None:
        lc = self.logic
        now = lc.clock()
        if not self._fix_is_usable(now):
            self.state_machine.set_state(LogicStateId.WAIT_GPS)
            lc.logger.log("loop LOGIC_WAIT_GPS")
            return

        if not lc.prev_fix_valid:
            return
        t_ratio = crossed_line_interpolated(
            (lc.prev_lat, lc.prev_lon),
            (lc.latest_gps_data.latitude, lc.latest_gps_data.longitude),
            lc.trap_lines[0],
        )
        if t_ratio is None:
            return
        lc.logger.log("loop crossedLineInterpolated")

        cross_time = self._interpolate(t_ratio)
        if cross_time is None:
            return
        if _elapsed_ms(now, lc.last_cross_millis) < _CROSS_DEBOUNCE_MS:
            return

        lc.lap_start_time = replace(cross_time, valid=True)
        lc.lap_started = True
        lc.last_cross_millis = now
        lc.logger.log("loop LOGIC_TRACKING")
        self.state_machine.set_state(LogicStateId.TRACKING)


class TrackingState(BaseLogicState):
    """Times laps between crossings of the start line."""

    def enter(self) -> None:
        self.logic.bus.broadcast(PageId.TRACKING)

    def loop(self, dt: int) -> None:
        lc = self.logic
        now = lc.clock()
        if not self._fix_is_usable(now):
            self.state_machine.set_state(LogicStateId.WAIT_GPS)
            return

        cross_time = self._crossing_time()
        if cross_time is None:
            return

        lap_time = lap_duration_ms(cross_time, lc.lap_start_time)
        if lap_time < MIN_LAP_TIME_MS or _elapsed_ms(now, lc.last_cross_millis) < _CROSS_DEBOUNCE_MS:
            return

        lc.last_lap_time = lap_time
        if lc.best_lap_time == 0 or lap_time < lc.best_lap_time:
            lc.best_lap_time = lap_time
            if lc.stored_best_lap == 0 or lc.best_lap_time < lc.stored_best_lap:
                lc.stored_best_lap = lc.best_lap_time
                lc.prefs.begin("lapdata", False)
                lc.prefs.put_ulong("bestLap", lc.best_lap_time)
                lc.prefs.end()
        lc.lap_start_time = cross_time
        lc.last_cross_millis = now


class SpeedometerState(BaseLogicState):
    """Shows the speed; the page reads everything through bindings."""

    def enter(self) -> None:
        self.logic.bus.broadcast(PageId.SPEEDOMETER)

    def loop(self, dt: int) -> None:
        """Nothing to do while the speedometer is shown."""