"""The lap timer's main logic controller and its settings store."""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from typing import Callable

from laptimer.events import MessageBus, Subscription, SubscriptionHolder, global_bus
from laptimer.facade import DisplayFacade
from laptimer.geometry import GPS_TIMEOUT_MS, lap_duration_ms, lat_lon_to_meters
from laptimer.logger import Logger, logger as default_logger
from laptimer.model import GpsData, LogicStateId, NmeaTime, TrapLine
from laptimer.statemachine import ObjectStateMachine
from laptimer.states import SpeedometerState, TrackingState, WaitGpsState, WaitLapStartState

_ULONG_MASK = 0xFFFFFFFF
_ULONG_SIZE = 4
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class Controller(ABC):
    """A component driven by a setup call and then periodic ticks."""

    @abstractmethod
    def setup(self) -> None:
        ...

    @abstractmethod
    def loop(self, dt: int) -> None:
        ...


class Preferences:
    """A namespaced key-value store of unsigned 32-bit numbers."""

    def __init__(self, storage: dict[str, dict[str, int]] | None = None) -> None:
        self._storage = storage if storage is not None else {}
        self._namespace: str | None = None
        self._read_only = False

    def begin(self, namespace: str, read_only: bool = False) -> bool:
        self._namespace = namespace
        self._read_only = read_only
        return True

    def put_ulong(self, key: str, value: int) -> int:
        """Store a value; returns the bytes written, 0 when closed or read-only."""
        if self._namespace is None or self._read_only:
            return 0
        self._storage.setdefault(self._namespace, {})[key] = value & _ULONG_MASK
        return _ULONG_SIZE

    def get_ulong(self, key: str, default: int = 0) -> int:
        if self._namespace is None:
            return default
        return self._storage.get(self._namespace, {}).get(key, default)

    def end(self) -> None:
        self._namespace = None
        self._read_only = False


def _default_clock() -> Callable[[], int]:
    start = time.monotonic()
    return lambda: int((time.monotonic() - start) * 1000)


def _to_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class LogicController(Controller):
    """Follows GPS fixes and commands, and runs the lap timing states."""

    def __init__(
        self,
        gps_processed: Subscription[GpsData] | None,
        bt_command: Subscription[str] | None,
        prefs: Preferences,
        *,
        clock: Callable[[], int] | None = None,
        bus: MessageBus | None = None,
        logger: Logger | None = None,
        display: DisplayFacade | None = None,
    ) -> None:
        self.prefs = prefs
        self.clock = clock if clock is not None else _default_clock()
        self.bus = bus if bus is not None else global_bus
        self.logger = logger if logger is not None else default_logger
        self.display = display if display is not None else DisplayFacade.instance()

        self.gps_holder = SubscriptionHolder()
        self.bt_command_holder = SubscriptionHolder()
        if gps_processed is not None:
            gps_processed.subscribe(self.on_gps_update, self.gps_holder)
        if bt_command is not None:
            bt_command.subscribe(self.on_bt_command, self.bt_command_holder)

        self.trap_lines = [
            TrapLine(
                "Start/Finish",
                52.444978239573054,
                20.639983209455288,
                52.44479509375817,
                20.640014790479068,
                bearing=264.0,
            )
        ]
        for trap in self.trap_lines:
            trap.x1, trap.y1 = lat_lon_to_meters(trap.lat1, trap.lon1)
            trap.x2, trap.y2 = lat_lon_to_meters(trap.lat2, trap.lon2)

        self.latest_gps_data = GpsData()
        self.last_lap_time = 0
        self.best_lap_time = 0
        self.stored_best_lap = 0
        self.lap_started = False
        self.prev_fix_time = NmeaTime()
        self.prev_fix_valid = False
        self.lap_start_time = NmeaTime()
        self.prev_lat = 0.0
        self.prev_lon = 0.0
        self.last_cross_millis = 0
        self.gps_data_updated = False
        self.state_machine: ObjectStateMachine[LogicStateId] = ObjectStateMachine()

    def setup(self) -> None:
        self.state_machine.register_state(LogicStateId.WAIT_GPS, WaitGpsState(self))
        self.state_machine.register_state(LogicStateId.WAIT_LAP_START, WaitLapStartState(self))
        self.state_machine.register_state(LogicStateId.TRACKING, TrackingState(self))
        self.state_machine.register_state(LogicStateId.SPEEDOMETER, SpeedometerState(self))
        self.state_machine.set_state(LogicStateId.WAIT_GPS)

    def fill_display_facade(self) -> None:
        """Publish the current values for the display pages."""
        data = self.latest_gps_data
        display = self.display
        display.satellites = data.satellites
        display.speed_kmph = data.speed_kmph
        display.pb = self.stored_best_lap
        display.lap_time = (
            lap_duration_ms(data.nmea_time, self.lap_start_time)
            if self.lap_start_time.valid and data.nmea_time.valid
            else 0
        )
        display.best_lap_time = self.best_lap_time
        display.stored_best_lap = self.stored_best_lap

    def loop(self, dt: int) -> None:
        now = self.clock()
        data = self.latest_gps_data
        gps_ok = data.location_valid and ((now - data.millis_received) & _ULONG_MASK) <= GPS_TIMEOUT_MS
        cur_time = data.nmea_time

        if not gps_ok:
            self.prev_fix_valid = False
            self.lap_started = False
            self.state_machine.set_state(LogicStateId.WAIT_GPS)
            self.logger.log("gpsOk LOGIC_WAIT_GPS")

        self.state_machine.loop(dt)
        self.fill_display_facade()

        if gps_ok and cur_time.valid:
            self.prev_lat = data.latitude
            self.prev_lon = data.longitude
            self.prev_fix_time = cur_time
            self.prev_fix_valid = True

    def on_gps_update(self, data: GpsData) -> None:
        self.latest_gps_data = data
        self.gps_data_updated = True

    def on_bt_command(self, cmd: str) -> None:
        if cmd == "SETMODE TRACK":
            self.state_machine.set_state(LogicStateId.WAIT_LAP_START)
            self.lap_started = False
            self.prev_fix_valid = False
        elif cmd == "SETMODE SPD":
            self.state_machine.set_state(LogicStateId.SPEEDOMETER)
        elif cmd == "RESET PB":
            self.prefs.begin("lapdata", False)
            self.prefs.put_ulong("bestLap", 0)
            self.prefs.end()
            self.stored_best_lap = 0
            self.best_lap_time = 0
        elif cmd.startswith("SET PB "):
            new_pb = _to_int(cmd[7:]) & _ULONG_MASK
            if new_pb > 0:
                self.stored_best_lap = new_pb
                self.prefs.begin("lapdata", True)
                self.prefs.put_ulong("bestLap", self.stored_best_lap)
                self.prefs.end()

    def close(self) -> None:
        """Stop listening to GPS fixes and commands."""
        self.gps_holder.reset()
        self.bt_command_holder.reset()