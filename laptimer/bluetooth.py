"""Command channel and NMEA relay over a serial link."""

from __future__ import annotations

from typing import Protocol

from laptimer.events import Subscription, SubscriptionHolder
from laptimer.facade import DisplayFacade
from laptimer.logic import Controller

MAX_COMMAND_LENGTH = 50
DEVICE_NAME = "ESP32_GPS"


class _SerialPort(Protocol):
    def begin(self, name: str) -> None: ...

    def has_client(self) -> bool: ...

    def read_available(self) -> str: ...

    def write(self, data: str) -> None: ...


class BtController(Controller):
    """Reads line commands from the link and forwards raw NMEA to it."""

    def __init__(
        self,
        nmea_source: Subscription[str] | None,
        serial: _SerialPort,
        *,
        facade: DisplayFacade | None = None,
        device_name: str = DEVICE_NAME,
    ) -> None:
        self.serial = serial
        self.device_name = device_name
        self.facade = facade if facade is not None else DisplayFacade.instance()
        self.command: Subscription[str] = Subscription()
        self._buffer = ""
        self._nmea_holder = SubscriptionHolder()
        if nmea_source is not None:
            nmea_source.subscribe(self.send_nmea_char, self._nmea_holder)

    def setup(self) -> None:
        self.serial.begin(self.device_name)

    def loop(self, dt: int) -> None:
        """Collect received characters into commands and publish the link state."""
        for char in self.serial.read_available():
            if char in "\r\n":
                if self._buffer:
                    self.command.broadcast(self._buffer.strip())
                    self._buffer = ""
            elif len(self._buffer) < MAX_COMMAND_LENGTH:
                self._buffer += char
        self.facade.bt_connected = self.is_connected()

    def send_response(self, msg: str) -> None:
        """Send a line to the client, if one is connected."""
        if self.serial.has_client():
            self.serial.write(f"{msg}\r\n")

    def is_connected(self) -> bool:
        return self.serial.has_client()

    def send_nmea_char(self, c: str) -> None:
        if self.serial.has_client():
            self.serial.write(c)