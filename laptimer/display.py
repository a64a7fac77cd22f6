"""Chooses the shown page and redraws it on every tick."""

from __future__ import annotations

from typing import Callable

from laptimer.events import MessageBus, global_bus
from laptimer.facade import DisplayFacade
from laptimer.logic import Controller
from laptimer.model import PageId
from laptimer.pages import Canvas, SpeedPage, TrackingPage, UiPage, WaitGpsPage, WaitLapStartPage


class DisplayController(Controller):
    """Switches pages on bus messages and draws the current one."""

    def __init__(
        self,
        canvas: Canvas,
        *,
        bus: MessageBus | None = None,
        facade: DisplayFacade | None = None,
        on_frame: Callable[[Canvas], None] | None = None,
    ) -> None:
        self.canvas = canvas
        self.facade = facade if facade is not None else DisplayFacade.instance()
        self._on_frame = on_frame
        self._pages: dict[int, UiPage | None] = {}
        self._current: UiPage | None = None
        (bus if bus is not None else global_bus).subscribe(self.on_page_msg)

    def setup(self) -> None:
        """Prepare the canvas and register the standard pages."""
        self.canvas.clear()
        self.canvas.set_font("logisoso20_tf")
        facade = self.facade

        wait_gps = WaitGpsPage()
        wait_gps.satellites.bind(lambda: facade.satellites)
        wait_gps.bt_connected.bind(lambda: facade.bt_connected)

        speed = SpeedPage()
        speed.speed_kmph.bind(lambda: facade.speed_kmph)
        speed.satellites.bind(lambda: facade.satellites)

        wait_lap = WaitLapStartPage()
        wait_lap.pb.bind(lambda: facade.pb)
        wait_lap.satellites.bind(lambda: facade.satellites)

        tracking = TrackingPage()
        tracking.lap_time.bind(lambda: facade.lap_time)
        tracking.best_lap_time.bind(lambda: facade.best_lap_time)
        tracking.stored_best_lap.bind(lambda: facade.stored_best_lap)

        self.register_page(PageId.WAIT_GPS, wait_gps)
        self.register_page(PageId.SPEEDOMETER, speed)
        self.register_page(PageId.WAIT_LAP, wait_lap)
        self.register_page(PageId.TRACKING, tracking)

    def loop(self, dt: int) -> None:
        """Redraw the current page and hand the finished frame on."""
        self.canvas.clear()
        if self._current is not None:
            self._current.render(self.canvas)
        if self._on_frame is not None:
            self._on_frame(self.canvas)

    def register_page(self, page_id: int, page: UiPage | None) -> None:
        self._pages[page_id] = page

    def current_page(self) -> UiPage | None:
        return self._current

    def on_page_msg(self, page_id: int) -> None:
        """Show the page registered under the id; unknown ids are ignored."""
        if page_id not in self._pages:
            return
        if self._current is not None:
            self._current.on_exit()
        self._current = self._pages[page_id]
        if self._current is not None:
            self._current.on_enter()