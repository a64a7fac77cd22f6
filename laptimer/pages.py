"""Screen pages and the text canvas they are drawn on."""

from __future__ import annotations

from abc import ABC, abstractmethod

from laptimer.events import Binding

_ULONG_MASK = 0xFFFFFFFF
NO_TIME = "--:--:--"


class Canvas:
    """A text frame buffer: each print appends to the line at the cursor's y."""

    def __init__(self) -> None:
        self.font: str | None = None
        self.x = 0
        self.y = 0
        self.lines: dict[int, str] = {}

    def set_font(self, font: str) -> None:
        self.font = font

    def set_cursor(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def print(self, text: object) -> None:
        """Draw text at the cursor and move the cursor past it."""
        rendered = str(text)
        self.lines[self.y] = self.lines.get(self.y, "") + rendered
        self.x += len(rendered)

    def clear(self) -> None:
        """Erase everything drawn; the font stays selected."""
        self.lines.clear()
        self.x = 0
        self.y = 0

    def text_at(self, y: int) -> str:
        """Text drawn on the line at y, or an empty string."""
        return self.lines.get(y, "")


def format_lap_time(ms: int) -> str:
    """Format a lap time as minutes:seconds:hundredths, or dashes when zero."""
    ms &= _ULONG_MASK
    if ms == 0:
        return NO_TIME
    return f"{ms // 60000}:{(ms // 1000) % 60:02d}:{(ms % 1000) // 10:02d}"


class UiPage(ABC):
    """A page that can be shown on the display; it knows whether it is shown."""

    visible = False

    @abstractmethod
    def render(self, canvas: Canvas) -> None:
        """Draw the page."""

    def on_enter(self) -> None:
        """Called when the page becomes the shown one."""
        self.visible = True

    def on_exit(self) -> None:
        """Called when another page replaces this one."""
        self.visible = False


class SpeedPage(UiPage):
    """Current speed and satellite count."""

    def __init__(self) -> None:
        self.speed_kmph: Binding[float] = Binding(0.0)
        self.satellites: Binding[int] = Binding(0)

    def render(self, canvas: Canvas) -> None:
        canvas.set_font("logisoso20_tf")
        canvas.set_cursor(0, 28)
        speed = self.speed_kmph.value()
        canvas.print(f"{speed:.1f} km/h" if speed > 0 else "--.- km/h")
        canvas.set_font("helvR08_tr")
        canvas.set_cursor(0, 50)
        canvas.print("SAT: ")
        canvas.print(int(self.satellites.value()))


class TrackingPage(UiPage):
    """The running lap time and the best lap."""

    def __init__(self) -> None:
        self.lap_time: Binding[int] = Binding(0)
        self.best_lap_time: Binding[int] = Binding(0)
        self.stored_best_lap: Binding[int] = Binding(0)

    def render(self, canvas: Canvas) -> None:
        best = self.best_lap_time.value()
        shown_best = best if best > 0 else self.stored_best_lap.value()

        canvas.set_font("logisoso22_tf")
        canvas.set_cursor(0, 30)
        canvas.print("L ")
        canvas.print(format_lap_time(self.lap_time.value()))
        canvas.set_cursor(0, 60)
        canvas.print("B ")
        canvas.print(format_lap_time(shown_best))


class WaitGpsPage(UiPage):
    """Shown while waiting for a usable fix."""

    def __init__(self) -> None:
        self.satellites: Binding[int] = Binding(0)
        self.bt_connected: Binding[bool] = Binding(False)

    def render(self, canvas: Canvas) -> None:
        canvas.set_font("helvR10_tr")
        canvas.set_cursor(0, 12)
        canvas.print("WAITING FOR GPS")
        canvas.set_cursor(0, 28)
        canvas.print("Sats: ")
        canvas.print(int(self.satellites.value()))
        canvas.set_cursor(0, 44)
        canvas.print("BT: ")
        canvas.print("Connected" if self.bt_connected.value() else "Waiting...")


class WaitLapStartPage(UiPage):
    """Shown while waiting for the first crossing of the start line."""

    def __init__(self) -> None:
        self.pb: Binding[int] = Binding(0)
        self.satellites: Binding[int] = Binding(0)

    def render(self, canvas: Canvas) -> None:
        canvas.set_font("helvR10_tr")
        canvas.set_cursor(0, 12)
        canvas.print("READY TO START LAP")
        canvas.set_cursor(0, 30)
        canvas.print("PB: ")
        canvas.print(format_lap_time(self.pb.value()))
        canvas.set_cursor(0, 48)
        canvas.print("SAT: ")
        canvas.print(int(self.satellites.value()))