import io

from laptimer.events import MessageBus
from laptimer.facade import DisplayFacade
from laptimer.logger import Logger
from laptimer.logic import LogicController, Preferences
from laptimer.model import GpsData, LogicStateId, NmeaTime, PageId

MID_LAT = 52.4448867
EAST = 20.6401
WEST = 20.6399


class FakeClock:
    def __init__(self, now=10_000):
        self.now = now

    def __call__(self):
        return self.now


def at(minute, second, hundredths=0):
    return NmeaTime(2024, 5, 1, 10, minute, second, hundredths, True)


def make():
    clock = FakeClock()
    bus = MessageBus()
    pages = []
    bus.subscribe(pages.append)
    stream = io.StringIO()
    prefs = Preferences()
    lc = LogicController(
        None, None, prefs, clock=clock, bus=bus, logger=Logger(stream), display=DisplayFacade()
    )
    lc.setup()
    return lc, clock, pages, prefs, stream


def feed(lc, clock, lon, time, advance=100, satellites=8):
    clock.now += advance
    lc.on_gps_update(
        GpsData(
            latitude=MID_LAT,
            longitude=lon,
            satellites=satellites,
            location_valid=True,
            millis_received=clock.now,
            nmea_time=time,
        )
    )
    lc.loop(advance)


def start_lap():
    lc, clock, pages, prefs, stream = make()
    feed(lc, clock, EAST, at(0, 0, 0), advance=0)
    feed(lc, clock, WEST, at(0, 0, 10))
    return lc, clock, pages, prefs, stream


def test_setup_enters_wait_gps():
    lc, _, pages, _, stream = make()
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_GPS
    assert pages == [PageId.WAIT_GPS]
    assert "PAGE_WAIT_GPS" in stream.getvalue().splitlines()


def test_wait_gps_needs_four_satellites():
    lc, clock, _, _, _ = make()
    feed(lc, clock, EAST, at(0, 0, 0), satellites=3)
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_GPS
    feed(lc, clock, EAST, at(0, 0, 10), satellites=4)
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_LAP_START


def test_wait_gps_needs_valid_time():
    lc, clock, _, _, _ = make()
    feed(lc, clock, EAST, NmeaTime())
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_GPS


def test_first_crossing_starts_lap():
    lc, _, pages, _, _ = start_lap()
    assert lc.state_machine.current_state_id() == LogicStateId.TRACKING
    assert lc.lap_started is True
    assert lc.lap_start_time.valid is True
    assert at(0, 0, 0).ms_of_day() <= lc.lap_start_time.ms_of_day() <= at(0, 0, 10).ms_of_day()
    assert pages == [PageId.WAIT_GPS, PageId.WAIT_LAP, PageId.TRACKING]


def test_crossing_against_bearing_is_ignored():
    lc, clock, _, _, _ = make()
    feed(lc, clock, WEST, at(0, 0, 0), advance=0)
    feed(lc, clock, EAST, at(0, 0, 10))
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_LAP_START
    assert lc.lap_started is False


def test_crossing_with_zero_fix_interval_is_ignored():
    lc, clock, _, _, _ = make()
    feed(lc, clock, EAST, at(0, 0, 0), advance=0)
    feed(lc, clock, WEST, at(0, 0, 0))
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_LAP_START


def test_crossing_too_soon_after_last_is_ignored():
    lc, clock, _, _, _ = make()
    lc.last_cross_millis = clock.now
    feed(lc, clock, EAST, at(0, 0, 0), advance=0)
    feed(lc, clock, WEST, at(0, 0, 10))
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_LAP_START


def test_full_lap_is_timed_and_stored():
    lc, clock, _, prefs, _ = start_lap()
    feed(lc, clock, EAST, at(1, 0, 0), advance=59_900)
    assert lc.best_lap_time == 0
    feed(lc, clock, WEST, at(1, 0, 10))
    assert lc.last_lap_time == 60_000
    assert lc.best_lap_time == 60_000
    assert lc.stored_best_lap == 60_000
    prefs.begin("lapdata", True)
    assert prefs.get_ulong("bestLap", 0) == 60_000
    prefs.end()


def test_faster_lap_improves_best():
    lc, clock, _, _, _ = start_lap()
    feed(lc, clock, EAST, at(1, 0, 0), advance=59_900)
    feed(lc, clock, WEST, at(1, 0, 10))
    feed(lc, clock, EAST, at(1, 50, 0), advance=49_900)
    feed(lc, clock, WEST, at(1, 50, 10))
    assert lc.last_lap_time == 50_000
    assert lc.best_lap_time == 50_000
    assert lc.stored_best_lap == 50_000


def test_slower_lap_keeps_best():
    lc, clock, _, _, _ = start_lap()
    feed(lc, clock, EAST, at(1, 0, 0), advance=59_900)
    feed(lc, clock, WEST, at(1, 0, 10))
    feed(lc, clock, EAST, at(2, 10, 0), advance=69_900)
    feed(lc, clock, WEST, at(2, 10, 10))
    assert lc.last_lap_time == 70_000
    assert lc.best_lap_time == 60_000


def test_too_short_lap_is_ignored():
    lc, clock, _, _, _ = start_lap()
    start = lc.lap_start_time
    feed(lc, clock, EAST, at(0, 10, 0), advance=9_900)
    feed(lc, clock, WEST, at(0, 10, 10))
    assert lc.last_lap_time == 0
    assert lc.lap_start_time == start


def test_tracking_without_valid_time_returns_to_wait_gps():
    lc, clock, _, _, _ = start_lap()
    feed(lc, clock, WEST, NmeaTime())
    assert lc.state_machine.current_state_id() == LogicStateId.WAIT_GPS


def test_speedometer_state_shows_its_page_and_stays():
    lc, clock, pages, _, _ = make()
    feed(lc, clock, EAST, at(0, 0, 0))
    lc.on_bt_command("SETMODE SPD")
    assert pages[-1] == PageId.SPEEDOMETER
    feed(lc, clock, WEST, at(0, 0, 10))
    assert lc.state_machine.current_state_id() == LogicStateId.SPEEDOMETER