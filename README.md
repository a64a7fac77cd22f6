# laptimer

This package holds the timing logic for a GPS lap timer. It takes a stream of GPS fixes and turns it into lap times.

- It detects when the start/finish line is crossed in the direction of travel.
- It interpolates the moment of crossing between two fixes.
- It keeps the last lap, the best lap and the stored personal best.
- It includes text display pages and a handler for line-based commands.

The package is pure Python and has no runtime dependencies.

## Modules

### `laptimer.events`

- `Subscription` is a broadcast channel. Callbacks run in the order they subscribed. A `SubscriptionHolder` removes its callback again when it is reset, when it is used as a context manager, or when it is collected.
- `MessageBus` carries page-change notifications. The module-level `global_bus` is the shared one.
- `Binding` holds a value that is read lazily through a getter. When no getter is bound, it returns a default.

### `laptimer.statemachine`

- `ObjectStateMachine` switches between registered `State` objects straight away. Each state has `enter`, `loop(dt)` and `exit`.
- `StateMachine` is built from bound callables.
  - Its transitions happen over ticks of `update_state`. The first tick runs the old state's exit function. The next tick runs the new state's enter function, or its tick function when it has no enter function.
  - It remembers previous states for `return_to_previous_state`.

### `laptimer.model`

- `PageId` and `LogicStateId`.
- `TrapLine`: a timing line given in degrees, with its projection in metres and its crossing bearing.
- `NmeaTime`: a UTC date and time. `ms_of_day()` gives the milliseconds since midnight.
- `GpsData`: one processed fix.

### `laptimer.geometry`

- `lat_lon_to_meters` gives a local projection around a fixed reference point.
- `calculate_bearing`, `segments_intersect` (returns an `Intersection` or `None`) and `crossed_line_interpolated` find line crossings. `crossed_line_interpolated` returns the fraction of the move at which the line was crossed, or `None`.
- `nmea_fix_interval_ms`, `lap_duration_ms` and `add_ms_to_nmea_time` do time arithmetic. They handle at most one midnight; dates are never advanced.
- Constants: `MIN_LAP_TIME_MS` and `GPS_TIMEOUT_MS`.

### `laptimer.logic`

`LogicController` receives `GpsData` and command strings from `Subscription`s and runs the timing states. It accepts these commands:

- `SETMODE TRACK`
- `SETMODE SPD`
- `RESET PB`
- `SET PB <ms>`

It also takes:

- an optional `clock` that returns milliseconds;
- optional `bus`, `logger` and `display` objects.

`close()` stops it from listening.

`Preferences` is an in-memory key-value store of unsigned 32-bit numbers, kept under namespaces. `Controller` is the base class for components driven by `setup()` and `loop(dt)`.

### `laptimer.states`

`WaitGpsState`, `WaitLapStartState`, `TrackingState` and `SpeedometerState`.

### `laptimer.facade`

`DisplayFacade` holds the latest values to show. `DisplayFacade.instance()` returns the shared one.

### `laptimer.logger`

`Logger` writes lines to a text stream once `set_output` has been given one. Until then it stays silent. `logger` is the shared instance.

### `laptimer.pages`

- `SpeedPage`, `TrackingPage`, `WaitGpsPage` and `WaitLapStartPage` render text onto a `Canvas`. The canvas keeps the lines by their y position; read one back with `text_at(y)`.
- `format_lap_time` renders milliseconds as `M:SS:hh`, or as `--:--:--` when the value is zero.

### `laptimer.display`

`DisplayController` shows the page whose id is broadcast on the bus. On each tick it redraws that page and passes the canvas to an optional `on_frame` callback.

### `laptimer.bluetooth`

`BtController` works on a serial-like object that provides `begin`, `has_client`, `read_available` and `write`.

- It collects received lines of up to 50 characters and broadcasts them on `command`.
- It forwards NMEA characters to a connected client.
- It reports the link state to the facade.

## Example

```python
from laptimer.geometry import lap_duration_ms
from laptimer.model import NmeaTime
from laptimer.pages import format_lap_time

start = NmeaTime(year=2024, month=5, day=1, hour=12, minute=0, second=0, hundredths=0, valid=True)
end = NmeaTime(year=2024, month=5, day=1, hour=12, minute=1, second=23, hundredths=45, valid=True)

print(format_lap_time(lap_duration_ms(end, start)))  # 1:23:45
```

## What it does not do

- The package does not read a GPS receiver and does not parse NMEA sentences into `GpsData`. Fixes must be broadcast to `LogicController` by the caller.
- It does not drive a real screen; pages draw text onto a `Canvas`.
- It opens no Bluetooth, serial or network connection; `BtController` needs a serial-like object supplied by the caller.
- `Preferences` keeps its values in memory only; nothing is written to disk.
- The package has no command-line program.

## Tests

```
pip install -e .[test]
pytest
```