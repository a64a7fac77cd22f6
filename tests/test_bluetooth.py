from laptimer.bluetooth import BtController
from laptimer.events import Subscription, SubscriptionHolder
from laptimer.facade import DisplayFacade


class FakeSerial:
    def __init__(self, connected=True):
        self.connected = connected
        self.incoming = ""
        self.written = []
        self.name = None

    def begin(self, name):
        self.name = name

    def has_client(self):
        return self.connected

    def read_available(self):
        data, self.incoming = self.incoming, ""
        return data

    def write(self, data):
        self.written.append(data)


def make(connected=True, source=None):
    serial = FakeSerial(connected)
    facade = DisplayFacade()
    controller = BtController(source, serial, facade=facade)
    received = []
    holder = SubscriptionHolder()
    controller.command.subscribe(received.append, holder)
    return controller, serial, facade, received, holder


def test_setup_uses_device_name():
    controller, serial, *_ = make()
    controller.setup()
    assert serial.name == "ESP32_GPS"


def test_commands_split_on_line_endings():
    controller, serial, _, received, _holder = make()
    serial.incoming = "SETMODE TRACK\r\nRESET PB\n"
    controller.loop(0)
    assert received == ["SETMODE TRACK", "RESET PB"]


def test_commands_are_trimmed():
    controller, serial, _, received, _holder = make()
    serial.incoming = "  SET PB 1000 \n"
    controller.loop(0)
    assert received == ["SET PB 1000"]


def test_partial_command_waits_for_newline():
    controller, serial, _, received, _holder = make()
    serial.incoming = "SETMODE"
    controller.loop(0)
    assert received == []
    serial.incoming = " SPD\n"
    controller.loop(0)
    assert received == ["SETMODE SPD"]


def test_long_command_is_cut():
    controller, serial, _, received, _holder = make()
    text = "A" * 60
    serial.incoming = text + "\n"
    controller.loop(0)
    assert received == [text[:50]]


def test_loop_publishes_connection_state():
    controller, serial, facade, _, _holder = make(connected=True)
    controller.loop(0)
    assert facade.bt_connected is True
    serial.connected = False
    controller.loop(0)
    assert facade.bt_connected is False
    assert controller.is_connected() is False


def test_nmea_chars_forwarded_when_connected():
    source = Subscription()
    controller, serial, *_ = make(connected=True, source=source)
    for char in "$GP":
        source.broadcast(char)
    assert "".join(serial.written) == "$GP"


def test_nmea_chars_dropped_without_client():
    source = Subscription()
    controller, serial, *_ = make(connected=False, source=source)
    source.broadcast("$")
    controller.send_nmea_char("G")
    assert serial.written == []


def test_send_response_writes_line():
    controller, serial, *_ = make(connected=True)
    controller.send_response("OK")
    assert serial.written == ["OK\r\n"]


def test_send_response_without_client():
    controller, serial, *_ = make(connected=False)
    controller.send_response("OK")
    assert serial.written == []