import io

from laptimer.logger import MAX_FORMATTED_LENGTH, Logger


def test_disabled_logger_writes_nothing():
    log = Logger()
    assert log.enabled() is False
    log.log("ignored")
    log.logf("%d", 1)
    stream = io.StringIO()
    log.set_output(stream)
    assert stream.getvalue() == ""


def test_log_writes_one_line_per_message():
    stream = io.StringIO()
    log = Logger()
    log.set_output(stream)
    assert log.enabled() is True
    log.log("first")
    log.log("second")
    assert stream.getvalue().splitlines() == ["first", "second"]


def test_logf_formats_arguments():
    stream = io.StringIO()
    log = Logger(stream)
    log.logf("lap %d of %s", 3, "race")
    assert stream.getvalue() == "lap 3 of race\n"


def test_logf_truncates_long_output():
    stream = io.StringIO()
    log = Logger(stream)
    log.logf("%s", "x" * 1000)
    line = stream.getvalue().rstrip("\n")
    assert len(line) == MAX_FORMATTED_LENGTH
    assert set(line) == {"x"}


def test_set_output_none_silences_again():
    stream = io.StringIO()
    log = Logger(stream)
    log.set_output(None)
    log.log("lost")
    assert log.enabled() is False
    assert stream.getvalue() == ""