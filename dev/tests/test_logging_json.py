import json
import logging
import sys

from title_catalog.logging_config import (
    JsonFormatter,
    LoggingTimer,
    SimplePerformanceLogger,
    _parse_size_string,
    cleanup_logging,
    get_logger,
    setup_logging,
)


def test_json_formatter_outputs_expected_fields():
    record = logging.LogRecord(
        name="title_catalog.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=123,
        msg="hello %s",
        args=("catalog",),
        exc_info=None,
    )

    formatter = JsonFormatter()
    payload = json.loads(formatter.format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "title_catalog.test"
    assert payload["message"] == "hello catalog"
    assert payload["pathname"] == __file__
    assert payload["lineno"] == 123
    assert "timestamp" in payload
    assert "thread" in payload
    assert "process" in payload


def test_json_formatter_includes_exc_info():
    formatter = JsonFormatter()
    try:
        raise ValueError("boom")
    except Exception:
        record = logging.LogRecord(
            name="title_catalog.test",
            level=logging.ERROR,
            pathname=__file__,
            lineno=55,
            msg="failed",
            args=(),
            exc_info=sys.exc_info(),
        )

    payload = json.loads(formatter.format(record))
    assert "exc_info" in payload
    assert "ValueError" in payload["exc_info"]


def test_parse_size_string():
    assert _parse_size_string("10MB") == 10 * 1024 * 1024
    assert _parse_size_string("512kb") == 512 * 1024
    assert _parse_size_string("1GB") == 1024 ** 3
    assert _parse_size_string("2048") == 2048
    assert _parse_size_string("lots") == 10 * 1024 * 1024


def test_setup_logging_writes_rotating_file(tmp_path):
    try:
        info = setup_logging(
            log_level="DEBUG",
            log_dir=str(tmp_path),
            enable_console_logging=False,
            max_log_size="1KB",
            structured_json=True,
        )
        assert set(info["handlers"]) == {"main_file"}
        assert info["handlers"]["main_file"].maxBytes == 1024

        get_logger("tests").info("catalog ready")
        info["handlers"]["main_file"].flush()
    finally:
        cleanup_logging()

    lines = (tmp_path / "title_catalog.log").read_text(encoding="utf-8").splitlines()
    messages = [json.loads(line)["message"] for line in lines]
    assert "catalog ready" in messages


def test_performance_logger_accumulates():
    perf = SimplePerformanceLogger("tests.performance")
    perf.log_timing("catalog.build", 0.25)
    perf.log_timing("catalog.build", 0.75)

    stats = perf.get_stats()["catalog.build"]
    assert stats["count"] == 2
    assert stats["avg_time"] == 0.5

    perf.reset()
    assert perf.get_stats() == {}


def test_logging_timer_records_duration():
    with LoggingTimer("tests.timer") as timer:
        pass
    assert timer.duration >= 0.0
