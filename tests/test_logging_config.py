import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.readings",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Rejected sensor reading",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(field="humidity", sensor_id=None, unrelated="x"))

    assert line == "Rejected sensor reading | field=humidity"


def test_formatter_without_context_leaves_message_alone() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s", extra_keys=["status"])

    assert formatter.format(_record(field="humidity")) == "WARNING Rejected sensor reading"
