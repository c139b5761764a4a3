"""Tests for correlation id stamping on log records."""

import logging

from app.utils.my_logging import CorrelationIdFilter, correlation_id_var


def make_record(**extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "booked", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationIdFilter:

    def test_default_outside_request(self):
        record = make_record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "-"

    def test_uses_context_value(self):
        token = correlation_id_var.set("req-42")
        try:
            record = make_record()
            CorrelationIdFilter().filter(record)
        finally:
            correlation_id_var.reset(token)

        assert record.correlation_id == "req-42"

    def test_explicit_extra_wins(self):
        record = make_record(correlation_id="from-extra")
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "from-extra"
