import logging

from nephrowatch.logging import ContextFilter, consultation_id_var, request_id_var


def _record() -> logging.LogRecord:
    return logging.LogRecord("nephrowatch.test", logging.INFO, __file__, 1, "hello", None, None)


def test_context_filter_defaults_to_dash():
    record = _record()

    assert ContextFilter().filter(record) is True
    assert record.request_id == "-"
    assert record.consultation_id == "-"


def test_context_filter_reads_contextvars():
    request_token = request_id_var.set("req-42")
    consultation_token = consultation_id_var.set(7)
    try:
        record = _record()
        ContextFilter().filter(record)
    finally:
        request_id_var.reset(request_token)
        consultation_id_var.reset(consultation_token)

    assert record.request_id == "req-42"
    assert record.consultation_id == 7


def test_configure_logging_installs_filters_once():
    from nephrowatch import logging as app_logging
    from nephrowatch import main  # noqa: F401  (configures logging on import)

    root_logger = logging.getLogger()
    factory = logging.getLogRecordFactory()
    filters_before = len(root_logger.filters)

    app_logging.configure_logging()
    app_logging.configure_logging()

    assert logging.getLogRecordFactory() is factory
    assert len(root_logger.filters) == filters_before
    assert sum(isinstance(f, ContextFilter) for f in root_logger.filters) == 1
