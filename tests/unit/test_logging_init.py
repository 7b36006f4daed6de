from __future__ import annotations

import io
import logging

from pricing_import.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_level,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == APP_LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    assert setup_logging() is first
    assert get_logger() is first
    assert len(first.handlers) == 1


def test_labeled_prefixes(capsys):
    logger = setup_logging()
    logger.info("parsed")
    logger.warning("row=4 error=x")
    logger.error("config: missing")
    log_summary("file=a.xlsx rows=1")
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "INFO parsed",
        "WARN row=4 error=x",
        "ERROR config: missing",
        "SUMMARY file=a.xlsx rows=1",
    ]


def test_module_loggers_propagate_to_app_logger(capsys):
    setup_logging()
    logging.getLogger("pricing_import.services.pipeline").info("file=a.xlsx rows=0")
    assert capsys.readouterr().out == "INFO file=a.xlsx rows=0\n"


def test_summary_level_between_info_and_warning():
    assert logging.INFO < SUMMARY_LEVEL < logging.WARNING
    record = logging.LogRecord("x", SUMMARY_LEVEL, __file__, 1, "done", None, None)
    assert LabeledFormatter().format(record) == "SUMMARY done"


def test_debug_is_filtered_by_default(capsys):
    logger = setup_logging()
    logger.debug("hidden")
    assert capsys.readouterr().out == ""


def test_log_summary_accepts_rendered_line_and_context(capsys):
    setup_logging()
    log_summary("SUMMARY file=a.xlsx imported=3")
    log_summary("SUMMARY file=a.xlsx imported=0", queue_id="pricing_import_1_ab")
    assert capsys.readouterr().out.splitlines() == [
        "SUMMARY file=a.xlsx imported=3",
        "SUMMARY queue_id=pricing_import_1_ab file=a.xlsx imported=0",
    ]


def test_set_level_debug_reaches_handler(capsys):
    setup_logging()
    set_level(logging.DEBUG)
    logging.getLogger("pricing_import.services.session").debug("row=4 edited")
    assert capsys.readouterr().out == "DEBUG row=4 edited\n"


def test_setup_logging_writes_to_given_stream():
    buf = io.StringIO()
    logger = setup_logging(stream=buf)
    logger.warning("row=9 error=x")
    assert buf.getvalue() == "WARN row=9 error=x\n"


def test_exception_traceback_follows_label_line():
    buf = io.StringIO()
    logger = setup_logging(stream=buf)
    try:
        raise ValueError("bad chunk")
    except ValueError:
        logger.exception("chunk=2 failed")
    lines = buf.getvalue().splitlines()
    assert lines[0] == "ERROR chunk=2 failed"
    assert lines[-1] == "ValueError: bad chunk"


def test_reset_logging_removes_handler():
    setup_logging()
    reset_logging()
    logger = logging.getLogger(APP_LOGGER_NAME)
    assert logger.handlers == []
    assert logger.propagate is True
