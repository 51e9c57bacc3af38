from __future__ import annotations

import logging

from infra.logging_config import setup_logging
from infra.operational_support import (
    REDACTED,
    REDACTED_EMAIL,
    RedactingLogFilter,
    TraceIdLogFilter,
    bind_trace_id,
    create_trace_id,
    current_trace_id,
    redact_text,
)


def test_redact_text_scrubs_emails_and_credentials():
    text = redact_text("token=abc123 user alice@example.com sent Bearer xyz.987")

    assert "abc123" not in text
    assert "alice@example.com" not in text
    assert "xyz.987" not in text
    assert f"token={REDACTED}" in text
    assert REDACTED_EMAIL in text


def test_bind_trace_id_scopes_the_identifier():
    assert current_trace_id() is None

    with bind_trace_id("rpt-test-1") as trace_id:
        assert trace_id == "rpt-test-1"
        assert current_trace_id() == "rpt-test-1"
        with bind_trace_id() as nested:
            assert nested.startswith("rpt-")
            assert current_trace_id() == nested
        assert current_trace_id() == "rpt-test-1"

    assert current_trace_id() is None
    assert create_trace_id() != create_trace_id()


def test_log_filters_tag_trace_and_redact_arguments():
    record = logging.LogRecord(
        name="infra.rates",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Rate request failed for %s: %s",
        args=("USD", "password=hunter2 bob@example.com"),
        exc_info=None,
    )

    with bind_trace_id("rpt-filter"):
        assert TraceIdLogFilter().filter(record) is True
    assert RedactingLogFilter().filter(record) is True

    assert record.trace_id == "rpt-filter"
    message = record.getMessage()
    assert "hunter2" not in message
    assert "bob@example.com" not in message
    assert message.startswith("Rate request failed for USD")


def test_setup_logging_writes_redacted_lines_with_trace(tmp_path):
    root = logging.getLogger()
    previous_handlers = list(root.handlers)
    previous_level = root.level
    try:
        log_file = setup_logging(logging.INFO, log_dir=tmp_path / "logs")
        with bind_trace_id("rpt-log-1"):
            logging.getLogger("core.services.profitability").info("Report for carol@example.com ready")
        for handler in root.handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert log_file.name == "app.log"
        assert "trace=rpt-log-1" in content
        assert "carol@example.com" not in content
        assert REDACTED_EMAIL in content
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)
