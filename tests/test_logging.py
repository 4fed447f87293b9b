"""Tests for atlex._logging module."""

import logging

import pytest

import atlex
from atlex._logging import LoggerProtocol, configure_logging, get_logger, log_operation
from atlex.lexicon import compile_lexicon


class TestGetLogger:
    def test_default_is_stdlib(self):
        log = get_logger()
        assert isinstance(log, logging.Logger)
        assert log.name == "atlex"

    def test_satisfies_protocol(self):
        log = get_logger()
        assert isinstance(log, LoggerProtocol)


class TestConfigureLogging:
    def test_custom_logger(self):
        calls: list[tuple[str, str]] = []

        class CustomLogger:
            def debug(self, msg, *a, **kw):
                calls.append(("debug", msg % a if a else msg))

            def info(self, msg, *a, **kw):
                calls.append(("info", msg % a if a else msg))

            def warning(self, msg, *a, **kw):
                calls.append(("warning", msg % a if a else msg))

            def error(self, msg, *a, **kw):
                calls.append(("error", msg % a if a else msg))

        custom = CustomLogger()
        configure_logging(custom)
        try:
            log = get_logger()
            assert log is custom
            log.info("hello %s", "world")
            assert calls[-1] == ("info", "hello world")
        finally:
            # Restore default
            configure_logging(logging.getLogger("atlex"))

    def test_restore_default(self):
        """Ensure default logger is stdlib after test cleanup."""
        log = get_logger()
        assert isinstance(log, logging.Logger)

    def test_stdlib_records(self, caplog):
        with caplog.at_level(logging.INFO, logger="atlex"):
            compile_lexicon(
                {"lexicon": 1, "id": "com.example.thing", "defs": {"main": {"type": "token"}}}
            )
        assert any(
            "compile_lexicon: completed in" in r.getMessage()
            and "nsid=com.example.thing" in r.getMessage()
            for r in caplog.records
        )


class TestLogOperation:
    def test_logs_start_and_complete_with_context(self, log_calls):
        with log_operation("test_op", x=42):
            pass
        assert any("test_op: started" in msg and "x=42" in msg for _, msg in log_calls)
        assert any(
            "test_op: completed in" in msg and "x=42" in msg for _, msg in log_calls
        )

    def test_logs_error_on_exception(self, log_calls):
        with pytest.raises(ValueError, match="boom"):
            with log_operation("fail_op"):
                raise ValueError("boom")
        assert any(
            level == "error" and "fail_op: failed after" in msg
            for level, msg in log_calls
        )

    def test_no_context(self, log_calls):
        with log_operation("bare"):
            pass
        start_msgs = [msg for _, msg in log_calls if "bare: started" in msg]
        assert len(start_msgs) == 1
        # No parenthesized context
        assert "(" not in start_msgs[0]

    def test_elapsed_time_is_positive(self, log_calls):
        with log_operation("timed"):
            pass
        completed = [msg for _, msg in log_calls if "timed: completed in" in msg]
        assert len(completed) == 1
        # Extract the float from "completed in X.XXs"
        elapsed_str = completed[0].split("completed in ")[1].split("s")[0]
        assert float(elapsed_str) >= 0.0


class TestConfigureLoggingViaPublicApi:
    def test_atlex_configure_logging(self):
        """configure_logging is accessible from atlex top-level."""
        assert atlex.configure_logging is configure_logging

    def test_atlex_get_logger(self):
        assert atlex.get_logger is get_logger

    def test_atlex_log_operation(self):
        assert atlex.log_operation is log_operation
