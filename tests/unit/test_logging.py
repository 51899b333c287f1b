"""Unit tests for logging utilities and the exception hierarchy."""

import json
import logging
import sys

import pytest

from tmsession.tmux.logging_utils import (
    log_layout_retry,
    log_session_kill,
    log_session_operation,
    log_tmux_command,
)
from tmsession.utils.logging import (
    ConfigurationError,
    ContextualLogger,
    InvocationError,
    LogContext,
    LogLevel,
    PaneTooSmallError,
    SessionFileError,
    StructuredFormatter,
    TmSessionException,
    TmuxError,
    get_logger,
    setup_logging,
)


class TestExceptions:
    """Test the exception hierarchy."""

    @pytest.mark.parametrize(
        "exc_class",
        [InvocationError, ConfigurationError, SessionFileError, TmuxError, PaneTooSmallError],
    )
    def test_subclasses(self, exc_class):
        """Test every error derives from the tmsession base."""
        assert issubclass(exc_class, TmSessionException)

    def test_context(self):
        """Test message and context are kept."""
        error = SessionFileError("bad file", {"path": "/x"})
        assert str(error) == "bad file"
        assert error.message == "bad file"
        assert error.context == {"path": "/x"}

    def test_tmux_error_details(self):
        """Test tmux errors carry the command and stderr."""
        error = PaneTooSmallError(
            "no room", command=["split-window"], stderr=["pane too small"]
        )
        assert isinstance(error, TmuxError)
        assert error.command == ["split-window"]
        assert error.stderr == ["pane too small"]
        assert error.context["stderr"] == ["pane too small"]


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_format_with_extras(self):
        """Test context and extra fields end up in the JSON."""
        record = logging.LogRecord(
            name="tmsession.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Session created",
            args=(),
            exc_info=None,
        )
        record.context = "session"
        record.session_name = "box_s_web1"
        record.hosts = 2

        data = json.loads(StructuredFormatter().format(record))
        assert data["message"] == "Session created"
        assert data["context"] == "session"
        assert data["session_name"] == "box_s_web1"
        assert data["hosts"] == 2

    def test_format_exception(self):
        """Test exception details are included."""
        try:
            raise TmuxError("boom")
        except TmuxError:
            record = logging.LogRecord(
                "tmsession.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        data = json.loads(StructuredFormatter().format(record))
        assert data["exception"]["type"] == "TmuxError"
        assert data["exception"]["message"] == "boom"


class TestContextualLogger:
    """Test context injection."""

    def test_extra_fields(self, caplog):
        """Test context, session name and keyword fields are attached."""
        logger = get_logger("tmsession.test.contextual", LogContext.SESSION)
        assert isinstance(logger, ContextualLogger)
        logger.set_session_name("work")

        with caplog.at_level(logging.INFO, logger="tmsession.test.contextual"):
            logger.info("Session created", hosts=3)

        record = caplog.records[-1]
        assert record.context == "session"
        assert record.session_name == "work"
        assert record.hosts == 3


class TestTmuxLogging:
    """Test tmux logging helpers."""

    def test_command_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="tmsession.tmux"):
            log_tmux_command(["new-session", "-d", "-s", "work"])
        assert "tmux new-session -d -s work" in caplog.text

    def test_layout_retry_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tmsession.tmux"):
            log_layout_retry("work:1", 1, 10)
        assert "re-tiling (attempt 1/10)" in caplog.text

    def test_session_operation(self, caplog):
        with caplog.at_level(logging.INFO, logger="tmsession.tmux"):
            log_session_operation("create", "work")
        assert "Session create done - work" in caplog.text

    def test_kill_outcomes(self, caplog):
        with caplog.at_level(logging.INFO, logger="tmsession.tmux"):
            log_session_kill("old", existed=True)
            log_session_kill("ghost", existed=False)
        assert "Session killed - old" in caplog.text
        assert "no such session - ghost" in caplog.text


def test_setup_logging(tmp_path):
    """Test handlers and level are installed on the root logger."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "logs" / "tm.log"
    try:
        setup_logging(LogLevel.DEBUG, log_file=log_file, enable_structured=True)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert all(isinstance(h.formatter, StructuredFormatter) for h in root.handlers)
        assert log_file.parent.is_dir()
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
