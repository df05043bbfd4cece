"""Tests for loggers."""

import io

import pytest
from rich.console import Console

from reportxray.log import CapturingLogger, ConsoleLogger


@pytest.fixture
def output():
    return io.StringIO()


def _logger(output, debug=False):
    console = Console(file=output, force_terminal=False, width=200, highlight=False)
    return ConsoleLogger(debug=debug, console=console)


class TestConsoleLogger:
    """Tests for console output."""

    def test_badge_and_indent(self, output):
        _logger(output).message("warning", "first line\n\nsecond line")
        lines = output.getvalue().split("\n")
        assert lines[0] == "│ Cypress │ Xray │ WARNING │ first line"
        assert lines[1] == ""
        assert lines[2] == " " * len("│ Cypress │ Xray │ WARNING │ ") + "second line"

    def test_debug_hidden_by_default(self, output):
        _logger(output).message("debug", "details")
        assert output.getvalue() == ""

    def test_debug_enabled(self, output):
        _logger(output, debug=True).message("debug", "details")
        assert "DEBUG   │ details" in output.getvalue()

    def test_unknown_level(self, output):
        with pytest.raises(ValueError, match="Unknown log level"):
            _logger(output).message("fatal", "boom")


class TestCapturingLogger:
    """Tests for the recording logger."""

    def test_records_in_order(self):
        logger = CapturingLogger()
        logger.message("info", "a")
        logger.message("warning", "b")
        logger.message("info", "c")
        assert logger.messages == [("info", "a"), ("warning", "b"), ("info", "c")]
        assert logger.at("info") == ["a", "c"]
