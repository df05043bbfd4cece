"""Message-level loggers."""

from typing import Optional, Protocol

from rich.console import Console
from rich.text import Text

LEVELS = ("debug", "info", "notice", "warning", "error")

LEVEL_STYLES = {
    "debug": "dim",
    "info": "blue",
    "notice": "green",
    "warning": "yellow",
    "error": "bold red",
}

PREFIX = "│ Cypress │ Xray │"


class Logger(Protocol):
    def message(self, level: str, text: str) -> None:
        ...


class ConsoleLogger:
    """Logger printing every message to stderr with a level badge."""

    def __init__(self, debug: bool = False, console: Optional[Console] = None):
        self.debug = debug
        self.console = console or Console(stderr=True, highlight=False)

    def message(self, level: str, text: str) -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        if level == "debug" and not self.debug:
            return
        style = LEVEL_STYLES[level]
        badge = f"{PREFIX} {level.upper():<7} │ "
        indent = " " * len(badge)
        lines = text.split("\n")
        rendered = Text(badge, style=style)
        rendered.append(lines[0])
        for line in lines[1:]:
            rendered.append("\n" + (indent + line if line else ""))
        self.console.print(rendered, soft_wrap=True)


class CapturingLogger:
    """Logger recording (level, text) pairs in the order they arrive."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def message(self, level: str, text: str) -> None:
        self.messages.append((level, text))

    def at(self, level: str) -> list[str]:
        """All message texts logged at one level."""
        return [text for lvl, text in self.messages if lvl == level]
