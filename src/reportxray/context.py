"""Per-run collections filled while tests execute."""

from collections import defaultdict
from typing import Callable


class EvidenceCollection:
    """Additional evidence items per test issue key."""

    def __init__(self):
        self._evidence: dict[str, list[dict]] = defaultdict(list)

    def add_evidence(self, issue_key: str, evidence: dict):
        self._evidence[issue_key].append(evidence)

    def get_evidence(self, issue_key: str) -> list[dict]:
        return list(self._evidence.get(issue_key, []))


class IterationParameterCollection:
    """Iteration parameters per test issue key and test title."""

    def __init__(self):
        self._parameters: dict[tuple[str, str], dict[str, str]] = {}

    def set_iteration_parameters(self, issue_key: str, title: str, parameters: dict[str, str]):
        self._parameters[(issue_key, title)] = dict(parameters)

    def get_iteration_parameters(self, issue_key: str, title: str) -> dict[str, str]:
        return dict(self._parameters.get((issue_key, title), {}))


class ScreenshotCollection:
    """Screenshots reported by Cypress 13+ once per run."""

    def __init__(self):
        self._screenshots: list[dict] = []

    def add_screenshot(self, screenshot: dict):
        self._screenshots.append(screenshot)

    def get_screenshots(self) -> list[dict]:
        return list(self._screenshots)


class PluginEventEmitter:
    """Synchronous event emitter for upload notifications."""

    def __init__(self):
        self._listeners: dict[str, list[Callable[[dict], None]]] = defaultdict(list)

    def on(self, event: str, listener: Callable[[dict], None]):
        self._listeners[event].append(listener)

    def emit(self, event: str, payload: dict):
        for listener in list(self._listeners.get(event, [])):
            listener(payload)
