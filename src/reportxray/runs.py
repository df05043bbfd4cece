"""Converters from Cypress run results to normalized conversions.

Cypress changed its results schema in version 13. Before, every attempt carried
its own timing and screenshots. Since, timings live on the test and screenshots
are reported once per run, so they can only be matched to tests by name.
"""

import json
from datetime import timedelta
from pathlib import PurePath
from typing import Optional, Protocol, Union

from packaging.version import InvalidVersion, Version

from .errors import NoIssueKeysFoundError
from .extraction import extract_issue_keys
from .models import FailedConversion, NormalizedStatus, SuccessfulConversion
from .util import parse_iso_time

Conversion = Union[SuccessfulConversion, FailedConversion]


class RunConverter(Protocol):
    def get_conversions(self, only_last_attempt: bool = False) -> list[Conversion]:
        ...

    def get_screenshots(self, issue_key: str, only_last_attempt: bool = False) -> list[str]:
        ...

    def get_non_attributable_screenshots(self, only_last_attempt: bool = False) -> list[str]:
        ...


def _title(test: dict) -> str:
    title = test.get("title", [])
    if isinstance(title, str):
        return title
    return " ".join(title)


def _issue_keys(title: str, project_key: str) -> list[str]:
    try:
        return extract_issue_keys(title, project_key)
    except NoIssueKeysFoundError:
        return []


def _spec_path(run: dict) -> str:
    spec = run.get("spec", {})
    return spec.get("absolute") or spec.get("relative", "")


def _selected(attempts: list, only_last_attempt: bool) -> list:
    if only_last_attempt and attempts:
        return attempts[-1:]
    return attempts


def _started_at(data):
    """Start time stored under "startedAt", ValueError when absent or malformed."""
    value = data.get("startedAt") if isinstance(data, dict) else None
    if not isinstance(value, str):
        raise ValueError(f"Invalid start time: {json.dumps(value)}")
    return parse_iso_time(value)


def _convert(
    title: str,
    state: str,
    project_key: str,
    started_at,
    duration: int,
    spec_path: str,
) -> list[Conversion]:
    try:
        status = NormalizedStatus.from_string(state)
    except ValueError as e:
        return [FailedConversion(error=e, spec_path=spec_path, title=title)]
    keys = _issue_keys(title, project_key) or [None]
    return [
        SuccessfulConversion(
            issue_key=key,
            title=title,
            status=status,
            started_at=started_at,
            duration=duration,
            spec_path=spec_path,
        )
        for key in keys
    ]


class RunConverterLegacy:
    """Converter for results of Cypress versions below 13."""

    def __init__(self, project_key: str, runs: list[dict]):
        self.project_key = project_key
        self.runs = runs

    def get_conversions(self, only_last_attempt: bool = False) -> list[Conversion]:
        conversions = []
        for run in self.runs:
            spec_path = _spec_path(run)
            for test in run.get("tests", []):
                title = _title(test)
                for attempt in _selected(test.get("attempts", []), only_last_attempt):
                    try:
                        started_at = _started_at(attempt)
                    except ValueError as e:
                        conversions.append(
                            FailedConversion(error=e, spec_path=spec_path, title=title)
                        )
                        continue
                    conversions.extend(_convert(
                        title,
                        attempt.get("state"),
                        self.project_key,
                        started_at,
                        attempt.get("duration") or 0,
                        spec_path,
                    ))
        return conversions

    def _screenshots_by_test(self, only_last_attempt: bool):
        for run in self.runs:
            for test in run.get("tests", []):
                keys = _issue_keys(_title(test), self.project_key)
                paths = []
                for attempt in _selected(test.get("attempts", []), only_last_attempt):
                    paths.extend(s["path"] for s in attempt.get("screenshots", []))
                yield keys, paths

    def get_screenshots(self, issue_key: str, only_last_attempt: bool = False) -> list[str]:
        screenshots = []
        for keys, paths in self._screenshots_by_test(only_last_attempt):
            if issue_key in keys:
                screenshots.extend(paths)
        return screenshots

    def get_non_attributable_screenshots(self, only_last_attempt: bool = False) -> list[str]:
        screenshots = []
        for keys, paths in self._screenshots_by_test(only_last_attempt):
            if not keys:
                screenshots.extend(paths)
        return screenshots


class RunConverterLatest:
    """Converter for results of Cypress 13 and later."""

    def __init__(self, project_key: str, runs: list[dict], screenshots: list[dict]):
        self.project_key = project_key
        self.runs = runs
        self.screenshots = screenshots

    def get_conversions(self, only_last_attempt: bool = False) -> list[Conversion]:
        conversions = []
        for run in self.runs:
            spec_path = _spec_path(run)
            tests = run.get("tests", [])
            try:
                started_at = _started_at(run.get("stats"))
            except ValueError as e:
                conversions.extend(
                    FailedConversion(error=e, spec_path=spec_path, title=_title(test))
                    for test in tests
                )
                continue
            # Tests run one after another, so each starts when the previous ended
            for test in tests:
                title = _title(test)
                duration = test.get("duration") or 0
                for attempt in _selected(test.get("attempts", []), only_last_attempt):
                    conversions.extend(_convert(
                        title,
                        attempt.get("state"),
                        self.project_key,
                        started_at,
                        duration,
                        spec_path,
                    ))
                started_at = started_at + timedelta(milliseconds=duration)
        return conversions

    def _known_issue_keys(self) -> set[str]:
        keys = set()
        for run in self.runs:
            for test in run.get("tests", []):
                keys.update(_issue_keys(_title(test), self.project_key))
        return keys

    def get_screenshots(self, issue_key: str, only_last_attempt: bool = False) -> list[str]:
        return [
            s["path"] for s in self.screenshots
            if issue_key in PurePath(s["path"]).name
        ]

    def get_non_attributable_screenshots(self, only_last_attempt: bool = False) -> list[str]:
        keys = self._known_issue_keys()
        return [
            s["path"] for s in self.screenshots
            if not any(key in PurePath(s["path"]).name for key in keys)
        ]


def cypress_version(version: str) -> Version:
    """Parse a Cypress version string such as "12.17.4" or "13.0.0-beta.1"."""
    try:
        return Version(str(version).strip())
    except InvalidVersion as e:
        raise ValueError(f"Unknown Cypress version: {version}") from e


def get_converter(
    version: str,
    project_key: str,
    runs: list[dict],
    screenshots: Optional[list[dict]] = None,
) -> RunConverter:
    """Pick the converter matching the schema of the given Cypress version."""
    if cypress_version(version) < Version("13.0.0"):
        return RunConverterLegacy(project_key, runs)
    return RunConverterLatest(project_key, runs, screenshots or [])
