"""Data models for converted test results."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import UnknownStatusError


class NormalizedStatus(Enum):
    """Runner-agnostic test statuses."""
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"
    SKIPPED = "skipped"

    @classmethod
    def from_string(cls, value: str) -> "NormalizedStatus":
        """Create status from a raw Cypress state, case-insensitive."""
        normalized = str(value).lower().strip()
        for status in cls:
            if status.value == normalized:
                return status
        raise UnknownStatusError(f"Unknown Cypress test status: {value}")


@dataclass
class SuccessfulConversion:
    """One physical test execution, normalized across Cypress versions.

    ``issue_key`` is None when the title does not reference any issue.
    ``duration`` is in milliseconds.
    """
    issue_key: Optional[str]
    title: str
    status: NormalizedStatus
    started_at: datetime
    duration: int
    spec_path: str


@dataclass
class FailedConversion:
    """A test that could not be converted."""
    error: Exception
    spec_path: str
    title: str


@dataclass
class IssueSnapshot:
    """Point-in-time copy of the issue fields a feature import overwrites."""
    key: str
    summary: Optional[str] = None
    labels: Optional[list[str]] = None

    @property
    def is_complete(self) -> bool:
        return self.summary is not None and self.labels is not None
