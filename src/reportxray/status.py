"""Mapping of normalized statuses to Xray status strings."""

from typing import Optional

from .models import NormalizedStatus
from .options import StatusOverrides, XrayStatusOptions

SERVER_STATUSES = {
    NormalizedStatus.PASSED: "PASS",
    NormalizedStatus.FAILED: "FAIL",
    NormalizedStatus.PENDING: "TODO",
    NormalizedStatus.SKIPPED: "FAIL",
}

CLOUD_STATUSES = {
    NormalizedStatus.PASSED: "PASSED",
    NormalizedStatus.FAILED: "FAILED",
    NormalizedStatus.PENDING: "TO DO",
    NormalizedStatus.SKIPPED: "FAILED",
}


def map_status(
    status: NormalizedStatus,
    is_cloud: bool,
    overrides: Optional[StatusOverrides] = None,
) -> str:
    """Translate a normalized status into the Xray vocabulary.

    Overrides take precedence over the deployment defaults.
    """
    if overrides is not None:
        override = overrides.get(status)
        if override is not None:
            return override
    statuses = CLOUD_STATUSES if is_cloud else SERVER_STATUSES
    return statuses[status]


def map_step_status(status: str, overrides: Optional[StatusOverrides] = None) -> str:
    """Translate a Cucumber step status.

    Cucumber statuses already match Xray's step vocabulary, so only overrides
    change them. ``undefined`` and ``unknown`` steps are never touched.
    """
    if overrides is None:
        return status
    if status in ("passed", "failed", "pending", "skipped"):
        override = overrides.get(status)
        if override is not None:
            return override
    return status


def count_statuses(statuses: list[NormalizedStatus]) -> dict:
    counts = {"passed": 0, "failed": 0, "pending": 0, "skipped": 0}
    for status in statuses:
        counts[status.value] += 1
    return counts


def aggregate_status(
    statuses: list[NormalizedStatus],
    is_cloud: bool,
    options: Optional[XrayStatusOptions] = None,
) -> str:
    """Compute the overall Xray status of a test from its iterations.

    A single status is mapped directly. For several, a configured aggregate
    callback decides; otherwise skipped iterations win over failed ones.
    """
    if len(statuses) == 1:
        return map_status(statuses[0], is_cloud, options)

    counts = count_statuses(statuses)
    if options is not None and options.aggregate is not None:
        return options.aggregate(counts)

    passed, failed = counts["passed"], counts["failed"]
    pending, skipped = counts["pending"], counts["skipped"]
    if passed > 0 and failed == 0 and skipped == 0:
        result = NormalizedStatus.PASSED
    elif passed == 0 and failed == 0 and skipped == 0 and pending > 0:
        result = NormalizedStatus.PENDING
    elif skipped > 0:
        result = NormalizedStatus.SKIPPED
    else:
        result = NormalizedStatus.FAILED
    return map_status(result, is_cloud, options)
