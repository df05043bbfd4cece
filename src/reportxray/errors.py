"""Exceptions raised by reportxray."""

import json


class ReportXrayError(Exception):
    """Base class for all reportxray errors."""
    pass


class ConfigurationError(ReportXrayError):
    """Options are missing or contradict each other."""
    pass


class ExtractionError(ReportXrayError):
    """A value could not be read from an API response."""
    pass


class NoIssueKeysFoundError(ReportXrayError):
    """A test title does not contain any issue key of the project."""
    pass


class UnknownStatusError(ReportXrayError, ValueError):
    """A raw test state is not one of the known Cypress states."""
    pass


class NoTestsToUploadError(ReportXrayError):
    """Nothing survived conversion, so there is nothing to import."""
    pass


def error_message(error) -> str:
    """Render an exception (or any other value) for use in log messages."""
    if isinstance(error, BaseException):
        text = str(error)
        return text if text else type(error).__name__
    if isinstance(error, str):
        return error
    return json.dumps(error)
