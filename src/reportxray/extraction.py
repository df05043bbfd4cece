"""Issue key and field extraction helpers."""

import json
import re

from .errors import ExtractionError, NoIssueKeysFoundError
from .help import TARGETING_EXISTING_ISSUES


def missing_issue_key_message(title: str, project_key: str) -> str:
    """Remediation text for a test title without any issue key."""
    lines = [
        f"Test: {title}",
        "",
        "  No test issue keys found in title.",
        "",
        "  You can target existing test issues by adding a corresponding issue key:",
        "",
        f'    it("{project_key}-123 {title}", () => {{',
        "      // ...",
        "    });",
        "",
        "  For more information, visit:",
        f"  - {TARGETING_EXISTING_ISSUES}",
    ]
    return "\n".join(lines)


def extract_issue_keys(title: str, project_key: str) -> list[str]:
    """Find all issue keys of the project in a test title.

    Keys are returned in order of appearance. Duplicates are kept.

    Raises:
        NoIssueKeysFoundError: if the title does not contain any key.
    """
    keys = re.findall(rf"({re.escape(project_key)}-\d+)", title)
    if not keys:
        raise NoIssueKeysFoundError(missing_issue_key_message(title, project_key))
    return keys


def _require_property(data, property_name: str):
    if not isinstance(data, dict) or property_name not in data:
        raise ExtractionError(
            f"Expected an object containing property '{property_name}', "
            f"but got: {json.dumps(data)}"
        )
    return data[property_name]


def extract_string(data, property_name: str) -> str:
    """Read a string property from a JSON object."""
    value = _require_property(data, property_name)
    if not isinstance(value, str):
        raise ExtractionError(f"Value is not of type string: {json.dumps(value)}")
    return value


def extract_array_of_strings(data, property_name: str) -> list[str]:
    """Read a string list property from a JSON object."""
    value = _require_property(data, property_name)
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        raise ExtractionError(f"Value is not an array of type string: {json.dumps(value)}")
    return value
