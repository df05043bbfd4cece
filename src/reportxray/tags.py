"""Issue key patterns in Gherkin tags and comments."""

import re
from typing import Optional


def scenario_tag_pattern(project_key: str, prefix: Optional[str] = None) -> re.Pattern:
    """Pattern of a scenario tag referencing a test issue, e.g. @TestName:CYP-123."""
    optional_prefix = f"(?:{re.escape(prefix)})?" if prefix else ""
    return re.compile(rf"@{optional_prefix}({re.escape(project_key)}-\d+)")


def precondition_comment_pattern(project_key: str, prefix: Optional[str] = None) -> re.Pattern:
    """Pattern of a background comment referencing a precondition issue."""
    optional_prefix = f"(?:{re.escape(prefix)})?" if prefix else ""
    return re.compile(rf"#\s*@{optional_prefix}({re.escape(project_key)}-\d+)")


def issue_keys_in_tags(tags: list[str], pattern: re.Pattern) -> list[str]:
    keys = []
    for tag in tags:
        match = pattern.search(tag)
        if match:
            keys.append(match.group(1))
    return keys
