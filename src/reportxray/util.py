"""Small file and time helpers."""

import base64
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Union


def parse_iso_time(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def truncate_iso_time(moment: datetime) -> str:
    """Format a timestamp in UTC with second precision, e.g. 2022-11-28T17:41:15Z."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def normalized_filename(filename: str) -> str:
    """Replace everything except ASCII letters, digits, dots, dashes and underscores."""
    return re.sub(r"[^A-Za-z0-9._-]", "_", filename)


def encode_file(path: Union[str, Path]) -> str:
    """Base64 encode the contents of a file."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")
