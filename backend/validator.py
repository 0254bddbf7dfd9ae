"""Chat export format check used to gate analysis requests."""

from __future__ import annotations

import re

# Only the first few lines are inspected; exporters sometimes prepend blank lines.
PREFIX_LINE_COUNT = 5

# [17/01/25, 10:12:01 PM] and [7/1/2025, 9:05:33 AM] are both accepted.
TIMESTAMP_LINE_RE = re.compile(
    r"^\[\d{1,2}/\d{1,2}/(?:\d{4}|\d{2}),\s\d{1,2}:\d{2}:\d{2}\s[AP]M\]"
)


def validate(text: str) -> bool:
    """Return True if any of the first lines starts with an export timestamp.

    Args:
        text: Raw transcript as pasted by the user. May be empty.

    Returns:
        True when at least one of the first ``PREFIX_LINE_COUNT`` lines matches
        the ``[DD/MM/YY, H:MM:SS AM|PM]`` prefix, False otherwise.
    """
    if not text:
        return False
    lines = text.split("\n")[:PREFIX_LINE_COUNT]
    return any(TIMESTAMP_LINE_RE.match(line) for line in lines)
