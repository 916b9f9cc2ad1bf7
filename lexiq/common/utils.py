"""
Common utility functions for the assessment engine.

Key normalization for externally authored records and time formatting
for the countdown display.
"""

import re
from typing import Any, Dict, Mapping

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])([A-Z])')


def camel_to_snake(name: str) -> str:
    """
    Convert a camelCase or kebab-case key to snake_case.

    Args:
        name: Key to convert

    Returns:
        snake_case key (e.g. "timeLimitSeconds" -> "time_limit_seconds")
    """
    return _CAMEL_BOUNDARY.sub(r'_\1', name).replace('-', '_').lower()


def normalize_keys(data: Mapping[str, Any], recursive: bool = False) -> Dict[str, Any]:
    """
    Return a copy of a mapping with every key converted to snake_case.

    Args:
        data: Mapping to normalize
        recursive: Whether to normalize nested mappings as well

    Returns:
        New dictionary with normalized keys
    """
    result = {}
    for key, value in data.items():
        if recursive and isinstance(value, Mapping):
            value = normalize_keys(value, recursive=True)
        result[camel_to_snake(str(key))] = value
    return result


def format_clock(seconds: float) -> str:
    """
    Format a remaining-time value for a countdown display.

    Args:
        seconds: Remaining seconds (negative values are shown as zero)

    Returns:
        "H:MM:SS" when an hour or more remains, otherwise "MM:SS"
    """
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
