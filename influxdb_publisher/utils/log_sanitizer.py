"""
Log sanitization helpers.

Console lines and URLs come from the build and may carry control
characters or embedded credentials; neither should reach the logs verbatim.
"""

import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit


def sanitize_for_log(value: Any, max_length: int = 200) -> str:
    """
    Sanitize a value for safe logging.

    Removes control characters and newlines, then truncates.

    Args:
        value: The value to sanitize
        max_length: Maximum length of the output (default 200)

    Returns:
        Sanitized string safe for logging
    """
    sanitized = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", str(value))

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."

    return sanitized


def redact_url(url: str) -> str:
    """Drop user info (``user:password@``) from a URL, leave anything unparsable as-is."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))
