"""
File utility functions.
"""

import re
from pathlib import Path

# Characters rejected by at least one common filesystem, plus control characters
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, creating if necessary."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def sanitize_filename(name: str, suffix: str) -> str:
    """
    Turn a free-form title into a filename with the given suffix.

    Unsafe characters become underscores, surrounding whitespace and dots are
    stripped, and an existing suffix (any case) is not repeated.

    Args:
        name: Title or user-supplied filename
        suffix: Required suffix including the dot, e.g. ".pdf"

    Returns:
        Sanitized filename, or an empty string if nothing usable remains

    Example:
        >>> sanitize_filename("Lab: Q3 / vCenter.PDF", ".pdf")
        'Lab_ Q3 _ vCenter.pdf'
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", name).strip()
    if cleaned.lower().endswith(suffix.lower()):
        cleaned = cleaned[: -len(suffix)]
    cleaned = cleaned.strip(" .")
    if not cleaned:
        return ""
    return f"{cleaned}{suffix}"
