"""Shared utility functions for PolicyPulse.

Contains the canonical implementations of the formatting helpers used by
the report builders and the export file naming. All callsites should
import from here rather than maintaining local copies.
"""

import re
from datetime import date, datetime

from dateutil import parser as dateparser

_NON_SLUG = re.compile(r"[^a-z0-9]")


def slugify(title: str) -> str:
    """Lower-case ``title`` and replace every character outside ``[a-z0-9]``.

    Each offending character becomes one underscore; runs are not collapsed,
    so "HB 12: Water" becomes "hb_12__water".

    Args:
        title: Bill title (any characters).

    Returns:
        Filesystem-safe slug.
    """
    return _NON_SLUG.sub("_", title.lower())


def format_date(value: str | date | datetime | None, fallback: str = "Not specified") -> str:
    """Format a date-ish value as ``Month D, YYYY`` for report display.

    Strings are parsed leniently with dateutil; values that do not parse
    are returned unchanged so nothing supplied by the source is lost.

    Args:
        value: ISO string, free-form date string, date, datetime, or None.
        fallback: Text returned for None or empty input.

    Returns:
        Human-readable date string.
    """
    if value is None or value == "":
        return fallback
    if isinstance(value, (date, datetime)):
        parsed = value
    else:
        try:
            parsed = dateparser.parse(str(value))
        except (ValueError, OverflowError):
            return str(value)
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, appending an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
