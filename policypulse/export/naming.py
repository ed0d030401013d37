"""Output file names for exported reports."""

from datetime import date

from policypulse.utils import slugify

COMPARISON_STEM = "comparative_bill_analysis"


def single_bill_filename(title: str | None, on: date) -> str:
    """``<slug(title)>_analysis_<YYYY-MM-DD>.pdf``; an empty title becomes "bill"."""
    return f"{slugify(title or 'bill')}_analysis_{on:%Y-%m-%d}.pdf"


def comparison_filename(on: date) -> str:
    """``comparative_bill_analysis_<YYYY-MM-DD>.pdf``."""
    return f"{COMPARISON_STEM}_{on:%Y-%m-%d}.pdf"
