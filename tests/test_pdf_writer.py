"""Tests for PDF page sizes and writing."""

import pytest
from reportlab.lib.pagesizes import A4, letter

from policypulse.reports import pdf_writer
from policypulse.reports.paginator import paginate
from policypulse.reports.pdf_writer import page_size, write_pdf
from policypulse.reports.surface import Surface
from policypulse.schemas.models import Orientation, PageFormat


class TestPageSize:
    def test_letter_portrait(self):
        assert page_size(PageFormat.LETTER, Orientation.PORTRAIT) == letter

    def test_a4_landscape(self):
        width, height = page_size(PageFormat.A4, Orientation.LANDSCAPE)
        assert (width, height) == (A4[1], A4[0])
        assert width > height

    def test_accepts_string_values(self):
        assert page_size("a4", "portrait") == A4


class TestWritePdf:
    """Pages are written atomically as one image per page."""

    def test_writes_file(self, tmp_path):
        report = Surface.blank(100, 250)
        pages = paginate(report, 100)
        path = write_pdf(pages, tmp_path / "nested" / "report.pdf", letter, title="Report")

        assert path == tmp_path / "nested" / "report.pdf"
        data = path.read_bytes()
        assert data.startswith(b"%PDF")
        assert not (tmp_path / "nested" / "report.pdf.tmp").exists()

    def test_no_pages_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            write_pdf([], tmp_path / "empty.pdf", letter)
        assert list(tmp_path.iterdir()) == []

    def test_failure_leaves_no_file(self, tmp_path, monkeypatch):
        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(pdf_writer.os, "replace", failing_replace)
        pages = paginate(Surface.blank(50, 50), 50)
        with pytest.raises(OSError, match="disk full"):
            write_pdf(pages, tmp_path / "broken.pdf", letter)
        assert list(tmp_path.iterdir()) == []
