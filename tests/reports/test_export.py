"""Tests for report export."""

from datetime import date

import pymupdf
import pytest

from deepdive.reports.export import ExportError, ExportFormat, export_filename, render_export
from deepdive.reports.pdf import summary_max_lines, wrap_text

A4_WIDTH = 595.28
A4_HEIGHT = 841.89

REPORT = """# Cursor vs Windsurf

Reddit users mostly **prefer Cursor** for large refactors.

| Tool | Mentions |
|---|---|
| Cursor | 42 |
| Windsurf | 17 |

- Fast autocomplete
- Better context handling
"""


def _open(data: bytes) -> pymupdf.Document:
    return pymupdf.open(stream=data, filetype="pdf")


class TestExportFilename:
    """SUT: export_filename"""

    def test_names(self):
        assert export_filename("final_report.md", ExportFormat.MD) == "final_report.md"
        assert export_filename("final_report.md", ExportFormat.PDF) == "final_report.pdf"
        assert export_filename("final_report.md", ExportFormat.SUMMARY) == "final_report_summary.pdf"

    def test_accepts_strings(self):
        assert export_filename("report.md", "pdf") == "report.pdf"


class TestRenderExport:
    """SUT: render_export"""

    def test_markdown_is_unchanged(self):
        content = "# Report\r\n\r\nÜnïcödé ✓\r\n"
        assert render_export(content, ExportFormat.MD) == content.encode("utf-8")

    @pytest.mark.parametrize("fmt", list(ExportFormat))
    def test_empty_content(self, fmt):
        with pytest.raises(ExportError):
            render_export("", fmt)

    def test_pdf_is_a4(self):
        doc = _open(render_export(REPORT, ExportFormat.PDF))
        try:
            assert doc.page_count == 1
            page = doc[0]
            assert page.rect.width == pytest.approx(A4_WIDTH, abs=1)
            assert page.rect.height == pytest.approx(A4_HEIGHT, abs=1)
            assert len(page.get_images()) == 1
        finally:
            doc.close()

    def test_long_pdf_spans_pages(self):
        long_report = "# Long\n\n" + "\n\n".join(f"Paragraph {i} about Reddit threads." for i in range(200))
        doc = _open(render_export(long_report, ExportFormat.PDF))
        try:
            assert doc.page_count > 1
        finally:
            doc.close()

    def test_summary(self):
        doc = _open(render_export(REPORT, ExportFormat.SUMMARY, generated_on=date(2026, 3, 5)))
        try:
            assert doc.page_count == 1
            text = doc[0].get_text()
            assert "Reddit Deep-Dive Analysis" in text
            assert "Generated 3/5/2026" in text
            assert "prefer Cursor" in text
            assert "**" not in text
        finally:
            doc.close()

    def test_summary_keeps_typographic_punctuation(self):
        report = "Users call Cursor \u201cgreat\u201d \u2014 it's \u201cfast\u201d."
        doc = _open(render_export(report, ExportFormat.SUMMARY))
        try:
            text = doc[0].get_text()
            assert "\u201cgreat\u201d \u2014 it's" in text
            assert "Powered by Claude Agent SDK" in text
            assert "Analyst \u2014 Powered" in text
        finally:
            doc.close()

    def test_summary_is_truncated_to_one_page(self):
        long_report = "\n\n".join(f"Line {i}" for i in range(300))
        doc = _open(render_export(long_report, ExportFormat.SUMMARY))
        try:
            assert doc.page_count == 1
            text = doc[0].get_text()
            assert "Line 0" in text
            assert "Line 299" not in text
        finally:
            doc.close()


class TestWrapText:
    """SUT: wrap_text"""

    def test_wraps_to_width(self):
        lines = wrap_text("word " * 100, 200)
        assert len(lines) > 1
        assert all(pymupdf.Font("helv").text_length(line, fontsize=10) <= 200 for line in lines)

    def test_keeps_line_breaks(self):
        assert wrap_text("a\n\nb", 200) == ["a", "", "b"]

    def test_splits_long_words(self):
        lines = wrap_text("x" * 200, 100)
        assert len(lines) > 1
        assert "".join(lines) == "x" * 200

    def test_max_lines(self):
        assert summary_max_lines() == 52
