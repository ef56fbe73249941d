"""Report export formats."""

import re
from enum import Enum
from typing import Optional
from datetime import date

from .markdown import html_to_text, render_markdown
from .pdf import render_report_pdf, render_summary_pdf


class ExportFormat(str, Enum):
    MD = "md"
    PDF = "pdf"
    SUMMARY = "summary"


class ExportError(RuntimeError):
    """Raised when a report cannot be exported."""


_MD_SUFFIX = re.compile(r"\.md$")


def export_filename(name: str, fmt: ExportFormat) -> str:
    """File name for an exported report: x.md, x.pdf or x_summary.pdf."""
    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.MD:
        return name
    if fmt == ExportFormat.PDF:
        return _MD_SUFFIX.sub(".pdf", name)
    return _MD_SUFFIX.sub("_summary.pdf", name)


def render_export(content: str, fmt: ExportFormat, generated_on: Optional[date] = None) -> bytes:
    """
    Convert fetched report Markdown into the bytes of the requested format.

    The Markdown export is the fetched content itself, encoded as UTF-8.

    Raises:
        ExportError: If the content is empty
    """
    if not content:
        raise ExportError("Empty content")

    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.MD:
        return content.encode("utf-8")

    html = render_markdown(content)
    if fmt == ExportFormat.PDF:
        return render_report_pdf(html)
    return render_summary_pdf(html_to_text(html), generated_on=generated_on)
