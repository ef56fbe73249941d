"""Report discovery, rendering and export."""

from .discovery import find_report_files
from .export import ExportError, ExportFormat, export_filename, render_export
from .markdown import MarkdownRenderer, html_to_text, render_markdown, split_blocks

__all__ = [
    "find_report_files",
    "ExportError",
    "ExportFormat",
    "export_filename",
    "render_export",
    "MarkdownRenderer",
    "html_to_text",
    "render_markdown",
    "split_blocks",
]
