"""Locate research reports in a workspace file tree."""

from typing import Iterable, List

from ..models.session import FileInfo


def is_report_file(item: FileInfo) -> bool:
    return item.type == "file" and item.name.endswith(".md") and "report" in item.name


def find_report_files(items: Iterable[FileInfo]) -> List[FileInfo]:
    """Markdown files whose name contains "report", searched recursively in tree order."""
    reports = []
    for item in items:
        if is_report_file(item):
            reports.append(item)
        if item.children:
            reports.extend(find_report_files(item.children))
    return reports
