"""PDF rendering of research reports with PyMuPDF.

Two layouts:

* full report: the HTML is laid out at a fixed width, rasterized at 2x and
  placed as JPEG slices on A4 pages with 10 mm margins
* summary: plain text set in Helvetica (with MuPDF fallback fonts) on a
  single A4 page, truncated to the lines that fit
"""

import io
from datetime import date
from typing import List, Optional

import pymupdf

MM = 72 / 25.4  # points per millimetre

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297

REPORT_LAYOUT_WIDTH = 794
REPORT_RENDER_SCALE = 2
REPORT_JPEG_QUALITY = 95
REPORT_MARGIN_MM = 10
REPORT_BADGE = "Reddit Deep-Dive Analysis"
MAX_LAYOUT_PAGES = 500

SUMMARY_MARGIN_MM = 15
SUMMARY_TITLE = "Reddit Deep-Dive Analysis"
SUMMARY_FOOTER = "Generated by Reddit Deep-Dive Analyst — Powered by Claude Agent SDK"
SUMMARY_LINE_HEIGHT_MM = 4.5
SUMMARY_BODY_OFFSET_MM = 32
SUMMARY_FONT_SIZE = 10

REPORT_CSS = """
body {
    font-family: sans-serif;
    color: #1a1a2e;
    font-size: 13px;
    line-height: 1.7;
}
h1 {
    font-size: 24px;
    font-weight: bold;
    color: #ea580c;
    border-bottom: 2px solid #f97316;
    padding-bottom: 8px;
    margin-top: 24px;
    margin-bottom: 14px;
}
h2 {
    font-size: 18px;
    font-weight: bold;
    margin-top: 20px;
    margin-bottom: 10px;
    border-bottom: 1px solid #e5e5e5;
    padding-bottom: 5px;
}
h3 { font-size: 15px; font-weight: bold; color: #374151; margin-top: 16px; margin-bottom: 6px; }
p { margin-top: 6px; margin-bottom: 6px; }
ul, ol { padding-left: 22px; }
blockquote {
    border-left: 3px solid #f97316;
    padding: 6px 14px;
    background-color: #fff7ed;
    color: #374151;
    font-style: italic;
}
code { font-family: monospace; font-size: 11px; background-color: #f3f4f6; }
pre { font-family: monospace; font-size: 11px; background-color: #1e1e2e; color: #cdd6f4; padding: 12px; }
table { font-size: 11px; }
th { background-color: #f97316; color: white; padding: 6px 10px; text-align: left; }
td { border: 1px solid #e5e5e5; padding: 6px 10px; }
strong { color: #ea580c; }
a { color: #2563eb; }
.header-badge {
    background-color: #f97316;
    color: white;
    font-size: 11px;
    font-weight: bold;
    padding: 4px 12px;
    margin-bottom: 12px;
}
"""


def _rgb(r: int, g: int, b: int):
    return (r / 255, g / 255, b / 255)


def _layout_pages(html: str, width: float, height: float) -> pymupdf.Document:
    """Flow the HTML into pages of the given size (in layout pixels)."""
    body = f'<div class="header-badge">{REPORT_BADGE}</div>{html}'
    story = pymupdf.Story(html=body, user_css=REPORT_CSS)

    buffer = io.BytesIO()
    writer = pymupdf.DocumentWriter(buffer)
    mediabox = pymupdf.Rect(0, 0, width, height)
    where = mediabox + (40, 32, -40, -32)

    more = True
    pages = 0
    while more and pages < MAX_LAYOUT_PAGES:
        device = writer.begin_page(mediabox)
        more, _ = story.place(where)
        story.draw(device)
        writer.end_page()
        pages += 1
    writer.close()

    return pymupdf.open("pdf", buffer.getvalue())


def render_report_pdf(html: str) -> bytes:
    """
    Render report HTML as an image-based A4 PDF.

    Args:
        html: Report body as HTML

    Returns:
        PDF file content
    """
    content_width_mm = A4_WIDTH_MM - REPORT_MARGIN_MM * 2
    usable_height_mm = A4_HEIGHT_MM - REPORT_MARGIN_MM * 2
    # One layout page per A4 page, with the same aspect ratio as the printable area
    slice_height = REPORT_LAYOUT_WIDTH * usable_height_mm / content_width_mm

    layout = _layout_pages(html, REPORT_LAYOUT_WIDTH, slice_height)
    output = pymupdf.open()
    matrix = pymupdf.Matrix(REPORT_RENDER_SCALE, REPORT_RENDER_SCALE)
    try:
        for layout_page in layout:
            pix = layout_page.get_pixmap(matrix=matrix, alpha=False)
            image = pix.tobytes("jpeg", jpg_quality=REPORT_JPEG_QUALITY)
            image_height_mm = pix.height * content_width_mm / pix.width

            page = output.new_page(width=A4_WIDTH_MM * MM, height=A4_HEIGHT_MM * MM)
            rect = pymupdf.Rect(
                REPORT_MARGIN_MM * MM,
                REPORT_MARGIN_MM * MM,
                (REPORT_MARGIN_MM + content_width_mm) * MM,
                (REPORT_MARGIN_MM + image_height_mm) * MM,
            )
            page.insert_image(rect, stream=image)
        return output.tobytes(garbage=3, deflate=True)
    finally:
        output.close()
        layout.close()


_fonts = {}


def _font(fontname: str) -> pymupdf.Font:
    # Font objects carry full Unicode encoding, unlike insert_text's single-byte base-14 fonts
    if fontname not in _fonts:
        _fonts[fontname] = pymupdf.Font(fontname)
    return _fonts[fontname]


def wrap_text(text: str, max_width: float, fontname: str = "helv", fontsize: float = SUMMARY_FONT_SIZE) -> List[str]:
    """
    Break text into lines no wider than max_width points.

    Existing line breaks are kept; words longer than a line are split.
    """
    font = _font(fontname)

    def width(s: str) -> float:
        return font.text_length(s, fontsize=fontsize)

    lines: List[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if width(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
                current = ""
            while width(word) > max_width and len(word) > 1:
                cut = len(word) - 1
                while cut > 1 and width(word[:cut]) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


def summary_max_lines() -> int:
    return int((A4_HEIGHT_MM - SUMMARY_MARGIN_MM * 2 - SUMMARY_BODY_OFFSET_MM) // SUMMARY_LINE_HEIGHT_MM)


def _write(page: pymupdf.Page, x_mm: float, y_mm: float, text: str, fontname: str, fontsize: float, color):
    """Write one line with a TextWriter; glyphs missing from the font use MuPDF's fallback fonts."""
    writer = pymupdf.TextWriter(page.rect)
    writer.append(pymupdf.Point(x_mm * MM, y_mm * MM), text, font=_font(fontname), fontsize=fontsize)
    writer.write_text(page, color=color)


def render_summary_pdf(text: str, generated_on: Optional[date] = None) -> bytes:
    """
    Render plain text as a one-page A4 summary.

    Args:
        text: Report text, already stripped of markup
        generated_on: Date shown in the subtitle (defaults to today)

    Returns:
        PDF file content
    """
    generated_on = generated_on or date.today()
    margin = SUMMARY_MARGIN_MM
    page_width_mm = A4_WIDTH_MM - margin * 2

    doc = pymupdf.open()
    try:
        page = doc.new_page(width=A4_WIDTH_MM * MM, height=A4_HEIGHT_MM * MM)

        _write(page, margin, margin + 12, SUMMARY_TITLE, "hebo", 20, _rgb(234, 88, 12))
        _write(
            page, margin, margin + 20,
            f"One-Page Summary  |  Generated {generated_on.month}/{generated_on.day}/{generated_on.year}",
            "helv", 9, _rgb(120, 120, 120),
        )
        page.draw_line(
            pymupdf.Point(margin * MM, (margin + 24) * MM),
            pymupdf.Point((A4_WIDTH_MM - margin) * MM, (margin + 24) * MM),
            color=_rgb(249, 115, 22),
            width=0.5 * MM,
        )

        lines = wrap_text(text, page_width_mm * MM)[:summary_max_lines()]
        for index, line in enumerate(lines):
            if not line:
                continue
            _write(
                page, margin, margin + SUMMARY_BODY_OFFSET_MM + index * SUMMARY_LINE_HEIGHT_MM,
                line, "helv", SUMMARY_FONT_SIZE, _rgb(26, 26, 46),
            )

        _write(page, margin, A4_HEIGHT_MM - 8, SUMMARY_FOOTER, "helv", 7, _rgb(180, 180, 180))
        return doc.tobytes(garbage=3, deflate=True)
    finally:
        doc.close()
