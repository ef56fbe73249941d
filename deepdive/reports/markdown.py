"""Markdown rendering for reports.

A single renderer is shared by the whole process. It is created on first use
under a lock, so concurrent first calls from worker threads build it once.
"""

import re
import threading
from typing import List, Optional

from bs4 import BeautifulSoup
from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.renderer import RendererHTML


def _render_fence(self, tokens, idx, options, env):
    token = tokens[idx]
    language = token.info.strip().split(" ")[0] if token.info else ""
    if language == "mermaid":
        # Diagrams are kept as source; a browser-side mermaid pass can pick them up
        return f'<pre class="mermaid">{escapeHtml(token.content)}</pre>\n'
    return RendererHTML.fence(self, tokens, idx, options, env)


class MarkdownRenderer:
    """Markdown to HTML with tables, strikethrough and mermaid fences."""

    _instance: Optional["MarkdownRenderer"] = None
    _lock = threading.Lock()
    init_count = 0

    def __init__(self):
        self.md = MarkdownIt("commonmark", {"html": True, "breaks": False}).enable(["table", "strikethrough"])
        self.md.add_render_rule("fence", _render_fence)
        MarkdownRenderer.init_count += 1

    @classmethod
    def instance(cls) -> "MarkdownRenderer":
        """Process-wide renderer, created exactly once."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def render(self, markdown: str) -> str:
        return self.md.render(markdown)

    def split_blocks(self, markdown: str) -> List[str]:
        """
        Split Markdown into its top-level blocks (paragraphs, headings, lists,
        tables, fences), each returned as its original source lines.
        """
        lines = markdown.split("\n")
        blocks = []
        for token in self.md.parse(markdown):
            if token.level != 0 or token.map is None or token.nesting == -1:
                continue
            start, end = token.map
            blocks.append("\n".join(lines[start:end]))
        return blocks


def render_markdown(markdown: str) -> str:
    """Render Markdown to HTML with the shared renderer."""
    return MarkdownRenderer.instance().render(markdown)


def split_blocks(markdown: str) -> List[str]:
    return MarkdownRenderer.instance().split_blocks(markdown)


def html_to_text(html: str) -> str:
    """
    Strip HTML to plain text, keeping line breaks of block elements.

    Args:
        html: HTML string to convert

    Returns:
        Cleaned plain text
    """
    soup = BeautifulSoup(html, "html.parser")

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for tag in soup.find_all(["p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr", "pre", "blockquote"]):
        tag.append("\n")

    text = soup.get_text()

    text = re.sub(r"\n\s*\n", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()
