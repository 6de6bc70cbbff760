"""
renders the small markdown subset the assistant writes (headings 1-3,
bullet lines and **bold**) into render nodes, one line at a time
"""

import html
import re
from dataclasses import dataclass
from typing import List, Tuple, Union

BOLD_PATTERN = re.compile(r"(\*\*.*?\*\*)")
BULLET_MARKERS = ("* ", "- ", "• ")
# longest marker first so "### " isnt read as "# "
HEADING_MARKERS = (("### ", 3), ("## ", 2), ("# ", 1))


@dataclass(frozen=True)
class Span:
    text: str
    bold: bool = False


@dataclass(frozen=True)
class Heading:
    level: int
    spans: Tuple[Span, ...]


@dataclass(frozen=True)
class BulletList:
    items: Tuple[Tuple[Span, ...], ...]


@dataclass(frozen=True)
class Paragraph:
    spans: Tuple[Span, ...]


RenderNode = Union[Heading, BulletList, Paragraph]


def parse_inline(text: str) -> Tuple[Span, ...]:
    """splits on **bold** segments, bold does not nest and empty pieces are dropped"""
    spans = []
    for part in BOLD_PATTERN.split(text):
        if not part:
            continue
        if len(part) >= 4 and part.startswith("**") and part.endswith("**"):
            spans.append(Span(part[2:-2], bold=True))
        else:
            spans.append(Span(part))
    return tuple(spans)


def render_markdown(text: str) -> List[RenderNode]:
    nodes: List[RenderNode] = []
    pending: List[Tuple[Span, ...]] = []

    def flush_list():
        if pending:
            nodes.append(BulletList(tuple(pending)))
            pending.clear()

    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith(BULLET_MARKERS):
            pending.append(parse_inline(stripped[2:]))
            continue

        flush_list()

        for marker, level in HEADING_MARKERS:
            if stripped.startswith(marker):
                nodes.append(Heading(level, parse_inline(stripped[len(marker):])))
                break
        else:
            if stripped:
                nodes.append(Paragraph(parse_inline(line)))

    flush_list()
    return nodes


def _spans_html(spans: Tuple[Span, ...]) -> str:
    parts = []
    for span in spans:
        escaped = html.escape(span.text)
        parts.append(f"<strong>{escaped}</strong>" if span.bold else escaped)
    return "".join(parts)


def to_html(nodes: List[RenderNode]) -> str:
    """html for st.markdown, every piece of model text is escaped"""
    out = []
    for node in nodes:
        if isinstance(node, Heading):
            out.append(f"<h{node.level}>{_spans_html(node.spans)}</h{node.level}>")
        elif isinstance(node, BulletList):
            items = "".join(f"<li>{_spans_html(item)}</li>" for item in node.items)
            out.append(f"<ul>{items}</ul>")
        else:
            out.append(f'<p class="pre-wrap">{_spans_html(node.spans)}</p>')
    return "\n".join(out)


def message_html(content: str, pending: bool = False) -> str:
    """
    body of one chat bubble
    the thinking marker is only for a reply that is still streaming, a
    finished reply with no text renders as an empty paragraph
    """
    if content:
        return to_html(render_markdown(content))
    if pending:
        return '<p class="thinking">...</p>'
    return '<p class="pre-wrap"></p>'
