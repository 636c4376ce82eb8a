from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit


_MARKER_PATTERN = re.compile(r"^\[(IMAGE|VIDEO|TABLE):(.*)\]$", re.DOTALL)
_CODE_PATTERN = re.compile(r"^```([\w+-]*)\n(.*)\n```$", re.DOTALL)

_HEADINGS: List[Tuple[str, int]] = [("### ", 3), ("## ", 2), ("# ", 1)]


@dataclass
class ContentElement:
    kind: str  # heading, paragraph, list, quote, todo, code, divider, image, video, table
    text: str = ""
    level: int = 0
    ordered: bool = False
    checked: bool = False
    items: List[str] = field(default_factory=list)
    url: str = ""
    embed_url: str = ""
    caption: str = ""
    language: str = ""
    rows: List[List[str]] = field(default_factory=list)
    has_column_header: bool = False


def parse_media_marker(body: str) -> Tuple[str, str]:
    """Split ``url[:caption]``.

    URLs contain colons themselves, so the caption starts at the last colon
    only when what follows it has no slash.
    """
    idx = body.rfind(":")
    if idx != -1 and "/" not in body[idx + 1:]:
        return body[:idx], body[idx + 1:]
    return body, ""


def video_embed_url(url: str) -> str:
    """Player URL for YouTube/Vimeo links, empty for anything else."""
    parts = urlsplit(url)
    host = parts.netloc.lower().removeprefix("www.").removeprefix("m.")
    if host == "youtu.be":
        video_id = parts.path.strip("/")
        return f"https://www.youtube.com/embed/{video_id}" if video_id else ""
    if host == "youtube.com":
        if parts.path.startswith("/embed/"):
            return url
        video_id = (parse_qs(parts.query).get("v") or [""])[0]
        return f"https://www.youtube.com/embed/{video_id}" if video_id else ""
    if host == "vimeo.com":
        video_id = parts.path.strip("/").split("/")[0]
        return f"https://player.vimeo.com/video/{video_id}" if video_id.isdigit() else ""
    return ""


def _parse_table(body: str) -> Optional[ContentElement]:
    try:
        data = json.loads(body)
    except ValueError as e:
        logging.warning(f"Skipping malformed table data: {e}")
        return None
    if isinstance(data, list):
        rows, has_header = data, False
    elif isinstance(data, dict):
        rows, has_header = data.get("rows") or [], bool(data.get("has_column_header"))
    else:
        logging.warning("Skipping table data that is neither a list nor an object")
        return None
    cleaned = [[str(cell) for cell in row] for row in rows if isinstance(row, list)]
    return ContentElement("table", rows=cleaned, has_column_header=has_header)


def parse_fragment(fragment: str) -> Optional[ContentElement]:
    marker = _MARKER_PATTERN.match(fragment)
    if marker:
        kind, body = marker.group(1), marker.group(2)
        if kind == "TABLE":
            return _parse_table(body)
        url, caption = parse_media_marker(body)
        if kind == "IMAGE":
            return ContentElement("image", url=url, caption=caption)
        return ContentElement("video", url=url, caption=caption, embed_url=video_embed_url(url))

    for prefix, level in _HEADINGS:
        if fragment.startswith(prefix):
            return ContentElement("heading", text=fragment[len(prefix):], level=level)
    if fragment.startswith("• "):
        return ContentElement("list", items=[fragment[2:]])
    if fragment.startswith("1. "):
        return ContentElement("list", items=[fragment[3:]], ordered=True)
    if fragment.startswith("> "):
        return ContentElement("quote", text=fragment[2:])
    if fragment.startswith(("☐ ", "☑ ")):
        return ContentElement("todo", text=fragment[2:], checked=fragment.startswith("☑"))
    if fragment == "---":
        return ContentElement("divider")
    code = _CODE_PATTERN.match(fragment)
    if code:
        return ContentElement("code", text=code.group(2), language=code.group(1))
    return ContentElement("paragraph", text=fragment)


def parse_content(content: Optional[str]) -> List[ContentElement]:
    """Display elements for a ``pageContent`` string; adjacent list items are merged."""
    elements: List[ContentElement] = []
    for fragment in (content or "").split("\n\n"):
        if not fragment.strip():
            continue
        element = parse_fragment(fragment)
        if element is None:
            continue
        previous = elements[-1] if elements else None
        if (
            element.kind == "list"
            and previous is not None
            and previous.kind == "list"
            and previous.ordered == element.ordered
        ):
            previous.items.extend(element.items)
            continue
        elements.append(element)
    return elements

