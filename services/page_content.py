from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from services.image_cache import ImageCache
from services.properties import plain_text
from sources.notion_api import NotionAPIError, NotionClient


FRAGMENT_SEPARATOR = "\n\n"

_TEXT_PREFIXES: Dict[str, str] = {
    "paragraph": "",
    "heading_1": "# ",
    "heading_2": "## ",
    "heading_3": "### ",
    "bulleted_list_item": "• ",
    "numbered_list_item": "1. ",
    "quote": "> ",
}


@dataclass(frozen=True)
class PageContent:
    has_content: bool = False
    content: str = ""


EMPTY_CONTENT = PageContent()


def _media_source(media: Dict[str, Any]) -> str:
    kind = media.get("type")
    if kind in ("file", "external"):
        return (media.get(kind) or {}).get("url") or ""
    return ""


def media_marker(kind: str, url: str, caption: str = "") -> str:
    return f"[{kind}:{url}{':' + caption if caption else ''}]"


def table_marker(rows: List[List[str]], has_column_header: bool = False) -> str:
    payload = {"rows": rows, "has_column_header": has_column_header}
    return f"[TABLE:{json.dumps(payload, ensure_ascii=False)}]"


class PageContentResolver:
    """Turns a page's block children into the flattened ``pageContent`` string."""

    def __init__(self, client: NotionClient, image_cache: Optional[ImageCache] = None):
        self.client = client
        self.image_cache = image_cache

    def resolve(self, page_id: str) -> PageContent:
        try:
            blocks = self.client.list_block_children(page_id)
            fragments = [self.block_to_fragment(block) for block in blocks]
        except (NotionAPIError, requests.RequestException) as e:
            logging.warning(f"Could not load content: {e}", extra={"page_id": page_id, "status": "degraded"})
            return EMPTY_CONTENT

        fragments = [f for f in fragments if f.strip()]
        if not fragments:
            return EMPTY_CONTENT
        return PageContent(True, FRAGMENT_SEPARATOR.join(fragments))

    def block_to_fragment(self, block: Dict[str, Any]) -> str:
        block_type = block.get("type") or ""
        body = block.get(block_type) or {}

        if block_type in _TEXT_PREFIXES:
            text = plain_text(body.get("rich_text"))
            return _TEXT_PREFIXES[block_type] + text if text.strip() else ""
        if block_type == "to_do":
            text = plain_text(body.get("rich_text"))
            if not text.strip():
                return ""
            return ("☑ " if body.get("checked") else "☐ ") + text
        if block_type == "code":
            text = plain_text(body.get("rich_text"))
            return f"```{body.get('language') or ''}\n{text}\n```" if text.strip() else ""
        if block_type == "divider":
            return "---"
        if block_type == "image":
            return self._image_fragment(body)
        if block_type == "video":
            url = _media_source(body)
            return media_marker("VIDEO", url, plain_text(body.get("caption"))) if url else ""
        if block_type == "table":
            return self._table_fragment(block)
        return ""

    def _image_fragment(self, image: Dict[str, Any]) -> str:
        url = _media_source(image)
        if not url:
            return ""
        if self.image_cache is not None:
            url = self.image_cache.resolve(url)
        return media_marker("IMAGE", url, plain_text(image.get("caption")))

    def _table_fragment(self, block: Dict[str, Any]) -> str:
        rows: List[List[str]] = []
        for row in self.client.list_block_children(block["id"]):
            if row.get("type") != "table_row":
                continue
            cells = (row.get("table_row") or {}).get("cells") or []
            rows.append([plain_text(cell) for cell in cells])
        if not rows:
            return ""
        has_header = bool((block.get("table") or {}).get("has_column_header"))
        return table_marker(rows, has_header)
