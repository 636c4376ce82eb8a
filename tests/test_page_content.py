from __future__ import annotations

import json

from services.image_cache import ImageCache
from services.page_content import PageContentResolver, media_marker
from sources.notion_api import NotionAPIError


def _text_block(kind, text, **extra):
    body = {"rich_text": [{"plain_text": text}]}
    body.update(extra)
    return {"id": f"{kind}-id", "type": kind, kind: body}


class StubClient:
    def __init__(self, children, failing=()):
        self.children = children
        self.failing = set(failing)
        self.requested = []

    def list_block_children(self, block_id):
        self.requested.append(block_id)
        if block_id in self.failing:
            raise NotionAPIError("HTTP 404: Could not find block", 404)
        return self.children.get(block_id, [])


def test_text_blocks_map_to_prefixed_fragments():
    client = StubClient({"page": [
        _text_block("paragraph", "Intro"),
        _text_block("heading_1", "H1"),
        _text_block("heading_2", "H2"),
        _text_block("heading_3", "H3"),
        _text_block("bulleted_list_item", "bullet"),
        _text_block("numbered_list_item", "number"),
        _text_block("paragraph", "   "),
        {"id": "u", "type": "unsupported", "unsupported": {}},
    ]})
    result = PageContentResolver(client).resolve("page")
    assert result.has_content is True
    assert result.content.split("\n\n") == ["Intro", "# H1", "## H2", "### H3", "• bullet", "1. number"]


def test_empty_page_has_no_content():
    result = PageContentResolver(StubClient({"page": []})).resolve("page")
    assert result.has_content is False
    assert result.content == ""


def test_fetch_error_degrades_to_empty():
    result = PageContentResolver(StubClient({}, failing={"page"})).resolve("page")
    assert (result.has_content, result.content) == (False, "")


def test_video_marker_with_caption():
    block = {
        "id": "v",
        "type": "video",
        "video": {
            "type": "external",
            "external": {"url": "https://youtu.be/abc"},
            "caption": [{"plain_text": "Talk"}],
        },
    }
    result = PageContentResolver(StubClient({"page": [block]})).resolve("page")
    assert result.content == "[VIDEO:https://youtu.be/abc:Talk]"


def test_image_is_cached_and_marker_uses_local_path(tmp_path):
    block = {
        "id": "i",
        "type": "image",
        "image": {"type": "file", "file": {"url": "https://s3.example/a/b.jpg?sig=1"}, "caption": []},
    }
    cache = ImageCache(tmp_path / "images", lambda url: b"jpg")
    result = PageContentResolver(StubClient({"page": [block]}), cache).resolve("page")
    local = cache.path_for("https://s3.example/a/b.jpg").as_posix()
    assert result.content == f"[IMAGE:{local}]"
    assert cache.path_for("https://s3.example/a/b.jpg").exists()


def test_image_without_cache_keeps_remote_url():
    block = {
        "id": "i",
        "type": "image",
        "image": {"type": "external", "external": {"url": "https://x/y.png"}, "caption": [{"plain_text": "Cap"}]},
    }
    result = PageContentResolver(StubClient({"page": [block]})).resolve("page")
    assert result.content == "[IMAGE:https://x/y.png:Cap]"


def test_table_rows_fetched_and_serialized():
    table = {"id": "tbl", "type": "table", "table": {"table_width": 2, "has_column_header": True}}
    rows = [
        {"id": "r1", "type": "table_row", "table_row": {"cells": [[{"plain_text": "Year"}], [{"plain_text": "Award"}]]}},
        {"id": "r2", "type": "table_row", "table_row": {"cells": [[{"plain_text": "2020"}], []]}},
    ]
    client = StubClient({"page": [table], "tbl": rows})
    result = PageContentResolver(client).resolve("page")
    assert client.requested == ["page", "tbl"]
    assert result.content.startswith("[TABLE:") and result.content.endswith("]")
    payload = json.loads(result.content[len("[TABLE:"):-1])
    assert payload == {"rows": [["Year", "Award"], ["2020", ""]], "has_column_header": True}


def test_table_fetch_failure_degrades_whole_page():
    table = {"id": "tbl", "type": "table", "table": {}}
    client = StubClient({"page": [_text_block("paragraph", "x"), table]}, failing={"tbl"})
    result = PageContentResolver(client).resolve("page")
    assert result.has_content is False


def test_extra_block_types():
    client = StubClient({"page": [
        _text_block("quote", "Said"),
        _text_block("to_do", "Done", checked=True),
        _text_block("code", "print(1)", language="python"),
        {"id": "d", "type": "divider", "divider": {}},
    ]})
    fragments = PageContentResolver(client).resolve("page").content.split("\n\n")
    assert fragments == ["> Said", "☑ Done", "```python\nprint(1)\n```", "---"]


def test_media_marker_format():
    assert media_marker("IMAGE", "https://x/y.png") == "[IMAGE:https://x/y.png]"
    assert media_marker("IMAGE", "https://x/y.png", "My Caption") == "[IMAGE:https://x/y.png:My Caption]"
