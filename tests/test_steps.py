from __future__ import annotations

import json
import logging

import pytest

from pipelines.runner import Pipeline, RunContext
from pipelines.steps import NormalizeRecords, PersistRecords, ResolveContent
from services.page_content import PageContent
from utils.logging_setup import LOG_FORMAT, SafeExtraFormatter


def _page(page_id, title, category="Work"):
    return {
        "id": page_id,
        "properties": {
            "Name": {"type": "title", "title": [{"plain_text": title}] if title else []},
            "Category": {"type": "select", "select": {"name": category}},
        },
    }


class _StubResolver:
    def __init__(self):
        self.seen = []

    def resolve(self, page_id):
        self.seen.append(page_id)
        if page_id == "p1":
            return PageContent(True, "# Hi")
        return PageContent()


def test_normalize_drops_records_without_title():
    ctx = RunContext()
    ctx.pages = [_page("p1", "Kept"), _page("p2", ""), _page("p3", "   ")]
    out = NormalizeRecords().run(ctx)
    assert [r["id"] for r in out.records] == ["p1"]
    assert out.meta["records_dropped"] == 2


def test_resolve_content_is_sequential_and_sets_fields():
    resolver = _StubResolver()
    ctx = RunContext()
    ctx.records = [{"id": "p1", "title": "A"}, {"id": "p2", "title": "B"}]
    progress = []
    out = ResolveContent(resolver, on_progress=lambda cur, total, title: progress.append((cur, total, title))).run(ctx)
    assert resolver.seen == ["p1", "p2"]
    assert out.records[0]["hasContent"] is True and out.records[0]["pageContent"] == "# Hi"
    assert out.records[1]["hasContent"] is False and out.records[1]["pageContent"] == ""
    assert out.meta["records_with_content"] == 1
    assert progress == [(1, 2, "A"), (2, 2, "B")]


def test_pipeline_writes_json_array_and_overwrites(tmp_path):
    out_path = tmp_path / "notion-data.json"
    out_path.write_text('[{"id": "stale", "title": "old"}]', encoding="utf-8")

    ctx = RunContext()
    ctx.pages = [_page("p1", "Café"), _page("p2", "")]
    pipeline = Pipeline([NormalizeRecords(), ResolveContent(_StubResolver()), PersistRecords(out_path)])
    out = pipeline.run(ctx)

    assert out.meta["records_written"] == 1
    text = out_path.read_text(encoding="utf-8")
    assert "Café" in text
    data = json.loads(text)
    assert [r["id"] for r in data] == ["p1"]
    record = data[0]
    assert record["hasContent"] is True
    assert record["pageContent"] == "# Hi"
    assert record["year"] is None
    assert record["category"] == "Work"


def test_content_named_properties_do_not_leak_into_persisted_fields(tmp_path):
    page = _page("p9", "Notes")
    page["properties"]["Has Content"] = {"type": "checkbox", "checkbox": True}
    page["properties"]["Page Content"] = {"type": "rich_text", "rich_text": [{"plain_text": "notes"}]}

    ctx = RunContext()
    ctx.pages = [page]
    out_path = tmp_path / "notion-data.json"
    Pipeline([NormalizeRecords(), PersistRecords(out_path)]).run(ctx)

    record = json.loads(out_path.read_text(encoding="utf-8"))[0]
    assert record["hasContent"] is False
    assert record["pageContent"] == ""
    assert "has_content" not in record and "page_content" not in record


class _Boom:
    def run(self, ctx):
        raise RuntimeError("kaput")


def test_pipeline_logs_each_step_with_timing(caplog):
    with caplog.at_level(logging.INFO):
        Pipeline([NormalizeRecords()]).run(RunContext(meta={"run_id": "r1"}))
    step_lines = [r for r in caplog.records if getattr(r, "step", None) == "NormalizeRecords"]
    assert step_lines and step_lines[0].status == "ok"
    assert isinstance(step_lines[0].duration_ms, int)
    assert step_lines[0].run_id == "r1"


def test_pipeline_logs_failed_step_and_reraises(caplog):
    with caplog.at_level(logging.INFO):
        with pytest.raises(RuntimeError):
            Pipeline([_Boom()]).run(RunContext())
    failed = [r for r in caplog.records if getattr(r, "status", None) == "failed"]
    assert failed and failed[0].step == "_Boom" and failed[0].error == "kaput"


def test_formatter_fills_missing_extras():
    formatter = SafeExtraFormatter(fmt=LOG_FORMAT)
    record = logging.LogRecord("root", logging.INFO, __file__, 1, "hello", None, None)
    line = formatter.format(record)
    assert "hello" in line and "step=- status=- page_id=-" in line
