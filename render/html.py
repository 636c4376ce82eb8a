from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from render.content import parse_content
from render.grouping import CategoryGroup, group_records


TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "cv.html.j2"


def load_records(path: str | Path) -> List[Dict[str, Any]]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of records")
    # Titleless records are never rendered
    return [r for r in data if isinstance(r, dict) and (r.get("title") or "").strip()]


def notion_page_url(site_url: Optional[str], record_id: str, database_id: Optional[str] = None, view_id: Optional[str] = None) -> str:
    """Public Notion link for a page; empty when no public site is configured."""
    if not site_url or not record_id:
        return ""
    page = record_id.replace("-", "")
    base = site_url.rstrip("/")
    if database_id:
        view = f"v={view_id}&" if view_id else ""
        return f"{base}/{database_id}?{view}p={page}&pm=c"
    return f"{base}/{page}"


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _item_view(record: Dict[str, Any], site_url: Optional[str], database_id: Optional[str], view_id: Optional[str]) -> Dict[str, Any]:
    elements = parse_content(record.get("pageContent")) if record.get("hasContent") else []
    meta = [part for part in (record.get("institution"), record.get("location")) if part]
    return {
        "id": record.get("id", ""),
        "title": record.get("title", ""),
        "icon": record.get("icon") or "",
        "url": record.get("url") or "",
        "description": record.get("description") or "",
        "meta": ", ".join(meta),
        "elements": elements,
        "has_content": bool(elements),
        "page_url": notion_page_url(site_url, record.get("id", ""), database_id, view_id) if elements else "",
    }


def render_page(
    groups: List[CategoryGroup],
    title: str = "Curriculum Vitae",
    site_url: Optional[str] = None,
    database_id: Optional[str] = None,
    view_id: Optional[str] = None,
) -> str:
    sections = []
    for group in groups:
        buckets = []
        for bucket in group.buckets:
            if not bucket.records:
                continue
            buckets.append({
                "label": bucket.label if bucket.has_date else "",
                "entries": [_item_view(r, site_url, database_id, view_id) for r in bucket.records],
            })
        sections.append({"name": group.name, "level": group.level, "buckets": buckets})

    template = _environment().get_template(TEMPLATE_NAME)
    return template.render(title=title, sections=sections)


def build_site(
    input_path: str | Path,
    output_path: str | Path,
    semester_category: Optional[str] = None,
    title: str = "Curriculum Vitae",
    site_url: Optional[str] = None,
    database_id: Optional[str] = None,
    view_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Load the data file, render the page and write it; returns run stats."""
    records = load_records(input_path)
    groups = group_records(records, semester_category)
    html = render_page(groups, title=title, site_url=site_url, database_id=database_id, view_id=view_id)
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(html, encoding="utf-8")
    return {
        "records": len(records),
        "categories": len(groups),
        "with_content": sum(1 for r in records if r.get("hasContent")),
        "output_path": str(out),
    }
