from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional


_YEAR_PATTERN = re.compile(r"^(\d{4})")

# Empty value for a property whose type does not match what the caller expected
_EMPTY_DEFAULTS: Dict[str, Any] = {
    "title": "",
    "rich_text": "",
    "select": "",
    "status": "",
    "url": "",
    "email": "",
    "phone_number": "",
    "multi_select": [],
    "people": [],
    "files": [],
    "relation": [],
    "checkbox": False,
}


def empty_value(prop_type: Optional[str]) -> Any:
    default = _EMPTY_DEFAULTS.get(prop_type or "")
    # Fresh list each call so callers can mutate it
    return list(default) if isinstance(default, list) else default


def plain_text(rich_text: Optional[List[Dict[str, Any]]]) -> str:
    return "".join((part or {}).get("plain_text") or "" for part in rich_text or [])


def extract_year(iso_date: Optional[str]) -> Optional[int]:
    """Year from the leading four digits of an ISO date.

    No timezone conversion: ``2023-01-01T00:00:00-05:00`` is 2023.
    """
    if not iso_date:
        return None
    match = _YEAR_PATTERN.match(str(iso_date).strip())
    return int(match.group(1)) if match else None


def _date_value(date: Optional[Dict[str, Any]]) -> Optional[str]:
    if not date:
        return None
    return date.get("end") or date.get("start") or None


def _user_name(user: Optional[Dict[str, Any]]) -> str:
    if not user:
        return ""
    return user.get("name") or user.get("id") or ""


def _file_url(entry: Dict[str, Any]) -> str:
    kind = entry.get("type")
    if kind in ("file", "external"):
        return (entry.get(kind) or {}).get("url") or ""
    return ""


def _formula(value: Optional[Dict[str, Any]]) -> Any:
    if not value:
        return None
    kind = value.get("type")
    if kind == "date":
        return _date_value(value.get("date"))
    if kind in ("string", "number", "boolean"):
        return value.get(kind)
    logging.warning(f"Unknown formula result type: {kind}")
    return None


def _rollup(value: Optional[Dict[str, Any]]) -> Any:
    if not value:
        return None
    kind = value.get("type")
    if kind == "number":
        return value.get("number")
    if kind == "date":
        return _date_value(value.get("date"))
    if kind == "array":
        items = [normalize_property(item) for item in value.get("array") or []]
        return [item for item in items if item not in (None, "", [])]
    logging.warning(f"Unknown rollup result type: {kind}")
    return None


_EXTRACTORS: Dict[str, Callable[[Any], Any]] = {
    "title": plain_text,
    "rich_text": plain_text,
    "select": lambda v: (v or {}).get("name") or "",
    "status": lambda v: (v or {}).get("name") or "",
    "multi_select": lambda v: [opt.get("name") for opt in v or [] if opt.get("name")],
    "date": _date_value,
    "url": lambda v: v or "",
    "email": lambda v: v or "",
    "phone_number": lambda v: v or "",
    "number": lambda v: v,
    "checkbox": lambda v: bool(v),
    "people": lambda v: [name for name in (_user_name(u) for u in v or []) if name],
    "files": lambda v: [url for url in (_file_url(f) for f in v or []) if url],
    "relation": lambda v: [rel.get("id") for rel in v or [] if rel.get("id")],
    "unique_id": lambda v: (
        f"{v['prefix']}-{v.get('number')}" if v and v.get("prefix") else (v or {}).get("number")
    ),
    "formula": _formula,
    "rollup": _rollup,
    "created_time": lambda v: v or None,
    "last_edited_time": lambda v: v or None,
    "created_by": _user_name,
    "last_edited_by": _user_name,
}


def normalize_property(prop: Optional[Dict[str, Any]], expected_type: Optional[str] = None) -> Any:
    """Convert one typed Notion property value into a plain value.

    Returns the empty default for ``expected_type`` when the property is
    missing or carries a different type tag. Unknown tags give ``None``.
    """
    if not prop:
        return empty_value(expected_type)
    prop_type = prop.get("type")
    if expected_type and prop_type != expected_type:
        return empty_value(expected_type)
    extractor = _EXTRACTORS.get(prop_type or "")
    if extractor is None:
        logging.warning(f"Unsupported property type: {prop_type}")
        return None
    return extractor(prop.get(prop_type))


def extract_text(prop: Optional[Dict[str, Any]]) -> str:
    """Text of a title or rich text property; anything else is empty."""
    if not prop or prop.get("type") not in ("title", "rich_text"):
        return ""
    return normalize_property(prop)


def extract_category(prop: Optional[Dict[str, Any]]) -> str:
    if not prop:
        return ""
    if prop.get("type") == "multi_select":
        return ", ".join(normalize_property(prop))
    return normalize_property(prop, "select")


def extract_date_year(prop: Optional[Dict[str, Any]]) -> Optional[int]:
    return extract_year(normalize_property(prop, "date"))


def extract_icon(page: Dict[str, Any]) -> str:
    icon = page.get("icon") or {}
    if icon.get("type") == "emoji":
        return icon.get("emoji") or ""
    return ""


def snake_case(name: str) -> str:
    key = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name.strip())
    key = re.sub(r"[^0-9a-zA-Z]+", "_", key).strip("_").lower()
    return key or "field"


# Record key -> Notion property name for the fixed CV fields
DEFAULT_FIELD_MAP: Dict[str, str] = {
    "title": "Name",
    "category": "Category",
    "year": "Date",
    "description": "Description",
    "institution": "Institution",
    "location": "Location",
    "url": "URL",
    "semester": "Semester",
}

# Filled in by the content resolver, under either spelling the record model accepts
RESERVED_KEYS = frozenset({"has_content", "page_content", "hasContent", "pageContent"})


def normalize_page(page: Dict[str, Any], field_map: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Flatten one database row into the record shape written to JSON."""
    field_map = field_map or DEFAULT_FIELD_MAP
    props: Dict[str, Any] = page.get("properties") or {}

    record: Dict[str, Any] = {
        "id": page.get("id") or "",
        "title": extract_text(props.get(field_map["title"])),
        "category": extract_category(props.get(field_map["category"])),
        "year": extract_date_year(props.get(field_map["year"])),
        "description": extract_text(props.get(field_map["description"])),
        "institution": extract_text(props.get(field_map["institution"])),
        "location": extract_text(props.get(field_map["location"])),
        "url": normalize_property(props.get(field_map["url"]), "url"),
        "icon": extract_icon(page),
    }
    semester_prop = props.get(field_map.get("semester", ""))
    if semester_prop:
        semester = normalize_property(semester_prop)
        record["semester"] = semester if isinstance(semester, str) else ""

    consumed = set(field_map.values())
    for name, prop in props.items():
        if name in consumed:
            continue
        key = snake_case(name)
        if key in record or key in RESERVED_KEYS:
            logging.debug(f"Skipping property {name!r}: key {key!r} is reserved")
            continue
        record[key] = normalize_property(prop)
    return record
