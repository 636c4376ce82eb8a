from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple


NO_DATE = "no-date"
DEFAULT_CATEGORY = "Other"

SEASON_ORDER: Dict[str, int] = {"spring": 0, "summer": 1, "fall": 2}

_NUMBERING_PATTERN = re.compile(r"^(\d+\.)+")
_SEMESTER_PATTERN = re.compile(r"^\s*(spring|summer|fall)\s+(\d{4})\s*$", re.IGNORECASE)
_YEAR_ONLY_PATTERN = re.compile(r"^\d{4}$")


@dataclass
class Bucket:
    label: str
    records: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_date(self) -> bool:
        return self.label != NO_DATE


@dataclass
class CategoryGroup:
    name: str
    level: str
    buckets: List[Bucket] = field(default_factory=list)


def split_categories(value: Optional[str]) -> List[str]:
    names = [part.strip() for part in (value or "").split(",")]
    names = [n for n in names if n]
    return names or [DEFAULT_CATEGORY]


def category_level(category: str) -> str:
    """CSS class for the nesting depth implied by a ``1.2.3`` style prefix."""
    match = _NUMBERING_PATTERN.match(category)
    if not match:
        return ""
    dots = match.group(0).count(".")
    if dots == 2:
        return "subcategory"
    if dots >= 3:
        return "sub-subcategory"
    return ""


def parse_semester(label: str) -> Optional[Tuple[int, int]]:
    match = _SEMESTER_PATTERN.match(label or "")
    if not match:
        return None
    return int(match.group(2)), SEASON_ORDER[match.group(1).lower()]


def _year_sort_key(label: str) -> Tuple[int, int]:
    if label == NO_DATE:
        return (0, 0)
    return (1, -int(label))


def _semester_sort_key(label: str) -> Tuple[int, int, int, str]:
    if label == NO_DATE:
        return (0, 0, 0, "")
    if _YEAR_ONLY_PATTERN.match(label):
        # Plain year buckets follow that year's semesters
        return (1, -int(label), 1, "")
    parsed = parse_semester(label)
    if parsed is None:
        return (2, 0, 0, label)
    year, season = parsed
    return (1, -year, -season, "")


def _year_label(record: Dict[str, Any]) -> str:
    year = record.get("year")
    return str(year) if isinstance(year, int) else NO_DATE


def _semester_label(record: Dict[str, Any]) -> str:
    semester = (record.get("semester") or "").strip()
    return semester or _year_label(record)


def group_records(records: Iterable[Dict[str, Any]], semester_category: Optional[str] = None) -> List[CategoryGroup]:
    """Category -> year (or semester) buckets, both in display order.

    A record listed under several comma-separated categories appears in each.
    Records keep their input order inside a bucket.
    """
    organized: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for record in records:
        for category in split_categories(record.get("category")):
            if semester_category and category == semester_category:
                label = _semester_label(record)
            else:
                label = _year_label(record)
            organized.setdefault(category, {}).setdefault(label, []).append(record)

    groups: List[CategoryGroup] = []
    for category in sorted(organized):
        by_label = organized[category]
        sort_key = _semester_sort_key if category == semester_category else _year_sort_key
        buckets = [Bucket(label, by_label[label]) for label in sorted(by_label, key=sort_key)]
        groups.append(CategoryGroup(category, category_level(category), buckets))
    return groups
