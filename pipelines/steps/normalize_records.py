from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pipelines.runner import RunContext
from services.properties import normalize_page


class NormalizeRecords:
    """Flatten raw pages; rows without a title never reach the output."""

    def __init__(self, field_map: Optional[Dict[str, str]] = None) -> None:
        self.field_map = field_map

    def run(self, ctx: RunContext) -> RunContext:
        records: List[Dict[str, Any]] = []
        dropped = 0
        for page in ctx.pages or []:
            record = normalize_page(page, self.field_map)
            if not record.get("title", "").strip():
                dropped += 1
                continue
            records.append(record)
        ctx.records = records
        ctx.meta["records_dropped"] = dropped
        logging.info(
            f"Normalized {len(records)} records, dropped {dropped} without title",
            extra={"step": "normalize_records", "status": "ok", "run_id": ctx.meta.get("run_id", "-")},
        )
        return ctx
