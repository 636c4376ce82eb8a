from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from models.cv_record import CVRecord
from pipelines.runner import RunContext


def write_records(path: str | Path, records: List[Dict[str, Any]]) -> Path:
    """Validate and write the records as a JSON array, replacing any previous file."""
    out = Path(path)
    payload = [CVRecord.model_validate(r).to_json_dict() for r in records]
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return out


class PersistRecords:
    def __init__(self, output_path: str | Path) -> None:
        self.output_path = output_path

    def run(self, ctx: RunContext) -> RunContext:
        records: List[Dict[str, Any]] = [r for r in ctx.records or [] if (r.get("title") or "").strip()]
        out = write_records(self.output_path, records)
        ctx.meta["records_written"] = len(records)
        ctx.meta["output_path"] = str(out)
        logging.info(
            f"Saved {len(records)} records to {out}",
            extra={"step": "persist_records", "status": "ok", "run_id": ctx.meta.get("run_id", "-")},
        )
        return ctx
