from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

from pipelines.runner import RunContext
from sources.notion_api import NotionClient


class FetchPages:
    def __init__(self, client: NotionClient, database_id: Optional[str] = None, sorts: Optional[List[Dict[str, str]]] = None) -> None:
        self.client = client
        self.database_id = database_id
        self.sorts = sorts

    def run(self, ctx: RunContext) -> RunContext:
        started = time.perf_counter()
        # NotionAPIError propagates: a failed query aborts the whole run
        ctx.pages = self.client.query_database(self.database_id, self.sorts)
        ctx.meta["pages_fetched"] = len(ctx.pages)
        logging.info(
            f"Fetched {len(ctx.pages)} pages",
            extra={
                "step": "fetch_pages",
                "status": "ok",
                "duration_ms": int((time.perf_counter() - started) * 1000),
                "run_id": ctx.meta.get("run_id", "-"),
            },
        )
        return ctx
