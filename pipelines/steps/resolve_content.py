from __future__ import annotations

import logging
from typing import Callable, Optional

from pipelines.runner import RunContext
from services.page_content import PageContentResolver


class ResolveContent:
    """Attach ``hasContent``/``pageContent`` to each record, one page at a time."""

    def __init__(
        self,
        resolver: PageContentResolver,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ) -> None:
        self.resolver = resolver
        self.on_progress = on_progress

    def run(self, ctx: RunContext) -> RunContext:
        records = ctx.records or []
        total = len(records)
        with_content = 0
        for idx, record in enumerate(records, start=1):
            if self.on_progress:
                self.on_progress(idx, total, record.get("title", ""))
            logging.info(
                f"Checking content for: {record.get('title', '')}",
                extra={"step": "resolve_content", "page_id": record.get("id", "-")},
            )
            content = self.resolver.resolve(record["id"])
            record["hasContent"] = content.has_content
            record["pageContent"] = content.content
            if content.has_content:
                with_content += 1
        ctx.meta["records_with_content"] = with_content
        return ctx
