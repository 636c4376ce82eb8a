from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol, List

from utils.logging_setup import init_logging, log_step


@dataclass
class RunContext:
    pages: list = field(default_factory=list)
    records: list = field(default_factory=list)
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        run_id = ctx.meta.get("run_id", "-")
        for step in self.steps:
            name = type(step).__name__
            started = time.perf_counter()
            try:
                ctx = step.run(ctx)
            except Exception as e:
                log_step(name, "failed", int((time.perf_counter() - started) * 1000), run_id, error=str(e))
                raise
            log_step(name, "ok", int((time.perf_counter() - started) * 1000), run_id)
        return ctx
