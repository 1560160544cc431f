"""
Small step runner for the EMR export.

Steps run one at a time, in the order they were added. Each step receives the
initial context plus the results of every step before it. The first failure
skips every remaining step.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

StepFn = Callable[[dict[str, Any]], dict[str, Any] | None]


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Step:
    name: str
    execute_fn: StepFn
    status: StepStatus = StepStatus.PENDING
    result: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    duration_ms: float = 0.0


class Workflow:
    """
    Usage:
        wf = Workflow("send_case_to_emr")
        wf.add_step("patient", create_patient)
        wf.add_step("encounter", create_encounter)
        summary = wf.run({"case_id": case_id})
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: dict[str, Step] = {}

    def add_step(self, name: str, execute_fn: StepFn) -> Workflow:
        if name in self.steps:
            raise ValueError(f"Duplicate step name: {name}")
        self.steps[name] = Step(name=name, execute_fn=execute_fn)
        return self

    def run(self, initial_context: dict[str, Any] | None = None) -> dict[str, Any]:
        context = dict(initial_context or {})
        summary: dict[str, Any] = {"workflow": self.name, "steps": {}, "error": None}

        logger.info("Starting workflow '%s' with %d steps", self.name, len(self.steps))

        for name, step in self.steps.items():
            if summary["error"] is not None:
                step.status = StepStatus.SKIPPED
                summary["steps"][name] = {"status": step.status.value}
                continue

            step.status = StepStatus.RUNNING
            logger.info("Running step '%s'", name)
            start = time.perf_counter()
            try:
                step.result = step.execute_fn(context) or {}
                step.status = StepStatus.SUCCESS
                context.update(step.result)
            except Exception as exc:
                step.status = StepStatus.FAILED
                step.error = str(exc) or type(exc).__name__
                summary["error"] = step.error
                logger.error("Step '%s' failed: %s", name, exc)
            finally:
                step.duration_ms = (time.perf_counter() - start) * 1000

            summary["steps"][name] = {
                "status": step.status.value,
                "duration_ms": round(step.duration_ms, 2),
                "error": step.error,
            }

        succeeded = all(s.status == StepStatus.SUCCESS for s in self.steps.values())
        summary["status"] = "completed" if succeeded else "failed"
        logger.info("Workflow '%s' finished – %s", self.name, summary["status"])
        return summary
