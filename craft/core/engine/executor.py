"""
Engine executor — runs one phase of filesystem actions.

A phase (all deletions, or all top-level copies) is a plan of independent
actions on disjoint targets. The engine submits them together to a thread
pool and returns only after every one has settled. Completion order is
not significant; one failed action never cancels its siblings.

Flow:
    plan → dispatch through registry → collect receipts → report
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime

from craft.adapters.registry import AdapterRegistry
from craft.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)

# Upper bound on concurrent filesystem actions within one phase
MAX_WORKERS = 8


@dataclass
class ExecutionPlan:
    """A planned set of actions to execute."""

    operation_id: str = ""
    phase: str = ""
    actions: list[Action] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.actions)


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    phase: str = ""
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def labels(self, status: str = "ok") -> list[str]:
        """Sorted labels of the receipts with the given status."""
        return sorted(r.label for r in self.receipts if r.status == status)

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "phase": self.phase,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    project_root: str = ".",
    dry_run: bool = False,
    on_receipt: Callable[[Receipt], None] | None = None,
    max_workers: int = MAX_WORKERS,
) -> ExecutionReport:
    """Execute all actions in a plan concurrently through the registry.

    Args:
        plan: The execution plan.
        registry: Adapter registry for dispatch.
        project_root: Project root directory.
        dry_run: If True, validate but don't execute.
        on_receipt: Called once per action as it settles (from the
            calling thread).
        max_workers: Thread pool size cap.

    Returns:
        ExecutionReport with one receipt per action, in completion order.
    """
    report = ExecutionReport(operation_id=plan.operation_id, phase=plan.phase)
    if not plan.actions:
        return report

    workers = max(1, min(max_workers, len(plan.actions)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(
                registry.execute_action,
                action,
                project_root=project_root,
                dry_run=dry_run,
            ): action
            for action in plan.actions
        }
        for future in as_completed(futures):
            receipt = future.result()
            report.receipts.append(receipt)

            if receipt.failed:
                logger.warning(
                    "%s: %s failed: %s", plan.phase, receipt.label, receipt.error
                )
            else:
                logger.debug("%s: %s → %s", plan.phase, receipt.label, receipt.status)

            if on_receipt:
                on_receipt(receipt)

    return report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
