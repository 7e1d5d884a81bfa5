"""
Merge planner — turn a TemplateSpec into filesystem actions.

Two phases are planned, both as flat lists of independent actions:

    deletions   every ``delete`` path, removed from the generated app
    copies      every top-level template entry the spec does not skip,
                copied recursively minus nested skipped paths
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from craft.core.engine.executor import ExecutionPlan
from craft.core.models.action import Action
from craft.core.models.spec import Directive, TemplateSpec

logger = logging.getLogger(__name__)


def _has_ancestor(path: str, candidates: set[str]) -> bool:
    parent = os.path.dirname(path)
    while parent:
        if parent in candidates:
            return True
        parent = os.path.dirname(parent)
    return False


def plan_deletions(spec: TemplateSpec, operation_id: str = "") -> ExecutionPlan:
    """One 'remove' action per path with a ``delete`` directive.

    Paths below another deleted path are dropped: the ancestor's removal
    covers them, and the actions of one phase must not overlap.
    """
    plan = ExecutionPlan(operation_id=operation_id, phase="delete")
    deleted = spec.paths_with(Directive.DELETE)
    candidates = set(deleted)

    for path in deleted:
        if _has_ancestor(path, candidates):
            logger.debug("Skipping %s, an ancestor is deleted", path)
            continue
        plan.actions.append(
            Action(
                id=f"{operation_id}:delete:{path}",
                adapter="filesystem",
                label=path,
                params={"operation": "remove", "path": path},
            )
        )

    return plan


def template_entries(template_dir: Path) -> list[str]:
    """Names of the template root's immediate entries, sorted."""
    return sorted(entry.name for entry in template_dir.iterdir())


def nested_exclusions(spec: TemplateSpec) -> list[str]:
    """Spec paths below the top level that must never be copied."""
    return [path for path in spec.paths() if os.sep in path and spec.skips(path)]


def plan_copies(
    spec: TemplateSpec,
    template_dir: Path,
    operation_id: str = "",
) -> ExecutionPlan:
    """One 'copy' action per top-level template entry the spec keeps.

    Args:
        spec: The run's spec.
        template_dir: Root of the cloned template.
        operation_id: Prefix for action IDs.
    """
    plan = ExecutionPlan(operation_id=operation_id, phase="copy")
    excluded = nested_exclusions(spec)

    for name in template_entries(template_dir):
        if spec.skips(name):
            logger.debug("Skipping %s (%s)", name, spec.get(name))
            continue

        plan.actions.append(
            Action(
                id=f"{operation_id}:copy:{name}",
                adapter="filesystem",
                label=name,
                params={
                    "operation": "copy",
                    "source": str(template_dir / name),
                    "source_root": str(template_dir),
                    "path": name,
                    "exclude": excluded,
                },
            )
        )

    return plan
