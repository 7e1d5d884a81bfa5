"""
Apply-template use case — generate an app and layer a template on top.

This is the top-level orchestrator. Each stage takes the run context and
returns a Receipt (or an ExecutionReport for the filesystem phases):

    generate_app → clone_template → load spec → delete_files
        → copy_files → reconcile_manifest

External commands (generator, git clone, npm install) abort the run on
failure. Per-file failures are reported and the run goes on. The scratch
directory holding the template is released on every exit path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from craft.adapters.registry import AdapterRegistry
from craft.core.config.loader import find_config_file, load_spec
from craft.core.engine.executor import (
    ExecutionReport,
    execute_plan,
    generate_operation_id,
)
from craft.core.models.action import Action, Receipt
from craft.core.models.spec import TemplateSpec
from craft.core.services.manifest_ops import reconcile_manifest
from craft.core.services.planner import plan_copies, plan_deletions
from craft.core.services.scratch import scratch_directory

logger = logging.getLogger(__name__)

# on_progress(event, payload). Events:
#   "stage"   payload: "generate" | "template" | "delete" | "copy" | "install"
#   "config"  payload: config file name in use
#   "deleted" / "copied"  payload: Receipt
ProgressCallback = Callable[[str, Any], None]


@dataclass(frozen=True)
class RunContext:
    """Everything the stages of one run share. Replaced, never mutated."""

    project_name: str
    project_root: Path
    template_url: str
    operation_id: str
    dry_run: bool = False
    use_npx: bool | None = None
    scratch_dir: Path | None = None
    spec: TemplateSpec | None = None

    def require_scratch(self) -> Path:
        if self.scratch_dir is None:
            raise ValueError("No scratch directory has been acquired for this run")
        return self.scratch_dir

    def require_spec(self) -> TemplateSpec:
        if self.spec is None:
            raise ValueError("The template spec has not been loaded for this run")
        return self.spec


@dataclass
class CraftResult:
    """Outcome of a craft run."""

    project_root: Path | None = None
    spec: TemplateSpec | None = None
    generate: Receipt | None = None
    clone: Receipt | None = None
    deletions: ExecutionReport | None = None
    copies: ExecutionReport | None = None
    manifest: Receipt | None = None
    failed_command: str | None = None
    error: str | None = None
    unexpected: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok, "project_root": str(self.project_root)}
        if self.error:
            result["error"] = self.error
            result["failed_command"] = self.failed_command
            result["unexpected"] = self.unexpected
        if self.spec is not None:
            result["spec"] = self.spec.to_dict()
        if self.deletions is not None:
            result["deletions"] = self.deletions.to_dict()
        if self.copies is not None:
            result["copies"] = self.copies.to_dict()
        if self.manifest is not None:
            result["manifest"] = self.manifest.model_dump(mode="json")
        return result


def apply_template(
    project_name: str,
    template_url: str,
    *,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
    use_npx: bool | None = None,
    on_progress: ProgressCallback | None = None,
    cwd: Path | None = None,
) -> CraftResult:
    """Run the whole pipeline for one project.

    Args:
        project_name: Directory (and app name) passed to the generator.
        template_url: Git URL of the template repository.
        registry: Adapter registry. Defaults to the real adapters.
        dry_run: Clone the template and plan everything, but leave the
            project untouched.
        use_npx: Run the generator through npx. None = auto-detect.
        on_progress: Optional narration callback, see ProgressCallback.
        cwd: Directory the project is created in (default: cwd).

    Returns:
        CraftResult. ``ok`` is False when any stage aborted the run.
    """
    base = cwd or Path.cwd()
    ctx = RunContext(
        project_name=project_name,
        project_root=(base / project_name).resolve(),
        template_url=template_url,
        operation_id=generate_operation_id(),
        dry_run=dry_run,
        use_npx=use_npx,
    )
    if registry is None:
        registry = AdapterRegistry.default()

    def emit(event: str, payload: Any = None) -> None:
        if on_progress:
            on_progress(event, payload)

    result = CraftResult(project_root=ctx.project_root)
    try:
        _run(ctx, registry, result, emit, cwd=base)
    except Exception as e:
        logger.exception("Unexpected error while applying %s", template_url)
        result.error = f"{type(e).__name__}: {e}"
        result.unexpected = True

    return result


def _run(
    ctx: RunContext,
    registry: AdapterRegistry,
    result: CraftResult,
    emit: Callable[[str, Any], None],
    cwd: Path,
) -> None:
    emit("stage", "generate")
    result.generate = generate_app(ctx, registry, cwd)
    if result.generate.failed:
        _abort(result, result.generate)
        return

    emit("stage", "template")
    with scratch_directory() as scratch:
        ctx = replace(ctx, scratch_dir=scratch)

        result.clone = clone_template(ctx, registry)
        if result.clone.failed:
            _abort(result, result.clone)
            return

        config = find_config_file(scratch)
        if config is not None:
            emit("config", config.name)
        spec = load_spec(scratch)
        ctx = replace(ctx, spec=spec)
        result.spec = spec

        emit("stage", "delete")
        result.deletions = delete_files(ctx, registry, lambda r: emit("deleted", r))

        emit("stage", "copy")
        result.copies = copy_files(ctx, registry, lambda r: emit("copied", r))

        if spec.merges_manifest:
            emit("stage", "install")
        result.manifest = reconcile_manifest(
            spec,
            scratch,
            ctx.project_root,
            registry,
            dry_run=ctx.dry_run,
            operation_id=ctx.operation_id,
        )
        if result.manifest.failed:
            _abort(result, result.manifest)
            return


def _abort(result: CraftResult, receipt: Receipt) -> None:
    result.failed_command = receipt.command
    result.error = receipt.error or "failed"
    logger.info("Run aborted at %s: %s", receipt.action_id, result.error)


# ── Stages ──────────────────────────────────────────────────────


def generate_app(ctx: RunContext, registry: AdapterRegistry, cwd: Path) -> Receipt:
    """Create the baseline project with the app generator."""
    params: dict[str, Any] = {
        "operation": "create-app",
        "name": ctx.project_name,
        "cwd": str(cwd),
    }
    if ctx.use_npx is not None:
        params["use_npx"] = ctx.use_npx

    return registry.execute_action(
        Action(
            id=f"{ctx.operation_id}:generate",
            adapter="node",
            label=ctx.project_name,
            params=params,
        ),
        project_root=str(cwd),
        dry_run=ctx.dry_run,
    )


def clone_template(ctx: RunContext, registry: AdapterRegistry) -> Receipt:
    """Clone the template into the scratch directory.

    Runs even on dry runs: the plan cannot be computed without it.
    """
    scratch = ctx.require_scratch()
    return registry.execute_action(
        Action(
            id=f"{ctx.operation_id}:clone",
            adapter="git",
            label=ctx.template_url,
            params={
                "operation": "clone",
                "url": ctx.template_url,
                "dest": str(scratch),
            },
        ),
        project_root=str(scratch),
    )


def delete_files(
    ctx: RunContext,
    registry: AdapterRegistry,
    on_receipt: Callable[[Receipt], None] | None = None,
) -> ExecutionReport:
    """Remove every ``delete`` path from the generated project."""
    spec = ctx.require_spec()
    return execute_plan(
        plan_deletions(spec, ctx.operation_id),
        registry,
        project_root=str(ctx.project_root),
        dry_run=ctx.dry_run,
        on_receipt=on_receipt,
    )


def copy_files(
    ctx: RunContext,
    registry: AdapterRegistry,
    on_receipt: Callable[[Receipt], None] | None = None,
) -> ExecutionReport:
    """Copy every kept top-level template entry into the project."""
    spec, template_dir = ctx.require_spec(), ctx.require_scratch()
    return execute_plan(
        plan_copies(spec, template_dir, ctx.operation_id),
        registry,
        project_root=str(ctx.project_root),
        dry_run=ctx.dry_run,
        on_receipt=on_receipt,
    )
