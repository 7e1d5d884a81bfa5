"""
Filesystem adapter — remove, copy and write with receipts.

Paths in action params are relative to the project root unless absolute.
Targets that would escape the project root are rejected at validation.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable, Collection
from pathlib import Path

from craft.adapters.base import Adapter, ExecutionContext
from craft.core.models.action import Receipt

logger = logging.getLogger(__name__)


def exclusion_filter(
    source_root: str,
    excluded: Collection[str],
) -> Callable[[str, list[str]], set[str]]:
    """Build a ``shutil.copytree`` ignore callback.

    ``excluded`` holds paths relative to ``source_root`` (host separators).
    A directory entry is dropped when its own relative path is excluded.
    """
    excluded = frozenset(excluded)

    def _ignore(directory: str, names: list[str]) -> set[str]:
        rel_dir = os.path.relpath(directory, source_root)
        dropped = set()
        for name in names:
            rel = name if rel_dir == os.curdir else os.path.join(rel_dir, name)
            if rel in excluded:
                dropped.add(name)
        return dropped

    return _ignore


def _ignore_vanished(func, path, exc: BaseException) -> None:
    if not isinstance(exc, FileNotFoundError):
        raise exc


def _rmtree(path: Path) -> None:
    """Remove a tree, tolerating entries that disappear while it runs."""
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_ignore_vanished)
    else:
        shutil.rmtree(path, onerror=lambda func, p, info: _ignore_vanished(func, p, info[1]))


class FilesystemAdapter(Adapter):
    """File and directory operations with receipts.

    Action params:
        operation (str): One of 'remove', 'copy', 'write'.
        path (str): Target path.
        source (str): Source path (for 'copy').
        source_root (str): Root that 'exclude' entries are relative to
            (for 'copy', default: parent of source).
        exclude (list[str]): Relative paths never materialized (for 'copy').
        content (str): Content to write (for 'write').
    """

    VALID_OPS = frozenset({"remove", "copy", "write"})

    @property
    def name(self) -> str:
        return "filesystem"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.VALID_OPS))}"

        path = params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"

        root = Path(context.project_root).resolve()
        target = context.resolve(path).resolve()
        if target != root and root not in target.parents:
            return False, f"Path escapes the project root: {path}"
        if operation == "remove" and target == root:
            return False, "Refusing to remove the project root"

        if operation == "copy" and not params.get("source"):
            return False, "Missing required param: 'source' for copy operation"

        if operation == "write" and "content" not in params:
            return False, "Missing required param: 'content' for write operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        target = context.resolve(context.action.params["path"])

        try:
            if operation == "remove":
                return self._remove(context, target)
            elif operation == "copy":
                return self._copy(context, target)
            elif operation == "write":
                return self._write(context, target)
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except Exception as e:
            logger.warning("%s %s failed: %s", operation, target, e)
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    # ── Operations ──────────────────────────────────────────────

    def _remove(self, ctx: ExecutionContext, target: Path) -> Receipt:
        existed = target.exists() or target.is_symlink()
        if target.is_dir() and not target.is_symlink():
            _rmtree(target)
        elif existed:
            target.unlink(missing_ok=True)

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Removed {target}" if existed else f"Nothing to remove at {target}",
            metadata={"path": str(target), "existed": existed},
        )

    def _copy(self, ctx: ExecutionContext, target: Path) -> Receipt:
        params = ctx.action.params
        source = Path(params["source"])
        source_root = params.get("source_root") or str(source.parent)
        excluded = params.get("exclude", [])

        if source.is_dir() and not source.is_symlink():
            shutil.copytree(
                source,
                target,
                symlinks=True,
                ignore=exclusion_filter(source_root, excluded),
                dirs_exist_ok=True,
            )
        elif source.exists() or source.is_symlink():
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target, follow_symlinks=False)
        else:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Source not found: {source}",
                metadata={"source": str(source), "path": str(target)},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Copied {source} to {target}",
            metadata={"source": str(source), "path": str(target)},
        )

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        content = ctx.action.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Written {len(content)} bytes to {target}",
            metadata={"path": str(target), "size": len(content)},
        )
