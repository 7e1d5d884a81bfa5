"""
Adapter registry — routes each Action to the adapter named in it.

The engine and the use case never call adapters directly: they hand
actions to the registry and get a Receipt back, whatever happens.
"""

from __future__ import annotations

import logging
import time

from craft.adapters.base import Adapter, ExecutionContext
from craft.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name → adapter table plus the dispatch step.

    Dispatch validates the action, executes it unless ``dry_run`` is set,
    and turns a raising adapter into a failed receipt.
    """

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    @classmethod
    def default(cls) -> AdapterRegistry:
        """Registry wired with the real filesystem, git and node adapters."""
        from craft.adapters.languages.node import NodeAdapter
        from craft.adapters.shell.filesystem import FilesystemAdapter
        from craft.adapters.vcs.git import GitAdapter

        registry = cls()
        for adapter in (FilesystemAdapter(), GitAdapter(), NodeAdapter()):
            registry.register(adapter)
        return registry

    def register(self, adapter: Adapter) -> None:
        """Add an adapter; a later one with the same name replaces it."""
        if adapter.name in self._adapters:
            logger.debug("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def execute_action(
        self,
        action: Action,
        project_root: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Run one action and return its receipt. Never raises.

        The receipt always carries the action's label and the time spent.
        """
        start = time.monotonic()
        receipt = self._dispatch(action, project_root, dry_run)
        if not receipt.label:
            receipt.label = action.label
        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt

    def _dispatch(self, action: Action, project_root: str, dry_run: bool) -> Receipt:
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                action.adapter,
                action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(
            action=action,
            project_root=project_root,
            dry_run=dry_run,
            params=action.params,
        )

        try:
            valid, reason = adapter.validate(context)
        except Exception as e:
            logger.warning("Validating %s raised: %s", action.id, e)
            valid, reason = False, str(e)
        if not valid:
            return Receipt.failure(action.adapter, action.id, error=f"Validation failed: {reason}")

        if dry_run:
            return Receipt.skip(
                action.adapter,
                action.id,
                reason=f"[dry-run] Would execute {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", action.adapter, action.id, e)
            return Receipt.failure(action.adapter, action.id, error=f"Unexpected error: {e}")
