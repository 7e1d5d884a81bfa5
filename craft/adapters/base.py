"""
Adapter base — the protocol contract between the engine and external tools.

The engine and the use case only reach git, npm, the app generator and
the filesystem through adapters. Every adapter returns a Receipt and
never raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from craft.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action."""

    action: Action
    project_root: str = "."
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str:
        """Working directory for the action (``cwd`` param wins)."""
        return self.params.get("cwd") or self.project_root

    def resolve(self, raw_path: str) -> Path:
        """Resolve a path relative to the project root."""
        target = Path(raw_path)
        if not target.is_absolute():
            target = Path(self.project_root) / target
        return target


class Adapter(ABC):
    """Abstract base class for all adapters.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'filesystem', 'git', 'node')."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
