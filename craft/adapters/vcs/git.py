"""
Git adapter — fetch template repositories.

Uses the git CLI, attached to the terminal so clone progress and
credential prompts reach the user.
"""

from __future__ import annotations

import logging

from craft.adapters.base import Adapter, ExecutionContext
from craft.adapters.shell.command import run_command
from craft.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git operations.

    Action params:
        operation (str): 'clone'.
        url (str): Repository to clone.
        dest (str): Destination directory (must be empty or absent).
    """

    @property
    def name(self) -> str:
        return "git"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if operation != "clone":
            return False, f"Unknown operation '{operation}'. Valid: clone"

        if not context.action.params.get("url"):
            return False, "Missing required param: 'url' for clone operation"
        if not context.action.params.get("dest"):
            return False, "Missing required param: 'dest' for clone operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        return self._clone(context)

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        url = ctx.action.params["url"]
        dest = ctx.action.params["dest"]
        logger.info("Cloning %s into %s", url, dest)
        return run_command(self.name, ctx.action.id, ["git", "clone", url, dest])
