"""
Node.js adapter — create-react-app and npm operations.

Generates the baseline app (through ``npx`` when it is available, the
globally installed ``create-react-app`` otherwise) and installs extra
packages with npm.
"""

from __future__ import annotations

import logging

from craft.adapters.base import Adapter, ExecutionContext
from craft.adapters.shell.command import command_succeeds, run_command
from craft.core.models.action import Receipt

logger = logging.getLogger(__name__)

GENERATOR = "create-react-app"

# npm flags used when installing template packages
INSTALL_FLAGS = ("--save", "--loglevel", "error")


class NodeAdapter(Adapter):
    """Node.js toolchain adapter.

    Action params:
        operation (str): One of 'create-app', 'install'.
        name (str): Project name passed to the generator (for 'create-app').
        use_npx (bool): Run the generator through npx (for 'create-app',
            default: auto-detect).
        packages (dict[str, str]): name → version spec (for 'install').
        cwd (str): Working directory (default: project root).
    """

    VALID_OPS = frozenset({"create-app", "install"})

    @property
    def name(self) -> str:
        return "node"

    # ── Prerequisites ───────────────────────────────────────────

    @staticmethod
    def npx_available() -> bool:
        """Whether ``npx --version`` succeeds."""
        return command_succeeds(["npx", "--version"])

    @staticmethod
    def generator_installed() -> bool:
        """Whether a global ``create-react-app`` is on the PATH and runs."""
        return command_succeeds([GENERATOR, "--version"])

    # ── Protocol ────────────────────────────────────────────────

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in self.VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.VALID_OPS))}"

        if operation == "create-app" and not params.get("name"):
            return False, "Missing required param: 'name' for create-app operation"

        if operation == "install":
            packages = params.get("packages")
            if not packages or not isinstance(packages, dict):
                return False, "Missing required param: 'packages' for install operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        if operation == "create-app":
            return self._create_app(context)
        return self._install(context)

    # ── Operations ──────────────────────────────────────────────

    def _create_app(self, ctx: ExecutionContext) -> Receipt:
        name = ctx.action.params["name"]
        use_npx = ctx.action.params.get("use_npx")
        if use_npx is None:
            use_npx = self.npx_available()

        cmd = ["npx", GENERATOR, name] if use_npx else [GENERATOR, name]
        return run_command(self.name, ctx.action.id, cmd, cwd=ctx.working_dir)

    def _install(self, ctx: ExecutionContext) -> Receipt:
        packages: dict[str, str] = ctx.action.params["packages"]
        specs = [f"{pkg}@{version}" for pkg, version in packages.items()]
        logger.info("Installing %d template package(s)", len(specs))

        cmd = ["npm", "install", *INSTALL_FLAGS, *specs]
        return run_command(self.name, ctx.action.id, cmd, cwd=ctx.working_dir)
