"""
Shell commands — run external programs attached to the terminal.

craft's external collaborators (the app generator, git, npm) print their
own progress, so commands inherit the controlling terminal's streams
instead of being captured. Failure is signalled only by a non-zero exit
status, or by the executable being missing.

``run_command`` and ``command_succeeds`` are shared by the git and node adapters.
"""

from __future__ import annotations

import logging
import subprocess
import time

from craft.core.models.action import Receipt

logger = logging.getLogger(__name__)


def format_command(cmd: list[str]) -> str:
    """Human-readable command line, as shown in failure messages."""
    return " ".join(cmd)


def run_command(
    adapter: str,
    action_id: str,
    cmd: list[str],
    cwd: str | None = None,
) -> Receipt:
    """Run ``cmd`` with inherited stdio and wrap the outcome in a Receipt.

    No timeout is applied; a hung child hangs the run.
    """
    command = format_command(cmd)
    logger.debug("Executing: %s (cwd=%s)", command, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(cmd, cwd=cwd, check=False)
    except FileNotFoundError:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Executable not found: {cmd[0]}",
            metadata={"command": command},
        )
    except OSError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command execution error: {e}",
            metadata={"command": command},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    if result.returncode == 0:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            duration_ms=elapsed_ms,
            metadata={"command": command, "return_code": 0},
        )

    logger.info("Command failed (exit %d): %s", result.returncode, command)
    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=f"Command exited with code {result.returncode}",
        duration_ms=elapsed_ms,
        metadata={"command": command, "return_code": result.returncode},
    )


def command_succeeds(cmd: list[str]) -> bool:
    """Whether ``cmd`` runs and exits 0, with all output discarded."""
    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0
