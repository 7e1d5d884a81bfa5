"""
Scratch directory — where the template is cloned for the length of a run.

Acquired once per run and released on every exit path. Release is best
effort: a leftover temp directory is the OS's to reclaim, never a reason
to fail the run.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "craft-"


@contextmanager
def scratch_directory(prefix: str = SCRATCH_PREFIX) -> Iterator[Path]:
    """Yield a fresh empty directory and remove it (recursively) afterwards."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created scratch directory %s", path)
    try:
        yield path
    finally:
        release(path)


def release(path: Path) -> None:
    """Remove a scratch directory, logging instead of raising on failure."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Could not remove scratch directory %s: %s", path, e)
    else:
        logger.debug("Removed scratch directory %s", path)
