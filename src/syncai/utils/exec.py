"""
Subprocess helpers used by the GitHub CLI wrapper and the tool scanner.
"""

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .logger import get_logger

DEFAULT_TIMEOUT = 30

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of an external command."""
    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    timed_out: bool = False


def run_command(
    args: List[str],
    cwd: Optional[Path] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """
    Run a command and capture its output.

    Never raises: a missing executable, a non-zero exit status or a timeout
    all produce a failed CommandResult.
    """
    logger.debug(f"Running: {' '.join(args)}")
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(args)}")
        return CommandResult(False, stderr=f"timed out after {timeout}s", timed_out=True)
    except OSError as e:
        return CommandResult(False, stderr=str(e))

    return CommandResult(
        success=result.returncode == 0,
        stdout=(result.stdout or "").strip(),
        stderr=(result.stderr or "").strip(),
        returncode=result.returncode,
    )


def command_path(name: str) -> Optional[str]:
    """Absolute path of an executable on PATH, or None."""
    return shutil.which(name)


def command_exists(name: str) -> bool:
    return command_path(name) is not None
