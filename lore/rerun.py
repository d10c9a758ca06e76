"""Hand the terminal to the claude command line tool."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

CLAUDE_EXECUTABLE = "claude"


@dataclass(frozen=True)
class RerunDone:
    """Outcome of a claude run; ``error`` is None when it exited cleanly."""

    error: Optional[BaseException] = None


def _claude_command(args: Sequence[str], cwd: str) -> Callable[[], RerunDone]:
    claude = shutil.which(CLAUDE_EXECUTABLE)
    if claude is None:
        missing = FileNotFoundError(
            f'executable file "{CLAUDE_EXECUTABLE}" not found in PATH'
        )
        return lambda: RerunDone(error=missing)

    def run() -> RerunDone:
        try:
            subprocess.run([claude, *args], cwd=cwd or None, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            return RerunDone(error=exc)
        return RerunDone()

    return run


def rerun_claude(prompt: str, cwd: str) -> Callable[[], RerunDone]:
    """Return a command that runs claude with prompt in cwd and reports the outcome.

    The process is started only when the command is called.
    """
    return _claude_command([prompt], cwd)


def resume_claude(session_id: str, cwd: str) -> Callable[[], RerunDone]:
    """Return a command that resumes the given session with ``claude --resume``."""
    return _claude_command(["--resume", session_id], cwd)