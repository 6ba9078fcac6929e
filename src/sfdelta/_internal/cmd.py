"""Command-execution helpers shared by the git and sf CLI wrappers.

* :func:`which_or_raise` - resolve executables reliably across environments.
* :func:`run_cmd` - run subprocesses (no ``shell=True``) and capture output.

There is no timeout: a hung external tool blocks the caller.
"""

import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def diagnostic(self) -> str:
        """Best diagnostic text: stderr if present, else stdout."""
        return (self.stderr or self.stdout or "").strip()


def which_or_raise(bin_name: str, fallbacks: Optional[List[str]] = None) -> str:
    """Locate an executable and return its absolute path."""
    found = shutil.which(bin_name)
    if found:
        return found

    for candidate in fallbacks or []:
        p = Path(candidate)
        if p.exists() and os.access(str(p), os.X_OK):
            return str(p)

    raise FileNotFoundError(
        f"Executable '{bin_name}' not found on PATH. "
        f"Install it and ensure it's available to this Python process."
    )


def run_cmd(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
) -> CmdResult:
    """Run a subprocess and capture stdout/stderr (no ``shell=True``).

    Never raises on non-zero exit codes; only raises on execution errors
    (e.g. binary not found).
    """
    t0 = time.time()

    proc = subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        text=True,
        capture_output=True,
    )
    elapsed = time.time() - t0

    return CmdResult(
        exit_code=proc.returncode,
        elapsed_seconds=elapsed,
        command_str=" ".join(cmd),
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
