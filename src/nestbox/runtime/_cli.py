"""Small subprocess helpers shared by the runtime providers.

Every call passes an argv list (never a shell string) and a timeout, so a
hung CLI surfaces as ``subprocess.TimeoutExpired`` instead of blocking the
host forever.
"""

from __future__ import annotations

import subprocess

# Raised by subprocess.run when the binary is missing, exits non-zero, or hangs
CLI_ERRORS = (subprocess.SubprocessError, OSError)


def run_checked(argv: list[str], *, timeout: float) -> str:
    """Run *argv* and return its stdout. Raises on non-zero exit or timeout."""
    result = subprocess.run(
        argv,
        capture_output=True,
        text=True,
        check=True,
        timeout=timeout,
    )
    return result.stdout or ""


def succeeds(argv: list[str], *, timeout: float) -> bool:
    """True when *argv* exits 0 within *timeout*."""
    try:
        run_checked(argv, timeout=timeout)
    except CLI_ERRORS:
        return False
    return True
