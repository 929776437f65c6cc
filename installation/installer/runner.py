"""Package-manager process execution.

Installs run with inherited stdio so the user sees the installer's own
progress output live, and without a timeout: once started, a process is
always awaited to completion.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass

from installation.errors import InstallFailedError
from installation.installer.command import InstallRequest, build_install_command
from installation.utils import run_command


@dataclass(frozen=True)
class InstallResult:
    """Outcome of a successful install call."""

    command: list[str]
    returncode: int = 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)


async def install(request: InstallRequest) -> InstallResult:
    """Run one package-manager invocation for *request*.

    Raises:
        InstallFailedError: If the process exits non-zero or cannot be
            started.  The error carries the exact command line.
    """
    cmd = build_install_command(request)
    command_line = shlex.join(cmd)

    try:
        returncode, _, _ = await run_command(cmd, cwd=request.root, capture=False)
    except OSError as exc:
        raise InstallFailedError(command_line) from exc

    if returncode != 0:
        raise InstallFailedError(command_line, returncode=returncode)

    return InstallResult(command=cmd, returncode=returncode)
