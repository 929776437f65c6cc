"""Package-manager detection and version probing.

npm is the primary manager and is assumed to exist; Yarn is the secondary
manager, picked whenever ``yarn --version`` succeeds and the caller has not
forced npm.  Every probe here degrades to a conservative answer instead of
raising: a tool that cannot be queried is simply "not available" or of
"unknown version".
"""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from packaging.version import InvalidVersion, Version

from installation.config import ProbeSettings
from installation.errors import CwdMismatchError
from installation.utils import run_command

_SUFFIX_RE = re.compile(r"[-+].*$")
_NPM_CWD_PREFIX = "; cwd = "


class PackageManager(str, Enum):
    """Supported package managers; the value is the executable name."""

    NPM = "npm"
    YARN = "yarn"


@dataclass(frozen=True)
class PackageManagerInfo:
    """Result of a version probe."""

    kind: PackageManager
    version: str | None
    meets_minimum: bool


# ---------------------------------------------------------------------------
# Version comparison
# ---------------------------------------------------------------------------


def _core_version(version: str) -> str:
    """Strip a leading ``v`` and any pre-release/build suffix.

    ``"1.12.0-rc1"`` and ``"v1.12.0+sha.abc"`` both become ``"1.12.0"``.
    """
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return _SUFFIX_RE.sub("", version)


def meets_minimum(version: str | None, minimum: str) -> bool:
    """Return ``True`` if *version* is at least *minimum*.

    Unknown or unparseable versions never meet the minimum.
    """
    if not version:
        return False
    try:
        return Version(_core_version(version)) >= Version(_core_version(minimum))
    except InvalidVersion:
        return False


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------


async def _query(cmd: list[str], cwd: str | Path | None = None) -> str | None:
    """Run *cmd* and return its trimmed stdout, or ``None`` on any failure."""
    try:
        returncode, stdout, _ = await run_command(cmd, cwd=cwd, timeout=60)
    except OSError:
        return None
    if returncode != 0:
        return None
    return stdout.strip()


async def is_yarn_available() -> bool:
    return await _query([PackageManager.YARN.value, "--version"]) is not None


async def detect_package_manager(use_npm: bool = False) -> PackageManager:
    """Pick Yarn if it runs and npm is not forced, else npm."""
    if use_npm:
        return PackageManager.NPM
    if await is_yarn_available():
        return PackageManager.YARN
    return PackageManager.NPM


async def probe_version(manager: PackageManager) -> str | None:
    """Return the trimmed ``<manager> --version`` output, or ``None``."""
    version = await _query([manager.value, "--version"])
    return version or None


async def check_npm_version(settings: ProbeSettings | None = None) -> PackageManagerInfo:
    settings = settings or ProbeSettings()
    version = await probe_version(PackageManager.NPM)
    return PackageManagerInfo(
        kind=PackageManager.NPM,
        version=version,
        meets_minimum=meets_minimum(version, settings.min_npm_version),
    )


async def check_yarn_version(settings: ProbeSettings | None = None) -> PackageManagerInfo:
    """Probe Yarn and report whether it is new enough for Plug'n'Play."""
    settings = settings or ProbeSettings()
    version = await probe_version(PackageManager.YARN)
    return PackageManagerInfo(
        kind=PackageManager.YARN,
        version=version,
        meets_minimum=meets_minimum(version, settings.min_yarn_pnp_version),
    )


async def probe_registry(settings: ProbeSettings | None = None) -> bool:
    """Return ``True`` if Yarn is configured with its default registry.

    A failed query is reported as the default registry.
    """
    settings = settings or ProbeSettings()
    registry = await _query([PackageManager.YARN.value, "config", "get", "registry"])
    if registry is None:
        return True
    return registry.rstrip("/") == settings.yarn_default_registry.rstrip("/")


# ---------------------------------------------------------------------------
# Working directory consistency (npm only)
# ---------------------------------------------------------------------------


def _same_path(a: str | Path, b: str | Path) -> bool:
    return os.path.normcase(os.path.realpath(a)) == os.path.normcase(os.path.realpath(b))


async def read_npm_cwd(root: str | Path) -> str | None:
    """Return the directory a freshly spawned npm believes it runs in.

    Parses the ``; cwd = ...`` line of ``npm config list``.  Both stdout and
    stderr are scanned.  ``None`` means it could not be determined.
    """
    try:
        _, stdout, stderr = await run_command(
            [PackageManager.NPM.value, "config", "list"], cwd=root, timeout=60
        )
    except OSError:
        return None
    for line in f"{stdout}\n{stderr}".splitlines():
        if line.startswith(_NPM_CWD_PREFIX):
            return line[len(_NPM_CWD_PREFIX):].strip()
    return None


async def _mismatched_npm_cwd(root: str | Path) -> str | None:
    """The directory npm reports when it differs from *root*, else ``None``."""
    npm_cwd = await read_npm_cwd(root)
    if npm_cwd is None or _same_path(npm_cwd, root):
        return None
    return npm_cwd


async def probe_cwd_consistency(root: str | Path) -> bool:
    """Return ``False`` only when npm positively reports a different cwd."""
    return await _mismatched_npm_cwd(root) is None


async def ensure_cwd_consistency(root: str | Path) -> None:
    """Raise :class:`CwdMismatchError` if npm would run somewhere else.

    This usually means a shell wrapper (e.g. a Windows ``AutoRun`` command)
    changes directory behind our back.
    """
    npm_cwd = await _mismatched_npm_cwd(root)
    if npm_cwd is not None:
        raise CwdMismatchError(str(root), npm_cwd)


def cwd_mismatch_hint() -> str | None:
    """Platform specific remedy for :class:`CwdMismatchError`, if known."""
    if sys.platform != "win32":
        return None
    return (
        "On Windows, this can usually be fixed by running:\n\n"
        '  reg delete "HKCU\\Software\\Microsoft\\Command Processor" /v AutoRun /f\n'
        '  reg delete "HKLM\\Software\\Microsoft\\Command Processor" /v AutoRun /f\n\n'
        "Try to run the above two lines in the terminal.\n"
        "To learn more about this problem, read: "
        "https://blogs.msdn.microsoft.com/oldnewthing/20071121-00/?p=24433/"
    )
