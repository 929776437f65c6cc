"""Pre-flight validation of the project name, target directory and runtime.

The name rules mirror what npm accepts for *new* packages: anything npm would
only warn about is rejected here as well, because the generated project must
be publishable and installable under its own name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from installation.config import ProbeSettings
from installation.errors import (
    InvalidProjectNameError,
    NameCollidesWithDependencyError,
    UnsafeTargetDirectoryError,
    UnsupportedRuntimeVersionError,
)
from installation.probe.package_manager import meets_minimum
from installation.utils import print_warning, run_command

MAX_NAME_LENGTH = 214

_BLACKLISTED_NAMES = ("node_modules", "favicon.ico")
_SCOPED_NAME_RE = re.compile(r"^(?:@([^/]+?)[/])?([^/]+?)$")
_SPECIAL_CHARS_RE = re.compile(r"[~'!()*]")

NODE_BUILTIN_MODULES = frozenset(
    {
        "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
        "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
        "events", "fs", "http", "http2", "https", "inspector", "module", "net",
        "os", "path", "perf_hooks", "process", "punycode", "querystring",
        "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
        "trace_events", "tty", "url", "util", "v8", "vm", "wasi",
        "worker_threads", "zlib",
    }
)

# Entries that may already exist in the target directory.
VALID_EXISTING_FILES = frozenset(
    {
        ".DS_Store", ".git", ".gitattributes", ".gitignore", ".gitlab-ci.yml",
        ".hg", ".hgcheck", ".hgignore", ".idea", ".npmignore", ".travis.yml",
        "docs", "LICENSE", "README.md", "mkdocs.yml", "Thumbs.db",
    }
)
ERROR_LOG_PREFIXES = ("npm-debug.log", "yarn-error.log", "yarn-debug.log")


# ---------------------------------------------------------------------------
# Project name
# ---------------------------------------------------------------------------


@dataclass
class NameValidation:
    """Outcome of :func:`validate_package_name`."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def reasons(self) -> list[str]:
        return [*self.errors, *self.warnings]


def _url_safe(part: str) -> bool:
    return quote(part, safe="!'()*-._~") == part


def validate_package_name(name: str) -> NameValidation:
    """Check *name* against npm's naming rules for new packages."""
    errors: list[str] = []
    warnings: list[str] = []

    if not name:
        return NameValidation(valid=False, errors=["name length must be greater than zero"])

    if name.startswith("."):
        errors.append("name cannot start with a period")
    if name.startswith("_"):
        errors.append("name cannot start with an underscore")
    if name.strip() != name:
        errors.append("name cannot contain leading or trailing spaces")
    for blacklisted in _BLACKLISTED_NAMES:
        if name.lower() == blacklisted:
            errors.append(f"{blacklisted} is a blacklisted name")

    if name.lower() in NODE_BUILTIN_MODULES:
        warnings.append(f"{name} is a core module name")
    if len(name) > MAX_NAME_LENGTH:
        warnings.append(f"name can no longer contain more than {MAX_NAME_LENGTH} characters")
    if name.lower() != name:
        warnings.append("name can no longer contain capital letters")
    if _SPECIAL_CHARS_RE.search(name.split("/")[-1]):
        warnings.append('name can no longer contain special characters ("~\'!()*")')

    if not _url_safe(name):
        match = _SCOPED_NAME_RE.match(name)
        scope, package = (match.group(1), match.group(2)) if match else (None, None)
        if not (match and scope and _url_safe(scope) and _url_safe(package)):
            errors.append("name can only contain URL-friendly characters")

    return NameValidation(valid=not errors and not warnings, errors=errors, warnings=warnings)


def check_app_name(app_name: str, reserved_names: list[str]) -> None:
    """Reject names npm refuses and names shadowing a reserved dependency.

    Raises:
        InvalidProjectNameError: If npm naming rules are violated.
        NameCollidesWithDependencyError: If *app_name* is in *reserved_names*.
    """
    result = validate_package_name(app_name)
    if not result.valid:
        raise InvalidProjectNameError(app_name, result.reasons)
    if app_name in reserved_names:
        raise NameCollidesWithDependencyError(app_name, sorted(reserved_names))


# ---------------------------------------------------------------------------
# Target directory
# ---------------------------------------------------------------------------


def _is_error_log(name: str) -> bool:
    return name.startswith(ERROR_LOG_PREFIXES)


def find_conflicts(root: Path) -> list[str]:
    """Entries of *root* that a new project could clobber.

    Directories are suffixed with ``/``.
    """
    conflicts: list[str] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        name = entry.name
        if name in VALID_EXISTING_FILES or name.endswith(".iml") or _is_error_log(name):
            continue
        conflicts.append(f"{name}/" if entry.is_dir() and not entry.is_symlink() else name)
    return conflicts


def ensure_safe_directory(root: Path, name: str) -> None:
    """Refuse to scaffold into a directory with conflicting files.

    Leftover npm/Yarn error logs are removed once the directory is
    known to be safe.

    Raises:
        UnsafeTargetDirectoryError: If anything else is in the way.
    """
    conflicts = find_conflicts(root)
    if conflicts:
        raise UnsafeTargetDirectoryError(name, conflicts)

    for entry in root.iterdir():
        if _is_error_log(entry.name) and entry.is_file():
            entry.unlink()


# ---------------------------------------------------------------------------
# Node runtime
# ---------------------------------------------------------------------------


async def probe_node_version() -> str | None:
    try:
        returncode, stdout, _ = await run_command(["node", "--version"], timeout=60)
    except OSError:
        return None
    if returncode != 0 or not stdout.strip():
        return None
    return stdout.strip()


async def check_runtime_version(use_typescript: bool, settings: ProbeSettings | None = None) -> str | None:
    """Warn about (or, for TypeScript, refuse) an outdated Node runtime.

    Returns:
        The detected Node version, or ``None`` if it could not be determined.

    Raises:
        UnsupportedRuntimeVersionError: TypeScript template on an old Node.
    """
    settings = settings or ProbeSettings()
    version = await probe_node_version()
    if version is None:
        print_warning(
            "Could not determine your Node version. "
            f"Node {settings.min_node_version} or higher is required."
        )
        return None

    if meets_minimum(version, settings.min_node_version):
        return version

    if use_typescript:
        raise UnsupportedRuntimeVersionError(version, settings.min_node_version)

    print_warning(
        f"You are using Node {version} so the project will be bootstrapped with "
        "an old unsupported version of tools.\n\n"
        f"Please update to Node {settings.min_node_version} or higher.\n"
    )
    return version
