"""Shared pytest fixtures for the installation test suite.

Provides reusable fixtures for:
- Temporary project directories
- A fake template package laid out the way npm would install it
- Mock subprocess helpers
- A scripted ``run_command`` replacement for install calls
"""

from __future__ import annotations

import json
import os
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

TEMPLATE_PACKAGE = "my-templates"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty project root inside a temporary parent (auto-cleanup)."""
    project_dir = tmp_path / "my-app"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture(autouse=True)
def _restore_cwd():
    """Keep tests from leaking ``os.chdir`` into each other."""
    cwd = os.getcwd()
    yield
    os.chdir(cwd)


# ---------------------------------------------------------------------------
# Template package
# ---------------------------------------------------------------------------


def write_template_package(
    root: Path,
    package: str = TEMPLATE_PACKAGE,
    type_: str = "web",
    language: str = "typescript",
    template_json: dict[str, Any] | None = None,
    files: dict[str, str] | None = None,
) -> Path:
    """Lay out ``node_modules/<package>/templates/<type>/<language>`` under *root*.

    Returns the template base directory.
    """
    base = root / "node_modules" / package / "templates" / type_ / language
    template_dir = base / "template"
    template_dir.mkdir(parents=True, exist_ok=True)

    default_files = {
        "gitignore": "node_modules\n/dist\n",
        "src/index.ts": "console.log('hello');\n",
        "README.md": "# App\n",
    }
    for rel, content in (files if files is not None else default_files).items():
        target = template_dir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    if template_json is not None:
        (base / "template.json").write_text(json.dumps(template_json), encoding="utf-8")
    return base


@pytest.fixture
def template_package():
    """Factory fixture wrapping :func:`write_template_package`."""
    return write_template_package


# ---------------------------------------------------------------------------
# Mock subprocess
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """

    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


class FakeInstaller:
    """Stand-in for ``run_command`` during install calls.

    Records every command.  The first call behaves like installing the
    template package: it creates ``node_modules`` with the template inside
    and a ``yarn.lock``.  ``fail_on`` makes the n-th call (1-based) exit 1.
    """

    def __init__(
        self,
        template_json: dict[str, Any] | None = None,
        fail_on: int | None = None,
        language: str = "typescript",
        files: dict[str, str] | None = None,
    ) -> None:
        self.template_json = template_json
        self.fail_on = fail_on
        self.language = language
        self.files = files
        self.calls: list[list[str]] = []

    async def __call__(self, cmd, cwd=None, timeout=None, capture=True, env=None):
        self.calls.append(list(cmd))
        root = Path(cwd)
        if len(self.calls) == 1:
            write_template_package(
                root,
                language=self.language,
                template_json=self.template_json,
                files=self.files,
            )
            (root / "yarn.lock").write_text("# yarn lockfile v1\n", encoding="utf-8")
        if self.fail_on == len(self.calls):
            return (1, "", "")
        return (0, "", "")


@pytest.fixture
def fake_installer():
    """Factory for :class:`FakeInstaller`."""
    return FakeInstaller


# ---------------------------------------------------------------------------
# Workflow environment
# ---------------------------------------------------------------------------


@contextmanager
def patched_environment(
    installer,
    manager=None,
    online: bool = True,
    yarn_version: str | None = "1.22.19",
    npm_version: str | None = "10.2.4",
    cwd_error: Exception | None = None,
):
    """Patch every probe the workflow uses and route installs to *installer*.

    Yields a dict of the probe mocks keyed by name.
    """
    from installation.probe.package_manager import (
        PackageManager,
        PackageManagerInfo,
        meets_minimum,
    )

    manager = manager or PackageManager.YARN
    wf = "installation.workflow"
    mocks = {
        "check_runtime_version": AsyncMock(return_value="v20.11.1"),
        "detect_package_manager": AsyncMock(return_value=manager),
        "ensure_cwd_consistency": AsyncMock(side_effect=cwd_error),
        "check_npm_version": AsyncMock(
            return_value=PackageManagerInfo(
                PackageManager.NPM, npm_version, meets_minimum(npm_version, "5.0.0")
            )
        ),
        "check_yarn_version": AsyncMock(
            return_value=PackageManagerInfo(
                PackageManager.YARN, yarn_version, meets_minimum(yarn_version, "1.12.0")
            )
        ),
        "probe_online": AsyncMock(return_value=online),
        "probe_registry": AsyncMock(return_value=True),
    }
    with ExitStack() as stack:
        for name, mock in mocks.items():
            stack.enter_context(patch(f"{wf}.{name}", mock))
        stack.enter_context(patch("installation.installer.runner.run_command", installer))
        yield mocks


@pytest.fixture
def scaffold_env():
    """Context-manager factory wrapping :func:`patched_environment`."""
    return patched_environment
