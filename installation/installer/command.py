"""Install request model and command-line construction.

Building the argument list is kept free of I/O so every flag combination can
be checked without spawning anything.  The only side effect is the console
warning for flags that cannot be honoured.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from installation.probe.package_manager import PackageManager
from installation.utils import print_warning

ANY_VERSION = "*"


@dataclass(frozen=True)
class DependencySpec:
    """A package name with an optional version constraint."""

    name: str
    version: str | None = None

    def render(self) -> str:
        """``name`` when any version will do, else ``name@version``."""
        if not self.version or self.version == ANY_VERSION:
            return self.name
        return f"{self.name}@{self.version}"


def dependency_specs(mapping: Mapping[str, str] | None) -> list[DependencySpec]:
    """Convert a ``{name: version}`` manifest section, keeping its order."""
    if not mapping:
        return []
    return [DependencySpec(name=name, version=version) for name, version in mapping.items()]


@dataclass(frozen=True)
class InstallRequest:
    """Everything needed for one package-manager invocation."""

    root: Path
    manager: PackageManager
    dependencies: tuple[DependencySpec, ...] = field(default_factory=tuple)
    use_pnp: bool = False
    verbose: bool = False
    is_online: bool = True
    is_dev: bool = False

    @classmethod
    def create(
        cls,
        root: str | Path,
        manager: PackageManager,
        dependencies: Iterable[DependencySpec],
        **kwargs: bool,
    ) -> "InstallRequest":
        return cls(root=Path(root), manager=manager, dependencies=tuple(dependencies), **kwargs)


def _yarn_args(request: InstallRequest, packages: list[str]) -> list[str]:
    args = ["add", "--exact"]
    if request.is_dev:
        args.append("--dev")
    if not request.is_online:
        args.append("--offline")
    if request.use_pnp:
        args.append("--enable-pnp")
    args.extend(packages)
    # yarn add does not reliably honour the spawn cwd
    args.extend(["--cwd", str(request.root)])
    return args


def _npm_args(request: InstallRequest, packages: list[str]) -> list[str]:
    return [
        "install",
        "--save-dev" if request.is_dev else "--save",
        "--save-exact",
        "--loglevel",
        "error",
        *packages,
    ]


def build_install_command(request: InstallRequest) -> list[str]:
    """Return the full argv (executable first) for *request*."""
    packages = [dep.render() for dep in request.dependencies]

    if request.manager is PackageManager.YARN:
        args = _yarn_args(request, packages)
        if not request.is_online:
            print_warning("You appear to be offline.")
            print_warning("Falling back to the local Yarn cache.")
    else:
        args = _npm_args(request, packages)
        if request.use_pnp:
            print_warning("NPM doesn't support PnP.")
            print_warning("Falling back to the regular installs.")

    if request.verbose:
        args.append("--verbose")

    return [request.manager.value, *args]
