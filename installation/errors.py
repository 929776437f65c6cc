"""Exception hierarchy for the installation tool.

Every fatal condition is raised as a :class:`ScaffoldError` subclass and
propagated up to the workflow, which alone decides whether to roll back and
which exit code to use.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all classified scaffolding failures."""


class UnsupportedRuntimeVersionError(ScaffoldError):
    """Raised when the installed Node runtime is too old for the template."""

    def __init__(self, version: str, minimum: str) -> None:
        self.version = version
        self.minimum = minimum
        super().__init__(
            f"You are using Node {version} with the TypeScript template. "
            f"Node {minimum} or higher is required to use TypeScript."
        )


class InvalidProjectNameError(ScaffoldError):
    """Raised when the project name breaks npm naming restrictions."""

    def __init__(self, name: str, reasons: list[str]) -> None:
        self.name = name
        self.reasons = reasons
        super().__init__(
            f'Cannot create a project named "{name}" because of npm naming restrictions: '
            + "; ".join(reasons)
        )


class NameCollidesWithDependencyError(ScaffoldError):
    """Raised when the project name equals one of the reserved dependency names."""

    def __init__(self, name: str, reserved: list[str]) -> None:
        self.name = name
        self.reserved = reserved
        super().__init__(
            f'Cannot create a project named "{name}" because a dependency '
            "with the same name exists."
        )


class UnsafeTargetDirectoryError(ScaffoldError):
    """Raised when the target directory holds files that could conflict."""

    def __init__(self, directory: str, conflicts: list[str]) -> None:
        self.directory = directory
        self.conflicts = conflicts
        super().__init__(
            f"The directory {directory} contains files that could conflict: "
            + ", ".join(conflicts)
        )


class CwdMismatchError(ScaffoldError):
    """Raised when npm reports a different working directory than ours."""

    def __init__(self, cwd: str, npm_cwd: str) -> None:
        self.cwd = cwd
        self.npm_cwd = npm_cwd
        super().__init__(
            "Could not start an npm process in the right directory. "
            f"The current directory is: {cwd}, however a newly started npm "
            f"process runs in: {npm_cwd}"
        )


class TemplateNotFoundError(ScaffoldError):
    """Raised when the installed template package lacks the requested template."""

    def __init__(self, template_dir: str) -> None:
        self.template_dir = template_dir
        super().__init__(f"Could not locate supplied template: {template_dir}")


class ManifestMissingError(ScaffoldError):
    """Raised when ``package.json`` is gone by the time manifests are merged."""

    def __init__(self, manifest_path: str) -> None:
        self.manifest_path = manifest_path
        super().__init__(f"Template of 'package.json' does not exist: {manifest_path}")


class InstallFailedError(ScaffoldError):
    """Raised when a package-manager process exits non-zero.

    ``command`` is the full, shell-quoted command line so users can replay it.
    """

    def __init__(self, command: str, returncode: int | None = None) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"{command} has failed.")
