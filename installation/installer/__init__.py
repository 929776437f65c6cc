"""Install orchestration -- turns an ``InstallRequest`` into a package-manager call.

Quick usage::

    from installation.installer import DependencySpec, InstallRequest, install

    request = InstallRequest.create(
        root, PackageManager.YARN, [DependencySpec("react", "18.2.0")], is_dev=False
    )
    await install(request)
"""

from installation.installer.command import (
    ANY_VERSION,
    DependencySpec,
    InstallRequest,
    build_install_command,
    dependency_specs,
)
from installation.installer.runner import InstallResult, install

__all__ = [
    "ANY_VERSION",
    "DependencySpec",
    "InstallRequest",
    "InstallResult",
    "build_install_command",
    "dependency_specs",
    "install",
]
