"""Environment probing -- which package manager, which version, online or not.

Quick usage::

    from installation.probe import detect_package_manager, probe_online

    manager = await detect_package_manager(use_npm=False)
    is_online = await probe_online(manager is PackageManager.YARN)
"""

from installation.probe.network import get_proxy, probe_online, proxy_hostname, resolve_host
from installation.probe.package_manager import (
    PackageManager,
    PackageManagerInfo,
    check_npm_version,
    check_yarn_version,
    cwd_mismatch_hint,
    detect_package_manager,
    ensure_cwd_consistency,
    meets_minimum,
    probe_cwd_consistency,
    probe_registry,
    probe_version,
)

__all__ = [
    "PackageManager",
    "PackageManagerInfo",
    "check_npm_version",
    "check_yarn_version",
    "cwd_mismatch_hint",
    "detect_package_manager",
    "ensure_cwd_consistency",
    "get_proxy",
    "meets_minimum",
    "probe_cwd_consistency",
    "probe_online",
    "probe_registry",
    "probe_version",
    "proxy_hostname",
    "resolve_host",
]
