"""Online/offline detection for the Yarn registry.

A direct DNS lookup of the registry fails behind most corporate proxies even
when the network is fine, so on failure the proxy's own hostname is resolved
instead and used as the connectivity signal.
"""

from __future__ import annotations

import asyncio
import os
import socket
from urllib.parse import urlsplit

from installation.config import ProbeSettings
from installation.probe.package_manager import PackageManager
from installation.utils import run_command

_UNSET_CONFIG_VALUES = ("", "null", "undefined")


async def resolve_host(hostname: str) -> bool:
    """Return ``True`` if *hostname* resolves via the system resolver."""
    if not hostname:
        return False
    loop = asyncio.get_running_loop()
    try:
        await loop.getaddrinfo(hostname, None)
    except (socket.gaierror, UnicodeError, OSError):
        return False
    return True


async def get_proxy(settings: ProbeSettings | None = None) -> str | None:
    """Return the configured HTTPS proxy URL, if any.

    Environment variables win; otherwise ``npm config get https-proxy`` is
    consulted (npm prints ``null`` when the key is unset).
    """
    settings = settings or ProbeSettings()
    for var in settings.proxy_env_vars:
        value = os.environ.get(var)
        if value:
            return value

    try:
        returncode, stdout, _ = await run_command(
            [PackageManager.NPM.value, "config", "get", "https-proxy"], timeout=60
        )
    except OSError:
        return None
    proxy = stdout.strip()
    if returncode != 0 or proxy in _UNSET_CONFIG_VALUES:
        return None
    return proxy


def proxy_hostname(proxy: str) -> str | None:
    """Extract the hostname from a proxy URL; bare ``host:port`` is accepted."""
    if "://" not in proxy:
        proxy = f"http://{proxy}"
    try:
        return urlsplit(proxy).hostname
    except ValueError:
        return None


async def probe_online(using_yarn: bool, settings: ProbeSettings | None = None) -> bool:
    """Decide whether installs should run online.

    With npm this is always ``True`` and no lookup happens; npm reports real
    connectivity problems itself.
    """
    if not using_yarn:
        return True

    settings = settings or ProbeSettings()
    if await resolve_host(settings.yarn_registry_host):
        return True

    proxy = await get_proxy(settings)
    if not proxy:
        return False
    hostname = proxy_hostname(proxy)
    if not hostname:
        return False
    return await resolve_host(hostname)
