"""Abstract remote-execution port.

Everything that touches a cluster host goes through a `RemoteExecutor`:
node reset, registry provisioning, and the master-0 bootstrap push. The
concrete adapter in ``ssh.py`` talks paramiko; tests substitute an in-memory
recorder.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import structlog

from clusterops.errors import RemoteExecutionError

logger = structlog.get_logger(__name__)

DEFAULT_SSH_PORT = "22"


def split_host_port(address: str, default_port: str = DEFAULT_SSH_PORT) -> tuple[str, str]:
    """Split ``"ip[:port]"`` into ``(ip, port)``.

    Bracketed IPv6 (``"[::1]:2222"``) is supported; a bare IPv6 address is
    returned with the default port.
    """
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest.lstrip(":") or default_port
        return host, port
    if address.count(":") == 1:
        host, port = address.split(":")
        return host, port or default_port
    return address, default_port


class RemoteExecutor(ABC):
    """Copy, fetch, and run commands on cluster hosts.

    ``host`` is always an address string, optionally with an SSH port
    (``"10.0.0.1:2222"``). Every method raises `RemoteExecutionError` on
    failure.
    """

    @abstractmethod
    async def copy(self, host: str, local_path: str, remote_path: str) -> None:
        """Upload *local_path* to *remote_path* on *host*."""
        ...

    @abstractmethod
    async def fetch(self, host: str, remote_path: str, local_path: str) -> None:
        """Download *remote_path* on *host* to *local_path*."""
        ...

    @abstractmethod
    async def cmd(self, host: str, *commands: str) -> None:
        """Run *commands* in order, stopping at the first non-zero exit."""
        ...

    @abstractmethod
    async def cmd_output(self, host: str, command: str) -> str:
        """Run *command* and return its stdout."""
        ...

    @abstractmethod
    async def ping(self, host: str) -> None:
        """Raise unless *host* accepts a connection."""
        ...

    async def is_overlay_mount(self, host: str, path: str) -> bool:
        """Return True if *path* on *host* is currently an overlay mount."""
        mounts = await self.cmd_output(host, "cat /proc/mounts")
        target = path.rstrip("/") or "/"
        for line in mounts.splitlines():
            fields = line.split()
            if len(fields) < 3:
                continue
            mount_point = fields[1].rstrip("/") or "/"
            if mount_point == target and fields[2] == "overlay":
                return True
        return False


async def wait_ssh_ready(executor: RemoteExecutor, max_attempts: int, host: str) -> None:
    """Ping *host* up to *max_attempts* times, backing off one second more each try.

    Raises:
        RemoteExecutionError: If the host never answers.
    """
    last_error: Exception | None = None
    for attempt in range(max_attempts):
        try:
            await executor.ping(host)
            return
        except RemoteExecutionError as e:
            last_error = e
            await logger.adebug(
                "ssh_not_ready",
                host=host,
                attempt=attempt + 1,
                max_attempts=max_attempts,
                error=str(e),
            )
            if attempt + 1 < max_attempts:
                await asyncio.sleep(attempt)
    raise RemoteExecutionError(host, "wait ready", f"not reachable after {max_attempts} attempts: {last_error}")
