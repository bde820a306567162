"""paramiko-backed `RemoteExecutor`.

Each call opens its own SSH connection, so concurrent tasks never share a
channel. paramiko is blocking; every call is pushed onto a worker thread with
``asyncio.to_thread`` so a fan-out over many hosts really runs in parallel.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from contextlib import contextmanager
from typing import Iterator

import paramiko
import structlog
from paramiko.ssh_exception import NoValidConnectionsError, SSHException

from clusterops.config import SSHSettings
from clusterops.errors import RemoteExecutionError
from clusterops.remote.base import RemoteExecutor, split_host_port

logger = structlog.get_logger(__name__)


class SSHExecutor(RemoteExecutor):
    """Run commands and move files over SSH/SFTP.

    Args:
        settings: User, credentials, default port and timeouts.
    """

    def __init__(self, settings: SSHSettings | None = None) -> None:
        self.settings = settings or SSHSettings()

    # ── Connection ────────────────────────────────────────────────

    @contextmanager
    def _connect(self, host: str, operation: str) -> Iterator[paramiko.SSHClient]:
        ip, port = split_host_port(host, str(self.settings.port))
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kwargs = {
            "hostname": ip,
            "port": int(port),
            "username": self.settings.user,
            "timeout": self.settings.connect_timeout,
        }
        if self.settings.key_path and os.path.exists(os.path.expanduser(self.settings.key_path)):
            kwargs["key_filename"] = os.path.expanduser(self.settings.key_path)
        if self.settings.password:
            kwargs["password"] = self.settings.password
        try:
            client.connect(**kwargs)
        except (SSHException, NoValidConnectionsError, OSError) as e:
            client.close()
            raise RemoteExecutionError(host, operation, f"connect failed: {e}") from e
        try:
            yield client
        finally:
            client.close()

    # ── Blocking implementations ──────────────────────────────────

    def _run(self, host: str, command: str) -> str:
        with self._connect(host, "run") as client:
            try:
                _, stdout, stderr = client.exec_command(command, timeout=self.settings.command_timeout)
                exit_status = stdout.channel.recv_exit_status()
                out = stdout.read().decode(errors="replace")
                err = stderr.read().decode(errors="replace")
            except (SSHException, OSError) as e:
                raise RemoteExecutionError(host, "run", f"{command}: {e}") from e
        if exit_status != 0:
            raise RemoteExecutionError(
                host, "run", f"{command}: exit status {exit_status}: {err.strip() or out.strip()}"
            )
        logger.debug("remote_command_done", host=host, command=command)
        return out

    def _put(self, host: str, local_path: str, remote_path: str) -> None:
        if not os.path.exists(local_path):
            raise RemoteExecutionError(host, "copy", f"local file not found: {local_path}")
        with self._connect(host, "copy") as client:
            try:
                remote_dir = os.path.dirname(remote_path)
                if remote_dir:
                    _, stdout, _ = client.exec_command(f"mkdir -p {shlex.quote(remote_dir)}")
                    stdout.channel.recv_exit_status()
                sftp = client.open_sftp()
                try:
                    sftp.put(local_path, remote_path)
                finally:
                    sftp.close()
            except (SSHException, OSError) as e:
                raise RemoteExecutionError(host, "copy", f"{local_path} -> {remote_path}: {e}") from e

    def _get(self, host: str, remote_path: str, local_path: str) -> None:
        local_dir = os.path.dirname(local_path)
        if local_dir:
            os.makedirs(local_dir, exist_ok=True)
        with self._connect(host, "fetch") as client:
            try:
                sftp = client.open_sftp()
                try:
                    sftp.get(remote_path, local_path)
                finally:
                    sftp.close()
            except (SSHException, OSError) as e:
                raise RemoteExecutionError(host, "fetch", f"{remote_path} -> {local_path}: {e}") from e

    def _ping(self, host: str) -> None:
        with self._connect(host, "ping"):
            pass

    # ── RemoteExecutor ────────────────────────────────────────────

    async def copy(self, host: str, local_path: str, remote_path: str) -> None:
        await asyncio.to_thread(self._put, host, local_path, remote_path)

    async def fetch(self, host: str, remote_path: str, local_path: str) -> None:
        await asyncio.to_thread(self._get, host, remote_path, local_path)

    async def cmd(self, host: str, *commands: str) -> None:
        for command in commands:
            await logger.ainfo("remote_command", host=host, command=command)
            await asyncio.to_thread(self._run, host, command)

    async def cmd_output(self, host: str, command: str) -> str:
        return await asyncio.to_thread(self._run, host, command)

    async def ping(self, host: str) -> None:
        await asyncio.to_thread(self._ping, host)
