"""Shared fixtures: an in-memory RemoteExecutor and sample clusters."""

import asyncio
from pathlib import Path
from typing import Optional

import pytest

from clusterops.cluster.models import Cluster, HostGroup, Provider
from clusterops.config import Settings
from clusterops.errors import RemoteExecutionError
from clusterops.remote.base import RemoteExecutor


class FakeExecutor(RemoteExecutor):
    """Records every remote call and fails on request.

    Args:
        fail_hosts: Hosts whose ``cmd`` calls raise RemoteExecutionError.
        fail_on: Only fail commands containing this substring (default: all).
        overlay_mounts: Paths reported as overlay mounts on every host.
        unreachable: Hosts whose ``ping`` always fails.
    """

    def __init__(
        self,
        fail_hosts: Optional[set[str]] = None,
        fail_on: str = "",
        overlay_mounts: Optional[set[str]] = None,
        unreachable: Optional[set[str]] = None,
    ) -> None:
        self.calls: list[tuple[str, str, tuple[str, ...]]] = []
        self.fail_hosts = fail_hosts or set()
        self.fail_on = fail_on
        self.overlay_mounts = overlay_mounts or set()
        self.unreachable = unreachable or set()
        self.ping_attempts = 0

    async def copy(self, host: str, local_path: str, remote_path: str) -> None:
        self.calls.append(("copy", host, (local_path, remote_path)))

    async def fetch(self, host: str, remote_path: str, local_path: str) -> None:
        self.calls.append(("fetch", host, (remote_path, local_path)))
        path = Path(local_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"fetched {remote_path} from {host}\n")

    async def cmd(self, host: str, *commands: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("cmd", host, commands))
        if host in self.fail_hosts and any(self.fail_on in c for c in commands):
            raise RemoteExecutionError(host, "run", "exit status 1")

    async def cmd_output(self, host: str, command: str) -> str:
        self.calls.append(("cmd_output", host, (command,)))
        lines = ["proc /proc proc rw 0 0", "/dev/sda1 / ext4 rw 0 0"]
        lines += [f"overlay {path} overlay rw,lowerdir={path} 0 0" for path in sorted(self.overlay_mounts)]
        return "\n".join(lines) + "\n"

    async def ping(self, host: str) -> None:
        self.ping_attempts += 1
        if host in self.unreachable:
            raise RemoteExecutionError(host, "ping", "connection refused")

    # ── helpers ──────────────────────────────────────────────────────

    def commands(self, host: Optional[str] = None) -> list[str]:
        """Flattened command strings, optionally only those run on *host*."""
        return [
            c
            for op, h, args in self.calls
            if op == "cmd" and (host is None or h == host)
            for c in args
        ]


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings whose rootfs lives under the test's tmp dir."""
    return Settings(data_root=str(tmp_path / "data"))


@pytest.fixture
def rootfs(settings: Settings) -> Path:
    path = Path(settings.rootfs("my-cluster"))
    (path / "etc").mkdir(parents=True)
    return path


@pytest.fixture
def baremetal_cluster() -> Cluster:
    return Cluster(
        name="my-cluster",
        provider=Provider.BAREMETAL,
        masters=HostGroup(ip_list=["10.0.0.1"]),
        nodes=HostGroup(ip_list=["10.0.0.2", "10.0.0.3"]),
    )


@pytest.fixture
def cloud_cluster() -> Cluster:
    return Cluster(
        name="my-cluster",
        provider=Provider.CLOUD,
        masters=HostGroup(count="3"),
        nodes=HostGroup(count="5"),
    )


@pytest.fixture
def make_executor():
    """Factory for FakeExecutors with failure/mount options."""
    return FakeExecutor
