"""Unit tests for the master-0 bootstrap push and kubeconfig fetch."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from clusterops.config import Settings
from clusterops.errors import RemoteExecutionError
from clusterops.runtime.bootstrap import append_local_file, fetch_kubeconfig, pre_init_master0


@pytest.fixture
def boot_settings(tmp_path: Path) -> Settings:
    binary = tmp_path / "clusterops-bin"
    binary.write_text("#!/bin/sh\n")
    return Settings(
        data_root=str(tmp_path / "data"),
        local_binary=str(binary),
        tmp_clusterfile=str(tmp_path / "Clusterfile"),
        registry_auth_file=str(tmp_path / "docker" / "config.json"),
        kubeconfig_dir=str(tmp_path / "kube"),
        kubectl_path=str(tmp_path / "bin" / "kubectl"),
        etc_hosts=str(tmp_path / "hosts"),
    )


class TestPreInitMaster0:
    """Test pushing bootstrap artifacts to master-0."""

    @pytest.mark.asyncio
    async def test_push_without_registry_auth(self, executor, boot_settings: Settings) -> None:
        await pre_init_master0(executor, "10.0.0.1", boot_settings)

        copies = [args for op, _, args in executor.calls if op == "copy"]
        assert copies == [
            (boot_settings.local_binary, "/usr/local/bin/sealer"),
            (boot_settings.tmp_clusterfile, boot_settings.tmp_clusterfile),
        ]
        assert executor.commands("10.0.0.1") == ["chmod +x /usr/local/bin/sealer"]

    @pytest.mark.asyncio
    async def test_push_with_registry_auth(self, executor, boot_settings: Settings) -> None:
        auth = Path(boot_settings.registry_auth_file)
        auth.parent.mkdir()
        auth.write_text("{}")

        await pre_init_master0(executor, "10.0.0.1", boot_settings)

        copies = [args for op, _, args in executor.calls if op == "copy"]
        assert copies[-1] == (str(auth), "/root/.docker/config.json")

    @pytest.mark.asyncio
    async def test_unreachable_master0(self, make_executor, boot_settings: Settings) -> None:
        """Test nothing is pushed when master-0 never becomes ready."""
        executor = make_executor(unreachable={"10.0.0.1"})

        with patch("clusterops.remote.base.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RemoteExecutionError):
                await pre_init_master0(executor, "10.0.0.1", boot_settings)

        assert executor.ping_attempts == 6
        assert not [c for c in executor.calls if c[0] == "copy"]


class TestFetchKubeconfig:
    """Test pulling kubeconfig and kubectl back from master-0."""

    @pytest.mark.asyncio
    async def test_fetch(self, executor, boot_settings: Settings) -> None:
        Path(boot_settings.etc_hosts).write_text("127.0.0.1 localhost")

        await fetch_kubeconfig(executor, "10.0.0.1", boot_settings)

        fetches = [args for op, _, args in executor.calls if op == "fetch"]
        assert fetches[0] == ("/etc/kubernetes/admin.conf", str(Path(boot_settings.kubeconfig_dir) / "config"))
        assert fetches[1] == (boot_settings.kubectl_path, boot_settings.kubectl_path)
        assert Path(boot_settings.etc_hosts).read_text() == (
            "127.0.0.1 localhost\n10.0.0.1 apiserver.cluster.local\n"
        )
        assert Path(boot_settings.kubectl_path).stat().st_mode & 0o111


def test_append_local_file_creates(tmp_path: Path) -> None:
    path = tmp_path / "hosts"

    append_local_file(path, "a b")
    append_local_file(path, "c d")

    assert path.read_text() == "a b\nc d\n"
