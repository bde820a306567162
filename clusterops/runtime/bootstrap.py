"""Master-0 bootstrap push and kubeconfig retrieval.

Cloud and container clusters are driven from master-0 itself: once the
provider hands back machines, the local binary, the Clusterfile and the
registry login are pushed to master-0 and the rest of the apply runs there.
Afterwards the admin kubeconfig and kubectl are fetched back so the local
machine can query the new cluster.
"""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

import structlog

from clusterops.common import CHMOD_CMD, KUBE_ADMIN_CONF, MASTER0_READY_ATTEMPTS
from clusterops.config import Settings
from clusterops.errors import RemoteExecutionError
from clusterops.remote.base import RemoteExecutor, wait_ssh_ready

logger = structlog.get_logger(__name__)


def local_binary_path(settings: Settings) -> str:
    """Binary to push to master-0: the configured one, else this CLI."""
    if settings.local_binary:
        return settings.local_binary
    return shutil.which("clusterops") or os.path.abspath(sys.argv[0])


def append_local_file(path: str | Path, line: str) -> None:
    path = Path(path)
    existing = path.read_text() if path.exists() else ""
    with open(path, "a") as f:
        if existing and not existing.endswith("\n"):
            f.write("\n")
        f.write(line + "\n")


async def pre_init_master0(executor: RemoteExecutor, host: str, settings: Settings) -> None:
    """Wait for *host* to accept SSH, then push the binary, Clusterfile and registry auth.

    Raises:
        RemoteExecutionError: If the host never becomes ready or a transfer fails.
    """
    try:
        await wait_ssh_ready(executor, MASTER0_READY_ATTEMPTS, host)
    except RemoteExecutionError as e:
        raise RemoteExecutionError(host, "apply cloud cluster", e.detail) from e

    binary = local_binary_path(settings)
    await executor.copy(host, binary, settings.remote_binary)
    await executor.cmd(host, CHMOD_CMD.format(path=settings.remote_binary))
    await logger.ainfo("binary_sent", host=host, path=settings.remote_binary)

    await executor.copy(host, settings.tmp_clusterfile, settings.tmp_clusterfile)
    await logger.ainfo("clusterfile_sent", host=host, path=settings.tmp_clusterfile)

    auth_file = settings.registry_auth_file
    if os.path.exists(auth_file):
        remote_auth = f"{settings.remote_registry_auth_dir}/{os.path.basename(auth_file)}"
        await executor.copy(host, auth_file, remote_auth)
        await logger.ainfo("registry_auth_sent", host=host, path=remote_auth)
    else:
        await logger.awarning(
            "registry_auth_missing",
            path=auth_file,
            hint="if the image registry is private, please login first",
        )


async def fetch_kubeconfig(executor: RemoteExecutor, host: str, settings: Settings) -> None:
    """Fetch the admin kubeconfig and kubectl from *host* and alias the API server locally."""
    kubeconfig = os.path.join(settings.kubeconfig_dir, "config")
    await executor.fetch(host, KUBE_ADMIN_CONF, kubeconfig)
    append_local_file(settings.etc_hosts, f"{host} {settings.api_server_domain}")
    await executor.fetch(host, settings.kubectl_path, settings.kubectl_path)
    os.chmod(settings.kubectl_path, 0o755)
    await logger.ainfo("kubeconfig_fetched", host=host, kubeconfig=kubeconfig)
