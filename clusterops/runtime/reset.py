"""Node lifecycle executor: tear down cluster membership on every host.

Reset runs in three strictly ordered phases:

  1. Workers, all at once: one task per node, each with its own connection.
  2. Masters, one at a time in Clusterfile order.
  3. Registry teardown on the registry host.

Node and master resets are best effort. A host that fails is logged and
recorded in the `ResetReport`, and its siblings carry on. Only a failing
registry teardown is raised to the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

import structlog

from clusterops.cluster.models import Cluster
from clusterops.common import REMOTE_CLEAN_MASTER_OR_NODE, REMOTE_REMOVE_ETC_HOST, vlog_flag
from clusterops.config import Settings
from clusterops.errors import ClusterOpsError, RegistryError
from clusterops.remote.base import RemoteExecutor
from clusterops.runtime.registry import RegistryManager

logger = structlog.get_logger(__name__)


@dataclass
class HostFailure:
    """One host whose reset did not complete."""

    host: str
    role: str  # "node" or "master"
    error: str


@dataclass
class ResetReport:
    """Outcome of a cluster reset.

    Attributes:
        attempted: Every host a reset was issued to, in completion order.
        failures: Hosts whose reset failed, with the reason.
        registry_deleted: Whether the final registry teardown succeeded.
    """

    attempted: list[str] = field(default_factory=list)
    failures: list[HostFailure] = field(default_factory=list)
    registry_deleted: bool = False

    @property
    def failed_hosts(self) -> list[str]:
        return [f.host for f in self.failures]

    @property
    def ok(self) -> bool:
        return not self.failures and self.registry_deleted


class NodeResetter:
    """Drives the reset of every node and master, then the registry.

    Args:
        cluster: Cluster whose membership is being torn down.
        executor: Remote-execution port.
        settings: API server domain, kubeadm verbosity and rootfs location.
        registry: Registry manager; built from the other arguments if omitted.
    """

    def __init__(
        self,
        cluster: Cluster,
        executor: RemoteExecutor,
        settings: Optional[Settings] = None,
        registry: Optional[RegistryManager] = None,
    ) -> None:
        self.cluster = cluster
        self.executor = executor
        self.settings = settings or Settings()
        self.registry = registry or RegistryManager(cluster, executor, self.settings)

    async def reset(self) -> ResetReport:
        """Reset workers, then masters, then delete the registry.

        Returns:
            The report of attempted and failed hosts.

        Raises:
            RegistryError: If the registry teardown fails. The partial report
                is attached as ``error.report``.
        """
        report = ResetReport()
        await logger.ainfo(
            "cluster_reset_started",
            cluster=self.cluster.name,
            masters=len(self.cluster.master_ips),
            nodes=len(self.cluster.node_ips),
        )
        await self.reset_nodes(self.cluster.node_ips, report)
        await self.reset_masters(self.cluster.master_ips, report)

        try:
            await self.registry.delete_registry()
        except ClusterOpsError as e:
            await logger.aerror("registry_delete_failed", cluster=self.cluster.name, error=str(e))
            raise RegistryError(f"failed to delete registry: {e}", report=report) from e
        report.registry_deleted = True

        await logger.ainfo(
            "cluster_reset_finished",
            cluster=self.cluster.name,
            attempted=len(report.attempted),
            failed=report.failed_hosts,
        )
        return report

    async def reset_nodes(self, nodes: list[str], report: ResetReport) -> None:
        """Reset all workers concurrently and wait for every one to finish."""
        tasks = [asyncio.create_task(self._reset_best_effort(node, "node", report)) for node in nodes]
        await asyncio.gather(*tasks)

    async def reset_masters(self, masters: list[str], report: ResetReport) -> None:
        """Reset masters one by one, in order."""
        for master in masters:
            await self._reset_best_effort(master, "master", report)

    async def _reset_best_effort(self, host: str, role: str, report: ResetReport) -> None:
        try:
            await self.reset_node(host)
        except Exception as e:
            report.failures.append(HostFailure(host=host, role=role, error=str(e)))
            await logger.aerror(f"delete_{role}_failed", host=host, error=str(e))
        finally:
            report.attempted.append(host)

    async def reset_node(self, host: str) -> None:
        """Clean kubelet/runtime state and drop the cluster's hosts aliases on *host*."""
        await self.executor.cmd(
            host,
            REMOTE_CLEAN_MASTER_OR_NODE.format(vlog=vlog_flag(self.settings.vlog)),
            REMOTE_REMOVE_ETC_HOST.format(pattern=self.settings.api_server_domain),
            REMOTE_REMOVE_ETC_HOST.format(pattern=self.registry.host_entry()),
        )
