"""Topology model: who is a member of the cluster.

A `Cluster` holds two `HostGroup`s (masters and nodes). Bare-metal clusters
list their members explicitly by IP; cloud and container clusters only carry
a desired size and let the provider allocate machines.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from clusterops.common import DEFAULT_CLUSTER_NAME
from clusterops.errors import TopologyError


class Provider(str, Enum):
    """Where the cluster's machines come from.

    Attributes:
        BAREMETAL: Machines supplied by the operator; membership is an IP list.
        CLOUD: Elastic cloud machines; membership is a count.
        CONTAINER: Container-backed machines; membership is a count.
    """

    BAREMETAL = "BAREMETAL"
    CLOUD = "ALI_CLOUD"
    CONTAINER = "CONTAINER"

    @property
    def uses_ip_list(self) -> bool:
        return self is Provider.BAREMETAL


class HostGroup(BaseModel):
    """Membership of one role (masters or nodes).

    Attributes:
        ip_list: Explicit member IPs, authoritative for bare metal.
        count: Desired size in Clusterfile string form, authoritative for
            elastic providers.
    """

    model_config = ConfigDict(populate_by_name=True)

    ip_list: list[str] = Field(default_factory=list, alias="ipList")
    count: str = Field(default="")

    def size(self) -> int:
        if self.ip_list:
            return len(self.ip_list)
        return int(self.count) if self.count.isdigit() else 0


class ScaleRequest(BaseModel):
    """Delta applied to a cluster by a join or delete.

    Each field is a comma separated IP list for bare metal or a non-negative
    integer for elastic providers. An empty string leaves that group alone.
    """

    masters: str = Field(default="", description="Masters delta")
    nodes: str = Field(default="", description="Nodes delta")

    def is_empty(self) -> bool:
        return not self.masters and not self.nodes


class Cluster(BaseModel):
    """Root aggregate of the topology model.

    Attributes:
        name: Cluster name, also the rootfs directory name on every host.
        provider: Machine provider, decides which HostGroup field is used.
        masters: Control-plane hosts; master-0 hosts the registry by default.
        nodes: Worker hosts.
        api_version: Clusterfile apiVersion, kept for round-tripping.
        spec_extra: Clusterfile spec keys this package does not interpret.
    """

    name: str = Field(default=DEFAULT_CLUSTER_NAME)
    provider: Provider = Field(default=Provider.BAREMETAL)
    masters: HostGroup = Field(default_factory=HostGroup)
    nodes: HostGroup = Field(default_factory=HostGroup)
    api_version: str = Field(default="sealer.aliyun.com/v1alpha1")
    spec_extra: dict[str, Any] = Field(default_factory=dict)

    def validate_topology(self) -> None:
        """Raise `TopologyError` if a group uses the wrong representation."""
        for role, group in (("masters", self.masters), ("nodes", self.nodes)):
            if self.provider.uses_ip_list and group.count:
                raise TopologyError(
                    f"{role}: provider {self.provider.value} expects an ipList, got count {group.count!r}"
                )
            if not self.provider.uses_ip_list and group.ip_list:
                raise TopologyError(
                    f"{role}: provider {self.provider.value} expects a count, got ipList {group.ip_list}"
                )

    @property
    def master_ips(self) -> list[str]:
        return list(self.masters.ip_list)

    @property
    def node_ips(self) -> list[str]:
        return list(self.nodes.ip_list)

    @property
    def master0_ip(self) -> str:
        if not self.masters.ip_list:
            raise TopologyError(f"cluster {self.name} has no master IPs")
        return self.masters.ip_list[0]
