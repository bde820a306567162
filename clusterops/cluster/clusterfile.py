"""Read and write Clusterfile YAML documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from clusterops.cluster.models import Cluster, HostGroup, Provider
from clusterops.errors import ClusterOpsError

logger = structlog.get_logger(__name__)

CLUSTER_KIND = "Cluster"


def _group_from_spec(raw: Any) -> HostGroup:
    if not raw:
        return HostGroup()
    ip_list = [str(ip) for ip in raw.get("ipList") or []]
    count = raw.get("count")
    return HostGroup(ip_list=ip_list, count="" if count is None else str(count))


def _group_to_spec(group: HostGroup) -> dict[str, Any]:
    spec: dict[str, Any] = {}
    if group.count:
        spec["count"] = group.count
    if group.ip_list:
        spec["ipList"] = list(group.ip_list)
    return spec


def cluster_from_document(doc: dict[str, Any]) -> Cluster:
    """Build a `Cluster` from one decoded ``kind: Cluster`` document."""
    spec = dict(doc.get("spec") or {})
    provider = spec.pop("provider", Provider.BAREMETAL.value)
    try:
        provider = Provider(provider)
    except ValueError as e:
        raise ClusterOpsError(f"unknown Clusterfile provider {provider!r}") from e
    masters = _group_from_spec(spec.pop("masters", None))
    nodes = _group_from_spec(spec.pop("nodes", None))
    return Cluster(
        name=(doc.get("metadata") or {}).get("name", Cluster().name),
        provider=provider,
        masters=masters,
        nodes=nodes,
        api_version=doc.get("apiVersion", Cluster().api_version),
        spec_extra=spec,
    )


def cluster_to_document(cluster: Cluster) -> dict[str, Any]:
    spec: dict[str, Any] = {"provider": cluster.provider.value}
    spec.update(cluster.spec_extra)
    spec["masters"] = _group_to_spec(cluster.masters)
    spec["nodes"] = _group_to_spec(cluster.nodes)
    return {
        "apiVersion": cluster.api_version,
        "kind": CLUSTER_KIND,
        "metadata": {"name": cluster.name},
        "spec": spec,
    }


def load_clusterfile(path: str | Path) -> Cluster:
    """Load the first ``kind: Cluster`` document from *path*.

    Raises:
        FileNotFoundError: If the Clusterfile does not exist.
        ClusterOpsError: If the file holds no Cluster document.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Clusterfile not found: {path}")

    with open(path) as f:
        docs = [d for d in yaml.safe_load_all(f) if d]

    for doc in docs:
        if isinstance(doc, dict) and doc.get("kind") == CLUSTER_KIND:
            cluster = cluster_from_document(doc)
            logger.debug("clusterfile_loaded", path=str(path), cluster=cluster.name)
            return cluster
    raise ClusterOpsError(f"no {CLUSTER_KIND} document in {path}")


def save_clusterfile(path: str | Path, cluster: Cluster) -> None:
    """Write *cluster* back to *path* as a single YAML document."""
    path = Path(path)
    with open(path, "w") as f:
        yaml.safe_dump(cluster_to_document(cluster), f, default_flow_style=False, sort_keys=False)
    logger.debug("clusterfile_saved", path=str(path), cluster=cluster.name)
