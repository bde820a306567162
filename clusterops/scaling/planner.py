"""Scaling planner: turns a join/delete request into new cluster membership.

The planner is provider-keyed. Bare-metal clusters are scaled by editing
explicit IP lists; cloud and container clusters are scaled by adjusting a
desired count that the provider later reconciles. Cloud and container share
one handler today but stay separate `Provider` members so they can diverge.

Every request is shape-checked for both groups before anything is written.
"""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from clusterops.cluster.clusterfile import load_clusterfile, save_clusterfile
from clusterops.cluster.models import Cluster, HostGroup, Provider, ScaleRequest
from clusterops.common import DELETE_SUBCMD, JOIN_SUBCMD
from clusterops.errors import (
    BadRequestShapeError,
    NoScaleTargetError,
    ScaleBelowFloorError,
    ScaleValidationError,
    UnknownProviderError,
)

logger = structlog.get_logger(__name__)


# ── Request parsing ───────────────────────────────────────────────────

def expand_ip_range(entry: str) -> list[str]:
    """Expand ``"A-B"`` into every IPv4 address from A to B inclusive.

    Entries without a dash are returned unchanged as a single-item list.
    """
    if "-" not in entry:
        return [entry]
    start_s, _, end_s = entry.partition("-")
    try:
        start = ipaddress.IPv4Address(start_s.strip())
        end = ipaddress.IPv4Address(end_s.strip())
    except ipaddress.AddressValueError as e:
        raise BadRequestShapeError(f"invalid IP range {entry!r}: {e}") from e
    if start > end:
        raise BadRequestShapeError(f"invalid IP range {entry!r}: start is after end")
    return [str(ipaddress.IPv4Address(i)) for i in range(int(start), int(end) + 1)]


def pre_process_ip_list(value: str) -> str:
    """Trim entries, drop empty segments and expand ranges in a comma list."""
    if not value:
        return value
    expanded: list[str] = []
    for entry in value.split(","):
        entry = entry.strip()
        if entry:
            expanded.extend(expand_ip_range(entry))
    return ",".join(expanded)


def is_ip_list(value: str) -> bool:
    if not value:
        return False
    for entry in value.split(","):
        try:
            ipaddress.ip_address(entry.strip())
        except ValueError:
            return False
    return True


def is_number(value: str) -> bool:
    return value.isascii() and value.isdigit()


def str_to_int(value: str) -> int:
    """Parse a stored count; a malformed value degrades to 0 and is logged."""
    try:
        return int(value)
    except ValueError as e:
        logger.error("count_conversion_failed", value=value, error=str(e))
        return 0


# ── List normalisation ────────────────────────────────────────────────

def remove_ip_list_duplicates_and_empty(ip_list: list[str]) -> list[str]:
    """Trim entries, drop empties and drop duplicates that end up adjacent.

    Only neighbouring duplicates collapse: ``[a, a, b]`` becomes ``[a, b]``
    while ``[a, b, a]`` is kept as is.
    """
    result: list[str] = []
    for ip in ip_list:
        ip = ip.strip()
        if not ip:
            continue
        if result and result[-1] == ip:
            continue
        result.append(ip)
    return result


def filter_ip_list(cluster_ips: list[str], to_delete: list[str]) -> list[str]:
    """Return *cluster_ips* without any IP found in *to_delete* (exact match)."""
    doomed = {ip.strip() for ip in to_delete}
    return [ip for ip in cluster_ips if ip.strip() not in doomed]


# ── Provider handlers ─────────────────────────────────────────────────

class ScaleHandler(ABC):
    """Applies a join or delete to the host groups of one provider kind."""

    @abstractmethod
    def join(self, cluster: Cluster, request: ScaleRequest) -> None:
        ...

    @abstractmethod
    def delete(self, cluster: Cluster, request: ScaleRequest) -> None:
        ...


class IPListScaler(ScaleHandler):
    """Bare-metal scaling over explicit IP lists."""

    def _validate(self, request: ScaleRequest) -> ScaleRequest:
        request = ScaleRequest(
            masters=pre_process_ip_list(request.masters),
            nodes=pre_process_ip_list(request.nodes),
        )
        for role, value in (("masters", request.masters), ("nodes", request.nodes)):
            if value and not is_ip_list(value):
                raise BadRequestShapeError(
                    f"{role}={value!r}: provider {Provider.BAREMETAL.value} requires a comma separated IP list"
                )
        return request

    def join(self, cluster: Cluster, request: ScaleRequest) -> None:
        request = self._validate(request)
        for group, value in ((cluster.masters, request.masters), (cluster.nodes, request.nodes)):
            if value:
                group.ip_list = remove_ip_list_duplicates_and_empty(group.ip_list + value.split(","))

    def delete(self, cluster: Cluster, request: ScaleRequest) -> None:
        request = self._validate(request)
        for group, value in ((cluster.masters, request.masters), (cluster.nodes, request.nodes)):
            if value:
                group.ip_list = remove_ip_list_duplicates_and_empty(
                    filter_ip_list(group.ip_list, value.split(","))
                )


class CountScaler(ScaleHandler):
    """Elastic scaling over desired counts (cloud and container providers)."""

    def _validate(self, cluster: Cluster, request: ScaleRequest) -> None:
        for role, value in (("masters", request.masters), ("nodes", request.nodes)):
            if value and not is_number(value):
                raise BadRequestShapeError(
                    f"{role}={value!r}: provider {cluster.provider.value} requires a non-negative number of hosts"
                )

    def join(self, cluster: Cluster, request: ScaleRequest) -> None:
        self._validate(cluster, request)
        for group, value in ((cluster.masters, request.masters), (cluster.nodes, request.nodes)):
            if value:
                group.count = str(str_to_int(group.count) + int(value))

    def delete(self, cluster: Cluster, request: ScaleRequest) -> None:
        self._validate(cluster, request)
        # Masters commit before nodes are checked; each group is independent.
        for role, group, value in (
            ("masters", cluster.masters, request.masters),
            ("nodes", cluster.nodes, request.nodes),
        ):
            if value:
                self._shrink(role, group, int(value))

    @staticmethod
    def _shrink(role: str, group: HostGroup, delta: int) -> None:
        current = str_to_int(group.count)
        remaining = current - delta
        if remaining <= 0:
            raise ScaleBelowFloorError(role, current, delta)
        group.count = str(remaining)


_count_scaler = CountScaler()

_HANDLERS: dict[Provider, ScaleHandler] = {
    Provider.BAREMETAL: IPListScaler(),
    Provider.CLOUD: _count_scaler,
    Provider.CONTAINER: _count_scaler,
}


def _handler_for(cluster: Cluster, request: ScaleRequest) -> ScaleHandler:
    if request.is_empty():
        raise NoScaleTargetError("the node or master parameter was not committed")
    handler = _HANDLERS.get(cluster.provider)
    if handler is None:
        raise UnknownProviderError(f"Clusterfile provider {cluster.provider!r} is not supported")
    cluster.validate_topology()
    return handler


# ── Public API ────────────────────────────────────────────────────────

def join(cluster: Cluster, request: ScaleRequest) -> None:
    """Add the requested masters/nodes to *cluster* in place."""
    _handler_for(cluster, request).join(cluster, request)
    logger.info(
        "cluster_scaled",
        action=JOIN_SUBCMD,
        cluster=cluster.name,
        provider=cluster.provider.value,
        masters=cluster.masters.size(),
        nodes=cluster.nodes.size(),
    )


def delete(cluster: Cluster, request: ScaleRequest) -> None:
    """Remove the requested masters/nodes from *cluster* in place."""
    _handler_for(cluster, request).delete(cluster, request)
    logger.info(
        "cluster_scaled",
        action=DELETE_SUBCMD,
        cluster=cluster.name,
        provider=cluster.provider.value,
        masters=cluster.masters.size(),
        nodes=cluster.nodes.size(),
    )


def scale_from_args(clusterfile: str | Path, request: ScaleRequest, action: str) -> Cluster:
    """Load a Clusterfile, join or delete hosts, and write it back.

    The file is only rewritten when the scale succeeds.

    Args:
        clusterfile: Path to the Clusterfile.
        request: Masters/nodes delta from the command line.
        action: ``"join"`` or ``"delete"``.

    Returns:
        The updated Cluster.
    """
    if request.is_empty():
        raise NoScaleTargetError("the node or master parameter was not committed")

    cluster = load_clusterfile(clusterfile)
    if action == JOIN_SUBCMD:
        join(cluster, request)
    elif action == DELETE_SUBCMD:
        delete(cluster, request)
    else:
        raise ScaleValidationError(f"unknown scale action {action!r}")

    save_clusterfile(clusterfile, cluster)
    return cluster
