"""Exception hierarchy for clusterops.

Validation errors are raised before any host group is mutated, transport
errors carry the host and operation they failed on, and registry errors are
the terminal failure surfaced by a cluster-wide reset.
"""

from __future__ import annotations

from typing import Any, Optional


class ClusterOpsError(Exception):
    """Base class for every error raised by clusterops."""


# ── Validation ────────────────────────────────────────────────────────

class ScaleValidationError(ClusterOpsError):
    """A scale request was rejected before touching the topology."""


class BadRequestShapeError(ScaleValidationError):
    """The request shape does not match the provider (IP list vs. count)."""


class ScaleBelowFloorError(ScaleValidationError):
    """A delete would take an elastic host group to zero or below."""

    def __init__(self, group: str, current: int, delta: int) -> None:
        self.group = group
        self.current = current
        self.delta = delta
        super().__init__(
            f"cannot delete {delta} {group} from a group of {current}: "
            f"the number removed must be less than the number defined in the Clusterfile"
        )


class NoScaleTargetError(ScaleValidationError):
    """Neither masters nor nodes were given."""


class UnknownProviderError(ScaleValidationError):
    """The Clusterfile provider has no scaling handler."""


class TopologyError(ClusterOpsError):
    """A host group mixes IP-list and count membership for its provider."""


# ── Transport ─────────────────────────────────────────────────────────

class RemoteExecutionError(ClusterOpsError):
    """A remote copy, fetch, or command failed on a specific host."""

    def __init__(self, host: str, operation: str, detail: str) -> None:
        self.host = host
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} on {host} failed: {detail}")


# ── Registry ──────────────────────────────────────────────────────────

class RegistryError(ClusterOpsError):
    """Provisioning or tearing down the private registry failed.

    When raised by a cluster reset, ``report`` carries the per-host outcome
    of the phases that ran before the registry teardown.
    """

    def __init__(self, message: str, report: Optional[Any] = None) -> None:
        self.report = report
        super().__init__(message)
