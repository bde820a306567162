"""Topology model and Clusterfile I/O."""

from clusterops.cluster.clusterfile import load_clusterfile, save_clusterfile
from clusterops.cluster.models import Cluster, HostGroup, Provider, ScaleRequest

__all__ = [
    "Cluster",
    "HostGroup",
    "Provider",
    "ScaleRequest",
    "load_clusterfile",
    "save_clusterfile",
]
