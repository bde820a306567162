"""Remote-side lifecycle: node reset, private registry, master-0 bootstrap."""

from clusterops.runtime.bootstrap import fetch_kubeconfig, pre_init_master0
from clusterops.runtime.registry import RegistryConfig, RegistryManager, resolve_registry_config
from clusterops.runtime.reset import HostFailure, NodeResetter, ResetReport

__all__ = [
    "HostFailure",
    "NodeResetter",
    "RegistryConfig",
    "RegistryManager",
    "ResetReport",
    "fetch_kubeconfig",
    "pre_init_master0",
    "resolve_registry_config",
]
