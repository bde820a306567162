"""Remote execution port and its SSH adapter."""

from clusterops.remote.base import RemoteExecutor, split_host_port, wait_ssh_ready
from clusterops.remote.ssh import SSHExecutor

__all__ = ["RemoteExecutor", "SSHExecutor", "split_host_port", "wait_ssh_ready"]
