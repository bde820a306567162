"""clusterops: node and registry lifecycle for image-bootstrapped clusters.

Subpackages:
  - cluster: topology model (Cluster, HostGroup, Provider) and Clusterfile I/O.
  - scaling: join/delete planning against the topology model.
  - runtime: node reset, private registry lifecycle, master-0 bootstrap push.
  - remote: the remote-execution port and its paramiko adapter.
  - cli: the ``clusterops`` command line.
"""

__version__ = "0.1.0"
