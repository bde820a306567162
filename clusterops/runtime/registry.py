"""Private registry lifecycle on the registry host.

The registry stores its data inside the cluster image rootfs. The rootfs
may be read-only or shared with the image itself, so before starting the
registry we lay an overlay over it: the existing rootfs is the lower layer and
two scratch directories form the writable upper/work layers. Tearing the
registry down removes the container, the overlay and the scratch layers.

`RegistryManager.apply_registry` recreates mount state destructively and is
only meant for cluster bring-up and join flows. It must not run concurrently
with itself against the same registry host.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Optional

import bcrypt
import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from clusterops.cluster.models import Cluster
from clusterops.common import REMOTE_ADD_ETC_HOST
from clusterops.config import Settings
from clusterops.errors import RegistryError
from clusterops.remote.base import RemoteExecutor, split_host_port

logger = structlog.get_logger(__name__)

REGISTRY_NAME = "sealer-registry"
REGISTRY_MOUNT_UPPER = "/var/lib/sealer/tmp/upper"
REGISTRY_MOUNT_WORK = "/var/lib/sealer/tmp/work"
SEA_HUB = "sea.hub"
DEFAULT_REGISTRY_PORT = "5000"
DEFAULT_HTPASSWD_FILE = "registry_htpasswd"
REGISTRY_CONFIG_FILE = "registry.yml"
DOCKER_LOGIN_CMD = "docker login {address} -u {username} -p {password}"
# bcrypt cost factor for htpasswd entries
HTPASSWD_ROUNDS = 10


class RegistryConfig(BaseModel):
    """Where the registry runs and how clients authenticate to it.

    Attributes:
        ip: Registry host, ``"ip"`` or ``"ip:ssh_port"``.
        domain: Alias other hosts resolve the registry by.
        port: Registry listen port.
        username: Basic-auth user; auth is on only with a password too.
        password: Basic-auth password in plaintext.
    """

    ip: str = Field(default="")
    domain: str = Field(default=SEA_HUB)
    port: str = Field(default=DEFAULT_REGISTRY_PORT)
    username: str = Field(default="")
    password: str = Field(default="")

    @property
    def auth_enabled(self) -> bool:
        return bool(self.username and self.password)

    @property
    def host_ip(self) -> str:
        """Registry IP without any SSH port."""
        return split_host_port(self.ip)[0]

    @property
    def address(self) -> str:
        return f"{self.domain}:{self.port}"

    def host_entry(self) -> str:
        """The ``/etc/hosts`` line that resolves the registry domain."""
        return f"{self.host_ip} {self.domain}"

    def generate_htpasswd(self) -> str:
        """Return a ``user:bcrypt-hash`` credential line.

        Raises:
            RegistryError: If username or password is empty.
        """
        if not self.auth_enabled:
            raise RegistryError("generate htpasswd failed: registry username or password is empty")
        pwd_hash = bcrypt.hashpw(self.password.encode(), bcrypt.gensalt(rounds=HTPASSWD_ROUNDS))
        return f"{self.username}:{pwd_hash.decode()}"


def resolve_registry_config(rootfs: str | Path, default_registry: str) -> RegistryConfig:
    """Merge ``<rootfs>/etc/registry.yml`` over the built-in defaults.

    Precedence is per field: a non-empty value from the file wins, anything
    else falls back to the default (``default_registry``, ``sea.hub``,
    ``5000``). A missing or unreadable file yields the defaults.
    """
    defaults = RegistryConfig(ip=default_registry)
    config_path = Path(rootfs) / "etc" / REGISTRY_CONFIG_FILE
    if not config_path.exists():
        logger.debug("registry_config_default", path=str(config_path))
        return defaults

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError("registry config must be a mapping")
        overrides = RegistryConfig.model_validate({k: str(v) for k, v in raw.items() if v is not None})
    except (OSError, yaml.YAMLError, ValueError, ValidationError) as e:
        logger.error("registry_config_load_failed", path=str(config_path), error=str(e))
        return defaults

    fields_set = {k for k in overrides.model_fields_set if getattr(overrides, k)}
    config = defaults.model_copy(update={k: getattr(overrides, k) for k in fields_set})
    if "ip" in fields_set:
        ip, port = split_host_port(config.ip)
        config.ip = f"{ip}:{port}"
    logger.debug("registry_config_loaded", ip=config.ip, domain=config.domain, port=config.port)
    return config


class RegistryManager:
    """Provision and tear down the cluster's private registry.

    Args:
        cluster: Cluster whose master-0 resolves the registry by domain.
        executor: Remote-execution port.
        settings: Supplies the rootfs location.
    """

    def __init__(self, cluster: Cluster, executor: RemoteExecutor, settings: Optional[Settings] = None) -> None:
        self.cluster = cluster
        self.executor = executor
        self.settings = settings or Settings()

    @property
    def rootfs(self) -> str:
        return self.settings.rootfs(self.cluster.name)

    def config(self) -> RegistryConfig:
        return resolve_registry_config(self.rootfs, self.cluster.master0_ip)

    def host_entry(self) -> str:
        return self.config().host_entry()

    async def apply_registry(self) -> RegistryConfig:
        """Mount the overlay, write credentials, start the registry, wire master-0.

        Any failing step aborts the rest; nothing is rolled back.

        Returns:
            The registry config that was applied.
        """
        cf = self.config()
        master0 = self.cluster.master0_ip
        rootfs = self.rootfs
        await logger.ainfo("registry_apply_started", host=cf.ip, domain=cf.domain, port=cf.port)

        commands = []
        if await self.executor.is_overlay_mount(cf.ip, rootfs):
            commands.append(f"umount {rootfs}")
        commands.append(
            f"rm -rf {REGISTRY_MOUNT_UPPER} {REGISTRY_MOUNT_WORK} && "
            f"mkdir -p {REGISTRY_MOUNT_UPPER} {REGISTRY_MOUNT_WORK}"
        )
        commands.append(
            f"mount -t overlay overlay -o lowerdir={rootfs},upperdir={REGISTRY_MOUNT_UPPER},"
            f"workdir={REGISTRY_MOUNT_WORK} {rootfs}"
        )
        await self.executor.cmd(cf.ip, *commands)

        if cf.auth_enabled:
            htpasswd_file = Path(rootfs) / "etc" / DEFAULT_HTPASSWD_FILE
            await self.executor.cmd(cf.ip, f"echo {shlex.quote(cf.generate_htpasswd())} >> {htpasswd_file}")

        await self.executor.cmd(cf.ip, f"cd {rootfs}/scripts && sh init-registry.sh {cf.port} {rootfs}/registry")
        await self.executor.cmd(master0, REMOTE_ADD_ETC_HOST.format(entry=cf.host_entry()))

        if cf.auth_enabled:
            await self.executor.cmd(
                master0,
                DOCKER_LOGIN_CMD.format(
                    address=cf.address,
                    username=shlex.quote(cf.username),
                    password=shlex.quote(cf.password),
                ),
            )

        await logger.ainfo("registry_applied", host=cf.ip, address=cf.address, auth=cf.auth_enabled)
        return cf

    async def delete_registry(self) -> None:
        """Unmount the overlay, remove the registry container and scratch layers."""
        cf = self.config()
        rootfs = self.rootfs

        commands = []
        if await self.executor.is_overlay_mount(cf.ip, rootfs):
            commands.append(f"umount {rootfs}")
        commands.append(f"if docker inspect {REGISTRY_NAME};then docker rm -f {REGISTRY_NAME};fi")
        commands.append(f"rm -rf {REGISTRY_MOUNT_UPPER} {REGISTRY_MOUNT_WORK}")
        await self.executor.cmd(cf.ip, *commands)
        await logger.ainfo("registry_deleted", host=cf.ip)
