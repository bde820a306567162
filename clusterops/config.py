"""Runtime settings for clusterops.

Settings come from a YAML file (``~/.clusterops/config.yaml`` or
``$CLUSTEROPS_CONFIG``) with ``CLUSTEROPS_*`` environment overrides on top.
A missing or unreadable file falls back to the built-in defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from clusterops import common

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".clusterops" / "config.yaml"

# env var -> (section, key); section None means top level
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "CLUSTEROPS_SSH_USER": ("ssh", "user"),
    "CLUSTEROPS_SSH_PASSWORD": ("ssh", "password"),
    "CLUSTEROPS_SSH_KEY": ("ssh", "key_path"),
    "CLUSTEROPS_SSH_PORT": ("ssh", "port"),
    "CLUSTEROPS_DATA_ROOT": (None, "data_root"),
    "CLUSTEROPS_VLOG": (None, "vlog"),
}


class SSHSettings(BaseModel):
    """How to reach cluster hosts.

    Attributes:
        user: Login user on every host.
        password: Password auth, used when no key file is readable.
        key_path: Private key for key auth.
        port: Default SSH port when a host address carries none.
        connect_timeout: Seconds to wait for the TCP/SSH handshake.
        command_timeout: Seconds a single remote command may run.
    """

    user: str = Field(default="root")
    password: str = Field(default="")
    key_path: str = Field(default=str(Path.home() / ".ssh" / "id_rsa"))
    port: int = Field(default=22, ge=1, le=65535)
    connect_timeout: float = Field(default=30.0, gt=0)
    command_timeout: float = Field(default=600.0, gt=0)


class Settings(BaseModel):
    """Top-level clusterops configuration."""

    ssh: SSHSettings = Field(default_factory=SSHSettings)
    data_root: str = Field(default=common.DEFAULT_DATA_ROOT)
    api_server_domain: str = Field(default=common.API_SERVER_DOMAIN)
    vlog: int = Field(default=0, ge=0)
    local_binary: str = Field(default="", description="Binary pushed to master-0; empty means this CLI")
    remote_binary: str = Field(default=common.REMOTE_BINARY_PATH)
    tmp_clusterfile: str = Field(default=common.TMP_CLUSTERFILE)
    registry_auth_file: str = Field(default=str(Path.home() / ".docker" / "config.json"))
    remote_registry_auth_dir: str = Field(default=common.REMOTE_REGISTRY_AUTH_DIR)
    kubeconfig_dir: str = Field(default=str(Path.home() / ".kube"))
    kubectl_path: str = Field(default=common.KUBECTL_PATH)
    etc_hosts: str = Field(default=common.ETC_HOSTS)

    def rootfs(self, cluster_name: str) -> str:
        """Cluster image root on every host: ``<data_root>/<cluster>/rootfs``."""
        return str(Path(self.data_root) / cluster_name / "rootfs")


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    for env_key, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_key)
        if value is None:
            continue
        if section is None:
            raw[key] = value
        else:
            raw.setdefault(section, {})[key] = value
    return raw


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from *path*, ``$CLUSTEROPS_CONFIG``, or the default path.

    Returns:
        Settings with environment overrides applied. Invalid values are
        logged and replaced by the defaults.
    """
    config_path = Path(path or os.getenv("CLUSTEROPS_CONFIG") or DEFAULT_CONFIG_PATH)
    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                raw = loaded
            else:
                logger.warning("settings_not_a_mapping", path=str(config_path))
        except (OSError, yaml.YAMLError) as e:
            logger.error("settings_load_failed", path=str(config_path), error=str(e))
    else:
        logger.debug("settings_file_missing", path=str(config_path))

    raw = _apply_env_overrides(raw)
    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        logger.error("settings_invalid", path=str(config_path), error=str(e))
        return Settings()
