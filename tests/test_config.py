"""Unit tests for settings loading."""

from pathlib import Path

import pytest

from clusterops.config import Settings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "CLUSTEROPS_CONFIG",
        "CLUSTEROPS_SSH_USER",
        "CLUSTEROPS_SSH_PASSWORD",
        "CLUSTEROPS_SSH_KEY",
        "CLUSTEROPS_SSH_PORT",
        "CLUSTEROPS_DATA_ROOT",
        "CLUSTEROPS_VLOG",
    ):
        monkeypatch.delenv(key, raising=False)


class TestLoadSettings:
    """Test YAML + environment settings resolution."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "absent.yaml")

        assert settings == Settings()
        assert settings.rootfs("my-cluster") == "/var/lib/sealer/data/my-cluster/rootfs"

    def test_yaml_values(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("ssh:\n  user: ops\n  port: 2222\nvlog: 3\ndata_root: /srv/data\n")

        settings = load_settings(path)

        assert settings.ssh.user == "ops"
        assert settings.ssh.port == 2222
        assert settings.vlog == 3
        assert settings.rootfs("c1") == "/srv/data/c1/rootfs"

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("ssh:\n  user: ops\n")
        monkeypatch.setenv("CLUSTEROPS_SSH_USER", "deploy")
        monkeypatch.setenv("CLUSTEROPS_VLOG", "2")

        settings = load_settings(path)

        assert settings.ssh.user == "deploy"
        assert settings.vlog == 2

    def test_config_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "alt.yaml"
        path.write_text("api_server_domain: api.internal\n")
        monkeypatch.setenv("CLUSTEROPS_CONFIG", str(path))

        assert load_settings().api_server_domain == "api.internal"

    @pytest.mark.parametrize("content", ["ssh: [broken\n", "vlog: -4\n", "- a\n- b\n"])
    def test_bad_file_degrades_to_defaults(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(content)

        assert load_settings(path) == Settings()
