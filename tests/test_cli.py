"""Unit tests for the clusterops command line."""

import io
from pathlib import Path

import pytest
from rich.console import Console

import clusterops.cli.main as cli
from clusterops.cli.formatter import CLIFormatter
from clusterops.cluster.clusterfile import load_clusterfile, save_clusterfile
from clusterops.cluster.models import Cluster


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep structlog at its defaults so other tests can capture logs."""
    monkeypatch.setattr(cli, "configure_logging", lambda verbose=False: None)


@pytest.fixture
def clusterfile(tmp_path: Path, baremetal_cluster: Cluster) -> Path:
    path = tmp_path / "Clusterfile"
    save_clusterfile(path, baremetal_cluster)
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(f"data_root: {tmp_path / 'data'}\n")
    (tmp_path / "data" / "my-cluster" / "rootfs" / "etc").mkdir(parents=True)
    return path


@pytest.fixture
def fmt() -> CLIFormatter:
    return CLIFormatter(
        console=Console(file=io.StringIO(), width=200),
        err_console=Console(file=io.StringIO(), width=200),
    )


def output(console: Console) -> str:
    return console.file.getvalue()


class TestScaleCommands:
    """Test join/delete through main()."""

    def test_join(self, clusterfile: Path, config_file: Path) -> None:
        rc = cli.main(["--config", str(config_file), "join", "-f", str(clusterfile), "--nodes", "10.0.0.4"])

        assert rc == cli.EXIT_OK
        assert load_clusterfile(clusterfile).node_ips == ["10.0.0.2", "10.0.0.3", "10.0.0.4"]

    def test_delete(self, clusterfile: Path, config_file: Path) -> None:
        rc = cli.main(["--config", str(config_file), "delete", "-f", str(clusterfile), "-n", "10.0.0.2"])

        assert rc == cli.EXIT_OK
        assert load_clusterfile(clusterfile).node_ips == ["10.0.0.3"]

    def test_bad_shape_is_usage_error(self, clusterfile: Path, config_file: Path) -> None:
        rc = cli.main(["--config", str(config_file), "join", "-f", str(clusterfile), "--nodes", "3"])

        assert rc == cli.EXIT_USAGE

    def test_no_target_is_usage_error(self, clusterfile: Path, config_file: Path) -> None:
        rc = cli.main(["--config", str(config_file), "join", "-f", str(clusterfile)])

        assert rc == cli.EXIT_USAGE

    def test_missing_clusterfile(self, tmp_path: Path, config_file: Path) -> None:
        rc = cli.main(["--config", str(config_file), "join", "-f", str(tmp_path / "nope"), "-n", "10.0.0.9"])

        assert rc == cli.EXIT_FAILURE


class TestRemoteCommands:
    """Test reset/registry through run() with an in-memory executor."""

    def test_reset(self, clusterfile: Path, config_file: Path, executor, fmt: CLIFormatter) -> None:
        args = cli.build_parser().parse_args(["--config", str(config_file), "reset", "-f", str(clusterfile)])

        rc = cli.run(args, fmt, executor=executor)

        assert rc == cli.EXIT_OK
        assert "reset 3 hosts" in output(fmt.console)
        assert "registry deleted" in output(fmt.console)

    def test_reset_reports_failures(self, clusterfile: Path, config_file: Path, make_executor,
                                    fmt: CLIFormatter) -> None:
        executor = make_executor(fail_hosts={"10.0.0.3"})
        args = cli.build_parser().parse_args(["--config", str(config_file), "reset", "-f", str(clusterfile)])

        cli.run(args, fmt, executor=executor)

        text = output(fmt.console)
        assert "10.0.0.3" in text
        assert "1 of 3 hosts failed to reset" in text

    def test_registry_apply(self, clusterfile: Path, config_file: Path, executor, fmt: CLIFormatter) -> None:
        args = cli.build_parser().parse_args(
            ["--config", str(config_file), "registry", "apply", "-f", str(clusterfile)]
        )

        rc = cli.run(args, fmt, executor=executor)

        assert rc == cli.EXIT_OK
        assert "sea.hub:5000" in output(fmt.console)
        assert any("init-registry.sh" in c for c in executor.commands())

    def test_registry_delete(self, clusterfile: Path, config_file: Path, executor, fmt: CLIFormatter) -> None:
        args = cli.build_parser().parse_args(
            ["--config", str(config_file), "registry", "delete", "-f", str(clusterfile)]
        )

        cli.run(args, fmt, executor=executor)

        assert any("docker rm -f sealer-registry" in c for c in executor.commands())
