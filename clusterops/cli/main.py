"""``clusterops`` command line.

Usage:
    clusterops join -f Clusterfile --nodes 192.168.0.5,192.168.0.6
    clusterops delete -f Clusterfile --masters 1
    clusterops reset -f Clusterfile
    clusterops registry apply -f Clusterfile
    clusterops registry delete -f Clusterfile
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import structlog

from clusterops.cli.formatter import CLIFormatter
from clusterops.cluster.clusterfile import load_clusterfile
from clusterops.cluster.models import ScaleRequest
from clusterops.common import DELETE_SUBCMD, JOIN_SUBCMD
from clusterops.config import Settings, load_settings
from clusterops.errors import ClusterOpsError, RegistryError, ScaleValidationError
from clusterops.remote.base import RemoteExecutor
from clusterops.remote.ssh import SSHExecutor
from clusterops.runtime.registry import RegistryManager
from clusterops.runtime.reset import NodeResetter
from clusterops.scaling.planner import scale_from_args

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def configure_logging(verbose: bool = False) -> None:
    """Set up structlog console output; ``verbose`` lowers the level to DEBUG."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clusterops",
        description="Scale, reset and manage the registry of an image-bootstrapped cluster",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s join -f Clusterfile --nodes 192.168.0.5-192.168.0.7\n"
            "  %(prog)s delete -f Clusterfile --masters 1\n"
            "  %(prog)s reset -f Clusterfile\n"
        ),
    )
    parser.add_argument("--config", help="settings YAML (default: $CLUSTEROPS_CONFIG or ~/.clusterops/config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        (JOIN_SUBCMD, "add masters or nodes to the Clusterfile"),
        (DELETE_SUBCMD, "remove masters or nodes from the Clusterfile"),
    ):
        scale = sub.add_parser(name, help=help_text)
        scale.add_argument("-f", "--clusterfile", required=True)
        scale.add_argument("-m", "--masters", default="", help="IP list/range (bare metal) or count (cloud)")
        scale.add_argument("-n", "--nodes", default="", help="IP list/range (bare metal) or count (cloud)")

    reset = sub.add_parser("reset", help="tear down every node, master and the registry")
    reset.add_argument("-f", "--clusterfile", required=True)

    registry = sub.add_parser("registry", help="provision or remove the private registry")
    registry.add_argument("action", choices=["apply", "delete"])
    registry.add_argument("-f", "--clusterfile", required=True)

    return parser


async def run_reset(args: argparse.Namespace, settings: Settings, executor: RemoteExecutor,
                    fmt: CLIFormatter) -> int:
    cluster = load_clusterfile(args.clusterfile)
    resetter = NodeResetter(cluster, executor, settings)
    try:
        report = await resetter.reset()
    except RegistryError as e:
        if e.report is not None:
            fmt.print_reset_report(e.report)
        raise
    fmt.print_reset_report(report)
    return EXIT_OK


async def run_registry(args: argparse.Namespace, settings: Settings, executor: RemoteExecutor,
                       fmt: CLIFormatter) -> int:
    cluster = load_clusterfile(args.clusterfile)
    manager = RegistryManager(cluster, executor, settings)
    if args.action == "apply":
        fmt.print_registry(await manager.apply_registry())
    else:
        await manager.delete_registry()
        fmt.success("registry deleted")
    return EXIT_OK


def run(args: argparse.Namespace, fmt: CLIFormatter, executor: Optional[RemoteExecutor] = None) -> int:
    settings = load_settings(args.config)

    if args.command in (JOIN_SUBCMD, DELETE_SUBCMD):
        request = ScaleRequest(masters=args.masters, nodes=args.nodes)
        cluster = scale_from_args(args.clusterfile, request, args.command)
        fmt.print_cluster(cluster)
        return EXIT_OK

    executor = executor or SSHExecutor(settings.ssh)
    if args.command == "reset":
        return asyncio.run(run_reset(args, settings, executor, fmt))
    return asyncio.run(run_registry(args, settings, executor, fmt))


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    fmt = CLIFormatter()

    try:
        return run(args, fmt)
    except ScaleValidationError as e:
        fmt.error(str(e))
        return EXIT_USAGE
    except (ClusterOpsError, FileNotFoundError) as e:
        logger.error("command_failed", command=args.command, error=str(e))
        fmt.error(str(e))
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
