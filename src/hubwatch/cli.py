"""Command line for hubwatch.

Usage:
    hubwatch --check                 # Check for updates (default)
    hubwatch --update-all            # Update all services with updates
    hubwatch --update backend        # Update only one service
    hubwatch --dry-run --verbose     # Dry run with detailed output
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence

from pydantic import ValidationError

from hubwatch import __version__
from hubwatch.config import Settings, get_settings
from hubwatch.console import Console
from hubwatch.exceptions import MissingDependencyError, UnknownServiceError
from hubwatch.logging import get_logger, setup_logging
from hubwatch.models import CheckSummary, UpdateSummary
from hubwatch.oplog import OperationLog
from hubwatch.orchestrator import RegistryUpdateOrchestrator
from hubwatch.registry import DockerHubRegistry
from hubwatch.runtime import ContainerRuntime, probe_runtime

EXIT_OK = 0
EXIT_FAILURE = 1

ACTION_CHECK = "check"
ACTION_UPDATE_ALL = "update-all"
ACTION_UPDATE = "update"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hubwatch",
        description="Check Docker Hub for newer images and update compose services.",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "--check",
        dest="action",
        action="store_const",
        const=ACTION_CHECK,
        help="check for updates only (default)",
    )
    actions.add_argument(
        "--update-all",
        dest="action",
        action="store_const",
        const=ACTION_UPDATE_ALL,
        help="update all services that have updates",
    )
    actions.add_argument(
        "--update",
        dest="service",
        metavar="SERVICE",
        help="update one service",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="show what would be updated without making changes",
    )
    parser.add_argument("--verbose", action="store_true", help="show detailed logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.set_defaults(action=ACTION_CHECK)
    return parser


def resolve_action(args: argparse.Namespace) -> str:
    if args.service is not None:
        return ACTION_UPDATE
    return str(args.action)


def build_orchestrator(
    settings: Settings,
    runtime: ContainerRuntime,
    registry: DockerHubRegistry,
    oplog: OperationLog,
) -> RegistryUpdateOrchestrator:
    return RegistryUpdateOrchestrator(
        services=settings.tracked_services,
        registry=registry,
        runtime=runtime,
        oplog=oplog,
        max_concurrency=settings.max_concurrency,
    )


def build_registry(settings: Settings) -> DockerHubRegistry:
    return DockerHubRegistry(
        base_url=settings.registry_url,
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        total_timeout=settings.total_timeout,
        platform=settings.registry_platform,
        digest_field=settings.registry_digest_field,
    )


async def run(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    """Execute one invocation and return the process exit code."""
    log = get_logger("hubwatch.cli")
    oplog = OperationLog(settings.log_file)
    action = resolve_action(args)

    await oplog.write("=== Docker Hub Update Checker Started ===")
    try:
        if action == ACTION_UPDATE:
            if not args.service.strip():
                console.fail("Service name required with --update")
                return EXIT_FAILURE
            # Validate the name before any runtime or registry activity.
            names = [s.service_name for s in settings.tracked_services]
            if args.service not in names:
                raise UnknownServiceError(args.service, names)

        runtime = await probe_runtime(
            compose_file=settings.compose_file,
            project_dir=settings.project_dir,
        )

        async with build_registry(settings) as registry:
            orchestrator = build_orchestrator(settings, runtime, registry, oplog)
            log.debug("hubwatch_run", action=action, dry_run=args.dry_run)

            if action == ACTION_CHECK:
                console.info("Checking for Docker Hub updates...")
                comparisons = await orchestrator.check_all()
                for comparison in comparisons:
                    console.comparison(comparison)
                summary: CheckSummary = await orchestrator.summarize_checks(comparisons)
                console.check_summary(summary)
            elif action == ACTION_UPDATE_ALL:
                console.info("Checking and updating all services...")
                results = await orchestrator.update_all(dry_run=args.dry_run)
                for result in results:
                    console.update_result(result)
                console.update_summary(UpdateSummary.from_results(results))
            else:
                console.info(f"Checking and updating {args.service}...")
                result = await orchestrator.update_one(args.service, dry_run=args.dry_run)
                console.update_result(result)

    except UnknownServiceError as exc:
        console.unknown_service(exc.service_name, exc.available)
        await oplog.write(f"ERROR: Unknown service {exc.service_name}")
        return EXIT_FAILURE
    except MissingDependencyError as exc:
        console.fail(str(exc))
        console.line("Please install missing dependencies and try again.")
        await oplog.write(f"ERROR: {exc}")
        return EXIT_FAILURE

    await oplog.write("=== Docker Hub Update Checker Finished ===")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console(verbose=args.verbose)

    try:
        settings = get_settings()
    except ValidationError as exc:
        console.fail(f"Invalid configuration: {exc}")
        return EXIT_FAILURE

    setup_logging(verbose=args.verbose)

    try:
        return asyncio.run(run(args, settings, console))
    except KeyboardInterrupt:
        console.fail("Interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
