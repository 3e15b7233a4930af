"""Registry update orchestrator.

Per tracked service and per cycle:

1. Fetch the remote digest and the local digest, classify the comparison
2. If an update is wanted, pull the image
3. If the pull succeeded, restart the compose service

Recoverable failures are caught per service and reported as outcomes; they
never abort processing of the other services. There is no automatic retry.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from hubwatch.exceptions import (
    PullError,
    RegistryNetworkError,
    RegistryParseError,
    RestartError,
    UnknownServiceError,
)
from hubwatch.logging import get_logger
from hubwatch.models import (
    CheckOutcome,
    CheckSummary,
    DigestComparison,
    TrackedService,
    UpdateResult,
    UpdateStatus,
    UpdateSummary,
)
from hubwatch.oplog import OperationLog
from hubwatch.registry import DockerHubRegistry
from hubwatch.runtime import ContainerRuntime

log = get_logger("hubwatch.orchestrator")


class RegistryUpdateOrchestrator:
    """Checks tracked services against the registry and converges local state."""

    def __init__(
        self,
        services: Sequence[TrackedService],
        registry: DockerHubRegistry,
        runtime: ContainerRuntime,
        oplog: OperationLog,
        max_concurrency: int = 1,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._services = tuple(services)
        self._registry = registry
        self._runtime = runtime
        self._oplog = oplog
        self._max_concurrency = max_concurrency

    @property
    def service_names(self) -> list[str]:
        return [s.service_name for s in self._services]

    def get_service(self, service_name: str) -> TrackedService:
        """Look up a tracked service by compose service name."""
        for service in self._services:
            if service.service_name == service_name:
                return service
        raise UnknownServiceError(service_name, self.service_names)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def check_one(self, service: TrackedService) -> DigestComparison:
        """Compare the remote and local digest for one service."""
        image = service.image_ref
        await self._oplog.write(f"Checking Docker Hub for {service.reference}")

        try:
            remote = await self._registry.fetch_digest(image, service.tag)
        except RegistryNetworkError as exc:
            await self._oplog.write(f"ERROR: Network error checking {image}")
            return DigestComparison(service, CheckOutcome.NETWORK_ERROR, error=str(exc))
        except RegistryParseError as exc:
            await self._oplog.write(f"ERROR: Parse error checking {image}")
            return DigestComparison(service, CheckOutcome.PARSE_ERROR, error=str(exc))
        except Exception as exc:
            log.exception("check_registry_failed", service=service.service_name)
            return await self._unexpected_failure(service, exc)

        try:
            local = await self._runtime.local_digest(service.reference)
        except Exception as exc:
            log.exception("check_local_failed", service=service.service_name)
            return await self._unexpected_failure(service, exc, remote_digest=remote)

        if local is None:
            await self._oplog.write(f"INFO: {image} not found locally")
            return DigestComparison(service, CheckOutcome.NOT_FOUND_LOCALLY, remote_digest=remote)

        if remote == local:
            await self._oplog.write(f"INFO: {image} is up to date")
            outcome = CheckOutcome.UP_TO_DATE
        else:
            await self._oplog.write(f"INFO: Update available for {image}")
            outcome = CheckOutcome.UPDATE_AVAILABLE

        log.debug(
            "digest_compared",
            service=service.service_name,
            outcome=outcome.value,
            remote=remote,
            local=local,
        )
        return DigestComparison(service, outcome, remote_digest=remote, local_digest=local)

    async def _unexpected_failure(
        self,
        service: TrackedService,
        exc: Exception,
        remote_digest: str | None = None,
    ) -> DigestComparison:
        # Anything unclassified is reported against this service only.
        await self._oplog.write(f"ERROR: Unexpected error checking {service.image_ref}: {exc}")
        return DigestComparison(
            service,
            CheckOutcome.NETWORK_ERROR,
            remote_digest=remote_digest,
            error=str(exc) or type(exc).__name__,
        )

    async def check_all(self) -> list[DigestComparison]:
        """Check every tracked service, in configured order."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(service: TrackedService) -> DigestComparison:
            async with semaphore:
                return await self.check_one(service)

        return list(await asyncio.gather(*(_bounded(s) for s in self._services)))

    async def summarize_checks(self, comparisons: Sequence[DigestComparison]) -> CheckSummary:
        """Aggregate a check cycle and record it in the operation log."""
        summary = CheckSummary.from_comparisons(comparisons)
        await self._oplog.write(
            f"SUMMARY: {summary.updates_available} updates, "
            f"{summary.up_to_date} up-to-date, {summary.errors} errors"
        )
        return summary

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    async def update_service(
        self,
        service: TrackedService,
        dry_run: bool = False,
        comparison: DigestComparison | None = None,
    ) -> UpdateResult:
        """Pull the image and restart the service; stop at the first failure."""
        if service not in self._services:
            raise UnknownServiceError(service.service_name, self.service_names)

        name = service.service_name
        result = UpdateResult(
            service=service,
            status=UpdateStatus.PLANNED,
            dry_run=dry_run,
            comparison=comparison,
        )

        if dry_run:
            await self._oplog.write(f"DRY_RUN: Would pull {service.reference}")
            await self._oplog.write(f"DRY_RUN: Would restart service {name}")
            return result

        await self._oplog.write(f"INFO: Pulling {service.reference}")
        try:
            await self._runtime.pull(service.reference)
        except PullError as exc:
            result.status = UpdateStatus.PULL_FAILED
            result.error = str(exc)
            await self._oplog.write(f"ERROR: Failed to pull {service.reference}")
            return result
        result.pulled = True
        result.steps_completed.append("pull")
        await self._oplog.write(f"SUCCESS: Pulled {service.reference}")

        await self._oplog.write(f"INFO: Restarting service {name}")
        try:
            await self._runtime.restart_service(name)
        except RestartError as exc:
            result.status = UpdateStatus.RESTART_FAILED
            result.error = str(exc)
            await self._oplog.write(f"ERROR: Failed to restart service {name}")
            return result
        result.restarted = True
        result.steps_completed.append("restart")
        result.status = UpdateStatus.RESTARTED
        await self._oplog.write(f"SUCCESS: Restarted service {name}")
        return result

    async def _converge(self, comparison: DigestComparison, dry_run: bool) -> UpdateResult:
        if comparison.outcome.needs_update:
            return await self.update_service(comparison.service, dry_run, comparison)

        if comparison.outcome.is_error:
            return UpdateResult(
                service=comparison.service,
                status=UpdateStatus.CHECK_FAILED,
                dry_run=dry_run,
                error=comparison.error or comparison.outcome.value,
                comparison=comparison,
            )

        return UpdateResult(
            service=comparison.service,
            status=UpdateStatus.SKIPPED,
            dry_run=dry_run,
            comparison=comparison,
        )

    async def update_all(self, dry_run: bool = False) -> list[UpdateResult]:
        """Check everything, then update each service that needs it."""
        comparisons = await self.check_all()

        # Mutations stay sequential: they share one compose project.
        results = [await self._converge(c, dry_run) for c in comparisons]

        summary = UpdateSummary.from_results(results)
        await self._oplog.write(
            f"UPDATE_SUMMARY: {summary.updated} updated, {summary.failed} failed"
            + (f", {summary.planned} planned (dry run)" if dry_run else "")
        )
        log.info("update_all_finished", dry_run=dry_run, **summary.to_dict())
        return results

    async def update_one(self, service_name: str, dry_run: bool = False) -> UpdateResult:
        """Check and, if needed, update one service by name."""
        service = self.get_service(service_name)
        comparison = await self.check_one(service)
        result = await self._converge(comparison, dry_run)
        if result.status is UpdateStatus.SKIPPED:
            await self._oplog.write(f"INFO: No update needed for {service_name}")
        return result
