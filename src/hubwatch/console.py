"""Console report for the command line.

Every outcome gets one distinct marker. Output goes to stdout; structured
logs go to stderr.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TextIO

from hubwatch.models import (
    CheckOutcome,
    CheckSummary,
    DigestComparison,
    UpdateResult,
    UpdateStatus,
    UpdateSummary,
)

OK = "[OK]"
NEW = "[NEW]"
PULL = "[PULL]"
WARN = "[WARN]"
FAIL = "[FAIL]"
SKIP = "[SKIP]"
DRY_RUN = "[DRY RUN]"
INFO = "[INFO]"


class Console:
    """Prints check and update reports with consistent markers."""

    def __init__(self, stream: TextIO | None = None, verbose: bool = False) -> None:
        self._stream = stream or sys.stdout
        self._verbose = verbose

    def line(self, text: str = "") -> None:
        print(text, file=self._stream)

    def info(self, text: str) -> None:
        self.line(f"{INFO} {text}")

    def fail(self, text: str) -> None:
        self.line(f"{FAIL} {text}")

    def comparison(self, comparison: DigestComparison) -> None:
        service = comparison.service
        self.line(f"Checking {service.service_name} ({service.image_ref})...")
        outcome = comparison.outcome
        if outcome is CheckOutcome.UP_TO_DATE:
            self.line(f"  {OK} Up to date")
        elif outcome is CheckOutcome.UPDATE_AVAILABLE:
            self.line(f"  {NEW} Update available")
            if self._verbose:
                self.line(f"       Local:  {comparison.local_digest}")
                self.line(f"       Remote: {comparison.remote_digest}")
        elif outcome is CheckOutcome.NOT_FOUND_LOCALLY:
            self.line(f"  {PULL} Image not found locally - will be pulled")
        elif outcome is CheckOutcome.NETWORK_ERROR:
            self.line(f"  {WARN} Network error - could not reach Docker Hub")
        else:
            self.line(f"  {WARN} Could not parse Docker Hub response")
        if comparison.error and self._verbose:
            self.line(f"       {comparison.error}")

    def check_summary(self, summary: CheckSummary) -> None:
        self.line()
        self.line("Summary:")
        self.line(f"   Updates available: {summary.updates_available}")
        self.line(f"   Up to date: {summary.up_to_date}")
        self.line(f"   Errors: {summary.errors}")
        if summary.updates_available:
            self.line()
            self.line(f"Services with updates: {' '.join(summary.services_to_update)}")
            self.line("Run with --update-all to update all services")

    def update_result(self, result: UpdateResult) -> None:
        name = result.service.service_name
        reference = result.service.reference
        status = result.status

        if result.comparison is not None:
            self.comparison(result.comparison)

        if status is UpdateStatus.SKIPPED:
            self.line(f"  {SKIP} No update needed for {name}")
            return
        if status is UpdateStatus.CHECK_FAILED:
            self.line(f"  {SKIP} Not updating {name}: check failed")
            return

        self.line(f"Updating {name}...")
        if status is UpdateStatus.PLANNED:
            self.line(f"  {DRY_RUN} Would pull {reference}")
            self.line(f"  {DRY_RUN} Would restart service: {name}")
            return

        if result.pulled:
            self.line(f"  {OK} Image pulled successfully")
        else:
            self.line(f"  {FAIL} Failed to pull image")
        if status is UpdateStatus.RESTARTED:
            self.line(f"  {OK} Service restarted successfully")
        elif status is UpdateStatus.RESTART_FAILED:
            self.line(f"  {FAIL} Failed to restart service")
        if result.error and self._verbose:
            self.line(f"       {result.error}")

    def update_summary(self, summary: UpdateSummary) -> None:
        self.line()
        self.line("Update Summary:")
        self.line(f"   Updated: {summary.updated}")
        self.line(f"   Failed: {summary.failed}")
        if summary.planned:
            self.line(f"   Planned (dry run): {summary.planned}")
        if summary.errors:
            self.line(f"   Check errors: {summary.errors}")

    def unknown_service(self, service_name: str, available: Sequence[str]) -> None:
        self.fail(f"Service '{service_name}' not found")
        self.info(f"Available services: {' '.join(available)}")
