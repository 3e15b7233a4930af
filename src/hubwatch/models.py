"""Data models for digest checks and update attempts.

Nothing here outlives a single invocation. All models are plain dataclasses
with ``to_dict()`` for logging and JSON output.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_TAG = "latest"


@dataclass(frozen=True)
class TrackedService:
    """An image reference paired with the compose service that runs it."""

    image_ref: str
    service_name: str
    tag: str = DEFAULT_TAG

    @property
    def reference(self) -> str:
        """Full ``image:tag`` reference."""
        return f"{self.image_ref}:{self.tag}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "image_ref": self.image_ref,
            "service_name": self.service_name,
            "tag": self.tag,
        }


class CheckOutcome(Enum):
    """Classification of one remote/local digest comparison."""

    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    NOT_FOUND_LOCALLY = "not_found_locally"
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"

    @property
    def needs_update(self) -> bool:
        return self in (CheckOutcome.UPDATE_AVAILABLE, CheckOutcome.NOT_FOUND_LOCALLY)

    @property
    def is_error(self) -> bool:
        return self in (CheckOutcome.NETWORK_ERROR, CheckOutcome.PARSE_ERROR)


@dataclass
class DigestComparison:
    """Result of checking one tracked service against the registry."""

    service: TrackedService
    outcome: CheckOutcome
    remote_digest: str | None = None
    local_digest: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service.to_dict(),
            "outcome": self.outcome.value,
            "remote_digest": self.remote_digest,
            "local_digest": self.local_digest,
            "error": self.error,
        }


class UpdateStatus(Enum):
    """Terminal state of one update attempt."""

    SKIPPED = "skipped"
    CHECK_FAILED = "check_failed"
    PLANNED = "planned"
    PULL_FAILED = "pull_failed"
    RESTART_FAILED = "restart_failed"
    RESTARTED = "restarted"


@dataclass
class UpdateResult:
    """Result of an update attempt (or of deciding not to attempt one)."""

    service: TrackedService
    status: UpdateStatus
    pulled: bool = False
    restarted: bool = False
    dry_run: bool = False
    error: str | None = None
    comparison: DigestComparison | None = None
    steps_completed: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is UpdateStatus.RESTARTED

    @property
    def failed(self) -> bool:
        return self.status in (UpdateStatus.PULL_FAILED, UpdateStatus.RESTART_FAILED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service.to_dict(),
            "status": self.status.value,
            "pulled": self.pulled,
            "restarted": self.restarted,
            "dry_run": self.dry_run,
            "error": self.error,
            "comparison": self.comparison.to_dict() if self.comparison else None,
            "steps_completed": self.steps_completed,
        }


@dataclass
class CheckSummary:
    """Aggregate counts for a check cycle."""

    updates_available: int = 0
    up_to_date: int = 0
    errors: int = 0
    services_to_update: list[str] = field(default_factory=list)

    @classmethod
    def from_comparisons(cls, comparisons: Iterable[DigestComparison]) -> CheckSummary:
        summary = cls()
        for comparison in comparisons:
            if comparison.outcome.is_error:
                summary.errors += 1
            elif comparison.outcome.needs_update:
                summary.updates_available += 1
                summary.services_to_update.append(comparison.service.service_name)
            else:
                summary.up_to_date += 1
        return summary

    def to_dict(self) -> dict[str, Any]:
        return {
            "updates_available": self.updates_available,
            "up_to_date": self.up_to_date,
            "errors": self.errors,
            "services_to_update": self.services_to_update,
        }


@dataclass
class UpdateSummary:
    """Aggregate counts for an update run."""

    updated: int = 0
    failed: int = 0
    skipped: int = 0
    planned: int = 0
    errors: int = 0

    @classmethod
    def from_results(cls, results: Iterable[UpdateResult]) -> UpdateSummary:
        summary = cls()
        for result in results:
            if result.succeeded:
                summary.updated += 1
            elif result.failed:
                summary.failed += 1
            elif result.status is UpdateStatus.PLANNED:
                summary.planned += 1
            elif result.status is UpdateStatus.CHECK_FAILED:
                summary.errors += 1
            else:
                summary.skipped += 1
        return summary

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated": self.updated,
            "failed": self.failed,
            "skipped": self.skipped,
            "planned": self.planned,
            "errors": self.errors,
        }
