"""Configuration management for hubwatch."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hubwatch.models import TrackedService

DEFAULT_SERVICES: tuple[TrackedService, ...] = (
    TrackedService(
        image_ref="blackdreamer/azubi-tmp-p2-ci-cd-docker-backend",
        service_name="backend",
    ),
    TrackedService(
        image_ref="blackdreamer/azubi-tmp-p2-ci-cd-docker-nginx",
        service_name="nginx",
    ),
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HUBWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Tracked services (JSON list in the environment)
    services: Annotated[
        list[TrackedService],
        Field(
            default_factory=lambda: list(DEFAULT_SERVICES),
            description="Image/compose-service pairs to watch",
        ),
    ]

    # Registry
    registry_url: str = Field(
        default="https://hub.docker.com/v2", description="Docker Hub API base URL"
    )
    connect_timeout: float = Field(default=5.0, gt=0, description="Registry connect timeout")
    read_timeout: float = Field(default=10.0, gt=0, description="Registry read timeout")
    total_timeout: float = Field(
        default=15.0, gt=0, description="Wall-clock limit for one registry lookup"
    )
    registry_platform: str | None = Field(
        default=None, description="Pick the image variant for this os/arch (e.g. linux/amd64)"
    )
    registry_digest_field: Literal["image", "tag"] = Field(
        default="image", description="Compare against an image variant digest or the tag digest"
    )

    # Container runtime
    compose_file: str | None = Field(default=None, description="Compose file passed with -f")
    project_dir: str = Field(default=".", description="Working directory for runtime commands")

    # Orchestration
    log_file: str = Field(default="check-updates.log", description="Operation log path")
    max_concurrency: int = Field(default=4, ge=1, description="Parallel registry checks")

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="WARNING", description="Logging level")

    @field_validator("services")
    @classmethod
    def _validate_services(cls, value: list[TrackedService]) -> list[TrackedService]:
        if not value:
            raise ValueError("at least one tracked service is required")
        images: set[str] = set()
        names: set[str] = set()
        for service in value:
            if not service.image_ref or not service.service_name or not service.tag:
                raise ValueError("image_ref, service_name and tag must be non-empty")
            if service.image_ref in images:
                raise ValueError(f"duplicate image_ref: {service.image_ref}")
            if service.service_name in names:
                raise ValueError(f"duplicate service_name: {service.service_name}")
            images.add(service.image_ref)
            names.add(service.service_name)
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def tracked_services(self) -> tuple[TrackedService, ...]:
        """Immutable view of the tracked services."""
        return tuple(self.services)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
