"""Docker Hub tag-metadata client.

Read-only digest lookups against ``/v2/repositories/<ns>/<repo>/tags/<tag>/``.
Every lookup is bounded by connect/read timeouts and a total deadline.
"""

from __future__ import annotations

import asyncio
from typing import Any, Literal

import httpx

from hubwatch.exceptions import RegistryNetworkError, RegistryParseError
from hubwatch.logging import get_logger
from hubwatch.models import DEFAULT_TAG

log = get_logger("hubwatch.registry")

DEFAULT_REGISTRY_URL = "https://hub.docker.com/v2"
DEFAULT_NAMESPACE = "library"

DigestField = Literal["image", "tag"]


def repository_path(image_ref: str) -> str:
    """Map an image reference to its Docker Hub ``namespace/repo`` path."""
    ref = image_ref.strip().strip("/")
    if ref.startswith("docker.io/"):
        ref = ref[len("docker.io/") :]
    if "/" not in ref:
        return f"{DEFAULT_NAMESPACE}/{ref}"
    return ref


def _platform_of(image: dict[str, Any]) -> str:
    parts = [str(image.get("os") or ""), str(image.get("architecture") or "")]
    if image.get("variant"):
        parts.append(str(image["variant"]))
    return "/".join(parts)


def extract_digest(
    payload: Any,
    platform: str | None = None,
    digest_field: DigestField = "image",
) -> str:
    """Pick the digest to compare from a tag-metadata payload.

    Raises:
        RegistryParseError: The payload has no usable digest.
    """
    if not isinstance(payload, dict):
        raise RegistryParseError("registry response is not a JSON object")

    if digest_field == "tag":
        digest = payload.get("digest")
    else:
        images = payload.get("images")
        if not isinstance(images, list) or not images:
            raise RegistryParseError("registry response has no images")
        candidates = [img for img in images if isinstance(img, dict)]
        if platform:
            candidates = [img for img in candidates if _platform_of(img) == platform]
            if not candidates:
                raise RegistryParseError(f"no image variant for platform {platform}")
        if not candidates:
            raise RegistryParseError("registry response has no image entries")
        digest = candidates[0].get("digest")

    if not isinstance(digest, str) or not digest or digest == "null":
        raise RegistryParseError("registry response has no digest")
    return digest


class DockerHubRegistry:
    """Async client for Docker Hub tag digests."""

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        total_timeout: float = 15.0,
        platform: str | None = None,
        digest_field: DigestField = "image",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._total_timeout = total_timeout
        self._platform = platform
        self._digest_field = digest_field
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> DockerHubRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def tag_url(self, image_ref: str, tag: str = DEFAULT_TAG) -> str:
        return f"/repositories/{repository_path(image_ref)}/tags/{tag}/"

    async def fetch_digest(self, image_ref: str, tag: str = DEFAULT_TAG) -> str:
        """Return the content digest the registry reports for ``image_ref:tag``.

        Raises:
            RegistryNetworkError: Unreachable, timed out, rate limited or 5xx.
            RegistryParseError: Unexpected status, undecodable body or response shape.
        """
        client = await self._get_client()
        url = self.tag_url(image_ref, tag)
        log.debug("registry_lookup", image=image_ref, tag=tag)

        try:
            resp = await asyncio.wait_for(client.get(url), timeout=self._total_timeout)
        except TimeoutError as exc:
            log.warning("registry_timeout", image=image_ref, timeout=self._total_timeout)
            raise RegistryNetworkError(
                f"registry lookup exceeded {self._total_timeout}s"
            ) from exc
        except httpx.DecodingError as exc:
            log.warning("registry_undecodable", image=image_ref, error=str(exc))
            raise RegistryParseError(f"registry response could not be decoded: {exc}") from exc
        except httpx.RequestError as exc:
            log.warning("registry_unreachable", image=image_ref, error=str(exc))
            raise RegistryNetworkError(f"registry unreachable: {exc}") from exc

        if resp.status_code == 429 or resp.status_code >= 500:
            log.warning("registry_unavailable", image=image_ref, status=resp.status_code)
            raise RegistryNetworkError(f"registry returned HTTP {resp.status_code}")
        if resp.status_code != 200:
            log.warning("registry_unexpected_status", image=image_ref, status=resp.status_code)
            raise RegistryParseError(f"registry returned HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise RegistryParseError("registry response is not valid JSON") from exc

        if (
            self._digest_field == "image"
            and self._platform is None
            and isinstance(payload, dict)
            and isinstance(payload.get("images"), list)
            and len(payload["images"]) > 1
        ):
            # images[0] may not be the variant the local runtime pulled.
            log.warning(
                "registry_multiple_variants",
                image=image_ref,
                tag=tag,
                variants=len(payload["images"]),
            )

        digest = extract_digest(payload, self._platform, self._digest_field)
        log.debug("registry_digest_fetched", image=image_ref, tag=tag, digest=digest)
        return digest
