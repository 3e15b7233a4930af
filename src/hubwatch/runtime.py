"""Local container runtime access.

The orchestrator talks to one ``ContainerRuntime``. ``probe_runtime()`` picks
the Docker CLI flavour once at startup (``docker compose`` plugin or the
legacy ``docker-compose`` binary) so call sites never branch on tooling.
All subprocess calls are confined to this module.
"""

from __future__ import annotations

import asyncio
import shutil
from abc import ABC, abstractmethod
from collections.abc import Sequence

from hubwatch.exceptions import MissingDependencyError, PullError, RestartError
from hubwatch.logging import get_logger

log = get_logger("hubwatch.runtime")

MODERN_COMPOSE: tuple[str, ...] = ("docker", "compose")
LEGACY_COMPOSE: tuple[str, ...] = ("docker-compose",)

INSPECT_TIMEOUT = 30
PULL_TIMEOUT = 600
RESTART_TIMEOUT = 180


class ContainerRuntime(ABC):
    """Read and mutate operations against the local container runtime."""

    @abstractmethod
    async def local_digest(self, reference: str) -> str | None:
        """Return the digest recorded for ``reference``, or None if absent."""

    @abstractmethod
    async def pull(self, reference: str) -> None:
        """Fetch ``reference`` from its registry. Raises ``PullError``."""

    @abstractmethod
    async def restart_service(self, service_name: str) -> None:
        """(Re)start one compose service. Raises ``RestartError``."""


class CommandResult:
    """Exit status and captured output of one command."""

    __slots__ = ("returncode", "stdout", "stderr")

    def __init__(self, returncode: int, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_cmd(
    args: Sequence[str],
    timeout: float = INSPECT_TIMEOUT,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command without a shell and capture its output.

    Timeouts and launch failures come back as a non-zero ``CommandResult``.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as exc:
        log.warning("runtime_cmd_error", cmd=" ".join(args), error=str(exc))
        return CommandResult(127, stderr=str(exc))

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        log.warning("runtime_cmd_timeout", cmd=" ".join(args), timeout=timeout)
        return CommandResult(124, stderr=f"timed out after {timeout}s")

    result = CommandResult(
        proc.returncode if proc.returncode is not None else 1,
        stdout.decode(errors="replace"),
        stderr.decode(errors="replace"),
    )
    if not result.ok:
        log.debug(
            "runtime_cmd_failed",
            cmd=" ".join(args),
            returncode=result.returncode,
            stderr=result.stderr[:500],
        )
    return result


class DockerCliRuntime(ContainerRuntime):
    """``ContainerRuntime`` backed by the docker and compose CLIs."""

    def __init__(
        self,
        compose_command: Sequence[str] = MODERN_COMPOSE,
        compose_file: str | None = None,
        project_dir: str = ".",
    ) -> None:
        self._compose_command = tuple(compose_command)
        self._compose_file = compose_file
        self._project_dir = project_dir

    @property
    def compose_command(self) -> tuple[str, ...]:
        return self._compose_command

    def _compose_args(self, *args: str) -> list[str]:
        cmd = list(self._compose_command)
        if self._compose_file:
            cmd += ["-f", self._compose_file]
        cmd += list(args)
        return cmd

    async def _run_cmd(
        self, args: Sequence[str], timeout: float = INSPECT_TIMEOUT
    ) -> CommandResult:
        return await run_cmd(args, timeout=timeout, cwd=self._project_dir)

    async def local_digest(self, reference: str) -> str | None:
        result = await self._run_cmd(
            ["docker", "images", "--digests", "--format", "{{.Digest}}", reference]
        )
        if not result.ok:
            return None
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines or lines[0] == "<none>":
            return None
        return lines[0]

    async def pull(self, reference: str) -> None:
        result = await self._run_cmd(["docker", "pull", reference], timeout=PULL_TIMEOUT)
        if not result.ok:
            log.warning("runtime_pull_failed", reference=reference, rc=result.returncode)
            raise PullError(_failure_detail(f"docker pull {reference}", result))
        log.info("runtime_pulled", reference=reference)

    async def restart_service(self, service_name: str) -> None:
        result = await self._run_cmd(
            self._compose_args("up", "-d", service_name), timeout=RESTART_TIMEOUT
        )
        if not result.ok:
            log.warning("runtime_restart_failed", service=service_name, rc=result.returncode)
            raise RestartError(_failure_detail(f"compose up -d {service_name}", result))
        log.info("runtime_restarted", service=service_name)


def _failure_detail(what: str, result: CommandResult) -> str:
    detail = (result.stderr or result.stdout).strip().splitlines()
    last = detail[-1] if detail else f"exit code {result.returncode}"
    return f"{what} failed: {last}"


async def probe_runtime(
    compose_file: str | None = None,
    project_dir: str = ".",
    check_daemon: bool = True,
) -> DockerCliRuntime:
    """Select the runtime implementation available on this host.

    Raises:
        MissingDependencyError: docker, a compose implementation, or a running
            Docker daemon is missing.
    """
    if shutil.which("docker") is None:
        raise MissingDependencyError(["docker"])

    version = await run_cmd([*MODERN_COMPOSE, "version"], cwd=project_dir)
    if version.ok:
        compose_command = MODERN_COMPOSE
    elif shutil.which(LEGACY_COMPOSE[0]) is not None:
        compose_command = LEGACY_COMPOSE
    else:
        raise MissingDependencyError(["docker compose"])
    log.debug("runtime_compose_selected", command=" ".join(compose_command))

    if check_daemon:
        info = await run_cmd(["docker", "info"], cwd=project_dir)
        if not info.ok:
            raise MissingDependencyError(["docker daemon (not running)"])

    return DockerCliRuntime(
        compose_command=compose_command,
        compose_file=compose_file,
        project_dir=project_dir,
    )
