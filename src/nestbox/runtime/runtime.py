"""Container runtime detection and lifecycle.

Docker and Apple Container are built-in providers registered through the
plugin manager; further engines can be supplied by plugins implementing
``nestbox_container_runtime``. Call sites never branch on the engine: they
hold a :class:`ContainerRuntime` and the provider supplies the CLI dialect.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from nestbox.logger import logger
from nestbox.runtime._cli import CLI_ERRORS
from nestbox.runtime.errors import (
    ConfigurationError,
    RuntimeNotFoundError,
    RuntimeUnavailableError,
)
from nestbox.types import RunningContainer, VolumeMount


@runtime_checkable
class RuntimeProvider(Protocol):
    """Runtime provider contract implemented by built-ins and plugins."""

    name: str
    cli: str
    priority: int
    requires_start: bool
    unavailable_hint: str

    def detect(self, timeout: float) -> bool: ...
    def mount_args(self, mount: VolumeMount) -> list[str]: ...
    def check_running(self, timeout: float) -> bool: ...
    def start(self, timeout: float) -> None: ...
    def list_containers(self, prefix: str, timeout: float) -> list[RunningContainer]: ...
    def stop_command(self, name: str) -> list[str]: ...


@dataclass(frozen=True)
class ContainerRuntime:
    """A resolved engine plus the timeouts used when driving its CLI.

    Constructed once at startup (see :func:`get_runtime`) and passed to
    whatever needs mounts or lifecycle operations. Tests build their own
    instance around a fake provider.
    """

    provider: RuntimeProvider
    status_timeout: float = 10.0
    start_timeout: float = 30.0
    stop_timeout: float = 15.0
    list_timeout: float = 10.0

    @property
    def name(self) -> str:
        return self.provider.name

    @property
    def cli(self) -> str:
        return self.provider.cli

    # -- Mounts ---------------------------------------------------------

    def mount_args(self, mount: VolumeMount) -> list[str]:
        return self.provider.mount_args(mount)

    # -- Lifecycle ------------------------------------------------------

    def ensure_running(self) -> None:
        """Verify the engine is reachable, starting it once if the engine allows.

        Raises RuntimeUnavailableError when the engine is still unreachable
        after that single start attempt.
        """
        if self.provider.check_running(self.status_timeout):
            logger.debug("Container runtime already running", runtime=self.name)
            return

        if not self.provider.requires_start:
            logger.error("Container runtime is not running", runtime=self.name)
            raise RuntimeUnavailableError(self.provider.unavailable_hint)

        logger.info("Starting container runtime...", runtime=self.name)
        try:
            self.provider.start(self.start_timeout)
        except CLI_ERRORS as exc:
            logger.error("Failed to start container runtime", runtime=self.name, err=str(exc))
            raise RuntimeUnavailableError(self.provider.unavailable_hint) from exc

        if not self.provider.check_running(self.status_timeout):
            logger.error("Container runtime still unreachable after start", runtime=self.name)
            raise RuntimeUnavailableError(self.provider.unavailable_hint)

        logger.info("Container runtime started", runtime=self.name)

    def list_running_containers(self, prefix: str) -> list[RunningContainer]:
        """Return containers whose name starts with *prefix*. Never raises."""
        try:
            return self.provider.list_containers(prefix, self.list_timeout)
        except Exception as exc:
            logger.warning("Failed to list containers", err=str(exc), runtime=self.name)
            return []

    def stop(self, name: str) -> None:
        """Stop a container, blocking. Already-stopped or unknown names are fine."""
        try:
            subprocess.run(
                self.provider.stop_command(name),
                capture_output=True,
                check=True,
                timeout=self.stop_timeout,
            )
        except CLI_ERRORS as exc:
            logger.debug("Container stop ignored", container=name, err=str(exc))

    async def stop_async(self, name: str, timeout_ms: int = 15000) -> None:
        """Stop a container without blocking the event loop. Always returns."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.provider.stop_command(name),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("Async container stop failed", container=name, err=str(exc))
            return

        try:
            returncode = await asyncio.wait_for(proc.wait(), timeout=timeout_ms / 1000)
        except TimeoutError:
            logger.warning("Async container stop timed out", container=name, timeout_ms=timeout_ms)
            proc.kill()
            await proc.wait()
            return

        if returncode != 0:
            logger.warning("Async container stop failed", container=name, returncode=returncode)

    def cleanup_orphans(self, prefix: str | None = None) -> int:
        """Stop containers left running by a previous, uncleanly stopped host.

        *prefix* defaults to ``settings.container.name_prefix``. Returns the
        number of containers stopped. Failures are logged only.
        """
        if prefix is None:
            from nestbox.config import get_settings

            prefix = get_settings().container.name_prefix
        try:
            orphans = [c for c in self.list_running_containers(prefix) if c.is_running]
            for container in orphans:
                self.stop(container.name)
        except Exception as exc:
            logger.warning("Failed to clean up orphaned containers", err=str(exc))
            return 0

        if orphans:
            logger.info(
                "Stopped orphaned containers",
                count=len(orphans),
                names=[c.name for c in orphans],
            )
        return len(orphans)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def _is_valid_plugin_runtime(candidate: Any) -> bool:
    return all(
        [
            hasattr(candidate, "name"),
            hasattr(candidate, "cli"),
            callable(getattr(candidate, "detect", None)),
            callable(getattr(candidate, "mount_args", None)),
            callable(getattr(candidate, "check_running", None)),
            callable(getattr(candidate, "list_containers", None)),
            callable(getattr(candidate, "stop_command", None)),
        ]
    )


def load_providers() -> list[RuntimeProvider]:
    """Collect runtime providers from the plugin manager, lowest priority first."""
    from nestbox.plugin import get_plugin_manager

    pm = get_plugin_manager()
    providers: dict[str, RuntimeProvider] = {}
    for runtime in pm.hook.nestbox_container_runtime():
        if runtime is None:
            continue
        if not _is_valid_plugin_runtime(runtime):
            logger.warning(
                "Ignoring invalid plugin runtime object",
                runtime_type=type(runtime).__name__,
            )
            continue
        name = str(runtime.name).lower().strip()
        if name in providers:
            logger.warning("Duplicate runtime provider ignored", runtime=name)
            continue
        providers[name] = runtime
    return sorted(providers.values(), key=lambda p: getattr(p, "priority", 100))


def _runtime_override() -> str:
    from nestbox.config import get_settings

    env = os.environ.get("CONTAINER_RUNTIME", "").strip().lower()
    return env or (get_settings().container.runtime or "")


def resolve_runtime(providers: list[RuntimeProvider] | None = None) -> ContainerRuntime:
    """Pick the container engine to use.

    Priority:
    1) CONTAINER_RUNTIME env var, else settings.container.runtime; an unknown
       name raises ConfigurationError before any engine is checked
    2) ``<cli> --version`` checks in provider priority order (Apple
       Container, then Docker)
    3) RuntimeNotFoundError when no check succeeds
    """
    from nestbox.config import get_settings

    s = get_settings()
    if providers is None:
        providers = load_providers()
    by_name = {p.name.lower(): p for p in providers}

    override = _runtime_override()
    if override:
        selected = by_name.get(override)
        if selected is None:
            raise ConfigurationError(
                f'Invalid CONTAINER_RUNTIME="{override}". '
                f"Must be one of: {', '.join(sorted(by_name))}."
            )
        logger.info("Container runtime set via override", runtime=selected.name)
        return _wrap(selected)

    for provider in providers:
        if provider.detect(s.container.detect_timeout_s):
            logger.info("Detected container runtime", runtime=provider.name, cli=provider.cli)
            return _wrap(provider)

    raise RuntimeNotFoundError(
        "No container runtime found. Install Apple Container (macOS 26+) or Docker."
    )


def _wrap(provider: RuntimeProvider) -> ContainerRuntime:
    from nestbox.config import get_settings

    c = get_settings().container
    return ContainerRuntime(
        provider=provider,
        status_timeout=c.status_timeout_s,
        start_timeout=c.start_timeout_s,
        stop_timeout=c.stop_timeout_s,
        list_timeout=c.status_timeout_s,
    )


_runtime: ContainerRuntime | None = None


def get_runtime() -> ContainerRuntime:
    """Lazy singleton that caches the first successful resolve_runtime()."""
    global _runtime  # noqa: PLW0603
    if _runtime is None:
        _runtime = resolve_runtime()
    return _runtime


def reset_runtime() -> None:
    """Forget the cached runtime (for tests)."""
    global _runtime  # noqa: PLW0603
    _runtime = None
