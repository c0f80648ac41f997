"""Startup checks for the container engine."""

from __future__ import annotations

from nestbox.config import get_settings
from nestbox.logger import logger
from nestbox.runtime import ContainerRuntime, get_runtime


def ensure_container_system_running(runtime: ContainerRuntime | None = None) -> int:
    """Verify the container engine is available and stop orphaned containers.

    Raises RuntimeUnavailableError (or the detection errors) when the engine
    cannot be used; the host should not start without one. Returns the
    number of orphans stopped.
    """
    runtime = runtime or get_runtime()
    runtime.ensure_running()

    # Agents left behind by a host that died without cleaning up
    stopped = runtime.cleanup_orphans(get_settings().container.name_prefix)
    logger.info("Container system ready", runtime=runtime.name, orphans_stopped=stopped)
    return stopped
