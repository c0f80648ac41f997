"""Docker container runtime plugin."""

from __future__ import annotations

from typing import Any

import pluggy

from .runtime import DockerContainerRuntime

hookimpl = pluggy.HookimplMarker("nestbox")


class DockerRuntimePlugin:
    """Plugin providing the Docker runtime."""

    @hookimpl
    def nestbox_container_runtime(self) -> Any | None:
        return DockerContainerRuntime()
