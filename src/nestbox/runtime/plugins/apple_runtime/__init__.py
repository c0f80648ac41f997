"""Apple Container runtime plugin."""

from __future__ import annotations

from typing import Any

import pluggy

from .runtime import AppleContainerRuntime

hookimpl = pluggy.HookimplMarker("nestbox")


class AppleRuntimePlugin:
    """Plugin providing the Apple Container runtime."""

    @hookimpl
    def nestbox_container_runtime(self) -> Any | None:
        return AppleContainerRuntime()
