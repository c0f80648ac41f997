"""Pluggy hook specifications for nestbox plugins.

All hooks use the "nestbox" namespace and are validated by pluggy at
registration time.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("nestbox")


class NestboxSpec:
    """Hook specifications for nestbox plugins."""

    @hookspec
    def nestbox_container_runtime(self) -> Any | None:
        """Provide a container runtime implementation.

        Runtime plugins return an object with:
            - name (str): runtime identifier used by CONTAINER_RUNTIME
            - cli (str): container CLI command (e.g. "container")
            - priority (int): detection order, lowest first
            - requires_start (bool): whether ensure_running may call start()
            - unavailable_hint (str): actionable message when the engine is down
            - detect(timeout) -> bool
            - mount_args(mount: VolumeMount) -> list[str]
            - check_running(timeout) -> bool
            - start(timeout) -> None
            - list_containers(prefix, timeout) -> list[RunningContainer]
            - stop_command(name) -> list[str]

        Returns:
            Runtime object, or None if this plugin doesn't provide one.
        """
