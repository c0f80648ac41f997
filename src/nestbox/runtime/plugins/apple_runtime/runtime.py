"""Apple Container runtime provider for nestbox."""

from __future__ import annotations

import json

from nestbox.runtime._cli import run_checked, succeeds
from nestbox.types import RunningContainer, VolumeMount


class AppleContainerRuntime:
    """Runtime adapter for Apple's ``container`` CLI.

    Unlike Docker, the container system service is started on demand
    (``container system start``), so ``requires_start`` is set and the
    lifecycle controller gets one attempt at bringing it up.
    """

    name = "apple-container"
    cli = "container"
    priority = 10
    requires_start = True
    unavailable_hint = (
        "Apple Container system is required but failed to start. "
        "Install from https://github.com/apple/container/releases, "
        "run `container system start`, then restart nestbox."
    )

    def detect(self, timeout: float) -> bool:
        return succeeds([self.cli, "--version"], timeout=timeout)

    def mount_args(self, mount: VolumeMount) -> list[str]:
        # `container run -v` has no :ro suffix; read-only needs the --mount form
        if mount.readonly:
            return [
                "--mount",
                f"type=bind,source={mount.host_path},target={mount.container_path},readonly",
            ]
        return ["-v", f"{mount.host_path}:{mount.container_path}"]

    def check_running(self, timeout: float) -> bool:
        return succeeds([self.cli, "system", "status"], timeout=timeout)

    def start(self, timeout: float) -> None:
        run_checked([self.cli, "system", "start"], timeout=timeout)

    def list_containers(self, prefix: str, timeout: float) -> list[RunningContainer]:
        output = run_checked([self.cli, "ls", "--format", "json"], timeout=timeout)
        containers = json.loads(output or "[]")
        return [
            RunningContainer(name=c["configuration"]["id"], status=c.get("status", ""))
            for c in containers
            if c.get("configuration", {}).get("id", "").startswith(prefix)
        ]

    def stop_command(self, name: str) -> list[str]:
        return [self.cli, "stop", name]
