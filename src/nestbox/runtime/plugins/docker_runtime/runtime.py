"""Docker container runtime provider for nestbox."""

from __future__ import annotations

from nestbox.runtime._cli import run_checked, succeeds
from nestbox.runtime.errors import RuntimeUnavailableError
from nestbox.types import RunningContainer, VolumeMount


class DockerContainerRuntime:
    """Runtime adapter for the Docker CLI.

    The Docker daemon is managed outside nestbox (systemd, Docker Desktop,
    OrbStack), so there is no start step: if ``docker info`` fails the host
    refuses to continue.
    """

    name = "docker"
    cli = "docker"
    priority = 20
    requires_start = False
    unavailable_hint = (
        "Docker is required but not running. "
        "macOS: start Docker Desktop or OrbStack. "
        "Linux: sudo systemctl start docker. "
        "Install from https://docs.docker.com/get-docker/"
    )

    def detect(self, timeout: float) -> bool:
        return succeeds([self.cli, "--version"], timeout=timeout)

    def mount_args(self, mount: VolumeMount) -> list[str]:
        if mount.readonly:
            return ["-v", f"{mount.host_path}:{mount.container_path}:ro"]
        return ["-v", f"{mount.host_path}:{mount.container_path}"]

    def check_running(self, timeout: float) -> bool:
        return succeeds([self.cli, "info"], timeout=timeout)

    def start(self, timeout: float) -> None:
        # requires_start is False; the daemon belongs to the OS service manager
        raise RuntimeUnavailableError(self.unavailable_hint)

    def list_containers(self, prefix: str, timeout: float) -> list[RunningContainer]:
        # --filter name= is a substring match, so re-check the prefix
        output = run_checked(
            [self.cli, "ps", "--filter", f"name={prefix}", "--format", "{{.Names}}\t{{.Status}}"],
            timeout=timeout,
        )
        containers: list[RunningContainer] = []
        for line in output.strip().splitlines():
            if not line:
                continue
            name, _, status = line.partition("\t")
            if name.startswith(prefix):
                containers.append(RunningContainer(name=name, status=status))
        return containers

    def stop_command(self, name: str) -> list[str]:
        return [self.cli, "stop", name]
