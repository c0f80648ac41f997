"""Volume mount → CLI argument translation.

Pure functions of the resolved runtime and the mount: no I/O, no errors.
Each engine has its own flag grammar (see the providers' ``mount_args``)
and rejects anything else, so the output is exact per engine.
"""

from __future__ import annotations

from collections.abc import Iterable

from nestbox.runtime.runtime import ContainerRuntime, get_runtime
from nestbox.types import VolumeMount


def build_mount_args(mount: VolumeMount, runtime: ContainerRuntime | None = None) -> list[str]:
    """Return the argv fragment for a single bind mount."""
    return (runtime or get_runtime()).mount_args(mount)


def build_mounts_args(
    mounts: Iterable[VolumeMount],
    runtime: ContainerRuntime | None = None,
) -> list[str]:
    """Flatten several mounts into one argv fragment, in order."""
    rt = runtime or get_runtime()
    args: list[str] = []
    for mount in mounts:
        args.extend(rt.mount_args(mount))
    return args
