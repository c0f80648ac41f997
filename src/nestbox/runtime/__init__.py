"""Container runtime abstraction — detection, mounts, lifecycle."""

from nestbox.runtime.errors import (
    ConfigurationError,
    RuntimeNotFoundError,
    RuntimeUnavailableError,
)
from nestbox.runtime.mounts import build_mount_args, build_mounts_args
from nestbox.runtime.runtime import (
    ContainerRuntime,
    RuntimeProvider,
    get_runtime,
    load_providers,
    reset_runtime,
    resolve_runtime,
)

__all__ = [
    "ConfigurationError",
    "ContainerRuntime",
    "RuntimeNotFoundError",
    "RuntimeProvider",
    "RuntimeUnavailableError",
    "build_mount_args",
    "build_mounts_args",
    "get_runtime",
    "load_providers",
    "reset_runtime",
    "resolve_runtime",
]
