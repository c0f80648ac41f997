"""Fatal container-runtime errors.

All three stop the host at startup: nothing downstream can run agents
without a live engine.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """The runtime override names an engine no provider implements."""


class RuntimeNotFoundError(RuntimeError):
    """No provider's CLI answered its ``--version`` check."""


class RuntimeUnavailableError(RuntimeError):
    """The engine is installed but its daemon/system is unreachable."""
