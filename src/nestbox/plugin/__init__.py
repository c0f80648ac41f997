"""Plugin system for nestbox.

Built on pluggy. The only extension point today is the container runtime:
Docker and Apple Container ship as built-in plugins, and a third engine can
be added from another distribution through the ``nestbox`` entry-point
group.

Usage:
    from nestbox.plugin import get_plugin_manager

    pm = get_plugin_manager()
    runtimes = pm.hook.nestbox_container_runtime()
"""

from __future__ import annotations

import importlib

import pluggy

from nestbox.config import get_settings
from nestbox.logger import logger
from nestbox.plugin.hookspecs import NestboxSpec

__all__ = [
    "get_plugin_manager",
]

# Static registry of built-in plugins.
# Each entry: (module_path, class_name, config_key)
# config_key is checked against [plugins.<key>].enabled in config.toml.
_BUILTIN_PLUGIN_SPECS: list[tuple[str, str, str]] = [
    ("nestbox.runtime.plugins.apple_runtime", "AppleRuntimePlugin", "apple-runtime"),
    ("nestbox.runtime.plugins.docker_runtime", "DockerRuntimePlugin", "docker-runtime"),
]


def get_plugin_manager() -> pluggy.PluginManager:
    """Create and configure the plugin manager.

    Registers the built-in plugins that are not disabled in config.toml,
    then third-party plugins from entry points.
    """
    pm = pluggy.PluginManager("nestbox")
    pm.add_hookspecs(NestboxSpec)

    s = get_settings()

    for module_path, class_name, config_key in _BUILTIN_PLUGIN_SPECS:
        plugin_cfg = s.plugins.get(config_key)
        if plugin_cfg is not None and not plugin_cfg.enabled:
            logger.info("Plugin disabled via config", plugin=config_key)
            continue

        try:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, class_name)
            pm.register(cls(), name=f"builtin-{config_key}")
            logger.debug("Registered built-in plugin", name=config_key)
        except Exception:
            logger.exception("Failed to load built-in plugin", plugin=config_key)

    # Third-party plugins register via the "nestbox" group in their pyproject.toml
    discovered = pm.load_setuptools_entrypoints("nestbox")
    if discovered:
        logger.info("Discovered third-party plugins", count=discovered)

    # Entry points may name a plugin class instead of an instance
    for plugin in list(pm.get_plugins()):
        if isinstance(plugin, type):
            plugin_name = pm.get_name(plugin) or plugin.__name__
            pm.unregister(plugin=plugin)
            logger.warning(
                "Unregistered invalid class-based plugin object",
                plugin=plugin_name,
            )

    return pm
