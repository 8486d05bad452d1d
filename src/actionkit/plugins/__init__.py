"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from actionkit.plugins.manager import PluginManager, get_plugin_manager, set_plugin_manager

__all__ = ["PluginManager", "get_plugin_manager", "set_plugin_manager"]
