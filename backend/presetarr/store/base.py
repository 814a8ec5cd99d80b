"""
Live configuration store interface.

The preset engine never talks to a backing store directly. Everything it
needs from the running site (values, the declared admin tree, plugin and
component state, the change log) goes through a ConfigStore.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel

from presetarr.admin_tree import AdminCategory
from presetarr.constants import NONE_SCOPE


class ConfigChange(BaseModel):
    """One write through the store, as recorded in its change log."""

    log_id: int
    scope: str
    name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None


def split_component(scope: str) -> Tuple[str, str]:
    """
    Split a frankenstyle scope into (plugin_type, plugin_name).

    "mod_lesson" -> ("mod", "lesson"); scopes without an underscore are
    legacy plugin names and map to ("", scope).
    """
    if "_" not in scope:
        return "", scope
    plugin_type, plugin_name = scope.split("_", 1)
    return plugin_type, plugin_name


class ConfigStore(ABC):
    """Abstract access to the live configuration of a site."""

    @abstractmethod
    async def get(self, scope: str, name: str) -> Optional[str]:
        """Stored value, or None when the option was never written."""
        pass

    @abstractmethod
    async def set(self, scope: str, name: str, value: Optional[str], user_id: Optional[int] = None) -> ConfigChange:
        """
        Write a value and record the change in the log.

        Returns:
            The change, carrying the log id and the value it replaced
        """
        pass

    @abstractmethod
    async def get_log(self, log_id: int) -> Optional[ConfigChange]:
        """Change log entry by id."""
        pass

    @abstractmethod
    async def enumerate_tree(self) -> AdminCategory:
        """Declared admin tree of the site."""
        pass

    @abstractmethod
    async def get_plugin_enabled(self, plugin_type: str, name: str) -> Optional[int]:
        """Enabled state of an installed plugin, None when it is not installed."""
        pass

    @abstractmethod
    async def set_plugin_enabled(self, plugin_type: str, name: str, enabled: int) -> int:
        """Set the enabled state of an installed plugin and return the previous one."""
        pass

    @abstractmethod
    async def list_plugins(self, plugin_type: str) -> Dict[str, int]:
        """Installed plugins of a type, name -> enabled state."""
        pass

    @abstractmethod
    async def get_component_visible(self, component: str) -> bool:
        pass

    @abstractmethod
    async def set_component_visible(self, component: str, visible: bool):
        pass

    async def component_enabled(self, scope: str) -> bool:
        """
        Whether settings of a scope are currently available.

        Global options always are. A plugin scope is unavailable only when
        the plugin is installed and disabled.
        """
        if scope == NONE_SCOPE:
            return True
        plugin_type, plugin_name = split_component(scope)
        if not plugin_type:
            return True
        enabled = await self.get_plugin_enabled(plugin_type, plugin_name)
        return enabled is None or enabled > 0

    async def enabled_handlers(self, plugin_type: str) -> List[str]:
        """Component names of the enabled plugins of a type, e.g. ["h5plib_v124"]."""
        plugins = await self.list_plugins(plugin_type)
        return [f"{plugin_type}_{name}" for name, enabled in plugins.items() if enabled > 0]
