"""
In-memory configuration store.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from presetarr.admin_tree import AdminCategory, build_default_tree
from presetarr.store.base import ConfigChange, ConfigStore


class InMemoryConfigStore(ConfigStore):
    """Dictionary backed store, used for previews of foreign trees and in tests."""

    def __init__(
        self,
        tree: Optional[AdminCategory] = None,
        values: Optional[Dict[Tuple[str, str], str]] = None,
        plugins: Optional[Iterable[Tuple[str, str, int]]] = None,
    ):
        self.tree = tree if tree is not None else build_default_tree()
        self.values: Dict[Tuple[str, str], Optional[str]] = dict(values or {})
        self.plugins: Dict[Tuple[str, str], int] = {
            (plugin_type, name): enabled for plugin_type, name, enabled in (plugins or [])
        }
        self.visibility: Dict[str, bool] = {}
        self.log: List[ConfigChange] = []

    async def get(self, scope: str, name: str) -> Optional[str]:
        return self.values.get((scope, name))

    async def set(self, scope: str, name: str, value: Optional[str], user_id: Optional[int] = None) -> ConfigChange:
        old_value = self.values.get((scope, name))
        self.values[(scope, name)] = value
        change = ConfigChange(
            log_id=len(self.log) + 1,
            scope=scope,
            name=name,
            old_value=old_value,
            new_value=value,
        )
        self.log.append(change)
        return change

    async def get_log(self, log_id: int) -> Optional[ConfigChange]:
        if 0 < log_id <= len(self.log):
            return self.log[log_id - 1]
        return None

    async def enumerate_tree(self) -> AdminCategory:
        return self.tree

    async def get_plugin_enabled(self, plugin_type: str, name: str) -> Optional[int]:
        return self.plugins.get((plugin_type, name))

    async def set_plugin_enabled(self, plugin_type: str, name: str, enabled: int) -> int:
        key = (plugin_type, name)
        if key not in self.plugins:
            raise KeyError(f"Plugin {plugin_type}_{name} is not installed")
        old = self.plugins[key]
        self.plugins[key] = enabled
        return old

    async def list_plugins(self, plugin_type: str) -> Dict[str, int]:
        return {name: enabled for (ptype, name), enabled in self.plugins.items() if ptype == plugin_type}

    async def get_component_visible(self, component: str) -> bool:
        return self.visibility.get(component, True)

    async def set_component_visible(self, component: str, visible: bool):
        self.visibility[component] = visible
