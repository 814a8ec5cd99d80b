"""
Setting registry.

Walks the declared admin tree of the live site and wraps every leaf option
in a descriptor holding its current value. The same descriptor classes are
used to wrap preset item values, so both sides compare the same way.
"""
from typing import Any, Dict, Iterator, List, Optional, Tuple
from loguru import logger

from presetarr.admin_tree import AdminCategory, AdminSetting, AdminSettingPage
from presetarr.settings.base import PresetSetting, default_facet, default_value
from presetarr.settings.resolvers import SettingResolver, resolve_descriptor
from presetarr.store.base import ConfigStore

# scope -> name -> descriptor
SettingsMap = Dict[str, Dict[str, PresetSetting]]


def iter_settings(settings_map: SettingsMap) -> Iterator[Tuple[str, str, PresetSetting]]:
    """Flatten a settings map to (scope, name, descriptor) in insertion order."""
    for scope, named in settings_map.items():
        for name, setting in named.items():
            yield scope, name, setting


def lookup(settings_map: SettingsMap, scope: str, name: str) -> Optional[PresetSetting]:
    return settings_map.get(scope, {}).get(name)


class SettingRegistry:
    """Builds descriptors for the live site and for preset items."""

    def __init__(self, store: ConfigStore, resolvers: Optional[List[SettingResolver]] = None):
        self.store = store
        self.resolvers = resolvers

    async def get_site_settings(self) -> SettingsMap:
        """
        Snapshot of every available setting of the live site.

        Settings of disabled plugins are left out. Nodes that are not
        categories, pages or named settings are skipped with a warning.

        Returns:
            scope -> name -> descriptor, in declared tree order
        """
        tree = await self.store.enumerate_tree()
        result: SettingsMap = {}
        enabled_cache: Dict[str, bool] = {}
        await self._walk(tree, result, enabled_cache)
        logger.debug(f"Loaded {sum(len(named) for named in result.values())} site settings")
        return result

    async def _walk(self, node: Any, result: SettingsMap, enabled_cache: Dict[str, bool]):
        if isinstance(node, AdminCategory):
            for child in node.children:
                await self._walk(child, result, enabled_cache)
        elif isinstance(node, AdminSettingPage):
            for setting in node.settings:
                await self._add_setting(setting, result, enabled_cache)
        else:
            logger.warning(f"Skipping malformed admin tree node: {node!r}")

    async def _add_setting(self, declared: Any, result: SettingsMap, enabled_cache: Dict[str, bool]):
        if not isinstance(declared, AdminSetting) or not declared.name:
            logger.warning(f"Skipping malformed setting node: {declared!r}")
            return

        scope = declared.scope
        if scope not in enabled_cache:
            enabled_cache[scope] = await self.store.component_enabled(scope)
        if not enabled_cache[scope]:
            logger.debug(f"Skipping {declared.name}@@{scope}: component not available")
            return

        if declared.name in result.get(scope, {}):
            logger.warning(f"Duplicate setting {declared.name}@@{scope} in admin tree, keeping the first")
            return

        result.setdefault(scope, {})[declared.name] = await self.read_setting(declared)

    async def read_setting(self, declared: AdminSetting) -> PresetSetting:
        """Descriptor holding the live value of one declared setting."""
        descriptor_class = resolve_descriptor(declared, self.resolvers)

        value = await self.store.get(declared.scope, declared.name)
        if value is None:
            value = default_value(declared)

        facet_values: Dict[str, str] = {}
        for facet, key in descriptor_class.facets.items():
            facet_value = await self.store.get(declared.scope, f"{declared.name}_{key}")
            if facet_value is None:
                facet_value = default_facet(declared, key)
            facet_values[facet] = "0" if facet_value is None else facet_value

        setting = descriptor_class(declared, value, facet_values)
        await setting.load(self.store)
        return setting

    def get_setting(
        self, live: PresetSetting, value: Optional[str], attributes: Optional[Dict[str, Optional[str]]] = None
    ) -> PresetSetting:
        """
        Wrap a stored value in the descriptor of a live setting.

        Args:
            live: Descriptor of the live setting
            value: Value to wrap
            attributes: Stored facet variable name -> value; unknown names are ignored

        Returns:
            Descriptor of the same class and choices as the live one
        """
        facet_values: Dict[str, Optional[str]] = {}
        for variable, attribute_value in (attributes or {}).items():
            facet = live.facet_for_variable(variable)
            if facet is None:
                logger.debug(f"Ignoring unsupported attribute {variable} of {live.id}")
                continue
            facet_values[facet] = attribute_value
        return live.with_value(value, facet_values)

    async def get_preset_settings(
        self, items: List[Any], site_settings: Optional[SettingsMap] = None
    ) -> Tuple[SettingsMap, List[Any]]:
        """
        Convert preset items into descriptors.

        Args:
            items: Preset items (or draft items) in stored order
            site_settings: Live snapshot to use; taken now when omitted

        Returns:
            Tuple of (settings map, items that do not exist on this site)
        """
        if site_settings is None:
            site_settings = await self.get_site_settings()

        result: SettingsMap = {}
        not_applicable: List[Any] = []
        for item in items:
            live = lookup(site_settings, item.scope, item.name)
            if live is None:
                not_applicable.append(item)
                continue
            result.setdefault(item.scope, {})[item.name] = self.get_setting(
                live, item.value, item.attribute_values()
            )
        return result, not_applicable
