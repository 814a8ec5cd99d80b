"""
SQL backed configuration store.

Values live in the config table, every write adds a config_log row, and
values of password-like settings are encrypted at rest.
"""
import logging
from typing import Dict, Iterable, Optional, Tuple
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.admin_tree import AdminCategory, build_default_tree
from presetarr.config import decrypt_value, encrypt_value, is_sensitive_key
from presetarr.models.configuration import ComponentVisibility, ConfigLog, ConfigSetting, PluginState
from presetarr.store.base import ConfigChange, ConfigStore

logger = logging.getLogger(__name__)


class SqlConfigStore(ConfigStore):
    """Configuration store over an AsyncSession."""

    def __init__(self, db: AsyncSession, tree: Optional[AdminCategory] = None):
        """
        Initialize the store.

        Args:
            db: Session the writes join; the caller commits
            tree: Declared admin tree, the stock tree when omitted
        """
        self.db = db
        self.tree = tree if tree is not None else build_default_tree()

    def _encode(self, name: str, value: Optional[str]) -> Optional[str]:
        if value is not None and value != "" and is_sensitive_key(name):
            return encrypt_value(value)
        return value

    def _decode(self, name: str, stored: Optional[str]) -> Optional[str]:
        if stored is None or stored == "" or not is_sensitive_key(name):
            return stored
        try:
            return decrypt_value(stored)
        except Exception as e:
            # Fail fast - the encryption key changed or the row is corrupted
            logger.error(f"Failed to decrypt config value '{name}': {e}")
            raise ValueError(
                f"Failed to decrypt configuration value '{name}'. "
                "This usually means the CONFIG_ENCRYPTION_KEY has changed."
            ) from e

    async def _get_row(self, scope: str, name: str) -> Optional[ConfigSetting]:
        result = await self.db.execute(
            select(ConfigSetting).where(ConfigSetting.scope == scope, ConfigSetting.name == name)
        )
        return result.scalar_one_or_none()

    async def get(self, scope: str, name: str) -> Optional[str]:
        row = await self._get_row(scope, name)
        if row is None:
            return None
        return self._decode(name, row.value)

    async def set(self, scope: str, name: str, value: Optional[str], user_id: Optional[int] = None) -> ConfigChange:
        """
        Write one value inside its own SAVEPOINT.

        A failing write rolls back only its savepoint, so the caller's
        transaction keeps every other change.
        """
        async with self.db.begin_nested():
            existing = await self._get_row(scope, name)
            old_stored = existing.value if existing else None
            new_stored = self._encode(name, value)

            if value is None:
                if existing:
                    await self.db.execute(delete(ConfigSetting).where(ConfigSetting.id == existing.id))
                    logger.debug(f"Deleted config value {scope}/{name}")
            elif existing:
                existing.value = new_stored
                existing.updated_by = user_id
            else:
                self.db.add(ConfigSetting(scope=scope, name=name, value=new_stored, updated_by=user_id))

            # Record old value in history
            history_entry = ConfigLog(
                scope=scope,
                name=name,
                old_value=old_stored,
                new_value=new_stored,
                changed_by=user_id,
            )
            self.db.add(history_entry)
            await self.db.flush()

        return ConfigChange(
            log_id=history_entry.id,
            scope=scope,
            name=name,
            old_value=self._decode(name, old_stored),
            new_value=value,
        )

    async def get_log(self, log_id: int) -> Optional[ConfigChange]:
        entry = await self.db.get(ConfigLog, log_id)
        if entry is None:
            return None
        return ConfigChange(
            log_id=entry.id,
            scope=entry.scope,
            name=entry.name,
            old_value=self._decode(entry.name, entry.old_value),
            new_value=self._decode(entry.name, entry.new_value),
        )

    async def enumerate_tree(self) -> AdminCategory:
        return self.tree

    async def _get_plugin(self, plugin_type: str, name: str) -> Optional[PluginState]:
        result = await self.db.execute(
            select(PluginState).where(PluginState.plugin_type == plugin_type, PluginState.name == name)
        )
        return result.scalar_one_or_none()

    async def get_plugin_enabled(self, plugin_type: str, name: str) -> Optional[int]:
        plugin = await self._get_plugin(plugin_type, name)
        return plugin.enabled if plugin else None

    async def set_plugin_enabled(self, plugin_type: str, name: str, enabled: int) -> int:
        async with self.db.begin_nested():
            plugin = await self._get_plugin(plugin_type, name)
            if plugin is None:
                raise KeyError(f"Plugin {plugin_type}_{name} is not installed")
            old = plugin.enabled
            plugin.enabled = enabled
            await self.db.flush()
        logger.info(f"Plugin {plugin_type}_{name} enabled state {old} -> {enabled}")
        return old

    async def list_plugins(self, plugin_type: str) -> Dict[str, int]:
        result = await self.db.execute(
            select(PluginState).where(PluginState.plugin_type == plugin_type).order_by(PluginState.name)
        )
        return {plugin.name: plugin.enabled for plugin in result.scalars().all()}

    async def install_plugins(self, plugins: Iterable[Tuple[str, str, int]]):
        """Register installed plugins that are not known yet."""
        for plugin_type, name, enabled in plugins:
            if await self._get_plugin(plugin_type, name) is None:
                self.db.add(PluginState(plugin_type=plugin_type, name=name, enabled=enabled))
        await self.db.flush()

    async def get_component_visible(self, component: str) -> bool:
        result = await self.db.execute(select(ComponentVisibility).where(ComponentVisibility.name == component))
        row = result.scalar_one_or_none()
        return row.visible if row else True

    async def set_component_visible(self, component: str, visible: bool):
        result = await self.db.execute(select(ComponentVisibility).where(ComponentVisibility.name == component))
        row = result.scalar_one_or_none()
        if row:
            row.visible = visible
        else:
            self.db.add(ComponentVisibility(name=component, visible=visible))
        await self.db.flush()
