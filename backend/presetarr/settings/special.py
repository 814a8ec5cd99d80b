"""
Descriptors for settings with behaviour beyond storing a value.
"""
from typing import Optional
from loguru import logger

from presetarr.constants import BLOG_LEVEL_DISABLED, BLOG_MENU_COMPONENT
from presetarr.settings.types import ConfigSelect
from presetarr.store.base import ConfigChange, ConfigStore


class BlogLevelSetting(ConfigSelect):
    """Blog visibility; also shows or hides the blog menu component."""

    async def write(self, store: ConfigStore, value: Optional[str], user_id: Optional[int] = None) -> ConfigChange:
        change = await super().write(store, value, user_id)

        visible = value != BLOG_LEVEL_DISABLED
        await store.set_component_visible(BLOG_MENU_COMPONENT, visible)
        logger.debug(f"Blog menu visibility set to {visible} (bloglevel={value})")
        return change


class HandlerSelectSetting(ConfigSelect):
    """
    Select whose choices are the enabled plugins implementing a capability.

    The declared handler_type names the plugin type; every enabled plugin of
    that type is a valid choice, keyed by its component name.
    """

    async def load(self, store: ConfigStore):
        handler_type = self.declared.handler_type
        if not handler_type:
            return
        handlers = await store.enabled_handlers(handler_type)
        self.choices = {handler: handler.split("_", 1)[-1] for handler in handlers}
        # Choices changed, so the value has to be checked again
        self.value = self.clean_value(self.raw_value)
