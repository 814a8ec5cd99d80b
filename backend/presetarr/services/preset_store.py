"""
Preset persistence.

Presets are created by install-time seeding, by exporting the live site or
by importing a document. After creation only their name and comments
change; items are never edited.
"""
import time
from enum import Enum
from typing import Dict, List, Optional
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.constants import NONE_SCOPE
from presetarr.models import (
    Preset,
    PresetApplication,
    PresetItem,
    PresetItemAttribute,
    PresetPlugin,
)
from presetarr.utils.errors import ApplicationNotFoundError, PresetNotFoundError


class PresetState(str, Enum):
    """Lifecycle state of a preset. DELETED presets no longer exist."""

    DRAFT = "draft"
    STORED = "stored"
    APPLIED = "applied"


class PresetItemDocument(BaseModel):
    scope: str = NONE_SCOPE
    name: str
    value: Optional[str] = None
    attributes: Dict[str, Optional[str]] = Field(default_factory=dict)

    def attribute_values(self) -> Dict[str, Optional[str]]:
        return dict(self.attributes)


class PresetPluginDocument(BaseModel):
    plugin_type: str
    name: str
    enabled: int


class PresetDocument(BaseModel):
    """A preset that is not persisted (yet): the DRAFT state."""

    name: str
    comments: Optional[str] = None
    author: Optional[str] = None
    site: Optional[str] = None
    release: Optional[str] = None
    time_created: Optional[int] = None
    items: List[PresetItemDocument] = Field(default_factory=list)
    plugins: List[PresetPluginDocument] = Field(default_factory=list)

    @classmethod
    def from_preset(cls, preset: Preset) -> "PresetDocument":
        return cls(
            name=preset.name,
            comments=preset.comments,
            author=preset.author,
            site=preset.site,
            release=preset.release,
            time_created=preset.time_created,
            items=[
                PresetItemDocument(
                    scope=item.scope,
                    name=item.name,
                    value=item.value,
                    attributes=item.attribute_values(),
                )
                for item in preset.items
            ],
            plugins=[
                PresetPluginDocument(plugin_type=plugin.plugin_type, name=plugin.name, enabled=plugin.enabled)
                for plugin in preset.plugins
            ],
        )


class PresetStore:
    """CRUD for presets and their applications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_preset(
        self,
        name: str,
        comments: Optional[str] = None,
        author: Optional[str] = None,
        user_id: Optional[int] = None,
        site: Optional[str] = None,
        release: Optional[str] = None,
        iscore: int = 0,
        time_imported: int = 0,
        time_created: Optional[int] = None,
    ) -> Preset:
        """
        Create an empty preset.

        Args:
            name: Preset name
            comments: Free text description
            author: Display name of the author
            user_id: User creating the preset
            site: URL of the site the preset comes from
            release: Release of the site the preset comes from
            iscore: 1 for presets seeded on install
            time_imported: Import timestamp, 0 when created locally
            time_created: Creation timestamp, now when omitted

        Returns:
            The flushed preset, with its id set
        """
        preset = Preset(
            name=name,
            comments=comments,
            author=author,
            user_id=user_id,
            site=site,
            release=release,
            iscore=iscore,
            time_created=time_created or int(time.time()),
            time_imported=time_imported,
            time_applied=0,
            items=[],
            plugins=[],
            applications=[],
        )
        self.db.add(preset)
        await self.db.flush()
        logger.info(f"Created preset {preset.id} '{name}'")
        return preset

    async def add_item(
        self,
        preset: Preset,
        name: str,
        value: Optional[str],
        plugin: str = NONE_SCOPE,
        attributes: Optional[Dict[str, Optional[str]]] = None,
    ) -> PresetItem:
        """
        Add a setting value to a preset.

        Args:
            preset: Preset to extend
            name: Setting name
            value: Serialized value
            plugin: Setting scope, "none" for global options
            attributes: Facet variable name -> value, e.g. {"maxanswers_adv": "1"}
        """
        item = PresetItem(
            scope=plugin or NONE_SCOPE,
            name=name,
            value=value,
            attributes=[
                PresetItemAttribute(name=attribute_name, value=attribute_value)
                for attribute_name, attribute_value in (attributes or {}).items()
            ],
        )
        preset.items.append(item)
        await self.db.flush()
        return item

    async def add_plugin(self, preset: Preset, plugin_type: str, name: str, enabled: int) -> PresetPlugin:
        """Add a plugin enabled state to a preset."""
        plugin = PresetPlugin(plugin_type=plugin_type, name=name, enabled=int(enabled))
        preset.plugins.append(plugin)
        await self.db.flush()
        return plugin

    async def save_document(
        self, document: PresetDocument, user_id: Optional[int] = None, time_imported: int = 0
    ) -> Preset:
        """Persist a draft preset with its items and plugins."""
        preset = await self.create_preset(
            name=document.name,
            comments=document.comments,
            author=document.author,
            user_id=user_id,
            site=document.site,
            release=document.release,
            time_imported=time_imported,
            time_created=document.time_created,
        )
        for item in document.items:
            await self.add_item(preset, item.name, item.value, item.scope, item.attributes)
        for plugin in document.plugins:
            await self.add_plugin(preset, plugin.plugin_type, plugin.name, plugin.enabled)
        return preset

    async def get_preset(self, preset_id: int) -> Preset:
        """
        Load a preset with its items, plugins and applications.

        Raises:
            PresetNotFoundError: If no preset has that id
        """
        preset = await self.db.get(Preset, preset_id)
        if preset is None:
            raise PresetNotFoundError(f"Preset {preset_id} not found", details={"preset_id": preset_id})
        return preset

    async def list_presets(self) -> List[Preset]:
        result = await self.db.execute(select(Preset).order_by(Preset.id))
        return list(result.scalars().all())

    async def find_by_name(self, name: str) -> Optional[Preset]:
        result = await self.db.execute(select(Preset).where(Preset.name == name).order_by(Preset.id).limit(1))
        return result.scalar_one_or_none()

    async def update_preset(
        self, preset_id: int, name: Optional[str] = None, comments: Optional[str] = None
    ) -> Preset:
        """Rename a preset or change its comments; nothing else is editable."""
        preset = await self.get_preset(preset_id)
        if name is not None:
            preset.name = name
        if comments is not None:
            preset.comments = comments
        await self.db.flush()
        logger.info(f"Updated preset {preset_id}")
        return preset

    async def delete_preset(self, preset_id: int):
        """Delete a preset with its items, plugins and applications."""
        preset = await self.get_preset(preset_id)
        await self.db.delete(preset)
        await self.db.flush()
        logger.info(f"Deleted preset {preset_id}")

    async def get_application(self, application_id: int) -> PresetApplication:
        """
        Load an application with its ledger rows.

        Raises:
            ApplicationNotFoundError: If no application has that id
        """
        application = await self.db.get(PresetApplication, application_id)
        if application is None:
            raise ApplicationNotFoundError(
                f"Application {application_id} not found", details={"application_id": application_id}
            )
        return application

    async def list_applications(self, preset_id: Optional[int] = None) -> List[PresetApplication]:
        query = select(PresetApplication).order_by(PresetApplication.id.desc())
        if preset_id is not None:
            query = query.where(PresetApplication.preset_id == preset_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_application(self, preset: Preset, user_id: Optional[int]) -> PresetApplication:
        application = PresetApplication(
            user_id=user_id, time_applied=int(time.time()), items=[], attributes=[], plugins=[]
        )
        preset.applications.append(application)
        preset.time_applied = application.time_applied
        await self.db.flush()
        return application

    async def delete_application(self, application_id: int):
        """Purge an application and its ledger rows without touching live values."""
        application = await self.get_application(application_id)
        await self.remove_application(application)
        logger.info(f"Purged application {application_id}")

    async def remove_application(self, application: PresetApplication):
        preset = await self.db.get(Preset, application.preset_id)
        if preset is not None and application in preset.applications:
            preset.applications.remove(application)
        await self.db.delete(application)
        await self.db.flush()

    async def preset_state(self, preset: Preset) -> PresetState:
        result = await self.db.execute(
            select(func.count(PresetApplication.id)).where(PresetApplication.preset_id == preset.id)
        )
        return PresetState.APPLIED if result.scalar_one() else PresetState.STORED
