"""
First start seeding: the stock plugins, the two core presets and the
optional default preset applied on top of a new site.
"""
from typing import List, Optional
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.admin_tree import DEFAULT_PLUGINS, AdminCategory
from presetarr.models import Preset
from presetarr.services.exclusions import get_sensitive_settings
from presetarr.services.preset_loader import PresetLoader
from presetarr.services.preset_store import PresetStore
from presetarr.store.sql import SqlConfigStore
from presetarr.utils.locks import AdvisoryLocks

LITE_PRESET = {
    "name": "Lite",
    "comments": "Minimalist version with only a few of the most common plugins and features enabled.",
    "items": [
        ("usecomments", "0", "none"),
        ("usetags", "0", "none"),
        ("enablenotes", "0", "none"),
        ("enableblogs", "0", "none"),
        ("enablebadges", "0", "none"),
        ("enableanalytics", "0", "none"),
        ("enabled", "0", "core_competency"),
        ("showdataretentionsummary", "0", "tool_dataprivacy"),
        ("forum_maxattachments", "3", "none"),
        ("customusermenuitems", "preferences,moodle|/user/preferences.php|t/preferences", "none"),
    ],
    "plugins": [("mod", "chat", 0)],
}

FULL_PRESET = {
    "name": "Full",
    "comments": "The default installation with most of the features and plugins enabled.",
    "items": [
        ("usecomments", "1", "none"),
        ("usetags", "1", "none"),
        ("enablenotes", "1", "none"),
        ("enableblogs", "1", "none"),
        ("enablebadges", "1", "none"),
        ("enableanalytics", "1", "none"),
        ("enabled", "1", "core_competency"),
        ("showdataretentionsummary", "1", "tool_dataprivacy"),
        ("forum_maxattachments", "9", "none"),
        (
            "customusermenuitems",
            "grades,grades|/grade/report/mygrades.php|t/grades\n"
            "messages,message|/message/index.php|t/message\n"
            "preferences,moodle|/user/preferences.php|t/preferences",
            "none",
        ),
    ],
    "plugins": [("mod", "chat", 1)],
}

CORE_PRESETS = [LITE_PRESET, FULL_PRESET]


async def seed_core_presets(db: AsyncSession) -> List[Preset]:
    """
    Create the core presets unless they already exist.

    Returns:
        The presets created by this call
    """
    result = await db.execute(select(Preset.id).where(Preset.iscore == 1).limit(1))
    if result.scalar_one_or_none() is not None:
        logger.debug("Core presets already seeded")
        return []

    presets = PresetStore(db)
    created = []
    for definition in CORE_PRESETS:
        preset = await presets.create_preset(
            name=definition["name"],
            comments=definition["comments"],
            iscore=1,
        )
        for name, value, plugin in definition["items"]:
            await presets.add_item(preset, name, value, plugin)
        for plugin_type, plugin_name, enabled in definition["plugins"]:
            await presets.add_plugin(preset, plugin_type, plugin_name, enabled)
        created.append(preset)

    logger.info(f"Seeded {len(created)} core presets")
    return created


async def apply_default_preset(
    db: AsyncSession,
    store: SqlConfigStore,
    created: List[Preset],
    name: str,
    locks: Optional[AdvisoryLocks] = None,
):
    """
    Apply the configured core preset to a freshly installed site.

    The preset is matched by name, ignoring case, among the presets seeded by
    this install. It goes through the normal apply so that it is recorded as
    an application and can be rolled back.
    """
    preset = next((preset for preset in created if preset.name.lower() == name.lower()), None)
    if preset is None:
        logger.warning(f"Default preset '{name}' is not a core preset, nothing applied")
        return None

    loader = PresetLoader(db, store, locks or AdvisoryLocks(), exclusions=get_sensitive_settings())
    report = await loader.apply(preset.id)
    logger.info(f"Default preset '{preset.name}' applied to the new site ({len(report.applied)} settings)")
    return report


async def install_site(
    db: AsyncSession,
    seed_presets: bool = True,
    default_preset: Optional[str] = None,
    locks: Optional[AdvisoryLocks] = None,
    tree: Optional[AdminCategory] = None,
):
    """
    Register the stock plugins and, if wanted, the core presets.

    Args:
        db: Database session
        seed_presets: Create the Lite/Full presets when none exist yet
        default_preset: Core preset name to apply right after the first seeding
        locks: Lock table shared with the API; a private one when omitted
        tree: Declared admin tree, the stock tree when omitted
    """
    store = SqlConfigStore(db, tree)
    await store.install_plugins(DEFAULT_PLUGINS)
    if seed_presets:
        created = await seed_core_presets(db)
        if created and default_preset:
            await apply_default_preset(db, store, created, default_preset, locks)
    await db.commit()
