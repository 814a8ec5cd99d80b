"""
Database models for Presetarr.
"""
from presetarr.models.configuration import ConfigSetting, ConfigLog, ComponentVisibility, PluginState
from presetarr.models.preset import Preset, PresetItem, PresetItemAttribute, PresetPlugin
from presetarr.models.application import (
    PresetApplication,
    ApplicationItem,
    ApplicationItemAttribute,
    ApplicationPlugin,
)

__all__ = [
    "ConfigSetting",
    "ConfigLog",
    "ComponentVisibility",
    "PluginState",
    "Preset",
    "PresetItem",
    "PresetItemAttribute",
    "PresetPlugin",
    "PresetApplication",
    "ApplicationItem",
    "ApplicationItemAttribute",
    "ApplicationPlugin",
]
