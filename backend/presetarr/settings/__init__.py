"""
Setting descriptors and their dispatch.
"""
from presetarr.settings.base import PresetSetting, default_facet, default_value, to_config_string
from presetarr.settings.types import (
    ConfigCheckbox,
    ConfigCheckboxWithAdvanced,
    ConfigMultiCheckbox,
    ConfigMultiSelect,
    ConfigPassword,
    ConfigSelect,
    ConfigSelectWithAdvanced,
    ConfigSelectWithLock,
    ConfigText,
    ConfigTextarea,
    ConfigTextWithAdvanced,
)
from presetarr.settings.special import BlogLevelSetting, HandlerSelectSetting
from presetarr.settings.resolvers import (
    DEFAULT_RESOLVERS,
    ComponentSettingResolver,
    FallbackResolver,
    MappedClassResolver,
    PrimitiveTypeResolver,
    SettingResolver,
    resolve_descriptor,
)

__all__ = [
    "PresetSetting",
    "default_facet",
    "default_value",
    "to_config_string",
    "ConfigCheckbox",
    "ConfigCheckboxWithAdvanced",
    "ConfigMultiCheckbox",
    "ConfigMultiSelect",
    "ConfigPassword",
    "ConfigSelect",
    "ConfigSelectWithAdvanced",
    "ConfigSelectWithLock",
    "ConfigText",
    "ConfigTextarea",
    "ConfigTextWithAdvanced",
    "BlogLevelSetting",
    "HandlerSelectSetting",
    "DEFAULT_RESOLVERS",
    "ComponentSettingResolver",
    "FallbackResolver",
    "MappedClassResolver",
    "PrimitiveTypeResolver",
    "SettingResolver",
    "resolve_descriptor",
]
