"""
Descriptor dispatch.

Every declared setting resolves to exactly one descriptor class by asking
an ordered chain of resolvers; the first one that knows the setting wins
and the last one always answers.

1. ComponentSettingResolver - exact (component, setting class) pair
2. MappedClassResolver - setting class families sharing a behaviour
3. PrimitiveTypeResolver - the declared primitive type
4. FallbackResolver - the opaque PresetSetting
"""
from typing import Dict, List, Optional, Tuple, Type

from presetarr.admin_tree import AdminSetting
from presetarr.settings.base import PresetSetting
from presetarr.settings.special import BlogLevelSetting, HandlerSelectSetting
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

DescriptorClass = Type[PresetSetting]

# (owning component, setting class) -> descriptor
COMPONENT_SETTINGS: Dict[Tuple[str, str], DescriptorClass] = {
    ("core", "admin_setting_bloglevel"): BlogLevelSetting,
    ("core_h5p", "admin_settings_h5plib_handler_select"): HandlerSelectSetting,
}

# Setting class -> descriptor, for classes behaving like another one
SETTING_CLASS_MAP: Dict[str, DescriptorClass] = {
    "admin_setting_configcolourpicker": ConfigText,
    "admin_setting_configdirectory": ConfigText,
    "admin_setting_configduration_with_advanced": ConfigTextWithAdvanced,
    "admin_setting_configduration": ConfigText,
    "admin_setting_configempty": ConfigText,
    "admin_setting_configexecutable": ConfigText,
    "admin_setting_configfile": ConfigText,
    "admin_setting_confightmleditor": ConfigText,
    "admin_setting_configmixedhostiplist": ConfigText,
    "admin_setting_configmultiselect_modules": ConfigMultiSelect,
    "admin_setting_configpasswordunmask": ConfigPassword,
    "admin_setting_configportlist": ConfigText,
    "admin_setting_configtext_with_advanced": ConfigTextWithAdvanced,
    "admin_setting_configtext_with_maxlength": ConfigText,
    "admin_setting_configcheckbox_with_advanced": ConfigCheckboxWithAdvanced,
    "admin_setting_configselect_with_advanced": ConfigSelectWithAdvanced,
    "admin_setting_configselect_with_lock": ConfigSelectWithLock,
    "admin_setting_configtextarea": ConfigTextarea,
    "admin_setting_configthemepreset": ConfigSelect,
    "admin_setting_countrycodes": ConfigText,
    "admin_setting_devicedetectregex": ConfigText,
    "admin_setting_enablemobileservice": ConfigCheckbox,
    "admin_setting_pickroles": ConfigMultiCheckbox,
    "admin_setting_requiredtext": ConfigText,
    "admin_setting_requiredtextarea": ConfigTextarea,
    "admin_setting_special_calendar_weekend": ConfigText,
    "admin_setting_special_debug": ConfigSelect,
    "admin_setting_special_selectsetup": ConfigSelect,
    "admin_setting_users_with_capability": ConfigMultiSelect,
    "admin_setting_sitesetcheckbox": ConfigCheckbox,
    "admin_setting_sitesetselect": ConfigSelect,
    "admin_setting_sitesettext": ConfigText,
    "admin_setting_special_backup_auto_destination": ConfigText,
}

# Primitive type -> descriptor
PRIMITIVE_TYPES: Dict[str, DescriptorClass] = {
    "text": ConfigText,
    "textarea": ConfigTextarea,
    "password": ConfigPassword,
    "checkbox": ConfigCheckbox,
    "select": ConfigSelect,
    "multiselect": ConfigMultiSelect,
    "multicheckbox": ConfigMultiCheckbox,
}


class SettingResolver:
    """One step of the dispatch chain."""

    name = "base"

    def resolve(self, declared: AdminSetting) -> Optional[DescriptorClass]:
        raise NotImplementedError


class ComponentSettingResolver(SettingResolver):
    name = "component"

    def __init__(self, table: Optional[Dict[Tuple[str, str], DescriptorClass]] = None):
        self.table = COMPONENT_SETTINGS if table is None else table

    def resolve(self, declared: AdminSetting) -> Optional[DescriptorClass]:
        return self.table.get((declared.owning_component, declared.setting_class))


class MappedClassResolver(SettingResolver):
    name = "mapped"

    def __init__(self, table: Optional[Dict[str, DescriptorClass]] = None):
        self.table = SETTING_CLASS_MAP if table is None else table

    def resolve(self, declared: AdminSetting) -> Optional[DescriptorClass]:
        return self.table.get(declared.setting_class)


class PrimitiveTypeResolver(SettingResolver):
    name = "primitive"

    def __init__(self, table: Optional[Dict[str, DescriptorClass]] = None):
        self.table = PRIMITIVE_TYPES if table is None else table

    def resolve(self, declared: AdminSetting) -> Optional[DescriptorClass]:
        return self.table.get(declared.type)


class FallbackResolver(SettingResolver):
    name = "fallback"

    def resolve(self, declared: AdminSetting) -> Optional[DescriptorClass]:
        return PresetSetting


DEFAULT_RESOLVERS: List[SettingResolver] = [
    ComponentSettingResolver(),
    MappedClassResolver(),
    PrimitiveTypeResolver(),
    FallbackResolver(),
]


def resolve_descriptor(
    declared: AdminSetting, resolvers: Optional[List[SettingResolver]] = None
) -> DescriptorClass:
    """
    Pick the descriptor class of a declared setting.

    Args:
        declared: The setting node
        resolvers: Chain to ask in order; DEFAULT_RESOLVERS when omitted

    Returns:
        The first class a resolver returns, PresetSetting if none does
    """
    for resolver in resolvers or DEFAULT_RESOLVERS:
        descriptor = resolver.resolve(declared)
        if descriptor is not None:
            return descriptor
    return PresetSetting
