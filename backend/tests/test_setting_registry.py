"""Tests for descriptor dispatch and the live settings snapshot."""
from presetarr.admin_tree import AdminCategory, AdminSetting, AdminSettingPage, DEFAULT_PLUGINS
from presetarr.services.setting_registry import SettingRegistry, iter_settings, lookup
from presetarr.settings import (
    BlogLevelSetting,
    ConfigCheckbox,
    ConfigPassword,
    ConfigSelect,
    ConfigSelectWithLock,
    ConfigText,
    ConfigTextWithAdvanced,
    HandlerSelectSetting,
    PresetSetting,
)
from presetarr.settings.resolvers import (
    FallbackResolver,
    MappedClassResolver,
    PrimitiveTypeResolver,
    resolve_descriptor,
)
from presetarr.store.memory import InMemoryConfigStore


def _tree(*settings):
    return AdminCategory(
        name="root",
        children=[AdminSettingPage(name="page", settings=list(settings))],
    )


class TestResolveDescriptor:
    """Each declared setting resolves to exactly one descriptor class."""

    def test_component_pair_wins(self):
        declared = AdminSetting(name="bloglevel", setting_class="admin_setting_bloglevel", component="core", type="select")
        assert resolve_descriptor(declared) is BlogLevelSetting

    def test_component_pair_needs_matching_component(self):
        declared = AdminSetting(
            name="bloglevel", plugin="local_other", setting_class="admin_setting_bloglevel", type="select"
        )
        assert resolve_descriptor(declared) is ConfigSelect

    def test_mapped_class(self):
        declared = AdminSetting(name="smtppass", setting_class="admin_setting_configpasswordunmask", type="text")
        assert resolve_descriptor(declared) is ConfigPassword

    def test_mapped_class_with_facet(self):
        declared = AdminSetting(name="maxanswers", setting_class="admin_setting_configtext_with_advanced")
        assert resolve_descriptor(declared) is ConfigTextWithAdvanced

    def test_primitive_type(self):
        declared = AdminSetting(name="flag", setting_class="admin_setting_unknown", type="checkbox")
        assert resolve_descriptor(declared) is ConfigCheckbox

    def test_fallback_for_unknown_class_and_type(self):
        declared = AdminSetting(name="odd", setting_class="admin_setting_unknown", type="custom")
        assert resolve_descriptor(declared) is PresetSetting

    def test_custom_chain(self):
        declared = AdminSetting(name="maxanswers", setting_class="admin_setting_configtext_with_advanced")
        chain = [PrimitiveTypeResolver(), MappedClassResolver(), FallbackResolver()]
        assert resolve_descriptor(declared, chain) is ConfigText

    def test_empty_chain_falls_back(self):
        declared = AdminSetting(name="odd", type="custom")
        assert resolve_descriptor(declared, [MappedClassResolver(table={})]) is PresetSetting


class TestSiteSettings:
    """Snapshot of the live site."""

    async def test_stock_tree_snapshot(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()

        assert lookup(site, "none", "usecomments").value == "1"
        assert lookup(site, "mod_lesson", "maxanswers").value == "5"
        assert isinstance(lookup(site, "none", "bloglevel"), BlogLevelSetting)
        assert isinstance(lookup(site, "quiz", "navmethod"), ConfigSelectWithLock)
        assert isinstance(lookup(site, "none", "h5plibraryhandler"), HandlerSelectSetting)

    async def test_defaults_used_for_unset_values(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()

        assert lookup(site, "none", "navcourselimit").value == "10"
        assert lookup(site, "mod_lesson", "mediawidth").value == "640"
        assert lookup(site, "quiz", "navmethod").value == "free"

    async def test_facet_defaults(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()

        assert lookup(site, "mod_lesson", "maxanswers").facet_values == {"advanced": "1"}
        assert lookup(site, "quiz", "navmethod").facet_values == {"locked": "0"}
        assert lookup(site, "quiz", "shuffleanswers").facet_values == {"advanced": "0"}

    async def test_stored_facet_overrides_default(self, memory_store):
        memory_store.values[("mod_lesson", "maxanswers_adv")] = "0"
        site = await SettingRegistry(memory_store).get_site_settings()

        assert lookup(site, "mod_lesson", "maxanswers").facet_values == {"advanced": "0"}

    async def test_disabled_plugin_settings_left_out(self):
        plugins = [plugin for plugin in DEFAULT_PLUGINS if plugin[:2] != ("mod", "lesson")]
        store = InMemoryConfigStore(plugins=plugins + [("mod", "lesson", 0)])
        site = await SettingRegistry(store).get_site_settings()

        assert lookup(site, "mod_lesson", "maxanswers") is None
        assert "mod_lesson" not in site
        assert lookup(site, "none", "usecomments") is not None

    async def test_uninstalled_plugin_scope_counts_as_enabled(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()

        assert lookup(site, "core_competency", "enabled") is not None
        assert lookup(site, "tool_dataprivacy", "showdataretentionsummary") is not None

    async def test_malformed_nodes_skipped(self):
        tree = AdminCategory(
            name="root",
            children=[
                {"name": "not-a-node"},
                AdminSettingPage(
                    name="page",
                    settings=["bogus", AdminSetting(name=""), AdminSetting(name="kept", type="text", default="x")],
                ),
            ],
        )
        site = await SettingRegistry(InMemoryConfigStore(tree=tree)).get_site_settings()

        assert [setting.id for _, _, setting in iter_settings(site)] == ["kept@@none"]

    async def test_duplicate_keeps_first(self):
        tree = _tree(
            AdminSetting(name="dup", type="text", default="first"),
            AdminSetting(name="dup", type="checkbox", default=1),
        )
        site = await SettingRegistry(InMemoryConfigStore(tree=tree)).get_site_settings()

        setting = lookup(site, "none", "dup")
        assert isinstance(setting, ConfigText)
        assert setting.value == "first"

    async def test_snapshot_preserves_tree_order(self):
        tree = _tree(
            AdminSetting(name="b", type="text"),
            AdminSetting(name="a", type="text"),
            AdminSetting(name="c", plugin="mod_x", type="text"),
        )
        site = await SettingRegistry(InMemoryConfigStore(tree=tree)).get_site_settings()

        assert [(scope, name) for scope, name, _ in iter_settings(site)] == [
            ("none", "b"),
            ("none", "a"),
            ("mod_x", "c"),
        ]


class TestPresetSettings:
    """Preset items wrapped in the descriptors of the live settings."""

    async def test_get_setting_maps_attributes(self, memory_store):
        registry = SettingRegistry(memory_store)
        site = await registry.get_site_settings()
        live = lookup(site, "mod_lesson", "maxanswers")

        wanted = registry.get_setting(live, "2", {"maxanswers_adv": "0", "unknown_attr": "1"})

        assert isinstance(wanted, ConfigTextWithAdvanced)
        assert wanted.value == "2"
        assert wanted.facet_values == {"advanced": "0"}

    async def test_get_preset_settings_splits_not_applicable(self, memory_store, presets):
        registry = SettingRegistry(memory_store)
        preset = await presets.create_preset(name="Mixed")
        await presets.add_item(preset, "usecomments", "0")
        await presets.add_item(preset, "nosuchsetting", "1")
        await presets.add_item(preset, "maxanswers", "3", "mod_lesson")

        preset_settings, not_applicable = await registry.get_preset_settings(preset.items)

        assert lookup(preset_settings, "none", "usecomments").value == "0"
        assert lookup(preset_settings, "mod_lesson", "maxanswers").value == "3"
        assert [item.name for item in not_applicable] == ["nosuchsetting"]
