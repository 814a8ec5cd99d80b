"""Tests for the settings tree shown on selection screens."""
from presetarr.admin_tree import AdminCategory, AdminSetting, AdminSettingPage
from presetarr.services.setting_registry import SettingRegistry
from presetarr.services.settings_tree import build_tree, count_settings, flatten_tree
from presetarr.store.memory import InMemoryConfigStore


def _ids(nodes):
    return [node.id for node in nodes]


class TestBuildTree:
    """Building and pruning the tree."""

    async def test_stock_tree(self, memory_store, admin_tree):
        site = await SettingRegistry(memory_store).get_site_settings()

        tree = build_tree(admin_tree, site)

        assert _ids(tree) == ["development", "appearance", "server", "privacy", "h5p", "modules"]
        assert all(node.parent is None for node in tree)
        assert count_settings(tree) == sum(len(named) for named in site.values())

    async def test_empty_category_pruned(self, memory_store, admin_tree):
        site = await SettingRegistry(memory_store).get_site_settings()

        modules = build_tree(admin_tree, site)[-1]

        assert _ids(modules.children) == ["modsettings"]

    async def test_pruning_cascades_upwards(self, memory_store, admin_tree, presets):
        registry = SettingRegistry(memory_store)
        preset = await presets.create_preset(name="Only comments")
        await presets.add_item(preset, "usecomments", "0")
        preset_settings, _ = await registry.get_preset_settings(preset.items)

        tree = build_tree(admin_tree, preset_settings)

        assert _ids(tree) == ["development"]
        page = tree[0].children[0]
        assert page.id == "optionalsubsystems"
        assert page.parent == "development"
        assert [(node.id, node.kind, node.value) for node in page.children] == [
            ("usecomments@@none", "setting", "0")
        ]

    async def test_disabled_plugin_page_pruned(self):
        tree = AdminCategory(
            name="root",
            children=[
                AdminCategory(
                    name="modules",
                    children=[
                        AdminSettingPage(
                            name="modsettinglesson",
                            settings=[AdminSetting(name="maxanswers", plugin="mod_lesson", type="text")],
                        ),
                        AdminSettingPage(name="general", settings=[AdminSetting(name="usetags", type="checkbox")]),
                    ],
                )
            ],
        )
        store = InMemoryConfigStore(tree=tree, plugins=[("mod", "lesson", 0)])
        site = await SettingRegistry(store).get_site_settings()

        built = build_tree(tree, site)

        assert _ids(built[0].children) == ["general"]

    def test_nothing_to_show(self, admin_tree):
        assert build_tree(admin_tree, {}) == []


class TestFlattenTree:
    """Parallel list view of the tree."""

    async def test_parallel_lists(self, memory_store, admin_tree, presets):
        registry = SettingRegistry(memory_store)
        preset = await presets.create_preset(name="Two settings")
        await presets.add_item(preset, "usecomments", "0")
        await presets.add_item(preset, "maxanswers", "2", "mod_lesson", {"maxanswers_adv": "1"})
        preset_settings, _ = await registry.get_preset_settings(preset.items)

        view = flatten_tree(build_tree(admin_tree, preset_settings))

        assert view.ids == [
            "development",
            "optionalsubsystems",
            "usecomments@@none",
            "modules",
            "modsettings",
            "modsettinglesson",
            "maxanswers@@mod_lesson",
        ]
        assert view.parents == [
            None,
            "development",
            "optionalsubsystems",
            None,
            "modules",
            "modsettings",
            "modsettinglesson",
        ]
        assert view.nodes[2] == "No"
        assert view.nodes[6] == "2 (advanced)"
        assert view.labels[2] == "Enable comments"
        assert len(view.descriptions) == len(view.ids)
