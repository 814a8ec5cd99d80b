"""Tests for setting descriptors: cleaning, comparison and side effects."""
import pytest

from presetarr.admin_tree import AdminSetting
from presetarr.services.setting_registry import SettingRegistry, lookup
from presetarr.settings import (
    ConfigCheckbox,
    ConfigMultiCheckbox,
    ConfigPassword,
    ConfigSelect,
    ConfigText,
    ConfigTextarea,
    PresetSetting,
)
from presetarr.settings.base import default_value, flag_value, values_are_different


def _text(value, param_type=None):
    return ConfigText(AdminSetting(name="t", param_type=param_type), value)


class TestHelpers:
    """Serialization helpers shared by all descriptors."""

    def test_default_value_of_dict_default(self):
        declared = AdminSetting(name="maxanswers", default={"value": 5, "adv": True})
        assert default_value(declared) == "5"

    def test_default_value_of_missing_default(self):
        assert default_value(AdminSetting(name="x")) == ""

    def test_bool_default_serialized_as_flag(self):
        assert default_value(AdminSetting(name="x", default=True)) == "1"

    @pytest.mark.parametrize("value", ["", "0", "false", "No", " off "])
    def test_flag_value_false(self, value):
        assert flag_value(value) == "0"

    def test_values_are_different_numeric(self):
        assert values_are_different("60", "60.0") is False
        assert values_are_different("60", "61") is True
        assert values_are_different(None, "") is True


class TestConfigText:
    """Text settings, numeric when declared so."""

    def test_plain_text_kept(self):
        assert _text(" some text ").value == " some text "

    def test_int_normalized(self):
        assert _text("2.0", "int").value == "2"

    def test_int_rejects_fraction(self):
        setting = _text("2.5", "int")
        assert setting.value is None
        assert setting.is_valid() is False

    def test_int_rejects_garbage(self):
        assert _text("many", "int").is_valid() is False

    def test_numeric_equality(self):
        assert _text("1", "float").equals("1.0") is True
        assert _text("1", "float").equals("1.5") is False

    def test_text_equality_is_exact(self):
        assert _text("1").equals("1.0") is False

    def test_none_is_valid(self):
        assert _text(None, "int").is_valid() is True

    def test_textarea_ignores_line_endings(self):
        setting = ConfigTextarea(AdminSetting(name="menu", type="textarea"), "a\r\nb")
        assert setting.equals("a\nb") is True

    def test_password_hidden(self):
        setting = ConfigPassword(AdminSetting(name="smtppass", type="password"), "hunter2")
        assert setting.visible_value == "********"
        assert setting.value == "hunter2"


class TestConfigCheckbox:
    """Boolean settings."""

    @pytest.mark.parametrize("raw,expected", [("1", "1"), ("true", "1"), ("0", "0"), ("", "0"), (True, "1")])
    def test_normalized(self, raw, expected):
        assert ConfigCheckbox(AdminSetting(name="c", type="checkbox"), raw).value == expected

    def test_equals_normalizes_other(self):
        setting = ConfigCheckbox(AdminSetting(name="c", type="checkbox"), "1")
        assert setting.equals("yes") is True
        assert setting.equals("0") is False

    def test_visible_value(self):
        assert ConfigCheckbox(AdminSetting(name="c", type="checkbox"), "0").visible_value == "No"


class TestConfigSelect:
    """Select settings validate against their choices."""

    def _debug(self, value):
        declared = AdminSetting(
            name="debug",
            type="select",
            choices={"0": "NONE", "5": "MINIMAL", "32767": "DEVELOPER"},
        )
        return ConfigSelect(declared, value)

    def test_known_choice(self):
        setting = self._debug("5")
        assert setting.value == "5"
        assert setting.visible_value == "MINIMAL"

    def test_unknown_choice_rejected(self):
        setting = self._debug("7")
        assert setting.value is None
        assert setting.is_valid() is False

    def test_with_value_keeps_choices(self):
        setting = self._debug("0")
        assert setting.with_value("32767").value == "32767"
        assert setting.with_value("1").value is None

    def test_multicheckbox_compares_as_set(self):
        declared = AdminSetting(
            name="reviewoptions",
            type="multicheckbox",
            choices={"attempt": "The attempt", "correctness": "Whether correct", "marks": "Marks"},
        )
        setting = ConfigMultiCheckbox(declared, "attempt, correctness")
        assert setting.value == "attempt,correctness"
        assert setting.equals("correctness,attempt") is True
        assert setting.equals("attempt") is False
        assert setting.with_value("attempt,bogus").value is None


class TestOpaqueSetting:
    """The fallback descriptor stores raw values."""

    def test_string_comparison(self):
        setting = PresetSetting(AdminSetting(name="odd", type="custom"), "1")
        assert setting.equals("1") is True
        assert setting.equals("1.0") is False
        assert setting.is_valid() is True

    def test_identity(self):
        setting = PresetSetting(AdminSetting(name="brandcolor", plugin="theme_boost", type="custom"), "#fff")
        assert setting.id == "brandcolor@@theme_boost"
        assert setting.scope == "theme_boost"


class TestFacets:
    """Secondary facets such as the advanced flag."""

    async def test_facet_variable_names(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()
        maxanswers = lookup(site, "mod_lesson", "maxanswers")
        navmethod = lookup(site, "quiz", "navmethod")

        assert maxanswers.facet_variable("advanced") == "maxanswers_adv"
        assert maxanswers.facet_for_variable("maxanswers_adv") == "advanced"
        assert maxanswers.facet_for_variable("maxanswers_locked") is None
        assert navmethod.facet_variable("locked") == "navmethod_locked"

    async def test_visible_value_marks_facets(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()

        assert lookup(site, "mod_lesson", "maxanswers").visible_value == "5 (advanced)"

    async def test_write_facet_stores_variable(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()
        maxanswers = lookup(site, "mod_lesson", "maxanswers")

        change = await maxanswers.write_facet(memory_store, "advanced", "0")

        assert change.name == "maxanswers_adv"
        assert memory_store.values[("mod_lesson", "maxanswers_adv")] == "0"


class TestSpecialSettings:
    """Descriptors with behaviour beyond storing a value."""

    async def test_blog_level_hides_blog_menu(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()
        bloglevel = lookup(site, "none", "bloglevel")

        await bloglevel.write(memory_store, "0")

        assert memory_store.values[("none", "bloglevel")] == "0"
        assert await memory_store.get_component_visible("blog_menu") is False

        await bloglevel.write(memory_store, "5")
        assert await memory_store.get_component_visible("blog_menu") is True

    async def test_handler_choices_are_enabled_plugins(self, memory_store):
        site = await SettingRegistry(memory_store).get_site_settings()
        handler = lookup(site, "none", "h5plibraryhandler")

        assert handler.enumerate_choices() == {"h5plib_v124": "v124", "h5plib_v126": "v126"}
        assert handler.value == "h5plib_v124"

    async def test_handler_of_disabled_plugin_rejected(self, memory_store):
        await memory_store.set_plugin_enabled("h5plib", "v126", 0)
        site = await SettingRegistry(memory_store).get_site_settings()
        handler = lookup(site, "none", "h5plibraryhandler")

        assert handler.enumerate_choices() == {"h5plib_v124": "v124"}
        assert handler.with_value("h5plib_v126").is_valid() is False
