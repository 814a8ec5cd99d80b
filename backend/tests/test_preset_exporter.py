"""Tests for preset export and import."""
import pytest
import yaml

from presetarr.config import settings
from presetarr.services.preset_exporter import PresetExporter, document_to_xml, document_to_yaml, parse_xml
from presetarr.services.preset_store import PresetDocument, PresetItemDocument, PresetPluginDocument
from presetarr.utils.errors import InvalidPresetError


def _document():
    return PresetDocument(
        name="Round trip",
        comments="Two settings",
        author="Admin",
        site="https://example.org",
        release="4.0",
        time_created=1700000000,
        items=[
            PresetItemDocument(scope="none", name="usecomments", value="0"),
            PresetItemDocument(scope="mod_lesson", name="maxanswers", value="2", attributes={"maxanswers_adv": "1"}),
        ],
        plugins=[PresetPluginDocument(plugin_type="mod", name="chat", enabled=0)],
    )


class TestXml:
    """XML serialization."""

    def test_round_trip(self):
        document = _document()
        assert parse_xml(document_to_xml(document)) == document

    def test_layout(self):
        xml = document_to_xml(_document())

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<NAME>Round trip</NAME>" in xml
        assert '<MAXANSWERS maxanswers_adv="1">2</MAXANSWERS>' in xml
        assert "<MOD_LESSON>" in xml
        assert "<CHAT>0</CHAT>" in xml

    def test_scope_with_slash(self):
        document = PresetDocument(
            name="Slashes",
            items=[PresetItemDocument(scope="tool/dataprivacy", name="setting", value="1")],
        )
        xml = document_to_xml(document)

        assert "<TOOL__DATAPRIVACY>" in xml
        assert parse_xml(xml).items[0].scope == "tool/dataprivacy"

    def test_parse_sample(self, sample_xml):
        document = parse_xml(sample_xml)

        assert document.name == "Imported"
        assert document.time_created == 1700000000
        assert [(item.scope, item.name, item.value) for item in document.items] == [
            ("none", "usecomments", "0"),
            ("none", "nosuchsetting", "1"),
            ("mod_lesson", "maxanswers", "2"),
        ]
        assert document.items[2].attributes == {"maxanswers_adv": "0", "maxanswers_locked": "1"}
        assert [(plugin.name, plugin.enabled) for plugin in document.plugins] == [("chat", 1)]

    @pytest.mark.parametrize(
        "content",
        [
            "not xml at all",
            "<SOMETHING><NAME>x</NAME></SOMETHING>",
            "<PRESET><COMMENTS>no name</COMMENTS></PRESET>",
        ],
    )
    def test_invalid_documents(self, content):
        with pytest.raises(InvalidPresetError):
            parse_xml(content)

    def test_yaml(self):
        data = yaml.safe_load(document_to_yaml(_document()))

        assert data["name"] == "Round trip"
        assert data["items"][1]["attributes"] == {"maxanswers_adv": "1"}
        assert data["plugins"][0] == {"plugin_type": "mod", "name": "chat", "enabled": 0}


class TestExportSite:
    """Creating presets from the live site."""

    async def test_exports_every_setting(self, db_session, memory_store):
        exporter = PresetExporter(db_session, memory_store)

        preset = await exporter.export_site("Snapshot", comments="All of it", author="Admin", user_id=3)

        items = {(item.scope, item.name): item for item in preset.items}
        assert items[("none", "usecomments")].value == "1"
        assert items[("mod_lesson", "maxanswers")].value == "5"
        assert items[("mod_lesson", "maxanswers")].attribute_values() == {"maxanswers_adv": "1"}
        assert preset.site == settings.site_url
        assert preset.release == settings.release
        assert preset.user_id == 3

    async def test_sensitive_settings_skipped(self, db_session, memory_store):
        memory_store.values[("none", "smtppass")] = "hunter2"
        exporter = PresetExporter(db_session, memory_store, exclusions={("none", "smtppass")})

        preset = await exporter.export_site("No secrets")
        assert ("none", "smtppass") not in {(item.scope, item.name) for item in preset.items}

        preset = await exporter.export_site("With secrets", include_sensitive=True)
        assert ("none", "smtppass") in {(item.scope, item.name) for item in preset.items}

    async def test_selected_subset(self, db_session, memory_store):
        exporter = PresetExporter(db_session, memory_store)

        preset = await exporter.export_site("Subset", selected=["usecomments@@none", "maxanswers@@mod_lesson", "x@@y"])

        assert [item.name for item in preset.items] == ["usecomments", "maxanswers"]

    async def test_empty_export_rejected(self, db_session, memory_store, presets):
        exporter = PresetExporter(db_session, memory_store)

        with pytest.raises(InvalidPresetError):
            await exporter.export_site("Nothing", selected=["x@@y"])

        assert await presets.list_presets() == []

    async def test_exported_preset_applies_as_noop(self, db_session, memory_store, locks):
        from presetarr.services.preset_loader import PresetLoader

        preset = await PresetExporter(db_session, memory_store).export_site("Snapshot")
        report = await PresetLoader(db_session, memory_store, locks).apply(preset.id)

        assert report.applied == []
        assert report.failed == []


class TestImport:
    """Storing documents from other sites."""

    async def test_import_xml(self, db_session, memory_store, sample_xml):
        exporter = PresetExporter(db_session, memory_store)

        preset = await exporter.import_xml(sample_xml, user_id=4)

        assert preset.name == "Imported"
        assert preset.site == "https://other.example.org"
        assert preset.time_imported > 0
        assert [(item.scope, item.name) for item in preset.items] == [("none", "usecomments"), ("mod_lesson", "maxanswers")]
        assert preset.items[1].attribute_values() == {"maxanswers_adv": "0"}
        assert [(plugin.name, plugin.enabled) for plugin in preset.plugins] == [("chat", 1)]

    async def test_import_name_override(self, db_session, memory_store, sample_xml):
        preset = await PresetExporter(db_session, memory_store).import_xml(sample_xml, name="Renamed")
        assert preset.name == "Renamed"

    async def test_import_without_known_settings(self, db_session, memory_store):
        document = PresetDocument(name="Foreign", items=[PresetItemDocument(name="nosuchsetting", value="1")])

        with pytest.raises(InvalidPresetError):
            await PresetExporter(db_session, memory_store).import_document(document)
