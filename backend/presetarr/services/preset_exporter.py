"""
Preset export and import.

Exporting builds a preset from the current values of the live site.
Presets travel between sites as XML documents:

<PRESET>
    <NAME>...</NAME> <COMMENTS>...</COMMENTS> <PRESET_DATE>...</PRESET_DATE>
    <SITE_URL>...</SITE_URL> <AUTHOR>...</AUTHOR> <RELEASE>...</RELEASE>
    <ADMIN_SETTINGS>
        <MOD_LESSON>
            <SETTINGS>
                <MAXANSWERS maxanswers_adv="1">5</MAXANSWERS>
            </SETTINGS>
        </MOD_LESSON>
    </ADMIN_SETTINGS>
    <PLUGINS>
        <MOD><CHAT>0</CHAT></MOD>
    </PLUGINS>
</PRESET>

Tags are uppercased on export and lowercased on import; slashes in scopes
are written as "__". The same document can also be rendered as YAML.
"""
import time
from typing import Iterable, Optional, Set, Tuple
from xml.etree import ElementTree

import yaml
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.config import settings
from presetarr.constants import PRESET_XML_FIELDS, XML_SCOPE_SLASH
from presetarr.models import Preset
from presetarr.services.preset_store import (
    PresetDocument,
    PresetItemDocument,
    PresetPluginDocument,
    PresetStore,
)
from presetarr.services.setting_registry import SettingRegistry, iter_settings, lookup
from presetarr.store.base import ConfigStore
from presetarr.utils.errors import InvalidPresetError

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _scope_tag(scope: str) -> str:
    return scope.replace("/", XML_SCOPE_SLASH).upper()


def _tag_scope(tag: str) -> str:
    return tag.lower().replace(XML_SCOPE_SLASH, "/")


def document_to_xml(document: PresetDocument) -> str:
    """Serialize a preset document to XML."""
    root = ElementTree.Element("PRESET")
    for field, tag in PRESET_XML_FIELDS.items():
        value = getattr(document, field)
        ElementTree.SubElement(root, tag).text = "" if value is None else str(value)

    admin_settings = ElementTree.SubElement(root, "ADMIN_SETTINGS")
    scopes = {}
    for item in document.items:
        if item.scope not in scopes:
            scope_element = ElementTree.SubElement(admin_settings, _scope_tag(item.scope))
            scopes[item.scope] = ElementTree.SubElement(scope_element, "SETTINGS")
        setting = ElementTree.SubElement(
            scopes[item.scope],
            item.name.upper(),
            {name: "" if value is None else value for name, value in item.attributes.items()},
        )
        setting.text = "" if item.value is None else item.value

    if document.plugins:
        plugins = ElementTree.SubElement(root, "PLUGINS")
        types = {}
        for plugin in document.plugins:
            if plugin.plugin_type not in types:
                types[plugin.plugin_type] = ElementTree.SubElement(plugins, plugin.plugin_type.upper())
            ElementTree.SubElement(types[plugin.plugin_type], plugin.name.upper()).text = str(plugin.enabled)

    ElementTree.indent(root)
    return XML_DECLARATION + ElementTree.tostring(root, encoding="unicode")


def parse_xml(content: str) -> PresetDocument:
    """
    Parse an XML preset into a draft document.

    Raises:
        InvalidPresetError: If the content is not a preset document
    """
    try:
        root = ElementTree.fromstring(content)
    except ElementTree.ParseError as e:
        logger.error(f"Failed to parse preset XML: {e}")
        raise InvalidPresetError(f"Preset file is not valid XML: {e}")

    if root.tag != "PRESET":
        raise InvalidPresetError(f"Unexpected root element <{root.tag}>, expected <PRESET>")

    fields = {}
    for field, tag in PRESET_XML_FIELDS.items():
        element = root.find(tag)
        fields[field] = element.text if element is not None and element.text else None
    if not fields["name"]:
        raise InvalidPresetError("Preset file has no name")

    time_created = None
    if fields.pop("time_created"):
        try:
            time_created = int(root.find(PRESET_XML_FIELDS["time_created"]).text)
        except ValueError:
            logger.warning("Ignoring invalid PRESET_DATE in preset file")

    document = PresetDocument(time_created=time_created, **fields)

    admin_settings = root.find("ADMIN_SETTINGS")
    if admin_settings is not None:
        for scope_element in admin_settings:
            scope = _tag_scope(scope_element.tag)
            for setting in scope_element.iterfind("SETTINGS/*"):
                document.items.append(
                    PresetItemDocument(
                        scope=scope,
                        name=setting.tag.lower(),
                        value=setting.text or "",
                        attributes={name.lower(): value for name, value in setting.attrib.items()},
                    )
                )

    plugins = root.find("PLUGINS")
    if plugins is not None:
        for type_element in plugins:
            for plugin in type_element:
                try:
                    enabled = int((plugin.text or "").strip())
                except ValueError:
                    logger.warning(f"Ignoring plugin {plugin.tag.lower()} with invalid state {plugin.text!r}")
                    continue
                document.plugins.append(
                    PresetPluginDocument(
                        plugin_type=type_element.tag.lower(),
                        name=plugin.tag.lower(),
                        enabled=enabled,
                    )
                )

    return document


def document_to_yaml(document: PresetDocument) -> str:
    return yaml.dump(document.model_dump(), default_flow_style=False, sort_keys=False, allow_unicode=True)


class PresetExporter:
    """Creates presets from the live site and from imported documents."""

    def __init__(
        self,
        db: AsyncSession,
        store: ConfigStore,
        exclusions: Optional[Set[Tuple[str, str]]] = None,
        registry: Optional[SettingRegistry] = None,
    ):
        self.db = db
        self.store = store
        self.exclusions = exclusions or set()
        self.registry = registry or SettingRegistry(store)
        self.presets = PresetStore(db)

    async def export_site(
        self,
        name: str,
        comments: Optional[str] = None,
        author: Optional[str] = None,
        user_id: Optional[int] = None,
        selected: Optional[Iterable[str]] = None,
        include_sensitive: bool = False,
    ) -> Preset:
        """
        Store the current site settings as a new preset.

        Args:
            name: Preset name
            comments: Free text description
            author: Display name of the author
            user_id: User creating the preset
            selected: name@@scope ids to include; every setting when omitted.
                Ids that do not exist on the site are ignored.
            include_sensitive: Also export settings of the sensitive list

        Returns:
            The new preset

        Raises:
            InvalidPresetError: If no setting ended up in the preset
        """
        site_settings = await self.registry.get_site_settings()
        wanted = set(selected) if selected is not None else None

        preset = await self.presets.create_preset(
            name=name,
            comments=comments,
            author=author,
            user_id=user_id,
            site=settings.site_url,
            release=settings.release,
        )

        skipped_sensitive = 0
        for scope, setting_name, setting in iter_settings(site_settings):
            if wanted is not None and setting.id not in wanted:
                continue
            if (scope, setting_name) in self.exclusions and not include_sensitive:
                skipped_sensitive += 1
                continue
            attributes = {
                setting.facet_variable(facet): value for facet, value in setting.facet_values.items()
            }
            value = setting.value if setting.value is not None else (setting.raw_value or "")
            await self.presets.add_item(preset, setting_name, value, scope, attributes)

        if not preset.items:
            await self.presets.delete_preset(preset.id)
            raise InvalidPresetError("No settings were selected for the preset")

        logger.info(
            f"Exported {len(preset.items)} settings to preset {preset.id} "
            f"({skipped_sensitive} sensitive settings skipped)"
        )
        return preset

    async def import_document(self, document: PresetDocument, user_id: Optional[int] = None) -> Preset:
        """
        Store an imported document as a new preset.

        Settings this site does not have, and attributes they do not
        support, are dropped.

        Raises:
            InvalidPresetError: If none of the document's settings exist here
        """
        site_settings = await self.registry.get_site_settings()

        kept = []
        for item in document.items:
            live = lookup(site_settings, item.scope, item.name)
            if live is None:
                logger.debug(f"Import: {item.name}@@{item.scope} does not exist on this site")
                continue
            attributes = {
                variable: value
                for variable, value in item.attributes.items()
                if live.facet_for_variable(variable) is not None
            }
            kept.append(item.model_copy(update={"attributes": attributes}))

        if not kept:
            raise InvalidPresetError("The preset file contains no settings known to this site")

        draft = document.model_copy(update={"items": kept})
        preset = await self.presets.save_document(draft, user_id=user_id, time_imported=int(time.time()))
        logger.info(
            f"Imported preset {preset.id} '{preset.name}': {len(kept)} settings, "
            f"{len(document.items) - len(kept)} not supported here"
        )
        return preset

    async def import_xml(self, content: str, user_id: Optional[int] = None, name: Optional[str] = None) -> Preset:
        document = parse_xml(content)
        if name:
            document.name = name
        return await self.import_document(document, user_id=user_id)
