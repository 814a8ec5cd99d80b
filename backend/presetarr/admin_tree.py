"""
Declared admin configuration tree.

The live site declares its options as categories containing setting pages
containing settings. Each setting names the class implementing it on the
site and its primitive type; the registry picks a descriptor from those.
"""
from typing import Any, Dict, Iterator, List, Optional, Union
from pydantic import BaseModel, Field

from presetarr.constants import NONE_SCOPE

DefaultValue = Union[str, int, float, bool, Dict[str, Any], None]


class AdminSetting(BaseModel):
    """One leaf option of the admin tree."""

    name: str
    plugin: Optional[str] = None  # None for global options
    setting_class: str = "admin_setting_configtext"
    type: str = "text"  # text, textarea, password, checkbox, select, multiselect, multicheckbox
    visible_name: str = ""
    description: str = ""
    default: DefaultValue = None
    choices: Optional[Dict[str, str]] = None
    param_type: Optional[str] = None  # "int" or "float" for numeric text settings
    handler_type: Optional[str] = None  # Plugin type whose enabled plugins are the choices
    component: Optional[str] = None  # Component owning setting_class, if not the plugin

    @property
    def scope(self) -> str:
        return self.plugin or NONE_SCOPE

    @property
    def owning_component(self) -> str:
        return self.component or self.plugin or "core"


class AdminSettingPage(BaseModel):
    """A page of settings."""

    name: str
    visible_name: str = ""
    settings: List[Any] = Field(default_factory=list)


class AdminCategory(BaseModel):
    """A category holding pages and further categories."""

    name: str
    visible_name: str = ""
    children: List[Any] = Field(default_factory=list)

    def iter_pages(self) -> Iterator[AdminSettingPage]:
        """Every page below this category, depth first in declared order."""
        for child in self.children:
            if isinstance(child, AdminCategory):
                yield from child.iter_pages()
            elif isinstance(child, AdminSettingPage):
                yield child

    def find_setting(self, scope: str, name: str) -> Optional[AdminSetting]:
        for page in self.iter_pages():
            for setting in page.settings:
                if isinstance(setting, AdminSetting) and setting.scope == scope and setting.name == name:
                    return setting
        return None


def _checkbox(name: str, label: str, default: int = 1, plugin: Optional[str] = None) -> AdminSetting:
    return AdminSetting(
        name=name,
        plugin=plugin,
        setting_class="admin_setting_configcheckbox",
        type="checkbox",
        visible_name=label,
        default=default,
    )


def build_default_tree() -> AdminCategory:
    """Admin tree of a stock site."""
    optional_subsystems = AdminSettingPage(
        name="optionalsubsystems",
        visible_name="Advanced features",
        settings=[
            _checkbox("usecomments", "Enable comments"),
            _checkbox("usetags", "Enable tags functionality"),
            _checkbox("enablenotes", "Enable notes"),
            _checkbox("enableblogs", "Enable blogs"),
            _checkbox("enablebadges", "Enable badges"),
            _checkbox("enableanalytics", "Analytics"),
            _checkbox("enabled", "Enable competencies", plugin="core_competency"),
            AdminSetting(
                name="enablemobilewebservice",
                setting_class="admin_setting_enablemobileservice",
                type="checkbox",
                visible_name="Enable web services for mobile devices",
                default=0,
            ),
        ],
    )
    blog = AdminSettingPage(
        name="blog",
        visible_name="Blog",
        settings=[
            AdminSetting(
                name="bloglevel",
                setting_class="admin_setting_bloglevel",
                component="core",
                type="select",
                visible_name="Blog visibility",
                default="4",
                choices={"5": "All site users", "4": "Users on this site", "1": "Yourself", "0": "Disabled"},
            ),
        ],
    )
    navigation = AdminSettingPage(
        name="navigation",
        visible_name="Navigation",
        settings=[
            AdminSetting(
                name="customusermenuitems",
                setting_class="admin_setting_configtextarea",
                type="textarea",
                visible_name="User menu items",
                default="profile,moodle|/user/profile.php\npreferences,moodle|/user/preferences.php",
            ),
            AdminSetting(
                name="navcourselimit",
                setting_class="admin_setting_configtext",
                type="text",
                visible_name="Course limit",
                default=10,
                param_type="int",
            ),
        ],
    )
    theme = AdminSettingPage(
        name="themesettings",
        visible_name="Theme settings",
        settings=[
            AdminSetting(
                name="themedesignermode",
                setting_class="admin_setting_configcheckbox",
                type="checkbox",
                visible_name="Theme designer mode",
                default=0,
            ),
            AdminSetting(
                name="brandcolor",
                plugin="theme_boost",
                setting_class="admin_setting_configcolourpicker",
                type="custom",
                visible_name="Brand colour",
                default="",
            ),
        ],
    )
    server = AdminCategory(
        name="server",
        visible_name="Server",
        children=[
            AdminSettingPage(
                name="outgoingmailconfig",
                visible_name="Outgoing mail configuration",
                settings=[
                    AdminSetting(name="smtphosts", visible_name="SMTP hosts", default=""),
                    AdminSetting(name="smtpuser", visible_name="SMTP username", default=""),
                    AdminSetting(
                        name="smtppass",
                        setting_class="admin_setting_configpasswordunmask",
                        type="password",
                        visible_name="SMTP password",
                        default="",
                    ),
                ],
            ),
            AdminSettingPage(
                name="debugging",
                visible_name="Debugging",
                settings=[
                    AdminSetting(
                        name="debug",
                        setting_class="admin_setting_special_debug",
                        type="custom",
                        visible_name="Debug messages",
                        default="0",
                        choices={"0": "NONE", "5": "MINIMAL", "15": "NORMAL", "32767": "DEVELOPER"},
                    ),
                ],
            ),
        ],
    )
    privacy = AdminSettingPage(
        name="privacysettings",
        visible_name="Privacy settings",
        settings=[
            _checkbox("showdataretentionsummary", "Show data retention summary", plugin="tool_dataprivacy"),
            AdminSetting(
                name="contactdataprotectionofficer",
                plugin="tool_dataprivacy",
                setting_class="admin_setting_configcheckbox",
                type="checkbox",
                visible_name="Contact the privacy officer",
                default=0,
            ),
        ],
    )
    h5p = AdminSettingPage(
        name="h5psettings",
        visible_name="H5P settings",
        settings=[
            AdminSetting(
                name="h5plibraryhandler",
                setting_class="admin_settings_h5plib_handler_select",
                component="core_h5p",
                type="select",
                visible_name="H5P framework handler",
                default="h5plib_v124",
                handler_type="h5plib",
            ),
        ],
    )
    modules = AdminCategory(
        name="modsettings",
        visible_name="Activity modules",
        children=[
            AdminSettingPage(
                name="modsettingforum",
                visible_name="Forum",
                settings=[
                    AdminSetting(
                        name="forum_maxattachments",
                        setting_class="admin_setting_configtext",
                        type="text",
                        visible_name="Maximum number of attachments",
                        default=9,
                        param_type="int",
                    ),
                ],
            ),
            AdminSettingPage(
                name="modsettinglesson",
                visible_name="Lesson",
                settings=[
                    AdminSetting(
                        name="maxanswers",
                        plugin="mod_lesson",
                        setting_class="admin_setting_configtext_with_advanced",
                        type="text",
                        visible_name="Maximum number of answers",
                        default={"value": 5, "adv": True},
                        param_type="int",
                    ),
                    AdminSetting(
                        name="mediawidth",
                        plugin="mod_lesson",
                        setting_class="admin_setting_configtext",
                        type="text",
                        visible_name="Popup window width",
                        default=640,
                        param_type="int",
                    ),
                ],
            ),
            AdminSettingPage(
                name="modsettingquiz",
                visible_name="Quiz",
                settings=[
                    AdminSetting(
                        name="password",
                        plugin="quiz",
                        setting_class="admin_setting_configtext_with_advanced",
                        type="text",
                        visible_name="Require password",
                        default={"value": "", "adv": True},
                    ),
                    AdminSetting(
                        name="navmethod",
                        plugin="quiz",
                        setting_class="admin_setting_configselect_with_lock",
                        type="select",
                        visible_name="Navigation method",
                        default={"value": "free", "locked": False, "adv": True},
                        choices={"free": "Free", "sequential": "Sequential"},
                    ),
                    AdminSetting(
                        name="shuffleanswers",
                        plugin="quiz",
                        setting_class="admin_setting_configcheckbox_with_advanced",
                        type="checkbox",
                        visible_name="Shuffle within questions",
                        default={"value": 1, "adv": False},
                    ),
                    AdminSetting(
                        name="reviewoptions",
                        plugin="quiz",
                        setting_class="admin_setting_configmulticheckbox",
                        type="multicheckbox",
                        visible_name="Review options",
                        default="attempt,correctness",
                        choices={"attempt": "The attempt", "correctness": "Whether correct", "marks": "Marks"},
                    ),
                ],
            ),
        ],
    )
    return AdminCategory(
        name="root",
        visible_name="Site administration",
        children=[
            AdminCategory(name="development", visible_name="Development", children=[optional_subsystems]),
            AdminCategory(name="appearance", visible_name="Appearance", children=[blog, navigation, theme]),
            server,
            AdminCategory(name="privacy", visible_name="Privacy", children=[privacy]),
            AdminCategory(name="h5p", visible_name="H5P", children=[h5p]),
            AdminCategory(
                name="modules",
                visible_name="Plugins",
                children=[modules, AdminCategory(name="localplugins", visible_name="Local plugins")],
            ),
        ],
    )


# Plugins installed on a stock site, (plugin_type, name, enabled)
DEFAULT_PLUGINS = [
    ("mod", "lesson", 1),
    ("mod", "quiz", 1),
    ("mod", "forum", 1),
    ("mod", "chat", 0),
    ("h5plib", "v124", 1),
    ("h5plib", "v126", 1),
    ("block", "blog_menu", 1),
    ("theme", "boost", 1),
]
