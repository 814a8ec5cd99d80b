"""
Setting descriptor base class.

A descriptor wraps one configuration option with a value in it, either the
live value of the site or the value stored in a preset item. It offers the
four operations the preset engine relies on: read (value / visible_value),
write, compare and enumerate_choices. Subclasses usually override one.
"""
from typing import Any, Dict, Optional

from presetarr.admin_tree import AdminSetting
from presetarr.constants import SCOPE_SEPARATOR
from presetarr.store.base import ConfigChange, ConfigStore


def to_config_string(value: Any) -> Optional[str]:
    """Serialize a value the way the config table stores it."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def default_value(declared: AdminSetting) -> str:
    """Declared default of a setting; dict defaults carry it under 'value'."""
    default = declared.default
    if isinstance(default, dict):
        default = default.get("value", 0)
    value = to_config_string(default)
    return "" if value is None else value


def default_facet(declared: AdminSetting, key: str) -> Optional[str]:
    if isinstance(declared.default, dict) and key in declared.default:
        return to_config_string(declared.default[key])
    return None


def values_are_different(old_value: Optional[str], new_value: Optional[str]) -> bool:
    """Check if two values are actually different (handles numeric comparison)."""
    if old_value is None or new_value is None:
        return old_value != new_value
    if old_value == new_value:
        return False

    # Try numeric comparison (handles "60.0" vs "60")
    try:
        return float(old_value) != float(new_value)
    except (ValueError, TypeError):
        pass

    return old_value != new_value


def flag_value(value: Any) -> str:
    """Normalize a boolean-like value to "0" or "1"."""
    if isinstance(value, str):
        value = value.strip().lower()
        return "0" if value in ("", "0", "false", "no", "off") else "1"
    return "1" if value else "0"


class PresetSetting:
    """
    Opaque descriptor.

    Reads and writes the raw value with no validation and compares as plain
    strings. Used when nothing more specific is known about a setting.
    """

    # Logical facet name -> key. The facet is stored in the variable
    # "<name>_<key>" and dict defaults carry its default under <key>.
    facets: Dict[str, str] = {}

    def __init__(
        self,
        declared: AdminSetting,
        value: Any,
        facet_values: Optional[Dict[str, Any]] = None,
    ):
        """
        Wrap a setting value.

        Args:
            declared: The tree node declaring the setting
            value: Value to wrap; cleaned by the descriptor, None when rejected
            facet_values: Logical facet name -> value
        """
        self.declared = declared
        self.raw_value = to_config_string(value)
        self.choices: Optional[Dict[str, str]] = declared.choices
        self.value = self.clean_value(self.raw_value)
        self.facet_values: Dict[str, str] = {}
        for facet in self.facets:
            facet_value = (facet_values or {}).get(facet)
            if facet_value is not None:
                self.facet_values[facet] = flag_value(facet_value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}={self.value!r}>"

    @property
    def name(self) -> str:
        return self.declared.name

    @property
    def scope(self) -> str:
        return self.declared.scope

    @property
    def id(self) -> str:
        return f"{self.name}{SCOPE_SEPARATOR}{self.scope}"

    @property
    def type(self) -> str:
        return self.declared.type

    @property
    def visible_name(self) -> str:
        return self.declared.visible_name or self.name

    @property
    def description(self) -> str:
        return self.declared.description

    def facet_variable(self, facet: str) -> str:
        """Name of the config variable holding a facet, e.g. maxanswers_adv."""
        return f"{self.name}_{self.facets[facet]}"

    def facet_for_variable(self, variable: str) -> Optional[str]:
        for facet in self.facets:
            if self.facet_variable(facet) == variable:
                return facet
        return None

    async def load(self, store: ConfigStore):
        """Fetch whatever the descriptor needs from the store beyond its value."""
        return None

    def clean_value(self, value: Optional[str]) -> Optional[str]:
        return value

    def is_valid(self) -> bool:
        return self.raw_value is None or self.value is not None

    def with_value(self, value: Any, facet_values: Optional[Dict[str, Any]] = None) -> "PresetSetting":
        """Same kind of descriptor, wrapping another value."""
        other = type(self)(self.declared, value, facet_values)
        other.choices = self.choices
        other.value = other.clean_value(other.raw_value)
        return other

    def equals(self, other: Optional[str]) -> bool:
        """Whether another serialized value means the same as this one."""
        return to_config_string(self.value) == to_config_string(other)

    def facet_equals(self, facet: str, other: Optional[str]) -> bool:
        current = self.facet_values.get(facet)
        if current is None or other is None:
            return current == other
        return current == flag_value(other)

    def enumerate_choices(self) -> Optional[Dict[str, str]]:
        return self.choices

    async def write(self, store: ConfigStore, value: Optional[str], user_id: Optional[int] = None) -> ConfigChange:
        """Store a new value for this setting and return the recorded change."""
        return await store.set(self.scope, self.name, value, user_id)

    async def write_facet(
        self, store: ConfigStore, facet: str, value: Optional[str], user_id: Optional[int] = None
    ) -> ConfigChange:
        return await store.set(self.scope, self.facet_variable(facet), value, user_id)

    @property
    def visible_value(self) -> str:
        """Value as shown to a person choosing settings."""
        text = "" if self.value is None else self.value
        if self.facet_values.get("advanced") == "1":
            text = f"{text} (advanced)"
        if self.facet_values.get("locked") == "1":
            text = f"{text} (locked)"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scope": self.scope,
            "name": self.name,
            "type": self.type,
            "class": type(self).__name__,
            "value": self.value,
            "visible_name": self.visible_name,
            "visible_value": self.visible_value,
            "description": self.description,
            "facets": dict(self.facet_values),
        }
