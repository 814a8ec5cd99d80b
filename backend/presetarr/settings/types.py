"""
Generic descriptors, one per primitive setting type, plus their facet
carrying variants.
"""
import math
from typing import Dict, List, Optional

from presetarr.settings.base import PresetSetting, flag_value, values_are_different


class ConfigText(PresetSetting):
    """Free text; numeric when the declared param_type is int or float."""

    def clean_value(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        param_type = self.declared.param_type
        if param_type not in ("int", "float"):
            return value

        try:
            number = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        if param_type == "int":
            if not number.is_integer():
                return None
            return str(int(number))
        return value.strip()

    def equals(self, other: Optional[str]) -> bool:
        if self.declared.param_type in ("int", "float"):
            return not values_are_different(self.value, other)
        return super().equals(other)


class ConfigTextarea(ConfigText):
    """Multi-line text; compared ignoring line ending style."""

    def equals(self, other: Optional[str]) -> bool:
        if self.value is None or other is None:
            return self.value == other
        return self.value.replace("\r\n", "\n") == other.replace("\r\n", "\n")


class ConfigPassword(ConfigText):
    @property
    def visible_value(self) -> str:
        return "********" if self.value else ""


class ConfigCheckbox(PresetSetting):
    """Boolean setting stored as "0" or "1"."""

    def clean_value(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return flag_value(value)

    def equals(self, other: Optional[str]) -> bool:
        if other is None:
            return self.value is None
        return self.value == flag_value(other)

    @property
    def visible_value(self) -> str:
        text = "Yes" if self.value == "1" else "No"
        if self.facet_values.get("advanced") == "1":
            text = f"{text} (advanced)"
        return text


class ConfigSelect(PresetSetting):
    """One value out of a set of choices; values outside the choices are rejected."""

    def clean_value(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        choices = self.enumerate_choices()
        if choices is None:
            return value
        # Choice keys may be declared as numbers
        for key in choices:
            if str(key) == value:
                return value
        return None

    @property
    def visible_value(self) -> str:
        choices = self.enumerate_choices() or {}
        text = choices.get(self.value, self.value or "")
        if self.facet_values.get("advanced") == "1":
            text = f"{text} (advanced)"
        if self.facet_values.get("locked") == "1":
            text = f"{text} (locked)"
        return text


class ConfigMultiSelect(ConfigSelect):
    """Several values out of a set of choices, stored comma separated."""

    def _tokens(self, value: Optional[str]) -> List[str]:
        if not value:
            return []
        return [token.strip() for token in value.split(",") if token.strip()]

    def clean_value(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        tokens = self._tokens(value)
        choices = self.enumerate_choices()
        if choices is not None and any(token not in choices for token in tokens):
            return None
        return ",".join(tokens)

    def equals(self, other: Optional[str]) -> bool:
        if self.value is None or other is None:
            return self.value == other
        return sorted(self._tokens(self.value)) == sorted(self._tokens(other))

    @property
    def visible_value(self) -> str:
        choices = self.enumerate_choices() or {}
        return ", ".join(choices.get(token, token) for token in self._tokens(self.value))


class ConfigMultiCheckbox(ConfigMultiSelect):
    pass


class ConfigTextWithAdvanced(ConfigText):
    facets: Dict[str, str] = {"advanced": "adv"}


class ConfigCheckboxWithAdvanced(ConfigCheckbox):
    facets: Dict[str, str] = {"advanced": "adv"}


class ConfigSelectWithAdvanced(ConfigSelect):
    facets: Dict[str, str] = {"advanced": "adv"}


class ConfigSelectWithLock(ConfigSelect):
    facets: Dict[str, str] = {"locked": "locked"}
