"""
Sensitive settings exclusion list.

The list is a comma separated string of name@@scope tokens, scope being
"none" for global options, e.g. "smtppass@@none, password@@quiz".
"""
from typing import Optional, Set, Tuple
from loguru import logger

from presetarr.config import settings
from presetarr.constants import SCOPE_SEPARATOR

SettingKey = Tuple[str, str]  # (scope, name)


def parse_exclusions(raw: Optional[str]) -> Set[SettingKey]:
    """
    Parse an exclusion list into (scope, name) pairs.

    Malformed tokens are logged and ignored.
    """
    excluded: Set[SettingKey] = set()
    if not raw:
        return excluded

    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        name, separator, scope = token.partition(SCOPE_SEPARATOR)
        name, scope = name.strip(), scope.strip()
        if not separator or not name or not scope or SCOPE_SEPARATOR in scope:
            logger.warning(f"Ignoring malformed sensitive setting token '{token}'")
            continue
        excluded.add((scope, name))

    return excluded


def get_sensitive_settings() -> Set[SettingKey]:
    """Exclusion set configured for this site."""
    return parse_exclusions(settings.sensitive_settings)


def format_key(scope: str, name: str) -> str:
    return f"{name}{SCOPE_SEPARATOR}{scope}"
