"""
Application constants with documented reasoning.

This file centralizes "magic numbers" and fixed names used throughout the
codebase, providing clear documentation for why each value was chosen.
"""

# =============================================================================
# SETTING IDENTITY
# =============================================================================

# Scope used for global (non plugin) options
NONE_SCOPE = "none"

# Separator between setting name and scope in exclusion tokens and form keys
SCOPE_SEPARATOR = "@@"

# =============================================================================
# SENSITIVE SETTINGS
# =============================================================================

# Settings that carry credentials or network allow/deny lists. They are never
# exported and are skipped on apply unless the caller explicitly overrides.
DEFAULT_SENSITIVE_SETTINGS = (
    "recaptchapublickey@@none, recaptchaprivatekey@@none, googlemapkey@@none, "
    "secretphrase@@none, cronremotepassword@@none, smtpuser@@none, "
    "smtppass@@none, proxypassword@@none, password@@quiz, "
    "enrolpassword@@moodlecourse, allowedip@@none, blockedip@@none"
)

# =============================================================================
# LOCKING
# =============================================================================

# Apply and rollback wait this long for the configuration lock.
# 5 seconds covers a concurrent apply of a large preset on SQLite; anything
# longer means another operation is stuck and the caller should retry.
LOCK_TIMEOUT_SECONDS = 5.0

# Lock target guarding the live configuration set
SITE_CONFIG_LOCK = "site-config"

# =============================================================================
# DATABASE
# =============================================================================

# SQLite busy timeout - wait for locks before failing
# 5 seconds handles most concurrent access without long hangs
SQLITE_BUSY_TIMEOUT_MS = 5000

# =============================================================================
# EXPORT / IMPORT
# =============================================================================

# Preset column -> XML tag
PRESET_XML_FIELDS = {
    "name": "NAME",
    "comments": "COMMENTS",
    "time_created": "PRESET_DATE",
    "site": "SITE_URL",
    "author": "AUTHOR",
    "release": "RELEASE",
}

# Plugin scopes contain slashes which are not valid in XML tag names
XML_SCOPE_SLASH = "__"

# =============================================================================
# COMPONENTS WITH SIDE EFFECTS
# =============================================================================

# Component whose visibility follows the blog level setting
BLOG_MENU_COMPONENT = "blog_menu"

# Value of bloglevel meaning "blogs disabled"
BLOG_LEVEL_DISABLED = "0"
