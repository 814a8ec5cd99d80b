"""
Live configuration storage models.
"""
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from presetarr.database import Base


class ConfigSetting(Base):
    """Configuration value storage, one row per (scope, name)."""

    __tablename__ = "config"
    __table_args__ = (UniqueConstraint("scope", "name", name="uq_config_scope_name"),)

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(String(100), nullable=False, default="none", index=True)
    name = Column(String(100), nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = Column(Integer, nullable=True)


class ConfigLog(Base):
    """Audit trail for configuration changes. Preset applications point at these rows."""

    __tablename__ = "config_log"

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(String(100), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    changed_by = Column(Integer, nullable=True)


class ComponentVisibility(Base):
    """Visibility flag of a site component (menus, blocks) toggled by some settings."""

    __tablename__ = "component_visibility"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    visible = Column(Boolean, default=True, nullable=False)


class PluginState(Base):
    """Installed plugin and its enabled state."""

    __tablename__ = "plugin_state"
    __table_args__ = (UniqueConstraint("plugin_type", "name", name="uq_plugin_state_type_name"),)

    id = Column(Integer, primary_key=True, index=True)
    plugin_type = Column(String(50), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    enabled = Column(Integer, default=1, nullable=False)  # >0 enabled, 0 disabled, <0 disabled with value
