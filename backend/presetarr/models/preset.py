"""
Preset models: a named snapshot of configuration values.
"""
import time
from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from presetarr.database import Base


class Preset(Base):
    """Stored preset metadata."""

    __tablename__ = "presets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True)
    name = Column(String(255), nullable=False)
    comments = Column(Text, nullable=True)
    site = Column(String(255), nullable=True)  # Originating site URL
    author = Column(String(255), nullable=True)
    release = Column(String(50), nullable=True)  # Originating system release
    iscore = Column(Integer, default=0, nullable=False)  # Seeded on install
    time_created = Column(Integer, default=lambda: int(time.time()), nullable=False)
    time_imported = Column(Integer, default=0, nullable=False)
    time_applied = Column(Integer, default=0, nullable=False)

    # Relationships
    items = relationship(
        "PresetItem",
        back_populates="preset",
        cascade="all, delete-orphan",
        order_by="PresetItem.id",
        lazy="selectin",
    )
    plugins = relationship(
        "PresetPlugin",
        back_populates="preset",
        cascade="all, delete-orphan",
        order_by="PresetPlugin.id",
        lazy="selectin",
    )
    applications = relationship(
        "PresetApplication",
        back_populates="preset",
        cascade="all, delete-orphan",
        order_by="PresetApplication.id",
        lazy="selectin",
    )


class PresetItem(Base):
    """One (scope, name, value) entry of a preset."""

    __tablename__ = "preset_items"
    __table_args__ = (UniqueConstraint("preset_id", "scope", "name", name="uq_preset_item"),)

    id = Column(Integer, primary_key=True, index=True)
    preset_id = Column(Integer, ForeignKey("presets.id", ondelete="CASCADE"), nullable=False, index=True)
    scope = Column(String(100), nullable=False, default="none")
    name = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)

    # Relationships
    preset = relationship("Preset", back_populates="items")
    attributes = relationship(
        "PresetItemAttribute",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="PresetItemAttribute.id",
        lazy="selectin",
    )

    def attribute_values(self) -> dict:
        """Stored facet variable name -> value."""
        return {attr.name: attr.value for attr in self.attributes}


class PresetItemAttribute(Base):
    """Secondary facet of a preset item (e.g. its advanced flag)."""

    __tablename__ = "preset_item_attributes"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("preset_items.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)

    item = relationship("PresetItem", back_populates="attributes")


class PresetPlugin(Base):
    """Enabled state of a plugin carried by a preset."""

    __tablename__ = "preset_plugins"

    id = Column(Integer, primary_key=True, index=True)
    preset_id = Column(Integer, ForeignKey("presets.id", ondelete="CASCADE"), nullable=False, index=True)
    plugin_type = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)
    enabled = Column(Integer, nullable=False)

    preset = relationship("Preset", back_populates="plugins")
