"""
Preset application ledger models.

An application records one occasion a preset was applied. Its rows only
exist for values that actually changed, and point at the config log entry
holding the old and new value.
"""
import time
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from presetarr.database import Base


class PresetApplication(Base):
    """One application of a preset."""

    __tablename__ = "preset_applications"

    id = Column(Integer, primary_key=True, index=True)
    preset_id = Column(Integer, ForeignKey("presets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True)
    time_applied = Column(Integer, default=lambda: int(time.time()), nullable=False, index=True)

    # Relationships
    preset = relationship("Preset", back_populates="applications")
    items = relationship(
        "ApplicationItem",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationItem.id",
        lazy="selectin",
    )
    attributes = relationship(
        "ApplicationItemAttribute",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationItemAttribute.id",
        lazy="selectin",
    )
    plugins = relationship(
        "ApplicationPlugin",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationPlugin.id",
        lazy="selectin",
    )

    def is_empty(self) -> bool:
        return not (self.items or self.attributes or self.plugins)


class ApplicationItem(Base):
    """A setting value changed by an application."""

    __tablename__ = "preset_application_items"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("preset_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    configlog_id = Column(Integer, nullable=False)

    application = relationship("PresetApplication", back_populates="items")


class ApplicationItemAttribute(Base):
    """A secondary facet changed by an application."""

    __tablename__ = "preset_application_item_attributes"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("preset_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    configlog_id = Column(Integer, nullable=False)
    item_name = Column(String(100), nullable=False)  # Setting owning the facet
    attribute = Column(String(50), nullable=False)  # Logical facet name, e.g. "advanced"

    application = relationship("PresetApplication", back_populates="attributes")


class ApplicationPlugin(Base):
    """A plugin enabled state changed by an application."""

    __tablename__ = "preset_application_plugins"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("preset_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plugin_type = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)
    value = Column(Integer, nullable=False)
    old_value = Column(Integer, nullable=False)

    application = relationship("PresetApplication", back_populates="plugins")
