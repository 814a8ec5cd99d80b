"""
Service layer for Presetarr business logic.
"""
from presetarr.services.setting_registry import SettingRegistry
from presetarr.services.preset_store import PresetStore, PresetDocument, PresetState
from presetarr.services.preset_loader import PresetLoader
from presetarr.services.rollback_service import RollbackService
from presetarr.services.preset_exporter import PresetExporter
from presetarr.services.reports import ApplyReport, RollbackReport, ItemResult, ItemStatus

__all__ = [
    "SettingRegistry",
    "PresetStore",
    "PresetDocument",
    "PresetState",
    "PresetLoader",
    "RollbackService",
    "PresetExporter",
    "ApplyReport",
    "RollbackReport",
    "ItemResult",
    "ItemStatus",
]
