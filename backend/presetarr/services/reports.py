"""
Structured results of apply and rollback.

Per-item conditions are reported here instead of raised.
"""
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ItemStatus(str, Enum):
    """Outcome of one preset item, facet or plugin."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    EXCLUDED = "excluded"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"
    RESTORED = "restored"
    DIVERGED = "diverged"
    CANCELLED = "cancelled"


# Reasons attached to skipped and failed entries
REASON_UNCHANGED = "unchanged"
REASON_EXCLUDED = "excluded-sensitive"
REASON_NOT_APPLICABLE = "not-applicable"
REASON_INVALID_VALUE = "invalid value"
REASON_CANCELLED = "cancelled"
REASON_DIVERGED = "live value changed since the preset was applied"
REASON_MISSING_LOG = "config log entry missing"


class ValueChange(BaseModel):
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    configlog_id: Optional[int] = None


class ItemResult(BaseModel):
    """One entry of a report."""

    kind: str = "setting"  # setting, facet or plugin
    scope: str
    name: str
    status: ItemStatus
    reason: Optional[str] = None
    visible_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    configlog_id: Optional[int] = None
    facet: Optional[str] = None
    facets: Dict[str, ValueChange] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"{self.name}@@{self.scope}"


class ApplyReport(BaseModel):
    """Classification of every item of a preset, each appearing exactly once."""

    preset_id: int
    application_id: Optional[int] = None
    simulated: bool = False
    cancelled: bool = False
    applied: List[ItemResult] = Field(default_factory=list)
    skipped: List[ItemResult] = Field(default_factory=list)
    not_applicable: List[ItemResult] = Field(default_factory=list)
    failed: List[ItemResult] = Field(default_factory=list)
    plugins: List[ItemResult] = Field(default_factory=list)

    def add(self, result: ItemResult):
        """File a result in the bucket of its status."""
        if result.status == ItemStatus.APPLIED:
            self.applied.append(result)
        elif result.status == ItemStatus.NOT_APPLICABLE:
            self.not_applicable.append(result)
        elif result.status == ItemStatus.FAILED:
            self.failed.append(result)
        else:
            self.skipped.append(result)

    @property
    def changed(self) -> bool:
        return bool(self.applied) or any(plugin.status == ItemStatus.APPLIED for plugin in self.plugins)


class RollbackReport(BaseModel):
    """Restored and refused entries of one application."""

    application_id: int
    preset_id: int
    cancelled: bool = False
    application_deleted: bool = False
    restored: List[ItemResult] = Field(default_factory=list)
    failed: List[ItemResult] = Field(default_factory=list)
    skipped: List[ItemResult] = Field(default_factory=list)
