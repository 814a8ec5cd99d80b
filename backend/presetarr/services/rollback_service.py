"""
Rollback of preset applications.

Every ledger row of an application points at the config log entry of the
write it made. A row is restored only while the live value still equals
the value the apply wrote; otherwise someone changed it since and the row
is reported as diverged and left alone. Restored rows are removed from the
ledger, and the application goes away once it has no rows left.
"""
import asyncio
from typing import List, Optional
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.constants import SITE_CONFIG_LOCK
from presetarr.models import PresetApplication
from presetarr.services.preset_store import PresetStore
from presetarr.services.reports import (
    REASON_CANCELLED,
    REASON_DIVERGED,
    REASON_MISSING_LOG,
    REASON_NOT_APPLICABLE,
    ItemResult,
    ItemStatus,
    RollbackReport,
)
from presetarr.services.setting_registry import SettingRegistry, SettingsMap, lookup
from presetarr.store.base import ConfigStore
from presetarr.utils.locks import AdvisoryLocks


class RollbackService:
    """Restores the values an application overwrote."""

    def __init__(
        self,
        db: AsyncSession,
        store: ConfigStore,
        locks: AdvisoryLocks,
        registry: Optional[SettingRegistry] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.db = db
        self.store = store
        self.locks = locks
        self.registry = registry or SettingRegistry(store)
        self.lock_timeout = lock_timeout
        self.presets = PresetStore(db)

    async def rollback(
        self,
        application_id: int,
        user_id: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RollbackReport:
        """
        Roll back one application.

        The session is committed before the configuration lock is released.

        Args:
            application_id: Application to undo
            user_id: User recorded on the config log
            cancel_event: Checked between rows; once set, the rest is left for later

        Returns:
            RollbackReport of restored and refused rows

        Raises:
            ApplicationNotFoundError: If the application does not exist
            LockTimeoutError: If another apply or rollback holds the lock
        """
        application = await self.presets.get_application(application_id)

        async with self.locks.hold(SITE_CONFIG_LOCK, self.lock_timeout):
            logger.info(f"Rolling back application {application.id} of preset {application.preset_id}")
            site_settings = await self.registry.get_site_settings()
            report = RollbackReport(application_id=application.id, preset_id=application.preset_id)

            pending: List = [("setting", row) for row in application.items]
            pending += [("facet", row) for row in application.attributes]
            pending += [("plugin", row) for row in application.plugins]

            for index, (kind, row) in enumerate(pending):
                if cancel_event is not None and cancel_event.is_set():
                    report.cancelled = True
                    for rest_kind, rest_row in pending[index:]:
                        report.skipped.append(await self._describe(rest_kind, rest_row, ItemStatus.CANCELLED))
                    logger.warning(f"Rollback of application {application.id} cancelled")
                    break

                if kind == "plugin":
                    result = await self._restore_plugin(application, row, user_id)
                else:
                    result = await self._restore_setting(application, kind, row, site_settings, user_id)

                if result.status == ItemStatus.RESTORED:
                    report.restored.append(result)
                else:
                    report.failed.append(result)

            if application.is_empty():
                await self.presets.remove_application(application)
                report.application_deleted = True
                logger.info(f"Application {application.id} fully rolled back and removed")
            await self.db.commit()

            logger.info(
                f"Rollback of application {application.id} done: {len(report.restored)} restored, "
                f"{len(report.failed)} failed"
            )
            return report

    async def _describe(self, kind: str, row, status: ItemStatus) -> ItemResult:
        if kind == "plugin":
            return ItemResult(kind=kind, scope=row.plugin_type, name=row.name, status=status, reason=REASON_CANCELLED)
        change = await self.store.get_log(row.configlog_id)
        return ItemResult(
            kind=kind,
            scope=change.scope if change else "",
            name=row.item_name if kind == "facet" else (change.name if change else ""),
            facet=row.attribute if kind == "facet" else None,
            status=status,
            reason=REASON_CANCELLED,
            configlog_id=row.configlog_id,
        )

    async def _restore_setting(
        self,
        application: PresetApplication,
        kind: str,
        row,
        site_settings: SettingsMap,
        user_id: Optional[int],
    ) -> ItemResult:
        change = await self.store.get_log(row.configlog_id)
        if change is None:
            return ItemResult(
                kind=kind,
                scope="",
                name=getattr(row, "item_name", ""),
                status=ItemStatus.FAILED,
                reason=REASON_MISSING_LOG,
                configlog_id=row.configlog_id,
            )

        facet = row.attribute if kind == "facet" else None
        name = row.item_name if kind == "facet" else change.name
        result = ItemResult(
            kind=kind,
            scope=change.scope,
            name=name,
            facet=facet,
            status=ItemStatus.FAILED,
            old_value=change.new_value,
            new_value=change.old_value,
            configlog_id=row.configlog_id,
        )

        live = lookup(site_settings, change.scope, name)
        if live is None or (facet is not None and facet not in live.facets):
            result.reason = REASON_NOT_APPLICABLE
            return result
        result.visible_name = live.visible_name

        if facet is None:
            still_ours = live.equals(change.new_value)
        else:
            still_ours = live.facet_equals(facet, change.new_value)
        if not still_ours:
            result.status = ItemStatus.DIVERGED
            result.reason = REASON_DIVERGED
            result.old_value = live.facet_values.get(facet) if facet else live.value
            logger.info(f"Not restoring {live.id}{'/' + facet if facet else ''}: live value diverged")
            return result

        try:
            if facet is None:
                await live.write(self.store, change.old_value, user_id)
            else:
                await live.write_facet(self.store, facet, change.old_value, user_id)
        except Exception as e:
            result.reason = f"write failed: {e}"
            logger.error(f"Failed to restore {live.id}: {type(e).__name__}: {e}")
            return result

        if facet is None:
            application.items.remove(row)
        else:
            application.attributes.remove(row)
        result.status = ItemStatus.RESTORED
        return result

    async def _restore_plugin(self, application: PresetApplication, row, user_id: Optional[int]) -> ItemResult:
        result = ItemResult(
            kind="plugin",
            scope=row.plugin_type,
            name=row.name,
            status=ItemStatus.FAILED,
            old_value=str(row.value),
            new_value=str(row.old_value),
        )

        current = await self.store.get_plugin_enabled(row.plugin_type, row.name)
        if current is None:
            result.reason = REASON_NOT_APPLICABLE
            return result
        if current != row.value:
            result.status = ItemStatus.DIVERGED
            result.reason = REASON_DIVERGED
            result.old_value = str(current)
            return result

        try:
            await self.store.set_plugin_enabled(row.plugin_type, row.name, row.old_value)
        except Exception as e:
            result.reason = f"write failed: {e}"
            logger.error(f"Failed to restore plugin {row.plugin_type}_{row.name}: {e}")
            return result

        application.plugins.remove(row)
        result.status = ItemStatus.RESTORED
        return result
