"""
Diff and apply engine.

Applies a stored preset to the live site. Every item is compared against a
snapshot of the live settings taken once at the start, and only values
that differ are written. Each write is recorded in a new application so
it can be rolled back later.

Per item, in stored order:
1. cancelled - the cancel event was set before the item was reached
2. excluded - the setting is in the sensitive list and not overridden
3. not applicable - the setting does not exist (or its plugin is disabled)
4. failed - the value is not valid for the setting, or the write failed
5. applied / unchanged - whether the value or any facet was written
"""
import asyncio
from typing import Optional, Set, Tuple
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.constants import SITE_CONFIG_LOCK
from presetarr.models import ApplicationItem, ApplicationItemAttribute, ApplicationPlugin, Preset, PresetApplication
from presetarr.services.preset_store import PresetStore
from presetarr.services.reports import (
    REASON_CANCELLED,
    REASON_EXCLUDED,
    REASON_INVALID_VALUE,
    REASON_NOT_APPLICABLE,
    REASON_UNCHANGED,
    ApplyReport,
    ItemResult,
    ItemStatus,
    ValueChange,
)
from presetarr.services.setting_registry import SettingRegistry, SettingsMap, lookup
from presetarr.store.base import ConfigStore
from presetarr.utils.locks import AdvisoryLocks


class PresetLoader:
    """Applies presets to the live configuration."""

    def __init__(
        self,
        db: AsyncSession,
        store: ConfigStore,
        locks: AdvisoryLocks,
        exclusions: Optional[Set[Tuple[str, str]]] = None,
        registry: Optional[SettingRegistry] = None,
        lock_timeout: Optional[float] = None,
    ):
        """
        Initialize the loader.

        Args:
            db: Session holding presets and applications
            store: Live configuration store
            locks: Lock table shared by apply and rollback
            exclusions: (scope, name) pairs never applied unless overridden
            registry: Setting registry, built over the store when omitted
            lock_timeout: Seconds to wait for the configuration lock
        """
        self.db = db
        self.store = store
        self.locks = locks
        self.exclusions = exclusions or set()
        self.registry = registry or SettingRegistry(store)
        self.lock_timeout = lock_timeout
        self.presets = PresetStore(db)

    async def apply(
        self,
        preset_id: int,
        user_id: Optional[int] = None,
        simulate: bool = False,
        override_exclusions: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ApplyReport:
        """
        Apply a preset, or preview what applying it would do.

        A real apply commits the session before releasing the configuration
        lock, so the next apply or rollback sees its writes.

        Args:
            preset_id: Preset to apply
            user_id: User recorded on the application and the config log
            simulate: Classify items without writing or recording anything
            override_exclusions: Apply sensitive settings too
            cancel_event: Checked between items; once set, the rest is cancelled

        Returns:
            ApplyReport with every preset item in exactly one bucket

        Raises:
            PresetNotFoundError: If the preset does not exist
            LockTimeoutError: If another apply or rollback holds the lock
        """
        preset = await self.presets.get_preset(preset_id)

        async with self.locks.hold(SITE_CONFIG_LOCK, self.lock_timeout):
            action = "Previewing" if simulate else "Applying"
            logger.info(f"{action} preset {preset.id} '{preset.name}' ({len(preset.items)} items)")

            site_settings = await self.registry.get_site_settings()
            report = ApplyReport(preset_id=preset.id, simulated=simulate)
            application: Optional[PresetApplication] = None

            for index, item in enumerate(preset.items):
                if cancel_event is not None and cancel_event.is_set():
                    self._cancel_rest(report, preset, index)
                    break

                result, ledger = await self._apply_item(
                    item, site_settings, user_id, simulate, override_exclusions
                )
                report.add(result)
                if ledger:
                    if application is None:
                        application = await self.presets.create_application(preset, user_id)
                    for row in ledger:
                        self._record(application, row)

            if not report.cancelled:
                for plugin in preset.plugins:
                    result = await self._apply_plugin(plugin, simulate)
                    report.plugins.append(result)
                    if result.status == ItemStatus.APPLIED and not simulate:
                        if application is None:
                            application = await self.presets.create_application(preset, user_id)
                        application.plugins.append(
                            ApplicationPlugin(
                                plugin_type=plugin.plugin_type,
                                name=plugin.name,
                                value=plugin.enabled,
                                old_value=int(result.old_value),
                            )
                        )
            else:
                for plugin in preset.plugins:
                    report.plugins.append(
                        ItemResult(
                            kind="plugin",
                            scope=plugin.plugin_type,
                            name=plugin.name,
                            status=ItemStatus.CANCELLED,
                            reason=REASON_CANCELLED,
                        )
                    )

            if application is not None:
                report.application_id = application.id
            if not simulate:
                # Writes and ledger rows become visible before the lock is released
                await self.db.commit()

            logger.info(
                f"{action} preset {preset.id} done: {len(report.applied)} applied, "
                f"{len(report.skipped)} skipped, {len(report.not_applicable)} not applicable, "
                f"{len(report.failed)} failed"
            )
            return report

    def _cancel_rest(self, report: ApplyReport, preset: Preset, start: int):
        report.cancelled = True
        for item in preset.items[start:]:
            report.add(
                ItemResult(
                    scope=item.scope,
                    name=item.name,
                    status=ItemStatus.CANCELLED,
                    reason=REASON_CANCELLED,
                    new_value=item.value,
                )
            )
        logger.warning(f"Apply of preset {preset.id} cancelled, {len(preset.items) - start} items not processed")

    def _record(self, application: PresetApplication, row: Tuple[str, Optional[str], int]):
        item_name, facet, configlog_id = row
        if facet is None:
            application.items.append(ApplicationItem(configlog_id=configlog_id))
        else:
            application.attributes.append(
                ApplicationItemAttribute(configlog_id=configlog_id, item_name=item_name, attribute=facet)
            )

    async def _apply_item(
        self,
        item,
        site_settings: SettingsMap,
        user_id: Optional[int],
        simulate: bool,
        override_exclusions: bool,
    ):
        """
        Decide and, unless simulating, write one preset item.

        Returns:
            Tuple of (result, ledger rows). A ledger row is (item name, facet or None,
            config log id) for every write that happened.
        """
        result = ItemResult(scope=item.scope, name=item.name, status=ItemStatus.UNCHANGED, new_value=item.value)
        ledger = []

        if (item.scope, item.name) in self.exclusions and not override_exclusions:
            result.status = ItemStatus.EXCLUDED
            result.reason = REASON_EXCLUDED
            return result, ledger

        live = lookup(site_settings, item.scope, item.name)
        if live is None:
            result.status = ItemStatus.NOT_APPLICABLE
            result.reason = REASON_NOT_APPLICABLE
            return result, ledger

        result.visible_name = live.visible_name
        wanted = self.registry.get_setting(live, item.value, item.attribute_values())
        if not wanted.is_valid():
            result.status = ItemStatus.FAILED
            result.reason = REASON_INVALID_VALUE
            result.old_value = live.value
            logger.warning(f"Preset value {item.value!r} is not valid for {live.id}")
            return result, ledger

        changed = False
        if not live.equals(wanted.value):
            result.old_value = live.value
            result.new_value = wanted.value
            if not simulate:
                try:
                    change = await live.write(self.store, wanted.value, user_id)
                except Exception as e:
                    result.status = ItemStatus.FAILED
                    result.reason = f"write failed: {e}"
                    logger.error(f"Failed to write {live.id}: {type(e).__name__}: {e}")
                    return result, ledger
                result.configlog_id = change.log_id
                ledger.append((item.name, None, change.log_id))
            changed = True
        else:
            result.old_value = live.value

        for facet, value in wanted.facet_values.items():
            if live.facet_equals(facet, value):
                continue
            facet_change = ValueChange(old_value=live.facet_values.get(facet), new_value=value)
            if not simulate:
                try:
                    change = await live.write_facet(self.store, facet, value, user_id)
                except Exception as e:
                    # Writes done so far stay in the ledger so they can be rolled back
                    result.status = ItemStatus.FAILED
                    result.reason = f"write of {facet} failed: {e}"
                    logger.error(f"Failed to write {facet} of {live.id}: {type(e).__name__}: {e}")
                    return result, ledger
                facet_change.configlog_id = change.log_id
                ledger.append((item.name, facet, change.log_id))
            result.facets[facet] = facet_change
            changed = True

        if changed:
            result.status = ItemStatus.APPLIED
        else:
            result.reason = REASON_UNCHANGED
        return result, ledger

    async def _apply_plugin(self, plugin, simulate: bool) -> ItemResult:
        result = ItemResult(
            kind="plugin",
            scope=plugin.plugin_type,
            name=plugin.name,
            status=ItemStatus.UNCHANGED,
            new_value=str(plugin.enabled),
        )

        current = await self.store.get_plugin_enabled(plugin.plugin_type, plugin.name)
        if current is None:
            result.status = ItemStatus.NOT_APPLICABLE
            result.reason = REASON_NOT_APPLICABLE
            return result

        result.old_value = str(current)
        if (current > 0) == (plugin.enabled > 0):
            result.reason = REASON_UNCHANGED
            return result

        if not simulate:
            try:
                await self.store.set_plugin_enabled(plugin.plugin_type, plugin.name, plugin.enabled)
            except Exception as e:
                result.status = ItemStatus.FAILED
                result.reason = f"write failed: {e}"
                logger.error(f"Failed to set plugin {plugin.plugin_type}_{plugin.name}: {e}")
                return result
        result.status = ItemStatus.APPLIED
        return result
