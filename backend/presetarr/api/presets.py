"""
Preset API endpoints.
"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from presetarr.config import settings
from presetarr.database import get_db
from presetarr.models import Preset, PresetApplication
from presetarr.services.exclusions import format_key, get_sensitive_settings
from presetarr.services.preset_exporter import PresetExporter, document_to_xml, document_to_yaml
from presetarr.services.preset_loader import PresetLoader
from presetarr.services.preset_store import PresetDocument, PresetStore
from presetarr.services.reports import ApplyReport, RollbackReport
from presetarr.services.rollback_service import RollbackService
from presetarr.services.setting_registry import SettingRegistry
from presetarr.services.settings_tree import SettingsTreeView, TreeNode, build_tree, flatten_tree
from presetarr.store.sql import SqlConfigStore
from presetarr.utils.errors import ErrorCode, PresetError, log_and_raise_500, raise_error, raise_preset_error
from presetarr.utils.locks import AdvisoryLocks

router = APIRouter(prefix="/api/presets", tags=["presets"])


class PresetItemResponse(BaseModel):
    scope: str
    name: str
    value: Optional[str]
    attributes: Dict[str, Optional[str]] = Field(default_factory=dict)


class PresetPluginResponse(BaseModel):
    plugin_type: str
    name: str
    enabled: int


class PresetSummary(BaseModel):
    """Preset metadata."""

    id: int
    name: str
    comments: Optional[str]
    author: Optional[str]
    site: Optional[str]
    release: Optional[str]
    iscore: bool
    time_created: int
    time_imported: int
    time_applied: int
    state: str
    item_count: int


class PresetDetail(PresetSummary):
    """Preset metadata with its items and plugin states."""

    items: List[PresetItemResponse]
    plugins: List[PresetPluginResponse]


class ApplicationSummary(BaseModel):
    id: int
    preset_id: int
    user_id: Optional[int]
    time_applied: int
    items: int
    attributes: int
    plugins: int


class ExportRequest(BaseModel):
    """Create a preset from the current site settings."""

    name: str = Field(..., min_length=1, max_length=255)
    comments: Optional[str] = None
    author: Optional[str] = None
    settings: Optional[List[str]] = None  # name@@scope ids, all settings when omitted
    include_sensitive: bool = False


class ImportRequest(BaseModel):
    """Import a preset from an XML document."""

    xml: str = Field(..., min_length=1)
    name: Optional[str] = None  # Overrides the name in the document


class UpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    comments: Optional[str] = None


class ApplyRequest(BaseModel):
    override_exclusions: bool = False


class TreeResponse(BaseModel):
    tree: List[TreeNode]
    flat: SettingsTreeView
    not_applicable: List[str] = Field(default_factory=list)


def get_user_id(x_user_id: int = Header(0, alias="X-User-Id")) -> int:
    """Identity of the caller; there is no authentication layer."""
    return x_user_id


def get_locks(request: Request) -> AdvisoryLocks:
    return request.app.state.locks


def get_config_store(request: Request, db: AsyncSession = Depends(get_db)) -> SqlConfigStore:
    return SqlConfigStore(db, getattr(request.app.state, "admin_tree", None))


async def _summary(presets: PresetStore, preset: Preset) -> Dict[str, Any]:
    state = await presets.preset_state(preset)
    return {
        "id": preset.id,
        "name": preset.name,
        "comments": preset.comments,
        "author": preset.author,
        "site": preset.site,
        "release": preset.release,
        "iscore": bool(preset.iscore),
        "time_created": preset.time_created,
        "time_imported": preset.time_imported,
        "time_applied": preset.time_applied,
        "state": state.value,
        "item_count": len(preset.items),
    }


async def _detail(presets: PresetStore, preset: Preset) -> PresetDetail:
    summary = await _summary(presets, preset)
    return PresetDetail(
        **summary,
        items=[
            PresetItemResponse(scope=item.scope, name=item.name, value=item.value, attributes=item.attribute_values())
            for item in preset.items
        ],
        plugins=[
            PresetPluginResponse(plugin_type=plugin.plugin_type, name=plugin.name, enabled=plugin.enabled)
            for plugin in preset.plugins
        ],
    )


def _application_summary(application: PresetApplication) -> ApplicationSummary:
    return ApplicationSummary(
        id=application.id,
        preset_id=application.preset_id,
        user_id=application.user_id,
        time_applied=application.time_applied,
        items=len(application.items),
        attributes=len(application.attributes),
        plugins=len(application.plugins),
    )


@router.get("", response_model=List[PresetSummary])
async def list_presets(db: AsyncSession = Depends(get_db)):
    """List stored presets."""
    presets = PresetStore(db)
    return [await _summary(presets, preset) for preset in await presets.list_presets()]


@router.post("", response_model=PresetDetail, status_code=status.HTTP_201_CREATED)
async def export_preset(
    data: ExportRequest,
    db: AsyncSession = Depends(get_db),
    store: SqlConfigStore = Depends(get_config_store),
    user_id: int = Depends(get_user_id),
):
    """Create a preset from the current site settings."""
    exporter = PresetExporter(db, store, exclusions=get_sensitive_settings())
    try:
        preset = await exporter.export_site(
            name=data.name,
            comments=data.comments,
            author=data.author,
            user_id=user_id,
            selected=data.settings,
            include_sensitive=data.include_sensitive,
        )
    except PresetError as e:
        raise_preset_error(e)
    except Exception as e:
        log_and_raise_500(e, "exporting site settings")
    return await _detail(exporter.presets, preset)


@router.post("/import", response_model=PresetDetail, status_code=status.HTTP_201_CREATED)
async def import_preset(
    data: ImportRequest,
    db: AsyncSession = Depends(get_db),
    store: SqlConfigStore = Depends(get_config_store),
    user_id: int = Depends(get_user_id),
):
    """Import a preset from an XML document."""
    exporter = PresetExporter(db, store)
    try:
        preset = await exporter.import_xml(data.xml, user_id=user_id, name=data.name)
    except PresetError as e:
        raise_preset_error(e)
    except Exception as e:
        log_and_raise_500(e, "importing preset")
    return await _detail(exporter.presets, preset)


@router.get("/exclusions")
async def get_exclusions():
    """Settings never exported and skipped on apply unless overridden."""
    return {"settings": sorted(format_key(scope, name) for scope, name in get_sensitive_settings())}


@router.get("/site/tree", response_model=TreeResponse)
async def get_site_tree(store: SqlConfigStore = Depends(get_config_store)):
    """Current site settings arranged by category and page."""
    site_settings = await SettingRegistry(store).get_site_settings()
    tree = build_tree(await store.enumerate_tree(), site_settings)
    return TreeResponse(tree=tree, flat=flatten_tree(tree))


@router.post("/applications/{application_id}/rollback", response_model=RollbackReport)
async def rollback_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    store: SqlConfigStore = Depends(get_config_store),
    locks: AdvisoryLocks = Depends(get_locks),
    user_id: int = Depends(get_user_id),
):
    """Restore the values an application overwrote, where nobody changed them since."""
    service = RollbackService(db, store, locks, lock_timeout=settings.lock_timeout_seconds)
    try:
        return await service.rollback(application_id, user_id=user_id)
    except PresetError as e:
        raise_preset_error(e)
    except Exception as e:
        log_and_raise_500(e, "rolling back application")


@router.delete("/applications/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def purge_application(application_id: int, db: AsyncSession = Depends(get_db)):
    """Forget an application without touching live values."""
    try:
        await PresetStore(db).delete_application(application_id)
    except PresetError as e:
        raise_preset_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{preset_id}", response_model=PresetDetail)
async def get_preset(preset_id: int, db: AsyncSession = Depends(get_db)):
    """Get a preset with its items."""
    presets = PresetStore(db)
    try:
        preset = await presets.get_preset(preset_id)
    except PresetError as e:
        raise_preset_error(e)
    return await _detail(presets, preset)


@router.patch("/{preset_id}", response_model=PresetDetail)
async def update_preset(preset_id: int, data: UpdateRequest, db: AsyncSession = Depends(get_db)):
    """Rename a preset or edit its comments."""
    if data.name is None and data.comments is None:
        raise_error(ErrorCode.VALIDATION_ERROR, "Nothing to update", status_code=400, log=False)
    presets = PresetStore(db)
    try:
        preset = await presets.update_preset(preset_id, name=data.name, comments=data.comments)
    except PresetError as e:
        raise_preset_error(e)
    return await _detail(presets, preset)


@router.delete("/{preset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_preset(preset_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a preset with its items and applications."""
    try:
        await PresetStore(db).delete_preset(preset_id)
    except PresetError as e:
        raise_preset_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{preset_id}/download")
async def download_preset(
    preset_id: int,
    format: str = Query("xml", pattern="^(xml|yaml)$"),
    db: AsyncSession = Depends(get_db),
):
    """Download a preset as an XML (or YAML) document."""
    try:
        preset = await PresetStore(db).get_preset(preset_id)
    except PresetError as e:
        raise_preset_error(e)

    document = PresetDocument.from_preset(preset)
    if format == "yaml":
        content, media_type = document_to_yaml(document), "application/x-yaml"
    else:
        content, media_type = document_to_xml(document), "application/xml"

    filename = f"preset-{preset.id}.{format}"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{preset_id}/tree", response_model=TreeResponse)
async def get_preset_tree(
    preset_id: int,
    db: AsyncSession = Depends(get_db),
    store: SqlConfigStore = Depends(get_config_store),
):
    """Preset settings arranged by category and page, plus the ones this site lacks."""
    try:
        preset = await PresetStore(db).get_preset(preset_id)
    except PresetError as e:
        raise_preset_error(e)

    preset_settings, not_applicable = await SettingRegistry(store).get_preset_settings(preset.items)
    tree = build_tree(await store.enumerate_tree(), preset_settings)
    return TreeResponse(
        tree=tree,
        flat=flatten_tree(tree),
        not_applicable=[format_key(item.scope, item.name) for item in not_applicable],
    )


@router.post("/{preset_id}/preview", response_model=ApplyReport)
async def preview_preset(
    preset_id: int,
    data: Optional[ApplyRequest] = None,
    db: AsyncSession = Depends(get_db),
    store: SqlConfigStore = Depends(get_config_store),
    locks: AdvisoryLocks = Depends(get_locks),
):
    """Show what applying a preset would change, without changing anything."""
    data = data or ApplyRequest()
    loader = PresetLoader(
        db, store, locks, exclusions=get_sensitive_settings(), lock_timeout=settings.lock_timeout_seconds
    )
    try:
        return await loader.apply(preset_id, simulate=True, override_exclusions=data.override_exclusions)
    except PresetError as e:
        raise_preset_error(e)
    except Exception as e:
        log_and_raise_500(e, "previewing preset")


@router.post("/{preset_id}/apply", response_model=ApplyReport)
async def apply_preset(
    preset_id: int,
    data: Optional[ApplyRequest] = None,
    db: AsyncSession = Depends(get_db),
    store: SqlConfigStore = Depends(get_config_store),
    locks: AdvisoryLocks = Depends(get_locks),
    user_id: int = Depends(get_user_id),
):
    """Apply a preset to the site."""
    data = data or ApplyRequest()
    loader = PresetLoader(
        db, store, locks, exclusions=get_sensitive_settings(), lock_timeout=settings.lock_timeout_seconds
    )
    try:
        return await loader.apply(preset_id, user_id=user_id, override_exclusions=data.override_exclusions)
    except PresetError as e:
        raise_preset_error(e)
    except Exception as e:
        log_and_raise_500(e, "applying preset")


@router.get("/{preset_id}/applications", response_model=List[ApplicationSummary])
async def list_applications(preset_id: int, db: AsyncSession = Depends(get_db)):
    """Applications of a preset, newest first."""
    presets = PresetStore(db)
    try:
        await presets.get_preset(preset_id)
    except PresetError as e:
        raise_preset_error(e)
    return [_application_summary(application) for application in await presets.list_applications(preset_id)]
