"""Admin routes generating PWA icons and publishing the manifest."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Annotated

import redis.asyncio as redis
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
    status,
)

from storefront.api.dependencies import StorageDependency, require_admin
from storefront.config import settings
from storefront.models.icons import (
    IconArtifact,
    IconJobEnqueueResponse,
    IconJobEnvelope,
    IconPurpose,
)
from storefront.models.settings import ManifestPublishResponse, PublicSiteSettings
from storefront.services.icons.imaging import decode_image, encode_image
from storefront.services.icons.job_store import IconJobStore
from storefront.services.icons.jobs import IconJobRunner
from storefront.services.icons.manifest import publish_manifest
from storefront.services.icons.pipeline import create_icon_pipeline
from storefront.services.storage.redis_client import get_redis_client
from storefront.services.storage.settings_store import SettingsStoreDependency

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/pwa",
    tags=["pwa"],
    dependencies=[Depends(require_admin)],
)


def _get_job_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> IconJobStore:
    return IconJobStore(client)


JobStoreDependency = Annotated[IconJobStore, Depends(_get_job_store)]


def _build_runner(
    storage: StorageDependency,
    job_store: JobStoreDependency,
    settings_store: SettingsStoreDependency,
) -> IconJobRunner:
    return IconJobRunner(
        store=job_store,
        pipeline=create_icon_pipeline(storage),
        settings_store=settings_store,
    )


RunnerDependency = Annotated[IconJobRunner, Depends(_build_runner)]


async def _read_upload(file: UploadFile) -> bytes:
    try:
        data = await file.read()
    finally:
        await file.close()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )
    return data


@router.post(
    "/icons",
    response_model=IconJobEnqueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate the full PWA icon set from one source image",
)
async def generate_icons(
    file: Annotated[UploadFile, File(...)],
    background_tasks: BackgroundTasks,
    runner: RunnerDependency,
) -> IconJobEnqueueResponse:
    data = await _read_upload(file)
    job_id = str(uuid.uuid4())
    await runner.initialize_job(job_id)
    background_tasks.add_task(runner.process, job_id, data)
    logger.info(
        "Icon generation job accepted",
        extra={"job_id": job_id, "source_bytes": len(data)},
    )
    return IconJobEnqueueResponse(job_id=job_id)


@router.get(
    "/icons/{job_id}",
    response_model=IconJobEnvelope,
    summary="Fetch the progress of an icon generation job",
)
async def fetch_icon_job(job_id: str, job_store: JobStoreDependency) -> IconJobEnvelope:
    envelope = await job_store.fetch(job_id)
    if envelope is None:
        raise HTTPException(status_code=404, detail="Unknown job id")
    return envelope


@router.delete(
    "/icons/{job_id}",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Stop an icon generation job after the size in progress",
)
async def cancel_icon_job(job_id: str, job_store: JobStoreDependency) -> dict[str, str]:
    if not await job_store.request_cancel(job_id):
        raise HTTPException(status_code=404, detail="Unknown job id")
    logger.info("Cancellation requested for icon job %s", job_id)
    return {"job_id": job_id, "status": "cancelling"}


@router.post(
    "/icons/manual",
    response_model=PublicSiteSettings,
    summary="Upload a single PNG icon for one size and purpose",
)
async def upload_manual_icon(
    size: Annotated[int, Form(gt=0)],
    purpose: Annotated[IconPurpose, Form()],
    file: Annotated[UploadFile, File(...)],
    storage: StorageDependency,
    settings_store: SettingsStoreDependency,
) -> PublicSiteSettings:
    data = await _read_upload(file)

    def _normalize() -> bytes:
        with decode_image(data) as image:
            return encode_image(image, "png")

    payload = await asyncio.to_thread(_normalize)
    pipeline = create_icon_pipeline(storage)
    artifact = IconArtifact(
        size=size,
        purpose=purpose,
        format="png",
        payload=payload,
        path=pipeline.artifact_path(size, purpose, "png"),
    )
    artifact.url = await storage.upload(
        settings.MEDIA_BUCKET,
        artifact.path,
        payload,
        content_type=artifact.content_type,
        upsert=True,
    )
    record = await settings_store.register_icons([artifact])
    return record.public_view()


@router.post(
    "/manifest",
    response_model=ManifestPublishResponse,
    summary="Publish manifest.json built from the current settings",
)
async def publish(
    storage: StorageDependency,
    settings_store: SettingsStoreDependency,
) -> ManifestPublishResponse:
    url, manifest = await publish_manifest(storage, await settings_store.load())
    return ManifestPublishResponse(url=url, manifest=manifest)
