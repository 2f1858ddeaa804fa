"""Background execution of icon generation jobs."""

from __future__ import annotations

import asyncio
import logging

from storefront.errors import InvalidImageError
from storefront.models.icons import IconArtifact, IconFailure, IconJobStatus, IconSetResult
from storefront.services.icons.job_store import IconJobStore, JobCancellationToken
from storefront.services.icons.pipeline import IconPipeline
from storefront.services.storage.settings_store import SettingsStore

logger = logging.getLogger(__name__)


def job_status(result: IconSetResult) -> IconJobStatus:
    if result.cancelled:
        return "cancelled"
    if result.is_complete:
        return "complete"
    if result.artifacts:
        return "partial"
    return "failed"


class IconJobRunner:
    """Runs the icon pipeline for one job and records progress."""

    def __init__(
        self,
        *,
        store: IconJobStore,
        pipeline: IconPipeline,
        settings_store: SettingsStore,
    ) -> None:
        self.store = store
        self.pipeline = pipeline
        self.settings_store = settings_store

    async def initialize_job(self, job_id: str) -> None:
        await self.store.initialize(job_id, self.pipeline.expected)

    async def process(self, job_id: str, source: bytes) -> IconSetResult | None:
        """Generate, upload and register the icon set for ``job_id``.

        Never raises: every outcome ends up in the job envelope.
        """
        await self.store.mark_running(job_id)
        token = JobCancellationToken(self.store, job_id)
        # envelope updates are read-modify-write
        lock = asyncio.Lock()

        async def _on_artifact(artifact: IconArtifact) -> None:
            async with lock:
                await self.store.add_artifact(job_id, artifact)

        async def _on_failure(failure: IconFailure) -> None:
            async with lock:
                await self.store.add_failure(job_id, failure)

        try:
            result = await self.pipeline.run(
                source,
                cancel=token,
                on_failure=_on_failure,
                on_artifact=_on_artifact,
            )
            if result.artifacts:
                await self.settings_store.register_icons(result.artifacts)
        except InvalidImageError as exc:
            logger.warning("Icon job %s rejected source image: %s", job_id, exc)
            await self.store.save_failure(job_id, str(exc))
            return None
        except Exception:
            logger.exception("Icon job %s failed", job_id)
            await self.store.save_failure(job_id, "Failed to process and upload PWA icons")
            return None

        status = job_status(result)
        await self.store.finish(job_id, status)
        logger.info(
            "Icon job finished",
            extra={
                "job_id": job_id,
                "status": status,
                "uploaded": len(result.artifacts),
                "failed": len(result.failures),
            },
        )
        return result
