"""Redis-backed persistence for icon generation jobs."""

from __future__ import annotations

from datetime import UTC, datetime

import redis.asyncio as redis

from storefront.config import settings
from storefront.models.icons import (
    IconArtifact,
    IconFailure,
    IconJobEnvelope,
    IconJobStatus,
)
from storefront.services.icons.pipeline import CancellationToken
from storefront.services.storage.redis_client import key


class IconJobStore:
    """Wrapper responsible for persisting icon job progress in Redis."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._ttl = settings.ICON_JOB_TTL_SECONDS

    @staticmethod
    def _key(job_id: str) -> str:
        return key("icon_job", job_id)

    @staticmethod
    def _cancel_key(job_id: str) -> str:
        return key("icon_job", job_id, "cancel")

    async def initialize(self, job_id: str, expected: int) -> None:
        await self._write(IconJobEnvelope(job_id=job_id, expected=expected))

    async def mark_running(self, job_id: str) -> None:
        await self._transition(job_id, status="running")

    async def add_artifact(self, job_id: str, artifact: IconArtifact) -> None:
        envelope = await self._require(job_id)
        envelope.artifacts.append(artifact)
        await self._write(envelope)

    async def add_failure(self, job_id: str, failure: IconFailure) -> None:
        envelope = await self._require(job_id)
        envelope.failures.append(failure)
        await self._write(envelope)

    async def finish(self, job_id: str, status: IconJobStatus) -> None:
        await self._transition(job_id, status=status)

    async def save_failure(self, job_id: str, error: str) -> None:
        await self._transition(job_id, status="failed", error=error)

    async def fetch(self, job_id: str) -> IconJobEnvelope | None:
        raw = await self._client.get(self._key(job_id))
        if not raw:
            return None
        return IconJobEnvelope.model_validate_json(raw)

    async def request_cancel(self, job_id: str) -> bool:
        """Flag a job for cancellation; False when the job is unknown."""

        if not await self._client.exists(self._key(job_id)):
            return False
        await self._client.set(self._cancel_key(job_id), "1", ex=self._ttl)
        return True

    async def cancel_requested(self, job_id: str) -> bool:
        return bool(await self._client.exists(self._cancel_key(job_id)))

    async def _require(self, job_id: str) -> IconJobEnvelope:
        envelope = await self.fetch(job_id)
        if envelope is None:
            envelope = IconJobEnvelope(job_id=job_id)
        return envelope

    async def _transition(self, job_id: str, **changes) -> None:
        envelope = await self._require(job_id)
        await self._write(envelope.model_copy(update=changes))

    async def _write(self, envelope: IconJobEnvelope) -> None:
        envelope.updated_at = self._timestamp()
        await self._client.set(
            self._key(envelope.job_id), envelope.model_dump_json(), ex=self._ttl
        )

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(UTC).isoformat()


class JobCancellationToken(CancellationToken):
    """Cancellation token that also honours the job's Redis cancel flag."""

    def __init__(self, store: IconJobStore, job_id: str) -> None:
        super().__init__()
        self._store = store
        self._job_id = job_id

    async def is_cancelled(self) -> bool:
        if await super().is_cancelled():
            return True
        if await self._store.cancel_requested(self._job_id):
            self.cancel()
            return True
        return False
