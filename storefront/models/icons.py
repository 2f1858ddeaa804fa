"""Models produced by the PWA icon pipeline and its job API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

IconPurpose = Literal["any", "maskable"]
IconFormat = Literal["png", "webp"]

ICON_PURPOSES: tuple[IconPurpose, ...] = ("any", "maskable")
ICON_FORMATS: tuple[IconFormat, ...] = ("png", "webp")

_CONTENT_TYPES = {"png": "image/png", "webp": "image/webp"}


def icon_name(size: int, purpose: str, fmt: str) -> str:
    """Deterministic object name for one icon variant."""

    suffix = "-maskable" if purpose == "maskable" else ""
    return f"icon-{size}{suffix}.{fmt}"


class IconArtifact(BaseModel):
    """One encoded icon variant; ``url`` is set once uploaded."""

    size: int = Field(..., gt=0)
    purpose: IconPurpose
    format: IconFormat
    payload: bytes = Field(default=b"", exclude=True, repr=False)
    path: str = ""
    url: str | None = None

    @property
    def name(self) -> str:
        return icon_name(self.size, self.purpose, self.format)

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self.format]


class IconFailure(BaseModel):
    """Non-fatal notice describing an artifact that could not be produced."""

    size: int
    purpose: IconPurpose
    format: IconFormat
    name: str
    error: str


class IconSetResult(BaseModel):
    """Outcome of a full pipeline run."""

    artifacts: list[IconArtifact] = Field(default_factory=list)
    failures: list[IconFailure] = Field(default_factory=list)
    expected: int = Field(0, ge=0)
    cancelled: bool = False

    @property
    def is_complete(self) -> bool:
        return len(self.artifacts) == self.expected and not self.cancelled


IconJobStatus = Literal["pending", "running", "complete", "partial", "failed", "cancelled"]


class IconJobEnqueueResponse(BaseModel):
    """Acknowledgement returned when an icon generation job is accepted."""

    job_id: str
    status: Literal["pending"] = "pending"


class IconJobEnvelope(BaseModel):
    """Response returned by GET /admin/pwa/icons/{job_id}."""

    job_id: str
    status: IconJobStatus = "pending"
    expected: int = 0
    artifacts: list[IconArtifact] = Field(default_factory=list)
    failures: list[IconFailure] = Field(default_factory=list)
    error: str | None = None
    updated_at: str | None = None
