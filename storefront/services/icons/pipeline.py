"""PWA icon set derivation: resize, pad, encode and upload every variant."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import ExitStack

from PIL import Image

from storefront.config import settings
from storefront.models.icons import (
    ICON_FORMATS,
    ICON_PURPOSES,
    IconArtifact,
    IconFailure,
    IconSetResult,
    icon_name,
)
from storefront.services.clients.object_storage import ObjectStorage
from storefront.services.icons.imaging import (
    compose_maskable,
    decode_image,
    encode_image,
    resize_square,
)

logger = logging.getLogger(__name__)

FailureNotifier = Callable[[IconFailure], Awaitable[None]]
ArtifactNotifier = Callable[[IconArtifact], Awaitable[None]]


class CancellationToken:
    """Cooperative cancellation flag checked between icon sizes."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    async def is_cancelled(self) -> bool:
        return self._event.is_set()


def _encode_owned(image: Image.Image, fmt: str, webp_quality: int) -> bytes:
    with image:
        return encode_image(image, fmt, webp_quality=webp_quality)


class IconPipeline:
    """Derives the {size x purpose x format} icon matrix from one source image.

    Sizes are processed one after another; the four variants of a size are
    encoded and uploaded concurrently. A failed variant is reported and
    skipped, never aborting the rest of the run.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        *,
        bucket: str,
        folder: str,
        sizes: Sequence[int],
        padding_ratio: float,
        webp_quality: int = 90,
    ) -> None:
        if not sizes:
            raise ValueError("At least one icon size is required")
        if not 0 <= padding_ratio < 0.5:
            raise ValueError("Padding ratio must be in [0, 0.5)")

        self._storage = storage
        self._bucket = bucket
        self._folder = folder.strip("/")
        self._sizes = tuple(sizes)
        self._padding_ratio = padding_ratio
        self._webp_quality = webp_quality

    @property
    def sizes(self) -> tuple[int, ...]:
        return self._sizes

    @property
    def expected(self) -> int:
        """Number of artifacts a complete run produces."""
        return len(self._sizes) * len(ICON_PURPOSES) * len(ICON_FORMATS)

    def artifact_path(self, size: int, purpose: str, fmt: str) -> str:
        name = icon_name(size, purpose, fmt)
        return f"{self._folder}/{name}" if self._folder else name

    async def generate_icon_set(
        self,
        source: bytes | Image.Image,
        *,
        cancel: CancellationToken | None = None,
        on_failure: FailureNotifier | None = None,
    ) -> AsyncIterator[IconArtifact]:
        """Yield each uploaded artifact, sizes outer, purpose then format inner.

        Raises ``InvalidImageError`` before the first artifact when ``source``
        cannot be decoded. Closing the generator early releases every image
        it holds.
        """
        if isinstance(source, Image.Image):
            image = source.convert("RGBA")
        else:
            image = await asyncio.to_thread(decode_image, source)

        with ExitStack() as stack:
            stack.enter_context(image)

            for size in self._sizes:
                if cancel is not None and await cancel.is_cancelled():
                    logger.info("Icon generation cancelled before size %d", size)
                    return

                artifacts = await self._derive_size(image, size, on_failure)
                for artifact in artifacts:
                    yield artifact

                logger.info(
                    "Processed icon size %dx%d",
                    size,
                    size,
                    extra={"uploaded": len(artifacts)},
                )

    async def run(
        self,
        source: bytes | Image.Image,
        *,
        cancel: CancellationToken | None = None,
        on_failure: FailureNotifier | None = None,
        on_artifact: ArtifactNotifier | None = None,
    ) -> IconSetResult:
        """Drain :meth:`generate_icon_set` into an :class:`IconSetResult`."""

        result = IconSetResult(expected=self.expected)

        async def _collect_failure(failure: IconFailure) -> None:
            result.failures.append(failure)
            if on_failure is not None:
                await on_failure(failure)

        async for artifact in self.generate_icon_set(
            source, cancel=cancel, on_failure=_collect_failure
        ):
            result.artifacts.append(artifact)
            if on_artifact is not None:
                await on_artifact(artifact)

        attempted = len(result.artifacts) + len(result.failures)
        result.cancelled = attempted < result.expected
        return result

    async def _derive_size(
        self,
        image: Image.Image,
        size: int,
        on_failure: FailureNotifier | None,
    ) -> list[IconArtifact]:
        with ExitStack() as stack:
            variants: dict[str, Image.Image | Exception] = {}

            resized = await asyncio.to_thread(resize_square, image, size)
            stack.enter_context(resized)
            variants["any"] = resized

            try:
                maskable = await asyncio.to_thread(
                    compose_maskable, resized, size, self._padding_ratio
                )
            except Exception as exc:
                variants["maskable"] = exc
            else:
                stack.enter_context(maskable)
                variants["maskable"] = maskable

            results = await asyncio.gather(
                *(
                    self._produce(variants[purpose], size, purpose, fmt, on_failure)
                    for purpose in ICON_PURPOSES
                    for fmt in ICON_FORMATS
                )
            )
        return [artifact for artifact in results if artifact is not None]

    async def _produce(
        self,
        variant: Image.Image | Exception,
        size: int,
        purpose: str,
        fmt: str,
        on_failure: FailureNotifier | None,
    ) -> IconArtifact | None:
        path = self.artifact_path(size, purpose, fmt)
        try:
            if isinstance(variant, Exception):
                raise variant
            # each encode thread gets its own copy of the pixels
            payload = await asyncio.to_thread(
                _encode_owned, variant.copy(), fmt, self._webp_quality
            )
            artifact = IconArtifact(
                size=size, purpose=purpose, format=fmt, payload=payload, path=path
            )
            artifact.url = await self._storage.upload(
                self._bucket,
                path,
                payload,
                content_type=artifact.content_type,
                upsert=True,
            )
            return artifact
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            name = icon_name(size, purpose, fmt)
            logger.warning(
                "Failed to produce icon %s: %s",
                name,
                exc,
                extra={"size": size, "purpose": purpose, "format": fmt},
            )
            if on_failure is not None:
                failure = IconFailure(
                    size=size, purpose=purpose, format=fmt, name=name, error=str(exc)
                )
                try:
                    await on_failure(failure)
                except Exception:
                    logger.exception("Failure notifier raised for icon %s", name)
            return None


def create_icon_pipeline(storage: ObjectStorage) -> IconPipeline:
    """Factory function to create an icon pipeline from application settings."""
    return IconPipeline(
        storage,
        bucket=settings.MEDIA_BUCKET,
        folder=settings.PWA_ICON_FOLDER,
        sizes=settings.icon_sizes,
        padding_ratio=settings.PWA_MASKABLE_PADDING,
        webp_quality=settings.WEBP_QUALITY,
    )
