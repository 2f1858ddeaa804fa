"""Tests for PWA icon set generation and upload."""

import io

import httpx
import pytest
from PIL import Image

from storefront.errors import InvalidImageError, StorageRemoveError
from storefront.models.icons import ICON_FORMATS, ICON_PURPOSES, icon_name
from storefront.services.clients.object_storage import SupabaseObjectStorage
from storefront.services.icons.pipeline import CancellationToken, IconPipeline

DEFAULT_SIZES = (72, 96, 128, 144, 152, 192, 384, 512)


def _pipeline(storage, sizes=DEFAULT_SIZES, ratio=0.1):
    return IconPipeline(storage, bucket="media", folder="pwa", sizes=sizes, padding_ratio=ratio)


@pytest.mark.asyncio
async def test_full_icon_set_is_generated_in_order(memory_storage, png_bytes):
    pipeline = _pipeline(memory_storage)

    result = await pipeline.run(png_bytes)

    assert pipeline.expected == 32
    assert result.is_complete
    assert result.failures == []
    assert [artifact.name for artifact in result.artifacts] == [
        icon_name(size, purpose, fmt)
        for size in DEFAULT_SIZES
        for purpose in ICON_PURPOSES
        for fmt in ICON_FORMATS
    ]
    assert len(memory_storage.objects) == 32
    assert all(upload["upsert"] for upload in memory_storage.uploads)


@pytest.mark.asyncio
async def test_artifacts_have_requested_dimensions(memory_storage, png_bytes):
    result = await _pipeline(memory_storage, sizes=(192,)).run(png_bytes)

    by_name = {artifact.name: artifact for artifact in result.artifacts}
    with Image.open(io.BytesIO(by_name["icon-192-maskable.png"].payload)) as maskable:
        assert maskable.size == (192, 192)
        assert maskable.convert("RGB").getpixel((5, 5)) == (255, 255, 255)
    with Image.open(io.BytesIO(by_name["icon-192.webp"].payload)) as plain:
        assert plain.format == "WEBP"
        assert plain.size == (192, 192)

    assert by_name["icon-192.png"].url == "https://cdn.test/media/pwa/icon-192.png"
    assert by_name["icon-192.png"].path == "pwa/icon-192.png"


@pytest.mark.asyncio
async def test_single_upload_failure_does_not_abort_the_run(memory_storage, png_bytes):
    memory_storage.fail_paths.add("pwa/icon-192-maskable.webp")
    notices = []

    async def _notify(failure):
        notices.append(failure)

    result = await _pipeline(memory_storage).run(png_bytes, on_failure=_notify)

    assert len(result.artifacts) == 31
    assert [failure.name for failure in result.failures] == ["icon-192-maskable.webp"]
    assert [failure.name for failure in notices] == ["icon-192-maskable.webp"]
    assert not result.cancelled
    assert not result.is_complete
    assert "icon-512-maskable.png" in {artifact.name for artifact in result.artifacts}


@pytest.mark.asyncio
async def test_failing_notifier_is_not_fatal(memory_storage, png_bytes):
    memory_storage.fail_paths.add("pwa/icon-72.png")

    async def _broken(failure):
        raise RuntimeError("notifier down")

    artifacts = [
        artifact
        async for artifact in _pipeline(memory_storage, sizes=(72, 96)).generate_icon_set(
            png_bytes, on_failure=_broken
        )
    ]

    assert len(artifacts) == 7


@pytest.mark.asyncio
async def test_undecodable_source_fails_before_any_upload(memory_storage):
    with pytest.raises(InvalidImageError):
        await _pipeline(memory_storage).run(b"not an image")

    assert memory_storage.uploads == []


@pytest.mark.asyncio
async def test_cancellation_stops_after_current_size(memory_storage, png_bytes):
    token = CancellationToken()

    async def _cancel_on_first(artifact):
        token.cancel()

    result = await _pipeline(memory_storage, sizes=(16, 32, 48)).run(
        png_bytes, cancel=token, on_artifact=_cancel_on_first
    )

    assert result.cancelled
    assert [artifact.size for artifact in result.artifacts] == [16, 16, 16, 16]


@pytest.mark.asyncio
async def test_cancelled_before_start_uploads_nothing(memory_storage, png_bytes):
    token = CancellationToken()
    token.cancel()

    result = await _pipeline(memory_storage).run(png_bytes, cancel=token)

    assert result.cancelled
    assert result.artifacts == []
    assert memory_storage.uploads == []


@pytest.mark.asyncio
async def test_pipeline_accepts_decoded_image(memory_storage):
    with Image.new("RGB", (50, 80), (0, 128, 0)) as source:
        result = await _pipeline(memory_storage, sizes=(48,)).run(source)

    assert result.is_complete


@pytest.mark.parametrize("ratio", [-0.1, 0.5, 0.9])
def test_invalid_padding_ratio_is_rejected(memory_storage, ratio):
    with pytest.raises(ValueError):
        _pipeline(memory_storage, ratio=ratio)


def test_empty_size_list_is_rejected(memory_storage):
    with pytest.raises(ValueError):
        _pipeline(memory_storage, sizes=())


@pytest.mark.asyncio
async def test_rerun_overwrites_same_urls_through_storage_api(png_bytes):
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"Key": request.url.path})

    storage = SupabaseObjectStorage(
        base_url="https://project.supabase.test/",
        service_key="service-key",
        transport=httpx.MockTransport(_handler),
    )
    pipeline = _pipeline(storage, sizes=(48,))

    try:
        first = await pipeline.run(png_bytes)
        second = await pipeline.run(png_bytes)
    finally:
        await storage.aclose()

    assert [a.url for a in first.artifacts] == [a.url for a in second.artifacts]
    assert first.artifacts[0].url == (
        "https://project.supabase.test/storage/v1/object/public/media/pwa/icon-48.png"
    )
    assert len(requests) == 8
    assert all(request.headers["x-upsert"] == "true" for request in requests)
    assert all(request.headers["authorization"] == "Bearer service-key" for request in requests)
    assert {request.url.path for request in requests} == {
        f"/storage/v1/object/media/pwa/{icon_name(48, purpose, fmt)}"
        for purpose in ICON_PURPOSES
        for fmt in ICON_FORMATS
    }


@pytest.mark.asyncio
async def test_storage_error_response_becomes_failure(png_bytes):
    storage = SupabaseObjectStorage(
        base_url="https://project.supabase.test",
        service_key="service-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )
    try:
        result = await _pipeline(storage, sizes=(48,)).run(png_bytes)
    finally:
        await storage.aclose()

    assert result.artifacts == []
    assert len(result.failures) == 4
    assert "HTTP 500" in result.failures[0].error


@pytest.mark.asyncio
async def test_supabase_remove_failure_is_reported():
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="storage offline")

    storage = SupabaseObjectStorage(
        base_url="https://project.supabase.test",
        service_key="service-key",
        transport=httpx.MockTransport(_handler),
    )

    try:
        with pytest.raises(StorageRemoveError, match="HTTP 500"):
            await storage.remove("media", "products/p1/a.png")
    finally:
        await storage.aclose()


def test_object_path_only_maps_urls_from_the_same_store():
    storage = SupabaseObjectStorage(
        base_url="https://project.supabase.test",
        service_key="service-key",
    )
    own_url = storage.public_url("media", "products/p1/my shot.png")

    assert storage.object_path("media", own_url) == "products/p1/my shot.png"
    assert storage.object_path("media", "https://elsewhere.test/a.png") is None
    assert storage.object_path("media", None) is None
