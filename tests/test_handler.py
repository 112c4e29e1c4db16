import io
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from PIL import Image

from image_analysis.artifact_store import TempArtifactStore
from image_analysis.errors import (
    FetchContentTypeError,
    InferenceTimeoutError,
    InvalidArgumentsError,
)
from image_analysis.fetcher import ImageFetcher
from image_analysis.handler import ImageAnalysisHandler, Stage, StageTracker
from image_analysis.models import FetchResult
from image_analysis.transform import ImageTransformer
from image_analysis.vision.client import VisionClient


class FakeVisionClient(VisionClient):
    """Records what it was given and whether the artifact existed at that moment."""

    provider = "Fake"

    def __init__(self, reply: str = "a cat on a sofa", error: Exception | None = None) -> None:
        super().__init__(api_key="test-key", model="fake-model")
        self.reply = reply
        self.error = error
        self.calls: list[str] = []
        self.existed: list[bool] = []
        self.payloads: list[bytes] = []

    async def analyze(self, image_reference: str) -> str:
        self.calls.append(image_reference)
        path = Path(image_reference)
        self.existed.append(path.exists())
        self.payloads.append(path.read_bytes() if path.exists() else b"")
        if self.error is not None:
            raise self.error
        return self.reply


def _fetcher_returning(data: bytes, content_type: str = "image/png") -> AsyncMock:
    fetcher = AsyncMock(spec=ImageFetcher)
    fetcher.fetch.return_value = FetchResult(data=data, content_type=content_type, size_bytes=len(data))
    return fetcher


def _handler(tmp_path, fetcher, vision, resize: bool = True) -> ImageAnalysisHandler:
    return ImageAnalysisHandler(
        fetcher=fetcher,
        vision_client=vision,
        store=TempArtifactStore(str(tmp_path)),
        transformer=ImageTransformer() if resize else None,
    )


# ── validation ────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "arguments",
    [None, {}, {"imageUrl": None}, {"imageUrl": 42}, {"image_url": "https://x/y.png"}, "https://x/y.png"],
)
async def test_invalid_arguments_raise_before_any_io(tmp_path, arguments):
    fetcher = _fetcher_returning(b"")
    vision = FakeVisionClient()

    with pytest.raises(InvalidArgumentsError, match="imageUrl is required"):
        await _handler(tmp_path, fetcher, vision).handle(arguments)

    fetcher.fetch.assert_not_called()
    assert vision.calls == []


# ── success path ──────────────────────────────────────────────────────────────


async def test_png_is_resized_stored_analyzed_and_deleted(tmp_path, image_factory):
    fetcher = _fetcher_returning(image_factory((1600, 1200)), "image/png")
    vision = FakeVisionClient()
    tracker = StageTracker("https://example.com/cat.png")

    result = await _handler(tmp_path, fetcher, vision).handle(
        {"imageUrl": "https://example.com/cat.png"}, tracker
    )

    assert result.text == "a cat on a sofa"
    assert result.is_error is False
    fetcher.fetch.assert_awaited_once_with("https://example.com/cat.png")
    assert len(vision.calls) == 1
    assert vision.existed == [True]
    assert vision.calls[0].endswith(".jpg")
    sent = Image.open(io.BytesIO(vision.payloads[0]))
    assert sent.format == "JPEG"
    assert sent.size == (512, 384)
    assert list(tmp_path.iterdir()) == []
    assert tracker.history == [
        Stage.VALIDATING,
        Stage.FETCHING,
        Stage.TRANSFORMING,
        Stage.STORING,
        Stage.INFERRING,
        Stage.CLEANING_UP,
        Stage.DONE,
    ]


async def test_without_transformer_original_bytes_are_sent(tmp_path, png_bytes):
    fetcher = _fetcher_returning(png_bytes, "image/png")
    vision = FakeVisionClient()
    tracker = StageTracker("https://example.com/cat.png")

    result = await _handler(tmp_path, fetcher, vision, resize=False).handle(
        {"imageUrl": "https://example.com/cat.png"}, tracker
    )

    assert result.is_error is False
    assert vision.payloads == [png_bytes]
    assert vision.calls[0].endswith(".png")
    assert Stage.TRANSFORMING not in tracker.history
    assert list(tmp_path.iterdir()) == []


async def test_two_calls_use_independent_artifacts(tmp_path, png_bytes):
    fetcher = _fetcher_returning(png_bytes)
    vision = FakeVisionClient()
    handler = _handler(tmp_path, fetcher, vision)

    await handler.handle({"imageUrl": "https://example.com/cat.png"})
    await handler.handle({"imageUrl": "https://example.com/cat.png"})

    assert len(set(vision.calls)) == 2
    assert vision.existed == [True, True]
    assert list(tmp_path.iterdir()) == []


# ── failure paths ─────────────────────────────────────────────────────────────


async def test_non_image_url_returns_error_result(tmp_path, sleep):
    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html>")

    fetcher = ImageFetcher(transport=httpx.MockTransport(respond), sleep=sleep)
    vision = FakeVisionClient()

    result = await _handler(tmp_path, fetcher, vision).handle({"imageUrl": "https://example.com/page"})

    assert result.is_error is True
    assert result.text == "Image analysis error: URL is not an image: text/html"
    assert sleep.delays == [2.0, 2.0]
    assert vision.calls == []
    assert list(tmp_path.iterdir()) == []


async def test_fetch_error_is_reported_with_its_message(tmp_path):
    fetcher = AsyncMock(spec=ImageFetcher)
    fetcher.fetch.side_effect = FetchContentTypeError("application/json")

    result = await _handler(tmp_path, fetcher, FakeVisionClient()).handle({"imageUrl": "https://x/y"})

    assert result.is_error is True
    assert "URL is not an image: application/json" in result.text


async def test_invalid_url_is_an_error_result_not_a_fault(tmp_path, sleep):
    fetcher = ImageFetcher(sleep=sleep)

    result = await _handler(tmp_path, fetcher, FakeVisionClient()).handle({"imageUrl": "not a url"})

    assert result.is_error is True
    assert "Invalid image URL" in result.text


async def test_corrupt_image_fails_without_storing(tmp_path):
    fetcher = _fetcher_returning(b"not really a png")
    vision = FakeVisionClient()
    tracker = StageTracker("https://example.com/cat.png")

    result = await _handler(tmp_path, fetcher, vision).handle(
        {"imageUrl": "https://example.com/cat.png"}, tracker
    )

    assert result.is_error is True
    assert result.text.startswith("Image analysis error: Could not decode image")
    assert vision.calls == []
    assert Stage.STORING not in tracker.history
    assert tracker.history[-1] == Stage.FAILED
    assert list(tmp_path.iterdir()) == []


async def test_inference_timeout_still_deletes_artifact(tmp_path, png_bytes):
    fetcher = _fetcher_returning(png_bytes)
    vision = FakeVisionClient(error=InferenceTimeoutError("OpenAI"))
    tracker = StageTracker("https://example.com/cat.png")

    result = await _handler(tmp_path, fetcher, vision).handle(
        {"imageUrl": "https://example.com/cat.png"}, tracker
    )

    assert result.is_error is True
    assert result.text == "Image analysis error: OpenAI API request timed out. Please try again later."
    assert vision.existed == [True]
    assert not Path(vision.calls[0]).exists()
    assert list(tmp_path.iterdir()) == []
    assert tracker.history[-2:] == [Stage.INFERRING, Stage.FAILED]


async def test_unexpected_error_is_still_an_error_result(tmp_path, png_bytes):
    fetcher = _fetcher_returning(png_bytes)
    vision = FakeVisionClient(error=RuntimeError("boom"))

    result = await _handler(tmp_path, fetcher, vision).handle({"imageUrl": "https://example.com/cat.png"})

    assert result.is_error is True
    assert result.text == "Image analysis error: boom"
    assert list(tmp_path.iterdir()) == []


async def test_cleanup_failure_does_not_mask_result(tmp_path, png_bytes):
    class VanishingVisionClient(FakeVisionClient):
        async def analyze(self, image_reference: str) -> str:
            Path(image_reference).unlink()
            return "still fine"

    fetcher = _fetcher_returning(png_bytes)

    result = await _handler(tmp_path, fetcher, VanishingVisionClient()).handle(
        {"imageUrl": "https://example.com/cat.png"}
    )

    assert result.text == "still fine"
    assert result.is_error is False
