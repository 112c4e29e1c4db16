"""Error taxonomy for the analyze_image pipeline.

Every message is user-facing: the tool handler embeds ``str(exc)`` verbatim
in the error result returned to the caller.
"""
from typing import Optional

from image_analysis.constants import (
    MSG_ERR_FETCH_HTTP,
    MSG_ERR_FETCH_NETWORK,
    MSG_ERR_FETCH_TIMEOUT,
    MSG_ERR_FETCH_TOO_LARGE,
    MSG_ERR_INFERENCE_PROVIDER,
    MSG_ERR_INFERENCE_TIMEOUT,
    MSG_ERR_INVALID_ARGUMENTS,
    MSG_ERR_INVALID_URL,
    MSG_ERR_NOT_AN_IMAGE,
    MSG_ERR_TRANSFORM,
)


class ImageAnalysisError(Exception):
    """Base class for every failure raised by the pipeline."""


class InvalidArgumentsError(ImageAnalysisError):

    def __init__(self) -> None:
        super().__init__(MSG_ERR_INVALID_ARGUMENTS)


# ── fetching ──────────────────────────────────────────────────────────────────


class FetchError(ImageAnalysisError):
    """The image URL could not be turned into image bytes."""

    def __init__(self, message: str, http_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class InvalidImageUrlError(FetchError):

    def __init__(self, url: str) -> None:
        super().__init__(MSG_ERR_INVALID_URL % url)
        self.url = url


class FetchTimeoutError(FetchError):

    def __init__(self, timeout: float) -> None:
        super().__init__(MSG_ERR_FETCH_TIMEOUT % timeout)
        self.timeout = timeout


class FetchHttpError(FetchError):

    def __init__(self, status: int) -> None:
        super().__init__(MSG_ERR_FETCH_HTTP % status, http_status=status)


class FetchNetworkError(FetchError):

    def __init__(self, detail: str) -> None:
        super().__init__(MSG_ERR_FETCH_NETWORK % detail)


class FetchTooLargeError(FetchError):

    def __init__(self, max_bytes: int) -> None:
        super().__init__(MSG_ERR_FETCH_TOO_LARGE % max_bytes)
        self.max_bytes = max_bytes


class FetchContentTypeError(FetchError):

    def __init__(self, content_type: Optional[str]) -> None:
        super().__init__(MSG_ERR_NOT_AN_IMAGE % content_type)
        self.content_type = content_type


# ── transformation ────────────────────────────────────────────────────────────


class TransformError(ImageAnalysisError):

    def __init__(self, detail: str) -> None:
        super().__init__(MSG_ERR_TRANSFORM % detail)


# ── inference ─────────────────────────────────────────────────────────────────


class InferenceError(ImageAnalysisError):
    """The vision model call failed. Never retried."""


class InferenceTimeoutError(InferenceError):

    def __init__(self, provider: str) -> None:
        super().__init__(MSG_ERR_INFERENCE_TIMEOUT % provider)


class InferenceProviderError(InferenceError):

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(MSG_ERR_INFERENCE_PROVIDER % (provider, detail))
