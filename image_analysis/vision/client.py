"""VisionClient — abstract base for image analysis backends."""
import base64
import logging
import mimetypes
from abc import ABC, abstractmethod

import aiofiles

from image_analysis.constants import (
    DEFAULT_ANALYSIS_LANGUAGE,
    INFERENCE_MAX_TOKENS,
    INFERENCE_TIMEOUT,
    MSG_PROVIDER_ERROR,
    RESIZE_OUTPUT_CONTENT_TYPE,
    VISION_SYSTEM_PROMPT,
)
from image_analysis.errors import (
    InferenceError,
    InferenceProviderError,
    InferenceTimeoutError,
)

logger = logging.getLogger(__name__)

_PASSTHROUGH_PREFIXES = ("http://", "https://", "data:")
_TIMEOUT_MARKERS = ("timeout", "timed out")


def is_remote_reference(image_reference: str) -> bool:
    return image_reference.startswith(_PASSTHROUGH_PREFIXES)


async def read_local_image(path: str) -> tuple[str, str]:
    """Return (media_type, base64 data) for an image file on disk."""
    media_type, _ = mimetypes.guess_type(path)
    async with aiofiles.open(path, "rb") as f:
        data = await f.read()
    return media_type or RESIZE_OUTPUT_CONTENT_TYPE, base64.standard_b64encode(data).decode()


async def to_image_url(image_reference: str) -> str:
    """URLs pass through unchanged; local paths become base64 data URLs."""
    match is_remote_reference(image_reference):
        case True:
            return image_reference
        case False:
            media_type, data = await read_local_image(image_reference)
            return f"data:{media_type};base64,{data}"


def _mentions_timeout(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def wrap_provider_error(provider: str, exc: Exception, timeout_types: tuple[type, ...]) -> InferenceError:
    logger.debug(MSG_PROVIDER_ERROR, provider, exc)
    match exc:
        case _ if isinstance(exc, timeout_types) or _mentions_timeout(exc):
            return InferenceTimeoutError(provider)
        case _:
            return InferenceProviderError(provider, str(exc) or type(exc).__name__)


class VisionClient(ABC):

    provider: str = ""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = INFERENCE_TIMEOUT,
        language: str = DEFAULT_ANALYSIS_LANGUAGE,
        max_tokens: int = INFERENCE_MAX_TOKENS,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._system_prompt = VISION_SYSTEM_PROMPT % language

    @abstractmethod
    async def analyze(self, image_reference: str) -> str:
        """Describe the image at ``image_reference`` (URL or local path).

        Returns a non-empty description. Raises InferenceTimeoutError or
        InferenceProviderError on failure; never retries.
        """
        ...
