from dataclasses import dataclass
from typing import Any

from image_analysis.errors import InvalidArgumentsError


@dataclass(frozen=True)
class ImageRequest:
    image_url: str


@dataclass(frozen=True)
class FetchResult:
    data: bytes
    content_type: str
    size_bytes: int


@dataclass(frozen=True)
class TempArtifact:
    locator: str
    data: bytes
    content_type: str


@dataclass(frozen=True)
class AnalysisResult:
    text: str
    is_error: bool = False


def parse_arguments(arguments: Any) -> ImageRequest:
    """Turn raw tool-call arguments into an ImageRequest or raise InvalidArgumentsError."""
    match arguments:
        case {"imageUrl": str() as url}:
            return ImageRequest(image_url=url)
        case _:
            raise InvalidArgumentsError()
