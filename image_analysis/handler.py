"""ImageAnalysisHandler — runs one analyze_image call from URL to description.

Stages run strictly in order::

    VALIDATING → FETCHING → (TRANSFORMING) → STORING → INFERRING → CLEANING_UP → DONE

Invalid arguments raise InvalidArgumentsError so the server can answer with a
protocol fault. Any failure after validation ends in FAILED and is returned as
an error-flagged AnalysisResult instead of being raised. Once STORING has
succeeded the temp artifact is released on every exit path.
"""
import logging
from enum import Enum
from typing import Any, Optional

from image_analysis.artifact_store import TempArtifactStore
from image_analysis.constants import MSG_ANALYSIS_FAILED, MSG_ERR_ANALYSIS, MSG_STAGE
from image_analysis.fetcher import ImageFetcher
from image_analysis.models import AnalysisResult, ImageRequest, parse_arguments
from image_analysis.transform import ImageTransformer
from image_analysis.vision.client import VisionClient

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    VALIDATING = "validating"
    FETCHING = "fetching"
    TRANSFORMING = "transforming"
    STORING = "storing"
    INFERRING = "inferring"
    CLEANING_UP = "cleaning up"
    DONE = "done"
    FAILED = "failed"


class StageTracker:
    """Per-call record of the stage currently running."""

    def __init__(self, url: str) -> None:
        self._url = url
        self.stage = Stage.VALIDATING
        self.history: list[Stage] = [Stage.VALIDATING]

    def enter(self, stage: Stage) -> None:
        self.stage = stage
        self.history.append(stage)
        logger.debug(MSG_STAGE, stage.value, self._url)


class ImageAnalysisHandler:

    def __init__(
        self,
        fetcher: ImageFetcher,
        vision_client: VisionClient,
        store: TempArtifactStore,
        transformer: Optional[ImageTransformer] = None,
    ) -> None:
        self._fetcher = fetcher
        self._vision_client = vision_client
        self._store = store
        self._transformer = transformer

    async def handle(self, arguments: Any, tracker: Optional[StageTracker] = None) -> AnalysisResult:
        request = parse_arguments(arguments)
        tracker = tracker or StageTracker(request.image_url)

        try:
            text = await self._run(request, tracker)
        except Exception as exc:
            logger.exception(MSG_ANALYSIS_FAILED, tracker.stage.value)
            tracker.enter(Stage.FAILED)
            return AnalysisResult(text=MSG_ERR_ANALYSIS % exc, is_error=True)

        tracker.enter(Stage.DONE)
        return AnalysisResult(text=text)

    async def _run(self, request: ImageRequest, tracker: StageTracker) -> str:
        tracker.enter(Stage.FETCHING)
        fetched = await self._fetcher.fetch(request.image_url)
        data, content_type = fetched.data, fetched.content_type

        match self._transformer:
            case None:
                pass
            case transformer:
                tracker.enter(Stage.TRANSFORMING)
                data = await transformer.transform(data)
                content_type = transformer.content_type

        tracker.enter(Stage.STORING)
        async with self._store.artifact(data, content_type) as artifact:
            tracker.enter(Stage.INFERRING)
            text = await self._vision_client.analyze(artifact.locator)
            tracker.enter(Stage.CLEANING_UP)
        return text
