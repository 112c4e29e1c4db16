"""Entry point — wires Config → pipeline stages → ImageAnalysisHandler → MCP server."""
import asyncio
import logging

from rich.console import Console
from rich.logging import RichHandler

from image_analysis.artifact_store import TempArtifactStore
from image_analysis.config import Config
from image_analysis.constants import MSG_SERVER_INTERRUPTED, MSG_SERVER_STARTING, MSG_SERVER_STOPPED
from image_analysis.fetcher import ImageFetcher
from image_analysis.handler import ImageAnalysisHandler
from image_analysis.server import build_server, serve
from image_analysis.transform import ImageTransformer
from image_analysis.vision.claude import ClaudeVisionClient
from image_analysis.vision.client import VisionClient
from image_analysis.vision.openai import OpenAIVisionClient


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    # stdout carries the MCP stream; logs go to stderr.
    root.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True))


def build_vision_client(config: Config) -> VisionClient:
    match (config.vision_provider, config.anthropic_api_key, config.openai_api_key):
        case ("claude", str() as k, _):
            cls, api_key = ClaudeVisionClient, k
        case (_, _, str() as k):
            cls, api_key = OpenAIVisionClient, k
        case _:
            raise ValueError(f"No API key configured for {config.vision_provider}")
    return cls(
        api_key=api_key,
        model=config.vision_model,
        timeout=config.inference_timeout,
        language=config.analysis_language,
    )


def build_handler(config: Config) -> ImageAnalysisHandler:
    return ImageAnalysisHandler(
        fetcher=ImageFetcher.from_config(config),
        vision_client=build_vision_client(config),
        store=TempArtifactStore(config.temp_dir),
        transformer=ImageTransformer() if config.resize_images else None,
    )


def main() -> None:
    config = Config.from_env()
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_SERVER_STARTING)

    server = build_server(build_handler(config))
    try:
        asyncio.run(serve(server))
    except KeyboardInterrupt:
        logger.info(MSG_SERVER_INTERRUPTED)
    logger.info(MSG_SERVER_STOPPED)


if __name__ == "__main__":
    main()
