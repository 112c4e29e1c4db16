from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from image_analysis.constants import (
    CLAUDE_VISION_MODEL,
    DEFAULT_ANALYSIS_LANGUAGE,
    DEFAULT_SLOW_DOMAINS,
    FETCH_MAX_ATTEMPTS,
    FETCH_RETRY_DELAY,
    FETCH_TIMEOUT,
    INFERENCE_TIMEOUT,
    OPENAI_VISION_MODEL,
    SLOW_DOMAIN_TIMEOUT,
    VISION_PROVIDER_CLAUDE,
    VISION_PROVIDER_OPENAI,
)

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    vision_provider: str
    vision_model: str
    openai_api_key: Optional[str]
    anthropic_api_key: Optional[str]
    inference_timeout: float
    fetch_timeout: float
    slow_domain_timeout: float
    slow_domains: tuple[str, ...]
    fetch_max_attempts: int
    fetch_retry_delay: float
    resize_images: bool
    analysis_language: str
    temp_dir: Optional[str]
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        provider = os.getenv("VISION_PROVIDER", VISION_PROVIDER_OPENAI).strip().lower()
        openai_api_key = os.getenv("OPENAI_API_KEY") or None
        anthropic_api_key = os.getenv("ANTHROPIC_API_KEY") or None
        openai_model = os.getenv("OPENAI_VISION_MODEL", OPENAI_VISION_MODEL)
        claude_model = os.getenv("CLAUDE_VISION_MODEL", CLAUDE_VISION_MODEL)
        inference_timeout = os.getenv("INFERENCE_TIMEOUT", str(INFERENCE_TIMEOUT))
        fetch_timeout = os.getenv("FETCH_TIMEOUT", str(FETCH_TIMEOUT))
        slow_domain_timeout = os.getenv("SLOW_DOMAIN_TIMEOUT", str(SLOW_DOMAIN_TIMEOUT))
        raw_slow_domains = os.getenv("SLOW_DOMAINS", DEFAULT_SLOW_DOMAINS)
        fetch_max_attempts = os.getenv("FETCH_MAX_ATTEMPTS", str(FETCH_MAX_ATTEMPTS))
        fetch_retry_delay = os.getenv("FETCH_RETRY_DELAY", str(FETCH_RETRY_DELAY))
        resize_images = os.getenv("RESIZE_IMAGES", "true")
        analysis_language = os.getenv("ANALYSIS_LANGUAGE", DEFAULT_ANALYSIS_LANGUAGE)
        temp_dir = os.getenv("TEMP_DIR") or None
        log_level = os.getenv("LOG_LEVEL", "INFO")

        slow_domains = tuple(
            d.strip().lower() for d in raw_slow_domains.split(",") if d.strip()
        )
        match provider:
            case "claude":
                vision_model = claude_model
            case _:
                vision_model = openai_model

        return cls._validate(
            vision_provider=provider,
            vision_model=vision_model,
            openai_api_key=openai_api_key,
            anthropic_api_key=anthropic_api_key,
            inference_timeout=float(inference_timeout),
            fetch_timeout=float(fetch_timeout),
            slow_domain_timeout=float(slow_domain_timeout),
            slow_domains=slow_domains,
            fetch_max_attempts=int(fetch_max_attempts),
            fetch_retry_delay=float(fetch_retry_delay),
            resize_images=resize_images.strip().lower() in _TRUTHY,
            analysis_language=analysis_language,
            temp_dir=temp_dir,
            log_level=log_level,
        )

    @staticmethod
    def _validate(
        vision_provider: str,
        vision_model: str,
        openai_api_key: Optional[str],
        anthropic_api_key: Optional[str],
        inference_timeout: float,
        fetch_timeout: float,
        slow_domain_timeout: float,
        slow_domains: tuple[str, ...],
        fetch_max_attempts: int,
        fetch_retry_delay: float,
        resize_images: bool,
        analysis_language: str,
        temp_dir: Optional[str],
        log_level: str,
    ) -> "Config":
        match (vision_provider, openai_api_key, anthropic_api_key):
            case ("openai", None | "", _):
                raise ValueError("OPENAI_API_KEY environment variable is required")
            case ("claude", _, None | ""):
                raise ValueError("ANTHROPIC_API_KEY environment variable is required")
            case ("openai" | "claude", _, _):
                pass
            case _:
                raise ValueError(
                    f"VISION_PROVIDER must be '{VISION_PROVIDER_OPENAI}' "
                    f"or '{VISION_PROVIDER_CLAUDE}', got '{vision_provider}'"
                )

        match fetch_max_attempts:
            case n if n < 1:
                raise ValueError("FETCH_MAX_ATTEMPTS must be at least 1")
            case _:
                pass

        return Config(
            vision_provider=vision_provider,
            vision_model=vision_model,
            openai_api_key=openai_api_key,
            anthropic_api_key=anthropic_api_key,
            inference_timeout=inference_timeout,
            fetch_timeout=fetch_timeout,
            slow_domain_timeout=slow_domain_timeout,
            slow_domains=slow_domains,
            fetch_max_attempts=fetch_max_attempts,
            fetch_retry_delay=fetch_retry_delay,
            resize_images=resize_images,
            analysis_language=analysis_language,
            temp_dir=temp_dir,
            log_level=log_level,
        )
