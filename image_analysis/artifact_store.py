"""TempArtifactStore — one uniquely named temp file per tool call."""
import logging
import mimetypes
import tempfile
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from image_analysis.constants import (
    MSG_CLEANUP_FAILED,
    TEMP_FILE_DEFAULT_SUFFIX,
    TEMP_FILE_PREFIX,
)
from image_analysis.models import TempArtifact

logger = logging.getLogger(__name__)


def suffix_for(content_type: str) -> str:
    match mimetypes.guess_extension(content_type):
        case None:
            return TEMP_FILE_DEFAULT_SUFFIX
        case ".jpe":
            return ".jpg"
        case ext:
            return ext


class TempArtifactStore:

    def __init__(self, directory: Optional[str] = None) -> None:
        self._directory = Path(directory or tempfile.gettempdir())

    @property
    def directory(self) -> Path:
        return self._directory

    def _unique_path(self, content_type: str) -> Path:
        stamp = int(time.time() * 1000)
        name = f"{TEMP_FILE_PREFIX}{stamp}-{uuid.uuid4().hex}{suffix_for(content_type)}"
        return self._directory / name

    async def store(self, data: bytes, content_type: str) -> TempArtifact:
        path = self._unique_path(content_type)
        try:
            async with aiofiles.open(path, "xb") as f:
                await f.write(data)
        except BaseException:
            # The file may exist even though the write failed.
            await self.release(str(path))
            raise
        logger.debug("Stored temp artifact %s (%d bytes)", path, len(data))
        return TempArtifact(locator=str(path), data=data, content_type=content_type)

    async def release(self, locator: str) -> None:
        """Delete the artifact. Failures are logged, never raised."""
        try:
            await aiofiles.os.remove(locator)
        except OSError as exc:
            logger.warning(MSG_CLEANUP_FAILED, locator, exc)
            return
        logger.debug("Deleted temp artifact %s", locator)

    @asynccontextmanager
    async def artifact(self, data: bytes, content_type: str) -> AsyncIterator[TempArtifact]:
        stored = await self.store(data, content_type)
        try:
            yield stored
        finally:
            await self.release(stored.locator)
