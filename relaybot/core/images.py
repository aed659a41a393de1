"""Temporary storage for generated images."""
import asyncio
import logging
import time
from pathlib import Path

from relaybot.core.errors import TransportError

logger = logging.getLogger(__name__)


class ImageSink:
    """Writes image bytes to <directory>/<microsecond timestamp>.png."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    async def save(self, data: bytes) -> Path:
        """Persist image bytes and return the file path.

        Raises:
            TransportError: If the file cannot be written
        """
        try:
            return await asyncio.to_thread(self._write, data)
        except OSError as e:
            logger.error(f"Image write failed in {self.directory}: {e}")
            raise TransportError(f"Could not write image: {e}") from e

    def _write(self, data: bytes) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)

        stamp = time.time_ns() // 1000
        while True:
            path = self.directory / f"{stamp}.png"
            try:
                # "xb" fails if another task already took this name
                with open(path, "xb") as f:
                    f.write(data)
                break
            except FileExistsError:
                stamp += 1

        logger.info(f"Saved image: {path} ({len(data)} bytes)")
        return path
