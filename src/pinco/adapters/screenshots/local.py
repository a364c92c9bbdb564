"""Screenshot storage on the local filesystem."""

import asyncio
from pathlib import Path

import structlog

logger = structlog.get_logger()


class LocalScreenshotStorage:
    """Keeps screenshots as ``<uniqid>.png`` files in a directory.

    The directory is expected to be served as static files under
    ``base_url``.
    """

    def __init__(self, base_dir: str, base_url: str) -> None:
        """Initialize the storage.

        Args:
            base_dir: Directory the files are written to.
            base_url: Public URL the directory is served from.
        """
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/")

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save(self, data: bytes, uniqid: str) -> str:
        """Store a screenshot and return its file name."""
        filename = f"{uniqid}.png"
        await asyncio.to_thread(self._write, self.base_dir / filename, data)
        logger.info("screenshot_saved", filename=filename, size=len(data))
        return filename

    def get_url(self, filename: str) -> str:
        """Return the public URL of a stored screenshot."""
        return f"{self.base_url}/{filename}"

    async def delete(self, filename: str) -> None:
        """Remove a stored screenshot. Missing files are ignored."""
        await asyncio.to_thread((self.base_dir / filename).unlink, missing_ok=True)
