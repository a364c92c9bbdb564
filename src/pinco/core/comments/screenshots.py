"""Screenshot storage interface."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ScreenshotStorage(Protocol):
    """Stores the page screenshot attached to a comment."""

    async def save(self, data: bytes, uniqid: str) -> str:
        """Store a screenshot and return its file name."""
        ...

    def get_url(self, filename: str) -> str:
        """Return the public URL of a stored screenshot."""
        ...

    async def delete(self, filename: str) -> None:
        """Remove a stored screenshot. Missing files are ignored."""
        ...
