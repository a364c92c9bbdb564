"""Screenshot storage adapters."""

from pinco.adapters.screenshots.local import LocalScreenshotStorage

__all__ = ["LocalScreenshotStorage"]
