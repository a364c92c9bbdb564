"""Application services."""

from pinco.services.notification import NotificationService, extract_mentions
from pinco.services.widget import render_widget_script

__all__ = [
    "NotificationService",
    "extract_mentions",
    "render_widget_script",
]
