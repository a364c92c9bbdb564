"""Notification adapters for different channels."""

from pinco.adapters.notifications.email import EmailConfig, EmailNotifier

__all__ = ["EmailNotifier", "EmailConfig"]
