"""HTML email templates."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Literal

_STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")

_BASE_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
           line-height: 1.6; color: #333; margin: 0; padding: 0; background-color: #f4f4f4; }
    .container { max-width: 600px; margin: 16px auto; background-color: #ffffff;
                 border-radius: 8px; overflow: hidden; }
    .header { background-color: #007bff; color: white; padding: 20px; text-align: center; }
    .header h1 { margin: 0; font-size: 24px; font-weight: 600; }
    .content { padding: 30px; }
    .button { display: inline-block; padding: 12px 24px; background-color: #007bff;
              color: white; text-decoration: none; border-radius: 5px; font-weight: 600; }
    .button.success { background-color: #28a745; }
    .blockquote { border-left: 4px solid #007bff; margin: 20px 0; color: #555;
                  background-color: #f8f9fa; padding: 15px 20px; border-radius: 4px; }
    .footer { background-color: #f8f9fa; padding: 20px; text-align: center;
              font-size: 14px; color: #666; }
    hr { border: none; border-top: 1px solid #e9ecef; margin: 20px 0; }
"""


def escape_html(text: str) -> str:
    """Escape text for inclusion in HTML."""
    return html.escape(text, quote=True)


def strip_html(markup: str) -> str:
    """Reduce an HTML document to its visible text on one line."""
    text = _STYLE_RE.sub("", markup)
    text = _SCRIPT_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    return _SPACE_RE.sub(" ", html.unescape(text)).strip()


def base_layout(content: str, footer: str | None = None) -> str:
    """Wrap email content in the branded layout."""
    footer_html = f'<div class="footer">{footer}</div>' if footer else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <style>{_BASE_STYLE}</style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>Pinco</h1></div>
    <div class="content">{content}</div>
    {footer_html}
  </div>
</body>
</html>"""


@dataclass(frozen=True)
class RenderedEmail:
    """Subject and bodies of an email ready to send."""

    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class MentionTemplate:
    """Email telling a user they were mentioned in a comment or reply."""

    author_name: str
    mention_type: Literal["comment", "reply"]
    site_name: str
    content: str
    url: str

    def render(self) -> RenderedEmail:
        """Render the email."""
        author = escape_html(self.author_name)
        site = escape_html(self.site_name)
        body = f"""
      <h2>You were mentioned!</h2>
      <p><strong>{author}</strong> mentioned you in a {self.mention_type}
         on <strong>{site}</strong>:</p>
      <div class="blockquote">{escape_html(self.content)}</div>
      <p style="text-align: center;">
        <a href="{escape_html(self.url)}" class="button">View {self.mention_type}</a>
      </p>
      <hr>
      <p style="color: #666; font-size: 14px;">
        You received this email because someone mentioned you on {site}.
      </p>
        """
        markup = base_layout(body)
        return RenderedEmail(
            subject=(
                f"{self.author_name} mentioned you in a {self.mention_type} on {self.site_name}"
            ),
            html=markup,
            text=strip_html(markup),
        )


@dataclass(frozen=True)
class InvitationTemplate:
    """Email inviting a user to collaborate on a site."""

    site_name: str
    login_url: str

    def render(self) -> RenderedEmail:
        """Render the email."""
        site = escape_html(self.site_name)
        link = escape_html(self.login_url)
        body = f"""
      <h2>Welcome to {site}!</h2>
      <p>You've been invited to join <strong>{site}</strong> as a collaborator.</p>
      <p>Click the button below to set up your account and get started:</p>
      <p style="text-align: center; margin: 30px 0;">
        <a href="{link}" class="button success">Accept Invitation</a>
      </p>
      <p style="color: #666;">
        <strong>Note:</strong> If you didn't expect this invitation, you can safely ignore
        this email.
      </p>
      <hr>
      <p style="color: #999; font-size: 12px;">
        If the button doesn't work, copy and paste this link into your browser:<br>
        <a href="{link}" style="color: #007bff; word-break: break-all;">{link}</a>
      </p>
        """
        footer = "<p>Need help? Reply to the person who invited you.</p>"
        markup = base_layout(body, footer)
        return RenderedEmail(
            subject=f"You've been invited to collaborate on {self.site_name}",
            html=markup,
            text=strip_html(markup),
        )
