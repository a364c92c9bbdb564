"""Response models for the widget and backoffice surfaces.

The widget is served to every collaborator of a site and only gets
public profile fields. The backoffice is ROOT-only and also sees roles,
memberships and timestamps. Domain objects are mapped explicitly so a
new domain field never leaks to a surface by accident.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from pinco.core.auth.types import Site, SiteRole, User, UserRole, UserSite
from pinco.core.comments.types import Comment, CommentDetails, CommentView, Reply


class WidgetUserView(BaseModel):
    """User as shown inside the widget."""

    id: int
    email: str
    name: str
    username: str
    active: bool
    color: str


class SiteView(BaseModel):
    """Site as shown in the backoffice."""

    id: int
    name: str
    license: str
    domain: str
    url: str
    active: bool
    created: datetime
    updated: datetime


class MembershipView(BaseModel):
    """Membership of a user in a site."""

    user_id: int
    site_id: int
    roles: list[SiteRole]
    pending: bool
    created: datetime
    updated: datetime
    site: SiteView | None = None
    user: BackofficeUserView | None = None


class BackofficeUserView(BaseModel):
    """User as shown in the backoffice."""

    id: int
    email: str
    name: str
    username: str
    active: bool
    color: str
    roles: list[UserRole]
    has_secret: bool
    created: datetime
    updated: datetime
    sites: list[MembershipView] | None = None


MembershipView.model_rebuild()


class ReplyView(BaseModel):
    """Reply in a comment thread."""

    id: int
    comment_id: int
    message: str
    user_id: int
    created: datetime
    updated: datetime
    user: WidgetUserView | None = None


class CommentThreadView(BaseModel):
    """Comment with its replies and the caller's view state."""

    id: int
    uniqid: str
    message: str
    user_id: int
    url: str
    details: CommentDetails | None
    reference: str | None
    resolved: bool
    screenshot: str | None
    viewed: datetime | None
    created: datetime
    updated: datetime
    user: WidgetUserView | None = None
    replies: list[ReplyView] = []


class ViewStateView(BaseModel):
    """The caller's view state of one comment."""

    user_id: int
    viewed: datetime | None


def widget_user(user: User) -> WidgetUserView:
    """Map a user for the widget."""
    return WidgetUserView(
        id=user.id,
        email=user.email,
        name=user.name,
        username=user.username,
        active=user.active,
        color=user.color,
    )


def site_view(site: Site) -> SiteView:
    """Map a site for the backoffice."""
    return SiteView(**site.model_dump(include=set(SiteView.model_fields)))


def membership_view(membership: UserSite) -> MembershipView:
    """Map a membership for the backoffice."""
    return MembershipView(
        user_id=membership.user_id,
        site_id=membership.site_id,
        roles=membership.roles,
        pending=membership.pending,
        created=membership.created,
        updated=membership.updated,
        site=site_view(membership.site) if membership.site else None,
        user=backoffice_user(membership.user) if membership.user else None,
    )


def backoffice_user(user: User, memberships: list[UserSite] | None = None) -> BackofficeUserView:
    """Map a user for the backoffice."""
    return BackofficeUserView(
        id=user.id,
        email=user.email,
        name=user.name,
        username=user.username,
        active=user.active,
        color=user.color,
        roles=user.roles,
        has_secret=user.secret_token is not None,
        created=user.created,
        updated=user.updated,
        sites=[membership_view(m) for m in memberships] if memberships is not None else None,
    )


def reply_view(reply: Reply) -> ReplyView:
    """Map a reply."""
    return ReplyView(
        id=reply.id,
        comment_id=reply.comment_id,
        message=reply.message,
        user_id=reply.user_id,
        created=reply.created,
        updated=reply.updated,
        user=widget_user(reply.user) if reply.user else None,
    )


def comment_view(comment: Comment) -> CommentThreadView:
    """Map a comment with its thread."""
    return CommentThreadView(
        id=comment.id,
        uniqid=comment.uniqid,
        message=comment.message,
        user_id=comment.user_id,
        url=comment.url,
        details=comment.details,
        reference=comment.reference,
        resolved=comment.resolved,
        screenshot=comment.screenshot,
        viewed=comment.viewed,
        created=comment.created,
        updated=comment.updated,
        user=widget_user(comment.user) if comment.user else None,
        replies=[reply_view(r) for r in comment.replies],
    )


def view_state(view: CommentView | None, user_id: int) -> ViewStateView:
    """Map the caller's view state of a comment."""
    return ViewStateView(user_id=user_id, viewed=view.viewed if view else None)
