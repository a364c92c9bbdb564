"""Comment API routes.

Widget routes act on the site the request comes from. The ``/list``
route is the backoffice view across sites and requires ROOT.
"""

from typing import Annotated

import pydantic
from fastapi import APIRouter, BackgroundTasks, File, Form, Query, Response, UploadFile, status

from pinco.core.comments.types import CommentDetails
from pinco.core.exceptions import ValidationError
from pinco.entrypoints.api.deps import CommentServiceDep, NotificationDep
from pinco.entrypoints.api.middleware.auth import CurrentSite, CurrentUser, RequireRoot
from pinco.entrypoints.api.views import (
    CommentThreadView,
    ViewStateView,
    comment_view,
    view_state,
)

router = APIRouter(prefix="/comments", tags=["comments"])


def _parse_details(raw: str | None) -> CommentDetails | None:
    if not raw:
        return None
    try:
        return CommentDetails.model_validate_json(raw)
    except pydantic.ValidationError:
        raise ValidationError("details must be a JSON object") from None


@router.get("", response_model=list[CommentThreadView])
async def list_comments(
    user: CurrentUser,
    site: CurrentSite,
    comments: CommentServiceDep,
) -> list[CommentThreadView]:
    """List the comments of the calling site with their replies."""
    return [comment_view(c) for c in await comments.find_all(site, user)]


@router.get("/list", response_model=list[CommentThreadView])
async def list_all_comments(
    user: RequireRoot,
    comments: CommentServiceDep,
    site_id: Annotated[int | None, Query(alias="siteId")] = None,
) -> list[CommentThreadView]:
    """List comments across sites, optionally for one site."""
    return [comment_view(c) for c in await comments.list_comments(site_id)]


@router.get("/view-all")
async def mark_all_as_viewed(
    user: CurrentUser,
    site: CurrentSite,
    comments: CommentServiceDep,
) -> Response:
    """Mark every comment of the calling site as seen."""
    await comments.mark_all_as_viewed(site, user)
    return Response(status_code=status.HTTP_200_OK)


@router.post("", response_model=CommentThreadView, status_code=status.HTTP_201_CREATED)
async def create_comment(
    user: CurrentUser,
    site: CurrentSite,
    comments: CommentServiceDep,
    notifications: NotificationDep,
    background_tasks: BackgroundTasks,
    message: Annotated[str, Form(min_length=1)],
    url: Annotated[str, Form()],
    details: Annotated[str | None, Form()] = None,
    reference: Annotated[str | None, Form()] = None,
    screenshot: Annotated[UploadFile | None, File()] = None,
) -> CommentThreadView:
    """Post a comment on a page of the calling site.

    Args:
        message: Comment text, may mention users with ``@username``.
        url: Path of the page the comment was placed on.
        details: JSON object with the viewport and environment.
        reference: Selector of the element the comment points at.
        screenshot: Optional PNG screenshot of the page.

    Returns:
        The new comment, already marked as seen by its author.
    """
    data = await screenshot.read() if screenshot is not None else None
    comment, events = await comments.create(
        site,
        user,
        message=message,
        url=url,
        details=_parse_details(details),
        reference=reference,
        screenshot=data or None,
    )
    background_tasks.add_task(notifications.dispatch, events)
    return comment_view(comment)


@router.post("/{comment_id}", response_model=CommentThreadView)
async def update_comment(
    comment_id: int,
    user: CurrentUser,
    site: CurrentSite,
    comments: CommentServiceDep,
    message: Annotated[str | None, Form(min_length=1)] = None,
    url: Annotated[str | None, Form()] = None,
    details: Annotated[str | None, Form()] = None,
    reference: Annotated[str | None, Form()] = None,
    resolved: Annotated[bool | None, Form()] = None,
) -> CommentThreadView:
    """Edit your own comment, or resolve it.

    Fields are sent the same way as when posting a comment. Fields left
    out are not changed.
    """
    fields = {
        "message": message,
        "url": url,
        "details": _parse_details(details),
        "reference": reference,
        "resolved": resolved,
    }
    changes = {name: value for name, value in fields.items() if value is not None}
    return comment_view(await comments.update(comment_id, site, user, changes))


@router.get("/{comment_id}/view", response_model=ViewStateView)
async def mark_as_viewed(
    comment_id: int,
    user: CurrentUser,
    site: CurrentSite,
    comments: CommentServiceDep,
) -> ViewStateView:
    """Mark a comment as seen by the caller."""
    view = await comments.mark_as_viewed(comment_id, site, user)
    return view_state(view, user.id)


@router.get("/{comment_id}/unview", response_model=ViewStateView)
async def mark_as_unviewed(
    comment_id: int,
    user: CurrentUser,
    site: CurrentSite,
    comments: CommentServiceDep,
) -> ViewStateView:
    """Mark a comment as not seen by the caller."""
    await comments.mark_as_unviewed(comment_id, site, user)
    return view_state(None, user.id)
