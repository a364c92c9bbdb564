"""Reply API routes."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query, status
from pydantic import BaseModel, Field

from pinco.entrypoints.api.deps import NotificationDep, ReplyServiceDep
from pinco.entrypoints.api.middleware.auth import CurrentSite, CurrentUser, RequireRoot
from pinco.entrypoints.api.views import ReplyView, reply_view

router = APIRouter(prefix="/replies", tags=["replies"])


class CreateReplyRequest(BaseModel):
    """Request body for replying to a comment."""

    comment_id: int
    message: str = Field(..., min_length=1)


class UpdateReplyRequest(BaseModel):
    """Request body for editing a reply."""

    message: str = Field(..., min_length=1)


@router.get("", response_model=list[ReplyView])
async def list_replies(
    user: CurrentUser,
    site: CurrentSite,
    replies: ReplyServiceDep,
) -> list[ReplyView]:
    """List the replies of the calling site."""
    return [reply_view(r) for r in await replies.find_all(site)]


@router.get("/list", response_model=list[ReplyView])
async def list_all_replies(
    user: RequireRoot,
    replies: ReplyServiceDep,
    site_id: Annotated[int | None, Query(alias="siteId")] = None,
) -> list[ReplyView]:
    """List replies across sites, optionally for one site."""
    return [reply_view(r) for r in await replies.list_replies(site_id)]


@router.post("", response_model=ReplyView, status_code=status.HTTP_201_CREATED)
async def create_reply(
    body: CreateReplyRequest,
    user: CurrentUser,
    site: CurrentSite,
    replies: ReplyServiceDep,
    notifications: NotificationDep,
    background_tasks: BackgroundTasks,
) -> ReplyView:
    """Reply to a comment of the calling site."""
    reply, events = await replies.create(site, user, body.comment_id, body.message)
    background_tasks.add_task(notifications.dispatch, events)
    return reply_view(reply)


@router.post("/{reply_id}", response_model=ReplyView)
async def update_reply(
    reply_id: int,
    body: UpdateReplyRequest,
    user: CurrentUser,
    site: CurrentSite,
    replies: ReplyServiceDep,
) -> ReplyView:
    """Edit your own reply."""
    return reply_view(await replies.update(reply_id, site, user, body.message))
