"""User API routes for the widget and the backoffice."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query, Response, status
from pydantic import BaseModel, EmailStr, Field

from pinco.core.auth.types import SiteRole, UserRole
from pinco.entrypoints.api.deps import (
    InviteServiceDep,
    NotificationDep,
    SecretStoreDep,
    UserServiceDep,
)
from pinco.entrypoints.api.middleware.auth import CurrentSite, CurrentUser, RequireRoot
from pinco.entrypoints.api.views import (
    BackofficeUserView,
    MembershipView,
    WidgetUserView,
    backoffice_user,
    membership_view,
    widget_user,
)

router = APIRouter(prefix="/users", tags=["users"])


class CreateUserRequest(BaseModel):
    """Request body for creating a user."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=64, pattern=r"^\w+$")
    password: str | None = Field(default=None, min_length=8)
    roles: list[UserRole] = []
    active: bool = True
    site_ids: list[int] = []
    invite: bool = False


class UpdateUserRequest(BaseModel):
    """Request body for updating a user."""

    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    username: str | None = Field(default=None, min_length=1, max_length=64, pattern=r"^\w+$")
    password: str | None = Field(default=None, min_length=8)
    roles: list[UserRole] | None = None
    active: bool | None = None


class MembershipRequest(BaseModel):
    """Identifies one membership."""

    user_id: int
    site_id: int


class InviteRequest(MembershipRequest):
    """Request body for adding a user to a site."""

    roles: list[SiteRole] = [SiteRole.COLLABORATOR]
    invite: bool = False


class UpdateRolesRequest(MembershipRequest):
    """Request body for replacing the roles of a membership."""

    roles: list[SiteRole]


class SecretResponse(BaseModel):
    """Newly issued secret token."""

    secret: str


@router.get("/me", response_model=WidgetUserView)
async def get_me(user: CurrentUser, users: UserServiceDep) -> WidgetUserView:
    """Get the current user."""
    return widget_user(await users.find_one(user.id, user))


@router.get("", response_model=list[WidgetUserView])
async def list_site_users(
    user: CurrentUser,
    site: CurrentSite,
    users: UserServiceDep,
) -> list[WidgetUserView]:
    """List the users of the calling site, used for mentions."""
    return [widget_user(u) for u in await users.find_all(site.id)]


@router.get("/list", response_model=list[BackofficeUserView])
async def list_users(
    user: RequireRoot,
    users: UserServiceDep,
    site_id: Annotated[int | None, Query(alias="siteId")] = None,
) -> list[BackofficeUserView]:
    """List all users with their memberships, optionally for one site."""
    rows = await users.list_users(site_id)
    return [backoffice_user(u, memberships) for u, memberships in rows]


@router.post("", response_model=BackofficeUserView, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    user: RequireRoot,
    users: UserServiceDep,
    notifications: NotificationDep,
    background_tasks: BackgroundTasks,
) -> BackofficeUserView:
    """Create a user, optionally adding them to sites and inviting them."""
    created, events = await users.create(
        email=body.email,
        name=body.name,
        username=body.username,
        password=body.password,
        roles=body.roles,
        active=body.active,
        site_ids=body.site_ids,
        invite=body.invite,
    )
    if events:
        background_tasks.add_task(notifications.dispatch, events)
    return backoffice_user(created)


@router.post("/invite", response_model=MembershipView, status_code=status.HTTP_201_CREATED)
async def add_to_site(
    body: InviteRequest,
    user: RequireRoot,
    invites: InviteServiceDep,
    notifications: NotificationDep,
    background_tasks: BackgroundTasks,
) -> MembershipView:
    """Connect a user to a site."""
    membership, events = await invites.add_user_to_site(
        body.user_id, body.site_id, body.roles, body.invite
    )
    if events:
        background_tasks.add_task(notifications.dispatch, events)
    return membership_view(membership)


@router.patch("/invite/update", response_model=MembershipView)
async def update_site_roles(
    body: UpdateRolesRequest,
    user: RequireRoot,
    invites: InviteServiceDep,
) -> MembershipView:
    """Replace the roles a user holds on a site."""
    return membership_view(await invites.update_roles(body.user_id, body.site_id, body.roles))


@router.post("/invite/delete", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_site(
    body: MembershipRequest,
    user: RequireRoot,
    invites: InviteServiceDep,
) -> Response:
    """Disconnect a user from a site."""
    await invites.remove_user_from_site(body.user_id, body.site_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/invite/resend", status_code=status.HTTP_204_NO_CONTENT)
async def resend_invite(
    body: MembershipRequest,
    user: RequireRoot,
    invites: InviteServiceDep,
    notifications: NotificationDep,
    background_tasks: BackgroundTasks,
) -> Response:
    """Send the invitation email of a membership again."""
    event = await invites.invite(body.user_id, body.site_id)
    background_tasks.add_task(notifications.dispatch, [event])
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/invite/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_invite(
    body: MembershipRequest,
    user: RequireRoot,
    invites: InviteServiceDep,
) -> Response:
    """Invalidate every pending invitation link of a membership."""
    await invites.revoke(body.user_id, body.site_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}", response_model=BackofficeUserView)
async def get_user(user_id: int, user: RequireRoot, users: UserServiceDep) -> BackofficeUserView:
    """Get a user by ID."""
    return backoffice_user(await users.find_one(user_id, user))


@router.patch("/{user_id}", response_model=BackofficeUserView)
async def update_user(
    user_id: int,
    body: UpdateUserRequest,
    user: RequireRoot,
    users: UserServiceDep,
) -> BackofficeUserView:
    """Update a user."""
    updated = await users.update(user_id, body.model_dump(exclude_unset=True), user)
    return backoffice_user(updated)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, user: RequireRoot, users: UserServiceDep) -> Response:
    """Delete a user. You cannot delete yourself."""
    await users.remove(user_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/secret", response_model=SecretResponse)
async def issue_secret(
    user_id: int,
    user: RequireRoot,
    users: UserServiceDep,
    secrets: SecretStoreDep,
) -> SecretResponse:
    """Issue a secret login token for a user, replacing the previous one."""
    await users.find_one(user_id, user)
    return SecretResponse(secret=await secrets.issue(user_id))


@router.delete("/{user_id}/secret", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_secret(
    user_id: int,
    user: RequireRoot,
    users: UserServiceDep,
    secrets: SecretStoreDep,
) -> Response:
    """Revoke a user's secret login token."""
    await users.find_one(user_id, user)
    await secrets.revoke(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
