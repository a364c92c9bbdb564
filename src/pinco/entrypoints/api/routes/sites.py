"""Site API routes. Every route requires the ROOT role."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from pinco.entrypoints.api.deps import SiteServiceDep
from pinco.entrypoints.api.middleware.auth import RequireRoot
from pinco.entrypoints.api.views import MembershipView, SiteView, membership_view, site_view

router = APIRouter(prefix="/sites", tags=["sites"])


class CreateSiteRequest(BaseModel):
    """Request body for registering a site."""

    name: str = Field(..., min_length=1, max_length=255)
    license: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1)
    active: bool = True


class UpdateSiteRequest(BaseModel):
    """Request body for updating a site."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    license: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = Field(default=None, min_length=1)
    active: bool | None = None


@router.post("", response_model=SiteView, status_code=status.HTTP_201_CREATED)
async def create_site(
    body: CreateSiteRequest, user: RequireRoot, sites: SiteServiceDep
) -> SiteView:
    """Register a site. Its domain is the hostname of the URL."""
    site = await sites.create(body.name, body.license, body.url, body.active)
    return site_view(site)


@router.get("/list", response_model=list[SiteView])
async def list_sites(user: RequireRoot, sites: SiteServiceDep) -> list[SiteView]:
    """List all sites, newest first."""
    return [site_view(s) for s in await sites.list_sites()]


@router.get("/{site_id}", response_model=SiteView)
async def get_site(site_id: int, user: RequireRoot, sites: SiteServiceDep) -> SiteView:
    """Get a site by ID."""
    return site_view(await sites.find_one(site_id))


@router.patch("/{site_id}", response_model=SiteView)
async def update_site(
    site_id: int,
    body: UpdateSiteRequest,
    user: RequireRoot,
    sites: SiteServiceDep,
) -> SiteView:
    """Update a site."""
    return site_view(await sites.update(site_id, body.model_dump(exclude_unset=True)))


@router.delete("/{site_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_site(site_id: int, user: RequireRoot, sites: SiteServiceDep) -> Response:
    """Delete a site with its memberships and comments."""
    await sites.remove(site_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{site_id}/users", response_model=list[MembershipView])
async def get_site_users(
    site_id: int, user: RequireRoot, sites: SiteServiceDep
) -> list[MembershipView]:
    """List the memberships of a site with their users."""
    return [membership_view(m) for m in await sites.get_site_users(site_id)]
