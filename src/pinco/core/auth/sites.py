"""Site (tenant) management."""

from typing import Any
from urllib.parse import urlsplit

import structlog

from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import Site, UserSite
from pinco.core.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger()


def hostname_of(url: str) -> str | None:
    """Extract the hostname of an absolute URL.

    Scheme, credentials, port and path are dropped. ``www.`` is kept, so
    ``www.example.com`` and ``example.com`` are different sites.

    Returns:
        The lower-cased hostname, or None if the URL has none.
    """
    try:
        return urlsplit(url.strip()).hostname or None
    except ValueError:
        return None


class SiteService:
    """Service for sites and site membership lookups."""

    def __init__(self, repo: AuthRepository) -> None:
        """Initialize with auth repository."""
        self._repo = repo

    async def create(self, name: str, license: str, url: str, active: bool = True) -> Site:
        """Register a site, deriving its domain from the URL.

        Raises:
            ValidationError: If the URL has no hostname.
            ConflictError: If a site with the same domain exists.
        """
        domain = hostname_of(url)
        if domain is None:
            raise ValidationError("url must be an absolute URL")

        if await self._repo.get_site_by_domain(domain) is not None:
            raise ConflictError("Site with this domain already exists")

        site = await self._repo.create_site(name, license, domain, url, active)
        logger.info("site_created", site_id=site.id, domain=domain)
        return site

    async def list_sites(self) -> list[Site]:
        """List all sites, newest first."""
        return await self._repo.list_sites()

    async def find_one(self, site_id: int) -> Site:
        """Get a site by ID.

        Raises:
            NotFoundError: If no such site exists.
        """
        site = await self._repo.get_site_by_id(site_id)
        if site is None:
            raise NotFoundError(f"Site with ID {site_id} not found")
        return site

    async def update(self, site_id: int, fields: dict[str, Any]) -> Site:
        """Update a site. A new URL re-derives the domain."""
        site = await self.find_one(site_id)
        fields = {k: v for k, v in fields.items() if v is not None}

        if "url" in fields:
            domain = hostname_of(fields["url"])
            if domain is None:
                raise ValidationError("url must be an absolute URL")
            if domain != site.domain and await self._repo.get_site_by_domain(domain):
                raise ConflictError("Site with this domain already exists")
            fields["domain"] = domain

        updated = await self._repo.update_site(site_id, fields)
        if updated is None:
            raise NotFoundError(f"Site with ID {site_id} not found")
        return updated

    async def remove(self, site_id: int) -> None:
        """Delete a site."""
        await self.find_one(site_id)
        await self._repo.delete_site(site_id)
        logger.info("site_deleted", site_id=site_id)

    async def memberships_of(self, user_id: int) -> list[UserSite]:
        """Resolve every site a user is connected to, with its roles."""
        return await self._repo.get_user_sites(user_id)

    async def get_site_users(self, site_id: int) -> list[UserSite]:
        """List a site's memberships with their users."""
        await self.find_one(site_id)
        return await self._repo.get_site_users(site_id)
