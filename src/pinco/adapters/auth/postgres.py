"""PostgreSQL implementation of AuthRepository."""

from datetime import UTC, datetime
from typing import Any

from pinco.adapters.db.app_db import AppDatabase
from pinco.core.auth.types import Site, SiteRole, User, UserRole, UserSite

USER_COLUMNS = {"email", "name", "username", "password_hash", "active", "roles"}
SITE_COLUMNS = {"name", "license", "domain", "url", "active"}

_SITE_SELECT = """
    s.id AS site__id, s.name AS site__name, s.license AS site__license,
    s.domain AS site__domain, s.url AS site__url, s.active AS site__active,
    s.created AS site__created, s.updated AS site__updated
"""

_USER_SELECT = """
    u.id AS user__id, u.email AS user__email, u.name AS user__name,
    u.username AS user__username, u.active AS user__active, u.roles AS user__roles,
    u.created AS user__created, u.updated AS user__updated
"""


def _prefixed(row: dict[str, Any], prefix: str) -> dict[str, Any]:
    """Pick the columns of a joined table out of a flat row."""
    return {k[len(prefix) :]: v for k, v in row.items() if k.startswith(prefix)}


class PostgresAuthRepository:
    """PostgreSQL implementation of auth repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            username=row["username"],
            password_hash=row.get("password_hash"),
            active=row.get("active", True),
            roles=[UserRole(r) for r in row.get("roles") or []],
            secret_token=row.get("secret_token"),
            secret_expires=row.get("secret_expires"),
            created=row["created"],
            updated=row["updated"],
        )

    def _row_to_site(self, row: dict[str, Any]) -> Site:
        """Convert database row to Site model."""
        return Site(
            id=row["id"],
            name=row["name"],
            license=row["license"],
            domain=row["domain"],
            url=row["url"],
            active=row.get("active", True),
            created=row["created"],
            updated=row["updated"],
        )

    def _row_to_membership(self, row: dict[str, Any]) -> UserSite:
        """Convert database row to UserSite model, with joined site or user."""
        site_row = _prefixed(row, "site__")
        user_row = _prefixed(row, "user__")
        return UserSite(
            user_id=row["user_id"],
            site_id=row["site_id"],
            roles=[SiteRole(r) for r in row.get("roles") or []],
            invite_code=row.get("invite_code"),
            created=row["created"],
            updated=row["updated"],
            site=self._row_to_site(site_row) if site_row.get("id") is not None else None,
            user=self._row_to_user(user_row) if user_row.get("id") is not None else None,
        )

    async def _update(
        self, table: str, allowed: set[str], key: int, fields: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Build and run an UPDATE for the allowed fields."""
        updates = []
        params: list[Any] = []
        param_idx = 1

        for column, value in fields.items():
            if column not in allowed:
                continue
            if isinstance(value, list):
                value = [getattr(v, "value", v) for v in value]
            updates.append(f"{column} = ${param_idx}")
            params.append(value)
            param_idx += 1

        if not updates:
            return await self._db.fetch_one(f"SELECT * FROM {table} WHERE id = $1", key)

        updates.append(f"updated = ${param_idx}")
        params.append(datetime.now(UTC))
        param_idx += 1

        params.append(key)
        query = f"""
            UPDATE {table} SET {", ".join(updates)}
            WHERE id = ${param_idx}
            RETURNING *
        """
        return await self._db.fetch_one(query, *params)

    # User operations
    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one("SELECT * FROM users WHERE id = $1", user_id)
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        row = await self._db.fetch_one("SELECT * FROM users WHERE email = $1", email)
        return self._row_to_user(row) if row else None

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username."""
        row = await self._db.fetch_one("SELECT * FROM users WHERE username = $1", username)
        return self._row_to_user(row) if row else None

    async def get_active_user_by_secret(self, secret: str) -> User | None:
        """Get an active user holding the given secret token."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE secret_token = $1 AND active = true",
            secret,
        )
        return self._row_to_user(row) if row else None

    async def list_users(self, site_id: int | None = None) -> list[User]:
        """List users, optionally only those connected to a site."""
        if site_id is None:
            rows = await self._db.fetch_all("SELECT * FROM users ORDER BY id")
        else:
            rows = await self._db.fetch_all(
                """
                SELECT u.* FROM users u
                JOIN user_sites us ON us.user_id = u.id
                WHERE us.site_id = $1
                ORDER BY u.id
                """,
                site_id,
            )
        return [self._row_to_user(row) for row in rows]

    async def create_user(
        self,
        email: str,
        name: str,
        username: str,
        password_hash: str | None,
        roles: list[UserRole],
        active: bool = True,
    ) -> User:
        """Create a new user."""
        row = await self._db.fetch_one(
            """
            INSERT INTO users (email, name, username, password_hash, roles, active)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
            """,
            email,
            name,
            username,
            password_hash,
            [role.value for role in roles],
            active,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_user(row)

    async def update_user(self, user_id: int, fields: dict[str, Any]) -> User | None:
        """Update user fields."""
        row = await self._update("users", USER_COLUMNS, user_id, fields)
        return self._row_to_user(row) if row else None

    async def delete_user(self, user_id: int) -> None:
        """Delete a user and their view state.

        Comments and replies keep a restricting reference to their author,
        so the delete fails while any are left.
        """
        async with self._db.acquire() as conn, conn.transaction():
            await conn.execute("DELETE FROM comment_views WHERE user_id = $1", user_id)
            await conn.execute("DELETE FROM users WHERE id = $1", user_id)

    async def count_user_content(self, user_id: int) -> int:
        """Count the comments and replies written by a user."""
        row = await self._db.fetch_one(
            """
            SELECT (SELECT COUNT(*) FROM comments WHERE user_id = $1)
                 + (SELECT COUNT(*) FROM replies WHERE user_id = $1) AS total
            """,
            user_id,
        )
        return int(row["total"]) if row else 0

    async def set_secret_token(self, user_id: int, secret: str | None) -> None:
        """Store or clear a user's secret token."""
        await self._db.execute(
            """
            UPDATE users
            SET secret_token = $1, secret_expires = NULL, updated = NOW()
            WHERE id = $2
            """,
            secret,
            user_id,
        )

    # Site operations
    async def get_site_by_id(self, site_id: int) -> Site | None:
        """Get site by ID."""
        row = await self._db.fetch_one("SELECT * FROM sites WHERE id = $1", site_id)
        return self._row_to_site(row) if row else None

    async def get_site_by_domain(self, domain: str) -> Site | None:
        """Get site by domain, active or not."""
        row = await self._db.fetch_one("SELECT * FROM sites WHERE domain = $1", domain)
        return self._row_to_site(row) if row else None

    async def get_active_site_by_domain(self, domain: str) -> Site | None:
        """Get an active site by domain."""
        row = await self._db.fetch_one(
            "SELECT * FROM sites WHERE domain = $1 AND active = true",
            domain,
        )
        return self._row_to_site(row) if row else None

    async def list_sites(self) -> list[Site]:
        """List sites, newest first."""
        rows = await self._db.fetch_all("SELECT * FROM sites ORDER BY created DESC")
        return [self._row_to_site(row) for row in rows]

    async def create_site(
        self, name: str, license: str, domain: str, url: str, active: bool = True
    ) -> Site:
        """Create a new site."""
        row = await self._db.fetch_one(
            """
            INSERT INTO sites (name, license, domain, url, active)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            name,
            license,
            domain,
            url,
            active,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_site(row)

    async def update_site(self, site_id: int, fields: dict[str, Any]) -> Site | None:
        """Update site fields."""
        row = await self._update("sites", SITE_COLUMNS, site_id, fields)
        return self._row_to_site(row) if row else None

    async def delete_site(self, site_id: int) -> None:
        """Delete a site."""
        await self._db.execute("DELETE FROM sites WHERE id = $1", site_id)

    # Membership operations
    async def get_user_sites(self, user_id: int) -> list[UserSite]:
        """Get a user's memberships with their sites."""
        rows = await self._db.fetch_all(
            f"""
            SELECT us.*, {_SITE_SELECT}
            FROM user_sites us
            JOIN sites s ON s.id = us.site_id
            WHERE us.user_id = $1
            """,
            user_id,
        )
        return [self._row_to_membership(row) for row in rows]

    async def get_site_users(self, site_id: int) -> list[UserSite]:
        """Get a site's memberships with their users, newest first."""
        rows = await self._db.fetch_all(
            f"""
            SELECT us.*, {_USER_SELECT}
            FROM user_sites us
            JOIN users u ON u.id = us.user_id
            WHERE us.site_id = $1
            ORDER BY us.created DESC
            """,
            site_id,
        )
        return [self._row_to_membership(row) for row in rows]

    async def list_memberships(self, site_id: int | None = None) -> list[UserSite]:
        """List memberships with their sites, optionally for one site."""
        query = f"""
            SELECT us.*, {_SITE_SELECT}
            FROM user_sites us
            JOIN sites s ON s.id = us.site_id
        """
        if site_id is None:
            rows = await self._db.fetch_all(query)
        else:
            rows = await self._db.fetch_all(query + " WHERE us.site_id = $1", site_id)
        return [self._row_to_membership(row) for row in rows]

    async def get_membership(self, user_id: int, site_id: int) -> UserSite | None:
        """Get the membership of a user in a site."""
        row = await self._db.fetch_one(
            "SELECT * FROM user_sites WHERE user_id = $1 AND site_id = $2",
            user_id,
            site_id,
        )
        return self._row_to_membership(row) if row else None

    async def get_membership_by_invite(
        self, user_id: int, site_id: int, invite_code: str
    ) -> UserSite | None:
        """Get a membership whose live invite code matches."""
        row = await self._db.fetch_one(
            f"""
            SELECT us.*, {_SITE_SELECT}
            FROM user_sites us
            JOIN sites s ON s.id = us.site_id
            WHERE us.user_id = $1 AND us.site_id = $2 AND us.invite_code = $3
            """,
            user_id,
            site_id,
            invite_code,
        )
        return self._row_to_membership(row) if row else None

    async def create_membership(
        self,
        user_id: int,
        site_id: int,
        roles: list[SiteRole],
        invite_code: str | None = None,
    ) -> UserSite:
        """Connect a user to a site."""
        row = await self._db.fetch_one(
            """
            INSERT INTO user_sites (user_id, site_id, roles, invite_code)
            VALUES ($1, $2, $3, $4)
            RETURNING *
            """,
            user_id,
            site_id,
            [role.value for role in roles],
            invite_code,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_membership(row)

    async def update_membership_roles(
        self, user_id: int, site_id: int, roles: list[SiteRole]
    ) -> UserSite | None:
        """Replace the site roles of a membership."""
        row = await self._db.fetch_one(
            """
            UPDATE user_sites SET roles = $1, updated = NOW()
            WHERE user_id = $2 AND site_id = $3
            RETURNING *
            """,
            [role.value for role in roles],
            user_id,
            site_id,
        )
        return self._row_to_membership(row) if row else None

    async def set_invite_code(self, user_id: int, site_id: int, invite_code: str | None) -> None:
        """Store or clear the invite code of a membership."""
        await self._db.execute(
            """
            UPDATE user_sites SET invite_code = $1, updated = NOW()
            WHERE user_id = $2 AND site_id = $3
            """,
            invite_code,
            user_id,
            site_id,
        )

    async def delete_membership(self, user_id: int, site_id: int) -> None:
        """Disconnect a user from a site."""
        await self._db.execute(
            "DELETE FROM user_sites WHERE user_id = $1 AND site_id = $2",
            user_id,
            site_id,
        )
