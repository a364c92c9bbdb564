"""Adapters - Infrastructure implementations of core interfaces.

Adapters are organized by type:
- db/: asyncpg connection pool
- auth/: PostgreSQL users, sites and memberships repository
- comments/: PostgreSQL comments, replies and views repository
- screenshots/: Screenshot file storage
- notifications/: Email delivery
"""
