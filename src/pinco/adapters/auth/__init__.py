"""Auth repository adapters."""

from pinco.adapters.auth.postgres import PostgresAuthRepository

__all__ = ["PostgresAuthRepository"]
