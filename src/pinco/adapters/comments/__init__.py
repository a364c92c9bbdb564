"""Comment repository adapters."""

from pinco.adapters.comments.postgres import PostgresCommentRepository

__all__ = ["PostgresCommentRepository"]
