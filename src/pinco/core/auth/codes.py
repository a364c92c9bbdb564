"""Random identifiers over the 62-character alphanumeric alphabet."""

import secrets
import string

ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase

SECRET_TOKEN_LENGTH = 24
INVITE_CODE_LENGTH = 13
UNIQID_LENGTH = 13


def generate_code(length: int) -> str:
    """Generate a cryptographically random alphanumeric string.

    Args:
        length: Number of characters.

    Returns:
        Random string drawn from ``0-9A-Za-z``.
    """
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_secret_token() -> str:
    """Generate a persistent login secret."""
    return generate_code(SECRET_TOKEN_LENGTH)


def generate_invite_code() -> str:
    """Generate an invite code for a membership."""
    return generate_code(INVITE_CODE_LENGTH)


def generate_uniqid() -> str:
    """Generate the public identifier of a comment."""
    return generate_code(UNIQID_LENGTH)
