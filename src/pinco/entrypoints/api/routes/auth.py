"""Auth API routes for password, invite and secret login."""

from fastapi import APIRouter, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr

from pinco.core.exceptions import AuthenticationError
from pinco.entrypoints.api.cookies import clear_auth_cookie, set_auth_cookie
from pinco.entrypoints.api.deps import AuthServiceDep, SettingsDep

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str


class SecretLoginRequest(BaseModel):
    """Secret token login request body."""

    secret: str


class LoginResponse(BaseModel):
    """Login response."""

    message: str
    user: int


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> LoginResponse:
    """Authenticate a ROOT or ADMIN account with email and password.

    Args:
        body: Login credentials.
        response: Response the session cookie is attached to.
        service: Auth service.
        settings: Application settings.

    Returns:
        The logged in user's ID.
    """
    user, token = await service.login(body.email, body.password)
    set_auth_cookie(response, token, settings)
    return LoginResponse(message="Login successful", user=user.id)


@router.get("/login")
async def login_with_invite(
    service: AuthServiceDep,
    settings: SettingsDep,
    invite: str | None = None,
) -> RedirectResponse:
    """Accept an invitation link and redirect to the invited site."""
    if not invite:
        raise AuthenticationError("No invite token provided")

    _, site, token = await service.login_with_invite(invite)
    response = RedirectResponse(url=site.url, status_code=302)
    set_auth_cookie(response, token, settings)
    return response


@router.post("/login/secret", response_model=LoginResponse)
async def login_with_secret(
    body: SecretLoginRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> LoginResponse:
    """Authenticate with a user's persistent secret token."""
    user, token = await service.login_with_secret(body.secret)
    set_auth_cookie(response, token, settings)
    return LoginResponse(message="Login successful", user=user.id)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the session cookie."""
    clear_auth_cookie(response)
    return MessageResponse(message="Logout successful")
