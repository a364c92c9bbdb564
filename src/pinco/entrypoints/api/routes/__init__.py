"""API route modules."""

from fastapi import APIRouter

from pinco.entrypoints.api.routes.auth import router as auth_router
from pinco.entrypoints.api.routes.comments import router as comments_router
from pinco.entrypoints.api.routes.replies import router as replies_router
from pinco.entrypoints.api.routes.sites import router as sites_router
from pinco.entrypoints.api.routes.users import router as users_router
from pinco.entrypoints.api.routes.widget import router as widget_router

# Routes mounted under the API prefix
api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(sites_router)
api_router.include_router(comments_router)
api_router.include_router(replies_router)

__all__ = ["api_router", "widget_router"]
