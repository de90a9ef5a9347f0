"""API routers mounted under ``/api``."""

from fastapi import APIRouter

from supportdesk.api.routes import auth, health, internal_chat, owner, public_chat, visitor

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(public_chat.router)
api_router.include_router(internal_chat.router)
api_router.include_router(owner.router)
api_router.include_router(visitor.router)

__all__ = ["api_router"]
