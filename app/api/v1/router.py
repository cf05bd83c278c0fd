"""Main API router for v1."""
from fastapi import APIRouter

from app.api.v1.endpoints import auth, users, checkins, rewards, admin, sse

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(checkins.router, prefix="/check-ins", tags=["Check-ins"])
api_router.include_router(rewards.router, tags=["Rewards"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(sse.router, tags=["SSE"])
