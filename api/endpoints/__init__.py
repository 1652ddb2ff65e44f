"""API endpoints for SingularShift."""

from fastapi import APIRouter

from .health import router as health_router
from .interviews import router as interviews_router
from .reports import router as reports_router
from .export import router as export_router
from .audit_websocket import router as ws_router

# Create main API router
api_router = APIRouter()

# Include all routers
api_router.include_router(health_router, prefix="/health", tags=["Health"])
api_router.include_router(interviews_router, prefix="/interviews", tags=["Interviews"])
api_router.include_router(reports_router, tags=["Reports"])
api_router.include_router(export_router, prefix="/export", tags=["Export"])

__all__ = ["api_router", "ws_router"]
