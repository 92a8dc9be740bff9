"""Routers package initialization"""
from .jobs import router as jobs_router
from .repurpose import router as repurpose_router
from .uploads import router as uploads_router

__all__ = ["jobs_router", "repurpose_router", "uploads_router"]
