"""API router configuration."""

from fastapi import APIRouter

from src.modules.waits.interfaces.router import router as waits_router

api_router = APIRouter()

# Wait times
api_router.include_router(waits_router)
