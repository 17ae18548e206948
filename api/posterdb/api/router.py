"""API router composition for all route groups."""

from fastapi import APIRouter

from .routes import posters

api_router = APIRouter()
api_router.include_router(posters.router, tags=["posters"])
