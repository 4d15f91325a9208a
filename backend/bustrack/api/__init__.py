"""Routes API / API routes."""

from fastapi import APIRouter

from bustrack.api import (
    assignments,
    eta,
    location,
    sos,
)

api_router = APIRouter(prefix="/api")

api_router.include_router(location.router, prefix="/location", tags=["location"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
api_router.include_router(eta.router, prefix="/eta", tags=["eta"])
api_router.include_router(sos.router, prefix="/sos", tags=["sos"])
