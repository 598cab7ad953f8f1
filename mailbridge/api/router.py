"""
mailbridge.api.router - API Router

Aggregates all mail endpoints.
"""

from fastapi import APIRouter

from mailbridge.api.endpoints import labels, messages, profile, threads

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(threads.router, prefix="/threads", tags=["threads"])
api_router.include_router(labels.router, prefix="/labels", tags=["labels"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
