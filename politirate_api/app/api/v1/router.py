"""
Top-level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.
When a new domain is introduced, include its router here.
"""

from fastapi import APIRouter

from .endpoints import (
    leaders,
    notifications,
    polls,
    ratings,
    settings,
    support,
    users,
)

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(leaders.router, prefix="/leaders", tags=["leaders"])
router.include_router(ratings.router, prefix="/ratings", tags=["ratings"])
router.include_router(polls.router, prefix="/polls", tags=["polls"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(support.router, prefix="/support", tags=["support"])
