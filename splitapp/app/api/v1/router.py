"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from splitapp.app.api.v1.endpoints import auth, groups, expenses

router = APIRouter()

router.include_router(auth.router)
router.include_router(groups.router)
router.include_router(expenses.router)
