"""API v1 router aggregator.

All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from rfc_app.api.v1 import auth, comments

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(comments.router, prefix="/rfcs", tags=["comments"])
