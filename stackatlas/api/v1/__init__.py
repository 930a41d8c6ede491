"""
API v1 routes.
"""

from fastapi import APIRouter

from stackatlas.api.v1 import auth, stacks, bookmarks, contributions, admin

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(stacks.router, prefix="/stacks", tags=["Stacks"])
router.include_router(bookmarks.router, prefix="/bookmarks", tags=["Bookmarks"])
router.include_router(contributions.router, prefix="/contributions", tags=["Contributions"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
