from fastapi import APIRouter

from .auth import router as auth_router
from .profile import router as profile_router
from .code import router as code_router
from .search import router as search_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(profile_router, prefix="/profile", tags=["profile"])
api_router.include_router(code_router, prefix="/code", tags=["code"])
api_router.include_router(search_router, prefix="/search", tags=["search"])
