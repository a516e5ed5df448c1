from fastapi import APIRouter

from schoolscope.modules.auth import admin_check_router
from schoolscope.modules.auth import router as auth_router
from schoolscope.modules.school_edits.admin_router import router as admin_edits_router
from schoolscope.modules.school_edits import router as school_edits_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(admin_check_router, prefix="/admin", tags=["Admin"])

api_router.include_router(school_edits_router, prefix="/schools", tags=["School Edits"])

api_router.include_router(
    admin_edits_router,
    prefix="/admin/schools/edits",
    tags=["Admin - School Edits"],
)
