from fastapi import APIRouter

from admissions_portal.modules.applications.admin_router import router as admin_applications_router
from admissions_portal.modules.applications.router import router as applications_router
from admissions_portal.modules.audit import router as audit_router
from admissions_portal.modules.auth import router as auth_router
from admissions_portal.modules.catalog import router as catalog_router
from admissions_portal.modules.users.router import router as admin_users_router

api_router = APIRouter()

api_router.include_router(auth_router, tags=["Authentication"])

api_router.include_router(catalog_router, tags=["Catalog"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin",
    tags=["Admin - Applications"],
)

api_router.include_router(admin_users_router, prefix="/admin", tags=["Admin - Users"])

api_router.include_router(audit_router, prefix="/admin", tags=["Admin - Audit"])
