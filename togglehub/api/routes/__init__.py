"""
API routes aggregation.

    /api/frontend   frontend SDKs (frontend and admin tokens)
    /api/client     server-side SDKs (client and admin tokens)
    /api/admin      management (admin tokens)
"""

from fastapi import APIRouter

from .frontend import router as frontend_router
from .client import router as client_router
from .admin_projects import router as admin_projects_router
from .admin_features import router as admin_features_router
from .admin_api_tokens import router as admin_api_tokens_router
from .admin_metrics import router as admin_metrics_router
from .admin_addons import router as admin_addons_router

router = APIRouter()

router.include_router(frontend_router, prefix="/frontend", tags=["frontend"])
router.include_router(client_router, prefix="/client", tags=["client"])
router.include_router(admin_projects_router, prefix="/admin", tags=["admin"])
router.include_router(admin_features_router, prefix="/admin", tags=["admin", "features"])
router.include_router(admin_api_tokens_router, prefix="/admin/api-tokens", tags=["admin", "api-tokens"])
router.include_router(admin_metrics_router, prefix="/admin/client-metrics", tags=["admin", "metrics"])
router.include_router(admin_addons_router, prefix="/admin", tags=["admin", "addons"])
