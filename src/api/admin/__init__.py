from fastapi import APIRouter

from src.api.admin.routes.service_schedules import router as service_schedules_router
from src.api.admin.routes.services import router as services_router

router = APIRouter()

# /services/schedules/... precisa vir antes de /services/{service_id}
router.include_router(service_schedules_router)
router.include_router(services_router)
