from fastapi import APIRouter, Depends

from ..application.services.maintenance_service import MaintenanceService
from ..exceptions import create_success_response
from ..schemas.account.account import MaintenanceReport
from .deps import get_admin_user, get_maintenance_service

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.post("/cleanup")
def run_cleanup(
    admin_user: str = Depends(get_admin_user),
    maintenance_service: MaintenanceService = Depends(get_maintenance_service),
):
    result = maintenance_service.run(requested_by=admin_user)
    return create_success_response(MaintenanceReport(**result).model_dump())
