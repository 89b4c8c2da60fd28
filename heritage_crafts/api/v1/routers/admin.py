from fastapi import APIRouter, Depends

from heritage_crafts.api.v1.dependencies import get_admin_service, get_current_user
from heritage_crafts.db.models.users import User
from heritage_crafts.features.admin.schemas import DashboardOut
from heritage_crafts.features.admin.services import AdminService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


@router.get("/dashboard", summary="Tableau de bord administrateur", response_model=DashboardOut)
def dashboard(user: User = Depends(get_current_user), svc: AdminService = Depends(get_admin_service)):
    return svc.dashboard(user)
