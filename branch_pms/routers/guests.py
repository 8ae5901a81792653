"""
客人管理路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff
from branch_pms.models.schemas import GuestCreate, GuestUpdate
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.guest_service import GuestService
from branch_pms.security.auth import require_staff

router = APIRouter(prefix="/guests", tags=["客人管理"])


def _guest_dict(guest) -> dict:
    return {
        'guest_id': guest.id,
        'name': guest.name,
        'email': guest.email,
        'phone': guest.phone,
    }


@router.get("")
def list_guests(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """获取客人列表"""
    service = GuestService(db)
    return format_response(True, "客人列表获取成功", [_guest_dict(g) for g in service.get_guests()])


@router.post("")
def create_guest(
    data: GuestCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """登记客人"""
    service = GuestService(db)
    result = service.create_guest(data.name, data.email, data.phone, current_user.id)
    return result_response(result, success_status=201)


@router.put("/{guest_id}")
def update_guest(
    guest_id: int,
    data: GuestUpdate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """更新客人信息"""
    service = GuestService(db)
    result = service.update_guest(guest_id, data.name, data.email, data.phone, current_user.id)
    return result_response(result)
