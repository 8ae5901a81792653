"""
预订管理路由
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff, BookingStatus
from branch_pms.models.schemas import BookingCreate
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.booking_service import BookingService
from branch_pms.security.auth import require_staff

router = APIRouter(prefix="/bookings", tags=["预订管理"])


@router.get("")
def list_bookings(
    status: Optional[BookingStatus] = None,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """获取本分店预订列表"""
    service = BookingService(db)
    bookings = service.get_bookings(current_user.branch_id, status)
    return format_response(True, "预订列表获取成功", [service.get_booking_detail(b) for b in bookings])


@router.post("")
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """创建预订"""
    service = BookingService(db)
    result = service.create_booking(
        guest_id=data.guest_id,
        check_in=data.check_in_date,
        check_out=data.check_out_date,
        room_ids=data.room_ids,
        branch_id=current_user.branch_id,
        operator_id=current_user.id,
    )
    return result_response(result, success_status=201)


@router.put("/{booking_id}/checkin")
def check_in_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """办理入住"""
    service = BookingService(db)
    return result_response(service.check_in_booking(booking_id, current_user.branch_id, current_user.id))


@router.put("/{booking_id}/checkout")
def check_out_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """办理退房"""
    service = BookingService(db)
    return result_response(service.check_out_booking(booking_id, current_user.branch_id, current_user.id))


@router.put("/{booking_id}/cancel")
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """取消预订"""
    service = BookingService(db)
    return result_response(service.cancel_booking(booking_id, current_user.branch_id, current_user.id))
