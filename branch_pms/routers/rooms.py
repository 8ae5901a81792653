"""
房间路由
"""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff, RoomStatus
from branch_pms.models.schemas import to_naive_utc
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.room_service import RoomService
from branch_pms.security.auth import require_staff

router = APIRouter(prefix="/rooms", tags=["房间管理"])


@router.get("")
def list_rooms(
    status: Optional[RoomStatus] = None,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """获取本分店房间列表"""
    service = RoomService(db)
    rooms = service.get_rooms(current_user.branch_id, status)
    return format_response(True, "房间列表获取成功", [RoomService.room_summary(r) for r in rooms])


@router.get("/available")
def get_available_rooms(
    check_in_date: datetime = Query(..., alias="checkInDate"),
    check_out_date: datetime = Query(..., alias="checkOutDate"),
    room_type_id: Optional[int] = Query(None, alias="roomTypeId"),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """查询所选日期内本分店可预订的房间"""
    service = RoomService(db)
    result = service.find_available_rooms(
        current_user.branch_id,
        to_naive_utc(check_in_date),
        to_naive_utc(check_out_date),
        room_type_id,
    )
    if result.success:
        result.data = [RoomService.room_summary(r) for r in result.data]
    return result_response(result)
