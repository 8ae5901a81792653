"""
房间服务
冲突检查、可用房间查询、房间状态提示维护
"""
from typing import List, Optional
from datetime import datetime
import logging
from sqlalchemy.orm import Session
from branch_pms.models.ontology import (
    Branch, Room, RoomStatus, RoomType, Booking, BookingStatus, booking_rooms,
    BLOCKING_BOOKING_STATUSES, OUT_OF_SERVICE_STATUSES
)
from branch_pms.services.result import ServiceResult, ErrorKind

logger = logging.getLogger(__name__)


class RoomService:
    """房间服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_rooms(self, branch_id: int, status: Optional[RoomStatus] = None) -> List[Room]:
        """获取分店房间列表"""
        query = self.db.query(Room).filter(Room.branch_id == branch_id)
        if status:
            query = query.filter(Room.status == status)
        return query.order_by(Room.room_number, Room.id).all()

    def get_room_types(self) -> List[RoomType]:
        """房型列表（各分店共用）"""
        return self.db.query(RoomType).order_by(RoomType.name).all()

    def get_branches(self) -> List[Branch]:
        """分店列表（按城市排序）"""
        return self.db.query(Branch).order_by(Branch.city, Branch.id).all()

    # ============== 冲突检查 ==============

    def has_conflict(self, room_id: int, check_in: datetime, check_out: datetime,
                     exclude_booking_id: Optional[int] = None) -> bool:
        """
        房间在给定区间内是否已有阻塞预订（confirmed / checked_in）

        闭区间判断，与 date_utils.intervals_overlap 一致：
        existing.check_in <= check_out 且 check_in <= existing.check_out。
        查询失败时异常直接抛出，不会被当作"无冲突"。
        """
        query = self.db.query(Booking.id).join(
            booking_rooms, booking_rooms.c.booking_id == Booking.id
        ).filter(
            booking_rooms.c.room_id == room_id,
            Booking.status.in_(BLOCKING_BOOKING_STATUSES),
            Booking.check_in <= check_out,
            Booking.check_out >= check_in,
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.first() is not None

    # ============== 可用房间 ==============

    def find_available_rooms(self, branch_id: int, check_in: datetime, check_out: datetime,
                             room_type_id: Optional[int] = None) -> ServiceResult:
        """
        查询分店在给定区间内可预订的房间

        状态字段只用于排除停用房间，每个候选房间都必须经过冲突检查。
        """
        if check_out <= check_in:
            return ServiceResult.fail(ErrorKind.VALIDATION, "离店时间必须晚于入住时间")

        query = self.db.query(Room).filter(
            Room.branch_id == branch_id,
            Room.status.notin_(OUT_OF_SERVICE_STATUSES),
        )
        if room_type_id:
            query = query.filter(Room.room_type_id == room_type_id)

        candidates = query.order_by(Room.room_number, Room.id).all()
        available = [
            room for room in candidates
            if not self.has_conflict(room.id, check_in, check_out)
        ]
        logger.debug(
            f"Availability branch={branch_id} {check_in}~{check_out}: "
            f"{len(available)}/{len(candidates)} rooms free"
        )
        return ServiceResult.ok("可用房间查询成功", available)

    # ============== 状态提示 ==============

    def refresh_room_status(self, room: Room) -> RoomStatus:
        """
        根据房间上的阻塞预订重新推导状态提示

        有已入住预订 -> occupied；有已确认预订 -> reserved；否则 available。
        maintenance / out_of_order 由人工维护，不会被覆盖。
        """
        if room.status in OUT_OF_SERVICE_STATUSES:
            return room.status

        statuses = {
            row[0] for row in self.db.query(Booking.status).join(
                booking_rooms, booking_rooms.c.booking_id == Booking.id
            ).filter(
                booking_rooms.c.room_id == room.id,
                Booking.status.in_(BLOCKING_BOOKING_STATUSES),
            ).all()
        }

        if BookingStatus.CHECKED_IN in statuses:
            new_status = RoomStatus.OCCUPIED
        elif BookingStatus.CONFIRMED in statuses:
            new_status = RoomStatus.RESERVED
        else:
            new_status = RoomStatus.AVAILABLE

        if room.status != new_status:
            logger.info(f"Room {room.room_number} status {room.status} -> {new_status.value}")
            room.status = new_status
        return new_status

    @staticmethod
    def room_summary(room: Room) -> dict:
        """房间摘要（用于 API 输出）"""
        room_type = room.room_type
        return {
            'room_id': room.id,
            'room_number': room.room_number,
            'branch_id': room.branch_id,
            'status': room.status,
            'room_type_id': room.room_type_id,
            'room_type_name': room_type.name if room_type else None,
            'capacity': room_type.capacity if room_type else None,
            'daily_rate': room_type.daily_rate if room_type else None,
            'amenities': room_type.amenities if room_type else None,
        }
