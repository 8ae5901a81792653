"""
预订服务
管理 Booking 对象的创建与状态流转：
confirmed -> checked_in -> checked_out，或 confirmed -> cancelled
"""
from typing import List, Optional
from datetime import datetime
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from branch_pms.models.ontology import Booking, BookingStatus, Guest, Room
from branch_pms.services.audit_service import AuditService
from branch_pms.services.date_utils import days_between
from branch_pms.services.result import ServiceResult, ErrorKind
from branch_pms.services.room_locks import room_locks
from branch_pms.services.room_service import RoomService

logger = logging.getLogger(__name__)

# 允许的状态流转，checked_out / cancelled 为终态
BOOKING_TRANSITIONS = {
    BookingStatus.CONFIRMED: {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED},
    BookingStatus.CHECKED_IN: {BookingStatus.CHECKED_OUT},
    BookingStatus.CHECKED_OUT: set(),
    BookingStatus.CANCELLED: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, set())


class BookingService:
    """预订服务"""

    def __init__(self, db: Session):
        self.db = db
        self.room_service = RoomService(db)
        self.audit = AuditService(db)

    def get_booking(self, booking_id: int, branch_id: Optional[int] = None) -> Optional[Booking]:
        """获取单个预订；指定 branch_id 时其他分店的预订视为不存在"""
        query = self.db.query(Booking).filter(Booking.id == booking_id)
        if branch_id is not None:
            query = query.filter(Booking.branch_id == branch_id)
        return query.first()

    def get_bookings(self, branch_id: int, status: Optional[BookingStatus] = None) -> List[Booking]:
        """获取分店预订列表（入住时间倒序）"""
        query = self.db.query(Booking).filter(Booking.branch_id == branch_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.check_in.desc(), Booking.id.desc()).all()

    def create_booking(self, guest_id: int, check_in: datetime, check_out: datetime,
                       room_ids: List[int], branch_id: int,
                       operator_id: Optional[int] = None) -> ServiceResult:
        """
        创建预订

        校验顺序：日期区间 -> 房间列表非空 -> 客人存在 -> 房间属于本分店 -> 无冲突。
        冲突检查与写入在所有房间的锁内完成，并在一个事务中提交。
        """
        if check_out <= check_in:
            return ServiceResult.fail(ErrorKind.VALIDATION, "离店时间必须晚于入住时间")

        room_ids = list(dict.fromkeys(room_ids or []))
        if not room_ids:
            return ServiceResult.fail(ErrorKind.VALIDATION, "至少需要选择一个房间")

        with room_locks.hold(room_ids):
            try:
                result = self._create_locked(guest_id, check_in, check_out, room_ids,
                                             branch_id, operator_id)
                if not result.success:
                    self.db.rollback()
                    logger.info(f"Booking rejected: {result.message}")
                    return result
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception("Booking creation failed, rolled back")
                raise

            booking_id = result.data['booking_id']
            logger.info(f"Booking #{booking_id} created for rooms {room_ids}")
            self.audit.log(operator_id, "booking.create", "Booking", booking_id,
                           f"rooms={room_ids} {check_in.isoformat()}~{check_out.isoformat()}")
        return result

    def _create_locked(self, guest_id: int, check_in: datetime, check_out: datetime,
                       room_ids: List[int], branch_id: int,
                       operator_id: Optional[int]) -> ServiceResult:
        guest = self.db.query(Guest).filter(Guest.id == guest_id).first()
        if not guest:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, f"客人 {guest_id} 不存在")

        # 行锁：在支持的数据库上锁住房间行，SQLite 会忽略
        rooms = {
            room.id: room for room in self.db.query(Room).filter(
                Room.id.in_(room_ids)
            ).with_for_update().all()
        }

        for room_id in room_ids:
            room = rooms.get(room_id)
            if room is None:
                return ServiceResult.fail(ErrorKind.NOT_FOUND, f"房间 {room_id} 不存在")
            if room.branch_id != branch_id:
                return ServiceResult.fail(
                    ErrorKind.CONFLICT, f"房间 {room.room_number} (ID {room_id}) 不属于当前分店"
                )

        for room_id in room_ids:
            if self.room_service.has_conflict(room_id, check_in, check_out):
                room = rooms[room_id]
                return ServiceResult.fail(
                    ErrorKind.CONFLICT,
                    f"房间 {room.room_number} (ID {room_id}) 在所选日期已被预订"
                )

        booking = Booking(
            guest_id=guest_id,
            branch_id=branch_id,
            check_in=check_in,
            check_out=check_out,
            status=BookingStatus.CONFIRMED,
            created_by=operator_id,
        )
        booking.rooms = [rooms[room_id] for room_id in room_ids]
        self.db.add(booking)
        self.db.flush()

        for room in booking.rooms:
            self.room_service.refresh_room_status(room)

        return ServiceResult.ok("预订创建成功", {'booking_id': booking.id})

    # ============== 状态流转 ==============

    def check_in_booking(self, booking_id: int, branch_id: int,
                         operator_id: Optional[int] = None) -> ServiceResult:
        """办理入住：不能早于预订的入住日期（按 UTC 日期比较）"""
        booking = self.get_booking(booking_id, branch_id)
        if not booking:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该预订")

        if booking.check_in.date() > datetime.utcnow().date():
            return ServiceResult.fail(ErrorKind.VALIDATION, "未到预订入住日期，不能办理入住")

        return self._transition(booking, BookingStatus.CHECKED_IN, operator_id)

    def check_out_booking(self, booking_id: int, branch_id: int,
                          operator_id: Optional[int] = None) -> ServiceResult:
        """办理退房"""
        booking = self.get_booking(booking_id, branch_id)
        if not booking:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该预订")
        return self._transition(booking, BookingStatus.CHECKED_OUT, operator_id)

    def cancel_booking(self, booking_id: int, branch_id: int,
                       operator_id: Optional[int] = None) -> ServiceResult:
        """取消预订（仅限已确认状态）"""
        booking = self.get_booking(booking_id, branch_id)
        if not booking:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该预订")
        return self._transition(booking, BookingStatus.CANCELLED, operator_id)

    def _transition(self, booking: Booking, target: BookingStatus,
                    operator_id: Optional[int]) -> ServiceResult:
        current = booking.status
        if not can_transition(current, target):
            return ServiceResult.fail(
                ErrorKind.VALIDATION,
                f"状态为 {current.value} 的预订不能变更为 {target.value}"
            )

        booking.status = target
        self.db.flush()
        for room in booking.rooms:
            self.room_service.refresh_room_status(room)
        self.db.commit()

        logger.info(f"Booking #{booking.id} {current.value} -> {target.value}")
        self.audit.log(operator_id, f"booking.{target.value}", "Booking", booking.id,
                       f"{current.value} -> {target.value}")
        return ServiceResult.ok("预订状态已更新", {
            'booking_id': booking.id,
            'guest_name': booking.guest.name,
            'status': target,
        })

    def get_booking_detail(self, booking: Booking) -> dict:
        """预订详情（包含客人与房间信息）"""
        guest = booking.guest
        return {
            'booking_id': booking.id,
            'branch_id': booking.branch_id,
            'check_in': booking.check_in,
            'check_out': booking.check_out,
            'nights': days_between(booking.check_in, booking.check_out),
            'status': booking.status,
            'guest_id': guest.id,
            'guest_name': guest.name,
            'guest_email': guest.email,
            'guest_phone': guest.phone,
            'rooms': [RoomService.room_summary(room) for room in booking.rooms],
        }
