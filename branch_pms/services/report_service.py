"""
报表服务
管理员仪表盘与经营报表，全部按分店统计
"""
from typing import List, Optional, Tuple
from datetime import date, datetime, time, timedelta
from sqlalchemy import func, extract
from sqlalchemy.orm import Session
from branch_pms.models.ontology import (
    Bill, Booking, BookingStatus, Guest, Payment, PaymentStatus, Room, RoomStatus,
    ServiceCatalogue, ServiceUsage, Staff, booking_rooms
)
from branch_pms.services.billing_service import to_money, ZERO
from branch_pms.services.date_utils import days_between
from branch_pms.services.result import ServiceResult, ErrorKind


def _day_window(start_date: Optional[date], end_date: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """日期区间转为 [start 00:00, end 次日 00:00) 的时间窗口"""
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date + timedelta(days=1), time.min) if end_date else None
    return start, end


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> Optional[ServiceResult]:
    if start_date and end_date and end_date < start_date:
        return ServiceResult.fail(ErrorKind.VALIDATION, "结束日期不能早于开始日期")
    return None


class ReportService:
    """报表服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_dashboard_stats(self, branch_id: int) -> dict:
        """获取仪表盘统计数据"""
        total_bookings = self.db.query(func.count(Booking.id)).filter(
            Booking.branch_id == branch_id
        ).scalar()

        total_revenue = self.db.query(func.coalesce(func.sum(Bill.total_amount), 0)).join(
            Booking, Bill.booking_id == Booking.id
        ).filter(Booking.branch_id == branch_id).scalar()

        room_counts = dict(self.db.query(Room.status, func.count(Room.id)).filter(
            Room.branch_id == branch_id
        ).group_by(Room.status).all())

        total_staff = self.db.query(func.count(Staff.id)).filter(
            Staff.branch_id == branch_id,
            Staff.is_active == True  # noqa: E712
        ).scalar()

        return {
            'total_bookings': total_bookings or 0,
            'total_revenue': to_money(total_revenue),
            'total_rooms': sum(room_counts.values()),
            'available_rooms': room_counts.get(RoomStatus.AVAILABLE, 0),
            'reserved_rooms': room_counts.get(RoomStatus.RESERVED, 0),
            'occupied_rooms': room_counts.get(RoomStatus.OCCUPIED, 0),
            'total_staff': total_staff or 0,
        }

    def get_room_occupancy_report(self, branch_id: int, start_date: Optional[date],
                                  end_date: Optional[date]) -> ServiceResult:
        """
        房间入住率报表

        每个房间在区间内被未取消预订占用的天数 / 区间天数。
        预订只计算落在区间内的部分。
        """
        if not start_date or not end_date:
            return ServiceResult.fail(ErrorKind.VALIDATION, "开始日期和结束日期为必填项")
        failure = _check_range(start_date, end_date)
        if failure:
            return failure

        window_start, window_end = _day_window(start_date, end_date)
        period_days = (end_date - start_date).days + 1

        rooms = self.db.query(Room).filter(Room.branch_id == branch_id).order_by(
            Room.room_number, Room.id
        ).all()

        stays = self.db.query(booking_rooms.c.room_id, Booking.check_in, Booking.check_out).join(
            Booking, booking_rooms.c.booking_id == Booking.id
        ).filter(
            Booking.branch_id == branch_id,
            Booking.status != BookingStatus.CANCELLED,
            Booking.check_in < window_end,
            Booking.check_out > window_start,
        ).all()

        occupied = {}
        for room_id, check_in, check_out in stays:
            days = days_between(max(check_in, window_start), min(check_out, window_end))
            occupied[room_id] = occupied.get(room_id, 0) + days

        report = []
        for room in rooms:
            days = min(occupied.get(room.id, 0), period_days)
            report.append({
                'room_id': room.id,
                'room_number': room.room_number,
                'room_type': room.room_type.name,
                'occupied_days': days,
                'period_days': period_days,
                'occupancy_rate': round(days / period_days * 100, 1),
            })
        return ServiceResult.ok("房间入住率报表获取成功", report)

    def get_guest_billing_summary(self, branch_id: int, start_date: Optional[date] = None,
                                  end_date: Optional[date] = None) -> ServiceResult:
        """客人账单汇总：按入住时间筛选预订，统计账单总额、已付与未付"""
        failure = _check_range(start_date, end_date)
        if failure:
            return failure
        window_start, window_end = _day_window(start_date, end_date)

        paid_per_bill = self.db.query(
            Payment.bill_id.label('bill_id'),
            func.sum(Payment.amount).label('paid'),
        ).filter(Payment.status == PaymentStatus.COMPLETED).group_by(Payment.bill_id).subquery()

        query = self.db.query(
            Guest.id,
            Guest.name,
            Guest.email,
            func.count(Booking.id),
            func.coalesce(func.sum(Bill.total_amount), 0),
            func.coalesce(func.sum(paid_per_bill.c.paid), 0),
        ).join(Booking, Booking.guest_id == Guest.id).outerjoin(
            Bill, Bill.booking_id == Booking.id
        ).outerjoin(
            paid_per_bill, paid_per_bill.c.bill_id == Bill.id
        ).filter(
            Booking.branch_id == branch_id,
            Booking.status != BookingStatus.CANCELLED,
        )
        if window_start:
            query = query.filter(Booking.check_in >= window_start)
        if window_end:
            query = query.filter(Booking.check_in < window_end)

        rows = query.group_by(Guest.id, Guest.name, Guest.email).order_by(Guest.name, Guest.id).all()

        summary = []
        for guest_id, name, email, bookings, billed, paid in rows:
            billed, paid = to_money(billed), to_money(paid)
            summary.append({
                'guest_id': guest_id,
                'name': name,
                'email': email,
                'total_bookings': bookings,
                'total_billed': billed,
                'total_paid': paid,
                'outstanding': billed - paid,
            })
        return ServiceResult.ok("客人账单汇总获取成功", summary)

    def _service_usage_query(self, branch_id: int, start_date: Optional[date], end_date: Optional[date]):
        revenue = func.sum(ServiceUsage.quantity * ServiceUsage.price_at_usage)
        query = self.db.query(
            ServiceCatalogue.id,
            ServiceCatalogue.name,
            func.count(ServiceUsage.id),
            func.sum(ServiceUsage.quantity),
            revenue,
        ).join(ServiceUsage, ServiceUsage.service_id == ServiceCatalogue.id).join(
            Booking, ServiceUsage.booking_id == Booking.id
        ).filter(Booking.branch_id == branch_id)

        window_start, window_end = _day_window(start_date, end_date)
        if window_start:
            query = query.filter(ServiceUsage.usage_date >= window_start)
        if window_end:
            query = query.filter(ServiceUsage.usage_date < window_end)
        return query.group_by(ServiceCatalogue.id, ServiceCatalogue.name), revenue

    @staticmethod
    def _usage_rows(rows) -> List[dict]:
        return [
            {
                'service_id': service_id,
                'service_name': name,
                'usage_count': count,
                'total_quantity': quantity or 0,
                'total_revenue': to_money(revenue or ZERO),
            }
            for service_id, name, count, quantity, revenue in rows
        ]

    def get_service_usage_report(self, branch_id: int, start_date: Optional[date] = None,
                                 end_date: Optional[date] = None) -> ServiceResult:
        """服务消费报表（按服务名称排序）"""
        failure = _check_range(start_date, end_date)
        if failure:
            return failure
        query, _ = self._service_usage_query(branch_id, start_date, end_date)
        rows = query.order_by(ServiceCatalogue.name).all()
        return ServiceResult.ok("服务消费报表获取成功", self._usage_rows(rows))

    def get_top_services(self, branch_id: int, start_date: Optional[date] = None,
                         end_date: Optional[date] = None, limit: int = 10) -> ServiceResult:
        """营收最高的服务"""
        failure = _check_range(start_date, end_date)
        if failure:
            return failure
        if limit < 1:
            return ServiceResult.fail(ErrorKind.VALIDATION, "limit 必须大于 0")
        query, revenue = self._service_usage_query(branch_id, start_date, end_date)
        rows = query.order_by(revenue.desc(), ServiceCatalogue.name).limit(limit).all()
        return ServiceResult.ok("热门服务报表获取成功", self._usage_rows(rows))

    def get_monthly_revenue(self, branch_id: int, year: int) -> List[dict]:
        """
        月度营收：按支付日期统计已完成支付
        返回 1-12 月，没有支付的月份为 0
        """
        month = extract('month', Payment.payment_date)
        rows = self.db.query(
            month,
            func.count(Payment.id),
            func.sum(Payment.amount),
        ).join(Bill, Payment.bill_id == Bill.id).join(
            Booking, Bill.booking_id == Booking.id
        ).filter(
            Booking.branch_id == branch_id,
            Payment.status == PaymentStatus.COMPLETED,
            Payment.payment_date >= datetime(year, 1, 1),
            Payment.payment_date < datetime(year + 1, 1, 1),
        ).group_by(month).all()

        by_month = {int(m): (count, total) for m, count, total in rows}
        report = []
        for m in range(1, 13):
            count, total = by_month.get(m, (0, ZERO))
            report.append({
                'year': year,
                'month': m,
                'payment_count': count,
                'revenue': to_money(total or ZERO),
            })
        return report
