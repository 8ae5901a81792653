"""
账单服务
管理 Bill 和 Payment 对象：按预订生成/刷新账单，记录支付并推导账单支付状态
"""
from typing import List, Optional
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
import logging
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from branch_pms.config import settings
from branch_pms.models.ontology import (
    Bill, BillStatus, Booking, BookingStatus, Payment, PaymentMethod,
    PaymentStatus, ServiceUsage
)
from branch_pms.services.audit_service import AuditService
from branch_pms.services.date_utils import days_between
from branch_pms.services.result import ServiceResult, ErrorKind
from branch_pms.services.room_locks import bill_locks

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
RATE_STEP = Decimal("0.0001")
ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """金额统一保留两位小数（四舍五入）"""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_rate(value) -> Decimal:
    """税率保留四位小数，与账单存储精度一致"""
    return Decimal(str(value)).quantize(RATE_STEP, rounding=ROUND_HALF_UP)


def derive_bill_status(total: Decimal, paid: Decimal) -> BillStatus:
    """根据累计已付金额推导账单状态；应付为 0 时视为已结清"""
    if paid >= total:
        return BillStatus.PAID
    if paid > ZERO:
        return BillStatus.PARTIALLY_PAID
    return BillStatus.PENDING


class BillingService:
    """账单服务"""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def get_bill(self, bill_id: int) -> Optional[Bill]:
        """获取账单"""
        return self.db.query(Bill).filter(Bill.id == bill_id).first()

    def get_bill_by_booking(self, booking_id: int) -> Optional[Bill]:
        """根据预订获取账单"""
        return self.db.query(Bill).filter(Bill.booking_id == booking_id).first()

    def get_paid_amount(self, bill_id: int) -> Decimal:
        """账单累计已完成支付金额"""
        paid = self.db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.bill_id == bill_id,
            Payment.status == PaymentStatus.COMPLETED,
        ).scalar()
        return to_money(paid)

    # ============== 费用计算 ==============

    def calculate_room_charges(self, booking: Booking) -> Decimal:
        """房费 = Σ 房型每晚价格 × 入住天数"""
        days = days_between(booking.check_in, booking.check_out)
        total = sum((Decimal(str(room.room_type.daily_rate)) * days for room in booking.rooms), ZERO)
        return to_money(total)

    def calculate_service_charges(self, booking_id: int) -> Decimal:
        """服务费 = Σ 数量 × 消费时价格快照"""
        usages = self.db.query(ServiceUsage).filter(ServiceUsage.booking_id == booking_id).all()
        total = sum((Decimal(str(u.price_at_usage)) * u.quantity for u in usages), ZERO)
        return to_money(total)

    def _apply_charges(self, bill: Bill, booking: Booking,
                       discount: Decimal, tax_rate: Decimal) -> None:
        """计算并写入账单各项金额；小计为负时按 0 处理"""
        room_charges = self.calculate_room_charges(booking)
        service_charges = self.calculate_service_charges(booking.id)
        subtotal = room_charges + service_charges - discount
        if subtotal < ZERO:
            logger.info(f"Booking #{booking.id} discount {discount} exceeds charges, subtotal clamped to 0")
            subtotal = ZERO
        tax = to_money(subtotal * tax_rate)

        bill.room_charges = room_charges
        bill.service_charges = service_charges
        bill.discount = discount
        bill.tax_rate = tax_rate
        bill.tax = tax
        bill.total_amount = to_money(subtotal + tax)

    # ============== 账单生成 ==============

    def generate_bill(self, booking_id: int, branch_id: int,
                      discount=ZERO, tax_rate=None,
                      operator_id: Optional[int] = None) -> ServiceResult:
        """
        生成或刷新预订账单

        已存在的账单原地更新（同一个 bill id），并在账单锁内完成，避免与支付并发。
        支付状态按累计支付与新总额推导：总额为 0 的账单视为已结清。
        新总额低于已付金额时拒绝重新生成。
        """
        discount = to_money(discount if discount is not None else ZERO)
        tax_rate = to_rate(tax_rate if tax_rate is not None else settings.DEFAULT_TAX_RATE)

        if discount < ZERO:
            return ServiceResult.fail(ErrorKind.VALIDATION, "折扣金额不能为负数")
        if tax_rate < ZERO or tax_rate > 1:
            return ServiceResult.fail(ErrorKind.VALIDATION, "税率必须在 0 到 1 之间")

        booking = self.db.query(Booking).filter(
            Booking.id == booking_id, Booking.branch_id == branch_id
        ).first()
        if not booking:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该预订")
        if booking.status == BookingStatus.CANCELLED:
            return ServiceResult.fail(ErrorKind.VALIDATION, "已取消的预订不能生成账单")

        bill = self.get_bill_by_booking(booking_id)
        if bill is None:
            return self._save_bill(booking, None, discount, tax_rate, operator_id)
        with bill_locks.hold([bill.id]):
            return self._save_bill(booking, bill, discount, tax_rate, operator_id)

    def _save_bill(self, booking: Booking, bill: Optional[Bill], discount: Decimal,
                   tax_rate: Decimal, operator_id: Optional[int]) -> ServiceResult:
        created = bill is None
        if created:
            bill = Bill(booking_id=booking.id, status=BillStatus.PENDING)
            self.db.add(bill)

        try:
            self._apply_charges(bill, booking, discount, tax_rate)
            self.db.flush()
            paid = ZERO if created else self.get_paid_amount(bill.id)
            if paid > bill.total_amount:
                total, bill_id = bill.total_amount, bill.id
                self.db.rollback()
                logger.info(f"Bill #{bill_id} regeneration rejected: total {total} below paid {paid}")
                return ServiceResult.fail(
                    ErrorKind.VALIDATION, f"新账单总额 {total} 低于已支付金额 {paid}"
                )
            bill.status = derive_bill_status(bill.total_amount, paid)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(bill)

        logger.info(f"Bill #{bill.id} {'created' if created else 'regenerated'} for booking #{booking.id}")
        self.audit.log(operator_id, "bill.create" if created else "bill.update", "Bill", bill.id,
                       f"booking={booking.id} total={bill.total_amount}")
        return ServiceResult.ok("账单生成成功", self.get_bill_snapshot(bill))

    def refresh_bill(self, booking_id: int) -> Optional[Bill]:
        """
        按账单已保存的折扣与税率重新计算（新增服务消费后调用）
        没有账单时不做任何操作
        """
        bill = self.get_bill_by_booking(booking_id)
        if bill is None:
            return None
        self._apply_charges(bill, bill.booking, to_money(bill.discount), to_rate(bill.tax_rate))
        bill.status = derive_bill_status(bill.total_amount, self.get_paid_amount(bill.id))
        return bill

    def get_bill_snapshot(self, bill: Bill) -> dict:
        """账单快照"""
        booking = bill.booking
        paid = self.get_paid_amount(bill.id)
        return {
            'bill_id': bill.id,
            'booking_id': booking.id,
            'guest_name': booking.guest.name,
            'check_in': booking.check_in,
            'check_out': booking.check_out,
            'days': days_between(booking.check_in, booking.check_out),
            'room_charges': to_money(bill.room_charges),
            'service_charges': to_money(bill.service_charges),
            'discount': to_money(bill.discount),
            'tax_rate': to_rate(bill.tax_rate),
            'tax': to_money(bill.tax),
            'total_amount': to_money(bill.total_amount),
            'paid_amount': paid,
            'remaining_amount': to_money(bill.total_amount) - paid,
            'status': bill.status,
        }

    def get_bills(self, branch_id: int) -> List[dict]:
        """分店账单列表（退房时间倒序）"""
        bills = self.db.query(Bill).join(Booking, Bill.booking_id == Booking.id).filter(
            Booking.branch_id == branch_id
        ).order_by(Booking.check_out.desc(), Bill.id.desc()).all()
        return [self.get_bill_snapshot(bill) for bill in bills]

    # ============== 支付 ==============

    def record_payment(self, bill_id: int, method: PaymentMethod, amount,
                       payment_date: Optional[datetime] = None,
                       branch_id: Optional[int] = None,
                       operator_id: Optional[int] = None) -> ServiceResult:
        """
        记录一笔支付

        金额不得超过剩余应付（总额 - 累计已付），防止多次部分支付累计超额。
        """
        try:
            method = PaymentMethod(method)
        except ValueError:
            return ServiceResult.fail(ErrorKind.VALIDATION, f"不支持的支付方式: {method}")

        amount = to_money(amount)
        if amount <= ZERO:
            return ServiceResult.fail(ErrorKind.VALIDATION, "支付金额必须大于 0")

        with bill_locks.hold([bill_id]):
            bill = self.get_bill(bill_id)
            if not bill or (branch_id is not None and bill.booking.branch_id != branch_id):
                return ServiceResult.fail(ErrorKind.NOT_FOUND, "账单不存在")

            total = to_money(bill.total_amount)
            paid_before = self.get_paid_amount(bill.id)
            remaining = total - paid_before
            if amount > remaining:
                logger.info(f"Payment {amount} rejected for bill #{bill_id}, remaining {remaining}")
                return ServiceResult.fail(
                    ErrorKind.VALIDATION, f"支付金额不能超过剩余应付金额 {remaining}"
                )

            try:
                payment = Payment(
                    bill_id=bill.id,
                    amount=amount,
                    method=method,
                    payment_date=payment_date or datetime.utcnow(),
                    status=PaymentStatus.COMPLETED,
                    created_by=operator_id,
                )
                self.db.add(payment)
                self.db.flush()

                total_paid = paid_before + amount
                bill.status = derive_bill_status(total, total_paid)
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise

            logger.info(f"Payment #{payment.id} of {amount} recorded, bill #{bill_id} -> {bill.status.value}")
            self.audit.log(operator_id, "payment.create", "Payment", payment.id,
                           f"bill={bill_id} amount={amount} method={method.value}")

        return ServiceResult.ok("支付成功", {
            'payment_id': payment.id,
            'bill_id': bill_id,
            'bill_status': bill.status,
            'total_paid': total_paid,
            'remaining_amount': total - total_paid,
        })
