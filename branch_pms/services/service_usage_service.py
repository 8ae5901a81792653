"""
服务消费服务
服务目录查询、记录消费（价格快照）、按预订汇总消费
"""
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from branch_pms.models.ontology import (
    Booking, BookingStatus, ServiceCatalogue, ServiceUsage
)
from branch_pms.services.audit_service import AuditService
from branch_pms.services.billing_service import BillingService, to_money
from branch_pms.services.result import ServiceResult, ErrorKind

logger = logging.getLogger(__name__)


class ServiceUsageService:
    """服务消费服务"""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def get_services(self) -> List[ServiceCatalogue]:
        """服务目录（按名称排序）"""
        return self.db.query(ServiceCatalogue).order_by(ServiceCatalogue.name).all()

    def _get_branch_booking(self, booking_id: int, branch_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(
            Booking.id == booking_id, Booking.branch_id == branch_id
        ).first()

    def add_service_usage(self, booking_id: int, service_id: int, quantity: int,
                          branch_id: int, usage_date: Optional[datetime] = None,
                          operator_id: Optional[int] = None) -> ServiceResult:
        """
        记录服务消费

        仅限已入住的预订；价格取当前目录价作为快照。
        若预订已有账单，按账单原有折扣和税率刷新金额。
        """
        if quantity is None or quantity < 1:
            return ServiceResult.fail(ErrorKind.VALIDATION, "数量必须大于 0")

        booking = self._get_branch_booking(booking_id, branch_id)
        if not booking:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该预订")
        if booking.status != BookingStatus.CHECKED_IN:
            return ServiceResult.fail(ErrorKind.VALIDATION, "只能为已入住的预订添加服务消费")

        service = self.db.query(ServiceCatalogue).filter(ServiceCatalogue.id == service_id).first()
        if not service:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "服务项目不存在")

        usage = ServiceUsage(
            booking_id=booking_id,
            service_id=service_id,
            quantity=quantity,
            price_at_usage=to_money(service.price),
            usage_date=usage_date or datetime.utcnow(),
        )
        self.db.add(usage)
        self.db.flush()

        bill = BillingService(self.db).refresh_bill(booking_id)
        self.db.commit()

        if bill is not None:
            logger.info(f"Bill #{bill.id} refreshed after service usage #{usage.id}")
        self.audit.log(operator_id, "service_usage.create", "ServiceUsage", usage.id,
                       f"booking={booking_id} service={service.name} x{quantity}")
        return ServiceResult.ok("服务消费已记录", {'usage_id': usage.id})

    def get_service_usage(self, booking_id: int, branch_id: int) -> ServiceResult:
        """预订的服务消费明细与合计"""
        booking = self._get_branch_booking(booking_id, branch_id)
        if not booking:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该预订")

        usages = self.db.query(ServiceUsage).filter(
            ServiceUsage.booking_id == booking_id
        ).order_by(ServiceUsage.usage_date.desc(), ServiceUsage.id.desc()).all()

        items = []
        for u in usages:
            price = to_money(u.price_at_usage)
            items.append({
                'usage_id': u.id,
                'service_id': u.service_id,
                'service_name': u.service.name,
                'usage_date': u.usage_date,
                'quantity': u.quantity,
                'price_at_usage': price,
                'total_cost': to_money(price * u.quantity),
            })

        total = sum((item['total_cost'] for item in items), Decimal("0"))
        return ServiceResult.ok("服务消费查询成功", {
            'services': items,
            'total_service_cost': to_money(total),
        })
