"""
账单路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff
from branch_pms.models.schemas import BillGenerate
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.billing_service import BillingService
from branch_pms.security.auth import require_staff

router = APIRouter(prefix="/bills", tags=["账单管理"])


@router.get("")
def list_bills(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """获取本分店账单列表"""
    service = BillingService(db)
    return format_response(True, "账单列表获取成功", service.get_bills(current_user.branch_id))


@router.post("/{booking_id}")
def generate_bill(
    booking_id: int,
    data: BillGenerate = BillGenerate(),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """生成或刷新预订账单"""
    service = BillingService(db)
    result = service.generate_bill(
        booking_id,
        current_user.branch_id,
        discount=data.discount,
        tax_rate=data.tax_rate,
        operator_id=current_user.id,
    )
    return result_response(result)
