"""
支付路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff
from branch_pms.models.schemas import PaymentCreate
from branch_pms.routers.envelope import result_response
from branch_pms.services.billing_service import BillingService
from branch_pms.security.auth import require_staff

router = APIRouter(prefix="/payments", tags=["支付"])


@router.post("")
def record_payment(
    data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """记录账单支付"""
    service = BillingService(db)
    result = service.record_payment(
        bill_id=data.bill_id,
        method=data.payment_method,
        amount=data.amount,
        payment_date=data.payment_date,
        branch_id=current_user.branch_id,
        operator_id=current_user.id,
    )
    return result_response(result, success_status=201)
