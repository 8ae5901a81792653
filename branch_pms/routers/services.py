"""
服务项目与消费路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff
from branch_pms.models.schemas import ServiceUsageCreate
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.service_usage_service import ServiceUsageService
from branch_pms.security.auth import require_staff

router = APIRouter(prefix="/services", tags=["服务消费"])


@router.get("")
def list_services(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """获取服务目录"""
    service = ServiceUsageService(db)
    items = [
        {'service_id': s.id, 'name': s.name, 'description': s.description, 'price': s.price}
        for s in service.get_services()
    ]
    return format_response(True, "服务目录获取成功", items)


@router.post("/usage")
def add_service_usage(
    data: ServiceUsageCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """记录服务消费"""
    service = ServiceUsageService(db)
    result = service.add_service_usage(
        booking_id=data.booking_id,
        service_id=data.service_id,
        quantity=data.quantity,
        branch_id=current_user.branch_id,
        usage_date=data.usage_date,
        operator_id=current_user.id,
    )
    return result_response(result, success_status=201)


@router.get("/usage/{booking_id}")
def get_service_usage(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_staff)
):
    """获取预订的服务消费明细"""
    service = ServiceUsageService(db)
    return result_response(service.get_service_usage(booking_id, current_user.branch_id))
