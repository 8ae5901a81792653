"""
审计日志路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff, StaffRole
from branch_pms.routers.envelope import format_response
from branch_pms.services.audit_service import AuditService
from branch_pms.security.auth import require_manager

router = APIRouter(prefix="/audit-logs", tags=["审计日志"])


@router.get("")
def list_audit_logs(
    entity_type: Optional[str] = None,
    staff_id: Optional[int] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_manager)
):
    """查询审计日志；经理只能看到本分店员工的记录"""
    branch_id = None if current_user.role == StaffRole.ADMIN else current_user.branch_id
    service = AuditService(db)
    logs = service.get_logs(entity_type, staff_id, limit, branch_id)
    return format_response(True, "审计日志获取成功", [
        {
            'id': log.id,
            'staff_id': log.staff_id,
            'action': log.action,
            'entity_type': log.entity_type,
            'entity_id': log.entity_id,
            'description': log.description,
            'created_at': log.created_at,
        }
        for log in logs
    ])
