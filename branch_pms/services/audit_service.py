"""
审计日志服务
在主操作提交之后写入；写入失败只记录日志，不影响主操作
"""
from typing import List, Optional
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from branch_pms.models.ontology import AuditLog, Staff

logger = logging.getLogger(__name__)


class AuditService:
    """审计日志服务"""

    def __init__(self, db: Session):
        self.db = db

    def log(self, staff_id: Optional[int], action: str, entity_type: str,
            entity_id: Optional[int] = None, description: str = "") -> Optional[AuditLog]:
        """记录一条审计日志（fire-and-forget）"""
        try:
            entry = AuditLog(
                staff_id=staff_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                description=description,
            )
            self.db.add(entry)
            self.db.commit()
            return entry
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Audit log write failed ({action} {entity_type}#{entity_id}): {e}")
            return None

    def get_logs(self, entity_type: Optional[str] = None,
                 staff_id: Optional[int] = None, limit: int = 100,
                 branch_id: Optional[int] = None) -> List[AuditLog]:
        """
        查询审计日志（最新在前）
        指定 branch_id 时只返回该分店员工的操作记录
        """
        query = self.db.query(AuditLog)
        if branch_id is not None:
            query = query.join(Staff, AuditLog.staff_id == Staff.id).filter(Staff.branch_id == branch_id)
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if staff_id:
            query = query.filter(AuditLog.staff_id == staff_id)
        return query.order_by(AuditLog.id.desc()).limit(limit).all()
