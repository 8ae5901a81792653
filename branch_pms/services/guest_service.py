"""
客人服务
客人信息在各分店之间共享
"""
from typing import List, Optional
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from branch_pms.models.ontology import Guest
from branch_pms.services.audit_service import AuditService
from branch_pms.services.result import ServiceResult, ErrorKind

logger = logging.getLogger(__name__)


class GuestService:
    """客人服务"""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def get_guest(self, guest_id: int) -> Optional[Guest]:
        """获取单个客人"""
        return self.db.query(Guest).filter(Guest.id == guest_id).first()

    def get_guest_by_email(self, email: str) -> Optional[Guest]:
        """根据邮箱获取客人"""
        return self.db.query(Guest).filter(Guest.email == email).first()

    def get_guests(self) -> List[Guest]:
        """获取客人列表（按姓名排序）"""
        return self.db.query(Guest).order_by(Guest.name, Guest.id).all()

    def _commit_unique_email(self, email: str) -> bool:
        """
        提交；并发登记同一邮箱时由唯一约束兜底
        冲突时回滚并返回 False
        """
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Guest email {email} taken by a concurrent request")
            return False
        return True

    def create_guest(self, name: str, email: str, phone: str,
                     operator_id: Optional[int] = None) -> ServiceResult:
        """登记客人"""
        if self.get_guest_by_email(email):
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被登记")

        guest = Guest(name=name, email=email, phone=phone)
        self.db.add(guest)
        if not self._commit_unique_email(email):
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被登记")
        self.db.refresh(guest)

        self.audit.log(operator_id, "guest.create", "Guest", guest.id, name)
        return ServiceResult.ok("客人登记成功", {'guest_id': guest.id})

    def update_guest(self, guest_id: int, name: str, email: str, phone: str,
                     operator_id: Optional[int] = None) -> ServiceResult:
        """更新客人信息"""
        guest = self.get_guest(guest_id)
        if not guest:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "客人不存在")

        existing = self.get_guest_by_email(email)
        if existing and existing.id != guest_id:
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被其他客人使用")

        guest.name = name
        guest.email = email
        guest.phone = phone
        if not self._commit_unique_email(email):
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被其他客人使用")

        self.audit.log(operator_id, "guest.update", "Guest", guest_id, name)
        return ServiceResult.ok("客人信息已更新", {'guest_id': guest_id})
