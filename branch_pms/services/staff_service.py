"""
员工服务
登录认证，以及管理员对本分店员工的增删改查
"""
from typing import List, Optional
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from branch_pms.config import settings
from branch_pms.models.ontology import Designation, Staff
from branch_pms.security.auth import verify_password, create_access_token, get_password_hash
from branch_pms.services.audit_service import AuditService
from branch_pms.services.result import ServiceResult, ErrorKind

logger = logging.getLogger(__name__)


class StaffService:
    """员工服务"""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def get_staff_by_email(self, email: str) -> Optional[Staff]:
        return self.db.query(Staff).filter(Staff.email == email).first()

    def authenticate(self, email: str, password: str) -> ServiceResult:
        """认证登录；账号不存在、已停用或密码错误都返回 UNAUTHORIZED"""
        staff = self.get_staff_by_email(email)
        if not staff or not verify_password(password, staff.password_hash):
            logger.info(f"Login failed for {email}")
            return ServiceResult.fail(ErrorKind.UNAUTHORIZED, "邮箱或密码错误")

        if not staff.is_active:
            logger.info(f"Login refused for inactive staff #{staff.id}")
            return ServiceResult.fail(ErrorKind.UNAUTHORIZED, "账号已停用")

        token = create_access_token(staff.id, staff.role, staff.branch_id)
        return ServiceResult.ok("登录成功", {
            'access_token': token,
            'token_type': 'bearer',
            'expires_in': settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            'user': self.staff_profile(staff),
        })

    @staticmethod
    def staff_profile(staff: Staff) -> dict:
        branch = staff.branch
        designation = staff.designation
        return {
            'id': staff.id,
            'name': staff.name,
            'email': staff.email,
            'phone': staff.phone,
            'nic': staff.nic,
            'role': staff.role,
            'designation_id': staff.designation_id,
            'designation': designation.name if designation else None,
            'branch_id': staff.branch_id,
            'branch_name': branch.name if branch else None,
            'branch_city': branch.city if branch else None,
        }

    # ============== 员工管理 ==============

    def get_designations(self) -> List[Designation]:
        """职位列表"""
        return self.db.query(Designation).order_by(Designation.name).all()

    def get_branch_staff(self, branch_id: int) -> List[Staff]:
        """本分店在职员工（按姓名排序）"""
        return self.db.query(Staff).filter(
            Staff.branch_id == branch_id,
            Staff.is_active == True  # noqa: E712
        ).order_by(Staff.name, Staff.id).all()

    def _get_branch_member(self, staff_id: int, branch_id: int) -> Optional[Staff]:
        return self.db.query(Staff).filter(
            Staff.id == staff_id,
            Staff.branch_id == branch_id,
            Staff.is_active == True  # noqa: E712
        ).first()

    def _commit_unique_email(self, email: str) -> Optional[ServiceResult]:
        """提交；邮箱唯一约束冲突时回滚并返回校验失败"""
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Staff email {email} already taken")
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被使用")
        return None

    def create_staff(self, name: str, email: str, phone: str, nic: str, password: str,
                     designation_id: int, branch_id: int,
                     operator_id: Optional[int] = None) -> ServiceResult:
        """在管理员所在分店创建员工，角色取自职位"""
        designation = self.db.query(Designation).filter(Designation.id == designation_id).first()
        if not designation:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "职位不存在")
        if self.get_staff_by_email(email):
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被使用")

        staff = Staff(
            name=name,
            email=email,
            phone=phone,
            nic=nic,
            password_hash=get_password_hash(password),
            role=designation.role,
            designation_id=designation.id,
            branch_id=branch_id,
            is_active=True,
        )
        self.db.add(staff)
        failure = self._commit_unique_email(email)
        if failure:
            return failure
        self.db.refresh(staff)

        logger.info(f"Staff #{staff.id} created in branch #{branch_id} as {designation.name}")
        self.audit.log(operator_id, "staff.create", "Staff", staff.id, f"{name} <{email}>")
        return ServiceResult.ok("员工创建成功", {'staff_id': staff.id})

    def update_staff(self, staff_id: int, branch_id: int, changes: dict,
                     operator_id: Optional[int] = None) -> ServiceResult:
        """
        更新员工信息

        changes 只包含需要修改的字段（name / email / phone / nic / designation_id）；
        修改职位时同步更新角色。
        """
        staff = self._get_branch_member(staff_id, branch_id)
        if not staff:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该员工")

        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return ServiceResult.fail(ErrorKind.VALIDATION, "没有需要更新的字段")

        email = changes.get('email')
        if email and email != staff.email and self.get_staff_by_email(email):
            return ServiceResult.fail(ErrorKind.VALIDATION, f"邮箱 {email} 已被使用")

        designation_id = changes.pop('designation_id', None)
        if designation_id is not None:
            designation = self.db.query(Designation).filter(Designation.id == designation_id).first()
            if not designation:
                return ServiceResult.fail(ErrorKind.NOT_FOUND, "职位不存在")
            staff.designation_id = designation.id
            staff.role = designation.role

        for field, value in changes.items():
            setattr(staff, field, value)
        failure = self._commit_unique_email(email or staff.email)
        if failure:
            return failure

        self.audit.log(operator_id, "staff.update", "Staff", staff_id,
                       ", ".join(sorted(list(changes) + (['designation_id'] if designation_id else []))))
        return ServiceResult.ok("员工信息已更新", {'staff_id': staff_id})

    def delete_staff(self, staff_id: int, branch_id: int,
                     operator_id: Optional[int] = None) -> ServiceResult:
        """删除员工（实际上是停用），不能删除自己"""
        staff = self._get_branch_member(staff_id, branch_id)
        if not staff:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "本分店不存在该员工")
        if staff_id == operator_id:
            return ServiceResult.fail(ErrorKind.VALIDATION, "不能删除自己的账号")

        staff.is_active = False
        self.db.commit()

        logger.info(f"Staff #{staff_id} deactivated")
        self.audit.log(operator_id, "staff.delete", "Staff", staff_id, staff.name)
        return ServiceResult.ok("员工已停用", {'staff_id': staff_id})
