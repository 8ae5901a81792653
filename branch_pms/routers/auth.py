"""
认证路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff
from branch_pms.models.schemas import LoginRequest
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.staff_service import StaffService
from branch_pms.security.auth import get_current_user

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """员工登录（邮箱 + 密码）"""
    service = StaffService(db)
    return result_response(service.authenticate(data.email, data.password))


@router.get("/me")
def get_current_user_info(current_user: Staff = Depends(get_current_user)):
    """获取当前员工信息"""
    return format_response(True, "获取成功", {'user': StaffService.staff_profile(current_user)})
