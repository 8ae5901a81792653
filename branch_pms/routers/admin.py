"""
管理员路由
仪表盘、本分店员工管理、房间/房型/职位/分店资料、经营报表
所有接口仅限管理员，数据范围为管理员所在分店
"""
from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from branch_pms.database import get_db
from branch_pms.models.ontology import Staff
from branch_pms.models.schemas import StaffCreate, StaffUpdate
from branch_pms.routers.envelope import format_response, result_response
from branch_pms.services.report_service import ReportService
from branch_pms.services.room_service import RoomService
from branch_pms.services.staff_service import StaffService
from branch_pms.security.auth import require_admin

router = APIRouter(prefix="/admin", tags=["管理员"])


# ============== 仪表盘 ==============

@router.get("/dashboard/stats")
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """分店概览统计"""
    service = ReportService(db)
    return format_response(True, "仪表盘统计获取成功", service.get_dashboard_stats(current_user.branch_id))


# ============== 员工管理 ==============

@router.get("/staff")
def list_staff(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """本分店员工列表"""
    staff = StaffService(db).get_branch_staff(current_user.branch_id)
    return format_response(True, "员工列表获取成功", [StaffService.staff_profile(s) for s in staff])


@router.post("/staff")
def create_staff(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """创建员工"""
    service = StaffService(db)
    result = service.create_staff(
        name=data.name,
        email=data.email,
        phone=data.phone,
        nic=data.nic,
        password=data.password,
        designation_id=data.designation_id,
        branch_id=current_user.branch_id,
        operator_id=current_user.id,
    )
    return result_response(result, success_status=201)


@router.put("/staff/{staff_id}")
def update_staff(
    staff_id: int,
    data: StaffUpdate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """更新员工"""
    service = StaffService(db)
    result = service.update_staff(
        staff_id, current_user.branch_id, data.model_dump(exclude_unset=True), current_user.id
    )
    return result_response(result)


@router.delete("/staff/{staff_id}")
def delete_staff(
    staff_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """停用员工"""
    service = StaffService(db)
    return result_response(service.delete_staff(staff_id, current_user.branch_id, current_user.id))


# ============== 基础资料 ==============

@router.get("/rooms")
def list_rooms(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """本分店房间（含房型信息）"""
    rooms = RoomService(db).get_rooms(current_user.branch_id)
    return format_response(True, "房间列表获取成功", [RoomService.room_summary(r) for r in rooms])


@router.get("/room-types")
def list_room_types(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """房型列表"""
    return format_response(True, "房型列表获取成功", [
        {
            'room_type_id': rt.id,
            'name': rt.name,
            'capacity': rt.capacity,
            'daily_rate': rt.daily_rate,
            'amenities': rt.amenities,
        }
        for rt in RoomService(db).get_room_types()
    ])


@router.get("/designations")
def list_designations(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """职位列表"""
    return format_response(True, "职位列表获取成功", [
        {'designation_id': d.id, 'name': d.name, 'salary': d.salary, 'role': d.role}
        for d in StaffService(db).get_designations()
    ])


@router.get("/branches")
def list_branches(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """分店列表"""
    return format_response(True, "分店列表获取成功", [
        {'branch_id': b.id, 'name': b.name, 'city': b.city, 'address': b.address}
        for b in RoomService(db).get_branches()
    ])


# ============== 报表 ==============

@router.get("/reports/room-occupancy")
def room_occupancy_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """房间入住率报表"""
    service = ReportService(db)
    return result_response(service.get_room_occupancy_report(current_user.branch_id, start_date, end_date))


@router.get("/reports/guest-billing")
def guest_billing_summary(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """客人账单汇总"""
    service = ReportService(db)
    return result_response(service.get_guest_billing_summary(current_user.branch_id, start_date, end_date))


@router.get("/reports/service-usage")
def service_usage_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """服务消费报表"""
    service = ReportService(db)
    return result_response(service.get_service_usage_report(current_user.branch_id, start_date, end_date))


@router.get("/reports/monthly-revenue")
def monthly_revenue_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """月度营收报表，默认当年"""
    service = ReportService(db)
    target_year = year or date.today().year
    return format_response(True, "月度营收报表获取成功", service.get_monthly_revenue(current_user.branch_id, target_year))


@router.get("/reports/top-services")
def top_services_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(require_admin)
):
    """热门服务报表"""
    service = ReportService(db)
    return result_response(service.get_top_services(current_user.branch_id, start_date, end_date, limit))
