"""
初始化数据脚本（多分店版）
创建：分店、职位、房型、房间、员工、服务目录

运行：python -m branch_pms.init_data

默认账号（密码均为 123456）：
  admin@hotel.com        系统管理员   科伦坡店
  manager@hotel.com      经理         科伦坡店
  front1@hotel.com       前台         科伦坡店
  kandy.front@hotel.com  前台         康提店
"""
from decimal import Decimal
import logging
from branch_pms.database import SessionLocal, init_db
from branch_pms.models.ontology import (
    Branch, Designation, RoomType, Room, RoomStatus, Staff, StaffRole, ServiceCatalogue
)
from branch_pms.security.auth import get_password_hash

logger = logging.getLogger(__name__)


def init_branches(db):
    """初始化分店"""
    branches = {}
    for name, city, address in [
        ("科伦坡店", "Colombo", "12 Galle Road"),
        ("康提店", "Kandy", "5 Lake Drive"),
    ]:
        branch = db.query(Branch).filter(Branch.name == name).first()
        if not branch:
            branch = Branch(name=name, city=city, address=address)
            db.add(branch)
            db.flush()
        branches[city] = branch
    return branches


def init_designations(db):
    """初始化职位"""
    designations = {}
    for name, salary, role in [
        ("Admin", Decimal("75000.00"), StaffRole.ADMIN),
        ("Manager", Decimal("60000.00"), StaffRole.MANAGER),
        ("Receptionist", Decimal("45000.00"), StaffRole.RECEPTIONIST),
    ]:
        designation = db.query(Designation).filter(Designation.name == name).first()
        if not designation:
            designation = Designation(name=name, salary=salary, role=role)
            db.add(designation)
            db.flush()
        designations[role] = designation
    return designations


def init_room_types(db):
    """初始化房型"""
    room_types = {}
    for name, capacity, rate, amenities in [
        ("标准间", 2, Decimal("12500.00"), "WiFi, TV"),
        ("豪华间", 2, Decimal("18500.00"), "WiFi, TV, Mini bar"),
        ("家庭套房", 4, Decimal("27000.00"), "WiFi, TV, Kitchenette"),
    ]:
        room_type = db.query(RoomType).filter(RoomType.name == name).first()
        if not room_type:
            room_type = RoomType(name=name, capacity=capacity, daily_rate=rate, amenities=amenities)
            db.add(room_type)
            db.flush()
        room_types[name] = room_type
    return room_types


def init_rooms(db, branches, room_types):
    """每个分店 101-103 标准间、201-202 豪华间、301 家庭套房"""
    layout = [
        ("101", "标准间"), ("102", "标准间"), ("103", "标准间"),
        ("201", "豪华间"), ("202", "豪华间"),
        ("301", "家庭套房"),
    ]
    for branch in branches.values():
        for number, type_name in layout:
            exists = db.query(Room).filter(
                Room.branch_id == branch.id, Room.room_number == number
            ).first()
            if not exists:
                db.add(Room(
                    room_number=number,
                    branch_id=branch.id,
                    room_type_id=room_types[type_name].id,
                    status=RoomStatus.AVAILABLE,
                ))


def init_staff(db, branches, designations):
    """初始化员工账号"""
    accounts = [
        ("admin@hotel.com", "系统管理员", StaffRole.ADMIN, "Colombo"),
        ("manager@hotel.com", "经理", StaffRole.MANAGER, "Colombo"),
        ("front1@hotel.com", "前台", StaffRole.RECEPTIONIST, "Colombo"),
        ("kandy.front@hotel.com", "康提前台", StaffRole.RECEPTIONIST, "Kandy"),
    ]
    for email, name, role, city in accounts:
        if not db.query(Staff).filter(Staff.email == email).first():
            db.add(Staff(
                email=email,
                name=name,
                role=role,
                designation_id=designations[role].id,
                branch_id=branches[city].id,
                password_hash=get_password_hash("123456"),
                is_active=True,
            ))


def init_services(db):
    """初始化服务目录"""
    for name, price, description in [
        ("洗衣", Decimal("1500.00"), "每件"),
        ("早餐", Decimal("3500.00"), "每人"),
        ("机场接送", Decimal("9000.00"), "单程"),
        ("水疗", Decimal("12000.00"), "60 分钟"),
    ]:
        if not db.query(ServiceCatalogue).filter(ServiceCatalogue.name == name).first():
            db.add(ServiceCatalogue(name=name, price=price, description=description))


def main():
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        branches = init_branches(db)
        room_types = init_room_types(db)
        init_rooms(db, branches, room_types)
        designations = init_designations(db)
        init_staff(db, branches, designations)
        init_services(db)
        db.commit()
        logger.info("初始化数据完成")
    finally:
        db.close()


if __name__ == "__main__":
    main()
