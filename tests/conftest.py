"""
Pytest 配置和共享 fixtures
"""
import pytest
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from branch_pms.database import Base, get_db
from branch_pms.models import ontology  # noqa
from branch_pms.models.ontology import (
    Branch, Designation, Staff, StaffRole, RoomType, Room, RoomStatus, Guest, ServiceCatalogue
)
from branch_pms.security.auth import get_password_hash, create_access_token
from branch_pms.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 分店与员工 ==============

@pytest.fixture
def branch(db_session):
    """科伦坡店"""
    branch = Branch(name="科伦坡店", city="Colombo", address="12 Galle Road")
    db_session.add(branch)
    db_session.commit()
    db_session.refresh(branch)
    return branch


@pytest.fixture
def other_branch(db_session):
    """康提店"""
    branch = Branch(name="康提店", city="Kandy", address="5 Lake Drive")
    db_session.add(branch)
    db_session.commit()
    db_session.refresh(branch)
    return branch


def _create_staff(db_session, email, name, role, branch_id):
    staff = Staff(
        email=email,
        name=name,
        role=role,
        branch_id=branch_id,
        password_hash=get_password_hash("123456"),
        is_active=True
    )
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def receptionist(db_session, branch):
    """前台员工"""
    return _create_staff(db_session, "front1@hotel.com", "前台小王", StaffRole.RECEPTIONIST, branch.id)


@pytest.fixture
def manager(db_session, branch):
    """经理"""
    return _create_staff(db_session, "manager@hotel.com", "经理", StaffRole.MANAGER, branch.id)


@pytest.fixture
def other_branch_receptionist(db_session, other_branch):
    """康提店前台"""
    return _create_staff(db_session, "kandy@hotel.com", "康提前台", StaffRole.RECEPTIONIST, other_branch.id)


@pytest.fixture
def admin(db_session, branch):
    """管理员"""
    return _create_staff(db_session, "admin@hotel.com", "管理员", StaffRole.ADMIN, branch.id)


@pytest.fixture
def designations(db_session):
    """职位：Admin / Receptionist"""
    admin_designation = Designation(name="Admin", salary=Decimal("75000.00"), role=StaffRole.ADMIN)
    front_designation = Designation(name="Receptionist", salary=Decimal("45000.00"), role=StaffRole.RECEPTIONIST)
    db_session.add_all([admin_designation, front_designation])
    db_session.commit()
    return {"admin": admin_designation, "receptionist": front_designation}


@pytest.fixture
def auth_headers(receptionist):
    """前台认证的请求头"""
    token = create_access_token(receptionist.id, receptionist.role, receptionist.branch_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_auth_headers(admin):
    """管理员认证的请求头"""
    token = create_access_token(admin.id, admin.role, admin.branch_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_auth_headers(manager):
    """经理认证的请求头"""
    token = create_access_token(manager.id, manager.role, manager.branch_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_branch_auth_headers(other_branch_receptionist):
    """康提店前台认证的请求头"""
    staff = other_branch_receptionist
    token = create_access_token(staff.id, staff.role, staff.branch_id)
    return {"Authorization": f"Bearer {token}"}


# ============== 房型与房间 ==============

@pytest.fixture
def standard_type(db_session):
    """标准间 12,500 / 晚"""
    room_type = RoomType(name="标准间", capacity=2, daily_rate=Decimal("12500.00"), amenities="WiFi")
    db_session.add(room_type)
    db_session.commit()
    db_session.refresh(room_type)
    return room_type


@pytest.fixture
def deluxe_type(db_session):
    """豪华间 18,500 / 晚"""
    room_type = RoomType(name="豪华间", capacity=2, daily_rate=Decimal("18500.00"), amenities="WiFi, Mini bar")
    db_session.add(room_type)
    db_session.commit()
    db_session.refresh(room_type)
    return room_type


def _create_room(db_session, number, branch_id, room_type_id, status=RoomStatus.AVAILABLE):
    room = Room(room_number=number, branch_id=branch_id, room_type_id=room_type_id, status=status)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def room_101(db_session, branch, standard_type):
    return _create_room(db_session, "101", branch.id, standard_type.id)


@pytest.fixture
def room_102(db_session, branch, standard_type):
    return _create_room(db_session, "102", branch.id, standard_type.id)


@pytest.fixture
def room_201(db_session, branch, deluxe_type):
    """豪华间 201"""
    return _create_room(db_session, "201", branch.id, deluxe_type.id)


@pytest.fixture
def other_branch_room(db_session, other_branch, standard_type):
    """康提店 101"""
    return _create_room(db_session, "101", other_branch.id, standard_type.id)


# ============== 客人与服务目录 ==============

@pytest.fixture
def sample_guest(db_session):
    """创建测试客人"""
    guest = Guest(name="张三", email="zhangsan@example.com", phone="+94 771234567")
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest


@pytest.fixture
def breakfast(db_session):
    """早餐 3,500"""
    service = ServiceCatalogue(name="早餐", price=Decimal("3500.00"), description="每人")
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def laundry(db_session):
    """洗衣 1,500"""
    service = ServiceCatalogue(name="洗衣", price=Decimal("1500.00"), description="每件")
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service
