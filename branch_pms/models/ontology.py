"""
业务实体定义
分店、员工、房型、房间、客人、预订、服务消费、账单、支付、审计日志
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, Enum as SQLEnum,
    Boolean, Numeric, Table, UniqueConstraint
)
from sqlalchemy.orm import relationship
from branch_pms.database import Base


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举（仅作为提示，可用性以冲突检查为准）"""
    AVAILABLE = "available"            # 空闲
    RESERVED = "reserved"              # 已预订，未入住
    OCCUPIED = "occupied"              # 入住中
    MAINTENANCE = "maintenance"        # 保养中
    OUT_OF_ORDER = "out_of_order"      # 故障停用


# 不参与可用性查询的房间状态
OUT_OF_SERVICE_STATUSES = (RoomStatus.MAINTENANCE, RoomStatus.OUT_OF_ORDER)


class BookingStatus(str, Enum):
    """预订状态枚举"""
    CONFIRMED = "confirmed"      # 已确认
    CHECKED_IN = "checked_in"    # 已入住
    CHECKED_OUT = "checked_out"  # 已退房
    CANCELLED = "cancelled"      # 已取消


# 会与新预订冲突的预订状态
BLOCKING_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)


class BillStatus(str, Enum):
    """账单支付状态"""
    PENDING = "pending"                # 待支付
    PARTIALLY_PAID = "partially_paid"  # 部分支付
    PAID = "paid"                      # 已结清


class PaymentMethod(str, Enum):
    """支付方式"""
    CASH = "cash"      # 现金
    CARD = "card"      # 刷卡
    ONLINE = "online"  # 线上支付


class PaymentStatus(str, Enum):
    """支付记录状态"""
    COMPLETED = "completed"


class StaffRole(str, Enum):
    """员工角色"""
    ADMIN = "admin"                # 管理员
    MANAGER = "manager"            # 经理
    RECEPTIONIST = "receptionist"  # 前台


# ============== 实体定义 ==============

class Branch(Base):
    """分店"""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    city = Column(String(50))
    address = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    rooms = relationship("Room", back_populates="branch")
    staff = relationship("Staff", back_populates="branch")


class Designation(Base):
    """
    职位
    每个职位对应一个访问角色，创建员工时角色取自职位
    """
    __tablename__ = "designations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    salary = Column(Numeric(10, 2), default=Decimal("0"))
    role = Column(SQLEnum(StaffRole), nullable=False)

    staff = relationship("Staff", back_populates="designation")


class Staff(Base):
    """
    员工对象
    登录账号为邮箱，所有业务操作按 branch_id 划分可见范围
    """
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)  # 登录账号
    phone = Column(String(30))
    nic = Column(String(20))  # 身份证号
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(StaffRole), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    designation_id = Column(Integer, ForeignKey("designations.id"))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    branch = relationship("Branch", back_populates="staff")
    designation = relationship("Designation", back_populates="staff")


class RoomType(Base):
    """房型对象"""
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    capacity = Column(Integer, default=2)
    daily_rate = Column(Numeric(10, 2), nullable=False)  # 每晚房价
    amenities = Column(Text)

    rooms = relationship("Room", back_populates="room_type")


booking_rooms = Table(
    "booking_rooms",
    Base.metadata,
    Column("booking_id", Integer, ForeignKey("bookings.id"), primary_key=True),
    Column("room_id", Integer, ForeignKey("rooms.id"), primary_key=True),
)


class Room(Base):
    """
    房间对象
    status 只是提示字段，预订可用性必须经过冲突检查
    """
    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("branch_id", "room_number", name="uq_room_branch_number"),)

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(10), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    branch = relationship("Branch", back_populates="rooms")
    room_type = relationship("RoomType", back_populates="rooms")
    bookings = relationship("Booking", secondary=booking_rooms, back_populates="rooms")


class Guest(Base):
    """客人对象（全集团共享）"""
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    phone = Column(String(30), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="guest")


class Booking(Base):
    """
    预订对象 - 预订、入住、退房周期的聚合根
    通过 booking_rooms 关联多个房间
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)
    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    guest = relationship("Guest", back_populates="bookings")
    rooms = relationship("Room", secondary=booking_rooms, back_populates="bookings",
                         order_by="Room.room_number")
    service_usages = relationship("ServiceUsage", back_populates="booking")
    bill = relationship("Bill", back_populates="booking", uselist=False)


class ServiceCatalogue(Base):
    """服务项目（洗衣、餐饮等）"""
    __tablename__ = "service_catalogue"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)  # 当前价格


class ServiceUsage(Base):
    """
    服务消费记录
    price_at_usage 为消费时的价格快照，之后不随目录价格变化
    """
    __tablename__ = "service_usages"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("service_catalogue.id"), nullable=False)
    usage_date = Column(DateTime, default=datetime.utcnow)
    quantity = Column(Integer, nullable=False)
    price_at_usage = Column(Numeric(10, 2), nullable=False)

    booking = relationship("Booking", back_populates="service_usages")
    service = relationship("ServiceCatalogue")


class Bill(Base):
    """
    账单对象
    每个预订最多一张账单，重新生成时原地更新
    """
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    room_charges = Column(Numeric(10, 2), default=Decimal("0"))
    service_charges = Column(Numeric(10, 2), default=Decimal("0"))
    discount = Column(Numeric(10, 2), default=Decimal("0"))
    tax_rate = Column(Numeric(5, 4), default=Decimal("0"))
    tax = Column(Numeric(10, 2), default=Decimal("0"))
    total_amount = Column(Numeric(10, 2), default=Decimal("0"))
    status = Column(SQLEnum(BillStatus), default=BillStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking = relationship("Booking", back_populates="bill")
    payments = relationship("Payment", back_populates="bill", order_by="Payment.id")


class Payment(Base):
    """支付记录（只追加）"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(SQLEnum(PaymentMethod), nullable=False)
    payment_date = Column(DateTime, default=datetime.utcnow)
    status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.COMPLETED, nullable=False)
    created_by = Column(Integer, ForeignKey("staff.id"))

    bill = relationship("Bill", back_populates="payments")


class AuditLog(Base):
    """
    审计日志
    记录员工的创建/更新操作
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"))
    action = Column(String(100), nullable=False)
    entity_type = Column(String(50))
    entity_id = Column(Integer)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
