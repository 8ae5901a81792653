"""
Pydantic 模式定义
用于 API 请求验证；请求体同时接受 snake_case 与 camelCase 字段名
"""
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic.alias_generators import to_camel
from branch_pms.models.ontology import PaymentMethod

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\+]?[\d\s\-\(\)]{10,}$")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """带时区的时间统一转为 UTC 无时区时间，与数据库存储一致"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============== 认证 Schemas ==============

class LoginRequest(RequestModel):
    email: str
    password: str


# ============== 员工 Schemas ==============

class StaffCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=30)
    nic: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=6)
    designation_id: int

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError('邮箱格式不正确')
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_PATTERN.match(v):
            raise ValueError('手机号格式不正确')
        return v


class StaffUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    nic: Optional[str] = Field(None, min_length=1, max_length=20)
    designation_id: Optional[int] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError('邮箱格式不正确')
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not PHONE_PATTERN.match(v):
            raise ValueError('手机号格式不正确')
        return v


# ============== 客人 Schemas ==============

class GuestCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=30)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError('邮箱格式不正确')
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_PATTERN.match(v):
            raise ValueError('手机号格式不正确')
        return v


class GuestUpdate(GuestCreate):
    pass


# ============== 预订 Schemas ==============

class BookingCreate(RequestModel):
    guest_id: int
    check_in_date: datetime
    check_out_date: datetime
    room_ids: List[int] = Field(default_factory=list)

    @field_validator('check_in_date', 'check_out_date')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


# ============== 服务消费 Schemas ==============

class ServiceUsageCreate(RequestModel):
    booking_id: int
    service_id: int
    quantity: int = Field(..., ge=1)
    usage_date: Optional[datetime] = None

    @field_validator('usage_date')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


# ============== 账单 Schemas ==============

class BillGenerate(RequestModel):
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)


class PaymentCreate(RequestModel):
    bill_id: int
    payment_method: PaymentMethod
    amount: Decimal = Field(..., gt=0)
    payment_date: Optional[datetime] = None

    @field_validator('payment_date')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)
