"""
统一的业务操作结果类型

业务规则拒绝（校验失败、冲突、不存在、认证失败）通过 ServiceResult 返回，
不抛异常；数据库等基础设施故障照常抛出，由应用层转换为 500。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """失败类别"""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 401,
}


@dataclass
class ServiceResult:
    """
    业务操作结果

    - success: 是否成功
    - message: 可读的提示信息
    - data: 成功时的返回数据
    - error_kind: 失败类别，决定 HTTP 状态码
    """
    success: bool
    message: str
    data: Any = None
    error_kind: Optional[ErrorKind] = None

    @staticmethod
    def ok(message: str, data: Any = None) -> "ServiceResult":
        """快速创建成功结果"""
        return ServiceResult(success=True, message=message, data=data)

    @staticmethod
    def fail(kind: ErrorKind, message: str) -> "ServiceResult":
        """快速创建失败结果"""
        return ServiceResult(success=False, message=message, error_kind=kind)

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return _STATUS_CODES[self.error_kind]
