"""
统一响应格式 {success, message, data, statusCode}
"""
from typing import Any, Optional
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from branch_pms.services.result import ServiceResult


def format_response(success: bool, message: str, data: Optional[Any] = None,
                    status_code: int = 200) -> JSONResponse:
    """构建统一格式的 JSON 响应"""
    body = {
        "success": success,
        "message": message,
        "data": data,
        "statusCode": status_code,
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def result_response(result: ServiceResult, success_status: int = 200) -> JSONResponse:
    """把 ServiceResult 转换为统一响应"""
    if result.success:
        return format_response(True, result.message, result.data, success_status)
    return format_response(False, result.message, None, result.status_code)
