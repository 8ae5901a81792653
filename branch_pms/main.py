"""
Branch PMS 主应用入口
多分店酒店管理系统：预订、服务消费、账单与支付
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from branch_pms.config import settings
from branch_pms.database import init_db
from branch_pms.routers import auth, rooms, guests, bookings, services, bills, payments, audit_logs, admin
from branch_pms.routers.envelope import format_response

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    init_db()
    logger.info(f"{settings.APP_NAME} started")
    yield


# 创建应用
app = FastAPI(
    title="Branch PMS - 多分店酒店管理系统",
    description="预订、服务消费、账单与支付",
    version="1.0.0",
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============== 异常处理 ==============

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """认证/权限等 HTTP 异常统一为响应格式"""
    return format_response(False, str(exc.detail), None, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求参数校验失败"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get('msg')
    else:
        message = "请求参数无效"
    return format_response(False, message, None, 400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """未预期的异常（数据库故障等）"""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return format_response(False, "服务器内部错误", None, 500)


# 注册路由
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(guests.router)
app.include_router(bookings.router)
app.include_router(services.router)
app.include_router(bills.router)
app.include_router(payments.router)
app.include_router(audit_logs.router)
app.include_router(admin.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
