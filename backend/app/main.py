"""
FastAPI主应用入口
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import daily_records, players, records, settings, stats
from app.core.config import Config
from app.core.exceptions import AppError, ValidationError
from app.core.logging import setup_logging
from app.db.database import build_engine, build_session_factory
from app.db.init_db import SchemaProvisioner
from app.services.kv_store import KeyValueProvisioner, MemoryHashClient

logger = logging.getLogger(__name__)


def describe_validation_error(exc: RequestValidationError) -> str:
    """取第一个校验错误，生成包含字段名的提示"""
    errors = exc.errors()
    if not errors:
        return "请求参数错误"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    message = first.get("msg", "参数错误")
    if first.get("type") == "missing":
        return f"缺少必填字段: {field}"
    return f"字段 {field} 无效: {message}" if field else message


def create_app(config: Config = None) -> FastAPI:
    """创建应用，数据库和存储后端由 config 决定"""
    config = config or Config()
    setup_logging(config.log_level)

    engine = build_engine(config.database_url)
    kv_client = MemoryHashClient()
    if config.storage_backend == "memory":
        provisioner = KeyValueProvisioner(kv_client, config.default_initial_points)
    else:
        provisioner = SchemaProvisioner(engine, config.default_initial_points)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 开始接收请求前完成建表
        provisioner.ensure()
        logger.info("存储已就绪 (backend=%s)", config.storage_backend)
        yield
        engine.dispose()

    app = FastAPI(
        title="扑克点数记录API",
        description="记录每局点数收支并统计玩家成绩",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.kv_client = kv_client
    app.state.provisioner = provisioner

    # 配置CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s 失败: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s 被拒绝: %s", request.method, request.url.path, exc.message)
        content = {"error": exc.message}
        if isinstance(exc, ValidationError) and exc.field:
            content["field"] = exc.field
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = describe_validation_error(exc)
        logger.warning("%s %s 参数错误: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    # 全局异常处理
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """未处理的异常统一返回500"""
        logger.error("未处理的异常: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(
            status_code=500,
            content={"error": f"内部服务器错误: {exc}"},
        )

    @app.get("/")
    async def root():
        """根路径"""
        return {"message": "扑克点数记录API", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        """健康检查"""
        return {"status": "ok", "storage": config.storage_backend, "ready": provisioner.ready}

    # 注册API路由
    app.include_router(records.router)
    app.include_router(stats.router)
    app.include_router(daily_records.router)
    app.include_router(players.router)
    app.include_router(settings.router)

    return app


app = create_app()
