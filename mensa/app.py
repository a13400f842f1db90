"""
Mensa 食堂订餐后端服务 - 主应用入口

主要功能模块：
- 折扣组查询和折扣计算
- 购物车结算报价
- 折扣组管理（管理员）

技术栈：FastAPI + DuckDB + JWT认证
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .config.settings import settings
from .core.database import db_manager
from .core.error_handler import (
    application_error_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .core.exceptions import BaseApplicationError, DatabaseError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    try:
        db_manager.init_database()
        logger.info("Database initialized successfully")
    except DatabaseError as e:
        # 数据库不可用时仍然启动，折扣查询会使用默认折扣表
        logger.error("Database initialization failed: %s", e.message)

    yield

    db_manager.close()


def create_app() -> FastAPI:
    """创建FastAPI应用"""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Mensa 食堂订餐系统API",
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册异常处理器
    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # 注册路由
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    def health_check():
        try:
            db_manager.execute_one("SELECT 1")
            database = "connected"
        except DatabaseError as e:
            database = f"error: {e.message}"
        return {
            "status": "healthy" if database == "connected" else "degraded",
            "version": settings.api_version,
            "database": database,
        }

    @app.get("/")
    def root():
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "description": "Mensa 食堂订餐系统API"
        }

    return app


# 应用实例
app = create_app()
