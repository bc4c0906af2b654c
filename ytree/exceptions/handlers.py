"""全局异常处理器

提供 FastAPI 全局异常处理器，自动将异常转换为统一的 JSON 响应格式。
"""

import traceback
from enum import Enum

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ytree.log import get_logger
from .exceptions import BusinessException, ErrorCode

logger = get_logger()


class ResponseStatus(str, Enum):
    """响应状态枚举"""
    SUCCESS = "success"
    ERROR = "error"


async def business_exception_handler(
    request: Request,
    exc: BusinessException
) -> JSONResponse:
    """业务异常处理器

    处理所有继承自 BusinessException 的异常，转换为统一的 JSON 响应。
    """
    logger.warning(
        f"Business exception occurred: {exc.code} - {exc.message}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code,
            "status_code": exc.status_code,
            "details": exc.details,
        }
    )

    content = {
        "status": ResponseStatus.ERROR.value,
        "message": exc.message,
        "msg_details": exc.details,
        "data": {},
    }
    if exc.code:
        content["error_code"] = exc.code.value if isinstance(exc.code, ErrorCode) else exc.code

    return JSONResponse(status_code=exc.status_code, content=content)


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """通用异常处理器（兜底）

    记录完整堆栈，对外只返回通用错误消息。
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}\n{traceback.format_exc()}",
        extra={"path": request.url.path, "method": request.method}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": "服务器内部错误",
            "msg_details": [],
            "data": {},
            "error_code": ErrorCode.INTERNAL_SERVER_ERROR.value,
        }
    )


def register_exception_handlers(app) -> None:
    """注册所有异常处理器到 FastAPI 应用

    使用示例:
        from fastapi import FastAPI
        from ytree.exceptions import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(BusinessException, business_exception_handler)
    # 兜底处理器必须放在最后
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered successfully")
