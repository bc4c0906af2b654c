"""异常处理模块

使用示例:
    from ytree import TreeConfigException, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    raise TreeConfigException("必须在接口配置中设置模型")
"""

from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    BusinessException,
    TreeConfigException,
)

from .handlers import (
    ResponseStatus,
    register_exception_handlers,
    business_exception_handler,
    general_exception_handler,
)

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "BusinessException",
    "TreeConfigException",
    "ResponseStatus",
    "register_exception_handlers",
    "business_exception_handler",
    "general_exception_handler",
]
