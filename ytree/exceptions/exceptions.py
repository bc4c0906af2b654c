"""业务异常类定义

定义树形数据服务使用的异常类体系。
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fastapi import status


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。

    使用示例:
        raise BusinessException("缓存后端不可用", code=ErrorCode.CACHE_ERROR)
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # ==================== 配置相关 ====================
    INVALID_CONFIG = "INVALID_CONFIG"
    MODEL_NOT_SET = "MODEL_NOT_SET"
    INVALID_MODEL = "INVALID_MODEL"
    ICON_NOT_CONFIGURED = "ICON_NOT_CONFIGURED"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"

    # ==================== 缓存相关 ====================
    CACHE_ERROR = "CACHE_ERROR"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    所有业务异常都应该继承此类。

    属性:
        message: 错误消息（面向用户）
        code: 错误代码（用于程序判断，支持 ErrorCode 枚举或字符串）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息

    使用示例:
        raise BusinessException("缓存后端不可用", code=ErrorCode.CACHE_ERROR)

        raise BusinessException(
            message="参数错误",
            details=["selected 必须是逗号分隔的 ID"],
            model="Category"
        )
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.BUSINESS_ERROR,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式

        Returns:
            包含异常信息的字典
        """
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            # 返回深拷贝，避免调用方修改返回值反向污染异常对象内部状态
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class TreeConfigException(BusinessException):
    """配置异常

    模型未设置、模型无效、图标缺少 default 等配置错误时抛出。
    属于部署问题而非请求问题，因此对应 500。

    使用示例:
        raise TreeConfigException("必须在接口配置中设置模型", code=ErrorCode.MODEL_NOT_SET)
    """

    def __init__(
        self,
        message: str = "配置错误",
        code: ErrorCodeType = ErrorCode.INVALID_CONFIG,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            **extra
        )
