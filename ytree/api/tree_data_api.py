"""
树形数据接口

FullTreeDataAction 绑定一个 ORM 模型与一组选项，create_tree_data_router 将其
暴露为 GET 接口，响应体直接是 jsTree 节点数组。

使用示例:
    from fastapi import FastAPI
    from ytree.api import FullTreeDataAction, create_tree_data_router
    from ytree.tree import TreeDataOptions

    action = FullTreeDataAction(
        Category,
        TreeDataOptions(label_field="translation.name", with_relations=("translation",)),
    )

    app = FastAPI()
    app.include_router(
        create_tree_data_router(action, get_db),
        prefix="/api/category",
        tags=["分类树"],
    )

    # GET /api/category/tree?selected_id=5&selected=7,9
"""

import time
from typing import Any, Callable, Mapping, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, Session

from ytree.cache import CacheBackend, MemoryBackend
from ytree.exceptions import ErrorCode, TreeConfigException
from ytree.log import get_logger
from ytree.tree import SQLAlchemyRowSource, TreeDataOptions, TreeFlattener, TreeSelection

logger = get_logger()

JSON_MEDIA_TYPE = "application/json"


class FullTreeDataAction:
    """完整树形数据接口

    配置在构造时校验，配置错误不会拖到请求阶段才暴露。

    Args:
        model: SQLAlchemy 模型类
        options: 构建选项，默认 TreeDataOptions()
        cache: 缓存后端；启用缓存但未提供时使用私有的 MemoryBackend

    Raises:
        TreeConfigException: 模型未设置或不是 SQLAlchemy 映射类
    """

    def __init__(
        self,
        model: Optional[type] = None,
        options: Optional[TreeDataOptions] = None,
        cache: Optional[CacheBackend] = None,
    ):
        if model is None:
            raise TreeConfigException(
                "必须在接口配置中设置模型",
                code=ErrorCode.MODEL_NOT_SET,
            )
        if not isinstance(model, type) or not isinstance(
            sa_inspect(model, raiseerr=False), Mapper
        ):
            raise TreeConfigException(
                f"模型不存在或不是 SQLAlchemy 映射类: {model!r}",
                code=ErrorCode.INVALID_MODEL,
            )

        self.model = model
        self.options = options or TreeDataOptions()
        if cache is None and self.options.cache_enabled:
            cache = MemoryBackend(ttl=self.options.cache_lifetime)
        self.cache = cache

    def source(self, session: Session) -> SQLAlchemyRowSource:
        return SQLAlchemyRowSource(self.model, session)

    def run(self, params: Mapping[str, Any], session: Session) -> str:
        """处理一次请求，返回 JSON 文本

        Args:
            params: 查询参数
            session: 数据库会话
        """
        start = time.perf_counter()
        selection = TreeSelection.from_query(params, self.options)
        content = TreeFlattener.build_json(
            self.source(session), self.options, selection, self.cache
        )
        logger.debug(
            f"Get tree: model={self.model.__name__}, "
            f"elapsed={(time.perf_counter() - start) * 1000:.2f}ms"
        )
        return content


def create_tree_data_router(
    action: FullTreeDataAction,
    session_dependency: Callable[..., Any],
    path: str = "/tree",
) -> APIRouter:
    """创建树形数据路由

    Args:
        action: 已配置的 FullTreeDataAction
        session_dependency: FastAPI 依赖，提供数据库会话
        path: 路由路径

    Returns:
        APIRouter
    """
    router = APIRouter()
    options = action.options

    @router.get(
        path,
        summary="获取树形数据",
        description=(
            f"返回 jsTree 节点数组。查询参数: {options.query_selected_param}"
            f"（缺省时使用 {options.query_parent_param}）标记展开并选中的节点，"
            f"{options.selected_list_param} 为逗号分隔的多选节点"
        ),
        response_class=Response,
    )
    def get_tree(request: Request, session: Session = Depends(session_dependency)):
        content = action.run(request.query_params, session)
        return Response(content=content, media_type=JSON_MEDIA_TYPE)

    return router


__all__ = [
    "JSON_MEDIA_TYPE",
    "FullTreeDataAction",
    "create_tree_data_router",
]
