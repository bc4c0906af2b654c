"""树形选择输入控件

只计算隐藏输入框属性和 jsTree 客户端配置，模板渲染由调用方负责。

使用示例:
    widget = TreeInput(
        model=form,
        attribute="category_id",
        multiple=True,
        tree_config={"data_url": "/api/category/tree"},
    )
    context = widget.run()
    # context["input"]        -> {"type": "hidden", "name": "ProductForm[category_id]", ...}
    # context["tree_config"]  -> {"id": "input_tree__w0__tree", "options": {"core": {...}}, ...}
"""

import copy
import itertools
from typing import Any, Dict, Optional

from ytree.exceptions import ErrorCode, TreeConfigException

_widget_counter = itertools.count()


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """深度合并字典，返回新字典，update 中的值优先"""
    result = copy.deepcopy(base)
    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class TreeInput:
    """树形选择输入控件

    绑定方式二选一：
        - model + attribute：输入名为 "模型类名[attribute]"，值取自模型属性
        - name + value：直接指定
    """

    def __init__(
        self,
        name: Optional[str] = None,
        value: Any = None,
        model: Any = None,
        attribute: Optional[str] = None,
        widget_id: Optional[str] = None,
        tree_config: Optional[Dict[str, Any]] = None,
        multiple: bool = False,
        select_icon: str = "fa fa-folder-o",
        select_text: str = "Select",
        options: Optional[Dict[str, Any]] = None,
    ):
        if model is None and name is None:
            raise TreeConfigException(
                "TreeInput 需要设置 name，或同时设置 model 与 attribute",
                code=ErrorCode.INVALID_CONFIG,
            )
        if model is not None and not attribute:
            raise TreeConfigException(
                "绑定模型时必须设置 attribute",
                code=ErrorCode.INVALID_CONFIG,
            )
        self.name = name
        self.value = value
        self.model = model
        self.attribute = attribute
        self.widget_id = widget_id or f"w{next(_widget_counter)}"
        self.tree_config = dict(tree_config or {})
        self.multiple = multiple
        self.select_icon = select_icon
        self.select_text = select_text
        self.options = dict(options or {})

    def has_model(self) -> bool:
        return self.model is not None

    def _input_attributes(self, input_id: str) -> Dict[str, Any]:
        attrs = {**self.options, "type": "hidden", "id": input_id}
        if self.has_model():
            attrs["name"] = f"{type(self.model).__name__}[{self.attribute}]"
            attrs["value"] = getattr(self.model, self.attribute, None)
        else:
            attrs["name"] = self.name
            attrs["value"] = self.value
        return attrs

    def run(self) -> Dict[str, Any]:
        """计算渲染上下文"""
        input_id = f"input_tree__{self.widget_id}"

        tree_config = dict(self.tree_config)
        tree_config["id"] = f"{input_id}__tree"
        tree_config["options"] = deep_merge(
            tree_config.get("options", {}),
            {"core": {"multiple": self.multiple, "dblclick_toggle": False}},
        )

        return {
            "id": input_id,
            "input": self._input_attributes(input_id),
            "tree_config": tree_config,
            "multiple": self.multiple,
            "select_icon": self.select_icon,
            "select_text": self.select_text,
        }


__all__ = [
    "deep_merge",
    "TreeInput",
]
