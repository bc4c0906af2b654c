"""控件模块"""

from .tree_input import deep_merge, TreeInput

__all__ = [
    "deep_merge",
    "TreeInput",
]
