"""版本信息"""

__version__ = "0.1.0"
__author__ = "ytree contributors"
__description__ = "jsTree 树形数据服务：邻接表扁平化、标签失效缓存、FastAPI 接口"
