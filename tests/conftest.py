"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 数据库连接（内存 SQLite，已建表并写入分类树）
- 内存数据源
- 测试客户端
"""

import pytest
from typing import Generator

from fastapi import FastAPI
from fastapi.testclient import TestClient

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from tests.helpers.tree_models import Base, seed_categories


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False 确保：
    1. 所有操作使用同一个连接（StaticPool）
    2. 允许跨线程访问（TestClient 在线程池中执行同步路由）
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(memory_engine) -> Generator[Session, None, None]:
    """创建数据库会话（空表）"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_session(db_session) -> Session:
    """已写入分类树的数据库会话"""
    seed_categories(db_session)
    return db_session


# ==================== 内存数据 Fixtures ====================

@pytest.fixture
def category_rows():
    """三层内存树：Root -> Child -> Leaf，另有一个独立根节点 Other"""
    return [
        {"id": 1, "parent_id": 0, "name": "Root", "icon": "dir", "node_type": "dir", "sort_order": 1},
        {"id": 2, "parent_id": 1, "name": "Child", "icon": "file", "node_type": "leaf", "sort_order": 2},
        {"id": 3, "parent_id": 2, "name": "Leaf", "icon": None, "node_type": "leaf", "sort_order": 3},
        {"id": 4, "parent_id": None, "name": "Other", "icon": "dir", "node_type": "dir", "sort_order": 4},
    ]


@pytest.fixture
def memory_source(category_rows):
    """内存数据源"""
    from ytree.tree import MemoryRowSource
    return MemoryRowSource(category_rows, entity_name="Category")


# ==================== FastAPI Fixtures ====================

@pytest.fixture
def app():
    """创建测试用 FastAPI 应用"""
    return FastAPI(title="Test App")


@pytest.fixture
def client(app):
    """创建测试客户端"""
    return TestClient(app)
