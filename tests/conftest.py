import os

# 设置测试环境
os.environ["APP_ENV"] = "test"

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.orm import sessionmaker
from postboard.main import app
from postboard.db.database import Base, get_session, create_store_engine, SQLITE_TEST_DB
from postboard.models.category import Category
from postboard.models.post import Post
from postboard.models.user import User
from postboard.repositories.post_writer import PostInput, PostWriteOperation

# 测试数据库配置
test_engine = create_store_engine(SQLITE_TEST_DB)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)

@pytest.fixture(autouse=True)
def clean_db():
    """清理并重建测试数据库"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    # 测试结束后清理
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def session_factory(clean_db):
    """为并发测试提供独立会话"""
    return TestSessionLocal

@pytest.fixture
def session(clean_db):
    """直接访问数据库的会话"""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(clean_db):
    """创建测试客户端"""
    # 每个请求一个新会话
    def override_get_session():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def test_user_data():
    return {
        "username": "testuser",
        "password": "testpassword123"
    }

@pytest.fixture
def authenticated_client(client, test_user_data):
    """返回一个已认证的客户端"""
    # 注册用户
    client.post("/api/users/register", json=test_user_data)
    # 登录
    login_response = client.post("/api/users/login", json=test_user_data)
    token = login_response.json()["access_token"]
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client

@pytest.fixture
def author(session):
    user = User(username="author", password_hash="not-a-real-hash")
    session.add(user)
    session.commit()
    return user

@pytest.fixture
def categories(session):
    """两个分类：Technology 和 Travel"""
    technology = Category(name="Technology")
    travel = Category(name="Travel")
    session.add_all([technology, travel])
    session.commit()
    return {"Technology": technology.id, "Travel": travel.id}

@pytest.fixture
def make_post(session, author):
    """写入一篇文章，created_at 依次递增，保证排序可预测"""
    base_time = datetime(2024, 1, 1, tzinfo=UTC)
    counter = {"n": 0}

    def _make_post(title, tags=None, category_id=None, content="Some content for the post"):
        writer = PostWriteOperation(session)
        post_id = writer.create(
            PostInput(title=title, content=content, category_id=category_id, tags=list(tags or [])),
            author_id=author.id
        )
        counter["n"] += 1
        session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(created_at=base_time + timedelta(minutes=counter["n"]))
        )
        session.commit()
        return post_id

    return _make_post
