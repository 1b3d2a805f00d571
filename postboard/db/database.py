from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os
from typing import Optional
from functools import lru_cache

# 数据库配置
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite:///./test.db"
SQLITE_PROD_DB = "sqlite:///./prod.db"
SQLITE_BUSY_TIMEOUT = 15  # 秒，等待其他写入方释放锁

Base = declarative_base()


def get_database_url() -> str:
    """根据 APP_ENV 选择数据库地址"""
    env = os.getenv("APP_ENV", "development")
    if env == "test":
        return SQLITE_TEST_DB
    if env == "production":
        return os.getenv("DATABASE_URL", SQLITE_PROD_DB)
    return SQLITE_DEV_DB


def create_store_engine(database_url: str) -> Engine:
    """创建数据库引擎

    SQLite 连接开启外键约束，并由 SQLAlchemy 自己发出 BEGIN IMMEDIATE，
    这样 SAVEPOINT 和级联删除的行为与服务端数据库一致，
    并发写入按顺序等待写锁，而不是在升级锁时失败。
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite 默认会自行管理事务，这里关闭它
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        # 事务开始即取得写锁，后到的写入方等待 busy timeout
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


@lru_cache()
def get_engine() -> Engine:
    """获取数据库引擎"""
    return create_store_engine(get_database_url())


def get_session_maker(db_engine: Optional[Engine] = None):
    """获取会话工厂"""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine or get_engine())


def get_session():
    """获取数据库会话

    未提交的事务在 close() 时回滚。
    """
    SessionLocal = get_session_maker()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_tables(db_engine: Optional[Engine] = None):
    """创建所有表

    Args:
        db_engine: 可选的数据库引擎，如果不提供则使用默认引擎
    """
    # 注册所有模型
    from postboard.models import category, post, post_tag, tag, user  # noqa: F401

    engine = db_engine or get_engine()
    Base.metadata.create_all(bind=engine)
