from pathlib import Path

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str) -> Engine:
    """建立同步 engine；SQLite 需跨執行緒共用（排程器與 API 皆會存取）"""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # 記憶體資料庫必須共用同一條連線，否則每個 session 都會看到空的資料庫
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)

    db_path = database_url.split("///", 1)[-1]
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    # Import models so they register on Base.metadata
    import slunch.models  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("Database initialized")


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)
