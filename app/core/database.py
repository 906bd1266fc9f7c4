# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""SQLAlchemy engine factory and the ``members`` table definition."""
from sqlalchemy import (
    Column, DateTime, Integer, MetaData, String, Table, create_engine,
)
from sqlalchemy.engine import Engine

from app.core.config import Settings

metadata = MetaData()

members = Table(
    "members",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("member_id", String(32), unique=True, nullable=False),
    Column("surname", String(50), nullable=False),
    Column("first_name", String(50), nullable=False),
    Column("middle_name", String(50)),
    Column("phone_number", String(20), nullable=False),
    Column("email", String(254), unique=True, nullable=False),
    Column("date_of_birth", String(10), nullable=False),
    Column("graduation_year", Integer, nullable=False),
    Column("occupation", String(100), nullable=False),
    Column("home_address", String(200), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)


def build_engine(settings: Settings) -> Engine:
    if settings.DATABASE_URL.startswith("sqlite"):
        # SQLite connections are shared across the threadpool FastAPI uses for sync routes
        return create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )
