"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support
- Table definitions for orgs, users, projects and plans
"""
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, String, DateTime, Boolean, Text, Index, ForeignKey, UniqueConstraint
from sqlalchemy.engine import make_url
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
import logging
import os

from planserver.core.config import settings


logger = logging.getLogger("planserver")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL") or settings.TEST_DATABASE_URL
    if test_url:
        return test_url

    return settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if _engine is not None:
        _engine.dispose()

    if make_url(url).get_backend_name() == "sqlite":
        # SQLite (local dev and tests) uses its own pooling and thread rules
        _engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        # Create engine with connection pooling
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)

    Commits on clean exit, rolls back on any exception.
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def drop_all_tables():
    """
    Drop all tables defined in metadata.

    WARNING: This is destructive! Only use in tests or development.
    """
    engine = get_engine()
    metadata.drop_all(bind=engine)


def reset_database():
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This is destructive! Only use in tests.
    """
    drop_all_tables()
    create_all_tables()


orgs = Table(
    'orgs',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('name', Text, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

users = Table(
    'users',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('email', String(255), nullable=False, unique=True),
    Column('name', Text, nullable=True),
    Column('is_trial', Boolean, nullable=False, server_default='false'),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

# Org membership; role drives the permission set
org_users = Table(
    'org_users',
    metadata,
    Column('org_id', String(100), ForeignKey('orgs.id'), nullable=False),
    Column('user_id', String(100), ForeignKey('users.id'), nullable=False),
    Column('role', String(50), nullable=False),  # 'owner', 'admin', 'member', 'reader'
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint('org_id', 'user_id', name='uq_org_users_org_user'),
    Index('idx_org_users_user_id', 'user_id'),
)

projects = Table(
    'projects',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('org_id', String(100), ForeignKey('orgs.id'), nullable=False),
    Column('name', Text, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_projects_org_id', 'org_id'),
)

plans = Table(
    'plans',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('org_id', String(100), ForeignKey('orgs.id'), nullable=False),
    Column('project_id', String(100), ForeignKey('projects.id'), nullable=False),
    Column('owner_id', String(100), ForeignKey('users.id'), nullable=False),
    Column('name', String(255), nullable=False),
    Column('status', String(50), nullable=False, server_default='ready'),
    Column('archived_at', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    # Authoritative guard for plan name uniqueness
    UniqueConstraint('project_id', 'owner_id', 'name', name='uq_plans_project_owner_name'),
    # Composite index for list_owned_plans pattern: (project_id, owner_id)
    Index('idx_plans_project_owner', 'project_id', 'owner_id'),
    # Index for the non-draft count used by trial quotas
    Index('idx_plans_owner_name', 'owner_id', 'name'),
)
