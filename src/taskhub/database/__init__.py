"""Database layer for Taskhub.

This module handles database connections, session management, and provides
the SQLAlchemy async engine configuration for PostgreSQL (asyncpg) and
SQLite (aiosqlite).

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    create_schema: Create all tables on an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from taskhub.database.connection import create_schema, get_engine, get_session_factory
from taskhub.database.models import (
    ActivityLog,
    ActivityType,
    Base,
    Comment,
    Project,
    ProjectMember,
    ProjectStatus,
    Task,
    TaskPriority,
    TaskStatus,
    User,
    UserRole,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "create_schema",
    "Base",
    "User",
    "UserRole",
    "Project",
    "ProjectMember",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Comment",
    "ActivityLog",
    "ActivityType",
]
