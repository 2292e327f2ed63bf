"""Taskhub - Project and task management backend.

This package provides a REST backend for collaborative project work:
user registration and JWT login, membership-checked access to projects
and tasks, task status lifecycle tracking, comments, and an append-only
activity log, persisted through SQLAlchemy's async ORM.
"""

__version__ = "0.1.0"
