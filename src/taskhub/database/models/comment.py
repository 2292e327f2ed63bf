"""Comment model for Taskhub.

Comments belong to a single task and are visible to whoever can see that
task.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.database.models.base import Base, SoftDeleteMixin, TimestampMixin
from taskhub.database.models.user import User


class Comment(TimestampMixin, SoftDeleteMixin, Base):
    """A comment left on a task.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        task_id: Parent task.
        author_id: Commenting user.
        content: Comment text.
        version: Optimistic concurrency token.
        author: Relationship to the commenting User.
    """

    __tablename__ = "task_comments"

    task_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(String(2000), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    author: Mapped[User] = relationship("User", lazy="selectin")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Comment id={self.id} task_id={self.task_id}>"
