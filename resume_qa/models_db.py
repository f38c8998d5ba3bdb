"""
SQLAlchemy database models for the Resume Q&A application.

Only used by the database-backed resume store; the Supabase store keeps the
equivalent rows in its own ``resumes`` table.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class Resume(Base):
    """
    Stored resume.

    The uploaded file is inlined as a ``data:`` URI in ``file_url`` so the
    record is self-contained.
    """

    __tablename__ = "resumes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    file_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Public URL or inline data URI",
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Resume(id={self.id}, name='{self.name}', file_name='{self.file_name}')>"
