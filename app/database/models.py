"""SQLAlchemy models for exam sections and their parsed questions."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Boolean,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Section(Base):
    """A timed section of an exam, optionally backed by an uploaded PDF.

    Rows are created by the exam-authoring UI with ``parsing_status`` set to
    ``pending``; the extraction pipeline only writes the ``parsing_*`` and
    aggregate columns.
    """

    __tablename__ = "sections"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    exam_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pdf_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    pdf_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_finalized: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=False)

    parsing_status: Mapped[str | None] = mapped_column(
        String, nullable=True, default="pending"
    )  # pending | in-progress | completed | failed
    parsing_started_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    parsing_completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    total_questions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    questions_requiring_review: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    questions: Mapped[list["ParsedQuestion"]] = relationship(
        "ParsedQuestion", back_populates="section", cascade="all, delete-orphan"
    )


class ParsedQuestion(Base):
    """A question extracted from a section's PDF.

    The pipeline inserts rows once and never updates them; the trailing
    columns belong to the manual editing workflow.
    """

    __tablename__ = "parsed_questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    section_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    q_no: Mapped[int] = mapped_column(Integer, nullable=False)
    section_label: Mapped[str | None] = mapped_column(String, nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    answer_type: Mapped[str] = mapped_column(String, nullable=False)
    answer_hint: Mapped[str | None] = mapped_column(Text, nullable=True)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    requires_review: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Manual editing workflow
    correct_answer: Mapped[Any] = mapped_column(JSONType, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    final_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_excluded: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=False)
    is_finalized: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    section: Mapped["Section"] = relationship("Section", back_populates="questions")
