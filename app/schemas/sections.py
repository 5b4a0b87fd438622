"""Read models for sections and their parsed questions."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SectionStatusResponse(BaseModel):
    """Parsing state of a section."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    exam_id: UUID
    name: str
    pdf_url: Optional[str] = None
    pdf_name: Optional[str] = None
    parsing_status: Optional[str] = Field(None, description="pending | in-progress | completed | failed")
    parsing_started_at: Optional[datetime] = None
    parsing_completed_at: Optional[datetime] = None
    total_questions: Optional[int] = None
    questions_requiring_review: Optional[int] = None


class ParsedQuestionResponse(BaseModel):
    """A stored question as shown to the editing UI."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    section_id: UUID
    q_no: int
    section_label: Optional[str] = None
    text: str
    options: Optional[List[Any]] = None
    answer_type: str
    answer_hint: Optional[str] = None
    confidence: Optional[float] = None
    requires_review: Optional[bool] = None
    correct_answer: Optional[Any] = None
    image_url: Optional[str] = None
    final_order: Optional[int] = None
    is_excluded: Optional[bool] = None
    is_finalized: Optional[bool] = None
    created_at: Optional[datetime] = None


class SectionQuestionsResponse(BaseModel):
    section_id: UUID
    total: int
    questions: List[ParsedQuestionResponse]
