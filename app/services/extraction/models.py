"""Data types shared by the question-extraction pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID

from app.core.config import Settings
from app.core.exceptions import ConfigurationError

# Questions below this confidence are flagged for human review.
REVIEW_CONFIDENCE_THRESHOLD = 0.9

DEFAULT_MIME_TYPE = "application/pdf"


def requires_review(confidence: Optional[float]) -> bool:
    """Review flag for a model-reported confidence.

    A missing confidence compares as not below the threshold, so it is
    not flagged.
    """
    if confidence is None:
        return False
    return confidence < REVIEW_CONFIDENCE_THRESHOLD


@dataclass(frozen=True)
class ExtractionConfig:
    """Credentials and endpoints the ingestion pipeline needs.

    Built once per invocation and handed to the orchestrator so nothing in
    the pipeline reads process state.
    """
    gemini_api_key: str
    supabase_url: str
    supabase_service_role_key: str
    gemini_model: str = "gemini-2.0-flash-exp"
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: int = 120
    temperature: float = 0.1
    storage_bucket: str = "exam-pdfs"
    storage_timeout: int = 60

    def __post_init__(self):
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY not configured")
        if not self.supabase_url:
            raise ConfigurationError("SUPABASE_URL not configured")
        if not self.supabase_service_role_key:
            raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY not configured")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractionConfig":
        """Build the config from application settings.

        Raises:
            ConfigurationError: If a required key is missing
        """
        return cls(
            gemini_api_key=settings.llm.gemini_api_key,
            supabase_url=settings.supabase.url,
            supabase_service_role_key=settings.supabase.service_role_key,
            gemini_model=settings.llm.gemini_model,
            gemini_api_url=settings.llm.gemini_api_url,
            gemini_timeout=settings.llm.timeout,
            temperature=settings.llm.temperature,
            storage_bucket=settings.supabase.storage_bucket,
            storage_timeout=settings.http_timeout,
        )


@dataclass
class RawModelOutput:
    """Unwrapped generation API response.

    Attributes:
        function_args: Arguments of the first ``return_questions`` call, as
            sent (usually a dict, occasionally a JSON string)
        text_parts: Text parts of the first candidate, in order
        payload: The full decoded response body
    """
    function_args: Any = None
    text_parts: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_function_call(self) -> bool:
        return self.function_args is not None

    @property
    def text(self) -> str:
        return "\n".join(part for part in self.text_parts if part)


@dataclass(frozen=True)
class ExtractedQuestion:
    """One question recognized in a section's document.

    ``requires_review`` is derived from ``confidence`` and cannot be set.
    """
    section_id: UUID
    question_number: Any
    text: Any
    answer_type: Any
    confidence: Optional[float]
    section_label: Optional[str] = None
    options: Optional[List[Any]] = None
    answer_hint: Optional[str] = None

    @property
    def requires_review(self) -> bool:
        return requires_review(self.confidence)

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the ``parsed_questions`` table."""
        return {
            "section_id": self.section_id,
            "q_no": self.question_number,
            "section_label": self.section_label,
            "text": self.text,
            "options": self.options,
            "answer_type": self.answer_type,
            "answer_hint": self.answer_hint,
            "confidence": self.confidence,
            "requires_review": self.requires_review,
        }


@dataclass(frozen=True)
class IngestionSummary:
    """Result of a successful ingestion job."""
    total_questions: int
    questions_requiring_review: int

    @classmethod
    def from_questions(cls, questions: List[ExtractedQuestion]) -> "IngestionSummary":
        return cls(
            total_questions=len(questions),
            questions_requiring_review=sum(1 for q in questions if q.requires_review),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_questions": self.total_questions,
            "questions_requiring_review": self.questions_requiring_review,
        }
