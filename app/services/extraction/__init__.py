"""Exam PDF question-extraction pipeline."""

from app.services.extraction.extraction_requester import ExtractionRequester
from app.services.extraction.ingestion_orchestrator import IngestionOrchestrator
from app.services.extraction.models import (
    REVIEW_CONFIDENCE_THRESHOLD,
    ExtractedQuestion,
    ExtractionConfig,
    IngestionSummary,
    RawModelOutput,
)
from app.services.extraction.question_builder import QuestionRecordBuilder
from app.services.extraction.response_normalizer import ResponseNormalizer
from app.services.extraction.section_status import ParsingStatus, SectionStatusMachine

__all__ = [
    "REVIEW_CONFIDENCE_THRESHOLD",
    "ExtractedQuestion",
    "ExtractionConfig",
    "ExtractionRequester",
    "IngestionOrchestrator",
    "IngestionSummary",
    "ParsingStatus",
    "QuestionRecordBuilder",
    "RawModelOutput",
    "ResponseNormalizer",
    "SectionStatusMachine",
]
