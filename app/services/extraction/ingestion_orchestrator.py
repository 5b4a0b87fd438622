"""Top-level coordinator for section PDF ingestion.

Runs one job strictly in sequence:

1. mark the section ``in-progress``
2. download the PDF from storage
3. request extraction from the generation API
4. normalize the response into a JSON object
5. build question records
6. insert all records in one batch
7. mark the section ``completed`` with aggregates

Any exception from these steps triggers a best-effort ``failed`` transition
and is then re-raised unchanged. Nothing is retried.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PersistenceError
from app.repositories.parsed_question_repository import ParsedQuestionRepository
from app.repositories.section_repository import SectionRepository
from app.services.extraction.extraction_requester import ExtractionRequester
from app.services.extraction.models import (
    DEFAULT_MIME_TYPE,
    ExtractedQuestion,
    ExtractionConfig,
    IngestionSummary,
)
from app.services.extraction.question_builder import QuestionRecordBuilder
from app.services.extraction.response_normalizer import ResponseNormalizer
from app.services.extraction.section_status import ParsingStatus, SectionStatusMachine, SectionStore
from app.services.storage_service import StorageService
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class QuestionStore(Protocol):
    async def bulk_insert(self, rows: Sequence[Dict[str, Any]]) -> Any:
        ...


class IngestionOrchestrator:
    """Drives one section/document extraction job end to end.

    Attributes:
        config: Injected credentials and endpoints
        status_machine: Section status writer
        question_store: Batch insert target for question rows
        storage: Document download collaborator
        requester: Generation API collaborator
        normalizer: Response-to-object strategy chain
        builder: Object-to-record mapper
    """

    def __init__(
        self,
        config: ExtractionConfig,
        section_store: SectionStore,
        question_store: QuestionStore,
        storage: Optional[StorageService] = None,
        requester: Optional[ExtractionRequester] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        builder: Optional[QuestionRecordBuilder] = None,
    ):
        self.config = config
        self.status_machine = SectionStatusMachine(section_store)
        self.question_store = question_store
        self.storage = storage or StorageService(
            url=config.supabase_url,
            service_role_key=config.supabase_service_role_key,
            bucket=config.storage_bucket,
            timeout=config.storage_timeout,
        )
        self.requester = requester or ExtractionRequester(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            base_url=config.gemini_api_url,
            timeout=config.gemini_timeout,
            temperature=config.temperature,
        )
        self.normalizer = normalizer or ResponseNormalizer()
        self.builder = builder or QuestionRecordBuilder()

    @classmethod
    def from_session(cls, config: ExtractionConfig, session: AsyncSession, **kwargs) -> "IngestionOrchestrator":
        """Build an orchestrator backed by SQLAlchemy repositories."""
        return cls(
            config,
            section_store=SectionRepository(session),
            question_store=ParsedQuestionRepository(session),
            **kwargs,
        )

    async def run(
        self,
        section_id: UUID,
        document_url: str,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> IngestionSummary:
        """Extract, persist and summarize the questions of one section's PDF.

        Args:
            section_id: Section the questions belong to
            document_url: Public storage URL of the PDF
            mime_type: MIME type sent to the generation API

        Returns:
            IngestionSummary: Question and review counts

        Raises:
            DocumentUnavailableError: The PDF could not be downloaded
            UpstreamServiceError: The generation API call failed
            ExtractionFormatError: No JSON object could be recovered
            PersistenceError: A database write was rejected
        """
        LOGGER.info(f"[parse-pdf] Starting parse for section {section_id}")
        stage = "mark_in_progress"
        try:
            await self._write_status(section_id, ParsingStatus.IN_PROGRESS)

            stage = "download"
            LOGGER.info("[parse-pdf] Downloading PDF from storage")
            document = await self.storage.download_document(document_url)

            stage = "extract"
            raw = await self.requester.request_extraction(document, mime_type)

            stage = "normalize"
            normalized = self.normalizer.normalize(raw)

            stage = "build"
            questions = self.builder.build(section_id, normalized)

            stage = "persist"
            await self._persist(questions)

            summary = IngestionSummary.from_questions(questions)

            stage = "mark_completed"
            await self._write_status(section_id, ParsingStatus.COMPLETED, **summary.to_dict())
        except Exception as e:
            LOGGER.error(
                f"[parse-pdf] Error during {stage}: {e}",
                exc_info=True,
                extra={"section_id": str(section_id), "stage": stage}
            )
            await self.mark_failed_best_effort(section_id)
            raise

        LOGGER.info(
            "[parse-pdf] Parsing completed successfully",
            extra={"section_id": str(section_id), **summary.to_dict()}
        )
        return summary

    async def mark_failed_best_effort(self, section_id: UUID) -> bool:
        """Cleanup step run after any stage error.

        Tries to record the ``failed`` status. Its own failure is logged and
        never replaces the job's original error.
        """
        return await self.status_machine.record_failure(section_id)

    async def _write_status(self, section_id: UUID, new_state: ParsingStatus, **attrs: Any) -> None:
        try:
            await self.status_machine.transition(section_id, new_state, **attrs)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to update section status to {new_state.value}: {str(e)}",
                original_error=e,
            ) from e

    async def _persist(self, questions: List[ExtractedQuestion]) -> None:
        rows = [question.to_row() for question in questions]
        try:
            await self.question_store.bulk_insert(rows)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save questions: {str(e)}", original_error=e) from e
