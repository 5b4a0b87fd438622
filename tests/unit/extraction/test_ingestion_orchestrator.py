from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    DocumentUnavailableError,
    ExtractionFormatError,
    PersistenceError,
    UpstreamServiceError,
)
from app.services.extraction.ingestion_orchestrator import IngestionOrchestrator
from app.services.extraction.models import RawModelOutput
from app.services.extraction.section_status import ParsingStatus


@pytest.fixture
def mock_storage(sample_pdf_content):
    storage = MagicMock()
    storage.download_document = AsyncMock(return_value=sample_pdf_content)
    return storage


@pytest.fixture
def mock_requester(two_question_output):
    requester = MagicMock()
    requester.request_extraction = AsyncMock(return_value=two_question_output)
    return requester


@pytest.fixture
def orchestrator(extraction_config, section_store, question_store, mock_storage, mock_requester):
    return IngestionOrchestrator(
        extraction_config,
        section_store=section_store,
        question_store=question_store,
        storage=mock_storage,
        requester=mock_requester,
    )


@pytest.mark.asyncio
async def test_function_call_response_is_ingested(
    orchestrator, section_store, question_store, mock_storage, mock_requester,
    section_id, sample_pdf_url, sample_pdf_content,
):
    summary = await orchestrator.run(section_id, sample_pdf_url)

    assert summary.to_dict() == {"total_questions": 2, "questions_requiring_review": 1}
    assert section_store.statuses() == ["in-progress", "completed"]

    section = section_store.sections[section_id]
    assert section["total_questions"] == 2
    assert section["questions_requiring_review"] == 1
    assert section["parsing_started_at"] is not None
    assert section["parsing_completed_at"] is not None

    assert question_store.batches == 1
    assert [row["q_no"] for row in question_store.rows] == [1, 2]
    assert question_store.rows[0]["section_label"] == "Part A"
    assert question_store.rows[0]["answer_hint"] is None
    assert [row["requires_review"] for row in question_store.rows] == [False, True]
    assert all(row["section_id"] == section_id for row in question_store.rows)

    mock_storage.download_document.assert_awaited_once_with(sample_pdf_url)
    mock_requester.request_extraction.assert_awaited_once_with(sample_pdf_content, "application/pdf")


@pytest.mark.asyncio
async def test_fenced_text_response_is_ingested(orchestrator, mock_requester, question_store, section_id, sample_pdf_url):
    mock_requester.request_extraction.return_value = RawModelOutput(
        text_parts=[
            '```json\n{"questions":[{"q_no":1,"text":"Q1","answer_type":"single","confidence":0.95},]}\n```'
        ]
    )

    summary = await orchestrator.run(section_id, sample_pdf_url)

    assert summary.total_questions == 1
    assert summary.questions_requiring_review == 0
    assert question_store.rows[0]["text"] == "Q1"


@pytest.mark.asyncio
async def test_empty_question_list_completes_with_zero_counts(
    orchestrator, mock_requester, section_store, section_id, sample_pdf_url
):
    mock_requester.request_extraction.return_value = RawModelOutput(function_args={"questions": []})

    summary = await orchestrator.run(section_id, sample_pdf_url)

    assert summary.to_dict() == {"total_questions": 0, "questions_requiring_review": 0}
    assert section_store.sections[section_id]["parsing_status"] == ParsingStatus.COMPLETED.value
    assert section_store.sections[section_id]["total_questions"] == 0


@pytest.mark.asyncio
async def test_upstream_error_marks_section_failed(
    orchestrator, mock_requester, section_store, question_store, section_id, sample_pdf_url
):
    error = UpstreamServiceError("Gemini API error: 503 - Service Unavailable", status_code=503)
    mock_requester.request_extraction.side_effect = error

    with pytest.raises(UpstreamServiceError) as exc_info:
        await orchestrator.run(section_id, sample_pdf_url)

    assert exc_info.value is error
    assert section_store.statuses() == ["in-progress", "failed"]
    section = section_store.sections[section_id]
    assert "total_questions" not in section
    assert "questions_requiring_review" not in section
    assert question_store.rows == []


@pytest.mark.asyncio
async def test_unparseable_response_marks_section_failed(
    orchestrator, mock_requester, section_store, section_id, sample_pdf_url
):
    mock_requester.request_extraction.return_value = RawModelOutput(text_parts=['{"questions": ['])

    with pytest.raises(ExtractionFormatError):
        await orchestrator.run(section_id, sample_pdf_url)

    assert section_store.statuses()[-1] == "failed"


@pytest.mark.asyncio
async def test_download_failure_skips_extraction(
    orchestrator, mock_storage, mock_requester, section_store, section_id, sample_pdf_url
):
    mock_storage.download_document.side_effect = DocumentUnavailableError("Failed to download PDF: 404 - Not Found")

    with pytest.raises(DocumentUnavailableError, match="404"):
        await orchestrator.run(section_id, sample_pdf_url)

    mock_requester.request_extraction.assert_not_awaited()
    assert section_store.statuses() == ["in-progress", "failed"]


@pytest.mark.asyncio
async def test_missing_document_url(extraction_config, section_store, question_store, mock_requester, section_id):
    orchestrator = IngestionOrchestrator(
        extraction_config,
        section_store=section_store,
        question_store=question_store,
        requester=mock_requester,
    )

    with pytest.raises(DocumentUnavailableError, match="Missing pdfUrl in request body"):
        await orchestrator.run(section_id, "")

    mock_requester.request_extraction.assert_not_awaited()
    assert section_store.statuses() == ["in-progress", "failed"]


@pytest.mark.asyncio
async def test_insert_failure_is_wrapped(
    extraction_config, section_store, question_store_factory, mock_storage, mock_requester, section_id, sample_pdf_url
):
    question_store = question_store_factory(error=SQLAlchemyError("duplicate key"))
    orchestrator = IngestionOrchestrator(
        extraction_config,
        section_store=section_store,
        question_store=question_store,
        storage=mock_storage,
        requester=mock_requester,
    )

    with pytest.raises(PersistenceError, match="Failed to save questions: duplicate key") as exc_info:
        await orchestrator.run(section_id, sample_pdf_url)

    assert isinstance(exc_info.value.original_error, SQLAlchemyError)
    assert section_store.statuses() == ["in-progress", "failed"]
    assert "total_questions" not in section_store.sections[section_id]


@pytest.mark.asyncio
async def test_status_write_failure_is_wrapped(
    extraction_config, question_store, mock_storage, mock_requester, section_id, sample_pdf_url
):
    section_store = AsyncMock()
    section_store.update_fields.side_effect = SQLAlchemyError("connection refused")
    orchestrator = IngestionOrchestrator(
        extraction_config,
        section_store=section_store,
        question_store=question_store,
        storage=mock_storage,
        requester=mock_requester,
    )

    with pytest.raises(PersistenceError, match="in-progress"):
        await orchestrator.run(section_id, sample_pdf_url)

    mock_storage.download_document.assert_not_awaited()
    # in-progress attempt plus the best-effort failed attempt
    assert section_store.update_fields.await_count == 2


@pytest.mark.asyncio
async def test_failed_status_write_does_not_mask_original_error(
    extraction_config, section_store_factory, question_store, mock_storage, mock_requester, section_id, sample_pdf_url
):
    section_store = section_store_factory(section_id, fail_on_status="failed")
    mock_requester.request_extraction.side_effect = UpstreamServiceError("Gemini API error: 500 - boom", status_code=500)
    orchestrator = IngestionOrchestrator(
        extraction_config,
        section_store=section_store,
        question_store=question_store,
        storage=mock_storage,
        requester=mock_requester,
    )

    with pytest.raises(UpstreamServiceError, match="500 - boom"):
        await orchestrator.run(section_id, sample_pdf_url)

    assert section_store.statuses() == ["in-progress"]


@pytest.mark.asyncio
async def test_rerun_appends_a_second_batch(orchestrator, section_store, question_store, section_id, sample_pdf_url):
    await orchestrator.run(section_id, sample_pdf_url)
    await orchestrator.run(section_id, sample_pdf_url)

    assert question_store.batches == 2
    assert len(question_store.rows) == 4
    assert section_store.statuses() == ["in-progress", "completed", "in-progress", "completed"]
    assert section_store.sections[section_id]["total_questions"] == 2


def test_default_collaborators_use_config(extraction_config, section_store, question_store):
    orchestrator = IngestionOrchestrator(extraction_config, section_store, question_store)

    assert orchestrator.storage.url == "https://test.supabase.co"
    assert orchestrator.storage.bucket == "exam-pdfs"
    assert orchestrator.requester.api_key == "test-gemini-key"
    assert orchestrator.requester.model == "gemini-2.0-flash-exp"
    assert orchestrator.requester.timeout == 120


@pytest.mark.asyncio
async def test_three_question_document(orchestrator, mock_requester, section_store, section_id, sample_pdf_url):
    mock_requester.request_extraction.return_value = RawModelOutput(
        function_args={
            "questions": [
                {"q_no": n, "text": f"Q{n}", "answer_type": "single", "confidence": confidence}
                for n, confidence in enumerate([0.95, 0.7, 0.99], start=1)
            ]
        }
    )

    summary = await orchestrator.run(section_id, sample_pdf_url)

    assert summary.total_questions == 3
    assert summary.questions_requiring_review == 1
    section = section_store.sections[section_id]
    assert section["parsing_status"] == "completed"
    assert section["total_questions"] == 3
    assert section["questions_requiring_review"] == 1


@pytest.mark.asyncio
async def test_missing_confidence_is_not_counted_for_review(
    orchestrator, mock_requester, question_store, section_id, sample_pdf_url
):
    mock_requester.request_extraction.return_value = RawModelOutput(
        function_args={
            "questions": [
                {"q_no": 1, "text": "Q1", "answer_type": "essay"},
                {"q_no": 2, "text": "Q2", "answer_type": "single", "confidence": 0.5},
            ]
        }
    )

    summary = await orchestrator.run(section_id, sample_pdf_url)

    assert summary.to_dict() == {"total_questions": 2, "questions_requiring_review": 1}
    assert question_store.rows[0]["confidence"] is None
    assert question_store.rows[0]["requires_review"] is False
