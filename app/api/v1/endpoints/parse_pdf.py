"""PDF question-extraction invocation endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_async_session as get_session
from app.schemas.parse_pdf import ParsePdfError, ParsePdfRequest, ParsePdfResponse
from app.services.extraction import ExtractionConfig, IngestionOrchestrator
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

# Sent on every invocation response, with or without an Origin header
CORS_RESPONSE_HEADERS = {"Access-Control-Allow-Origin": "*"}


def get_extraction_config() -> ExtractionConfig:
    """Build the pipeline config; raises ConfigurationError before any work starts."""
    return ExtractionConfig.from_settings(settings)


async def get_ingestion_orchestrator(
    config: Annotated[ExtractionConfig, Depends(get_extraction_config)],
    db_session: Annotated[AsyncSession, Depends(get_session)],
) -> IngestionOrchestrator:
    return IngestionOrchestrator.from_session(config, db_session)


@router.post(
    "",
    response_model=ParsePdfResponse,
    responses={500: {"model": ParsePdfError}},
    status_code=status.HTTP_200_OK,
    summary="Extract questions from a section PDF",
    operation_id="parse_section_pdf",
)
async def parse_pdf(
    body: ParsePdfRequest,
    response: Response,
    orchestrator: Annotated[IngestionOrchestrator, Depends(get_ingestion_orchestrator)],
):
    """Run the extraction pipeline for one section and report the counts."""
    try:
        summary = await orchestrator.run(body.section_id, body.pdf_url)
    except Exception as e:
        LOGGER.error(f"[parse-pdf] Error: {e}", extra={"section_id": str(body.section_id)})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e) or "Unknown error"},
            headers=CORS_RESPONSE_HEADERS,
        )

    response.headers.update(CORS_RESPONSE_HEADERS)
    return ParsePdfResponse(
        total_questions=summary.total_questions,
        questions_requiring_review=summary.questions_requiring_review,
    )
