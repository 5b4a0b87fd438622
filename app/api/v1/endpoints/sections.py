"""Section read endpoints used by the editing UI."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_async_session as get_session
from app.repositories.parsed_question_repository import ParsedQuestionRepository
from app.repositories.section_repository import SectionRepository
from app.schemas.sections import (
    ParsedQuestionResponse,
    SectionQuestionsResponse,
    SectionStatusResponse,
)

router = APIRouter()


async def get_section_repository(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> SectionRepository:
    return SectionRepository(db_session)


async def get_question_repository(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ParsedQuestionRepository:
    return ParsedQuestionRepository(db_session)


@router.get(
    "/{section_id}",
    response_model=SectionStatusResponse,
    summary="Get section parsing status",
    operation_id="get_section_status",
)
async def get_section(
    section_id: UUID,
    section_repo: Annotated[SectionRepository, Depends(get_section_repository)],
) -> SectionStatusResponse:
    section = await section_repo.get_by_id(section_id)
    if not section:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section with ID {section_id} not found",
        )
    return SectionStatusResponse.model_validate(section)


@router.get(
    "/{section_id}/questions",
    response_model=SectionQuestionsResponse,
    summary="List a section's parsed questions",
    operation_id="list_section_questions",
)
async def list_section_questions(
    section_id: UUID,
    section_repo: Annotated[SectionRepository, Depends(get_section_repository)],
    question_repo: Annotated[ParsedQuestionRepository, Depends(get_question_repository)],
) -> SectionQuestionsResponse:
    """Questions in editor order: ``final_order`` first, then question number."""
    section = await section_repo.get_by_id(section_id)
    if not section:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section with ID {section_id} not found",
        )

    questions = await question_repo.list_by_section(section_id)
    return SectionQuestionsResponse(
        section_id=section_id,
        total=len(questions),
        questions=[ParsedQuestionResponse.model_validate(q) for q in questions],
    )
