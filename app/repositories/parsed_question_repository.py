from typing import Any, Dict, List, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import ParsedQuestion
from app.repositories.base_repository import BaseRepository


class ParsedQuestionRepository(BaseRepository[ParsedQuestion]):
    """Repository for questions extracted from section PDFs."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ParsedQuestion)

    async def bulk_insert(self, rows: Sequence[Dict[str, Any]]) -> List[ParsedQuestion]:
        """Insert all rows in one transaction.

        Either every row is committed or none is; on failure the session is
        rolled back so it stays usable for follow-up writes.

        Args:
            rows: Column mappings for ``parsed_questions``

        Returns:
            The inserted ORM instances
        """
        instances = [ParsedQuestion(**row) for row in rows]
        if not instances:
            return instances

        try:
            self.session.add_all(instances)
            await self.session.flush()
            await self.session.commit()
            return instances
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error inserting {len(instances)} parsed questions: {str(e)}",
                exc_info=True
            )
            await self.session.rollback()
            raise

    async def list_by_section(self, section_id: UUID) -> List[ParsedQuestion]:
        """Get a section's questions in display order.

        Questions with a ``final_order`` (set by the manual editor) come
        first in that order; the rest follow by question number.
        """
        try:
            query = (
                select(ParsedQuestion)
                .where(ParsedQuestion.section_id == section_id)
                .order_by(
                    ParsedQuestion.final_order.asc().nulls_last(),
                    ParsedQuestion.q_no.asc(),
                    ParsedQuestion.created_at.asc(),
                )
            )
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error listing questions for section {section_id}: {str(e)}",
                exc_info=True
            )
            raise
