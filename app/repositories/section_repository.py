from typing import Any, Dict
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Section
from app.repositories.base_repository import BaseRepository


class SectionRepository(BaseRepository[Section]):
    """Repository for exam sections."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Section)

    async def update_fields(self, section_id: UUID, values: Dict[str, Any]) -> int:
        """Update columns of a section by ID and commit.

        Issues a single UPDATE without loading the row first.

        Args:
            section_id: Section to update
            values: Column name to new value

        Returns:
            Number of rows matched (0 when the section does not exist)
        """
        try:
            result = await self.session.execute(
                update(Section).where(Section.id == section_id).values(**values)
            )
            await self.session.commit()
            return result.rowcount
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error updating section {section_id}: {str(e)}",
                exc_info=True,
                extra={"columns": sorted(values)}
            )
            await self.session.rollback()
            raise
