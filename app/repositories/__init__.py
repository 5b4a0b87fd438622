"""Repository layer modules."""

from app.repositories.parsed_question_repository import ParsedQuestionRepository
from app.repositories.section_repository import SectionRepository

__all__ = [
    "ParsedQuestionRepository",
    "SectionRepository",
]
