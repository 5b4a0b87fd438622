"""Database module for SQLAlchemy models."""

from app.database.models import ParsedQuestion, Section

__all__ = [
    "ParsedQuestion",
    "Section",
]
