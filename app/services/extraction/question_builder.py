from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from app.prompts.question_extraction import ANSWER_TYPES
from app.services.extraction.models import ExtractedQuestion
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _optional_text(value: Any) -> Optional[str]:
    # Empty strings from the model mean "not present"
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


def _confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class QuestionRecordBuilder:
    """Maps normalized model output to question records for one section."""

    def build(self, section_id: UUID, normalized: Mapping[str, Any]) -> List[ExtractedQuestion]:
        """Build question records from a normalized extraction object.

        A missing or non-list ``questions`` value yields no records rather
        than an error. Nothing is persisted here.

        Args:
            section_id: Owning section
            normalized: Object returned by the response normalizer

        Returns:
            Records in the order the model reported them
        """
        raw_questions = normalized.get("questions") if isinstance(normalized, Mapping) else None
        if not isinstance(raw_questions, list):
            if raw_questions is not None:
                LOGGER.warning(
                    f"Ignoring non-list 'questions' value of type {type(raw_questions).__name__}",
                    extra={"section_id": str(section_id)}
                )
            return []

        questions: List[ExtractedQuestion] = []
        for index, item in enumerate(raw_questions):
            if not isinstance(item, dict):
                LOGGER.warning(f"Skipping question at index {index}: not an object")
                continue
            questions.append(self._build_one(section_id, item))

        LOGGER.info(
            f"[parse-pdf] Extracted {len(questions)} questions",
            extra={"section_id": str(section_id)}
        )
        return questions

    def _build_one(self, section_id: UUID, item: Dict[str, Any]) -> ExtractedQuestion:
        answer_type = item.get("answer_type")
        if answer_type not in ANSWER_TYPES:
            # Stored as-is; the manual editor is where types get corrected
            LOGGER.warning(f"Unrecognized answer_type {answer_type!r} for question {item.get('q_no')!r}")

        options = item.get("options")
        if options is not None and not isinstance(options, list):
            options = None

        return ExtractedQuestion(
            section_id=section_id,
            question_number=item.get("q_no"),
            section_label=_optional_text(item.get("section")),
            text=item.get("text"),
            options=options,
            answer_type=answer_type,
            answer_hint=_optional_text(item.get("answer_hint")),
            confidence=_confidence(item.get("confidence")),
        )
