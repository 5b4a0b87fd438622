"""Per-section parsing lifecycle.

    pending ──> in-progress ──> completed
       │             │
       └─────────────┴────────> failed

Any state may re-enter ``in-progress`` when a section is re-submitted.
Each transition writes its own side effects:

- ``in-progress``: ``parsing_started_at``
- ``completed``: ``parsing_completed_at``, ``total_questions``,
  ``questions_requiring_review``
- ``failed``: status only; aggregates are left untouched
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Protocol
from uuid import UUID

from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

AGGREGATE_FIELDS = ("total_questions", "questions_requiring_review")


class ParsingStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class SectionStore(Protocol):
    async def update_fields(self, section_id: UUID, values: Dict[str, Any]) -> int:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SectionStatusMachine:
    """Writes parsing-status transitions for sections.

    Args:
        store: Anything with ``update_fields(section_id, values)``, normally
            a ``SectionRepository``
        clock: Source of transition timestamps
    """

    def __init__(self, store: SectionStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def _values_for(self, new_state: ParsingStatus, attrs: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {"parsing_status": new_state.value}

        if new_state is ParsingStatus.IN_PROGRESS:
            values["parsing_started_at"] = self.clock()

        elif new_state is ParsingStatus.COMPLETED:
            missing = [name for name in AGGREGATE_FIELDS if name not in attrs]
            if missing:
                raise ValueError(f"completed transition requires {', '.join(missing)}")
            values["parsing_completed_at"] = self.clock()
            for name in AGGREGATE_FIELDS:
                values[name] = int(attrs[name])

        elif attrs:
            LOGGER.warning(f"Ignoring attributes {sorted(attrs)} on transition to {new_state.value}")

        return values

    async def transition(self, section_id: UUID, new_state: ParsingStatus, **attrs: Any) -> Dict[str, Any]:
        """Move a section to ``new_state`` and write that state's side effects.

        Args:
            section_id: Section to update
            new_state: Target state
            **attrs: ``total_questions`` and ``questions_requiring_review``
                for the completed transition; ignored otherwise

        Returns:
            The column values written

        Raises:
            ValueError: If a completed transition is missing its aggregates
        """
        new_state = ParsingStatus(new_state)
        values = self._values_for(new_state, attrs)

        matched = await self.store.update_fields(section_id, values)
        if not matched:
            LOGGER.warning(f"Section {section_id} not found while moving to {new_state.value}")
        else:
            LOGGER.info(f"Section {section_id} -> {new_state.value}")
        return values

    async def record_failure(self, section_id: UUID) -> bool:
        """Best-effort transition to ``failed``.

        A failure to write the status is logged and swallowed so the job's
        own error stays the one the caller sees.

        Returns:
            Whether the failed status was written
        """
        try:
            await self.transition(section_id, ParsingStatus.FAILED)
            return True
        except Exception as e:
            LOGGER.error(
                f"[parse-pdf] Failed to update error status: {e}",
                exc_info=True,
                extra={"section_id": str(section_id)}
            )
            return False
