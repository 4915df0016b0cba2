"""Admin question editor.

Create, update, delete and reorder survey questions, and seed the default
question set into an empty collection. Every successful write refreshes the
question feed so open dashboards and survey pages see the new list.

Reordering swaps the ``order`` of two neighbouring questions inside a single
transaction: both rows change or neither does.
"""

import math
from typing import Optional, Union

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_service.models.question import Question
from survey_service.schemas import validation_message
from survey_service.schemas.question import (
    MoveDirection,
    QuestionDefinition,
    QuestionInput,
    parse_question,
)
from survey_service.services.default_questions import DefaultQuestionsError, load_default_questions
from survey_service.services.live_query import load_questions, question_feed
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

SAVE_FAILED_MESSAGE = "Failed to save question."
DELETE_FAILED_MESSAGE = "Failed to delete question."
REORDER_FAILED_MESSAGE = "Failed to reorder questions. Please try again."
SEED_FAILED_MESSAGE = "Failed to load the default questions."


class QuestionEditorError(Exception):
    """Raised when a question write fails."""
    pass


class QuestionNotFoundError(QuestionEditorError):
    """Raised when a question ID does not exist."""
    pass


class QuestionValidationError(QuestionEditorError):
    """Raised when an admin payload is not a well-formed question."""
    pass


class ReorderError(QuestionEditorError):
    """Raised when an order swap could not be committed."""
    pass


def effective_order(question: Question, index: int) -> float:
    """A question's rank, falling back to its position when not finite."""
    order = question.order
    if order is None or not math.isfinite(order):
        return float(index + 1)
    return order


class QuestionEditor:
    """Service for admin edits to the question list."""

    def __init__(self, db: Session):
        """Initialize editor.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def list_questions(self) -> list[QuestionDefinition]:
        """Return all questions as typed variants in display order."""
        return list(load_questions(self.db))

    def create_question(self, payload: Union[QuestionInput, dict]) -> QuestionDefinition:
        """Create a question at the end of the list.

        Args:
            payload: Question text, type, required flag and options

        Returns:
            The created question

        Raises:
            QuestionValidationError: If the payload is not well-formed
            QuestionEditorError: If the write fails
        """
        data = self._validate(payload)

        try:
            max_order = self.db.execute(select(func.max(Question.order))).scalar()
            next_order = (max_order if max_order is not None and math.isfinite(max_order) else 0) + 1

            question = Question(
                text=data.text,
                type=data.type.value,
                required=data.required,
                options=list(data.options),
                order=next_order,
            )
            self.db.add(question)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create question: {e}", exc_info=True)
            raise QuestionEditorError(SAVE_FAILED_MESSAGE)

        logger.info(
            f"Created question {question.id} ({question.type}) at order {question.order}",
            extra={"question_id": question.id}
        )
        self._publish()
        return parse_question(question.to_record())

    def update_question(
        self,
        question_id: str,
        payload: Union[QuestionInput, dict],
    ) -> QuestionDefinition:
        """Replace a question's text, type, required flag and options.

        The question's ``order`` is left unchanged.

        Raises:
            QuestionNotFoundError: If the question doesn't exist
            QuestionValidationError: If the payload is not well-formed
            QuestionEditorError: If the write fails
        """
        data = self._validate(payload)
        question = self._get(question_id)

        try:
            question.text = data.text
            question.type = data.type.value
            question.required = data.required
            question.options = list(data.options)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to update question {question_id}: {e}",
                extra={"question_id": question_id},
                exc_info=True
            )
            raise QuestionEditorError(SAVE_FAILED_MESSAGE)

        logger.info(f"Updated question {question_id}", extra={"question_id": question_id})
        self._publish()
        return parse_question(question.to_record())

    def delete_question(self, question_id: str) -> None:
        """Delete a question.

        Stored answers to the question are kept; views ignore them.

        Raises:
            QuestionNotFoundError: If the question doesn't exist
            QuestionEditorError: If the write fails
        """
        question = self._get(question_id)

        try:
            self.db.delete(question)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to delete question {question_id}: {e}",
                extra={"question_id": question_id},
                exc_info=True
            )
            raise QuestionEditorError(DELETE_FAILED_MESSAGE)

        logger.info(f"Deleted question {question_id}", extra={"question_id": question_id})
        self._publish()

    def move_question(self, question_id: str, direction: Union[MoveDirection, str]) -> bool:
        """Swap a question's ``order`` with its neighbour.

        Moving the first question up or the last one down is a no-op.

        Args:
            question_id: Question to move
            direction: "up" or "down"

        Returns:
            bool: True if the two questions were swapped

        Raises:
            QuestionNotFoundError: If the question doesn't exist
            ReorderError: If the swap could not be committed; neither row changes
        """
        direction = MoveDirection(direction)
        rows = Question.list_ordered(self.db)

        index = next((idx for idx, row in enumerate(rows) if row.id == question_id), None)
        if index is None:
            raise QuestionNotFoundError(f"Question '{question_id}' not found")

        target_index = index + direction.delta
        if target_index < 0 or target_index >= len(rows):
            logger.debug(
                f"Question {question_id} already at the {'top' if direction is MoveDirection.UP else 'bottom'}",
                extra={"question_id": question_id}
            )
            return False

        current = rows[index]
        neighbour = rows[target_index]
        current_order = effective_order(current, index)
        neighbour_order = effective_order(neighbour, target_index)

        try:
            current.order = neighbour_order
            neighbour.order = current_order
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to swap order of {current.id} and {neighbour.id}: {e}",
                extra={"question_id": question_id},
                exc_info=True
            )
            raise ReorderError(REORDER_FAILED_MESSAGE)

        logger.info(
            f"Moved question {question_id} {direction.value} "
            f"(swapped with {neighbour.id})",
            extra={"question_id": question_id}
        )
        self._publish()
        return True

    def seed_default_questions(self) -> int:
        """Insert the default question set when no questions exist.

        All defaults are added in one transaction.

        Returns:
            int: Number of questions inserted (0 if the list wasn't empty)

        Raises:
            QuestionEditorError: If the defaults can't be loaded or the write fails
        """
        if Question.count(self.db) > 0:
            return 0

        try:
            defaults = load_default_questions()
        except DefaultQuestionsError as e:
            logger.error(f"Cannot seed default questions: {e}")
            raise QuestionEditorError(SEED_FAILED_MESSAGE)

        try:
            for position, data in enumerate(defaults, start=1):
                self.db.add(Question(
                    text=data.text,
                    type=data.type.value,
                    required=data.required,
                    options=list(data.options),
                    order=position,
                ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to seed default questions: {e}", exc_info=True)
            raise QuestionEditorError(SAVE_FAILED_MESSAGE)

        logger.info(f"Seeded {len(defaults)} default questions")
        self._publish()
        return len(defaults)

    def _validate(self, payload: Union[QuestionInput, dict]) -> QuestionInput:
        if isinstance(payload, QuestionInput):
            return payload
        try:
            return QuestionInput.model_validate(payload)
        except ValidationError as e:
            raise QuestionValidationError(validation_message(e))

    def _get(self, question_id: str) -> Question:
        question: Optional[Question] = self.db.get(Question, question_id)
        if question is None:
            raise QuestionNotFoundError(f"Question '{question_id}' not found")
        return question

    def _publish(self) -> None:
        try:
            question_feed.refresh(self.db)
        except SQLAlchemyError as e:
            logger.error(f"Failed to refresh question feed: {e}", exc_info=True)
