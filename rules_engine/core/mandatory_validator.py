"""
Mandatory Validator - missing answers on applicable mandatory questions

A failure is raised only when the question is mandatory, currently
applicable, and has no answer at all (blank answer_text, blank
selected_option, no selected option). Inapplicable or optional questions
never raise a missing-answer failure.
"""

import logging
from typing import Optional

from rules_engine.contracts import DataType, Question
from rules_engine.results import (
    FIELD_ANSWER_OPTIONS,
    FIELD_ANSWER_TEXT,
    FIELD_SELECTED_OPTION,
    ValidationFailure,
)
from rules_engine.utils.messages import mandatory_message

logger = logging.getLogger(__name__)


def answer_field_name(data_type: DataType) -> str:
    """Question attribute that holds the answer for a data type."""
    if data_type.is_single_valued:
        return FIELD_SELECTED_OPTION
    if data_type.is_multi_valued:
        return FIELD_ANSWER_OPTIONS
    return FIELD_ANSWER_TEXT


def check_mandatory(question: Question, applicable: bool) -> Optional[ValidationFailure]:
    """
    Check a question for a missing mandatory answer.

    Args:
        question: Question with its current answer
        applicable: Result of the applicability pass

    Returns:
        ValidationFailure, or None when nothing is missing
    """
    if not question.is_mandatory or not applicable:
        return None

    if question.has_answer():
        return None

    logger.debug(f"Mandatory question '{question.question_id}' has no answer")
    return ValidationFailure(
        question_id=question.question_id,
        field_name=answer_field_name(question.data_type),
        message=mandatory_message(question.display_text),
    )
