"""
Result types returned by the rules engine.

These are the ONLY outputs of an evaluation pass. Callers attach failures
to form-field error state; the engine never renders them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from rules_engine.utils.model_state import failures_to_model_state

# Field names used in failures, matching the Question attribute they describe
FIELD_ANSWER_TEXT = "answer_text"
FIELD_SELECTED_OPTION = "selected_option"
FIELD_ANSWER_OPTIONS = "answer_options"


@dataclass(frozen=True)
class ValidationFailure:
    """
    One field-level failure.

    Attributes:
        question_id: Question the failure belongs to
        field_name: Question attribute the failure should be attached to
        message: User-facing message (condition description or generated)
    """
    question_id: str
    field_name: str
    message: str

    @property
    def key(self) -> str:
        return f"{self.question_id}.{self.field_name}"

    def to_json(self) -> Dict[str, str]:
        return {
            'question_id': self.question_id,
            'field_name': self.field_name,
            'message': self.message,
        }


@dataclass(frozen=True)
class ContentCheckOutcome:
    """
    Failure produced by a content condition, with its visibility.

    visible is False when the condition did not fire during the
    applicability pass and suppression is enabled.
    """
    failure: ValidationFailure
    visible: bool


@dataclass(frozen=True)
class QuestionEvaluation:
    """
    Evaluation of a single question.

    Attributes:
        question_id: Question evaluated
        applicable: Outcome of the applicability fold
        failures: Visible failures (mandatory first, then content)
        suppressed_failures: Content failures computed but not shown
    """
    question_id: str
    applicable: bool
    failures: Tuple[ValidationFailure, ...] = ()
    suppressed_failures: Tuple[ValidationFailure, ...] = ()


@dataclass(frozen=True)
class JourneyValidationResult:
    """
    Complete result for one journey page.

    Attributes:
        evaluations: Per-question evaluations in questionnaire order
        evaluation_errors: Ids of questions whose evaluation crashed
            (logged; the rest of the batch is still evaluated)
    """
    evaluations: Tuple[QuestionEvaluation, ...] = ()
    evaluation_errors: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def applicability(self) -> Dict[str, bool]:
        return {e.question_id: e.applicable for e in self.evaluations}

    @property
    def failures(self) -> Tuple[ValidationFailure, ...]:
        return tuple(f for e in self.evaluations for f in e.failures)

    @property
    def suppressed_failures(self) -> Tuple[ValidationFailure, ...]:
        return tuple(f for e in self.evaluations for f in e.suppressed_failures)

    @property
    def is_valid(self) -> bool:
        return not self.failures and not self.evaluation_errors

    def for_question(self, question_id: str) -> Tuple[ValidationFailure, ...]:
        return tuple(f for f in self.failures if f.question_id == question_id)

    def to_model_state(self) -> Dict[str, list]:
        return failures_to_model_state(self.failures)

    def to_json(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'applicability': self.applicability,
            'failures': [f.to_json() for f in self.failures],
            'model_state': self.to_model_state(),
            'evaluation_errors': list(self.evaluation_errors),
        }
