"""
Journey Validator - one evaluation pass over a journey page

Responsibilities:
- Run the applicability pass for every question, in questionnaire order
- Run the Mandatory and Content validators on each question
- Collect a flat, ordered list of field failures for the caller

Design principles:
- One evaluator per pass: the applicability trace lives exactly as long
  as the pass
- A question that crashes is logged and recorded in evaluation_errors;
  its siblings are still evaluated
- Pure with respect to the graph: nothing is written back to questions

Contracts:
- Input: QuestionGraph (from RuleGraphAssembler)
- Returns: JourneyValidationResult (immutable)
- Failure order: question order, then mandatory before content, then
  rule sequence and condition position
"""

import logging
from datetime import date
from typing import Callable, Optional

from rules_engine.config import DEFAULT_SETTINGS, EngineSettings
from rules_engine.contracts import Question, QuestionGraph
from rules_engine.core.applicability_evaluator import ApplicabilityEvaluator
from rules_engine.core.content_validator import ContentValidator
from rules_engine.core.mandatory_validator import check_mandatory
from rules_engine.results import JourneyValidationResult, QuestionEvaluation

logger = logging.getLogger(__name__)


class JourneyValidator:
    """
    Validates every question of a journey page.

    Usage:
        validator = JourneyValidator()
        result = validator.validate(graph)
        if not result.is_valid:
            errors = result.to_model_state()
    """

    def __init__(self, settings: EngineSettings = DEFAULT_SETTINGS,
                 today: Optional[Callable[[], date]] = None):
        """
        Args:
            settings: Engine settings shared by every validator
            today: Clock for date checks (defaults to date.today)
        """
        self.settings = settings
        self.content_validator = ContentValidator(settings, today=today)

    def validate(self, graph: QuestionGraph) -> JourneyValidationResult:
        """
        Evaluate applicability and validate every question.

        Args:
            graph: Journey questions with current answers

        Returns:
            JourneyValidationResult
        """
        evaluator = ApplicabilityEvaluator(graph, self.settings)
        evaluations = []
        errors = []

        for question in graph:
            try:
                evaluations.append(self._evaluate_question(question, evaluator))
            except Exception:
                logger.exception(f"Evaluation of question '{question.question_id}' failed")
                errors.append(question.question_id)

        result = JourneyValidationResult(
            evaluations=tuple(evaluations),
            evaluation_errors=tuple(errors),
        )
        logger.info(
            f"Validated {len(graph)} questions: {len(result.failures)} failures, "
            f"{len(result.suppressed_failures)} suppressed, {len(errors)} errors"
        )
        return result

    def evaluate_applicability(self, graph: QuestionGraph) -> dict:
        """Applicability only, without running validators."""
        evaluator = ApplicabilityEvaluator(graph, self.settings)
        return {q.question_id: evaluator.is_applicable(q) for q in graph}

    def _evaluate_question(self, question: Question,
                           evaluator: ApplicabilityEvaluator) -> QuestionEvaluation:
        applicable = evaluator.is_applicable(question)

        failures = []
        mandatory_failure = check_mandatory(question, applicable)
        if mandatory_failure is not None:
            failures.append(mandatory_failure)

        suppressed = []
        for outcome in self.content_validator.check_content(question, evaluator.trace):
            if outcome.visible:
                failures.append(outcome.failure)
            else:
                suppressed.append(outcome.failure)

        return QuestionEvaluation(
            question_id=question.question_id,
            applicable=applicable,
            failures=tuple(failures),
            suppressed_failures=tuple(suppressed),
        )


def validate_journey(graph: QuestionGraph,
                     settings: EngineSettings = DEFAULT_SETTINGS) -> JourneyValidationResult:
    """Module-level shortcut for JourneyValidator(settings).validate(graph)."""
    return JourneyValidator(settings).validate(graph)
