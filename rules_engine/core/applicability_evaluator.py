"""
Applicability Evaluator - decides whether a question is currently in play

Responsibilities:
- Fold a question's gating rules (rules with a parent question) into one
  "is applicable" boolean
- Fold each rule's comparison conditions against the parent answer
- Record, per condition, whether it fired (ApplicabilityTrace)
- Decide which questions should have their answers reset

Design principles:
- Stateless with respect to answers: all answer state comes from the
  QuestionGraph passed at construction
- The only mutable state is the trace, an output map owned by this
  evaluator instance; Condition objects are never mutated
- No short circuit: every rule and condition is evaluated so the trace
  is complete, then folded
- Never raises for authoring defects

Fold semantics (see boolean_fold):
- Rules folded by ascending sequence, strict left-to-right, first rule's
  mode ignored, no precedence
- No gating rules -> applicable
- Unresolved / absent parent -> rule satisfied (UNRESOLVED_PARENT_SATISFIED)
- Content conditions (LENGTH, REGEX, DATE) inside a gating rule are not
  folded; they inherit the rule's result in the trace so their failures
  only show while the parent gate is open
- Conditions never reached by this pass read as applicable
"""

import logging
from typing import Dict, Optional

from rules_engine.config import DEFAULT_SETTINGS, EngineSettings
from rules_engine.contracts import ConditionRef, Question, QuestionGraph, Rule
from rules_engine.core.boolean_fold import fold_terms
from rules_engine.core.condition_evaluator import evaluate_condition

logger = logging.getLogger(__name__)


class ApplicabilityTrace:
    """
    Output map of per-condition applicability.

    Keys are ConditionRef; a condition the applicability pass never
    recorded reads as applicable, the same default the question-set
    builder gives every condition.
    """

    def __init__(self):
        self._fired: Dict[ConditionRef, bool] = {}

    def record(self, ref: ConditionRef, fired: bool) -> None:
        self._fired[ref] = fired

    def fired(self, ref: ConditionRef) -> bool:
        return self._fired.get(ref, True)

    def was_recorded(self, ref: ConditionRef) -> bool:
        return ref in self._fired

    def __len__(self) -> int:
        return len(self._fired)


class ApplicabilityEvaluator:
    """
    Evaluates rule applicability for the questions of one journey.

    Usage:
        evaluator = ApplicabilityEvaluator(graph)
        if evaluator.is_applicable(question):
            ...
        evaluator.trace.fired(ConditionRef(...))
    """

    def __init__(self, graph: QuestionGraph, settings: EngineSettings = DEFAULT_SETTINGS):
        """
        Args:
            graph: All questions of the journey with current answers
            settings: Engine settings (policies)
        """
        self.graph = graph
        self.settings = settings
        self.trace = ApplicabilityTrace()

    # =========================================================================
    # Public API
    # =========================================================================

    def is_applicable(self, question: Question) -> bool:
        """
        Determine whether a question is currently applicable.

        Args:
            question: Question to evaluate

        Returns:
            bool: True when the question is in play
        """
        rules = sorted(question.gating_rules, key=lambda r: r.sequence)

        if not rules:
            return True

        terms = [(rule.mode, self.evaluate_rule(question, rule)) for rule in rules]
        applicable = fold_terms(terms)

        logger.debug(f"Question '{question.question_id}' applicable={applicable} ({len(rules)} rules)")
        return applicable

    def evaluate_rule(self, question: Question, rule: Rule) -> bool:
        """
        Evaluate one rule of a question against its parent question.

        Args:
            question: Question owning the rule (used for trace keys)
            rule: Rule to evaluate

        Returns:
            bool: Folded result of the rule's comparison conditions
        """
        parent = self.graph.get(rule.parent_question_id)

        if parent is None:
            if rule.parent_question_id is not None:
                logger.warning(
                    f"Rule {rule.sequence} of '{question.question_id}' references unknown "
                    f"parent '{rule.parent_question_id}'"
                )
            result = self.settings.unresolved_parent_satisfied
            self._record_all(question, rule, result)
            return result

        terms = []
        content_refs = []
        for index, condition in enumerate(rule.conditions):
            ref = ConditionRef(question.question_id, rule.sequence, index)

            if condition.operator.is_content_check:
                content_refs.append(ref)
                continue

            fired = evaluate_condition(condition, parent, self.settings)
            self.trace.record(ref, fired)
            terms.append((condition.mode, fired))

        result = fold_terms(terms)

        for ref in content_refs:
            self.trace.record(ref, result)

        return result

    def should_reset_answers(self, question: Question) -> bool:
        """
        Whether a question's answers should be cleared.

        Only questions gated by a parent can be reset; they are reset when
        their gate is closed.
        """
        if not question.gating_rules:
            return False
        return not self.is_applicable(question)

    def condition_fired(self, question_id: str, rule_sequence: int, condition_index: int) -> bool:
        return self.trace.fired(ConditionRef(question_id, rule_sequence, condition_index))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _record_all(self, question: Question, rule: Rule, fired: bool) -> None:
        for index, _ in enumerate(rule.conditions):
            self.trace.record(ConditionRef(question.question_id, rule.sequence, index), fired)


def is_applicable(question: Question, graph: QuestionGraph,
                  settings: EngineSettings = DEFAULT_SETTINGS) -> bool:
    """Convenience wrapper for one-off applicability checks."""
    return ApplicabilityEvaluator(graph, settings).is_applicable(question)


def reset_inapplicable_answers(graph: QuestionGraph,
                               settings: EngineSettings = DEFAULT_SETTINGS,
                               max_passes: Optional[int] = None) -> QuestionGraph:
    """
    Clear the answers of every question whose gate is closed.

    Clearing a parent can close its children's gates, so passes repeat
    until nothing changes. A journey of N questions settles in at most
    N + 1 passes.

    Args:
        graph: Journey questions with current answers
        settings: Engine settings
        max_passes: Safety bound (defaults to len(graph) + 1)

    Returns:
        QuestionGraph: New graph; the input graph is untouched
    """
    limit = max_passes if max_passes is not None else len(graph) + 1
    current = graph

    for _ in range(limit):
        evaluator = ApplicabilityEvaluator(current, settings)
        to_reset = [
            q for q in current
            if q.cleared() != q and evaluator.should_reset_answers(q)
        ]
        if not to_reset:
            return current

        for question in to_reset:
            logger.info(f"Resetting answers of inapplicable question '{question.question_id}'")
            current = current.replace_question(question.cleared())

    logger.warning(f"Answer reset did not settle after {limit} passes")
    return current
