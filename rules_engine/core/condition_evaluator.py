"""
Condition Evaluator - atomic truth of one condition against one parent

Responsibilities:
- Compare a parent question's current answer with a condition's
  parent_options (IN / EQUAL)
- Apply cardinality semantics (Single / Exact) for multi-valued parents
- Apply negate

Design principles:
- Pure function: no side effects, the caller records the result
- Dispatch on parent data type, not on condition shape
- Fail closed: unsupported operators evaluate False and are logged

Semantics:
- Single-valued parents (Radio, Boolean, Dropdown): selected_option in
  parent_options
- Free-text parents (Text, Email, Date, Other): trimmed answer_text in
  parent_options
- Multi-valued parents (Checkbox), selected = ids of selected options:
    Single / None -> selected & parent_options is non-empty
    Exact         -> selected == parent_options (order free)
- Operator NONE: raw True (hosts a description without a comparison)
- result = not raw if negate else raw
"""

import logging
from typing import FrozenSet, Optional

from rules_engine.config import DEFAULT_SETTINGS, EngineSettings
from rules_engine.contracts import Condition, Operator, OptionType, Question

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = frozenset({Operator.IN, Operator.EQUAL})


def selected_values(parent: Question) -> FrozenSet[str]:
    """
    Current answer of a parent question as a set of option tokens.

    Args:
        parent: Parent question

    Returns:
        frozenset: Empty when nothing is selected/entered
    """
    if parent.data_type.is_multi_valued:
        return parent.selected_option_ids

    if parent.data_type.is_single_valued:
        value = parent.selected_option
    else:
        value = parent.answer_text

    if value is None or not value.strip():
        return frozenset()
    return frozenset({value.strip()})


def _compare(condition: Condition, parent: Question, selected: FrozenSet[str],
             settings: EngineSettings) -> bool:
    options = condition.parent_options

    if parent.data_type.is_multi_valued:
        if condition.option_type is OptionType.EXACT:
            return selected == options
        return bool(selected & options)

    # Single value: at most one token selected
    if condition.operator is Operator.EQUAL and not settings.in_equal_set_membership:
        return len(options) == 1 and selected == options
    return bool(selected & options)


def raw_result(condition: Condition, parent: Question,
               settings: EngineSettings = DEFAULT_SETTINGS) -> Optional[bool]:
    """
    Raw (pre-negate) result of a comparison condition.

    Args:
        condition: Condition to evaluate
        parent: Parent question providing the answer
        settings: Engine settings

    Returns:
        bool, or None when the operator is not a parent comparison
        (content operators and UNSUPPORTED)
    """
    if condition.operator is Operator.NONE:
        return True

    if condition.operator not in COMPARISON_OPERATORS:
        return None

    return _compare(condition, parent, selected_values(parent), settings)


def evaluate_condition(condition: Condition, parent: Question,
                       settings: EngineSettings = DEFAULT_SETTINGS) -> bool:
    """
    Evaluate one condition against its parent question.

    Args:
        condition: Condition to evaluate
        parent: Resolved parent question
        settings: Engine settings (policies)

    Returns:
        bool: Negate-adjusted result. UNSUPPORTED and content operators
        return False (they are not parent comparisons).
    """
    raw = raw_result(condition, parent, settings)

    if raw is None:
        if condition.operator is Operator.UNSUPPORTED:
            logger.warning(
                f"Unsupported operator in condition '{condition.description}' "
                f"against parent '{parent.question_id}', evaluating False"
            )
        return False

    if (
        condition.operator in COMPARISON_OPERATORS
        and not settings.negate_unanswered_parent
        and not selected_values(parent)
    ):
        # No selection never satisfies a comparison under this policy
        return False

    result = (not raw) if condition.negate else raw
    logger.debug(
        f"Condition {condition.operator.value} on parent '{parent.question_id}': "
        f"raw={raw}, negate={condition.negate}, result={result}"
    )
    return result
