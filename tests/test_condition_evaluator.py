"""
Test Suite for the Condition Evaluator

Run with: pytest tests/test_condition_evaluator.py -v
"""

import unittest

from rules_engine.config import EngineSettings
from rules_engine.contracts import (
    AnswerOption,
    Condition,
    DataType,
    Operator,
    OptionType,
    Question,
)
from rules_engine.core.condition_evaluator import evaluate_condition, raw_result, selected_values


def radio_parent(selected=None):
    return Question(
        question_id="P1",
        data_type=DataType.RADIO,
        selected_option=selected,
        answer_options=(AnswerOption("Yes"), AnswerOption("No")),
    )


def checkbox_parent(*selected):
    return Question(
        question_id="P2",
        data_type=DataType.CHECKBOX,
        answer_options=tuple(
            AnswerOption(option_id, is_selected=option_id in selected)
            for option_id in ("A1", "A2", "A3")
        ),
    )


def condition(operator=Operator.IN, options=(), option_type=OptionType.NONE, negate=False):
    return Condition(
        operator=operator,
        parent_options=frozenset(options),
        option_type=option_type,
        negate=negate,
    )


# =============================================================================
# Single-valued parents
# =============================================================================

class TestSingleValuedParent(unittest.TestCase):
    """IN / EQUAL against Radio, Boolean and Dropdown parents."""

    def test_in_selected_option_member(self):
        """IN is True when the selected option is in parent_options."""
        self.assertTrue(evaluate_condition(condition(options=["Yes"]), radio_parent("Yes")))

    def test_in_selected_option_not_member(self):
        """IN is False when the selected option is not in parent_options."""
        self.assertFalse(evaluate_condition(condition(options=["Yes"]), radio_parent("No")))

    def test_in_no_selection(self):
        """IN is False when the parent has no selection."""
        self.assertFalse(evaluate_condition(condition(options=["Yes"]), radio_parent(None)))

    def test_in_multiple_parent_options(self):
        """IN accepts any of several parent options."""
        self.assertTrue(evaluate_condition(condition(options=["Yes", "No"]), radio_parent("No")))

    def test_equal_matches_in_for_single_valued_parent(self):
        """EQUAL and IN agree for single-valued parents (set membership)."""
        for options in (["Yes"], ["No"], ["Yes", "No"], []):
            for selected in ("Yes", "No", None):
                with self.subTest(options=options, selected=selected):
                    parent = radio_parent(selected)
                    self.assertEqual(
                        evaluate_condition(condition(Operator.IN, options), parent),
                        evaluate_condition(condition(Operator.EQUAL, options), parent),
                    )

    def test_equal_strict_when_set_membership_disabled(self):
        """Without set membership EQUAL needs exactly one matching option."""
        settings = EngineSettings(in_equal_set_membership=False)
        parent = radio_parent("Yes")

        self.assertTrue(evaluate_condition(condition(Operator.EQUAL, ["Yes"]), parent, settings))
        self.assertFalse(evaluate_condition(condition(Operator.EQUAL, ["Yes", "No"]), parent, settings))

    def test_boolean_and_dropdown_are_single_valued(self):
        """Boolean and Dropdown parents compare selected_option."""
        for data_type in (DataType.BOOLEAN, DataType.DROPDOWN):
            parent = Question(question_id="P", data_type=data_type, selected_option="true")
            with self.subTest(data_type=data_type):
                self.assertTrue(evaluate_condition(condition(options=["true"]), parent))

    def test_text_parent_compares_answer_text(self):
        """Free-text parents compare their trimmed answer text."""
        parent = Question(question_id="P", data_type=DataType.TEXT, answer_text=" GB ")
        self.assertTrue(evaluate_condition(condition(options=["GB"]), parent))


# =============================================================================
# Multi-valued parents
# =============================================================================

class TestCheckboxParent(unittest.TestCase):
    """Single / Exact cardinality against Checkbox parents."""

    def test_exact_same_set(self):
        """Exact is True when the selection equals parent_options."""
        c = condition(options=["A1", "A3"], option_type=OptionType.EXACT)
        self.assertTrue(raw_result(c, checkbox_parent("A1", "A3")))

    def test_exact_is_order_independent(self):
        """Exact ignores the order of parent_options."""
        c = condition(options=["A3", "A1"], option_type=OptionType.EXACT)
        self.assertTrue(raw_result(c, checkbox_parent("A1", "A3")))

    def test_exact_subset_fails(self):
        """Exact is False when only part of parent_options is selected."""
        c = condition(options=["A1", "A3"], option_type=OptionType.EXACT)
        self.assertFalse(raw_result(c, checkbox_parent("A1")))

    def test_exact_superset_fails(self):
        """Exact is False when more than parent_options is selected."""
        c = condition(options=["A1"], option_type=OptionType.EXACT)
        self.assertFalse(raw_result(c, checkbox_parent("A1", "A3")))

    def test_single_intersection(self):
        """Single is True when any selected option is in parent_options."""
        c = condition(options=["A1"], option_type=OptionType.SINGLE)
        self.assertTrue(raw_result(c, checkbox_parent("A1", "A3")))

    def test_single_no_intersection(self):
        """Single is False when no selected option is in parent_options."""
        c = condition(options=["A2"], option_type=OptionType.SINGLE)
        self.assertFalse(raw_result(c, checkbox_parent("A1", "A3")))

    def test_unset_option_type_defaults_to_single(self):
        """No option type behaves like Single."""
        c = condition(options=["A3"])
        self.assertTrue(raw_result(c, checkbox_parent("A1", "A3")))

    def test_nothing_selected(self):
        """No selection never intersects."""
        c = condition(options=["A1"], option_type=OptionType.SINGLE)
        self.assertFalse(raw_result(c, checkbox_parent()))

    def test_selected_values(self):
        """selected_values returns selected option ids."""
        self.assertEqual(selected_values(checkbox_parent("A2")), frozenset({"A2"}))


# =============================================================================
# Negate and operator handling
# =============================================================================

class TestNegateAndOperators(unittest.TestCase):

    def test_negate_inverts(self):
        """negate flips a True comparison to False."""
        c = condition(options=["Yes"], negate=True)
        self.assertFalse(evaluate_condition(c, radio_parent("Yes")))
        self.assertTrue(evaluate_condition(c, radio_parent("No")))

    def test_negate_with_unanswered_parent(self):
        """By default negate also applies when the parent is unanswered."""
        c = condition(options=["Yes"], negate=True)
        self.assertTrue(evaluate_condition(c, radio_parent(None)))

    def test_negate_unanswered_parent_policy_off(self):
        """With the policy off an unanswered parent never satisfies."""
        settings = EngineSettings(negate_unanswered_parent=False)
        c = condition(options=["Yes"], negate=True)
        self.assertFalse(evaluate_condition(c, radio_parent(None), settings))
        self.assertTrue(evaluate_condition(c, radio_parent("No"), settings))

    def test_operator_none_is_pass_through(self):
        """Operator NONE evaluates True without a comparison."""
        self.assertTrue(evaluate_condition(condition(Operator.NONE), radio_parent(None)))

    def test_operator_none_negated(self):
        """Operator NONE still honours negate."""
        self.assertFalse(evaluate_condition(condition(Operator.NONE, negate=True), radio_parent(None)))

    def test_unsupported_operator_fails_closed(self):
        """Unsupported operators evaluate False, even when negated."""
        c = condition(Operator.UNSUPPORTED, ["Yes"], negate=True)
        self.assertFalse(evaluate_condition(c, radio_parent("Yes")))

    def test_content_operator_is_not_a_comparison(self):
        """Content operators have no raw comparison result."""
        self.assertIsNone(raw_result(condition(Operator.LENGTH), radio_parent("Yes")))


if __name__ == '__main__':
    unittest.main()
