"""
Test Suite for the Rule Graph Assembler

Run with: pytest tests/test_rule_graph_assembler.py -v
"""

import json
import unittest
from pathlib import Path

from rules_engine.contracts import DataType, Mode, Operator, OptionType
from rules_engine.core.rule_graph_assembler import RuleGraphAssembler, assemble

SAMPLES = Path(__file__).parent.parent / "data" / "samples"


def load_sample(name):
    with open(SAMPLES / name, 'r') as f:
        return json.load(f)


# =============================================================================
# CMS payload
# =============================================================================

class TestCmsPayload(unittest.TestCase):

    def setUp(self):
        self.question_set = load_sample("project_record_question_set.json")
        self.graph = RuleGraphAssembler().assemble(self.question_set)

    def test_all_questions_assembled_in_order(self):
        """Questions come out in questionnaire order."""
        ids = [q.question_id for q in self.graph]
        self.assertEqual(ids, ["IQA0002", "IQA0003", "IQA0004", "IQA0005", "IQA0006"])

    def test_conformance_sets_mandatory(self):
        """conformance 'Mandatory' sets is_mandatory."""
        self.assertTrue(self.graph.get("IQA0002").is_mandatory)
        self.assertFalse(self.graph.get("IQA0006").is_mandatory)

    def test_data_type_aliases(self):
        """'Radio button' normalises to Radio."""
        self.assertEqual(self.graph.get("IQA0004").data_type, DataType.RADIO)
        self.assertEqual(self.graph.get("IQA0005").data_type, DataType.CHECKBOX)

    def test_rule_linked_to_parent(self):
        """parentQuestion.id becomes parent_question_id and options become ids."""
        rule = self.graph.get("IQA0005").rules[0]
        condition = rule.conditions[0]

        self.assertEqual(rule.parent_question_id, "IQA0004")
        self.assertEqual(rule.sequence, 0)
        self.assertEqual(condition.operator, Operator.IN)
        self.assertEqual(condition.option_type, OptionType.SINGLE)
        self.assertEqual(condition.parent_options, frozenset({"OPT0004"}))

    def test_content_rule_has_no_parent(self):
        """Rules without parentQuestion are content rules."""
        rule = self.graph.get("IQA0002").rules[0]
        self.assertIsNone(rule.parent_question_id)
        self.assertEqual(rule.conditions[0].operator, Operator.LENGTH)

    def test_section_metadata(self):
        """Section id, name and heading are carried over."""
        question = self.graph.get("IQA0004")
        self.assertEqual(question.section_id, "IQA0001")
        self.assertEqual(question.section, "Project details")
        self.assertEqual(question.heading, "3")

    def test_sequence_defaults_to_position(self):
        """A zero or missing sequence becomes position + 1."""
        payload = {"sections": [{"id": "S1", "questions": [{"id": "A"}, {"id": "B", "sequence": 0}]}]}
        graph = assemble(payload)
        self.assertEqual([q.sequence for q in graph], [1, 2])

    def test_sections_ordered_by_id(self):
        """Questions are ordered by section id before sequence."""
        payload = {"sections": [
            {"id": "S2", "questions": [{"id": "B1", "sequence": 1}]},
            {"id": "S1", "questions": [{"id": "A1", "sequence": 2}]},
        ]}
        self.assertEqual([q.question_id for q in assemble(payload)], ["A1", "B1"])


# =============================================================================
# Answers
# =============================================================================

class TestAnswerSnapshot(unittest.TestCase):

    def setUp(self):
        self.question_set = load_sample("project_record_question_set.json")

    def test_text_and_single_choice_answers(self):
        """answer_text and selected_option are populated."""
        graph = assemble(self.question_set, {
            "IQA0002": {"answer_text": "A trial"},
            "IQA0004": {"selected_option": "OPT0004"},
        })
        self.assertEqual(graph.get("IQA0002").answer_text, "A trial")
        self.assertEqual(graph.get("IQA0004").selected_option, "OPT0004")

    def test_checkbox_selection(self):
        """selected_options marks options as selected."""
        graph = assemble(self.question_set, {"IQA0005": {"selected_options": ["OPT0010", "OPT0012"]}})
        self.assertEqual(graph.get("IQA0005").selected_option_ids, frozenset({"OPT0010", "OPT0012"}))

    def test_checkbox_selection_as_option_dicts(self):
        """answer_options entries with is_selected are accepted."""
        graph = assemble(self.question_set, {"IQA0005": {"answer_options": [
            {"option_id": "OPT0010", "is_selected": True},
            {"option_id": "OPT0011", "is_selected": False},
        ]}})
        self.assertEqual(graph.get("IQA0005").selected_option_ids, frozenset({"OPT0010"}))

    def test_date_parts_composed(self):
        """A full set of date parts composes answer_text."""
        graph = assemble(self.question_set, {"IQA0003": {"day": "5", "month": "3", "year": "2031"}})
        question = graph.get("IQA0003")
        self.assertEqual(question.answer_text, "2031-03-05")
        self.assertEqual(question.day, "5")

    def test_partial_date_parts_not_composed(self):
        """Partial date parts leave answer_text empty."""
        graph = assemble(self.question_set, {"IQA0003": {"day": "5", "month": "", "year": "2031"}})
        self.assertIsNone(graph.get("IQA0003").answer_text)

    def test_unknown_answer_ids_ignored(self):
        """Answers for questions not in the set are ignored."""
        graph = assemble(self.question_set, {"NOPE": {"answer_text": "x"}})
        self.assertEqual(len(graph), 5)


# =============================================================================
# Flat payload and validation
# =============================================================================

class TestFlatPayload(unittest.TestCase):

    def test_flat_questions(self):
        """Flat payloads use snake_case names."""
        graph = assemble({"questions": [
            {"question_id": "P", "data_type": "Boolean"},
            {
                "question_id": "C",
                "data_type": "Text",
                "is_mandatory": True,
                "rules": [
                    {"sequence": 2, "mode": "or", "parent_question_id": "P",
                     "conditions": [{"operator": "equal", "parent_options": ["true"], "negate": True}]},
                    {"sequence": 1, "conditions": [{"operator": "LENGTH", "value": "1,10"}]},
                ],
            },
        ]})
        child = graph.get("C")

        self.assertTrue(child.is_mandatory)
        self.assertEqual([r.sequence for r in child.rules], [1, 2])
        self.assertEqual(child.rules[1].mode, Mode.OR)
        self.assertEqual(child.rules[1].conditions[0].operator, Operator.EQUAL)
        self.assertTrue(child.rules[1].conditions[0].negate)

    def test_unresolved_parent_passed_through(self):
        """Parent references are not checked at assembly time."""
        graph = assemble({"questions": [
            {"question_id": "C", "rules": [{"parent_question_id": "GHOST", "conditions": []}]},
        ]})
        self.assertEqual(graph.get("C").rules[0].parent_question_id, "GHOST")
        self.assertIsNone(graph.get("GHOST"))

    def test_unknown_operator_does_not_raise(self):
        """Unknown operators are normalised, not rejected."""
        graph = assemble({"questions": [
            {"question_id": "C", "rules": [{"conditions": [{"operator": "BETWEEN"}]}]},
        ]})
        self.assertEqual(graph.get("C").rules[0].conditions[0].operator, Operator.UNSUPPORTED)

    def test_duplicate_ids_rejected(self):
        """Duplicate question ids raise ValueError."""
        with self.assertRaises(ValueError) as ctx:
            assemble({"questions": [{"question_id": "A"}, {"question_id": "A"}]})
        self.assertIn("Duplicate question id 'A'", str(ctx.exception))

    def test_missing_id_rejected(self):
        """Questions without an id raise ValueError."""
        with self.assertRaises(ValueError):
            assemble({"questions": [{"data_type": "Text"}]})

    def test_payload_without_questions_rejected(self):
        """A payload with neither sections nor questions raises."""
        with self.assertRaises(ValueError):
            assemble({"title": "nothing here"})

    def test_non_mapping_rejected(self):
        """Non-mapping payloads raise."""
        with self.assertRaises(ValueError):
            assemble(["not", "a", "mapping"])


if __name__ == '__main__':
    unittest.main()
