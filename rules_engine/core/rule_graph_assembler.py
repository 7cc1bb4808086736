"""
Rule Graph Assembler - builds a QuestionGraph from raw definitions

Responsibilities:
- Transform raw question definitions (CMS question-set payload or flat
  question list) into frozen Question / Rule / Condition objects
- Populate current answers from the Answer Snapshot
- Order questions in questionnaire order

Design principles:
- Construction time only, not part of the evaluation path
- Deep copy of nothing: the raw payload is read, never mutated
- Fail fast on structure: missing or duplicate question ids raise
  ValueError with every problem listed
- Never fail on rule values: operator/value/mode spellings are
  normalised by the contract enums and judged at evaluation time
- Parent references are passed through unchanged, resolution is the
  evaluator's concern

Accepted payloads:
    CMS question set:
        {"sections": [{"id", "sectionName", "questions": [
            {"id", "name", "shortName", "conformance", "answerDataType",
             "sequence", "sectionSequence",
             "answers": [{"id", "optionName"}],
             "validationRules": [{"mode", "description",
                 "parentQuestion": {"id"},
                 "conditions": [{"operator", "mode", "negate",
                     "optionType", "value", "description",
                     "parentOptions": [{"id"}]}]}]}]}]}

    Flat list:
        {"questions": [{"question_id", "data_type", "is_mandatory",
            "question_text", "short_question_text", "section_id",
            "section", "section_sequence", "sequence",
            "answer_options": [{"option_id", "text"}],
            "rules": [{"sequence", "mode", "parent_question_id",
                "description", "conditions": [{"operator", "mode",
                "value", "negate", "parent_options", "option_type",
                "description"}]}]}]}

Answer snapshot:
    {question_id: {"answer_text", "selected_option",
                   "selected_options" | "answer_options", "day", "month",
                   "year"}}
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from rules_engine.contracts import (
    AnswerOption,
    Condition,
    DataType,
    Mode,
    Operator,
    OptionType,
    Question,
    QuestionGraph,
    Rule,
)
from rules_engine.utils.date_formats import compose_iso_date

logger = logging.getLogger(__name__)

MANDATORY_CONFORMANCE = "mandatory"


class RuleGraphAssembler:
    """
    Builds QuestionGraphs from raw question definitions.

    Stateless: one instance can assemble any number of journeys.
    """

    def assemble(self, definitions: Mapping[str, Any],
                 answers: Optional[Mapping[str, Any]] = None) -> QuestionGraph:
        """
        Assemble a linked question graph with current answers.

        Args:
            definitions: CMS question set ({"sections": [...]}) or flat
                list ({"questions": [...]})
            answers: Answer snapshot keyed by question_id

        Returns:
            QuestionGraph: Questions in questionnaire order

        Raises:
            ValueError: If the payload is not a mapping, has neither
                sections nor questions, or has missing/duplicate ids
        """
        if not isinstance(definitions, Mapping):
            raise ValueError(
                f"Question definitions must be a mapping, got {type(definitions).__name__}"
            )
        if answers is not None and not isinstance(answers, Mapping):
            raise ValueError(f"Answers must be a mapping, got {type(answers).__name__}")

        if "sections" in definitions:
            raw_questions = list(self._flatten_sections(definitions.get("sections") or []))
        elif "questions" in definitions:
            raw_questions = [(q, None) for q in definitions.get("questions") or []]
        else:
            raise ValueError("Question definitions need a 'sections' or 'questions' key")

        self._validate(raw_questions)

        answers = answers or {}
        questions = []
        for raw, section in raw_questions:
            if section is None:
                question = self._build_flat_question(raw)
            else:
                question = self._build_cms_question(raw, section)
            questions.append(self._apply_answer(question, answers.get(question.question_id)))

        ordered = _order(questions)
        logger.info(f"Assembled journey graph with {len(ordered)} questions")
        return QuestionGraph(ordered)

    # =========================================================================
    # CMS payload
    # =========================================================================

    def _flatten_sections(self, sections: Iterable[Mapping[str, Any]]):
        for section in sections:
            for index, raw in enumerate(section.get("questions") or []):
                yield raw, {
                    "id": str(section.get("id") or ""),
                    "name": section.get("sectionName") or "",
                    "index": index,
                }

    def _build_cms_question(self, raw: Mapping[str, Any], section: Dict[str, Any]) -> Question:
        index = section["index"]
        sequence = _as_int(raw.get("sequence"))

        rules = []
        for rule_index, raw_rule in enumerate(raw.get("validationRules") or []):
            parent = raw_rule.get("parentQuestion") or {}
            parent_id = parent.get("id") if isinstance(parent, Mapping) else None
            rules.append(Rule(
                sequence=rule_index,
                mode=Mode.parse(raw_rule.get("mode")),
                parent_question_id=str(parent_id) if parent_id is not None else None,
                description=raw_rule.get("description") or "",
                conditions=tuple(self._build_cms_condition(c) for c in raw_rule.get("conditions") or []),
            ))

        return Question(
            question_id=str(raw["id"]),
            data_type=DataType.parse(raw.get("answerDataType")),
            is_mandatory=str(raw.get("conformance") or "").strip().lower() == MANDATORY_CONFORMANCE,
            question_text=raw.get("name") or "",
            short_question_text=raw.get("shortName") or "",
            section_id=section["id"],
            section=section["name"],
            section_sequence=_as_int(raw.get("sectionSequence")),
            sequence=sequence if sequence else index + 1,
            heading=str(index + 1),
            answer_options=tuple(
                AnswerOption(option_id=str(a.get("id") or ""), text=a.get("optionName") or "")
                for a in raw.get("answers") or []
            ),
            rules=tuple(rules),
        )

    def _build_cms_condition(self, raw: Mapping[str, Any]) -> Condition:
        parent_options = frozenset(
            str(o.get("id")) if isinstance(o, Mapping) else str(o)
            for o in raw.get("parentOptions") or []
        )
        return Condition(
            operator=Operator.parse(raw.get("operator")),
            mode=Mode.parse(raw.get("mode")),
            value=raw.get("value") or "",
            negate=bool(raw.get("negate")),
            parent_options=parent_options,
            option_type=OptionType.parse(raw.get("optionType")),
            description=raw.get("description") or "",
        )

    # =========================================================================
    # Flat payload
    # =========================================================================

    def _build_flat_question(self, raw: Mapping[str, Any]) -> Question:
        rules = tuple(sorted(
            (self._build_flat_rule(r, i) for i, r in enumerate(raw.get("rules") or [])),
            key=lambda r: r.sequence,
        ))
        return Question(
            question_id=str(raw["question_id"]),
            data_type=DataType.parse(raw.get("data_type")),
            is_mandatory=bool(raw.get("is_mandatory")),
            question_text=raw.get("question_text") or "",
            short_question_text=raw.get("short_question_text") or "",
            section_id=str(raw.get("section_id") or ""),
            section=raw.get("section") or "",
            section_sequence=_as_int(raw.get("section_sequence")),
            sequence=_as_int(raw.get("sequence")),
            heading=str(raw.get("heading") or ""),
            answer_options=tuple(
                AnswerOption(option_id=str(o.get("option_id") or ""), text=o.get("text") or "")
                for o in raw.get("answer_options") or []
            ),
            rules=rules,
        )

    def _build_flat_rule(self, raw: Mapping[str, Any], position: int) -> Rule:
        parent_id = raw.get("parent_question_id")
        sequence = raw.get("sequence")
        return Rule(
            sequence=_as_int(sequence) if sequence is not None else position,
            mode=Mode.parse(raw.get("mode")),
            parent_question_id=str(parent_id) if parent_id is not None else None,
            description=raw.get("description") or "",
            conditions=tuple(
                Condition(
                    operator=Operator.parse(c.get("operator")),
                    mode=Mode.parse(c.get("mode")),
                    value=c.get("value") or "",
                    negate=bool(c.get("negate")),
                    parent_options=frozenset(str(o) for o in c.get("parent_options") or []),
                    option_type=OptionType.parse(c.get("option_type")),
                    description=c.get("description") or "",
                )
                for c in raw.get("conditions") or []
            ),
        )

    # =========================================================================
    # Answers
    # =========================================================================

    def _apply_answer(self, question: Question, answer: Optional[Mapping[str, Any]]) -> Question:
        """Return a copy of the question carrying its snapshot answer."""
        if not answer:
            return question
        if not isinstance(answer, Mapping):
            logger.warning(f"Ignoring non-mapping answer for '{question.question_id}'")
            return question

        selected = _selected_ids(answer)
        known_ids = {o.option_id for o in question.answer_options}
        options = tuple(
            AnswerOption(o.option_id, o.text, o.option_id in selected)
            for o in question.answer_options
        )
        # Selections for options the definition does not list are kept
        options += tuple(AnswerOption(option_id) for option_id in sorted(selected - known_ids)
                         if question.data_type.is_multi_valued)

        day, month, year = (_as_text(answer.get(k)) for k in ("day", "month", "year"))
        answer_text = _as_text(answer.get("answer_text"))
        if question.data_type is DataType.DATE and not answer_text:
            answer_text = compose_iso_date(day, month, year)

        return replace(
            question,
            answer_text=answer_text,
            selected_option=_as_text(answer.get("selected_option")),
            answer_options=options,
            day=day,
            month=month,
            year=year,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate(self, raw_questions: List[Tuple[Mapping[str, Any], Optional[dict]]]) -> None:
        """
        Validate structure before building.

        Checks:
        - Every question is a mapping with an id
        - No duplicate question ids

        Raises:
            ValueError: If validation fails
        """
        errors = []
        seen = set()

        for i, (raw, section) in enumerate(raw_questions):
            id_key = "question_id" if section is None else "id"
            if not isinstance(raw, Mapping):
                errors.append(f"Question at index {i} is not a mapping")
                continue
            q_id = raw.get(id_key)
            if q_id is None or not str(q_id).strip():
                errors.append(f"Question at index {i} missing '{id_key}'")
                continue
            if str(q_id) in seen:
                errors.append(f"Duplicate question id '{q_id}'")
            seen.add(str(q_id))

        if errors:
            error_msg = "Question definitions invalid:\n  - " + "\n  - ".join(errors)
            raise ValueError(error_msg)


def _order(questions: List[Question]) -> List[Question]:
    # sorted() is stable, so equal keys keep payload order
    return sorted(questions, key=lambda q: (q.section_id, q.section_sequence, q.sequence))


def _selected_ids(answer: Mapping[str, Any]) -> set:
    raw = answer.get("selected_options")
    if raw is None:
        raw = answer.get("answer_options")
    if raw is None:
        return set()
    if isinstance(raw, str):
        raw = [raw]
    selected = set()
    for item in raw:
        if isinstance(item, Mapping):
            if item.get("is_selected", True):
                selected.add(str(item.get("option_id")))
        else:
            selected.add(str(item))
    return selected


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def assemble(definitions: Mapping[str, Any],
             answers: Optional[Mapping[str, Any]] = None) -> QuestionGraph:
    """Module-level shortcut for RuleGraphAssembler().assemble()."""
    return RuleGraphAssembler().assemble(definitions, answers)
