"""
Semantic contracts for the questionnaire rules engine.

This module defines immutable data structures that serve as contracts
between the assembler, the evaluators and the callers. These are NOT
validators - they define shape and semantics without enforcing rules.

Design principles:
- Frozen dataclasses (immutable after creation)
- Rules stay plain data (no closures), so they round-trip from the
  authoring source and can be tested in isolation
- No dependencies on other engine modules
- Raw authoring spellings are normalised by the enum parse() helpers,
  never by callers

Contents:
- Mode, Operator, OptionType, DataType: tagged enums
- AnswerOption, Condition, Rule, Question: the rule graph nodes
- ConditionRef: identity of a condition inside a journey (trace key)
- QuestionGraph: ordered, id-indexed set of questions for one journey

Usage:
    from rules_engine.contracts import Question, Rule, Condition, Operator
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Combinator applied when a term is folded into the running result."""
    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Mode":
        if raw is None or not str(raw).strip():
            return cls.AND
        value = str(raw).strip().upper()
        if value in cls.__members__:
            return cls[value]
        logger.warning(f"Unknown mode '{raw}', defaulting to AND")
        return cls.AND


class Operator(str, Enum):
    """
    Condition operator.

    IN / EQUAL / NONE compare against a parent question's answer.
    LENGTH / REGEX / DATE constrain the question's own answer.
    UNSUPPORTED is the landing spot for spellings the engine does not know;
    it always evaluates False.
    """
    LENGTH = "LENGTH"
    REGEX = "REGEX"
    IN = "IN"
    EQUAL = "EQUAL"
    DATE = "DATE"
    NONE = "NONE"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Operator":
        if raw is None or not str(raw).strip():
            return cls.NONE
        value = str(raw).strip().upper()
        if value in ("EQUALS", "EQ"):
            return cls.EQUAL
        if value in cls.__members__:
            return cls[value]
        logger.warning(f"Unsupported condition operator '{raw}'")
        return cls.UNSUPPORTED

    @property
    def is_content_check(self) -> bool:
        return self in CONTENT_OPERATORS


CONTENT_OPERATORS = frozenset({Operator.LENGTH, Operator.REGEX, Operator.DATE})


class OptionType(str, Enum):
    """Cardinality semantics for multi-select parent comparisons."""
    SINGLE = "Single"
    EXACT = "Exact"
    NONE = "None"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "OptionType":
        if raw is None:
            return cls.NONE
        value = str(raw).strip().lower()
        for member in cls:
            if member.value.lower() == value:
                return member
        return cls.NONE


class DataType(str, Enum):
    """Answer data type of a question."""
    TEXT = "Text"
    EMAIL = "Email"
    DATE = "Date"
    RADIO = "Radio"
    BOOLEAN = "Boolean"
    DROPDOWN = "Dropdown"
    CHECKBOX = "Checkbox"
    OTHER = "Other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "DataType":
        if raw is None:
            return cls.OTHER
        value = str(raw).strip().lower().replace(" ", "")
        # Authoring tool spellings
        aliases = {
            "radiobutton": cls.RADIO,
            "radiobuttons": cls.RADIO,
            "checkboxes": cls.CHECKBOX,
            "look-updropdown": cls.DROPDOWN,
            "select": cls.DROPDOWN,
        }
        if value in aliases:
            return aliases[value]
        for member in cls:
            if member.value.lower() == value:
                return member
        return cls.OTHER

    @property
    def is_single_valued(self) -> bool:
        return self in SINGLE_VALUED_TYPES

    @property
    def is_multi_valued(self) -> bool:
        return self is DataType.CHECKBOX


SINGLE_VALUED_TYPES = frozenset({DataType.RADIO, DataType.BOOLEAN, DataType.DROPDOWN})


@dataclass(frozen=True)
class AnswerOption:
    """One selectable option of a Radio/Checkbox/Dropdown question."""
    option_id: str
    text: str = ""
    is_selected: bool = False


@dataclass(frozen=True)
class Condition:
    """
    Atomic test inside a Rule.

    Attributes:
        mode: Combinator used when folding this condition into its rule
        operator: What kind of test this is (see Operator)
        value: Operator payload, e.g. "5,10" for LENGTH, a pattern for
            REGEX, "FORMAT:yyyy-MM-dd,FUTUREDATE" for DATE
        negate: Inverts the raw result
        parent_options: Option tokens compared against the parent answer.
            Never None; frozenset so it stays hashable and order-free.
        option_type: Single / Exact / None cardinality for Checkbox parents
        description: Author text, doubles as the failure message

    Note:
        Whether a condition "fired" is NOT stored here. The evaluator
        records it in an ApplicabilityTrace keyed by ConditionRef.
    """
    operator: Operator = Operator.NONE
    mode: Mode = Mode.AND
    value: str = ""
    negate: bool = False
    parent_options: FrozenSet[str] = field(default_factory=frozenset)
    option_type: OptionType = OptionType.NONE
    description: str = ""


@dataclass(frozen=True)
class Rule:
    """
    One applicability clause tied to at most one other question.

    A rule without parent_question_id is purely content level: its
    conditions constrain the owning question's answer and it takes no
    part in the applicability fold.
    """
    sequence: int
    mode: Mode = Mode.AND
    parent_question_id: Optional[str] = None
    conditions: Tuple[Condition, ...] = ()
    description: str = ""

    @property
    def is_gating(self) -> bool:
        return self.parent_question_id is not None


@dataclass(frozen=True)
class Question:
    """
    One form field instance in a rendered journey, with its current answer.

    Attributes:
        question_id: Stable identifier, unique within the journey
        data_type: DataType of the answer
        is_mandatory: Author-configured mandatory flag
        answer_text: Free text answer (also the composed date for Date)
        selected_option: Single choice answer (option id)
        answer_options: Ordered options with selection state
        day, month, year: Raw date sub-fields for partial date capture
        rules: Rules ordered by sequence
        question_text / short_question_text: Labels, used in messages
        section_id / section / section_sequence / sequence / heading:
            Ordering and display metadata from the question source
    """
    question_id: str
    data_type: DataType = DataType.TEXT
    is_mandatory: bool = False
    answer_text: Optional[str] = None
    selected_option: Optional[str] = None
    answer_options: Tuple[AnswerOption, ...] = ()
    day: Optional[str] = None
    month: Optional[str] = None
    year: Optional[str] = None
    rules: Tuple[Rule, ...] = ()
    question_text: str = ""
    short_question_text: str = ""
    section_id: str = ""
    section: str = ""
    section_sequence: int = 0
    sequence: int = 0
    heading: str = ""

    @property
    def display_text(self) -> str:
        if self.short_question_text and self.short_question_text.strip():
            return self.short_question_text.strip()
        if self.question_text and self.question_text.strip():
            return self.question_text.strip()
        return self.question_id

    @property
    def selected_option_ids(self) -> FrozenSet[str]:
        return frozenset(o.option_id for o in self.answer_options if o.is_selected)

    @property
    def gating_rules(self) -> Tuple[Rule, ...]:
        return tuple(r for r in self.rules if r.is_gating)

    def has_answer(self) -> bool:
        """
        True when any of answer_text, selected_option or an option is set.

        A Date entered with all three parts filled is answered even when the
        parts do not form a date; the DATE check reports that instead.
        """
        if self.answer_text is not None and self.answer_text.strip():
            return True
        if self.data_type is DataType.DATE and all(
            p is not None and p.strip() for p in (self.day, self.month, self.year)
        ):
            return True
        if self.selected_option is not None and self.selected_option.strip():
            return True
        return any(o.is_selected for o in self.answer_options)

    def cleared(self) -> "Question":
        """Copy of this question with every answer field emptied."""
        return replace(
            self,
            answer_text=None,
            selected_option=None,
            answer_options=tuple(replace(o, is_selected=False) for o in self.answer_options),
            day=None,
            month=None,
            year=None,
        )


@dataclass(frozen=True)
class ConditionRef:
    """Position of a condition in a journey: question, rule sequence, index."""
    question_id: str
    rule_sequence: int
    condition_index: int


class QuestionGraph:
    """
    Ordered, id-indexed collection of the questions of one journey.

    Iteration yields questions in questionnaire order. Lookup is by exact
    question_id; a miss returns None, never raises.
    """

    def __init__(self, questions):
        self._questions: Tuple[Question, ...] = tuple(questions)
        self._index: Dict[str, Question] = {q.question_id: q for q in self._questions}

    def get(self, question_id: Optional[str]) -> Optional[Question]:
        if question_id is None:
            return None
        return self._index.get(question_id)

    def replace_question(self, question: Question) -> "QuestionGraph":
        """Return a new graph with the question of the same id swapped in."""
        return QuestionGraph(
            question if q.question_id == question.question_id else q
            for q in self._questions
        )

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._index

    def __repr__(self) -> str:
        return f"QuestionGraph({len(self._questions)} questions)"
