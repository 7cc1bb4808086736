"""
Content Validator - format and content constraints on a supplied answer

Responsibilities:
- LENGTH: answer length within inclusive "<min>,<max>" bounds
- REGEX: answer matches a pattern, with a bounded match time
- DATE: parse with an authoring format, then PASTDATE / FUTUREDATE.
  A date entered as day / month / year parts is built from the parts;
  FORMAT then only applies to text entry
- DATE MISSINGDATEPART: day / month / year sub-fields all present, one
  failure per missing part

Design principles:
- Runs regardless of mandatory gating
- Every content condition is checked; visibility of a failure is taken
  from the applicability trace (conditions that did not fire are
  suppressed, not skipped)
- Fail closed: malformed authoring data (bad bounds, bad pattern, regex
  timeout, unparsable date) is a failure with a logged warning, never an
  exception
- Nothing is checked for an answer that was not supplied; missing answers
  are the Mandatory Validator's concern

Value formats:
    LENGTH  "5,10"
    REGEX   "^[^@\\s]+@[^@\\s]+\\.[^@\\s]+$"
    DATE    "FORMAT:yyyy-MM-dd,PASTDATE" | "FORMAT:yyyy-MM-dd,FUTUREDATE"
            | "FORMAT:yyyy-MM-dd,MISSINGDATEPART" | "MISSINGDATEPART"
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Tuple

import regex

from rules_engine.config import DEFAULT_DATE_FORMAT, DEFAULT_SETTINGS, EngineSettings
from rules_engine.contracts import Condition, ConditionRef, Operator, Question
from rules_engine.results import FIELD_ANSWER_TEXT, ContentCheckOutcome, ValidationFailure
from rules_engine.utils.date_formats import (
    DATE_PARTS,
    date_from_parts,
    missing_date_parts,
    parse_date,
)
from rules_engine.utils.messages import missing_date_part_message

logger = logging.getLogger(__name__)

FORMAT_KEY = "FORMAT"
PAST_DATE = "PASTDATE"
FUTURE_DATE = "FUTUREDATE"
MISSING_DATE_PART = "MISSINGDATEPART"


@dataclass(frozen=True)
class DateRule:
    """Parsed DATE condition value."""
    date_format: str = DEFAULT_DATE_FORMAT
    past: bool = False
    future: bool = False
    missing_part: bool = False


def parse_length_bounds(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Parse "<min>,<max>" LENGTH bounds.

    Returns:
        (min, max), or None when the value is malformed: not two integers,
        negative min, or max below min
    """
    if not value:
        return None
    parts = [p.strip() for p in value.split(",") if p.strip()]
    if len(parts) != 2:
        return None
    try:
        low, high = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if low < 0 or high < low:
        return None
    return low, high


def parse_date_rule(value: Optional[str]) -> DateRule:
    """
    Parse a DATE condition value.

    Unknown tokens are ignored with a warning; a missing FORMAT falls back
    to yyyy-MM-dd.
    """
    date_format = DEFAULT_DATE_FORMAT
    past = future = missing_part = False

    for token in (value or "").split(","):
        token = token.strip()
        if not token:
            continue
        if token.upper().startswith(FORMAT_KEY):
            _, _, fmt = token.partition(":")
            if fmt.strip():
                date_format = fmt.strip()
        elif token.upper() == PAST_DATE:
            past = True
        elif token.upper() == FUTURE_DATE:
            future = True
        elif token.upper() == MISSING_DATE_PART:
            missing_part = True
        else:
            logger.warning(f"Ignoring unknown DATE token '{token}'")

    return DateRule(date_format=date_format, past=past, future=future, missing_part=missing_part)


class ContentValidator:
    """
    Checks content conditions of a question's own answer.

    Usage:
        validator = ContentValidator(settings)
        outcomes = validator.check_content(question, trace)
    """

    def __init__(self, settings: EngineSettings = DEFAULT_SETTINGS,
                 today: Optional[Callable[[], date]] = None):
        """
        Args:
            settings: Engine settings (regex timeout, suppression policy)
            today: Clock for PASTDATE/FUTUREDATE (defaults to date.today)
        """
        self.settings = settings
        self._today = today or date.today

    # =========================================================================
    # Public API
    # =========================================================================

    def check_content(self, question: Question, trace=None) -> List[ContentCheckOutcome]:
        """
        Check every content condition of a question.

        Args:
            question: Question with its current answer
            trace: ApplicabilityTrace from the applicability pass, or None
                to treat every condition as fired

        Returns:
            list[ContentCheckOutcome]: One per failure message, in rule
            then condition order
        """
        outcomes = []

        for rule in sorted(question.rules, key=lambda r: r.sequence):
            for index, condition in enumerate(rule.conditions):
                if not condition.operator.is_content_check:
                    continue

                messages = self.check_condition(condition, question)
                if not messages:
                    continue

                ref = ConditionRef(question.question_id, rule.sequence, index)
                fired = trace.fired(ref) if trace is not None else True
                visible = fired or not self.settings.suppress_unfired_content_failures

                for message in messages:
                    if not visible:
                        logger.debug(f"Suppressed content failure on '{question.question_id}': {message}")

                    outcomes.append(ContentCheckOutcome(
                        failure=ValidationFailure(question.question_id, FIELD_ANSWER_TEXT, message),
                        visible=visible,
                    ))

        return outcomes

    def check_condition(self, condition: Condition, question: Question) -> List[str]:
        """
        Check one content condition.

        Returns:
            list[str]: Failure messages, empty when the answer passes or
            there is nothing to check. Only MISSINGDATEPART can produce
            more than one (one per missing part).
        """
        if condition.operator is Operator.LENGTH:
            message = self._check_length(condition, question)
        elif condition.operator is Operator.REGEX:
            message = self._check_regex(condition, question)
        elif condition.operator is Operator.DATE:
            rule = parse_date_rule(condition.value)
            if rule.missing_part:
                return self._check_missing_part(question)
            message = self._check_date(condition, rule, question)
        else:
            message = None
        return [] if message is None else [message]

    # =========================================================================
    # Operators
    # =========================================================================

    def _check_length(self, condition: Condition, question: Question) -> Optional[str]:
        answer = question.answer_text
        if not _supplied(answer):
            return None

        bounds = parse_length_bounds(condition.value)
        if bounds is None:
            logger.warning(
                f"Malformed LENGTH bounds {condition.value!r} on '{question.question_id}', failing closed"
            )
            return condition.description

        low, high = bounds
        passed = low <= len(answer) <= high
        return _outcome(passed, condition)

    def _check_regex(self, condition: Condition, question: Question) -> Optional[str]:
        answer = question.answer_text
        if not _supplied(answer):
            return None

        try:
            matched = regex.search(
                condition.value or "",
                answer,
                timeout=self.settings.regex_timeout_seconds,
            ) is not None
        except TimeoutError:
            logger.warning(
                f"REGEX on '{question.question_id}' exceeded {self.settings.regex_timeout_ms} ms, failing closed"
            )
            return condition.description
        except regex.error as e:
            logger.warning(f"Invalid REGEX {condition.value!r} on '{question.question_id}': {e}")
            return condition.description

        return _outcome(matched, condition)

    def _check_date(self, condition: Condition, rule: DateRule, question: Question) -> Optional[str]:
        parts = (question.day, question.month, question.year)

        if all(_supplied(p) for p in parts):
            # Entered as parts: FORMAT describes text entry, not the parts
            parsed = date_from_parts(*parts)
            if parsed is None:
                logger.debug(f"'{question.question_id}' date parts {parts!r} are not a calendar date")
                return condition.description
        else:
            answer = question.answer_text
            if not _supplied(answer):
                return None

            parsed = parse_date(answer, rule.date_format)
            if parsed is None:
                logger.debug(f"'{question.question_id}' answer {answer!r} does not match {rule.date_format}")
                return condition.description

        if not (rule.past or rule.future):
            return None

        today = self._today()
        if rule.past:
            passed = parsed < today
        else:
            passed = parsed > today
        return _outcome(passed, condition)

    def _check_missing_part(self, question: Question) -> List[str]:
        missing = missing_date_parts(question.day, question.month, question.year)

        # All parts blank is "no answer", which is the mandatory check's job
        if len(missing) == len(DATE_PARTS):
            return []
        return [missing_date_part_message(part) for part in missing]


def _supplied(answer: Optional[str]) -> bool:
    return answer is not None and bool(answer.strip())


def _outcome(passed: bool, condition: Condition) -> Optional[str]:
    if condition.negate:
        passed = not passed
    return None if passed else condition.description
