"""
Console Harness for the Questionnaire Rules Engine

Validates a question set against an answer snapshot read from disk and
prints applicability and failures.

Usage:
    python main.py data/samples/project_record_question_set.json data/samples/project_record_answers.json

Exit codes:
    0 - journey valid
    1 - journey has failures
    2 - input could not be read or assembled
"""

import json
import logging
import sys

from rules_engine.config import EngineSettings
from rules_engine.core.journey_validator import JourneyValidator
from rules_engine.core.rule_graph_assembler import RuleGraphAssembler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_separator(char="=", length=60):
    """Print a separator line"""
    print(char * length)


def load_json(path):
    """Load a JSON file"""
    with open(path, 'r') as f:
        return json.load(f)


def print_result(graph, result):
    """Print applicability and failures for every question"""
    print_separator()
    print("APPLICABILITY")
    print_separator()

    applicability = result.applicability
    for question in graph:
        state = "in play" if applicability.get(question.question_id) else "not applicable"
        print(f"  {question.question_id:<12} {state:<16} {question.display_text}")

    print_separator()
    print("FAILURES")
    print_separator()

    if not result.failures:
        print("  None")
    for failure in result.failures:
        print(f"  {failure.question_id}.{failure.field_name}: {failure.message}")

    if result.suppressed_failures:
        print(f"\n  ({len(result.suppressed_failures)} content failures suppressed)")

    if result.evaluation_errors:
        print(f"\nERROR: evaluation failed for {', '.join(result.evaluation_errors)}")


def main(argv=None):
    """Run the harness"""
    args = sys.argv[1:] if argv is None else argv

    if not args or len(args) > 2:
        print("Usage: python main.py <question_set.json> [answers.json]")
        return 2

    try:
        question_set = load_json(args[0])
        answers = load_json(args[1]) if len(args) > 1 else {}
        graph = RuleGraphAssembler().assemble(question_set, answers)
    except (OSError, ValueError) as e:
        print(f"\nFailed to load journey: {e}")
        return 2

    result = JourneyValidator(EngineSettings.from_env()).validate(graph)
    print_result(graph, result)

    print_separator()
    print("VALID" if result.is_valid else "INVALID")
    print_separator()
    return 0 if result.is_valid else 1


if __name__ == '__main__':
    sys.exit(main())
