"""
Model-state export helpers.

Pure functions that reshape failures for form-error consumers.

Contents:
- failures_to_model_state(): "<question_id>.<field>" -> [messages]
- first_error_per_field(): "<question_id>.<field>" -> first message
"""

from typing import Dict, Iterable, List


def failures_to_model_state(failures: Iterable) -> Dict[str, List[str]]:
    """
    Group failures by field key, preserving first-seen order.

    Duplicate messages for the same field are collapsed, so a question
    whose two conditions share a description only shows it once.

    Args:
        failures: Iterable of ValidationFailure

    Returns:
        dict: field key -> ordered list of distinct messages

    Examples:
        >>> failures_to_model_state([ValidationFailure('Q1', 'answer_text', 'Too long')])
        {'Q1.answer_text': ['Too long']}
    """
    model_state: Dict[str, List[str]] = {}
    for failure in failures:
        messages = model_state.setdefault(failure.key, [])
        if failure.message not in messages:
            messages.append(failure.message)
    return model_state


def first_error_per_field(failures: Iterable) -> Dict[str, str]:
    """Only the first message of every field, for single-message summaries."""
    return {key: messages[0] for key, messages in failures_to_model_state(failures).items()}
