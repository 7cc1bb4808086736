"""
Error message formatting.

Only two messages are generated by the engine itself; every other failure
carries the author's condition description verbatim.
"""

from rules_engine.utils.date_formats import DATE_PARTS

MANDATORY_PREFIX = "Enter "
DATE_PART_PREFIX = "Date must include a "


def mandatory_message(display_text: str) -> str:
    """
    Message for a missing mandatory answer.

    Examples:
        >>> mandatory_message("Project Title")
        'Enter project title'
    """
    return f"{MANDATORY_PREFIX}{display_text.strip().lower()}"


def missing_date_part_message(part: str) -> str:
    """
    Message for one missing part of a partially entered date.

    A date missing several parts gets one message per part.

    Examples:
        >>> missing_date_part_message("year")
        'Date must include a year'
    """
    if part not in DATE_PARTS:
        raise ValueError(f"Unknown date part '{part}'")
    return f"{DATE_PART_PREFIX}{part}"
