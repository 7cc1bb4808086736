"""
Left-to-right boolean fold over (mode, value) terms.

Semantics:
- Strict left-to-right, no operator precedence
- The first term's mode is ignored; it seeds the running result
- Every later term combines with its OWN mode:
      AND -> result and value
      OR  -> result or value
- Empty input folds to the supplied default (True unless stated)

Example:
    [(OR, True), (AND, False)]  ->  (True) AND False  ->  False
"""

from typing import Iterable, Tuple

from rules_engine.contracts import Mode


def fold_terms(terms: Iterable[Tuple[Mode, bool]], empty: bool = True) -> bool:
    """
    Fold ordered (mode, value) terms into one boolean.

    Values must already be evaluated; this reducer never short-circuits
    evaluation because callers need every term's side record.

    Args:
        terms: Ordered (mode, value) pairs
        empty: Result for an empty sequence

    Returns:
        bool: Folded result
    """
    result = None
    for mode, value in terms:
        if result is None:
            result = bool(value)
        elif mode is Mode.OR:
            result = result or bool(value)
        else:
            result = result and bool(value)
    return empty if result is None else result
