"""
Engine settings and named evaluation policies.

The policies below pin behaviour that the question authoring source does
not define. Each one is a named constant so tests can assert current
behaviour without mistaking it for confirmed product intent.

Policies:
- IN_EQUAL_SET_MEMBERSHIP: EQUAL compares single-valued parents by set
  membership, exactly like IN
- UNRESOLVED_PARENT_SATISFIED: a rule whose parent question cannot be
  found (or that has none) is vacuously satisfied
- SUPPRESS_UNFIRED_CONTENT_FAILURES: content failures of conditions that
  did not fire are computed but not shown
- NEGATE_UNANSWERED_PARENT: negate also applies when the parent has no
  selection (False reproduces the browser-side rules, where an
  unanswered parent never satisfies a condition)

Environment overrides (read by EngineSettings.from_env):
    RULES_ENGINE_REGEX_TIMEOUT_MS
    RULES_ENGINE_IN_EQUAL_SET_MEMBERSHIP
    RULES_ENGINE_UNRESOLVED_PARENT_SATISFIED
    RULES_ENGINE_SUPPRESS_UNFIRED_CONTENT_FAILURES
    RULES_ENGINE_NEGATE_UNANSWERED_PARENT
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

IN_EQUAL_SET_MEMBERSHIP = True
UNRESOLVED_PARENT_SATISFIED = True
SUPPRESS_UNFIRED_CONTENT_FAILURES = True
NEGATE_UNANSWERED_PARENT = True

DEFAULT_REGEX_TIMEOUT_MS = 200
DEFAULT_DATE_FORMAT = "yyyy-MM-dd"

ENV_PREFIX = "RULES_ENGINE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EngineSettings:
    """
    Immutable configuration for one engine instance.

    Attributes:
        regex_timeout_ms: Upper bound for a single REGEX match
        in_equal_set_membership: See IN_EQUAL_SET_MEMBERSHIP
        unresolved_parent_satisfied: See UNRESOLVED_PARENT_SATISFIED
        suppress_unfired_content_failures: See SUPPRESS_UNFIRED_CONTENT_FAILURES
        negate_unanswered_parent: See NEGATE_UNANSWERED_PARENT
    """
    regex_timeout_ms: int = DEFAULT_REGEX_TIMEOUT_MS
    in_equal_set_membership: bool = IN_EQUAL_SET_MEMBERSHIP
    unresolved_parent_satisfied: bool = UNRESOLVED_PARENT_SATISFIED
    suppress_unfired_content_failures: bool = SUPPRESS_UNFIRED_CONTENT_FAILURES
    negate_unanswered_parent: bool = NEGATE_UNANSWERED_PARENT

    @property
    def regex_timeout_seconds(self) -> float:
        return self.regex_timeout_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """
        Build settings from environment variables.

        Missing variables keep their defaults. Unparsable values are logged
        and ignored rather than raised, so a bad deployment variable cannot
        take the forms down.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EngineSettings
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        timeout = defaults.regex_timeout_ms
        raw_timeout = env.get(f"{ENV_PREFIX}REGEX_TIMEOUT_MS")
        if raw_timeout is not None:
            try:
                timeout = int(raw_timeout)
                if timeout <= 0:
                    raise ValueError("must be positive")
            except ValueError as e:
                logger.warning(f"Ignoring {ENV_PREFIX}REGEX_TIMEOUT_MS={raw_timeout!r}: {e}")
                timeout = defaults.regex_timeout_ms

        return cls(
            regex_timeout_ms=timeout,
            in_equal_set_membership=_env_flag(
                env, "IN_EQUAL_SET_MEMBERSHIP", defaults.in_equal_set_membership
            ),
            unresolved_parent_satisfied=_env_flag(
                env, "UNRESOLVED_PARENT_SATISFIED", defaults.unresolved_parent_satisfied
            ),
            suppress_unfired_content_failures=_env_flag(
                env, "SUPPRESS_UNFIRED_CONTENT_FAILURES", defaults.suppress_unfired_content_failures
            ),
            negate_unanswered_parent=_env_flag(
                env, "NEGATE_UNANSWERED_PARENT", defaults.negate_unanswered_parent
            ),
        )


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring {ENV_PREFIX}{name}={raw!r}: expected a boolean")
    return default


DEFAULT_SETTINGS = EngineSettings()
