"""
Shared validation rules for the validation gate.

A gate is an ordered list of rules. Each rule returns None when it passes
or a human-readable reason when it fails; evaluation stops at the first
failure.
"""

import logging
from collections.abc import Callable, Collection, Iterable, Iterator
from dataclasses import dataclass

import regex

from schoolhub.core.config import settings
from schoolhub.core.errors import ValidationFailedError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = regex.compile(r"^([\w\.\-]+)@([\w\-]+)((\.(\w){2,3})+)$")
PHONE_PATTERN = regex.compile(r"^([0-9]{10})$")

Rule = Callable[[], str | None]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation gate: validity plus the first failing reason."""

    is_valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True, None)

    @classmethod
    def fail(cls, reason: str) -> "ValidationResult":
        return cls(False, reason)

    def __iter__(self) -> Iterator[bool | str | None]:
        yield self.is_valid
        yield self.reason

    def raise_for_failure(self) -> None:
        """Raise ValidationFailedError carrying the reason when invalid."""
        if not self.is_valid:
            raise ValidationFailedError(self.reason or "Invalid input")


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def matches_pattern(
    pattern: regex.Pattern, value: str, timeout: float | None = None
) -> bool:
    """
    Full-match value against pattern within a time bound.

    The regex engine aborts the match once the bound is exceeded; a match
    that does not finish in time counts as a mismatch.

    Args:
        pattern: Pattern compiled with the ``regex`` module
        value: Candidate string
        timeout: Seconds allowed (defaults to VALIDATION_PATTERN_TIMEOUT_SECONDS)

    Returns:
        True only if the match completed in time and succeeded
    """
    limit = timeout if timeout is not None else settings.validation_pattern_timeout_seconds
    try:
        return pattern.fullmatch(value, timeout=limit) is not None
    except TimeoutError:
        logger.warning(
            f"Pattern match timed out after {limit}s",
            extra={"pattern": pattern.pattern, "length": len(value)},
        )
        return False


def required(value: str | None, label: str) -> Rule:
    """Rule: textual field must be non-empty after trimming."""
    return lambda: f"{label} is required" if is_blank(value) else None


def matches(value: str | None, pattern: regex.Pattern, label: str) -> Rule:
    """Rule: field must fully match pattern. Blank values are left to `required`."""

    def rule() -> str | None:
        if is_blank(value):
            return None
        return None if matches_pattern(pattern, value.strip()) else f"{label} is invalid"

    return rule


def references(
    value: str | None, existing_ids: Callable[[], Collection[str]], label: str
) -> Rule:
    """
    Rule: an optional foreign id, when present, must exist.

    existing_ids is only called when value is non-blank.
    """

    def rule() -> str | None:
        if is_blank(value):
            return None
        return None if value.strip() in existing_ids() else f"{label} does not exist"

    return rule


def run_rules(rules: Iterable[Rule]) -> ValidationResult:
    """Evaluate rules in order and stop at the first failure."""
    for rule in rules:
        reason = rule()
        if reason is not None:
            logger.debug(f"Validation failed: {reason}")
            return ValidationResult.fail(reason)
    return ValidationResult.ok()
