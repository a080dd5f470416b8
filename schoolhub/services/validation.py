"""
Validation gates for each transport model.

Gates run before any repository mutation. Rules are evaluated in order and
the first failing rule's reason is reported:

1. Required text fields are non-empty after trimming
2. Email and phone match their canonical formats
3. Optional foreign ids, when given, exist in the referenced repository
"""

from collections.abc import Callable, Collection

from schoolhub.api.schemas import BranchIn, CustomerIn, TeacherIn
from schoolhub.core.validators import (
    EMAIL_PATTERN,
    PHONE_PATTERN,
    ValidationResult,
    matches,
    references,
    required,
    run_rules,
)

IdSource = Callable[[], Collection[str]]


def validate_teacher(teacher: TeacherIn, customer_ids: IdSource) -> ValidationResult:
    """
    Check a teacher payload.

    Args:
        teacher: Incoming transport model
        customer_ids: Callable returning existing customer ids; only called
            when customer_id is present

    Returns:
        ValidationResult, (True, None) when every rule passes
    """
    return run_rules(
        [
            required(teacher.full_name, "Full name"),
            required(teacher.email, "Email"),
            required(teacher.phone, "Phone"),
            matches(teacher.email, EMAIL_PATTERN, "Email"),
            matches(teacher.phone, PHONE_PATTERN, "Phone"),
            references(teacher.customer_id, customer_ids, "Customer id"),
        ]
    )


def validate_customer(customer: CustomerIn, branch_ids: IdSource) -> ValidationResult:
    """Check a customer payload; branch_ids is consulted only when branch_id is set."""
    return run_rules(
        [
            required(customer.full_name, "Full name"),
            required(customer.email, "Email"),
            required(customer.phone, "Phone"),
            matches(customer.email, EMAIL_PATTERN, "Email"),
            matches(customer.phone, PHONE_PATTERN, "Phone"),
            references(customer.branch_id, branch_ids, "Branch id"),
        ]
    )


def validate_branch(branch: BranchIn) -> ValidationResult:
    # Phone is optional for branches; the format check skips blanks.
    return run_rules(
        [
            required(branch.name, "Name"),
            matches(branch.phone, PHONE_PATTERN, "Phone"),
        ]
    )
