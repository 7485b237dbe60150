"""
Constraint evaluation.

A constraint is a predicate over one context field. A strategy passes
when every one of its constraints passes.
"""

from datetime import datetime

import semver

from togglehub.schemas.constraint import (
    Constraint,
    ListConstraint,
    NumericConstraint,
    DateConstraint,
    SemverConstraint,
)
from togglehub.schemas.frontend import EvaluationContext
from togglehub.utils.timezone import utc_now, to_utc, from_iso8601


CURRENT_TIME = "currentTime"


def _context_value(constraint: Constraint, context: EvaluationContext) -> str | None:
    value = context.get(constraint.context_name)
    if value is None and constraint.context_name == CURRENT_TIME:
        return utc_now().isoformat()
    return value


def _list_matches(constraint: ListConstraint, value: str) -> bool:
    op = constraint.operator
    if op == "IN":
        return value in constraint.values
    if op == "NOT_IN":
        return value not in constraint.values

    values = constraint.values
    if constraint.case_insensitive:
        value = value.lower()
        values = [v.lower() for v in values]

    if op == "STR_CONTAINS":
        return any(v in value for v in values)
    if op == "STR_STARTS_WITH":
        return any(value.startswith(v) for v in values)
    if op == "STR_ENDS_WITH":
        return any(value.endswith(v) for v in values)
    return False


def _numeric_matches(constraint: NumericConstraint, value: str) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False

    op = constraint.operator
    if op == "NUM_EQ":
        return number == constraint.value
    if op == "NUM_GT":
        return number > constraint.value
    if op == "NUM_GTE":
        return number >= constraint.value
    if op == "NUM_LT":
        return number < constraint.value
    if op == "NUM_LTE":
        return number <= constraint.value
    return False


def _date_matches(constraint: DateConstraint, value: str | datetime) -> bool:
    try:
        moment = to_utc(value) if isinstance(value, datetime) else from_iso8601(value)
    except ValueError:
        return False

    target = to_utc(constraint.value)
    if constraint.operator == "DATE_AFTER":
        return moment > target
    return moment < target


def _semver_matches(constraint: SemverConstraint, value: str) -> bool:
    try:
        version = semver.Version.parse(value)
    except ValueError:
        return False

    # Build metadata does not take part in precedence
    order = version.compare(semver.Version.parse(constraint.value))
    op = constraint.operator
    if op == "SEMVER_EQ":
        return order == 0
    if op == "SEMVER_GT":
        return order > 0
    return order < 0


def evaluate_constraint(constraint: Constraint, context: EvaluationContext) -> bool:
    """
    Evaluate a single constraint against the request context.

    A missing context value fails the constraint for every operator,
    NOT_IN included, and `inverted` does not flip that failure.
    """
    value = _context_value(constraint, context)
    if value is None:
        return False

    if isinstance(constraint, ListConstraint):
        result = _list_matches(constraint, value)
    elif isinstance(constraint, NumericConstraint):
        result = _numeric_matches(constraint, value)
    elif isinstance(constraint, DateConstraint):
        result = _date_matches(constraint, value)
    elif isinstance(constraint, SemverConstraint):
        result = _semver_matches(constraint, value)
    else:
        result = False

    return not result if constraint.inverted else result


def constraints_pass(constraints: list[Constraint], context: EvaluationContext) -> bool:
    """AND over a strategy's constraints. No constraints always passes."""
    return all(evaluate_constraint(c, context) for c in constraints)
