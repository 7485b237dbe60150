"""
Constraint schemas.

Constraints are a tagged union on `operator`: each operator family
carries exactly the value shape it needs and is validated here, at the
API boundary, before it is stored.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter, field_validator
import semver

from .base import CamelModel


ListOperator = Literal["IN", "NOT_IN", "STR_CONTAINS", "STR_STARTS_WITH", "STR_ENDS_WITH"]
NumericOperator = Literal["NUM_EQ", "NUM_GT", "NUM_GTE", "NUM_LT", "NUM_LTE"]
DateOperator = Literal["DATE_AFTER", "DATE_BEFORE"]
SemverOperator = Literal["SEMVER_EQ", "SEMVER_GT", "SEMVER_LT"]


class ConstraintBase(CamelModel):
    context_name: str = Field(..., min_length=1, max_length=255)
    inverted: bool = False


class ListConstraint(ConstraintBase):
    """Membership and string matching against a list of values."""
    operator: ListOperator
    values: list[str] = Field(default_factory=list)
    case_insensitive: bool = False


class NumericConstraint(ConstraintBase):
    operator: NumericOperator
    value: float


class DateConstraint(ConstraintBase):
    operator: DateOperator
    value: datetime


class SemverConstraint(ConstraintBase):
    operator: SemverOperator
    value: str

    @field_validator("value")
    @classmethod
    def validate_semver(cls, v: str) -> str:
        try:
            semver.Version.parse(v)
        except ValueError:
            raise ValueError(f"{v!r} is not a valid semantic version")
        return v


Constraint = Annotated[
    Union[ListConstraint, NumericConstraint, DateConstraint, SemverConstraint],
    Field(discriminator="operator"),
]

constraint_list_adapter = TypeAdapter(list[Constraint])


def load_constraints(raw: list[dict]) -> list[Constraint]:
    """Rehydrate stored constraint JSON into tagged constraint models."""
    return constraint_list_adapter.validate_python(raw or [])


def dump_constraints(constraints: list[Constraint]) -> list[dict]:
    """Serialize constraints for storage and SDK responses."""
    return constraint_list_adapter.dump_python(constraints, by_alias=True, mode="json")
