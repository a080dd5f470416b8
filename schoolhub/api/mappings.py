"""Mapping profiles between the API transport models and the ORM entities."""

from schoolhub.api.schemas import (
    BranchIn,
    BranchOut,
    CustomerIn,
    CustomerOut,
    TeacherIn,
    TeacherOut,
)
from schoolhub.core.mapping import MappingProfile, blank_to_none, strip_text
from schoolhub.db.models import Branch, Customer, Teacher

_TEACHER_FIELDS = ("full_name", "email", "phone", "customer_id")
_CUSTOMER_FIELDS = ("full_name", "email", "phone", "branch_id")
_BRANCH_FIELDS = ("name", "address", "phone")

MAPPING_PROFILES = (
    MappingProfile.same_names(
        TeacherIn,
        Teacher,
        _TEACHER_FIELDS,
        {
            "full_name": strip_text,
            "email": strip_text,
            "phone": strip_text,
            "customer_id": blank_to_none,
        },
    ),
    MappingProfile.same_names(Teacher, TeacherOut, ("id", *_TEACHER_FIELDS)),
    MappingProfile.same_names(
        CustomerIn,
        Customer,
        _CUSTOMER_FIELDS,
        {
            "full_name": strip_text,
            "email": strip_text,
            "phone": strip_text,
            "branch_id": blank_to_none,
        },
    ),
    MappingProfile.same_names(Customer, CustomerOut, ("id", *_CUSTOMER_FIELDS)),
    MappingProfile.same_names(
        BranchIn,
        Branch,
        _BRANCH_FIELDS,
        {"name": strip_text, "address": blank_to_none, "phone": blank_to_none},
    ),
    MappingProfile.same_names(Branch, BranchOut, ("id", *_BRANCH_FIELDS)),
)
