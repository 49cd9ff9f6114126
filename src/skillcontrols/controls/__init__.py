"""Reusable dialog controls."""

from .date import DATE_SLOT_TYPE, DateControl, is_valid_date
from .list import ListControl
from .number import NUMBER_SLOT_TYPE, NumberControl, parse_number
from .value import ValueControl, ValueControlProps, evaluate_prompt_prop

__all__ = [
    "ValueControl",
    "ValueControlProps",
    "evaluate_prompt_prop",
    "NumberControl",
    "NUMBER_SLOT_TYPE",
    "parse_number",
    "DateControl",
    "DATE_SLOT_TYPE",
    "is_valid_date",
    "ListControl",
]
