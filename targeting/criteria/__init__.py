"""Criteria generation and the category/country catalog."""

from .catalog import CATEGORIES, COUNTRIES, DEFAULT_COUNTRY_CODE, category_label, get_country_code, list_categories
from .exceptions import CriteriaGenerationError
from .generator import CriteriaGenerator, clean_criteria_lines

__all__ = [
    "CATEGORIES",
    "COUNTRIES",
    "DEFAULT_COUNTRY_CODE",
    "CriteriaGenerationError",
    "CriteriaGenerator",
    "category_label",
    "clean_criteria_lines",
    "get_country_code",
    "list_categories",
]
