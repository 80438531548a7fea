"""Static catalog of criteria categories and supported countries."""

from typing import Dict, List, Optional

# Category id -> display name
CATEGORIES: Dict[str, str] = {
    "automobiles": "Automobiles",
    "singers": "Singers",
    "restaurants": "Restaurants",
    "clothing_brands": "Clothing Brands",
    "sports": "Sports",
    "actors": "Actors",
    "hobbies": "Hobbies",
    "technology": "Technology",
}

# ISO code -> English name
COUNTRIES: Dict[str, str] = {
    "BE": "Belgium",
    "FR": "France",
    "CH": "Switzerland",
    "CA": "Canada",
    "US": "United States",
    "DE": "Germany",
    "ES": "Spain",
    "IT": "Italy",
    "GB": "United Kingdom",
    "NL": "Netherlands",
    "PT": "Portugal",
}

DEFAULT_COUNTRY_CODE = "US"

_FRENCH_NAMES = {
    "belgique": "BE",
    "france": "FR",
    "suisse": "CH",
    "canada": "CA",
    "états-unis": "US",
    "etats-unis": "US",
    "allemagne": "DE",
    "royaume-uni": "GB",
    "espagne": "ES",
    "italie": "IT",
    "pays-bas": "NL",
    "portugal": "PT",
}

_NAME_LOOKUP = {
    **{name.lower(): code for code, name in COUNTRIES.items()},
    **_FRENCH_NAMES,
}


def get_country_code(country: Optional[str]) -> str:
    """Resolve an ISO code, English name or French name to a two-letter code.

    Unknown or empty values resolve to ``US``.

    Example:
        >>> get_country_code("  Belgique ")
        'BE'
    """
    if not country:
        return DEFAULT_COUNTRY_CODE

    normalized = country.strip().lower()
    if normalized.upper() in COUNTRIES:
        return normalized.upper()
    return _NAME_LOOKUP.get(normalized, DEFAULT_COUNTRY_CODE)


def category_label(category: str) -> str:
    """Display name for a category id; unknown ids are returned as-is with underscores spaced."""
    return CATEGORIES.get(category, category.replace("_", " "))


def list_categories() -> List[Dict[str, str]]:
    return [{"id": key, "name": name} for key, name in CATEGORIES.items()]
