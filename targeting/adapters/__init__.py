"""Adapters for the external APIs the assistant talks to.

- Ads platform interest search: meta.MetaInterestAdapter
- Universe-building platform: soprism.SoprismAdapter

Exception handling:
    from targeting.adapters.exceptions import AdapterError, InterestLookupError
"""

from .base import BaseAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
    InterestLookupError,
)
from .meta import MetaInterestAdapter
from .soprism import SoprismAdapter, UniverseRequest, UploadResult

__all__ = [
    "BaseAdapter",
    # Adapters
    "MetaInterestAdapter",
    "SoprismAdapter",
    "UniverseRequest",
    "UploadResult",
    # Exceptions
    "AdapterError",
    "AdapterHTTPError",
    "AdapterTimeoutError",
    "AdapterResponseError",
    "AdapterConfigurationError",
    "InterestLookupError",
]
