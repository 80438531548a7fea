"""Ads-platform interest search adapter (Graph API ``adinterest`` search)."""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from targeting.config.models import AdvancedConfig, MetaConfig
from targeting.domain.models import Candidate

from .base import BaseAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    AdapterResponseError,
    InterestLookupError,
)

logger = logging.getLogger(__name__)


class MetaInterestAdapter(BaseAdapter):
    """Fetches interest suggestions for a criterion in one country.

    ``fetch_candidates`` has the ``(query, country_code)`` signature expected
    by the batch processor and the retry queue, so a bound method can be
    passed to either directly.

    API Details:
        Endpoint: {base_url}/{api_version}/search
        Method: GET
        Authentication: access_token query parameter
        Response: JSON object with 'data' array
    """

    ADAPTER_NAME = "meta"

    def __init__(
        self,
        access_token: str,
        meta_config: Optional[MetaConfig] = None,
        timeout: int = 30,
        user_agent: str = "MetaTargetingAssistant/1.0",
    ) -> None:
        """Initialize adapter.

        Args:
            access_token: Graph API access token
            meta_config: Endpoint, API version, locale and result limit
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header for requests

        Raises:
            AdapterConfigurationError: If the access token is empty
        """
        super().__init__(timeout=timeout, user_agent=user_agent)
        if not access_token or not access_token.strip():
            raise AdapterConfigurationError("Meta access token cannot be empty")

        self.access_token = access_token.strip()
        self.meta_config = meta_config or MetaConfig()

    @classmethod
    def from_config(
        cls, access_token: str, meta_config: MetaConfig, advanced: AdvancedConfig
    ) -> "MetaInterestAdapter":
        return cls(
            access_token=access_token,
            meta_config=meta_config,
            timeout=advanced.http_request_timeout,
            user_agent=advanced.user_agent,
        )

    @property
    def search_url(self) -> str:
        return f"{self.meta_config.base_url}/{self.meta_config.api_version}/search"

    def fetch_candidates(self, query: str, country_code: str) -> list[Candidate]:
        """Search interests matching ``query`` for an audience in ``country_code``.

        Args:
            query: Criterion to search for
            country_code: Two-letter ISO country code

        Returns:
            Candidates in the order the API returned them; empty when the
            response has no data

        Raises:
            InterestLookupError: On any HTTP, timeout or response-shape failure
        """
        params = {
            "access_token": self.access_token,
            "type": "adinterest",
            "q": query,
            "limit": self.meta_config.result_limit,
            "locale": self.meta_config.locale,
            "targeting_spec": json.dumps({"geo_locations": {"countries": [country_code]}}),
        }

        logger.debug(
            "Searching interest suggestions",
            extra={
                "event": "meta.search.started",
                "adapter": self.ADAPTER_NAME,
                "country_code": country_code,
            },
        )

        try:
            response = self._make_request(self.search_url, params=params)
            rows = self._extract_rows(response)
        except AdapterError as e:
            raise InterestLookupError(
                f"Failed to fetch interest suggestions for '{query}': {e}", query=query
            ) from e

        candidates = []
        for row in rows:
            try:
                candidates.append(Candidate.from_api(row))
            except (ValidationError, AttributeError) as e:
                logger.warning(
                    "Skipping malformed interest suggestion",
                    extra={
                        "event": "meta.search.row_skipped",
                        "adapter": self.ADAPTER_NAME,
                        "error_type": type(e).__name__,
                    },
                )

        logger.info(
            f"Fetched {len(candidates)} interest suggestions",
            extra={
                "event": "meta.search.completed",
                "adapter": self.ADAPTER_NAME,
                "country_code": country_code,
                "count": len(candidates),
            },
        )
        return candidates

    @staticmethod
    def _extract_rows(response) -> list:
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )

        rows = response.get("data")
        if not rows:
            return []
        if not isinstance(rows, list):
            raise AdapterResponseError(
                f"Expected 'data' field to be array, got {type(rows).__name__}"
            )
        return rows
