"""Base adapter class with shared HTTP handling for external APIs.

Every adapter talks JSON over HTTPS through one ``requests.Session`` and maps
transport failures onto the adapter exception hierarchy.
"""

import logging
from typing import Any, Dict, Optional

import requests

from targeting.logging import get_logger

from .exceptions import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)

logger = get_logger(__name__, component="adapter")


class BaseAdapter:
    """Base class for external API adapters.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
    """

    ADAPTER_NAME = "base"

    def __init__(self, timeout: int = 30, user_agent: str = "MetaTargetingAssistant/1.0") -> None:
        """Initialize adapter with configuration.

        Args:
            timeout: HTTP request timeout in seconds (default 30, range 5-300)
            user_agent: User-Agent header for requests

        Raises:
            AdapterConfigurationError: If timeout is outside valid range or user_agent is empty
        """
        if not 5 <= timeout <= 300:
            raise AdapterConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise AdapterConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def _make_request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make HTTP request with error handling.

        Args:
            url: URL to request
            method: HTTP method (default "GET")
            headers: Additional headers to include (merged with defaults)
            params: Query parameters
            json_data: JSON body for POST requests
            files: Multipart file fields for uploads

        Returns:
            Parsed JSON response

        Raises:
            AdapterHTTPError: On 4xx or 5xx HTTP status, or connection failure
            AdapterTimeoutError: On request timeout
            AdapterResponseError: On invalid JSON
        """
        request_headers = self._session.headers.copy()
        if headers:
            request_headers.update(headers)

        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "adapter.request",
                    "adapter": self.ADAPTER_NAME,
                    "method": method,
                    "url": url,
                    "timeout": self.timeout,
                },
            )

            response = self._session.request(
                method=method,
                url=url,
                headers=request_headers,
                params=params,
                json=json_data,
                files=files,
                timeout=self.timeout,
            )

            if response.status_code >= 400:
                is_retryable = response.status_code >= 500
                event_name = "adapter.request.retryable_error" if is_retryable else "adapter.request.error"
                log_level = logging.WARNING if is_retryable else logging.ERROR

                logger.log(
                    log_level,
                    f"HTTP {response.status_code} error from {url}",
                    extra={
                        "event": event_name,
                        "adapter": self.ADAPTER_NAME,
                        "status_code": response.status_code,
                        "url": url,
                        "api_message": _api_error_message(response),
                    },
                )

                raise AdapterHTTPError(
                    f"HTTP {response.status_code}: {_api_error_message(response) or response.reason}",
                    status_code=response.status_code,
                    url=url,
                )

            try:
                data = response.json()
            except (ValueError, requests.exceptions.JSONDecodeError) as e:
                logger.error(
                    f"Failed to parse JSON response from {url}",
                    extra={
                        "event": "adapter.request.error",
                        "adapter": self.ADAPTER_NAME,
                        "error_type": "JSONDecodeError",
                        "url": url,
                    },
                )
                raise AdapterResponseError(
                    f"Failed to parse JSON response from {url}: {e}"
                ) from e

            logger.debug(
                "HTTP request succeeded",
                extra={
                    "event": "adapter.request.succeeded",
                    "adapter": self.ADAPTER_NAME,
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            return data

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "adapter.request.retryable_error",
                    "adapter": self.ADAPTER_NAME,
                    "error_type": "Timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise AdapterTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "adapter.request.error",
                    "adapter": self.ADAPTER_NAME,
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise AdapterHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
            ) from e


def _api_error_message(response: requests.Response) -> Optional[str]:
    """Pull a human-readable message out of an error body, if there is one.

    Graph API errors look like ``{"error": {"message": ...}}``; the export
    platform uses ``{"message": ...}``.
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if body.get("message"):
        return str(body["message"])
    return None
