"""Universe-building platform adapter: authentication, upload, universe creation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from targeting.config.models import AdvancedConfig, SoprismConfig

from .base import BaseAdapter
from .exceptions import AdapterConfigurationError, AdapterResponseError

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Spreadsheet accepted by the platform."""

    file_name: str
    file_id: Optional[str]


@dataclass
class UniverseRequest:
    """Body of a create-universe call.

    Attributes:
        name: Universe name shown in the platform
        country_ref: Country reference (two-letter code)
        file_id: Uploaded spreadsheet the universe is built from
        description: Optional free text
        exclude_default: Exclude the platform's default interests
        avoid_duplicates: Merge entries pointing at the same interest
    """

    name: str
    country_ref: str
    file_id: Optional[str] = None
    description: Optional[str] = None
    exclude_default: bool = False
    avoid_duplicates: bool = True
    tags: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "countryRef": self.country_ref,
            "excludeDefault": self.exclude_default,
            "avoidDuplicates": self.avoid_duplicates,
        }
        if self.file_id is not None:
            payload["fileId"] = self.file_id
        if self.description:
            payload["description"] = self.description
        if self.tags:
            payload["tags"] = list(self.tags)
        return payload


class SoprismAdapter(BaseAdapter):
    """Client for the universe-building platform.

    API Details:
        Auth:    POST {base_url}/auth/token        {"username", "password"} -> {"token"}
        Upload:  POST {base_url}/universe/upload   multipart 'file' -> {"success", "fileId"}
        Create:  POST {base_url}/universe/create   JSON -> {"success", "universeId"}
    """

    ADAPTER_NAME = "soprism"
    AUTH_ENDPOINT = "/auth/token"
    UPLOAD_ENDPOINT = "/universe/upload"
    CREATE_UNIVERSE_ENDPOINT = "/universe/create"

    def __init__(
        self,
        base_url: str = "https://api.soprism.com",
        timeout: int = 30,
        user_agent: str = "MetaTargetingAssistant/1.0",
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_config(cls, soprism_config: SoprismConfig, advanced: AdvancedConfig) -> "SoprismAdapter":
        return cls(
            base_url=soprism_config.base_url,
            timeout=advanced.http_request_timeout,
            user_agent=advanced.user_agent,
        )

    def authenticate(self, username: str, password: str) -> str:
        """Exchange credentials for a bearer token.

        Raises:
            AdapterConfigurationError: If either credential is empty
            AdapterResponseError: If the response carries no token
            AdapterHTTPError: On HTTP failure
        """
        if not username or not password:
            raise AdapterConfigurationError("Username and password are required")

        data = self._make_request(
            f"{self.base_url}{self.AUTH_ENDPOINT}",
            method="POST",
            json_data={"username": username, "password": password},
        )
        if not isinstance(data, dict) or not data.get("token"):
            raise AdapterResponseError("Authentication failed: no token received")

        logger.info(
            "Authenticated with export platform",
            extra={"event": "soprism.auth.succeeded", "adapter": self.ADAPTER_NAME},
        )
        return data["token"]

    def upload_spreadsheet(self, path: Path, token: str) -> UploadResult:
        """Upload a universe workbook as multipart form data."""
        path = Path(path)
        with open(path, "rb") as f:
            data = self._make_request(
                f"{self.base_url}{self.UPLOAD_ENDPOINT}",
                method="POST",
                headers=_bearer(token),
                files={"file": (path.name, f)},
            )

        _require_success(data, "File upload failed")
        result = UploadResult(file_name=path.name, file_id=data.get("fileId"))

        logger.info(
            "Uploaded universe spreadsheet",
            extra={
                "event": "soprism.upload.succeeded",
                "adapter": self.ADAPTER_NAME,
                "file_name": result.file_name,
                "file_id": result.file_id,
            },
        )
        return result

    def create_universe(self, request: UniverseRequest, token: str) -> Optional[str]:
        """Create (or update) a universe; returns the platform's universe id."""
        data = self._make_request(
            f"{self.base_url}{self.CREATE_UNIVERSE_ENDPOINT}",
            method="POST",
            headers=_bearer(token),
            json_data=request.to_payload(),
        )

        _require_success(data, "Universe creation failed")
        universe_id = data.get("universeId")

        logger.info(
            f"Created universe '{request.name}'",
            extra={
                "event": "soprism.universe.created",
                "adapter": self.ADAPTER_NAME,
                "universe_id": universe_id,
                "country_ref": request.country_ref,
            },
        )
        return universe_id


def _bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _require_success(data: Any, prefix: str) -> None:
    if not isinstance(data, dict) or not data.get("success"):
        message = data.get("message") if isinstance(data, dict) else None
        raise AdapterResponseError(f"{prefix}: {message or 'Unknown error'}")
