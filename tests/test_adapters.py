"""Unit tests for external API adapters."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

from targeting.adapters import (
    AdapterConfigurationError,
    AdapterError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
    InterestLookupError,
    MetaInterestAdapter,
    SoprismAdapter,
    UniverseRequest,
)
from targeting.adapters.base import BaseAdapter
from targeting.config.models import AdvancedConfig, MetaConfig, SoprismConfig
from targeting.domain.models import Candidate

FIXTURES = Path(__file__).parent / "fixtures" / "api_responses"


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def meta_response():
    """Load recorded interest search response."""
    with open(FIXTURES / "meta_search_response.json") as f:
        return json.load(f)


@pytest.fixture
def meta_error_response():
    """Load recorded Graph API error body."""
    with open(FIXTURES / "meta_error_response.json") as f:
        return json.load(f)


@pytest.fixture
def meta_adapter():
    """Interest adapter pointed at a test endpoint."""
    adapter = MetaInterestAdapter(
        "test-token",
        MetaConfig(base_url="https://graph.example.test/", api_version="v20.0", locale="en_US", result_limit=10),
    )
    yield adapter
    adapter.close()


@pytest.fixture
def soprism_adapter():
    adapter = SoprismAdapter(base_url="https://soprism.example.test/")
    yield adapter
    adapter.close()


def http_response(status_code=200, body=None, reason="OK"):
    """Build a mock requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = reason
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


# ============================================================================
# Base Adapter Tests
# ============================================================================


class TestBaseAdapter:
    """Tests for BaseAdapter HTTP handling."""

    def test_init_with_invalid_timeout(self):
        with pytest.raises(AdapterConfigurationError, match="Timeout must be between"):
            BaseAdapter(timeout=2)

    def test_init_with_empty_user_agent(self):
        with pytest.raises(AdapterConfigurationError, match="user_agent"):
            BaseAdapter(timeout=30, user_agent="   ")

    def test_user_agent_sent_on_session(self):
        adapter = BaseAdapter(timeout=30, user_agent="TargetingTest/0.1")

        assert adapter._session.headers["User-Agent"] == "TargetingTest/0.1"

    def test_returns_parsed_json(self):
        adapter = BaseAdapter()

        with patch.object(adapter._session, "request", return_value=http_response(body={"ok": True})) as request:
            data = adapter._make_request("https://api.example.test/x", params={"q": "nike"})

        assert data == {"ok": True}
        kwargs = request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["params"] == {"q": "nike"}
        assert kwargs["timeout"] == 30

    def test_extra_headers_merged(self):
        adapter = BaseAdapter(user_agent="TargetingTest/0.1")

        with patch.object(adapter._session, "request", return_value=http_response(body={})) as request:
            adapter._make_request("https://api.example.test/x", headers={"Authorization": "Bearer t"})

        headers = request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer t"
        assert headers["User-Agent"] == "TargetingTest/0.1"

    def test_http_error_carries_api_message(self, meta_error_response):
        adapter = BaseAdapter()
        response = http_response(400, meta_error_response, reason="Bad Request")

        with patch.object(adapter._session, "request", return_value=response):
            with pytest.raises(AdapterHTTPError) as exc_info:
                adapter._make_request("https://api.example.test/x")

        assert exc_info.value.status_code == 400
        assert exc_info.value.url == "https://api.example.test/x"
        assert "(#100) Invalid parameter" in str(exc_info.value)

    def test_http_error_plain_message_body(self):
        adapter = BaseAdapter()
        response = http_response(401, {"message": "Invalid credentials"}, reason="Unauthorized")

        with patch.object(adapter._session, "request", return_value=response):
            with pytest.raises(AdapterHTTPError, match="Invalid credentials"):
                adapter._make_request("https://api.example.test/x")

    def test_http_error_without_json_body_uses_reason(self):
        adapter = BaseAdapter()
        response = http_response(503, ValueError("not json"), reason="Service Unavailable")

        with patch.object(adapter._session, "request", return_value=response):
            with pytest.raises(AdapterHTTPError, match="HTTP 503: Service Unavailable"):
                adapter._make_request("https://api.example.test/x")

    def test_timeout(self):
        adapter = BaseAdapter(timeout=5)

        with patch.object(adapter._session, "request", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(AdapterTimeoutError) as exc_info:
                adapter._make_request("https://api.example.test/x")

        assert exc_info.value.url == "https://api.example.test/x"
        assert "5 seconds" in str(exc_info.value)

    def test_connection_error_has_status_zero(self):
        adapter = BaseAdapter()

        with patch.object(adapter._session, "request", side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(AdapterHTTPError) as exc_info:
                adapter._make_request("https://api.example.test/x")

        assert exc_info.value.status_code == 0

    def test_invalid_json(self):
        adapter = BaseAdapter()
        response = http_response(200, ValueError("Expecting value"))

        with patch.object(adapter._session, "request", return_value=response):
            with pytest.raises(AdapterResponseError, match="Failed to parse JSON"):
                adapter._make_request("https://api.example.test/x")


# ============================================================================
# Interest Search Adapter Tests
# ============================================================================


class TestMetaInterestAdapter:
    """Tests for MetaInterestAdapter."""

    def test_empty_token_rejected(self):
        with pytest.raises(AdapterConfigurationError):
            MetaInterestAdapter("  ")

    def test_from_config(self):
        adapter = MetaInterestAdapter.from_config(
            "token",
            MetaConfig(),
            AdvancedConfig(http_request_timeout=15, user_agent="TargetingTest/0.1"),
        )

        assert adapter.timeout == 15
        assert adapter.user_agent == "TargetingTest/0.1"

    def test_search_url(self, meta_adapter):
        assert meta_adapter.search_url == "https://graph.example.test/v20.0/search"

    def test_fetch_candidates_success(self, meta_adapter, meta_response):
        with patch.object(meta_adapter, "_make_request", return_value=meta_response):
            candidates = meta_adapter.fetch_candidates("Nike", "BE")

        assert len(candidates) == 3
        assert all(isinstance(c, Candidate) for c in candidates)
        assert candidates[0].name == "Nike, Inc."
        assert candidates[0].path == ["Interests", "Shopping and fashion", "Nike, Inc."]
        # Integer ids are normalized to strings
        assert candidates[1].id == "6003397425735"

    def test_audience_size_falls_back_to_lower_bound(self, meta_adapter, meta_response):
        with patch.object(meta_adapter, "_make_request", return_value=meta_response):
            candidates = meta_adapter.fetch_candidates("Nike", "BE")

        assert candidates[0].audience_size == 812000000
        assert candidates[1].audience_size == 0
        assert candidates[2].audience_size is None

    def test_request_parameters(self, meta_adapter):
        with patch.object(meta_adapter, "_make_request", return_value={"data": []}) as request:
            meta_adapter.fetch_candidates("Coca-Cola", "FR")

        url = request.call_args.args[0]
        params = request.call_args.kwargs["params"]
        assert url == "https://graph.example.test/v20.0/search"
        assert params["access_token"] == "test-token"
        assert params["type"] == "adinterest"
        assert params["q"] == "Coca-Cola"
        assert params["limit"] == 10
        assert params["locale"] == "en_US"
        assert json.loads(params["targeting_spec"]) == {"geo_locations": {"countries": ["FR"]}}

    @pytest.mark.parametrize("response", [{"data": []}, {}, {"data": None}])
    def test_no_data_returns_empty_list(self, meta_adapter, response):
        with patch.object(meta_adapter, "_make_request", return_value=response):
            assert meta_adapter.fetch_candidates("Nike", "BE") == []

    def test_non_object_response_raises_lookup_error(self, meta_adapter):
        with patch.object(meta_adapter, "_make_request", return_value=["unexpected"]):
            with pytest.raises(InterestLookupError):
                meta_adapter.fetch_candidates("Nike", "BE")

    def test_data_not_a_list_raises_lookup_error(self, meta_adapter):
        with patch.object(meta_adapter, "_make_request", return_value={"data": {"id": "1"}}):
            with pytest.raises(InterestLookupError) as exc_info:
                meta_adapter.fetch_candidates("Nike", "BE")

        assert isinstance(exc_info.value.__cause__, AdapterResponseError)

    def test_http_error_wrapped(self, meta_adapter):
        error = AdapterHTTPError("HTTP 400: (#100) Invalid parameter", status_code=400, url="https://graph.example.test")

        with patch.object(meta_adapter, "_make_request", side_effect=error):
            with pytest.raises(InterestLookupError) as exc_info:
                meta_adapter.fetch_candidates("Nike", "BE")

        assert exc_info.value.query == "Nike"
        assert "(#100) Invalid parameter" in str(exc_info.value)
        assert exc_info.value.__cause__ is error

    def test_timeout_wrapped(self, meta_adapter):
        error = AdapterTimeoutError("timed out", url="https://graph.example.test")

        with patch.object(meta_adapter, "_make_request", side_effect=error):
            with pytest.raises(InterestLookupError):
                meta_adapter.fetch_candidates("Nike", "BE")

    def test_skips_malformed_rows(self, meta_adapter):
        response = {
            "data": [
                {"id": "1", "name": "Nike"},
                {"id": "2"},
                {"id": "3", "name": "Nike Golf", "audience_size": -1},
                "not a row",
                {"id": "4", "name": "Nike Running"},
            ]
        }

        with patch.object(meta_adapter, "_make_request", return_value=response):
            candidates = meta_adapter.fetch_candidates("Nike", "BE")

        assert [c.id for c in candidates] == ["1", "4"]

    def test_lookup_error_is_adapter_error(self):
        assert issubclass(InterestLookupError, AdapterError)


# ============================================================================
# Universe Platform Adapter Tests
# ============================================================================


class TestSoprismAdapter:
    """Tests for SoprismAdapter."""

    def test_base_url_trailing_slash_removed(self, soprism_adapter):
        assert soprism_adapter.base_url == "https://soprism.example.test"

    def test_from_config(self):
        adapter = SoprismAdapter.from_config(
            SoprismConfig(base_url="https://soprism.example.test"),
            AdvancedConfig(http_request_timeout=20),
        )

        assert adapter.base_url == "https://soprism.example.test"
        assert adapter.timeout == 20

    def test_authenticate(self, soprism_adapter):
        with patch.object(soprism_adapter, "_make_request", return_value={"token": "abc"}) as request:
            token = soprism_adapter.authenticate("user@example.com", "secret")

        assert token == "abc"
        assert request.call_args.args[0] == "https://soprism.example.test/auth/token"
        assert request.call_args.kwargs["method"] == "POST"
        assert request.call_args.kwargs["json_data"] == {"username": "user@example.com", "password": "secret"}

    @pytest.mark.parametrize("username,password", [("", "secret"), ("user", "")])
    def test_authenticate_requires_credentials(self, soprism_adapter, username, password):
        with pytest.raises(AdapterConfigurationError):
            soprism_adapter.authenticate(username, password)

    def test_authenticate_without_token(self, soprism_adapter):
        with patch.object(soprism_adapter, "_make_request", return_value={"success": True}):
            with pytest.raises(AdapterResponseError, match="no token"):
                soprism_adapter.authenticate("user", "secret")

    def test_upload_spreadsheet(self, soprism_adapter, tmp_path):
        workbook = tmp_path / "universe.xlsx"
        workbook.write_bytes(b"xlsx-bytes")

        with patch.object(
            soprism_adapter, "_make_request", return_value={"success": True, "fileId": "f-1"}
        ) as request:
            result = soprism_adapter.upload_spreadsheet(workbook, "abc")

        assert result.file_name == "universe.xlsx"
        assert result.file_id == "f-1"
        kwargs = request.call_args.kwargs
        assert kwargs["headers"] == {"Authorization": "Bearer abc"}
        assert kwargs["files"]["file"][0] == "universe.xlsx"

    def test_upload_rejected(self, soprism_adapter, tmp_path):
        workbook = tmp_path / "universe.xlsx"
        workbook.write_bytes(b"xlsx-bytes")

        with patch.object(
            soprism_adapter, "_make_request", return_value={"success": False, "message": "Bad columns"}
        ):
            with pytest.raises(AdapterResponseError, match="File upload failed: Bad columns"):
                soprism_adapter.upload_spreadsheet(workbook, "abc")

    def test_create_universe(self, soprism_adapter):
        request = UniverseRequest(name="Sportswear BE", country_ref="BE", file_id="f-1", description="Q3")

        with patch.object(
            soprism_adapter, "_make_request", return_value={"success": True, "universeId": "u-9"}
        ) as call:
            universe_id = soprism_adapter.create_universe(request, "abc")

        assert universe_id == "u-9"
        assert call.call_args.args[0] == "https://soprism.example.test/universe/create"
        assert call.call_args.kwargs["json_data"] == {
            "name": "Sportswear BE",
            "countryRef": "BE",
            "excludeDefault": False,
            "avoidDuplicates": True,
            "fileId": "f-1",
            "description": "Q3",
        }

    def test_create_universe_failure(self, soprism_adapter):
        with patch.object(soprism_adapter, "_make_request", return_value={"success": False}):
            with pytest.raises(AdapterResponseError, match="Universe creation failed: Unknown error"):
                soprism_adapter.create_universe(UniverseRequest(name="x", country_ref="BE"), "abc")

    def test_universe_payload_omits_empty_optionals(self):
        payload = UniverseRequest(name="x", country_ref="FR", tags=["sport"]).to_payload()

        assert "fileId" not in payload
        assert "description" not in payload
        assert payload["tags"] == ["sport"]


class TestAdapterExceptions:
    """Tests for adapter exception attributes."""

    def test_adapter_http_error_attributes(self):
        error = AdapterHTTPError("Test error", status_code=404, url="https://example.com")

        assert error.status_code == 404
        assert error.url == "https://example.com"

    def test_exception_inheritance(self):
        assert issubclass(AdapterHTTPError, AdapterError)
        assert issubclass(AdapterTimeoutError, AdapterError)
        assert issubclass(AdapterResponseError, AdapterError)
        assert issubclass(AdapterConfigurationError, AdapterError)
