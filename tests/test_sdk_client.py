"""Tests for SocFlow Python SDK clients."""

from __future__ import annotations

import json
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

import httpx
import pytest
import requests

from socflow import AnalyticsClient, AsyncAnalyticsClient
from socflow.core.types import AlertStatus, SelectedFile, SourceType
from socflow.sdk.errors import AnalyticsAPIError, AnalyticsConnectionError, AnalyticsTimeoutError


def _requests_response(status_code: int, payload: Any, url: str = "http://localhost:8000") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    if isinstance(payload, (dict, list)):
        raw = json.dumps(payload).encode("utf-8")
    else:
        raw = str(payload).encode("utf-8")
    response._content = raw
    response.url = url
    response.headers["Content-Type"] = "application/json"
    return response


class _StubSession:
    def __init__(self, mapping: Dict[Tuple[str, str], Any]):
        self.mapping = mapping
        self.calls = []
        self.headers: Dict[str, str] = {}
        self.closed = False

    def request(self, *, method: str, url: str, json: Any, params: Any, files: Any, headers: Any, timeout: float):
        path = urlparse(url).path
        key = (method.upper(), path)
        self.calls.append(
            {
                "method": method.upper(),
                "path": path,
                "json": json,
                "params": params,
                "files": files,
                "headers": headers,
                "timeout": timeout,
            }
        )
        result = self.mapping[key]
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closed = True


def test_sync_upload_sends_file_and_credentials():
    stub = _StubSession(
        {
            ("POST", "/api/ingestion/upload/auth_logs"): _requests_response(200, {"records_processed": 42}),
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", api_key="secret", session=stub)

    receipt = client.upload_source(
        SourceType.AUTH_LOGS,
        SelectedFile(name="auth.csv", content=b"user,ip\n"),
        timeout=60.0,
    )

    assert receipt.record_count == 42
    assert receipt.source_type == SourceType.AUTH_LOGS
    call = stub.calls[0]
    assert call["params"] == {"api_key": "secret"}
    assert call["headers"] == {"Authorization": "Bearer secret"}
    assert call["files"]["file"][0] == "auth.csv"
    assert call["timeout"] == 60.0


def test_sync_run_detection_payload_and_results():
    stub = _StubSession(
        {
            ("POST", "/api/detection/run"): _requests_response(
                200,
                {"message": "ok", "auth_alerts": 2, "network_alerts": 3, "total_alerts": 5},
            )
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", session=stub, timeout=3.0)

    results = client.run_detection(hours_back=24)

    assert results.total_alerts == 5
    assert results.network_alerts == 3
    assert stub.calls[0]["json"] == {"hours_back": 24}
    assert stub.calls[0]["timeout"] == 3.0
    assert stub.calls[0]["params"] == {}
    assert stub.calls[0]["headers"] == {}


def test_sync_api_error_carries_backend_detail():
    stub = _StubSession(
        {
            ("PUT", "/api/alerts/a-1/status"): _requests_response(400, {"detail": "invalid transition"}),
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", session=stub)

    with pytest.raises(AnalyticsAPIError, match="invalid transition") as excinfo:
        client.update_alert_status("a-1", AlertStatus.RESOLVED)

    assert excinfo.value.status_code == 400
    assert excinfo.value.has_detail is True
    assert stub.calls[0]["json"] == {"status": "RESOLVED"}


def test_sync_api_error_without_detail_uses_fallback():
    stub = _StubSession(
        {
            ("GET", "/api/alerts"): _requests_response(502, "Bad Gateway"),
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", session=stub)

    with pytest.raises(AnalyticsAPIError, match="HTTP 502 error") as excinfo:
        client.list_alerts()

    assert excinfo.value.has_detail is False


def test_sync_timeout_and_connection_errors_wrapped():
    stub = _StubSession(
        {
            ("POST", "/api/detection/run"): requests.Timeout("slow"),
            ("GET", "/api/alerts"): requests.ConnectionError("down"),
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", session=stub)

    with pytest.raises(AnalyticsTimeoutError):
        client.run_detection(timeout=120.0)
    with pytest.raises(AnalyticsConnectionError, match="Failed to connect"):
        client.list_alerts()


def test_sync_list_alerts_parses_backend_ids_and_filters():
    stub = _StubSession(
        {
            ("GET", "/api/alerts"): _requests_response(
                200,
                {
                    "total": 1,
                    "alerts": [
                        {"_id": "a-9", "title": "Brute force", "severity": "HIGH", "status": "NEW"},
                    ],
                },
            )
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", api_key="k", session=stub)

    alerts = client.list_alerts(status="NEW", limit=20)

    assert [a.id for a in alerts] == ["a-9"]
    assert alerts[0].status == AlertStatus.NEW
    assert stub.calls[0]["params"] == {"status": "NEW", "limit": 20, "skip": 0, "api_key": "k"}


def test_invalid_base_url_rejected():
    with pytest.raises(ValueError, match="Invalid Analytics Backend URL"):
        AnalyticsClient(base_url="localhost:8000", session=_StubSession({}))


def test_context_manager_does_not_close_injected_session():
    stub = _StubSession({})
    with AnalyticsClient(base_url="http://localhost:8000", session=stub):
        pass
    assert stub.closed is False


@pytest.mark.asyncio
async def test_async_upload_streams_multipart_and_reports_progress():
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["api_key"] = request.url.params.get("api_key")
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = request.content
        return httpx.Response(200, json={"count": 3})

    progress = []
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = AsyncAnalyticsClient(base_url="http://localhost:8000", api_key="k", http_client=http_client)
        receipt = await client.upload_source(
            SourceType.THREAT_INTEL,
            SelectedFile(name="ti.csv", content=b"indicator,type\n1.2.3.4,ip\n"),
            progress=progress.append,
        )

    assert receipt.record_count == 3
    assert seen["path"] == "/api/ingestion/upload/threat_intel"
    assert seen["api_key"] == "k"
    assert seen["auth"] == "Bearer k"
    assert b'name="file"' in seen["body"]
    assert b"1.2.3.4,ip" in seen["body"]
    assert progress
    assert progress[-1] == 100


@pytest.mark.asyncio
async def test_async_timeout_and_connection_error():
    async def slow_handler(request: httpx.Request):
        raise httpx.ReadTimeout("slow", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(slow_handler)) as http_client:
        client = AsyncAnalyticsClient(base_url="http://localhost:8000", http_client=http_client)
        with pytest.raises(AnalyticsTimeoutError) as excinfo:
            await client.run_detection(timeout=120.0)
        assert excinfo.value.timeout == 120.0

    async def err_handler(request: httpx.Request):
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(err_handler)) as http_client:
        client = AsyncAnalyticsClient(base_url="http://localhost:8000", http_client=http_client)
        with pytest.raises(AnalyticsConnectionError, match="Failed to connect"):
            await client.update_alert_status("a-1", "RESOLVED")


@pytest.mark.asyncio
async def test_async_payload_too_large_status_preserved():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(413, text="Request Entity Too Large")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = AsyncAnalyticsClient(base_url="http://localhost:8000", http_client=http_client)
        with pytest.raises(AnalyticsAPIError) as excinfo:
            await client.upload_source(SourceType.ASSETS, SelectedFile(name="a.csv", content=b"x"))

    assert excinfo.value.status_code == 413
    assert excinfo.value.has_detail is False


def test_connection_error_text_omits_api_key():
    stub = _StubSession(
        {
            ("GET", "/api/alerts"): requests.ConnectionError(
                "Max retries exceeded with url: /api/alerts?limit=100&skip=0&api_key=top-secret"
            ),
        }
    )
    client = AnalyticsClient(base_url="http://localhost:8000", api_key="top-secret", session=stub)

    with pytest.raises(AnalyticsConnectionError) as excinfo:
        client.list_alerts()

    assert "top-secret" not in str(excinfo.value)
    assert "api_key=***" in str(excinfo.value)


@pytest.mark.asyncio
async def test_async_connection_error_text_omits_api_key():
    async def handler(request: httpx.Request):
        raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = AsyncAnalyticsClient(base_url="http://localhost:8000", api_key="top-secret", http_client=http_client)
        with pytest.raises(AnalyticsConnectionError) as excinfo:
            await client.list_alerts()

    assert "top-secret" not in str(excinfo.value)
