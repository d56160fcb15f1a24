"""
SocFlow Python SDK clients (sync + async) for the Analytics Backend.
"""

from __future__ import annotations

import io
import json
import os
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

import httpx
import requests

from socflow.core.types import (
    DETECTION_HOURS_BACK,
    Alert,
    AlertSeverity,
    AlertStatus,
    DetectionResults,
    SelectedFile,
    SourceType,
    UploadReceipt,
)
from socflow.sdk.errors import AnalyticsAPIError, AnalyticsConnectionError, AnalyticsTimeoutError

DEFAULT_BASE_URL = os.environ.get("SOCFLOW_API_URL", "http://localhost:8000")

ProgressCallback = Callable[[int], None]


def _normalize_base_url(base_url: str) -> str:
    value = base_url.rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid Analytics Backend URL: {base_url!r}")
    return value


def _coerce_error_detail(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            try:
                return json.dumps(detail, sort_keys=True)
            except (TypeError, ValueError):
                return str(detail)
    return None


def _record_count(payload: Any) -> int:
    if not isinstance(payload, dict):
        return 0
    for key in ("count", "records_processed"):
        value = payload.get(key)
        if value:
            try:
                return int(value)
            except (TypeError, ValueError):
                continue
    return 0


def _alerts_from_payload(payload: Any) -> List[Alert]:
    if isinstance(payload, dict):
        items = payload.get("alerts") or []
    elif isinstance(payload, list):
        items = payload
    else:
        items = []
    return [Alert.model_validate(item) for item in items if isinstance(item, dict)]


class _ProgressReader(io.BytesIO):
    """In-memory file that reports read progress while httpx streams it."""

    def __init__(self, content: bytes, callback: Optional[ProgressCallback]):
        super().__init__(content)
        self._total = len(content)
        self._callback = callback

    def read(self, size: Optional[int] = -1) -> bytes:
        chunk = super().read(size)
        if self._callback is not None:
            if self._total:
                self._callback(min(100, round(self.tell() * 100 / self._total)))
            else:
                self._callback(100)
        return chunk


class _BaseAnalyticsClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.base_url = _normalize_base_url(base_url)
        self.api_key = api_key
        self.timeout = timeout

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def _auth_headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    def _redact(self, text: str) -> str:
        if not self.api_key:
            return text
        return text.replace(self.api_key, "***")

    def _auth_params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = {key: value for key, value in (params or {}).items() if value is not None}
        if self.api_key:
            merged["api_key"] = self.api_key
        return merged

    def _unwrap_api_payload(self, payload: Any, *, path: str, status_code: int) -> Any:
        if status_code >= 400:
            detail = _coerce_error_detail(payload)
            raise AnalyticsAPIError(
                detail or f"HTTP {status_code} error",
                status_code=status_code,
                path=path,
                payload=payload,
                has_detail=detail is not None,
            )
        return payload

    @staticmethod
    def _upload_path(source_type: SourceType) -> str:
        return f"/api/ingestion/upload/{SourceType(source_type).value}"

    @staticmethod
    def _status_path(alert_id: str) -> str:
        if not alert_id:
            raise ValueError("alert_id must be a non-empty string")
        return f"/api/alerts/{alert_id}/status"

    @staticmethod
    def _list_params(
        severity: Optional[Union[AlertSeverity, str]],
        status: Optional[Union[AlertStatus, str]],
        limit: int,
        skip: int,
    ) -> Dict[str, Any]:
        return {
            "severity": AlertSeverity(severity).value if severity else None,
            "status": AlertStatus(status).value if status else None,
            "limit": limit,
            "skip": skip,
        }


class AnalyticsClient(_BaseAnalyticsClient):
    """
    Synchronous SDK for the Analytics Backend REST API.

    Usage:
        from socflow.sdk import AnalyticsClient
        with AnalyticsClient(api_key="...") as client:
            alerts = client.list_alerts(status="NEW")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(base_url=base_url, api_key=api_key, timeout=timeout)
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "AnalyticsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Tuple[str, Any, str]]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = self._url(path)
        budget = timeout if timeout is not None else self.timeout
        try:
            response = self._session.request(
                method=method,
                url=url,
                json=json_body,
                params=self._auth_params(params),
                files=files,
                headers=self._auth_headers(),
                timeout=budget,
            )
        except requests.Timeout as exc:
            raise AnalyticsTimeoutError(
                f"Request to {path} timed out after {budget:.0f}s", timeout=budget
            ) from exc
        except requests.RequestException as exc:
            raise AnalyticsConnectionError(
                f"Failed to connect to Analytics Backend at {self.base_url}: {self._redact(str(exc))}"
            ) from exc

        payload: Any
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = {}

        return self._unwrap_api_payload(payload, path=path, status_code=response.status_code)

    def upload_source(
        self,
        source_type: SourceType,
        file: SelectedFile,
        *,
        timeout: Optional[float] = None,
    ) -> UploadReceipt:
        payload = self._request(
            "POST",
            self._upload_path(source_type),
            files={"file": (file.name, file.content, file.content_type)},
            timeout=timeout,
        )
        return UploadReceipt(
            source_type=source_type,
            record_count=_record_count(payload),
            payload=payload if isinstance(payload, dict) else {},
        )

    def run_detection(
        self,
        *,
        hours_back: int = DETECTION_HOURS_BACK,
        timeout: Optional[float] = None,
    ) -> DetectionResults:
        payload = self._request(
            "POST",
            "/api/detection/run",
            json_body={"hours_back": hours_back},
            timeout=timeout,
        )
        return DetectionResults.model_validate(payload if isinstance(payload, dict) else {})

    def update_alert_status(self, alert_id: str, status: Union[AlertStatus, str]) -> Dict[str, Any]:
        payload = self._request(
            "PUT",
            self._status_path(alert_id),
            json_body={"status": AlertStatus(status).value},
        )
        return payload if isinstance(payload, dict) else {"result": payload}

    def list_alerts(
        self,
        *,
        severity: Optional[Union[AlertSeverity, str]] = None,
        status: Optional[Union[AlertStatus, str]] = None,
        limit: int = 100,
        skip: int = 0,
    ) -> List[Alert]:
        payload = self._request(
            "GET",
            "/api/alerts",
            params=self._list_params(severity, status, limit, skip),
        )
        return _alerts_from_payload(payload)


class AsyncAnalyticsClient(_BaseAnalyticsClient):
    """
    Async SDK for the Analytics Backend REST API.

    Usage:
        from socflow.sdk import AsyncAnalyticsClient
        async with AsyncAnalyticsClient(api_key="...") as client:
            results = await client.run_detection(hours_back=24)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url=base_url, api_key=api_key, timeout=timeout)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(headers={"Accept": "application/json"})

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncAnalyticsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Tuple[str, Any, str]]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = self._url(path)
        budget = timeout if timeout is not None else self.timeout
        try:
            response = await self._client.request(
                method=method,
                url=url,
                json=json_body,
                params=self._auth_params(params),
                files=files,
                headers=self._auth_headers(),
                timeout=budget,
            )
        except httpx.TimeoutException as exc:
            raise AnalyticsTimeoutError(
                f"Request to {path} timed out after {budget:.0f}s", timeout=budget
            ) from exc
        except httpx.HTTPError as exc:
            raise AnalyticsConnectionError(
                f"Failed to connect to Analytics Backend at {self.base_url}: {self._redact(str(exc))}"
            ) from exc

        if response.content:
            try:
                payload: Any = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = {}
        return self._unwrap_api_payload(payload, path=path, status_code=response.status_code)

    async def upload_source(
        self,
        source_type: SourceType,
        file: SelectedFile,
        *,
        timeout: Optional[float] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> UploadReceipt:
        reader = _ProgressReader(file.content, progress)
        payload = await self._request(
            "POST",
            self._upload_path(source_type),
            files={"file": (file.name, reader, file.content_type)},
            timeout=timeout,
        )
        return UploadReceipt(
            source_type=source_type,
            record_count=_record_count(payload),
            payload=payload if isinstance(payload, dict) else {},
        )

    async def run_detection(
        self,
        *,
        hours_back: int = DETECTION_HOURS_BACK,
        timeout: Optional[float] = None,
    ) -> DetectionResults:
        payload = await self._request(
            "POST",
            "/api/detection/run",
            json_body={"hours_back": hours_back},
            timeout=timeout,
        )
        return DetectionResults.model_validate(payload if isinstance(payload, dict) else {})

    async def update_alert_status(
        self, alert_id: str, status: Union[AlertStatus, str]
    ) -> Dict[str, Any]:
        payload = await self._request(
            "PUT",
            self._status_path(alert_id),
            json_body={"status": AlertStatus(status).value},
        )
        return payload if isinstance(payload, dict) else {"result": payload}

    async def list_alerts(
        self,
        *,
        severity: Optional[Union[AlertSeverity, str]] = None,
        status: Optional[Union[AlertStatus, str]] = None,
        limit: int = 100,
        skip: int = 0,
    ) -> List[Alert]:
        payload = await self._request(
            "GET",
            "/api/alerts",
            params=self._list_params(severity, status, limit, skip),
        )
        return _alerts_from_payload(payload)
