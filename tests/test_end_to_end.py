"""End-to-end flow against an in-process mock of the Analytics Backend."""

import json

import httpx
import pytest

from socflow.alerts import AlertCache, BulkMutationRunner
from socflow.core.types import SOURCE_ORDER, AlertStatus, JobStatus, SelectedFile, UploadStatus
from socflow.detection import DetectionJob, ManualScheduler
from socflow.ingestion import UploadCoordinator
from socflow.sdk import AsyncAnalyticsClient


class _Backend:
    """Minimal stand-in for the ingestion, detection and alert endpoints."""

    def __init__(self) -> None:
        self.requests = []
        self.alerts = {
            "a-1": {"_id": "a-1", "title": "Impossible travel", "severity": "HIGH", "status": "NEW"},
            "a-2": {"_id": "a-2", "title": "Port scan", "severity": "MEDIUM", "status": "NEW"},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if request.method == "POST" and path.startswith("/api/ingestion/upload/"):
            return httpx.Response(200, json={"message": "ok", "records_processed": 25})
        if request.method == "POST" and path == "/api/detection/run":
            body = json.loads(request.content)
            assert body == {"hours_back": 24}
            return httpx.Response(
                200,
                json={"message": "Detection completed", "auth_alerts": 2, "network_alerts": 1, "total_alerts": 3},
            )
        if request.method == "PUT" and path.startswith("/api/alerts/"):
            alert_id = path.split("/")[3]
            if alert_id not in self.alerts:
                return httpx.Response(404, json={"detail": "Alert not found"})
            self.alerts[alert_id]["status"] = json.loads(request.content)["status"]
            return httpx.Response(200, json=self.alerts[alert_id])
        if request.method == "GET" and path == "/api/alerts":
            alerts = list(self.alerts.values())
            return httpx.Response(200, json={"total": len(alerts), "alerts": alerts})
        return httpx.Response(404, json={"detail": "Not Found"})


@pytest.mark.asyncio
async def test_ingest_detect_and_triage():
    backend = _Backend()
    navigated = []
    scheduler = ManualScheduler()

    async with httpx.AsyncClient(transport=httpx.MockTransport(backend)) as http_client:
        client = AsyncAnalyticsClient(base_url="http://analytics:8000", api_key="k", http_client=http_client)
        coordinator = UploadCoordinator(client)
        job = DetectionJob(client, coordinator, navigate=navigated.append, scheduler=scheduler)

        early = await job.run()
        assert early.accepted is False

        for source_type in SOURCE_ORDER:
            coordinator.select_file(
                source_type, SelectedFile(name=f"{source_type.value}.csv", content=b"a,b\n1,2\n")
            )
        summary = await coordinator.trigger_all()

        assert summary.succeeded == 4
        assert summary.total_records == 100
        assert all(coordinator.slot_for(s).status == UploadStatus.SUCCEEDED for s in SOURCE_ORDER)
        assert coordinator.all_ready is True

        result = await job.run()

        assert result.accepted is True
        assert job.status == JobStatus.SUCCEEDED
        assert job.alerts_generated == 3
        assert scheduler.pending == [3.0]
        scheduler.fire_all()
        assert navigated == ["/dashboard"]

        cache = AlertCache()
        await cache.refresh(client)
        runner = BulkMutationRunner(client, cache)
        outcomes = await runner.apply(["a-1", "missing", "a-2"], AlertStatus.RESOLVED)

    assert [o.applied for o in outcomes] == [True, False, True]
    assert outcomes[1].error.message == "Alert not found"
    assert backend.alerts["a-1"]["status"] == "RESOLVED"
    assert cache.status_of("missing") == AlertStatus.RESOLVED
    upload_paths = [p for m, p in backend.requests if p.startswith("/api/ingestion/upload/")]
    assert upload_paths == [f"/api/ingestion/upload/{s.value}" for s in SOURCE_ORDER]
