"""
Integration Tests for the FastAPI Backend

Tests for API endpoints: health checks, report generation and download.
Uses async httpx for ASGI app testing.
"""
import pytest
import httpx

from ehr.main import app
from ehr.services.reports import ReportService


@pytest.fixture
def report_service(text_compositor, tmp_path):
    """Swap in a text-format service writing to a temp directory."""
    previous = app.state.report_service
    app.state.report_service = ReportService(compositor=text_compositor, output_dir=str(tmp_path))
    yield app.state.report_service
    app.state.report_service = previous


@pytest.fixture
async def async_client(report_service):
    """Create async test client."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_root_endpoint(self, async_client):
        response = await async_client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    async def test_health_endpoint(self, async_client):
        response = await async_client.get("/health")
        assert response.status_code == 200
        assert response.json()["uptime_seconds"] >= 0


@pytest.mark.asyncio
class TestReportEndpoints:
    """Tests for report generation endpoints."""

    async def test_generate_report(self, async_client, full_input):
        response = await async_client.post("/api/v1/reports/patient", json=full_input)
        assert response.status_code == 200

        data = response.json()
        assert data["patient_id"] == "P-1001"
        assert data["filename"] == "patient_P-1001_report.txt"
        assert data["format"] == "txt"
        assert data["page_count"] >= 1
        assert data["report_id"].startswith("PR-")

    async def test_download_report(self, async_client, full_input):
        created = await async_client.post("/api/v1/reports/patient", json=full_input)
        report_id = created.json()["report_id"]

        response = await async_client.get(f"/api/v1/reports/{report_id}/download")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert "PATIENT MEDICAL REPORT" in body
        assert "BP Status: High | Sugar Status: High" in body
        assert "Generated by: Dr. Smith" in body

    async def test_download_unknown_report(self, async_client):
        response = await async_client.get("/api/v1/reports/NONEXISTENT/download")
        assert response.status_code == 404

    async def test_missing_generated_by(self, async_client, minimal_input):
        del minimal_input["generatedBy"]
        response = await async_client.post("/api/v1/reports/patient", json=minimal_input)
        assert response.status_code == 422

    async def test_missing_patient_id(self, async_client, minimal_input):
        del minimal_input["patientInfo"]["id"]
        response = await async_client.post("/api/v1/reports/patient", json=minimal_input)
        assert response.status_code == 422

    async def test_malformed_dates_still_generate(self, async_client, minimal_input):
        minimal_input["patientInfo"]["createdAt"] = "not-a-date"
        response = await async_client.post("/api/v1/reports/patient", json=minimal_input)
        assert response.status_code == 200
