"""
API endpoint tests
"""

import time
import pytest
from fastapi.testclient import TestClient
from api.main import app
from core.config import settings


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Test client backed by a file job store under tmp_path"""
    monkeypatch.setattr(settings, "JOB_STORE", "file")
    monkeypatch.setattr(settings, "DATA_PATH", str(tmp_path / "jobs"))
    monkeypatch.setattr(settings, "REPORTS_PATH", str(tmp_path / "reports"))
    monkeypatch.setattr(settings, "SCHEDULER_ENABLED", False)
    monkeypatch.setattr(settings, "API_KEY", None)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def created_job(client, job_definition):
    response = client.post("/jobs", json=job_definition)
    assert response.status_code == 201
    return response.json()


def wait_for_status(client, job_id, statuses, attempts=100):
    for _ in range(attempts):
        job = client.get(f"/jobs/{job_id}").json()
        if job["status"] in statuses:
            return job
        time.sleep(0.02)
    raise AssertionError(f"Job {job_id} never reached {statuses}")


def test_root_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["jobs"] == "/jobs"


def test_health_endpoint(client):
    """Test health endpoint returns job manager status"""
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["jobStore"] == "file"
    assert data["totalJobs"] == 0
    assert data["schedulerRunning"] is False


def test_request_id_headers(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"].startswith("req_")
    assert int(response.headers["X-API-Latency-ms"]) >= 0

    echoed = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert echoed.headers["X-Request-ID"] == "trace-123"


class TestJobEndpoints:

    def test_create_job(self, created_job):
        assert created_job["id"].startswith("etl_")
        assert created_job["status"] == "pending"
        assert created_job["name"] == "active customers"
        assert "createdAt" in created_job
        assert created_job["dataQualityRules"]["completeness"]["requiredFields"] == ["id", "email"]

    def test_create_invalid_job(self, client, job_definition):
        response = client.post("/jobs", json={**job_definition, "name": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["error_type"] == "ValidationError"
        assert body["context"]["fields"] == ["name"]
        assert client.get("/jobs").json()["total"] == 0

    def test_get_unknown_job(self, client):
        response = client.get("/jobs/etl_missing")

        assert response.status_code == 404
        assert response.json()["error_type"] == "JobNotFound"

    def test_list_jobs_with_filter(self, client, created_job, job_definition):
        other = client.post("/jobs", json=job_definition).json()
        client.post(f"/jobs/{other['id']}/cancel")

        all_jobs = client.get("/jobs").json()
        failed = client.get("/jobs", params={"status": "failed"}).json()

        assert all_jobs["total"] == 2
        assert [job["id"] for job in failed["jobs"]] == [other["id"]]

    def test_execute_and_wait(self, client, created_job, tmp_path):
        response = client.post(f"/jobs/{created_job['id']}/execute")

        assert response.status_code == 200
        job = response.json()
        assert job["status"] == "completed"
        assert job["metrics"]["processedRecords"] == 2
        assert job["result"]["loadedCount"] == 2
        assert "overallScore" in job["result"]["qualityReport"]
        assert (tmp_path / "out" / "active.json").exists()

        again = client.post(f"/jobs/{created_job['id']}/execute")
        assert again.status_code == 409
        assert again.json()["error_type"] == "InvalidJobTransition"

    def test_execute_in_background(self, client, created_job):
        response = client.post(f"/jobs/{created_job['id']}/execute", params={"wait": "false"})

        assert response.status_code == 200
        assert response.json()["status"] in ("running", "completed")
        assert wait_for_status(client, created_job["id"], {"completed"})["result"]["loadedCount"] == 2

    def test_execute_unknown_in_background(self, client):
        response = client.post("/jobs/etl_missing/execute", params={"wait": "false"})

        assert response.status_code == 404

    def test_execute_failure(self, client, job_definition, tmp_path):
        definition = {
            **job_definition,
            "source": {"type": "json_file", "config": {"filePath": str(tmp_path / "absent.json")}},
        }
        job = client.post("/jobs", json=definition).json()

        response = client.post(f"/jobs/{job['id']}/execute")

        assert response.status_code == 500
        assert response.json()["error_type"] == "JobExecutionFailed"
        assert client.get(f"/jobs/{job['id']}").json()["status"] == "failed"

    def test_lifecycle_conflicts(self, client, created_job):
        job_id = created_job["id"]

        assert client.post(f"/jobs/{job_id}/pause").status_code == 409
        assert client.post(f"/jobs/{job_id}/resume").status_code == 409

        cancelled = client.post(f"/jobs/{job_id}/cancel")
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "failed"
        assert cancelled.json()["error"] == "Cancelled by user"

        assert client.post(f"/jobs/{job_id}/cancel").status_code == 409


class TestQualityEndpoints:

    def test_assess_quality(self, client, sample_records):
        response = client.post("/quality/assess", json={
            "data": sample_records,
            "rules": {"completeness": {"requiredFields": ["email"]}},
        })

        assert response.status_code == 200
        report = response.json()
        assert report["totalRecords"] == 3
        assert report["metrics"]["completeness"]["fieldResults"]["email"]["missingCount"] == 1
        assert report["recommendations"][0]["type"] == "completeness"

        metrics = client.get("/quality/metrics").json()
        assert metrics["totalReports"] == 1
        assert len(metrics["trends"]["completeness"]) == 1

    def test_assess_rejects_bad_rules(self, client, sample_records):
        response = client.post("/quality/assess", json={
            "data": sample_records,
            "rules": {"timeliness": {"dateField": "updated", "maxAge": 0}},
        })

        assert response.status_code == 422

    def test_comprehensive_report(self, client, created_job):
        client.post(f"/jobs/{created_job['id']}/execute")

        response = client.post("/quality/report")

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["totalEtlJobs"] == 1
        assert summary["successfulJobs"] == 1
        assert summary["totalQualityReports"] == 1


def test_stats_endpoint(client, created_job):
    client.post(f"/jobs/{created_job['id']}/cancel")

    response = client.get("/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["etlStatus"]["totalJobs"] == 1
    assert data["etlStatus"]["failedJobs"] == 1
    assert data["qualityMetrics"]["totalReports"] == 0
    assert data["recentAlerts"] == []


def test_api_key_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret")

    assert client.get("/jobs").status_code == 401
    assert client.get("/jobs", headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200
