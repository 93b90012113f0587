"""
Tests for the gateway routes in tapclient.routes and tapclient.main
"""

import time
from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

from tapclient.main import app
from tapclient.services import JobManager, TAPService


@pytest.fixture
def gateway(make_tap_server):
    """Start the app and attach a TAP service backed by a scripted server."""

    def _start(**server_options):
        server = make_tap_server(**server_options)
        client = stack.enter_context(TestClient(app))
        app.state.tap_service = TAPService(
            server.base_url,
            client=server.client(),
            poll_interval=0.01,
            manager=JobManager(poll_interval=0.01),
        )
        return client, server

    with ExitStack() as stack:
        yield _start


def _wait_for_status(client, job_id, *statuses, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/queries/{job_id}").json()
        if body["status"] in statuses:
            return body
        assert time.monotonic() < deadline, f"job {job_id} stuck in {body['status']}"
        time.sleep(0.01)


class TestWithoutService:
    """Test the gateway when no TAP service is configured."""

    def test_query_routes_unavailable(self):
        with TestClient(app) as client:
            app.state.tap_service = None
            assert client.get("/queries").status_code == 503
            assert client.post("/queries", json={"query": "SELECT 1"}).status_code == 503
            assert client.get("/settings/parallelism").status_code == 503

    def test_health_is_degraded(self):
        with TestClient(app) as client:
            app.state.tap_service = None
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_root(self):
        with TestClient(app) as client:
            body = client.get("/").json()
        assert body["version"] == "1.0.0"


class TestQueries:
    """Test submitting and inspecting queries."""

    def test_submit_and_fetch_result(self, gateway):
        client, server = gateway(phases=["QUEUED", "EXECUTING", "COMPLETED"], result=b"<VOTABLE/>")

        response = client.post("/queries", json={"query": "SELECT 1", "id": "q1"})
        assert response.status_code == 202
        assert response.json()["id"] == "q1"

        body = _wait_for_status(client, "q1", "COMPLETED")
        assert body["remote_job_id"] == "42"
        assert body["has_result"] is True
        assert body["result_size"] == len(b"<VOTABLE/>")

        result = client.get("/queries/q1/result")
        assert result.status_code == 200
        assert result.content == b"<VOTABLE/>"
        assert result.headers["content-type"] == "application/octet-stream"

    def test_submission_parameters_reach_the_service(self, gateway):
        client, server = gateway(phases=["COMPLETED"])

        client.post(
            "/queries",
            json={"query": "SELECT x", "language": "PQL", "id": "q1", "parameters": {"MAXREC": "3"}},
        )
        _wait_for_status(client, "q1", "COMPLETED")

        content = server.submissions[0].content
        assert b"LANG=PQL" in content
        assert b"MAXREC=3" in content
        assert b"QUERY=SELECT+x" in content

    def test_duplicate_id_conflicts(self, gateway):
        client, _ = gateway(phases=["COMPLETED"])

        assert client.post("/queries", json={"query": "SELECT 1", "id": "dup"}).status_code == 202
        assert client.post("/queries", json={"query": "SELECT 1", "id": "dup"}).status_code == 409

    def test_submit_waits_for_a_free_slot(self, gateway):
        client, _ = gateway(phases=["EXECUTING", "COMPLETED"])
        client.put("/settings/parallelism", json={"max_parallel": 1})

        assert client.post("/queries", json={"query": "SELECT 1", "id": "a"}).status_code == 202
        assert client.post("/queries", json={"query": "SELECT 2", "id": "b"}).status_code == 202

        # "b" was only admitted once the run loop of "a" had exited
        assert client.get("/queries/a").json()["status"] == "COMPLETED"
        _wait_for_status(client, "b", "COMPLETED")

    def test_invalid_body(self, gateway):
        client, _ = gateway()
        assert client.post("/queries", json={"query": ""}).status_code == 422

    def test_unknown_job(self, gateway):
        client, _ = gateway()
        assert client.get("/queries/nope").status_code == 404
        assert client.get("/queries/nope/result").status_code == 404
        assert client.post("/queries/nope/cancel").status_code == 404
        assert client.delete("/queries/nope").status_code == 404

    def test_failed_job_has_no_result(self, gateway):
        client, _ = gateway(phases=["EXECUTING", "ERROR"])

        client.post("/queries", json={"query": "SELECT 1", "id": "bad"})
        _wait_for_status(client, "bad", "ERROR")

        response = client.get("/queries/bad/result")
        assert response.status_code == 409
        assert "ERROR" in response.json()["detail"]

    def test_list_and_filter(self, gateway):
        client, _ = gateway(phases=["COMPLETED"])

        client.post("/queries", json={"query": "SELECT 1", "id": "a"})
        _wait_for_status(client, "a", "COMPLETED")
        client.post("/queries", json={"query": "SELECT 2", "id": "b"})
        _wait_for_status(client, "b", "COMPLETED")

        assert [job["id"] for job in client.get("/queries").json()] == ["a", "b"]
        assert len(client.get("/queries", params={"status": "COMPLETED"}).json()) == 2
        assert client.get("/queries", params={"status": "PENDING"}).json() == []
        assert client.get("/queries", params={"status": "bogus"}).status_code == 422

    def test_cancel(self, gateway):
        client, server = gateway(phases=["EXECUTING"])

        client.post("/queries", json={"query": "SELECT 1", "id": "slow", "timeout": 30})
        _wait_for_status(client, "slow", "EXECUTING")

        response = client.post("/queries/slow/cancel")
        assert response.status_code == 200
        assert response.json()["cancel_requested"] is True

        deadline = time.monotonic() + 5
        while app.state.tap_service.get_process("slow").is_active:
            assert time.monotonic() < deadline
            time.sleep(0.01)
        assert client.get("/queries/slow/result").status_code == 409

    def test_delete(self, gateway):
        client, _ = gateway(phases=["EXECUTING"])

        client.post("/queries", json={"query": "SELECT 1", "id": "gone", "timeout": 30})
        response = client.delete("/queries/gone")

        assert response.status_code == 200
        assert response.json()["cancel_requested"] is True
        assert client.get("/queries/gone").status_code == 404

    def test_request_id_is_echoed(self, gateway):
        client, _ = gateway()
        response = client.get("/queries", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestSettings:
    """Test runtime parallelism settings and health."""

    def test_get_and_update_parallelism(self, gateway):
        client, _ = gateway()

        assert client.get("/settings/parallelism").json() == {"max_parallel": 5}

        response = client.put("/settings/parallelism", json={"max_parallel": 2})
        assert response.status_code == 200
        assert response.json() == {"max_parallel": 2}
        assert app.state.tap_service.manager.max_parallel == 2

    def test_rejects_zero(self, gateway):
        client, _ = gateway()
        assert client.put("/settings/parallelism", json={"max_parallel": 0}).status_code == 422

    def test_health_counts_jobs(self, gateway):
        client, _ = gateway(phases=["COMPLETED"])

        client.post("/queries", json={"query": "SELECT 1", "id": "a"})
        _wait_for_status(client, "a", "COMPLETED")
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["service_url"] == "http://svc/tap"
        assert body["jobs"] == 1
        assert body["max_parallel"] == 5
