"""Tests for the /api/v1 notification routes."""

import pytest
from fastapi.testclient import TestClient

from api.router import api_router
from utils.tests import create_test_app

pytestmark = pytest.mark.unit

NOTIFICATIONS = "/api/v1/notifications"


class TestSubmitNotification:
    def test_accepted(self, client, caller_headers, submission_body):
        response = client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)

        assert response.status_code == 202
        data = response.json()
        assert data["status"] == "queued"
        assert data["replayed"] is False
        assert data["job_id"]

    def test_replayed(self, client, caller_headers, submission_body, dispatch_service):
        """A repeat returns the original job and creates nothing new."""
        first = client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)
        second = client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)

        assert second.status_code == 202
        assert second.json()["job_id"] == first.json()["job_id"]
        assert second.json()["replayed"] is True
        assert dispatch_service.queues.stats()["high_ready"] == 1

    def test_key_in_body(self, client, submission_body):
        response = client.post(
            NOTIFICATIONS,
            json={**submission_body, "idempotency_key": "body-key"},
            headers={"X-Caller-ID": "billing"},
        )

        assert response.status_code == 202

    def test_key_reused_for_different_request(self, client, caller_headers, submission_body):
        client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)

        response = client.post(
            NOTIFICATIONS,
            json={**submission_body, "template": "reminder"},
            headers=caller_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "IDEMPOTENCY_KEY_REUSED"

    def test_missing_idempotency_key(self, client, submission_body):
        response = client.post(
            NOTIFICATIONS, json=submission_body, headers={"X-Caller-ID": "billing"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "MISSING_IDEMPOTENCY_KEY"

    def test_missing_caller(self, client, submission_body):
        response = client.post(
            NOTIFICATIONS, json=submission_body, headers={"Idempotency-Key": "k"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "MISSING_CALLER_ID"

    @pytest.mark.parametrize(
        "override",
        [{"channel": "pager"}, {"priority": "urgent"}, {"recipient_id": ""}, {"unknown": 1}],
    )
    def test_invalid_body(self, client, caller_headers, submission_body, override):
        response = client.post(
            NOTIFICATIONS, json={**submission_body, **override}, headers=caller_headers
        )

        assert response.status_code == 422

    def test_queue_saturated(self, dispatch_service_factory, caller_headers, submission_body):
        service = dispatch_service_factory(DISPATCH_QUEUE_CAPACITY_HIGH=1)
        client = TestClient(create_test_app(api_router, dispatch_service=service))
        client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)

        response = client.post(
            NOTIFICATIONS,
            json=submission_body,
            headers={**caller_headers, "Idempotency-Key": "invoice-43"},
        )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "1"
        assert response.json()["detail"]["error_code"] == "QUEUE_SATURATED"

    def test_service_not_running(self, caller_headers, submission_body):
        client = TestClient(create_test_app(api_router))

        response = client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)

        assert response.status_code == 503
        assert response.json()["detail"]["error_code"] == "SERVICE_UNAVAILABLE"


class TestNotificationStatus:
    def test_get_status(self, client, caller_headers, submission_body):
        job_id = client.post(
            NOTIFICATIONS, json=submission_body, headers=caller_headers
        ).json()["job_id"]

        response = client.get(f"{NOTIFICATIONS}/{job_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["job_id"] == job_id
        assert data["status"] == "queued"
        assert data["channel"] == "email"
        assert data["priority"] == "high"
        assert data["attempt_history"] == []

    def test_unknown_job(self, client):
        response = client.get(f"{NOTIFICATIONS}/missing")

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "JOB_NOT_FOUND"

    def test_cancel(self, client, caller_headers, submission_body):
        job_id = client.post(
            NOTIFICATIONS, json=submission_body, headers=caller_headers
        ).json()["job_id"]

        response = client.delete(f"{NOTIFICATIONS}/{job_id}")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        again = client.delete(f"{NOTIFICATIONS}/{job_id}")
        assert again.status_code == 409
        assert again.json()["detail"]["error_code"] == "JOB_NOT_CANCELLABLE"


class TestOperatorRoutes:
    def test_dead_letters_empty(self, client):
        response = client.get("/api/v1/dead-letters")

        assert response.status_code == 200
        assert response.json() == {"total": 0, "entries": []}

    def test_dead_letters_limit_validated(self, client):
        assert client.get("/api/v1/dead-letters?limit=0").status_code == 422

    def test_stats(self, client, caller_headers, submission_body):
        client.post(NOTIFICATIONS, json=submission_body, headers=caller_headers)

        response = client.get("/api/v1/dispatch/stats")

        assert response.status_code == 200
        assert response.json()["queues"]["high_ready"] == 1
