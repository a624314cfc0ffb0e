from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel
import pytest

from classdesk.core.exceptions import (
    ClassFullException,
    InvalidStatusTransitionException,
    RepositoryException,
    ReportTimeoutException,
    ScheduleConflictException,
)
from classdesk.errors import register_error_handlers


class _Payload(BaseModel):
    count: int


@pytest.fixture
def error_client() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ScheduleConflictException(details={"conflicts": [{"session_id": "x"}]})

    @app.get("/full")
    async def full():
        raise ClassFullException("c1", 2)

    @app.get("/transition")
    async def transition():
        raise InvalidStatusTransitionException("completed", "cancelled")

    @app.get("/http")
    async def http():
        raise ReportTimeoutException("attendance", 30).to_http_exception()

    @app.get("/plain-http")
    async def plain_http():
        raise HTTPException(status_code=404, detail="Nothing here")

    @app.get("/storage")
    async def storage():
        raise RepositoryException("connection refused")

    @app.post("/validate")
    async def validate(payload: _Payload):
        return payload

    return TestClient(app, raise_server_exceptions=False)


def test_domain_exception_renders_envelope(error_client: TestClient) -> None:
    response = error_client.get("/conflict")
    assert response.status_code == 409
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "SCHEDULE_CONFLICT"
    assert body["details"]["conflicts"][0]["session_id"] == "x"


def test_capacity_is_422(error_client: TestClient) -> None:
    response = error_client.get("/full")
    assert response.status_code == 422
    assert response.json()["code"] == "CAPACITY_EXCEEDED"


def test_invalid_transition_is_400(error_client: TestClient) -> None:
    response = error_client.get("/transition")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATUS_TRANSITION"


def test_http_exception_from_domain_keeps_code(error_client: TestClient) -> None:
    response = error_client.get("/http")
    assert response.status_code == 504
    assert response.json()["code"] == "REPORT_TIMEOUT"


def test_plain_http_exception_gets_status_code(error_client: TestClient) -> None:
    response = error_client.get("/plain-http")
    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "Nothing here", "code": "NOT_FOUND"}


def test_repository_failure_is_503(error_client: TestClient) -> None:
    response = error_client.get("/storage")
    assert response.status_code == 503
    assert response.json()["code"] == "INFRASTRUCTURE_ERROR"


def test_request_validation_uses_envelope(error_client: TestClient) -> None:
    response = error_client.post("/validate", json={"count": "many"})
    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]["errors"][0]["field"] == "count"
