import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from app.api.exceptions import register_error_handler, status_for, title_for
from app.domain.exceptions import InvariantViolation, IllegalStateTransition, ConcurrentModificationConflict, \
    ConsistencyFault, NotFound, Unauthorized, Unprocessable


@pytest.mark.parametrize("exc, status, title", [
    (InvariantViolation("x"), 400, "Invariant Violation"),
    (IllegalStateTransition("x"), 409, "Illegal State Transition"),
    (ConcurrentModificationConflict("x"), 409, "Concurrent Modification"),
    (ConsistencyFault("x"), 500, "Inventory Consistency Fault"),
    (NotFound("x"), 404, "Not Found"),
    (Unprocessable("x"), 422, "Unprocessable Entity"),
])
def test_status_and_title_follow_exception_hierarchy(exc, status, title):
    assert status_for(exc) == status
    assert title_for(exc) == title


def _client(exc: Exception) -> TestClient:
    app = FastAPI()
    register_error_handler(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return TestClient(app)


def test_concurrent_modification_is_reported_as_retryable():
    client = _client(ConcurrentModificationConflict(
        "Not enough unused tokens to reduce the category",
        ctx={"category_id": 3, "requested": 5, "available": 2}
    ))

    response = client.get("/boom")

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    body = response.json()
    assert body["retryable"] is True
    assert body["context"] == {"category_id": 3, "requested": 5, "available": 2}
    assert body["detail"] == "Not enough unused tokens to reduce the category"


def test_illegal_state_transition_is_not_retryable():
    response = _client(IllegalStateTransition("sold")).get("/boom")

    assert response.status_code == 409
    assert response.json()["retryable"] is False


def test_consistency_fault_maps_to_500_and_is_logged(caplog):
    client = _client(ConsistencyFault("mismatch", ctx={"expected": 10, "cancelled": 8}))

    with caplog.at_level("ERROR", logger="app.api"):
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["title"] == "Inventory Consistency Fault"
    assert any("Consistency fault" in r.getMessage() for r in caplog.records)


def test_unauthorized_sets_www_authenticate_header():
    response = _client(Unauthorized("Invalid token type")).get("/boom")

    assert response.status_code == 401
    assert response.headers["www-authenticate"].startswith("Bearer ")
    assert 'error_description="Invalid token type"' in response.headers["www-authenticate"]
