"""
Tests for the error taxonomy and its translation into the response envelope.
"""

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from app.core.errors import (
    AccountConflict,
    AccountNotFound,
    AccountServiceError,
    AlreadyAttached,
    ErrorKind,
    IdentityLookupFailed,
    InvalidToken,
    ValidationFailed,
    register_exception_handlers,
)
from accounthub_shared.schemas.common import ApiResponse


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise AccountConflict("Concurrent update for external user user_01, retry the request")

    @app.get("/attached")
    async def attached():
        raise AlreadyAttached("User already has an organization attached. User ID: 7")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    @app.get("/typed")
    async def typed(count: int = Query(...)):
        return {"count": count}

    return app


@pytest.fixture
def client():
    return TestClient(build_app(), raise_server_exceptions=False)


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        "exc_type, kind, status, error",
        [
            (ValidationFailed, ErrorKind.VALIDATION, 400, "VALIDATION_ERROR"),
            (AccountNotFound, ErrorKind.BUSINESS, 400, "BUSINESS_EXCEPTION"),
            (AlreadyAttached, ErrorKind.BUSINESS, 400, "BUSINESS_EXCEPTION"),
            (AccountConflict, ErrorKind.CONFLICT, 409, "CONFLICT"),
            (InvalidToken, ErrorKind.AUTH, 401, "INVALID_TOKEN"),
            (IdentityLookupFailed, ErrorKind.UPSTREAM, 500, "IDENTITY_LOOKUP_FAILED"),
        ],
    )
    def test_classification(self, exc_type, kind, status, error):
        exc = exc_type("something went wrong")
        assert isinstance(exc, AccountServiceError)
        assert exc.kind is kind
        assert exc.status_code == status
        assert exc.error == error
        assert exc.message == "something went wrong"

    def test_only_conflicts_are_retryable(self):
        assert AccountConflict("x").retryable is True
        assert AccountNotFound("x").retryable is False
        assert IdentityLookupFailed("x").retryable is False

    def test_error_label_override(self):
        exc = ValidationFailed("x-external-user-id header is required", error="Missing required header")
        assert exc.error == "Missing required header"
        assert ValidationFailed("other").error == "VALIDATION_ERROR"


class TestEnvelope:
    def test_failure_drops_response_key(self):
        body = ApiResponse.failure("BUSINESS_EXCEPTION", "nope").model_dump(mode="json")
        assert body == {
            "status": "FAILURE",
            "errors": [{"error": "BUSINESS_EXCEPTION", "message": "nope"}],
        }

    def test_success_drops_errors_key(self):
        body = ApiResponse[dict].success({"a": 1}).model_dump(mode="json")
        assert body == {"status": "SUCCESS", "response": {"a": 1}}

    def test_empty_success(self):
        assert ApiResponse.success().model_dump(mode="json") == {"status": "SUCCESS"}


class TestHandlers:
    def test_conflict_is_409_with_retry_after(self, client):
        resp = client.get("/conflict")

        assert resp.status_code == 409
        assert resp.headers["Retry-After"] == "1"
        assert resp.json()["errors"][0]["error"] == "CONFLICT"

    def test_business_error_is_400(self, client):
        resp = client.get("/attached")

        assert resp.status_code == 400
        assert "Retry-After" not in resp.headers
        assert resp.json() == {
            "status": "FAILURE",
            "errors": [
                {
                    "error": "BUSINESS_EXCEPTION",
                    "message": "User already has an organization attached. User ID: 7",
                }
            ],
        }

    def test_unexpected_error_is_500(self, client):
        resp = client.get("/boom")

        assert resp.status_code == 500
        assert resp.json() == {
            "status": "FAILURE",
            "errors": [{"error": "Internal server error", "message": "database exploded"}],
        }

    def test_request_validation_is_400(self, client):
        resp = client.get("/typed", params={"count": "many"})

        assert resp.status_code == 400
        error = resp.json()["errors"][0]
        assert error["error"] == "Invalid request"
        assert error["message"].startswith("count: ")
