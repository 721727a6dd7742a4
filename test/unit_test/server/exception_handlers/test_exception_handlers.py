"""
Unit tests for server exception handlers.

Tests cover application errors, request validation failures and the
global handler for unexpected exceptions.
"""

import json
from typing import Optional
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field

from takt.core.errors import Conflict, EmailDeliveryError, NotFound
from takt.server.exception_handlers import setup_exception_handlers
from takt.server.exception_handlers.global_handler import (
    global_exception_handler,
    takt_error_handler,
    validation_exception_handler,
)

MODULE = "takt.server.exception_handlers.global_handler"


def body_of(response: JSONResponse) -> dict:
    return json.loads(response.body.decode())


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/demand"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestTaktErrorHandler:
    async def test_renders_code_and_status(self, mock_request):
        response = await takt_error_handler(mock_request, Conflict("Demand already exists", code="DUPLICATE"))

        assert response.status_code == 409
        assert body_of(response) == {
            "success": False,
            "error": {"code": "DUPLICATE", "message": "Demand already exists"},
        }

    async def test_default_code(self, mock_request):
        response = await takt_error_handler(mock_request, NotFound("Forecast not found"))

        assert response.status_code == 404
        assert body_of(response)["error"]["code"] == "NOT_FOUND"

    async def test_server_errors_are_logged(self, mock_request):
        with patch(f"{MODULE}.logger") as mock_logger:
            response = await takt_error_handler(mock_request, EmailDeliveryError("Provider down"))

        assert response.status_code == 500
        mock_logger.error.assert_called_once()


class TestValidationHandler:
    async def test_field_messages_keyed_by_field(self, mock_request):
        exc = RequestValidationError(
            [
                {"loc": ("body", "truckTypeIds"), "msg": "Value error, At least one truck type is required"},
                {"loc": ("query", "pageSize"), "msg": "Input should be greater than or equal to 1"},
            ]
        )

        response = await validation_exception_handler(mock_request, exc)

        assert response.status_code == 400
        error = body_of(response)["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"] == {
            "truckTypeIds": ["At least one truck type is required"],
            "pageSize": ["Input should be greater than or equal to 1"],
        }

    async def test_model_level_errors(self, mock_request):
        exc = RequestValidationError([{"loc": ("body",), "msg": "Value error, weekEnd must not be before weekStart"}])

        response = await validation_exception_handler(mock_request, exc)

        assert body_of(response)["error"]["details"] == {"_": ["weekEnd must not be before weekStart"]}


class TestGlobalExceptionHandler:
    async def test_exception_handler_logs_error(self, mock_request):
        with patch(f"{MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, ValueError("Test error"))

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Unhandled exception" in call_args[0][0]
        extra = call_args[1]["extra"]
        assert extra["error_type"] == "ValueError"
        assert extra["method"] == "POST"
        assert extra["path"] == "/api/v1/demand"
        assert extra["client"] == "127.0.0.1"

    async def test_exception_handler_hides_details(self, mock_request):
        with patch(f"{MODULE}.logger"):
            response = await global_exception_handler(mock_request, RuntimeError("password=hunter2"))

        assert response.status_code == 500
        body = body_of(response)
        assert body["success"] is False
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "hunter2" not in json.dumps(body)
        assert isinstance(body["error"]["details"]["errorId"], int)

    async def test_unknown_client(self, mock_request):
        mock_request.client = None

        with patch(f"{MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("boom"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class Payload(BaseModel):
    name: str = Field(min_length=1)
    capacity: Optional[int] = None


@pytest.fixture
async def app_client():
    app = FastAPI()
    setup_exception_handlers(app)

    @app.post("/items")
    async def create_item(payload: Payload):
        if payload.name == "taken":
            raise Conflict("Item exists", code="DUPLICATE")
        if payload.name == "crash":
            raise RuntimeError("unexpected")
        return {"name": payload.name}

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://localhost") as client:
        yield client


class TestSetupExceptionHandlers:
    async def test_application_error(self, app_client):
        response = await app_client.post("/items", json={"name": "taken"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE"

    async def test_validation_error(self, app_client):
        response = await app_client.post("/items", json={"name": "", "capacity": "many"})

        assert response.status_code == 400
        assert set(response.json()["error"]["details"]) == {"name", "capacity"}

    async def test_unexpected_error(self, app_client):
        response = await app_client.post("/items", json={"name": "crash"})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
