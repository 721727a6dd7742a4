"""
Unit tests for Logfire middleware.

This test suite covers:
- Request/response processing
- Performance metrics collection
- Error handling
- Slow request detection
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from starlette.responses import Response

from takt.server.middleware.logfire_middleware import LogfireMiddleware

MODULE = "takt.server.middleware.logfire_middleware"


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/demand"
    request.url.query = ""
    request.state = MagicMock()
    return request


class TestLogfireMiddlewareDispatch:
    """Test LogfireMiddleware.dispatch method."""

    async def test_middleware_processes_successful_request(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        mock_log.assert_called_once()
        kwargs = mock_log.call_args[1]
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/v1/demand"
        assert kwargs["status_code"] == 200
        assert kwargs["duration_ms"] >= 0

    async def test_middleware_adds_process_time_header(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=201)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request"):
            response = await middleware.dispatch(mock_request, call_next)

        assert float(response.headers["X-Process-Time"]) >= 0

    async def test_middleware_logs_and_reraises_errors(self, mock_request):
        async def call_next(request):
            raise RuntimeError("boom")

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request") as mock_log, patch(f"{MODULE}.logger") as mock_logger:
            with pytest.raises(RuntimeError, match="boom"):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args[1]["status_code"] == 500
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["error"] == "boom"

    async def test_slow_request_warning(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock(), slow_request_threshold_ms=-1)

        with patch(f"{MODULE}.log_api_request"), patch(f"{MODULE}.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]

    async def test_fast_request_does_not_warn(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock(), slow_request_threshold_ms=60_000)

        with patch(f"{MODULE}.log_api_request"), patch(f"{MODULE}.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_not_called()

    def test_threshold_defaults_to_settings(self):
        with patch(f"{MODULE}.settings") as mock_settings:
            mock_settings.slow_request_threshold_ms = 250.0
            middleware = LogfireMiddleware(app=AsyncMock())

        assert middleware.slow_request_threshold_ms == 250.0
