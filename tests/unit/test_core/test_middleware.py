"""Unit tests for middleware."""
from unittest.mock import Mock

import pytest

from app.middleware.logging import LoggingMiddleware


def mock_request(path="/api/v1/check-ins", headers=None):
    request = Mock()
    request.state = Mock(spec=[])
    request.method = "POST"
    request.url = Mock()
    request.url.path = path
    request.client = Mock()
    request.client.host = "127.0.0.1"
    request.query_params = {}
    request.headers = headers or {}
    return request


def mock_response(status_code=200):
    response = Mock()
    response.headers = {}
    response.status_code = status_code
    return response


@pytest.mark.unit
class TestLoggingMiddleware:
    """Test logging middleware."""

    @pytest.mark.asyncio
    async def test_generates_request_id(self):
        request = mock_request()
        seen = {}

        async def call_next(req):
            seen["request_id"] = req.state.request_id
            return mock_response()

        response = await LoggingMiddleware(Mock()).dispatch(request, call_next)

        assert seen["request_id"]
        assert response.headers["X-Request-ID"] == seen["request_id"]

    @pytest.mark.asyncio
    async def test_reuses_incoming_request_id(self):
        request = mock_request(headers={"X-Request-ID": "trace-123"})

        async def call_next(req):
            return mock_response(409)

        response = await LoggingMiddleware(Mock()).dispatch(request, call_next)

        assert request.state.request_id == "trace-123"
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_unique_ids_per_request(self):
        ids = []

        async def call_next(req):
            ids.append(req.state.request_id)
            return mock_response()

        middleware = LoggingMiddleware(Mock())
        await middleware.dispatch(mock_request(), call_next)
        await middleware.dispatch(mock_request(), call_next)

        assert len(set(ids)) == 2

    @pytest.mark.asyncio
    async def test_health_checks_still_get_request_id(self):
        async def call_next(req):
            return mock_response()

        response = await LoggingMiddleware(Mock()).dispatch(mock_request(path="/health"), call_next)
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_exceptions_propagate(self):
        async def call_next(req):
            raise RuntimeError("handler crashed")

        with pytest.raises(RuntimeError, match="handler crashed"):
            await LoggingMiddleware(Mock()).dispatch(mock_request(), call_next)
