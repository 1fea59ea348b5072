import httpx

from e2e_toolkit.api import ApiClient, ApiResponse
from e2e_toolkit.common import Settings
from testsuites.unit.doubles import log_messages


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/users/1":
        return httpx.Response(200, json={"id": 1, "auth": request.headers.get("Authorization")})
    if request.url.path == "/api/text":
        return httpx.Response(201, text="created")
    if request.url.path == "/api/down":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(404, json={"detail": "not found"})


def _client(**kwargs) -> ApiClient:
    return ApiClient(base_url="http://api.test/api", transport=httpx.MockTransport(_handler), **kwargs)


def test_successful_json_response_with_auth_token():
    with _client() as api:
        api.set_auth_token("t-123")
        response = api.get("/users/1")

    assert response.success
    assert response.status == 200
    assert response.data == {"id": 1, "auth": "Bearer t-123"}
    assert response.error is None


def test_clearing_token_removes_authorization_header():
    with _client() as api:
        api.set_auth_token("t-123")
        api.clear_auth_token()
        response = api.get("/users/1")

    assert response.data["auth"] is None


def test_text_body_is_kept_as_text():
    with _client() as api:
        response = api.post("/text", json={"name": "x"})

    assert response.success
    assert response.status == 201
    assert response.data == "created"


def test_http_error_status_is_an_unsuccessful_envelope():
    with _client() as api:
        response = api.delete("/missing")

    assert not response.success
    assert response.status == 404
    assert response.data == {"detail": "not found"}
    assert "404" in response.error


def test_transport_error_has_status_zero():
    with _client() as api:
        response = api.put("/down", json={})

    assert not response.success
    assert response.status == 0
    assert "connection refused" in response.error


def test_request_outside_context_opens_session():
    api = _client()

    response = api.patch("/users/1", json={})

    assert response.status == 200
    api.__exit__(None, None, None)
    assert api.session is None


def test_validate_response(captured_logs):
    api = ApiClient(base_url="http://api.test")

    assert api.validate_response(ApiResponse(success=True, status=200), 200)
    assert not api.validate_response(ApiResponse(success=False, status=500, error="boom"), 200)
    assert any("expected status 200, got 500" in m for m in log_messages(captured_logs, "WARNING"))


def test_defaults_come_from_settings():
    api = ApiClient(settings=Settings(api_base_url="http://settings.test/api", default_timeout=5000))

    assert api.base_url == "http://settings.test/api"
    assert api.timeout == 5.0
