import io
import json
from urllib import error

import pytest

from product_editor.api_client import (
    ApiClient,
    ApiConfig,
    ApiConnectionError,
    ApiHTTPError,
    ApiResponseError,
    bearer_token_interceptor,
)
from test_support import FakeResponse, require


class RecordingOpener:
    def __init__(self, response=None, exc=None):
        self.response = response or FakeResponse(b"[]")
        self.exc = exc
        self.requests = []
        self.kwargs = []

    def __call__(self, req, **kwargs):
        self.requests.append(req)
        self.kwargs.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return self.response


def _client(opener, **config):
    return ApiClient(ApiConfig(base_url="https://api.example.com/", **config), opener=opener)


def test_get_prefixes_base_url_and_decodes_json():
    opener = RecordingOpener(FakeResponse(b'[{"id": 1}]'))
    client = _client(opener)

    data = client.get("/categories")

    require(data == [{"id": 1}], "Expected decoded JSON body")
    req = opener.requests[0]
    require(req.full_url == "https://api.example.com/categories", "Expected base URL prefix")
    require(req.get_method() == "GET", "Expected GET method")
    require(req.data is None, "GET must not send a body")


def test_post_sends_json_body():
    opener = RecordingOpener(FakeResponse(b'{"label": "Blue", "value": 11}'))
    client = _client(opener)

    data = client.post("product-features/1/values", {"value": "Blue"})

    req = opener.requests[0]
    require(req.full_url == "https://api.example.com/product-features/1/values", "Expected joined URL")
    require(req.get_method() == "POST", "Expected POST method")
    require(json.loads(req.data.decode("utf-8")) == {"value": "Blue"}, "Expected JSON payload")
    require(req.get_header("Content-type") == "application/json", "Expected JSON content type")
    require(data == {"label": "Blue", "value": 11}, "Expected decoded response")


def test_interceptors_run_in_order_and_can_rewrite_request():
    opener = RecordingOpener()
    seen = []

    def first(api_request):
        seen.append("first")
        api_request.headers["X-Trace"] = "abc"
        return api_request

    def second(api_request):
        seen.append("second")
        return api_request

    client = ApiClient(ApiConfig(base_url="https://api.example.com"), interceptors=[first], opener=opener)
    client.add_request_interceptor(second)
    client.get("/labels")

    require(seen == ["first", "second"], "Expected interceptors to run in registration order")
    require(opener.requests[0].get_header("X-trace") == "abc", "Expected interceptor header")


def test_bearer_token_interceptor_attaches_normalized_token():
    opener = RecordingOpener()
    client = _client(opener)
    client.add_request_interceptor(bearer_token_interceptor("  secret-token  "))

    client.get("/categories")

    require(
        opener.requests[0].get_header("Authorization") == "Bearer secret-token",
        "Expected Authorization header with normalized bearer token",
    )


def test_bearer_token_interceptor_omits_blank_token():
    opener = RecordingOpener()
    client = _client(opener)
    client.add_request_interceptor(bearer_token_interceptor("   "))

    client.get("/categories")

    require(not opener.requests[0].has_header("Authorization"), "Authorization header must be omitted")


def test_timeout_only_passed_when_configured():
    opener = RecordingOpener()
    _client(opener).get("/categories")
    _client(opener, timeout=5).get("/categories")

    require(opener.kwargs[0] == {}, "Expected no timeout by default")
    require(opener.kwargs[1] == {"timeout": 5}, "Expected configured timeout")


def test_http_error_is_wrapped_with_status_and_body():
    exc = error.HTTPError(
        "https://api.example.com/categories", 404, "Not Found", hdrs=None,
        fp=io.BytesIO(b'{"message": "missing"}'),
    )
    client = _client(RecordingOpener(exc=exc))

    with pytest.raises(ApiHTTPError) as info:
        client.get("/categories")

    require(info.value.status == 404, "Expected status code")
    require("missing" in info.value.body, "Expected response body to be kept")


def test_transport_failure_becomes_connection_error():
    client = _client(RecordingOpener(exc=error.URLError("connection refused")))

    with pytest.raises(ApiConnectionError):
        client.get("/categories")


def test_invalid_json_raises_response_error():
    client = _client(RecordingOpener(FakeResponse(b"<html>")))

    with pytest.raises(ApiResponseError):
        client.get("/categories")


def test_empty_body_returns_none():
    client = _client(RecordingOpener(FakeResponse(b"")))

    require(client.post("/products", {"productSKU": "A"}) is None, "Expected None for empty body")
