"""Pre-configured JSON client for the product catalogue REST API."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib import error, request

DEFAULT_BASE_URL = "http://localhost:3000"

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base exception for API client errors."""


class ApiConnectionError(ApiError):
    """Raised when the API cannot be reached."""


class ApiHTTPError(ApiError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status: int, url: str, body: str = ""):
        super().__init__(f"HTTP {status} for {url}")
        self.status = status
        self.url = url
        self.body = body


class ApiResponseError(ApiError):
    """Raised when a response body is not valid JSON."""


@dataclass
class ApiConfig:
    """Connection settings handed to ApiClient at start-up."""
    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class ApiRequest:
    """Outgoing request as seen by interceptors."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None


RequestInterceptor = Callable[[ApiRequest], ApiRequest]


def passthrough_interceptor(api_request: ApiRequest) -> ApiRequest:
    return api_request


def bearer_token_interceptor(token: Optional[str]) -> RequestInterceptor:
    """Build an interceptor attaching ``Authorization: Bearer <token>``.

    Blank tokens leave the request untouched.
    """
    normalized = (token or "").strip()

    def _attach(api_request: ApiRequest) -> ApiRequest:
        if normalized:
            api_request.headers["Authorization"] = f"Bearer {normalized}"
        return api_request

    return _attach


class ApiClient:
    """Sends JSON requests relative to a fixed base URL."""

    def __init__(
        self,
        config: ApiConfig,
        *,
        interceptors: Optional[List[RequestInterceptor]] = None,
        opener: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.config = config
        self.base_url = (config.base_url or "").rstrip("/")
        self._interceptors: List[RequestInterceptor] = list(
            interceptors if interceptors is not None else [passthrough_interceptor]
        )
        self._opener = opener or request.urlopen

    @property
    def interceptors(self) -> Tuple[RequestInterceptor, ...]:
        return tuple(self._interceptors)

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> None:
        self._interceptors.append(interceptor)

    def build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, body: Any) -> Any:
        return self.request("POST", path, body)

    def request(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        headers = {"accept": "application/json", **self.config.headers}
        if body is not None:
            headers["content-type"] = "application/json"
        api_request = ApiRequest(
            method=method.upper(),
            url=self.build_url(path),
            headers=headers,
            body=body,
        )
        for interceptor in self._interceptors:
            api_request = interceptor(api_request)

        payload = None
        if api_request.body is not None:
            payload = json.dumps(api_request.body).encode("utf-8")
        req = request.Request(
            api_request.url,
            data=payload,
            method=api_request.method,
            headers=api_request.headers,
        )
        logger.debug("%s %s", api_request.method, api_request.url)
        kwargs = {}
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        try:
            with self._opener(req, **kwargs) as resp:
                response_body = resp.read().decode("utf-8")
        except error.HTTPError as exc:
            try:
                detail = exc.read().decode("utf-8")
            except Exception:  # pylint: disable=broad-except
                detail = ""
            raise ApiHTTPError(exc.code, api_request.url, detail) from exc
        except error.URLError as exc:
            raise ApiConnectionError(
                f"Could not reach {api_request.url}: {exc.reason}"
            ) from exc
        except OSError as exc:
            raise ApiConnectionError(f"Could not reach {api_request.url}: {exc}") from exc

        if not response_body.strip():
            return None
        try:
            return json.loads(response_body)
        except json.JSONDecodeError as exc:
            raise ApiResponseError(
                f"Invalid JSON from {api_request.url}: {exc}"
            ) from exc
