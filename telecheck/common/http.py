"""Session wrapper for calling hosted backend functions over HTTPS."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from telecheck.common.constants import USER_AGENT
from telecheck.common.errors import TelecheckError

logger = logging.getLogger(__name__)

# Gateway and cold-start statuses seen from hosted functions.
RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 120.0

    def as_tuple(self) -> tuple[float, float]:
        return (self.connect, self.read)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    initial_wait: float = 1.0
    max_wait: float = 30.0


class HttpRequestError(TelecheckError):
    error_code = "HTTP_ERROR"

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RetryableHttpError(HttpRequestError):
    def __init__(self, message: str, *, status: int | None = None, delivered: bool = True) -> None:
        super().__init__(message, status=status)
        # False only when the server cannot have acted on the request.
        self.delivered = delivered


def _undelivered(exc: BaseException) -> bool:
    return isinstance(exc, RetryableHttpError) and not exc.delivered


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message")
        if detail:
            return f": {detail}"
    return ""


def check_response(response: requests.Response, url: str) -> dict[str, Any]:
    """Return the JSON object body or raise, marking transient statuses as retryable."""
    status = response.status_code
    if status in RETRYABLE_STATUS_CODES:
        raise RetryableHttpError(f"{url} answered HTTP {status}", status=status, delivered=status != 429)
    if status >= 400:
        raise HttpRequestError(f"{url} answered HTTP {status}{_error_detail(response)}", status=status)

    try:
        payload = response.json()
    except ValueError as exc:
        raise HttpRequestError(f"{url} returned a body that is not JSON", status=status) from exc
    if not isinstance(payload, dict):
        raise HttpRequestError(f"{url} returned JSON that is not an object", status=status)
    return payload


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        bearer_token: str | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        if bearer_token:
            self.session.headers["Authorization"] = f"Bearer {bearer_token}"

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _retrying(self, *, resend_safe: bool) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(initial=self.retry.initial_wait, max=self.retry.max_wait),
            retry=retry_if_exception_type(RetryableHttpError) if resend_safe else retry_if_exception(_undelivered),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _post_once(self, url: str, body: dict[str, Any], timeout: TimeoutConfig) -> dict[str, Any]:
        try:
            response = self.session.post(url, json=body, timeout=timeout.as_tuple())
        except requests.ConnectTimeout as exc:
            raise RetryableHttpError(f"Connecting to {url} timed out: {exc}", delivered=False) from exc
        except requests.RequestException as exc:
            raise RetryableHttpError(f"Request to {url} failed: {exc}") from exc
        return check_response(response, url)

    def post_json(
        self,
        url: str,
        body: dict[str, Any],
        *,
        timeout: TimeoutConfig | None = None,
        resend_safe: bool = True,
    ) -> dict[str, Any]:
        """POST ``body`` and return the JSON object reply.

        Writes that must not be applied twice pass ``resend_safe=False``; they
        are only resent after a connect timeout or a 429, when the server has
        not acted on the first attempt.
        """
        retrying = self._retrying(resend_safe=resend_safe)
        return retrying(self._post_once, url, body, timeout or self.timeout)
