# =============================================================================
# lib/edge_functions/core.py - Edge Function Invocation Wrapper
# =============================================================================
# Calls Supabase Edge Functions over HTTP with:
# - Retry with exponential backoff (capped at MAX_RETRY_DELAY)
# - Optional in-memory TTL cache keyed by function name + serialized body
# - Concurrent batch invocation with results in request order
#
# Remote failures never raise: every call returns an EdgeFunctionResponse
# carrying either `data` or `error`.
#
# Usage:
#   from lib.edge_functions import invoke_edge_function, InvokeOptions
#   response = invoke_edge_function(
#       "company-strategy",
#       {"company_id": company_id},
#       InvokeOptions(retries=2, timeout=60),
#   )
#   if response.ok:
#       strategy = response.data
# =============================================================================

from __future__ import annotations

import copy
import json
import logging
import re
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import httpx

from app.config import settings
from lib.edge_functions.types import (
    FUNCTION_NAME_PATTERN,
    BatchRequest,
    EdgeFunctionError,
    EdgeFunctionResponse,
    InvokeOptions,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

BASE_RETRY_DELAY = 1.0  # seconds
MAX_RETRY_DELAY = 10.0  # seconds

# 4xx responses other than these are the caller's fault and are not retried
RETRYABLE_CLIENT_STATUSES = {408, 429}

VALID_FUNCTION_NAME = re.compile(FUNCTION_NAME_PATTERN)


def backoff_delay(attempt: int) -> float:
    """
    Delay before retry number `attempt` (0-based).

    1s, 2s, 4s, 8s, then 10s for every later retry.
    """
    return min(BASE_RETRY_DELAY * (2 ** attempt), MAX_RETRY_DELAY)


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_CLIENT_STATUSES


def make_cache_key(function_name: str, body: dict[str, Any] | None, scope: str | None = None) -> str:
    """Cache key: function name, optional caller scope, then the body serialized with sorted keys."""
    serialized = json.dumps(body or {}, sort_keys=True, default=str)
    if scope:
        return f"{function_name}:{scope}:{serialized}"
    return f"{function_name}:{serialized}"


# =============================================================================
# Response Cache
# =============================================================================

class ResponseCache:
    """
    Thread-safe in-memory TTL cache for successful responses.

    Entries are evicted lazily when read after expiry. Values are copied
    in and out so callers never share the cached object.
    """

    def __init__(self):
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[bool, Any]:
        """Return (hit, value). Expired entries count as a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None

            expires_at, value = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return False, None
            return True, copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + ttl, copy.deepcopy(value))

    def clear(self, function_name: str | None = None) -> int:
        """Drop every entry, or only the entries of one function."""
        with self._lock:
            if function_name is None:
                removed = len(self._entries)
                self._entries.clear()
                return removed

            prefix = f"{function_name}:"
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Module-level cache shared by every client in the process
_response_cache = ResponseCache()


# =============================================================================
# Attempt Failure
# =============================================================================

class _AttemptFailed(Exception):
    """One failed HTTP attempt; converted to EdgeFunctionError by the caller."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
        retryable: bool = True,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.retryable = retryable
        self.details = details


# =============================================================================
# Client
# =============================================================================

class EdgeFunctionClient:
    """
    HTTP client for Supabase Edge Functions.

    Example:
        client = EdgeFunctionClient()
        response = client.invoke("fetch-available-models", {"provider": "openai"},
                                 InvokeOptions(cache=True, cache_ttl=3600))

    Attributes:
        base_url: Functions endpoint root ({SUPABASE_URL}/functions/v1)
        api_key: Key sent as Bearer token and apikey header
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        http_client: httpx.Client | None = None,
        cache: ResponseCache | None = None,
    ):
        self.base_url = (base_url or settings.functions_base_url).rstrip("/")
        self.api_key = api_key or settings.SUPABASE_SERVICE_KEY
        self._http = http_client or httpx.Client()
        self._cache = cache if cache is not None else _response_cache

    # -------------------------------------------------------------------------
    # Single Invocation
    # -------------------------------------------------------------------------

    def invoke(
        self,
        function_name: str,
        body: dict[str, Any] | None = None,
        options: InvokeOptions | None = None,
    ) -> EdgeFunctionResponse:
        """
        Invoke an edge function, retrying failed attempts with backoff.

        Args:
            function_name: Deployed function name (e.g. "company-strategy")
            body: JSON body (defaults to {})
            options: Retry/timeout/cache profile (defaults from settings)

        Returns:
            EdgeFunctionResponse with data on success, error otherwise
        """
        options = options or InvokeOptions()
        body = body or {}

        if not VALID_FUNCTION_NAME.fullmatch(function_name or ""):
            logger.warning(f"Rejected invalid edge function name: {function_name!r}")
            return EdgeFunctionResponse(
                error=EdgeFunctionError(
                    message=f"Invalid edge function name: {function_name!r}",
                    function_name=function_name or "",
                    code="INVALID_FUNCTION_NAME",
                ),
            )

        cache_key = make_cache_key(function_name, body, options.cache_scope) if options.cache else None
        if cache_key:
            hit, cached_data = self._cache.get(cache_key)
            if hit:
                logger.debug(f"Cache hit for {function_name}")
                return EdgeFunctionResponse(data=cached_data, cached=True, attempts=0)

        max_attempts = options.retries + 1
        last_failure: _AttemptFailed | None = None
        attempts = 0

        for attempt in range(max_attempts):
            attempts = attempt + 1
            try:
                data = self._call_once(function_name, body, options)
            except _AttemptFailed as failure:
                last_failure = failure
                logger.warning(
                    f"Edge function {function_name} failed "
                    f"(attempt {attempts}/{max_attempts}): {failure.message}"
                )
                if not failure.retryable or attempts >= max_attempts:
                    break
                time.sleep(backoff_delay(attempt))
                continue

            if cache_key:
                self._cache.set(cache_key, data, options.cache_ttl)
            if attempts > 1:
                logger.info(f"Edge function {function_name} succeeded after {attempts} attempts")
            return EdgeFunctionResponse(data=data, attempts=attempts)

        return EdgeFunctionResponse(
            error=EdgeFunctionError(
                message=last_failure.message if last_failure else "Unknown error",
                function_name=function_name,
                code=last_failure.code if last_failure else "EDGE_FUNCTION_ERROR",
                status_code=last_failure.status_code if last_failure else None,
                attempts=attempts,
                details=last_failure.details if last_failure else None,
            ),
            attempts=attempts,
        )

    def _call_once(
        self,
        function_name: str,
        body: dict[str, Any],
        options: InvokeOptions,
    ) -> Any:
        """Make one HTTP attempt; raise _AttemptFailed on any failure."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": "application/json",
            **options.headers,
        }

        try:
            json.dumps(body)
        except (TypeError, ValueError) as e:
            raise _AttemptFailed(f"Body is not JSON serializable: {e}", code="INVALID_BODY", retryable=False)

        try:
            response = self._http.post(
                f"{self.base_url}/{function_name}",
                json=body,
                headers=headers,
                timeout=options.timeout,
            )
        except httpx.TimeoutException as e:
            raise _AttemptFailed(f"Request timed out after {options.timeout}s: {e}", code="TIMEOUT")
        except httpx.HTTPError as e:
            raise _AttemptFailed(f"Network error: {e}", code="NETWORK_ERROR")
        except httpx.InvalidURL as e:
            raise _AttemptFailed(f"Invalid URL: {e}", code="INVALID_URL", retryable=False)

        payload = self._parse_body(response)

        if response.status_code >= 400:
            raise _AttemptFailed(
                self._error_message(payload, response.status_code),
                code="HTTP_ERROR",
                status_code=response.status_code,
                retryable=is_retryable_status(response.status_code),
                details=payload,
            )

        return payload

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    @staticmethod
    def _error_message(payload: Any, status_code: int) -> str:
        if isinstance(payload, dict):
            message = payload.get("error") or payload.get("message")
            if message:
                return f"HTTP {status_code}: {message}"
        if isinstance(payload, str) and payload:
            return f"HTTP {status_code}: {payload[:200]}"
        return f"HTTP {status_code}"

    # -------------------------------------------------------------------------
    # Batch Invocation
    # -------------------------------------------------------------------------

    def batch_invoke(
        self,
        requests: list[BatchRequest],
        max_workers: int | None = None,
    ) -> list[EdgeFunctionResponse]:
        """
        Invoke several functions concurrently.

        Returns:
            One response per request, in request order
        """
        if not requests:
            return []

        workers = min(max_workers or settings.EDGE_FUNCTION_BATCH_CONCURRENCY, len(requests))
        logger.info(f"Batch invoking {len(requests)} edge functions ({workers} workers)")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self.invoke, request.function_name, request.body, request.options)
                for request in requests
            ]
            return [
                self._batch_result(request, future)
                for request, future in zip(requests, futures)
            ]

    @staticmethod
    def _batch_result(request: BatchRequest, future: Future) -> EdgeFunctionResponse:
        """A batch entry's response; an unexpected error only fails that entry."""
        try:
            return future.result()
        except Exception as e:
            logger.exception(f"Batch call to {request.function_name} raised: {e}")
            return EdgeFunctionResponse(
                error=EdgeFunctionError(
                    message=f"Unexpected error: {e}",
                    function_name=request.function_name,
                    code="INTERNAL_ERROR",
                ),
            )

    def clear_cache(self, function_name: str | None = None) -> int:
        return self._cache.clear(function_name)

    def close(self) -> None:
        self._http.close()


# =============================================================================
# Module-Level API
# =============================================================================

_default_client: EdgeFunctionClient | None = None
_default_client_lock = threading.Lock()


def get_edge_function_client() -> EdgeFunctionClient:
    """Get or create the shared EdgeFunctionClient."""
    global _default_client
    with _default_client_lock:
        if _default_client is None:
            _default_client = EdgeFunctionClient()
        return _default_client


def close_edge_function_client() -> None:
    """Close the shared client; the next call creates a fresh one."""
    global _default_client
    with _default_client_lock:
        if _default_client is not None:
            _default_client.close()
            _default_client = None


def invoke_edge_function(
    function_name: str,
    body: dict[str, Any] | None = None,
    options: InvokeOptions | None = None,
) -> EdgeFunctionResponse:
    """Invoke an edge function with the shared client. Never raises for remote failures."""
    return get_edge_function_client().invoke(function_name, body, options)


def batch_invoke_edge_functions(
    requests: list[BatchRequest],
    max_workers: int | None = None,
) -> list[EdgeFunctionResponse]:
    """Invoke several edge functions concurrently with the shared client."""
    return get_edge_function_client().batch_invoke(requests, max_workers=max_workers)


def clear_edge_function_cache(function_name: str | None = None) -> int:
    """
    Drop cached responses.

    Returns:
        Number of entries removed
    """
    removed = _response_cache.clear(function_name)
    logger.debug(f"Cleared {removed} cached edge function responses")
    return removed
