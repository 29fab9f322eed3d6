# =============================================================================
# tests/test_edge_functions.py - Edge Function Client Tests
# =============================================================================
# This module contains tests for:
# - Backoff schedule and retryable statuses
# - Retry loop (5xx, timeouts, non-retryable 4xx)
# - Response cache (hits, expiry, per-function clearing)
# - Batch invocation order and partial failures
# - Function name and body validation
#
# HTTP is mocked with a MagicMock client returning real httpx responses;
# time.sleep is patched so retries run instantly.
# =============================================================================

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock, call, patch

import httpx
import pytest
from pydantic import ValidationError

from lib.edge_functions import (
    BatchRequest,
    EdgeFunctionClient,
    EdgeFunctionResponse,
    InvokeOptions,
    ResponseCache,
    backoff_delay,
    make_cache_key,
)
from lib.edge_functions.core import is_retryable_status


@pytest.fixture
def http_client():
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def client(http_client):
    return EdgeFunctionClient(
        base_url="https://test-project.supabase.co/functions/v1",
        api_key="service-key",
        http_client=http_client,
        cache=ResponseCache(),
    )


@pytest.fixture
def no_sleep():
    with patch("lib.edge_functions.core.time.sleep") as mock_sleep:
        yield mock_sleep


# =============================================================================
# Helpers
# =============================================================================

class TestBackoff:
    """Test the retry delay schedule."""

    def test_delay_doubles_from_one_second(self):
        assert [backoff_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delay_is_capped_at_ten_seconds(self):
        assert backoff_delay(4) == 10.0
        assert backoff_delay(12) == 10.0

    @pytest.mark.parametrize("status", [500, 502, 503, 408, 429])
    def test_retryable_statuses(self, status):
        assert is_retryable_status(status)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_errors_are_not_retryable(self, status):
        assert not is_retryable_status(status)


class TestCacheKey:

    def test_key_ignores_body_key_order(self):
        assert make_cache_key("fn", {"a": 1, "b": 2}) == make_cache_key("fn", {"b": 2, "a": 1})

    def test_key_differs_per_function(self):
        assert make_cache_key("fn-a", {"x": 1}) != make_cache_key("fn-b", {"x": 1})

    def test_empty_body_matches_none(self):
        assert make_cache_key("fn", None) == make_cache_key("fn", {})

    def test_scope_keeps_function_prefix(self):
        assert make_cache_key("fn", {}, "user-1") != make_cache_key("fn", {}, "user-2")
        assert make_cache_key("fn", {}, "user-1").startswith("fn:")


# =============================================================================
# Invocation
# =============================================================================

class TestInvoke:
    """Test single invocations and the retry loop."""

    def test_success_returns_data(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {"strategy": "ok"})

        response = client.invoke("company-strategy", {"companyId": "c1"}, InvokeOptions(retries=0))

        assert response.ok
        assert response.data == {"strategy": "ok"}
        assert response.attempts == 1
        assert response.cached is False

    def test_request_is_posted_with_service_key(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {})

        client.invoke("era-chat", {"message": "hola"}, InvokeOptions(retries=0, timeout=15))

        http_client.post.assert_called_once()
        args, kwargs = http_client.post.call_args
        assert args[0] == "https://test-project.supabase.co/functions/v1/era-chat"
        assert kwargs["json"] == {"message": "hola"}
        assert kwargs["timeout"] == 15
        assert kwargs["headers"]["Authorization"] == "Bearer service-key"
        assert kwargs["headers"]["apikey"] == "service-key"

    def test_extra_headers_override_defaults(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {})

        client.invoke("check-subscription", None, InvokeOptions(retries=0, headers={"Authorization": "Bearer user-token"}))

        headers = http_client.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer user-token"

    def test_text_body_is_returned_as_text(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, text="accepted")

        response = client.invoke("call-n8n-mybusiness-webhook", {}, InvokeOptions(retries=0))

        assert response.data == "accepted"

    def test_server_error_is_retried_then_succeeds(self, client, http_client, response_factory, no_sleep):
        http_client.post.side_effect = [
            response_factory(503, {"error": "busy"}),
            response_factory(500, {"error": "boom"}),
            response_factory(200, {"done": True}),
        ]

        response = client.invoke("marketing-hub-post-creator", {}, InvokeOptions(retries=3))

        assert response.ok
        assert response.data == {"done": True}
        assert response.attempts == 3
        assert no_sleep.call_args_list == [call(1.0), call(2.0)]

    def test_exhausted_retries_return_error(self, client, http_client, response_factory, no_sleep):
        http_client.post.return_value = response_factory(500, {"error": "internal failure"})

        response = client.invoke("company-strategy", {}, InvokeOptions(retries=2))

        assert not response.ok
        assert response.data is None
        assert response.attempts == 3
        assert response.error.code == "HTTP_ERROR"
        assert response.error.status_code == 500
        assert response.error.attempts == 3
        assert response.error.function_name == "company-strategy"
        assert "internal failure" in response.error.message
        assert http_client.post.call_count == 3
        # no sleep after the last attempt
        assert no_sleep.call_count == 2

    def test_client_error_is_not_retried(self, client, http_client, response_factory, no_sleep):
        http_client.post.return_value = response_factory(400, {"message": "companyId is required"})

        response = client.invoke("company-strategy", {}, InvokeOptions(retries=3))

        assert not response.ok
        assert response.attempts == 1
        assert response.error.status_code == 400
        assert response.error.details == {"message": "companyId is required"}
        no_sleep.assert_not_called()

    def test_rate_limit_is_retried(self, client, http_client, response_factory, no_sleep):
        http_client.post.side_effect = [
            response_factory(429, {"error": "slow down"}),
            response_factory(200, {"ok": True}),
        ]

        response = client.invoke("era-chat", {}, InvokeOptions(retries=1))

        assert response.ok
        assert response.attempts == 2

    def test_timeout_is_retried_and_reported(self, client, http_client, no_sleep):
        http_client.post.side_effect = httpx.ReadTimeout("read timed out")

        response = client.invoke("execute-workforce-mission", {}, InvokeOptions(retries=1, timeout=5))

        assert not response.ok
        assert response.error.code == "TIMEOUT"
        assert response.attempts == 2

    def test_network_error_never_raises(self, client, http_client, no_sleep):
        http_client.post.side_effect = httpx.ConnectError("connection refused")

        response = client.invoke("brand-identity", {}, InvokeOptions(retries=0))

        assert response.error.code == "NETWORK_ERROR"
        assert "connection refused" in response.error.message

    @pytest.mark.parametrize("name", [
        "../../rest/v1/rpc/deduct_company_credits",
        "era-chat/../admin",
        "Company-Strategy",
        "era-chat\n",
        "",
    ])
    def test_invalid_function_name_is_rejected(self, client, http_client, name):
        response = client.invoke(name, {}, InvokeOptions(retries=2))

        assert response.error.code == "INVALID_FUNCTION_NAME"
        assert response.attempts == 0
        http_client.post.assert_not_called()

    def test_unserializable_body_is_not_sent(self, client, http_client, no_sleep):
        response = client.invoke("era-chat", {"sent_at": datetime(2024, 1, 1)}, InvokeOptions(retries=2))

        assert response.error.code == "INVALID_BODY"
        assert response.attempts == 1
        http_client.post.assert_not_called()

    def test_invalid_url_is_not_retried(self, client, http_client, no_sleep):
        http_client.post.side_effect = httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        response = client.invoke("era-chat", {}, InvokeOptions(retries=2))

        assert response.error.code == "INVALID_URL"
        assert response.attempts == 1
        no_sleep.assert_not_called()


# =============================================================================
# Caching
# =============================================================================

class TestCaching:
    """Test the response cache."""

    def test_cached_response_skips_http(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {"models": ["gpt-4o"]})
        options = InvokeOptions(retries=0, cache=True, cache_ttl=60)

        first = client.invoke("fetch-available-models", {"provider": "openai"}, options)
        second = client.invoke("fetch-available-models", {"provider": "openai"}, options)

        assert first.cached is False
        assert second.cached is True
        assert second.attempts == 0
        assert second.data == {"models": ["gpt-4o"]}
        assert http_client.post.call_count == 1

    def test_mutating_a_response_leaves_cache_intact(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {"models": ["gpt-4o"]})
        options = InvokeOptions(retries=0, cache=True, cache_ttl=60)

        first = client.invoke("fetch-available-models", {"provider": "openai"}, options)
        first.data["models"].append("tampered")
        second = client.invoke("fetch-available-models", {"provider": "openai"}, options)
        second.data["models"].clear()
        third = client.invoke("fetch-available-models", {"provider": "openai"}, options)

        assert third.cached is True
        assert third.data == {"models": ["gpt-4o"]}

    def test_different_body_is_a_miss(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {})
        options = InvokeOptions(retries=0, cache=True)

        client.invoke("fetch-available-models", {"provider": "openai"}, options)
        client.invoke("fetch-available-models", {"provider": "anthropic"}, options)

        assert http_client.post.call_count == 2

    def test_scopes_do_not_share_entries(self, client, http_client, response_factory):
        http_client.post.side_effect = [
            response_factory(200, {"plan": "pro"}),
            response_factory(200, {"plan": "free"}),
        ]

        first = client.invoke("check-subscription-status", {}, InvokeOptions(retries=0, cache=True, cache_scope="user-1"))
        second = client.invoke("check-subscription-status", {}, InvokeOptions(retries=0, cache=True, cache_scope="user-2"))

        assert first.data == {"plan": "pro"}
        assert second.data == {"plan": "free"}
        assert second.cached is False

    def test_failures_are_not_cached(self, client, http_client, response_factory):
        http_client.post.side_effect = [
            response_factory(404, {"error": "missing"}),
            response_factory(200, {"ok": True}),
        ]
        options = InvokeOptions(retries=0, cache=True)

        first = client.invoke("fetch-available-models", {}, options)
        second = client.invoke("fetch-available-models", {}, options)

        assert not first.ok
        assert second.ok
        assert second.cached is False

    def test_uncached_calls_do_not_read_cache(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {"n": 1})

        client.invoke("fetch-available-models", {}, InvokeOptions(retries=0, cache=True))
        response = client.invoke("fetch-available-models", {}, InvokeOptions(retries=0))

        assert response.cached is False
        assert http_client.post.call_count == 2

    def test_entries_expire(self):
        cache = ResponseCache()
        with patch("lib.edge_functions.core.time.monotonic", return_value=100.0):
            cache.set("fn:{}", {"v": 1}, ttl=30)
        with patch("lib.edge_functions.core.time.monotonic", return_value=129.0):
            assert cache.get("fn:{}") == (True, {"v": 1})
        with patch("lib.edge_functions.core.time.monotonic", return_value=130.0):
            assert cache.get("fn:{}") == (False, None)
        assert len(cache) == 0

    def test_clear_one_function(self):
        cache = ResponseCache()
        cache.set(make_cache_key("fetch-available-models", {}), 1, ttl=60)
        cache.set(make_cache_key("fetch-available-models", {"p": "x"}), 2, ttl=60)
        cache.set(make_cache_key("check-subscription", {}), 3, ttl=60)

        removed = cache.clear("fetch-available-models")

        assert removed == 2
        assert len(cache) == 1
        assert cache.get(make_cache_key("check-subscription", {}))[0] is True

    def test_clear_all(self):
        cache = ResponseCache()
        cache.set("a:{}", 1, ttl=60)
        cache.set("b:{}", 2, ttl=60)

        assert cache.clear() == 2
        assert len(cache) == 0


# =============================================================================
# Batch
# =============================================================================

class TestBatchInvoke:
    """Test concurrent batch invocation."""

    def test_responses_follow_request_order(self, client, http_client, response_factory):
        def respond(url, **kwargs):
            name = url.rsplit("/", 1)[-1]
            return response_factory(200, {"from": name})

        http_client.post.side_effect = respond
        requests = [
            BatchRequest(function_name=name, options=InvokeOptions(retries=0))
            for name in ["get-data-by-url", "get-brand-by-url", "call-n8n-mybusiness-webhook"]
        ]

        responses = client.batch_invoke(requests, max_workers=3)

        assert [r.data["from"] for r in responses] == [
            "get-data-by-url",
            "get-brand-by-url",
            "call-n8n-mybusiness-webhook",
        ]

    def test_one_failure_does_not_affect_others(self, client, http_client, response_factory):
        def respond(url, **kwargs):
            if url.endswith("get-brand-by-url"):
                return response_factory(400, {"error": "invalid url"})
            return response_factory(200, {"ok": True})

        http_client.post.side_effect = respond
        requests = [
            BatchRequest(function_name="get-data-by-url", options=InvokeOptions(retries=0)),
            BatchRequest(function_name="get-brand-by-url", options=InvokeOptions(retries=0)),
        ]

        responses = client.batch_invoke(requests)

        assert responses[0].ok
        assert not responses[1].ok
        assert responses[1].error.function_name == "get-brand-by-url"

    def test_empty_batch(self, client, http_client):
        assert client.batch_invoke([]) == []
        http_client.post.assert_not_called()

    def test_path_traversal_name_is_rejected(self):
        with pytest.raises(ValidationError):
            BatchRequest(function_name="../../rest/v1/rpc/deduct_company_credits")

    def test_unserializable_body_only_fails_its_entry(self, client, http_client, response_factory):
        http_client.post.return_value = response_factory(200, {"ok": True})
        requests = [
            BatchRequest(function_name="get-data-by-url", options=InvokeOptions(retries=0)),
            BatchRequest(
                function_name="get-brand-by-url",
                body={"requested_at": datetime(2024, 1, 1)},
                options=InvokeOptions(retries=0),
            ),
            BatchRequest(function_name="call-n8n-mybusiness-webhook", options=InvokeOptions(retries=0)),
        ]

        responses = client.batch_invoke(requests)

        assert [r.ok for r in responses] == [True, False, True]
        assert responses[1].error.code == "INVALID_BODY"
        assert http_client.post.call_count == 2

    def test_unexpected_exception_only_fails_its_entry(self, client, response_factory):
        def invoke(name, body, options):
            if name == "get-brand-by-url":
                raise RuntimeError("boom")
            return EdgeFunctionResponse(data={"from": name}, attempts=1)

        requests = [
            BatchRequest(function_name="get-data-by-url"),
            BatchRequest(function_name="get-brand-by-url"),
        ]

        with patch.object(client, "invoke", side_effect=invoke):
            responses = client.batch_invoke(requests)

        assert responses[0].data == {"from": "get-data-by-url"}
        assert responses[1].error.code == "INTERNAL_ERROR"
        assert responses[1].error.function_name == "get-brand-by-url"
