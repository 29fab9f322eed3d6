# =============================================================================
# tests/test_edge_function_catalog.py - Named Edge Function Helper Tests
# =============================================================================
# Each helper should call the right function with its retry/timeout profile.
# =============================================================================

from unittest.mock import patch

import pytest

from lib.edge_functions import EdgeFunctionResponse
from lib.edge_functions import ai, business
from lib.edge_functions.types import (
    CampaignGenerationRequest,
    ContentGenerationRequest,
    SubscriptionStatus,
)


@pytest.fixture
def ai_invoke():
    with patch("lib.edge_functions.ai.invoke_edge_function") as mock:
        mock.return_value = EdgeFunctionResponse(data={}, attempts=1)
        yield mock


@pytest.fixture
def business_invoke():
    with patch("lib.edge_functions.business.invoke_edge_function") as mock:
        mock.return_value = EdgeFunctionResponse(data={}, attempts=1)
        yield mock


class TestAIHelpers:

    def test_company_content_profile(self, ai_invoke):
        ai.generate_company_content(ContentGenerationRequest(company_id="c1", prompt="Lanzamiento"))

        name, body, options = ai_invoke.call_args.args
        assert name == "generate-company-content"
        assert body == {
            "company_id": "c1",
            "prompt": "Lanzamiento",
            "platform": "general",
            "content_type": "post",
            "language": "es",
        }
        assert options.retries == 3
        assert options.timeout == 45

    def test_batch_analyze_social(self):
        with patch("lib.edge_functions.ai.batch_invoke_edge_functions") as batch:
            ai.batch_analyze_social("c1")

        requests = batch.call_args.args[0]
        assert [r.function_name for r in requests] == list(ai.SOCIAL_ANALYSIS_FUNCTIONS)
        assert all(r.body == {"company_id": "c1"} for r in requests)


class TestBusinessHelpers:

    def test_campaign_generator(self, business_invoke):
        business.generate_campaign(CampaignGenerationRequest(company_id="c1", objective="ventas"))

        name, body, options = business_invoke.call_args.args
        assert name == "campaign-ai-generator"
        assert "budget" not in body
        assert body["platforms"] == ["instagram", "facebook"]
        assert options.retries == 2

    def test_company_strategy(self, business_invoke):
        business.generate_company_strategy("c1")

        name, body, options = business_invoke.call_args.args
        assert name == "company-strategy"
        assert body == {"company_id": "c1"}
        assert options.timeout == 60

    def test_subscription_status_is_parsed(self, business_invoke):
        business_invoke.return_value = EdgeFunctionResponse(
            data={"subscribed": True, "plan": "pro", "status": "active"}, attempts=1
        )

        response = business.check_subscription_status("user-token", "user-1")

        _, _, options = business_invoke.call_args.args
        assert options.cache is True
        assert options.cache_ttl == 60
        assert options.cache_scope == "user-1"
        assert options.headers == {"Authorization": "Bearer user-token"}
        assert response.data == SubscriptionStatus(subscribed=True, plan="pro", status="active")

    def test_token_without_user_is_not_cached(self, business_invoke):
        business.check_subscription_status("user-token")

        assert business_invoke.call_args.args[2].cache is False

    def test_subscription_failure_is_untouched(self, business_invoke):
        business_invoke.return_value = EdgeFunctionResponse(data=None, attempts=2)

        assert business.check_subscription_status().data is None
        assert business_invoke.call_args.args[2].headers == {}

    def test_available_models_cached_for_an_hour(self, business_invoke):
        business.fetch_available_models("openai")

        name, body, options = business_invoke.call_args.args
        assert name == "fetch-available-models"
        assert body == {"provider": "openai"}
        assert options.cache_ttl == 3600
