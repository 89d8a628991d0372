"""Tests for eunoia.ai.gateway: stub and Gemini-backed completion."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from eunoia.ai.client import AIClient, AIRateLimitError, StructuredAIResponse
from eunoia.ai.gateway import (
    CompletionRequest,
    GeminiGateway,
    ModelSchemaMismatchError,
    ModelUnavailableError,
    StubGateway,
    build_gateway,
)
from eunoia.ai.reports import BurnoutReply, RiskLevel

BURNOUT_REPLY = {
    "riskLevel": "Moderate",
    "riskScore": 45,
    "assessmentSummary": "Several stressed days and a growing task list.",
    "contributingFactors": ["3 overdue tasks"],
    "recommendations": ["Block a recovery evening"],
}


@pytest.fixture
def request_() -> CompletionRequest:
    return CompletionRequest(
        prompt_id="burnout_risk_v1",
        system_instruction="sys",
        prompt="prompt",
        output_model=BurnoutReply,
        schema_hint='{"riskLevel": "..."}',
    )


def structured(data=None, parse_success=True, parse_error=None) -> StructuredAIResponse:
    return StructuredAIResponse(
        data=data or {},
        raw_text="raw",
        model="gemini-1.5-flash",
        parse_success=parse_success,
        parse_error=parse_error,
    )


class TestStubGateway:
    def test_canned_mapping(self, request_):
        stub = StubGateway({"burnout_risk_v1": BURNOUT_REPLY})

        reply = stub.complete(request_)

        assert isinstance(reply, BurnoutReply)
        assert reply.risk_level == RiskLevel.MODERATE
        assert stub.call_count == 1
        assert stub.requests == [request_]

    def test_canned_model_instance(self, request_):
        stub = StubGateway({"burnout_risk_v1": BurnoutReply.model_validate(BURNOUT_REPLY)})
        assert stub.complete(request_).risk_score == 45

    def test_missing_reply(self, request_, stub_gateway):
        with pytest.raises(ModelUnavailableError) as exc:
            stub_gateway.complete(request_)
        assert exc.value.prompt_id == "burnout_risk_v1"
        assert stub_gateway.call_count == 1

    def test_fail_mode(self, request_):
        stub = StubGateway({"burnout_risk_v1": BURNOUT_REPLY}, fail=True)
        with pytest.raises(ModelUnavailableError):
            stub.complete(request_)

    def test_canned_exception(self, request_):
        stub = StubGateway({"burnout_risk_v1": ModelSchemaMismatchError("bad", "burnout_risk_v1")})
        with pytest.raises(ModelSchemaMismatchError):
            stub.complete(request_)

    def test_invalid_canned_reply(self, request_):
        stub = StubGateway({"burnout_risk_v1": {**BURNOUT_REPLY, "riskScore": 250}})
        with pytest.raises(ModelSchemaMismatchError, match="BurnoutReply"):
            stub.complete(request_)


class TestGeminiGateway:
    def test_valid_reply(self, request_):
        client = MagicMock(spec=AIClient)
        client.generate_json.return_value = structured(BURNOUT_REPLY)

        reply = GeminiGateway(client).complete(request_)

        assert reply.risk_score == 45
        client.generate_json.assert_called_once_with(
            "prompt", system_instruction="sys", schema_hint='{"riskLevel": "..."}'
        )

    def test_client_error_is_unavailable(self, request_):
        client = MagicMock(spec=AIClient)
        client.generate_json.side_effect = AIRateLimitError()

        with pytest.raises(ModelUnavailableError) as exc:
            GeminiGateway(client).complete(request_)
        assert isinstance(exc.value.__cause__, AIRateLimitError)

    def test_unparseable_reply(self, request_):
        client = MagicMock(spec=AIClient)
        client.generate_json.return_value = structured(parse_success=False, parse_error="JSON parse error")

        with pytest.raises(ModelSchemaMismatchError, match="JSON parse error"):
            GeminiGateway(client).complete(request_)

    def test_wrong_shape(self, request_):
        client = MagicMock(spec=AIClient)
        client.generate_json.return_value = structured({"riskLevel": "Extreme"})

        with pytest.raises(ModelSchemaMismatchError):
            GeminiGateway(client).complete(request_)


class TestBuildGateway:
    def test_disabled_gives_failing_stub(self, disabled_config, request_):
        gateway = build_gateway(disabled_config)
        assert isinstance(gateway, StubGateway)
        with pytest.raises(ModelUnavailableError):
            gateway.complete(request_)

    def test_no_key_gives_failing_stub(self, mock_genai, enabled_config):
        assert isinstance(build_gateway(enabled_config), StubGateway)

    def test_available_gives_gemini(self, mock_genai, enabled_config, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "AIzaSyTestKey1234567890abcdef")
        assert isinstance(build_gateway(enabled_config), GeminiGateway)


class TestGeminiGatewayWithSdk:
    @pytest.fixture
    def gateway(self, mock_genai, enabled_config) -> GeminiGateway:
        return GeminiGateway(AIClient(enabled_config, api_key="AIzaSyTestKey1234567890abcdef"))

    @pytest.mark.parametrize("text", ['"Moderate risk."', "45", "false"])
    def test_scalar_reply_is_schema_mismatch(self, gateway, mock_genai_response, request_, text):
        mock_genai_response.text = text

        with pytest.raises(ModelSchemaMismatchError) as exc:
            gateway.complete(request_)
        assert exc.value.prompt_id == "burnout_risk_v1"

    def test_array_reply_is_schema_mismatch(self, gateway, mock_genai_response, request_):
        mock_genai_response.text = '["Block a recovery evening"]'

        with pytest.raises(ModelSchemaMismatchError, match="BurnoutReply"):
            gateway.complete(request_)

    def test_structured_response_error_is_schema_mismatch(self, request_):
        client = MagicMock(spec=AIClient)
        client.generate_json.side_effect = ValidationError.from_exception_data(
            "StructuredAIResponse", [{"type": "dict_type", "loc": ("data",), "input": "text"}]
        )

        with pytest.raises(ModelSchemaMismatchError):
            GeminiGateway(client).complete(request_)
