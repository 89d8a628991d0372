"""Tests for eunoia.ai.client: availability, generation, JSON parsing, error mapping."""

from __future__ import annotations

import logging
from unittest.mock import PropertyMock

import pytest
from google.api_core import exceptions as google_exceptions

from eunoia.ai.client import (
    AIAuthenticationError,
    AIBadRequestError,
    AIClient,
    AIClientError,
    AIQuotaExceededError,
    AIRateLimitError,
    AIServerError,
    AITimeoutError,
    AIUnavailableError,
    ContentBlockedError,
    ModelNotAvailableError,
    RedactingFilter,
    extract_json,
)

TEST_KEY = "AIzaSyTestKey1234567890abcdef"


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", TEST_KEY)
    return TEST_KEY


@pytest.fixture
def client(mock_genai, enabled_config, api_key) -> AIClient:
    return AIClient(enabled_config)


# =============================================================================
# Availability
# =============================================================================


class TestAvailability:
    def test_disabled(self, mock_genai, disabled_config, api_key):
        client = AIClient(disabled_config)
        assert not client.is_available()
        with pytest.raises(AIUnavailableError) as exc:
            client.generate("hello")
        assert exc.value.reason == "disabled"
        mock_genai.configure.assert_not_called()

    def test_no_api_key(self, mock_genai, enabled_config):
        client = AIClient(enabled_config)
        assert not client.is_available()
        with pytest.raises(AIUnavailableError) as exc:
            client.generate("hello")
        assert exc.value.reason == "no_api_key"

    def test_configured(self, client, mock_genai):
        assert client.is_available()
        mock_genai.configure.assert_called_once_with(api_key=TEST_KEY)

    def test_explicit_key_wins(self, mock_genai, enabled_config):
        AIClient(enabled_config, api_key="AIzaSyExplicitKey0987654321")
        mock_genai.configure.assert_called_once_with(api_key="AIzaSyExplicitKey0987654321")


# =============================================================================
# Generation
# =============================================================================


class TestGenerate:
    def test_success(self, client, mock_genai):
        response = client.generate("Summarize", system_instruction="Be brief")

        assert response.text == '{"summary": "ok"}'
        assert response.total_tokens == 150
        assert response.finish_reason == "STOP"
        assert response.model == "gemini-1.5-flash"
        assert not response.is_truncated()
        kwargs = mock_genai.GenerativeModel.call_args.kwargs
        assert kwargs["system_instruction"] == "Be brief"

    def test_timeout_passed_to_sdk(self, client, mock_genai):
        client.generate("Summarize")
        call = mock_genai.GenerativeModel.return_value.generate_content.call_args
        assert call.kwargs["request_options"] == {"timeout": 30}

    def test_model_cached_per_instruction(self, client, mock_genai):
        client.generate("a", system_instruction="x")
        client.generate("b", system_instruction="x")
        client.generate("c", system_instruction="y")
        assert mock_genai.GenerativeModel.call_count == 2

    def test_blocked_reply(self, client, mock_genai_response):
        type(mock_genai_response).text = PropertyMock(side_effect=ValueError("blocked"))
        mock_genai_response.prompt_feedback.block_reason = "SAFETY"

        with pytest.raises(ContentBlockedError) as exc:
            client.generate("Summarize")
        assert exc.value.blocked_reason == "SAFETY"

    def test_sdk_error_is_mapped(self, client, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.side_effect = google_exceptions.ServiceUnavailable("down")

        with pytest.raises(AIServerError) as exc:
            client.generate("Summarize")
        assert exc.value.status_code == 503
        assert model.generate_content.call_count == 1

    def test_model_construction_error_is_mapped(self, client, mock_genai):
        mock_genai.GenerativeModel.side_effect = google_exceptions.NotFound("no such model")

        with pytest.raises(ModelNotAvailableError):
            client.generate("Summarize")


class TestGenerateJson:
    def test_parses_reply(self, client, mock_genai):
        response = client.generate_json("Summarize", schema_hint='{"summary": "string"}')

        assert response.parse_success
        assert response.data == {"summary": "ok"}
        call = mock_genai.GenerativeModel.return_value.generate_content.call_args
        assert call.args[0].endswith('{"summary": "string"}')
        assert call.kwargs["generation_config"].response_mime_type == "application/json"

    def test_unparseable_reply(self, client, mock_genai_response):
        mock_genai_response.text = "I cannot help with that."

        response = client.generate_json("Summarize")

        assert not response.parse_success
        assert response.data == {}
        assert response.raw_text == "I cannot help with that."
        assert "JSON parse error" in response.parse_error

    @pytest.mark.parametrize("text", ['"Spending was steady this period."', "42", "true", "null"])
    def test_scalar_reply_is_not_parsed(self, client, mock_genai_response, text):
        mock_genai_response.text = text

        response = client.generate_json("Summarize")

        assert not response.parse_success
        assert response.data == {}
        assert response.raw_text == text


class TestExtractJson:
    def test_plain(self):
        assert extract_json('{"a": 1}') == ({"a": 1}, None)

    def test_fenced(self):
        data, error = extract_json('Here you go:\n```json\n{"a": [1, 2]}\n```')
        assert data == {"a": [1, 2]} and error is None

    def test_embedded(self):
        data, _ = extract_json('Sure! {"riskLevel": "Low"} Hope that helps.')
        assert data == {"riskLevel": "Low"}

    def test_broken_fence(self):
        data, error = extract_json("```json\n{not json}\n```")
        assert data is None
        assert "code block" in error

    def test_no_json(self):
        data, error = extract_json("nothing here")
        assert data is None and error.startswith("JSON parse error")


# =============================================================================
# Error Mapping
# =============================================================================


class TestMapException:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (google_exceptions.InvalidArgument("bad"), AIBadRequestError),
            (google_exceptions.PermissionDenied("no"), AIAuthenticationError),
            (google_exceptions.Unauthenticated("no"), AIAuthenticationError),
            (google_exceptions.ResourceExhausted("Quota exceeded for project"), AIQuotaExceededError),
            (google_exceptions.ResourceExhausted("Too many requests"), AIRateLimitError),
            (google_exceptions.NotFound("no such model"), ModelNotAvailableError),
            (google_exceptions.DeadlineExceeded("slow"), AITimeoutError),
            (google_exceptions.InternalServerError("oops"), AIServerError),
            (TimeoutError(), AITimeoutError),
            (RuntimeError("HTTP 429"), AIRateLimitError),
            (RuntimeError("response blocked"), ContentBlockedError),
            (RuntimeError("???"), AIClientError),
        ],
    )
    def test_mapping(self, client, error, expected):
        mapped = client._map_exception(error)
        assert type(mapped) is expected
        assert mapped.original_error is error

    def test_connection_error_means_offline(self, client):
        mapped = client._map_exception(ConnectionError("refused"))
        assert isinstance(mapped, AIUnavailableError)
        assert mapped.reason == "offline"

    def test_timeout_carries_limit(self, client):
        assert client._map_exception(google_exceptions.DeadlineExceeded("slow")).timeout_seconds == 30


# =============================================================================
# Log Redaction
# =============================================================================


class TestRedactingFilter:
    def test_redacts_key_value(self):
        assert "[REDACTED]" in RedactingFilter().redact(f"api_key={TEST_KEY}")
        assert TEST_KEY not in RedactingFilter().redact(f"api_key={TEST_KEY}")

    def test_redacts_standalone_key(self):
        key = "AIza" + "b" * 35
        assert RedactingFilter().redact(f"using {key} now") == "using [REDACTED] now"

    def test_filter_rewrites_args(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "key %s", ("token=" + "c" * 25,), None)
        RedactingFilter().filter(record)
        assert "c" * 25 not in record.getMessage()

    def test_leaves_plain_text(self):
        assert RedactingFilter().redact("Generation successful") == "Generation successful"
