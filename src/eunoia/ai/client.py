"""Gemini API client for 4Eunoia.

This module is the SOLE INTERFACE to the Gemini API. No other file in the
codebase imports google-generativeai.

The client provides:
- Typed exceptions for predictable error handling
- Structured response models for consistent outputs
- JSON extraction from model replies (plain, fenced, or embedded)
- A bounded wait on every call (``ai.timeout_seconds``)
- Security-first logging (never logs secrets, prompts, or replies)

There is deliberately no retry loop: a report flow that sees a failure
switches to its rule-based fallback straight away.

Example:
    >>> from eunoia.ai.client import AIClient, AIClientError
    >>>
    >>> client = AIClient()
    >>> try:
    ...     response = client.generate_json("Summarize...", schema_hint='{"summary": "string"}')
    ... except AIClientError:
    ...     ...  # use the fallback

Security Rules:
- NEVER log API keys
- NEVER log full prompts (they carry diary excerpts)
- NEVER log full responses
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Literal

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import GenerationConfig, HarmBlockThreshold, HarmCategory
from pydantic import BaseModel, Field

from eunoia.config import APIKeyNotFoundError, AppConfig, get_api_key, get_config


# =============================================================================
# Secure Logging Filter
# =============================================================================


class RedactingFilter(logging.Filter):
    """Logging filter that redacts API keys and tokens.

    Patterns detected:
    - Values following api_key=, key=, token=, auth=, secret=, bearer
    - Strings that look like Gemini API keys (AIza...)

    Example:
        >>> logger.addFilter(RedactingFilter())
        >>> logger.info("Using api_key=AIzaSy123456789...")
        # Output: "Using api_key=[REDACTED]"
    """

    KEY_VALUE_PATTERNS = [
        re.compile(r'(api_key\s*[=:]\s*)["\']?([a-zA-Z0-9_\-.]{20,})["\']?', re.IGNORECASE),
        re.compile(r'(key\s*[=:]\s*)["\']?([a-zA-Z0-9_\-.]{20,})["\']?', re.IGNORECASE),
        re.compile(r'(token\s*[=:]\s*)["\']?([a-zA-Z0-9_\-.]{20,})["\']?', re.IGNORECASE),
        re.compile(r'(auth\s*[=:]\s*)["\']?([a-zA-Z0-9_\-.]{20,})["\']?', re.IGNORECASE),
        re.compile(r'(secret\s*[=:]\s*)["\']?([a-zA-Z0-9_\-.]{20,})["\']?', re.IGNORECASE),
        re.compile(r"(bearer\s+)([a-zA-Z0-9_\-.]{20,})", re.IGNORECASE),
    ]
    STANDALONE_PATTERNS = [
        re.compile(r"\bAIza[a-zA-Z0-9_\-]{30,}\b"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self.redact(v) if isinstance(v, str) else v for k, v in record.args.items()}
            else:
                record.args = tuple(self.redact(a) if isinstance(a, str) else a for a in record.args)
        return True

    def redact(self, text: str) -> str:
        for pattern in self.KEY_VALUE_PATTERNS:
            text = pattern.sub(r"\1[REDACTED]", text)
        for pattern in self.STANDALONE_PATTERNS:
            text = pattern.sub("[REDACTED]", text)
        return text


logger = logging.getLogger(__name__)
logger.addFilter(RedactingFilter())


# =============================================================================
# Exception Hierarchy
# =============================================================================


class AIClientError(Exception):
    """Base exception for all AI client errors.

    Attributes:
        message: Human-readable error description (safe to log).
        original_error: The underlying exception, if any.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        return self.message


class AIUnavailableError(AIClientError):
    """AI cannot be used at all (disabled, no key).

    Attributes:
        reason: Why AI is unavailable.
    """

    def __init__(
        self,
        reason: Literal["disabled", "no_api_key", "offline", "service_down"],
        message: str | None = None,
    ) -> None:
        self.reason = reason
        default_messages = {
            "disabled": "AI features are disabled in configuration",
            "no_api_key": "No Gemini API key configured",
            "offline": "Cannot reach Gemini API (network offline)",
            "service_down": "Gemini service is temporarily unavailable",
        }
        super().__init__(message or default_messages.get(reason, f"AI unavailable: {reason}"))


class AIAuthenticationError(AIClientError):
    """API key is invalid or expired."""

    def __init__(
        self,
        message: str = "API authentication failed. Please check your API key.",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)


class AIRateLimitError(AIClientError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please wait before retrying.",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)


class AIQuotaExceededError(AIClientError):
    """Quota or billing limit reached."""

    def __init__(
        self,
        message: str = "API quota exceeded. Check your billing and usage limits.",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)


class AIServerError(AIClientError):
    """Server-side error (5xx).

    Attributes:
        status_code: HTTP status code if available.
    """

    def __init__(
        self,
        message: str = "AI server error. The service may be temporarily unavailable.",
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.status_code = status_code


class AIBadRequestError(AIClientError):
    """The request itself was rejected as malformed."""

    def __init__(
        self,
        message: str = "Invalid request to AI service.",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)


class AITimeoutError(AIClientError):
    """The call exceeded its timeout.

    Attributes:
        timeout_seconds: The timeout that was exceeded.
    """

    def __init__(
        self,
        timeout_seconds: float,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message or f"Request timed out after {timeout_seconds} seconds",
            original_error=original_error,
        )
        self.timeout_seconds = timeout_seconds


class ModelNotAvailableError(AIClientError):
    """The configured model does not exist or is not enabled for this key."""

    def __init__(
        self,
        model_name: str,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message or f"Model '{model_name}' not found. Check model name in configuration.",
            original_error=original_error,
        )
        self.model_name = model_name


class ContentBlockedError(AIClientError):
    """The prompt or reply was blocked by safety filters.

    Attributes:
        blocked_reason: The reason reported by the API, if any.
    """

    def __init__(
        self,
        message: str = "Content blocked by safety filters.",
        blocked_reason: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.blocked_reason = blocked_reason


# =============================================================================
# Response Models
# =============================================================================


class AIResponse(BaseModel):
    """Standardized response from a generation call."""

    text: str = Field(..., description="The generated content")
    model: str = Field(..., description="Model that generated this response")
    total_tokens: int | None = Field(None, description="Total tokens used")
    finish_reason: str | None = Field(None, description="Why generation stopped")
    latency_ms: float | None = Field(None, description="Generation time in ms")

    def is_truncated(self) -> bool:
        return self.finish_reason in {"MAX_TOKENS", "LENGTH", "RECITATION"}


class StructuredAIResponse(BaseModel):
    """Response when requesting JSON output.

    If JSON parsing fails, ``parse_success`` is False and ``parse_error``
    says why; ``raw_text`` always holds the reply as received.
    """

    data: dict[str, Any] | list[Any] = Field(default_factory=dict)
    raw_text: str
    model: str
    tokens_used: int | None = None
    latency_ms: float | None = None
    parse_success: bool = True
    parse_error: str | None = None


JSON_ONLY_INSTRUCTION = (
    "You must respond with valid JSON only. No markdown, no explanations, "
    "no code blocks - just pure JSON that can be parsed directly."
)


def extract_json(text: str) -> tuple[dict[str, Any] | list[Any] | None, str | None]:
    """Pull a JSON document out of a model reply.

    Tries, in order: the whole text, a fenced ```json block, the outermost
    ``{...}`` or ``[...]`` span.

    Returns:
        ``(data, None)`` on success, ``(None, error message)`` otherwise.
    """
    text = text.strip()
    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        first_error = e.msg

    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if fenced:
        try:
            return json.loads(fenced.group(1)), None
        except json.JSONDecodeError:
            return None, f"JSON parse error in code block: {first_error}"

    embedded = re.search(r"(\{[\s\S]*\}|\[[\s\S]*\])", text)
    if embedded:
        try:
            return json.loads(embedded.group(1)), None
        except json.JSONDecodeError:
            return None, f"JSON parse error in extracted content: {first_error}"

    return None, f"JSON parse error: {first_error}"


# =============================================================================
# Main AI Client Class
# =============================================================================


class AIClient:
    """Client for all Gemini API communication.

    The client is lazy: no API call is made until :meth:`generate` runs.

    Example:
        >>> client = AIClient()
        >>> if client.is_available():
        ...     response = client.generate_json(
        ...         prompt="Summarize this week's spending...",
        ...         system_instruction="You are a personal finance assistant.",
        ...         schema_hint='{"spendingSummary": "string"}',
        ...     )
        ...     print(response.data)

    Args:
        config: Application configuration. If None, uses get_config().
        api_key: Override API key. If None, loads from configured sources.
    """

    def __init__(self, config: AppConfig | None = None, api_key: str | None = None) -> None:
        self._config = config or get_config()
        self._api_key: str | None = None
        self._is_configured = False
        self._models: dict[tuple[str, str | None], Any] = {}
        self._logger = logging.getLogger(f"{__name__}.AIClient")
        self._logger.addFilter(RedactingFilter())

        if not self._config.ai.is_enabled():
            self._logger.info("AI is disabled in configuration")
            return

        try:
            self._api_key = api_key or get_api_key().get_secret_value()
        except APIKeyNotFoundError:
            self._logger.warning("No API key configured")
            return

        try:
            genai.configure(api_key=self._api_key)
            self._is_configured = True
            self._logger.info(f"AI client configured for model {self._config.ai.model_name}")
        except Exception as e:
            # The SDK raises assorted types here; the key must not leak via str(e)
            self._logger.error(f"Failed to configure AI SDK: {type(e).__name__}")

    @property
    def model_name(self) -> str:
        return self._config.ai.model_name

    def is_available(self) -> bool:
        """True when AI is enabled and the SDK is configured with a key."""
        return self._config.ai.is_enabled() and self._is_configured

    def _ensure_available(self) -> None:
        if not self._config.ai.is_enabled():
            raise AIUnavailableError("disabled")
        if not self._is_configured or not self._api_key:
            raise AIUnavailableError("no_api_key")

    def _get_model(self, system_instruction: str | None) -> Any:
        cache_key = (self.model_name, system_instruction)
        if cache_key not in self._models:
            self._models[cache_key] = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=system_instruction,
                safety_settings=self._get_safety_settings(),
            )
        return self._models[cache_key]

    def _get_generation_config(self, **overrides: Any) -> GenerationConfig:
        params = {
            "temperature": self._config.ai.temperature,
            "max_output_tokens": self._config.ai.max_output_tokens,
        }
        params.update(overrides)
        return GenerationConfig(**params)

    def _get_safety_settings(self) -> dict:
        """Diary text discusses stress and low moods; only block clearly harmful content."""
        return {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_ONLY_HIGH,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        }

    def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        **overrides: Any,
    ) -> AIResponse:
        """Generate text from a prompt.

        Args:
            prompt: The user prompt.
            system_instruction: Optional system instruction for the model.
            **overrides: Per-call GenerationConfig overrides.

        Returns:
            AIResponse with the generated text and metadata.

        Raises:
            AIUnavailableError: If AI is disabled or no key is configured.
            AIClientError: Any mapped SDK failure.
        """
        self._ensure_available()
        start_time = time.time()

        try:
            model = self._get_model(system_instruction)
            raw_response = model.generate_content(
                prompt,
                generation_config=self._get_generation_config(**overrides),
                request_options={"timeout": self._config.ai.timeout_seconds},
            )
        except Exception as e:
            mapped = self._map_exception(e)
            self._logger.warning(f"Generation failed: {type(mapped).__name__}")
            raise mapped from e

        latency_ms = (time.time() - start_time) * 1000

        try:
            text = raw_response.text
        except ValueError as e:
            # .text raises when the candidate was blocked or is empty
            feedback = getattr(raw_response, "prompt_feedback", None)
            block_reason = getattr(feedback, "block_reason", None)
            if block_reason:
                raise ContentBlockedError(blocked_reason=str(block_reason), original_error=e) from e
            text = ""

        total_tokens = None
        usage = getattr(raw_response, "usage_metadata", None)
        if usage:
            total_tokens = getattr(usage, "total_token_count", None)

        finish_reason = None
        if getattr(raw_response, "candidates", None):
            reason = getattr(raw_response.candidates[0], "finish_reason", None)
            finish_reason = getattr(reason, "name", None) if reason else None

        self._logger.info(f"Generation successful: {total_tokens or '?'} tokens in {latency_ms:.0f}ms")

        return AIResponse(
            text=text,
            model=self.model_name,
            total_tokens=total_tokens,
            finish_reason=finish_reason,
            latency_ms=latency_ms,
        )

    def generate_json(
        self,
        prompt: str,
        system_instruction: str | None = None,
        schema_hint: str | None = None,
        **overrides: Any,
    ) -> StructuredAIResponse:
        """Generate and parse as JSON.

        Asks for JSON through the system instruction and
        ``response_mime_type``. If parsing fails the response comes back
        with ``parse_success=False`` rather than raising.

        Args:
            prompt: The user prompt.
            system_instruction: Optional system instruction.
            schema_hint: Optional JSON shape appended to the prompt.
            **overrides: GenerationConfig overrides.

        Returns:
            StructuredAIResponse with parsed data or error information.
        """
        full_instruction = (
            f"{system_instruction}\n\n{JSON_ONLY_INSTRUCTION}" if system_instruction else JSON_ONLY_INSTRUCTION
        )
        full_prompt = (
            f"{prompt}\n\nRespond with JSON matching this schema:\n{schema_hint}" if schema_hint else prompt
        )
        overrides.setdefault("response_mime_type", "application/json")

        response = self.generate(full_prompt, system_instruction=full_instruction, **overrides)
        data, parse_error = extract_json(response.text)
        if data is not None and not isinstance(data, (dict, list)):
            # A bare scalar is valid JSON but never a usable reply
            parse_error = f"Expected a JSON object or array, got {type(data).__name__}"
            data = None

        return StructuredAIResponse(
            data=data if data is not None else {},
            raw_text=response.text,
            model=response.model,
            tokens_used=response.total_tokens,
            latency_ms=response.latency_ms,
            parse_success=data is not None,
            parse_error=parse_error,
        )

    def _map_exception(self, error: Exception) -> AIClientError:
        """Map SDK exceptions to our exception hierarchy."""
        if isinstance(error, AIClientError):
            return error

        error_str = str(error).lower()

        if isinstance(error, google_exceptions.InvalidArgument):
            return AIBadRequestError(original_error=error)
        if isinstance(error, (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)):
            return AIAuthenticationError(original_error=error)
        if isinstance(error, google_exceptions.ResourceExhausted):
            if "quota" in error_str:
                return AIQuotaExceededError(original_error=error)
            return AIRateLimitError(original_error=error)
        if isinstance(error, google_exceptions.NotFound):
            return ModelNotAvailableError(self.model_name, original_error=error)
        if isinstance(error, google_exceptions.DeadlineExceeded):
            return AITimeoutError(self._config.ai.timeout_seconds, original_error=error)
        if isinstance(error, google_exceptions.InternalServerError):
            return AIServerError(status_code=500, original_error=error)
        if isinstance(error, google_exceptions.ServiceUnavailable):
            return AIServerError(status_code=503, original_error=error)

        if isinstance(error, TimeoutError) or "timeout" in error_str or "deadline" in error_str:
            return AITimeoutError(self._config.ai.timeout_seconds, original_error=error)
        if isinstance(error, ConnectionError):
            return AIUnavailableError("offline")
        if "blocked" in error_str or "safety" in error_str:
            return ContentBlockedError(original_error=error)
        if "401" in error_str or "403" in error_str or "unauthorized" in error_str:
            return AIAuthenticationError(original_error=error)
        if "429" in error_str or "rate limit" in error_str:
            return AIRateLimitError(original_error=error)
        if "500" in error_str or "502" in error_str or "503" in error_str:
            return AIServerError(original_error=error)

        return AIClientError(f"Unexpected AI error: {type(error).__name__}", original_error=error)
