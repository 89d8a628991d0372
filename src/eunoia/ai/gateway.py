"""AI completion gateway.

Report flows never talk to the Gemini SDK directly. They hand a
:class:`CompletionRequest` to a :class:`CompletionGateway` and get back a
validated pydantic model, or a :class:`ModelError`.

Two implementations:

- :class:`GeminiGateway`: the network-backed one, built on :class:`AIClient`.
- :class:`StubGateway`: deterministic canned replies keyed by prompt id, for
  tests and for running with AI switched off.

Example:
    >>> gateway = build_gateway(get_config())
    >>> try:
    ...     reply = gateway.complete(request)
    ... except ModelError:
    ...     reply = None  # caller falls back
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from eunoia.ai.client import AIClient, AIClientError
from eunoia.config import AppConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ModelError(Exception):
    """Base class for gateway failures. Flows recover from these with a fallback.

    Attributes:
        message: Human-readable description (safe to log).
        prompt_id: The prompt that was being completed.
    """

    def __init__(self, message: str, prompt_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.prompt_id = prompt_id


class ModelUnavailableError(ModelError):
    """The model could not be reached or refused the call."""

    pass


class ModelSchemaMismatchError(ModelError):
    """The model replied, but not with JSON matching the expected schema."""

    pass


# =============================================================================
# Request
# =============================================================================


@dataclass(frozen=True)
class CompletionRequest:
    """Everything the gateway needs for one call.

    Attributes:
        prompt_id: Registered template id, e.g. ``"burnout_risk_v1"``.
        system_instruction: Role instruction for the model.
        prompt: Rendered user prompt including the structured input.
        output_model: Pydantic model the reply must validate against.
        schema_hint: JSON shape shown to the model.
    """

    prompt_id: str
    system_instruction: str
    prompt: str
    output_model: type[BaseModel]
    schema_hint: str | None = None


# =============================================================================
# Gateways
# =============================================================================


class CompletionGateway(ABC):
    """Sends a request to a model and returns its validated structured reply."""

    @abstractmethod
    def complete(self, request: CompletionRequest) -> BaseModel:
        """Complete ``request``.

        Returns:
            An instance of ``request.output_model``.

        Raises:
            ModelUnavailableError: Transport, auth or availability failure.
            ModelSchemaMismatchError: Reply missing, not JSON, or invalid.
        """


class GeminiGateway(CompletionGateway):
    """Gateway backed by the Gemini API."""

    def __init__(self, client: AIClient) -> None:
        self._client = client

    def complete(self, request: CompletionRequest) -> BaseModel:
        try:
            response = self._client.generate_json(
                request.prompt,
                system_instruction=request.system_instruction,
                schema_hint=request.schema_hint,
            )
        except AIClientError as e:
            raise ModelUnavailableError(e.message, prompt_id=request.prompt_id) from e
        except ValidationError as e:
            raise ModelSchemaMismatchError(
                f"Reply could not be wrapped: {e.error_count()} validation errors", prompt_id=request.prompt_id
            ) from e

        if not response.parse_success:
            raise ModelSchemaMismatchError(
                response.parse_error or "Reply was not valid JSON", prompt_id=request.prompt_id
            )
        return _validate_reply(request, response.data)


class StubGateway(CompletionGateway):
    """Deterministic gateway returning canned replies.

    A canned value may be a mapping (validated against the request's output
    model), a ready model instance, or an exception instance to raise.

    Attributes:
        requests: Every request received, in order.

    Example:
        >>> stub = StubGateway({"burnout_risk_v1": {"riskLevel": "Low", ...}})
        >>> flows = ReportFlows(stub)
        >>> stub.requests[0].prompt_id
        'burnout_risk_v1'
    """

    def __init__(self, responses: Mapping[str, Any] | None = None, fail: bool = False) -> None:
        self._responses = dict(responses or {})
        self._fail = fail
        self.requests: list[CompletionRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def complete(self, request: CompletionRequest) -> BaseModel:
        self.requests.append(request)
        if self._fail:
            raise ModelUnavailableError("AI is not available", prompt_id=request.prompt_id)
        if request.prompt_id not in self._responses:
            raise ModelUnavailableError(
                f"No canned reply for prompt '{request.prompt_id}'", prompt_id=request.prompt_id
            )

        canned = self._responses[request.prompt_id]
        if isinstance(canned, Exception):
            raise canned
        if isinstance(canned, BaseModel):
            canned = canned.model_dump(by_alias=True)
        return _validate_reply(request, canned)


def _validate_reply(request: CompletionRequest, data: Any) -> BaseModel:
    try:
        return request.output_model.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Reply for {request.prompt_id} failed validation: {e.error_count()} error(s)")
        raise ModelSchemaMismatchError(
            f"Reply does not match {request.output_model.__name__}", prompt_id=request.prompt_id
        ) from e


def build_gateway(config: AppConfig) -> CompletionGateway:
    """Gemini when AI is enabled and a key is available, otherwise an always-failing stub.

    With the stub every report flow deterministically uses its fallback.
    """
    client = AIClient(config)
    if client.is_available():
        return GeminiGateway(client)
    logger.info("AI unavailable; reports will use rule-based fallbacks")
    return StubGateway(fail=True)
