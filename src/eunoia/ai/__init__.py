"""AI-backed report generation for 4Eunoia.

Only :mod:`eunoia.ai.client` touches the Gemini SDK. Everything else goes
through :class:`~eunoia.ai.gateway.CompletionGateway`, so report flows run
the same way against the real model, a stub, or no model at all.
"""

from eunoia.ai.fallback import FallbackAnalyzer, FallbackConfig
from eunoia.ai.flows import ReportFlows
from eunoia.ai.gateway import (
    CompletionGateway,
    CompletionRequest,
    GeminiGateway,
    ModelError,
    ModelSchemaMismatchError,
    ModelUnavailableError,
    StubGateway,
    build_gateway,
)
from eunoia.ai.reports import ReportSource

__all__ = [
    "CompletionGateway",
    "CompletionRequest",
    "FallbackAnalyzer",
    "FallbackConfig",
    "GeminiGateway",
    "ModelError",
    "ModelSchemaMismatchError",
    "ModelUnavailableError",
    "ReportFlows",
    "ReportSource",
    "StubGateway",
    "build_gateway",
]
