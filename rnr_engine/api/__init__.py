"""
HTTP API for the rules engine.

The FastAPI app lives in api.app (uvicorn rnr_engine.api.app:app);
APIService is usable on its own without a web framework.
"""

from .service import APIService, card_response
from .schemas import (
    ResultEnvelope,
    ErrorInfo,
    CreateGameRequest,
    PlayerSetupInfo,
    PlayerActionRequest,
    ActionInfo,
    AcknowledgeRequest,
    InjectStateRequest,
    CardResponse,
    HealthResponse,
)

__all__ = [
    "APIService",
    "card_response",
    "ResultEnvelope",
    "ErrorInfo",
    "CreateGameRequest",
    "PlayerSetupInfo",
    "PlayerActionRequest",
    "ActionInfo",
    "AcknowledgeRequest",
    "InjectStateRequest",
    "CardResponse",
    "HealthResponse",
]
