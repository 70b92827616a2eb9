"""
FastAPI Application - HTTP transport for the rules engine.

Endpoints:
    GET    /api/v1/health                      Health check
    POST   /api/v1/games                       Create a game
    GET    /api/v1/games                       List stored games
    PUT    /api/v1/games/{id}/state            InjectState (not in production)
    POST   /api/v1/games/{id}/actions          PlayerAction
    POST   /api/v1/games/{id}/events/ack       AcknowledgeEvents
    GET    /api/v1/games/{id}/state            QueryState (?player_id=)
    GET    /api/v1/cards                       Card catalog
    GET    /api/v1/cards/{card_id}             Card lookup

Every game endpoint answers with the result envelope. The HTTP status
follows the envelope's error kind:
    400  validation kinds (NotYourTurn, WrongPhase, ...)
    403  InjectState in production
    404  UnknownGame, UnknownCard
    500  InternalError
    503  PersistenceError

Routes are plain functions so FastAPI runs them in its threadpool; the
service blocks on per-game locks and file I/O.
"""

from typing import Annotated, Optional
import logging

from .. import __version__
from ..config import EngineConfig
from ..errors import ErrorKind, UnknownCard

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.UNKNOWN_GAME: 404,
    ErrorKind.UNKNOWN_CARD: 404,
    ErrorKind.INTERNAL_ERROR: 500,
    ErrorKind.PERSISTENCE_ERROR: 503,
}


def status_for(kind: Optional[ErrorKind]) -> int:
    """HTTP status for an envelope error kind (400 for user faults)."""
    if kind is None:
        return 200
    return STATUS_BY_KIND.get(kind, 400)


def create_app(service=None, config: Optional[EngineConfig] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from config if not provided)
        config: Optional EngineConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from ..storage.store import create_store
    from .service import APIService
    from .schemas import (
        # Request models
        AcknowledgeRequest,
        CreateGameRequest,
        InjectStateRequest,
        PlayerActionRequest,
        # Response models
        CardResponse,
        GameListResponse,
        HealthResponse,
        ResultEnvelope,
    )

    if service is None:
        config = config or EngineConfig.from_env()
        service = APIService(store=create_store(config.store_dir), config=config)
    else:
        config = service.config

    app = FastAPI(
        title="Revolution and Rebellion Rules Engine",
        description="""
Authoritative rules engine for two-player Revolution and Rebellion games.

## Flow

1. `POST /games` deals opening hands; both players answer with a `Redraw` action
2. Players alternate `PlayCard` / `PlayCardBack` / `Pass` through the main and SP phases
3. A card with a choice suspends play; the chooser answers with `SelectCard`
4. Clients acknowledge journal events; acknowledging a draw-phase event
   opens the main phase

## Error Kinds

| Kind | Status |
|------|--------|
| `NotYourTurn`, `WrongPhase`, `InvalidHandIndex`, `ZoneCompatibility`, `ZoneOccupied`, `InvalidZone`, `InvalidSelection`, `NoPendingSelection`, `Forbidden` | 400 |
| `UnknownGame`, `UnknownCard` | 404 |
| `InternalError` | 500 |
| `PersistenceError` | 503 |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Response helpers
    # =========================================================================

    def envelope_response(envelope: ResultEnvelope, status_code: Optional[int] = None):
        """Return the envelope with the status its error kind maps to."""
        if status_code is None:
            status_code = status_for(envelope.error.kind if envelope.error else None)
        if status_code == 200:
            return envelope
        return JSONResponse(status_code=status_code, content=envelope.model_dump(mode="json"))

    def make_error_response(kind: ErrorKind, message: str, status_code: Optional[int] = None):
        """Create a standardized error response."""
        return envelope_response(ResultEnvelope.fail(kind, message), status_code)

    error_responses = {
        400: {"model": ResultEnvelope, "description": "Rejected action"},
        404: {"model": ResultEnvelope, "description": "Unknown game"},
        503: {"model": ResultEnvelope, "description": "Game store unavailable"},
    }

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=ResultEnvelope,
        responses=error_responses,
        tags=["Games"],
        summary="Create a new game",
    )
    def create_game(request: CreateGameRequest):
        """
        Create a game in the redraw phase.

        Omitted decks and leaders fall back to the default catalog decks.
        """
        return envelope_response(service.create_game(request))

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List stored games",
    )
    def list_games() -> GameListResponse:
        games = service.list_games()
        return GameListResponse(games=games, count=len(games))

    @app.put(
        "/api/v1/games/{game_id}/state",
        response_model=ResultEnvelope,
        responses={**error_responses, 403: {"model": ResultEnvelope}},
        tags=["Games"],
        summary="Replace a game's state (test hook)",
    )
    def inject_state(game_id: str, request: InjectStateRequest):
        """Write a provided state document. Disabled when RNR_ENV=production."""
        if not config.allow_inject:
            return make_error_response(ErrorKind.FORBIDDEN, "InjectState is disabled in production", 403)
        return envelope_response(service.inject_state(game_id, request.state))

    @app.post(
        "/api/v1/games/{game_id}/actions",
        response_model=ResultEnvelope,
        responses=error_responses,
        tags=["Games"],
        summary="Submit a player action",
    )
    def player_action(game_id: str, request: PlayerActionRequest):
        """
        Submit one action for a player.

        A rejected action answers 400 with the error kind, and its
        ERROR event is still recorded in the game's journal.
        """
        return envelope_response(
            service.player_action(game_id, request.player_id, request.action.to_action_dict())
        )

    @app.post(
        "/api/v1/games/{game_id}/events/ack",
        response_model=ResultEnvelope,
        responses=error_responses,
        tags=["Games"],
        summary="Acknowledge journal events",
    )
    def acknowledge_events(game_id: str, request: AcknowledgeRequest):
        """Mark journal entries acknowledged. Repeating a call is a no-op."""
        return envelope_response(
            service.acknowledge_events(game_id, request.event_ids, player_id=request.player_id)
        )

    @app.get(
        "/api/v1/games/{game_id}/state",
        response_model=ResultEnvelope,
        responses=error_responses,
        tags=["Games"],
        summary="Get the player-visible game state",
    )
    def query_state(
        game_id: str,
        player_id: Annotated[Optional[str], Query(description="Viewer; omit for the full document")] = None,
    ):
        """Read the projection of state for one player."""
        return envelope_response(service.query_state(game_id, player_id))

    # =========================================================================
    # Card Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/cards",
        response_model=list[CardResponse],
        tags=["Cards"],
        summary="List the card catalog",
    )
    def list_cards() -> list[CardResponse]:
        return service.list_cards()

    @app.get(
        "/api/v1/cards/{card_id}",
        response_model=CardResponse,
        responses={404: {"model": ResultEnvelope}},
        tags=["Cards"],
        summary="Look up a card definition",
    )
    def get_card(card_id: str):
        try:
            return service.get_card(card_id)
        except UnknownCard as e:
            return make_error_response(ErrorKind.UNKNOWN_CARD, e.message)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="rnr-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    def root():
        """Root endpoint with API info."""
        return {
            "name": "Revolution and Rebellion Rules Engine",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    logger.info("API ready (env=%s, cards=%d)", config.env, len(service.registry))
    return app


# For running directly: uvicorn rnr_engine.api.app:app
app = create_app()
