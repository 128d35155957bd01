"""
FastAPI Application - REST harness for inspecting encounters.

Endpoints:
    GET    /api/v1/health                         Health check
    POST   /api/v1/encounters                     Start an encounter
    GET    /api/v1/encounters                     List encounters
    GET    /api/v1/encounters/{id}                Get battle state
    DELETE /api/v1/encounters/{id}                End an encounter
    POST   /api/v1/encounters/{id}/actions        Dispatch an action
    GET    /api/v1/encounters/{id}/history        Get action history

Each action request waits for its own effect batch, so the response lists
the effects that ran. Single process, in-memory, no auth.

All responses are JSON with explicit Pydantic schemas.
"""

from __future__ import annotations
from typing import Optional, Union
import logging

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..session import EncounterManager
from .schemas import (
    ActionRequest,
    BattleStateResponse,
    CreateEncounterRequest,
    DispatchResponse,
    EncounterListResponse,
    EndEncounterResponse,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    HistoryResponse,
)
from .service import APIService

logger = logging.getLogger(__name__)


def create_app(
    service: APIService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()
    api_service = service or APIService(
        encounter_manager=EncounterManager(history_limit=settings.history_limit),
    )

    app = FastAPI(
        title="BattleFlow Engine API",
        description="Inspect and drive turn-based encounters.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_response(error: ErrorResponse) -> JSONResponse:
        status_code = 404 if error.error_code == ErrorCode.ENCOUNTER_NOT_FOUND else 400
        return make_error_response(error.error_code, error.error, status_code, error.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            status_code=422,
            details={"errors": jsonable_encoder(exc.errors())},
        )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, active_encounters=api_service.count_active())

    # =========================================================================
    # Encounter Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/encounters",
        response_model=BattleStateResponse,
        tags=["Encounters"],
        summary="Start a new encounter",
    )
    async def create_encounter(body: CreateEncounterRequest) -> BattleStateResponse:
        """Start a battle between the given rosters."""
        response = api_service.create_encounter(body)
        logger.debug("Created encounter %s", response.encounter_id)
        return response

    @app.get(
        "/api/v1/encounters",
        response_model=EncounterListResponse,
        tags=["Encounters"],
        summary="List encounters",
    )
    async def list_encounters() -> EncounterListResponse:
        encounters = api_service.list_encounters()
        return EncounterListResponse(encounters=encounters, count=len(encounters))

    @app.get(
        "/api/v1/encounters/{encounter_id}",
        response_model=BattleStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Encounters"],
        summary="Get battle state",
    )
    async def get_encounter(encounter_id: str) -> Union[BattleStateResponse, JSONResponse]:
        response = api_service.get_state(encounter_id)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    @app.delete(
        "/api/v1/encounters/{encounter_id}",
        response_model=EndEncounterResponse,
        tags=["Encounters"],
        summary="End an encounter",
    )
    async def end_encounter(
        encounter_id: str,
        reason: str = Query("user_ended", description="Reason for ending"),
    ) -> EndEncounterResponse:
        success = api_service.end_encounter(encounter_id, reason)
        return EndEncounterResponse(success=success, encounter_id=encounter_id)

    # =========================================================================
    # Battle Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/encounters/{encounter_id}/actions",
        response_model=DispatchResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid action"},
            404: {"model": ErrorResponse, "description": "Encounter not found"},
        },
        tags=["Battle"],
        summary="Dispatch an action",
    )
    async def dispatch_action(
        encounter_id: str, body: ActionRequest
    ) -> Union[DispatchResponse, JSONResponse]:
        """
        Dispatch one action to the encounter's store.

        The state is committed immediately; the response is sent once the
        action's effect batch has finished.
        """
        response = await api_service.dispatch_action(encounter_id, body)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    @app.get(
        "/api/v1/encounters/{encounter_id}/history",
        response_model=HistoryResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Battle"],
        summary="Get action history",
    )
    async def get_history(encounter_id: str) -> Union[HistoryResponse, JSONResponse]:
        response = api_service.get_history(encounter_id)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    return app
