"""HTTP routes. Thin: parse the request, hand it to the VerificationService, translate the outcome to a status code."""

import logging
from typing import Generator
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.api.models import (
    CreateGameRequest,
    CreateGameResponse,
    ErrorResponse,
    SubmissionResponse,
    SubmitLogRequest,
)
from src.core.exceptions import (
    DecryptionError,
    GameError,
    InvalidRequestError,
    KeyUnavailableError,
    MalformedLogError,
    SessionAlreadyVerifiedError,
    SessionNotFoundError,
)
from src.core.shared_types import SubmissionStatus
from src.db.database import get_db
from src.db.sql_repository import SQLSessionRepository
from src.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

game_router = APIRouter(prefix="/api")

# most specific first: the first matching entry decides the status code
ERROR_STATUS: list[tuple[type[GameError], int, str]] = [
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST, "malformed_request"),
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND, "session_not_found"),
    (SessionAlreadyVerifiedError, status.HTTP_409_CONFLICT, "session_already_verified"),
    (KeyUnavailableError, status.HTTP_500_INTERNAL_SERVER_ERROR, "key_unavailable"),
    (DecryptionError, status.HTTP_400_BAD_REQUEST, "decryption_failed"),
    (MalformedLogError, status.HTTP_400_BAD_REQUEST, "malformed_log"),
]


def get_service(db: Session = Depends(get_db)) -> Generator[VerificationService, None, None]:
    yield VerificationService(SQLSessionRepository(db))


@game_router.post("/create-game", response_model=CreateGameResponse)
def create_game(
    request: CreateGameRequest | None = None,
    service: VerificationService = Depends(get_service),
) -> CreateGameResponse:
    return service.create_game(request or CreateGameRequest())


@game_router.post(
    "/submit-log",
    response_model=SubmissionResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": SubmissionResponse}},
)
def submit_log(
    request: SubmitLogRequest,
    service: VerificationService = Depends(get_service),
) -> JSONResponse:
    result = service.submit_log(request)
    status_code = (
        status.HTTP_200_OK
        if result.status == SubmissionStatus.VERIFIED
        else status.HTTP_400_BAD_REQUEST
    )
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@game_router.delete("/game/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game(
    game_id: UUID,
    service: VerificationService = Depends(get_service),
) -> Response:
    service.delete_game(game_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def game_error_handler(request: Request, exc: Exception) -> JSONResponse:
    for error_type, status_code, tag in ERROR_STATUS:
        if isinstance(exc, error_type):
            break
    else:
        status_code, tag = status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Failed to process %s: %s", request.url.path, exc)
    else:
        logger.warning("Rejected %s: %s (%s)", request.url.path, tag, exc)

    body = ErrorResponse(error=tag, detail=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    """A body or path FastAPI cannot parse into the route's models is a malformed request as well."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    detail = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in errors
    )
    logger.warning("Rejected %s: malformed_request (%s)", request.url.path, detail)

    body = ErrorResponse(error="malformed_request", detail=detail)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(by_alias=True))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GameError, game_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
