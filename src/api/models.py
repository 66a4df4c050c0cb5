"""Requests and Response models"""

import base64
import binascii
from typing import Any, Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.core.config import DEFAULT_PLAYER_O_ID, DEFAULT_PLAYER_X_ID
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import FailureReason, SubmissionStatus
from src.crypto.envelope import EncryptedEnvelope


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- REQUEST MODELS ---
class CreateGameRequest(WireModel):
    player_x_id: str = DEFAULT_PLAYER_X_ID
    player_o_id: str = DEFAULT_PLAYER_O_ID

    @field_validator("player_x_id", "player_o_id")
    @classmethod
    def validate_player_id(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Player ids cannot be empty.")
        return value


class SubmitLogRequest(WireModel):
    game_id: UUID
    encrypted_log: str
    encrypted_key: str
    iv: str

    @model_validator(mode="before")
    @classmethod
    def require_all_fields(cls, data: Any) -> Any:
        """Reject before any field-level work (and long before any cryptography) if something is missing."""
        if isinstance(data, dict):
            missing = [
                field.alias or name
                for name, field in cls.model_fields.items()
                if not (data.get(field.alias or name) or data.get(name))
            ]
            if missing:
                raise InvalidRequestError(
                    f"Request body must contain all required fields. Missing: {', '.join(missing)}"
                )
        return data

    @field_validator("encrypted_log", "encrypted_key", "iv")
    @classmethod
    def validate_base64(cls, value: str) -> str:
        if not value:
            raise InvalidRequestError("Request body must contain all required fields.")
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidRequestError(f"Cannot interpret {value[:16]!r}... as base64.")
        return value

    @classmethod
    def from_envelope(cls, game_id: UUID, envelope: EncryptedEnvelope) -> Self:
        return cls.model_validate({"gameId": game_id, **envelope.to_wire()})

    def to_envelope(self) -> EncryptedEnvelope:
        return EncryptedEnvelope.from_wire(self.encrypted_log, self.encrypted_key, self.iv)


# --- RESPONSE MODELS ---
class CreateGameResponse(WireModel):
    game_id: UUID
    public_key: str


class SubmissionResponse(WireModel):
    status: SubmissionStatus
    reason: Optional[FailureReason] = None
    message: str
    failed_sequence: Optional[int] = None


class ErrorResponse(WireModel):
    error: str
    detail: str = Field(default="")
