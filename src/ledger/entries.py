"""
The log entry: one hashed record in the client-authored activity log.

Attributes are snake_case in Python, camelCase on the wire. The wire form (`to_wire`) is what gets hashed and transmitted.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from src.core.exceptions import MalformedLogError
from src.core.shared_types import EventKind


class LogEntry(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    sequence: StrictInt
    event_type: EventKind
    client_timestamp: StrictInt
    event_data: dict[str, Any]
    # snapshots AFTER the event was applied
    board_state: list[list[str]]
    fsm_state: str
    previous_entry_chain_hash: str
    current_entry_chain_hash: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


GameLog = list[LogEntry]

_GAME_LOG_ADAPTER = TypeAdapter(GameLog)


def parse_game_log(text: str | bytes) -> GameLog:
    """Parse (decrypted) JSON text into log entries. The text is untrusted."""
    try:
        return _GAME_LOG_ADAPTER.validate_json(text)
    except ValidationError as exc:
        raise MalformedLogError(
            f"Text is not a valid game log ({exc.error_count()} validation error(s))."
        ) from exc


def game_log_to_wire(log: GameLog) -> list[dict[str, Any]]:
    return [entry.to_wire() for entry in log]
