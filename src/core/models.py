"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Both the API layer (higher) and the db layer (lower) use the model(s) defined here to send to/receive from the Service.
The private key only ever travels between the db layer and the Service, never towards the API layer.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import SessionStatus


@dataclass
class GameSessionModel:
    """Transport-safe representation of one game session's custody record."""

    player_x_id: str
    player_o_id: str
    public_key_pem: str
    private_key_pem: Optional[str]
    status: str = SessionStatus.OPEN
