"""Application settings, read from the environment (and a local .env file if present)."""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./game_sessions.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Player ids are fixed per deployment for now (no lobby / matchmaking).
DEFAULT_PLAYER_X_ID = os.getenv("DEFAULT_PLAYER_X_ID", "DOGE")
DEFAULT_PLAYER_O_ID = os.getenv("DEFAULT_PLAYER_O_ID", "PEPE")

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
