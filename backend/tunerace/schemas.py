"""Pydantic models for inbound Socket.IO payloads.

Each event that carries data is validated here before it reaches a room.
Fields accept both snake_case and the camelCase names older clients send.
"""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

from tunerace.errors import InvalidRequest


PlayerName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class CreateRoomRequest(_Request):
    player_name: PlayerName = Field(alias='playerName')


class JoinRoomRequest(_Request):
    room_id: str = Field(alias='roomId', min_length=1, max_length=16)
    player_name: PlayerName = Field(alias='playerName')

    @field_validator('room_id')
    @classmethod
    def _normalize_room_id(cls, value: str) -> str:
        return value.strip().upper()


class GuessRequest(_Request):
    # Kept raw so the result can echo exactly what was typed
    guess: str = Field(max_length=200)


def parse_request(model, data):
    """Validate ``data`` against ``model``; raise InvalidRequest on failure."""
    try:
        return model.model_validate(data or {})
    except ValidationError as exc:
        errors = exc.errors()
        field = '.'.join(str(part) for part in errors[0]['loc']) if errors and errors[0].get('loc') else None
        message = f"Invalid field: {field}" if field else 'Invalid request payload'
        raise InvalidRequest(message) from exc
