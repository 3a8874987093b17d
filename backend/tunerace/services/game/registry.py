from __future__ import annotations

import logging
import secrets
import string
import threading
from typing import Callable, Dict, List, Optional, Tuple

from tunerace.errors import DuplicateRoomId
from .room import Room, RoomRules


logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_id(length: int = 6) -> str:
    """Generate a short, case-insensitive room code."""
    return ''.join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(length))


class RoomRegistry:
    """Process-wide map of room id -> Room.

    Built once by the app factory and handed to the session gateway. Lock
    order is registry first, then room; rooms never call back into the
    registry.
    """

    MAX_ID_ATTEMPTS = 64

    def __init__(self, catalog, rules: Optional[RoomRules] = None, id_length: int = 6,
                 id_generator: Optional[Callable[[int], str]] = None):
        self.catalog = catalog
        self.rules = rules or RoomRules()
        self.id_length = id_length
        self._generate_id = id_generator or generate_room_id
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id):
        return self.get(room_id) is not None

    def room_ids(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def _claim_id(self) -> str:
        room_id = self._generate_id(self.id_length).upper()
        if room_id in self._rooms:
            raise DuplicateRoomId(room_id)
        return room_id

    def create(self, host_sid: str, host_name: str) -> Tuple[str, Room]:
        with self._lock:
            for _ in range(self.MAX_ID_ATTEMPTS):
                try:
                    room_id = self._claim_id()
                except DuplicateRoomId as exc:
                    logger.debug(f"[room-id-collision] id={exc}")
                    continue
                room = Room(room_id, self.catalog.get_playlist(), host_sid, host_name, self.rules)
                self._rooms[room_id] = room
                return room_id, room
        raise RuntimeError(f"Could not allocate a room id after {self.MAX_ID_ATTEMPTS} attempts")

    def get(self, room_id) -> Optional[Room]:
        if not isinstance(room_id, str):
            return None
        with self._lock:
            return self._rooms.get(room_id.strip().upper())

    def delete_if_empty(self, room_id: str) -> bool:
        """Drop the room iff it has no players left. Returns True when removed."""
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return False
            with room.transaction():
                if not room.is_empty():
                    return False
                room.close()
                del self._rooms[room_id]
        logger.info(f"[room-deleted] room={room_id} (empty)")
        return True
