from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from tunerace.catalog import Track
from tunerace.errors import AlreadySolved, NotAMember, NotHost, RoomFullOrInvalid, RoomNotFound
from tunerace.models import Phase, Player
from .scoring import CORRECT_GUESS_POINTS, is_correct


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomRules:
    """Per-room policy knobs, usually built from the Flask config."""

    max_players: int = 16                  # 0 means no cap
    allow_late_join: bool = True           # accept joins after the game started
    transfer_host: bool = True             # hand host to the oldest member when the host leaves
    points_per_guess: int = CORRECT_GUESS_POINTS

    @classmethod
    def from_config(cls, config) -> RoomRules:
        return cls(
            max_players=int(config.get('MAX_PLAYERS_PER_ROOM', 16)),
            allow_late_join=bool(config.get('ALLOW_LATE_JOIN', True)),
            transfer_host=bool(config.get('TRANSFER_HOST_ON_LEAVE', True)),
            points_per_guess=int(config.get('POINTS_PER_CORRECT_GUESS', CORRECT_GUESS_POINTS)),
        )


@dataclass(frozen=True)
class GuessOutcome:
    correct: bool
    score: int
    # The solved track, only set on a correct guess
    track: Optional[Track] = None


@dataclass(frozen=True)
class SkipOutcome:
    skipped: bool
    vote_count: int
    track_index: int


class Room:
    """Runtime state and game rules for one guessing session.

    Every mutating method takes the room lock, so concurrent requests for the
    same room apply one at a time. Callers that need a mutation and the
    resulting snapshot to be consistent wrap both in ``transaction()``.
    """

    def __init__(self, room_id: str, playlist: Sequence[Track], host_sid: str, host_name: str,
                 rules: Optional[RoomRules] = None):
        self.room_id = room_id
        self.playlist = tuple(playlist)
        self.rules = rules or RoomRules()
        self.players: Dict[str, Player] = {}
        self.current_track_index = 0
        self.skip_votes: Set[str] = set()
        # An empty playlist has nothing to play
        self.phase = Phase.WAITING if self.playlist else Phase.FINISHED
        self.closed = False
        self._lock = threading.RLock()

        self.players[host_sid] = Player(sid=host_sid, name=host_name, is_host=True)
        logger.info(f"[room-created] room={room_id} host={host_name} tracks={len(self.playlist)}")

    @contextmanager
    def transaction(self):
        with self._lock:
            yield self

    def __len__(self):
        return len(self.players)

    def is_empty(self) -> bool:
        return not self.players

    def close(self) -> None:
        with self._lock:
            self.closed = True

    # -------------------- Membership -------------------- #

    def add_player(self, sid: str, name: str) -> Player:
        with self._lock:
            if self.closed:
                raise RoomNotFound()
            if sid in self.players:
                raise RoomFullOrInvalid('You are already in this room')
            if self.rules.max_players and len(self.players) >= self.rules.max_players:
                raise RoomFullOrInvalid('Room is full')
            if not self.rules.allow_late_join and self.phase != Phase.WAITING:
                raise RoomFullOrInvalid('Game already started')
            player = Player(sid=sid, name=name)
            self.players[sid] = player
            logger.info(f"[player-joined] room={self.room_id} name={name} sid={sid}")
            return player

    def remove_player(self, sid: str) -> Optional[Player]:
        with self._lock:
            player = self.players.pop(sid, None)
            if player is None:
                return None
            self.skip_votes.discard(sid)
            logger.info(f"[player-left] room={self.room_id} name={player.name} sid={sid}")
            if player.is_host and self.players and self.rules.transfer_host:
                successor = min(self.players.values(), key=lambda p: p.joined_at)
                successor.is_host = True
                logger.info(f"[host-transfer] room={self.room_id} host={successor.name}")
            return player

    def host(self) -> Optional[Player]:
        with self._lock:
            return next((p for p in self.players.values() if p.is_host), None)

    def _member(self, sid: str) -> Player:
        player = self.players.get(sid)
        if player is None:
            raise NotAMember()
        return player

    # -------------------- Tracks -------------------- #

    def current_track(self) -> Optional[Track]:
        if self.current_track_index < len(self.playlist):
            return self.playlist[self.current_track_index]
        return None

    def unsolved_count(self) -> int:
        return sum(1 for p in self.players.values() if not p.solved)

    def advance_track(self) -> bool:
        """Move to the next track; returns False once the room is finished."""
        with self._lock:
            if self.phase == Phase.FINISHED:
                return False
            self.current_track_index += 1
            self.skip_votes.clear()
            for player in self.players.values():
                player.solved = False
            logger.info(f"[next-track] room={self.room_id} index={self.current_track_index}")
            if self.current_track_index >= len(self.playlist):
                self.phase = Phase.FINISHED
                logger.info(f"[finish] room={self.room_id} finished after {len(self.playlist)} tracks")
            return True

    # -------------------- Game actions -------------------- #

    def start_game(self, sid: str) -> bool:
        """Waiting -> playing. Returns False when the game was already past waiting."""
        with self._lock:
            player = self._member(sid)
            if not player.is_host:
                raise NotHost()
            if self.phase != Phase.WAITING:
                return False
            self.phase = Phase.PLAYING
            logger.info(f"[game-started] room={self.room_id} by={player.name}")
            return True

    def submit_guess(self, sid: str, raw_guess) -> GuessOutcome:
        with self._lock:
            player = self._member(sid)
            if player.solved:
                raise AlreadySolved()
            track = self.current_track()
            if not is_correct(raw_guess, track):
                return GuessOutcome(correct=False, score=player.score)
            player.solved = True
            player.score += self.rules.points_per_guess
            # Solvers no longer take part in skip consensus
            self.skip_votes.discard(sid)
            logger.info(f"[correct-guess] room={self.room_id} name={player.name} index={track.index}")
            return GuessOutcome(correct=True, score=player.score, track=track)

    def vote_skip(self, sid: str) -> SkipOutcome:
        with self._lock:
            player = self._member(sid)
            # Votes only count while a track is live
            if player.solved or self.phase != Phase.PLAYING:
                return SkipOutcome(False, len(self.skip_votes), self.current_track_index)
            self.skip_votes.add(sid)
            unsolved = self.unsolved_count()
            logger.info(
                f"[skip-vote] room={self.room_id} name={player.name} votes={len(self.skip_votes)} needed={unsolved}"
            )
            if unsolved > 0 and len(self.skip_votes) >= unsolved:
                self.advance_track()
                return SkipOutcome(True, len(self.skip_votes), self.current_track_index)
            return SkipOutcome(False, len(self.skip_votes), self.current_track_index)

    # -------------------- Views -------------------- #

    def ordered_players(self) -> List[Player]:
        return sorted(self.players.values(), key=lambda p: p.joined_at)

    def snapshot(self):
        """Public view of the room; built fresh on every call."""
        with self._lock:
            track = self.current_track() if self.phase == Phase.PLAYING else None
            return {
                'room_id': self.room_id,
                'players': [p.to_dict() for p in self.ordered_players()],
                'current_track_index': self.current_track_index,
                'current_track': track.public_view() if track else None,
                'phase': self.phase.value,
                'skip_votes': len(self.skip_votes),
                'total_tracks': len(self.playlist),
            }
