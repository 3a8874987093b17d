from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from typing import Dict, Optional, Tuple
import functools
import threading

from tunerace.errors import GameError, RoomNotFound
from tunerace.schemas import CreateRoomRequest, GuessRequest, JoinRoomRequest, parse_request
from tunerace.services.game.registry import RoomRegistry
from tunerace.services.game.room import Room


def _reports_errors(handler):
    """Turn a GameError raised by a handler into an event for the caller only."""
    @functools.wraps(handler)
    def wrapper(self, *args):
        try:
            return handler(self, *args)
        except GameError as exc:
            current_app.logger.info(f"[{exc.event}] sid={request.sid} {exc.message}")
            emit(exc.event, exc.to_dict())
    return wrapper


class SessionGateway:
    """Maps Socket.IO events onto room operations.

    The gateway owns the connection -> room binding; a connection is bound to
    at most one room. Room state is read under the room lock and fanned out
    only after the lock is released.
    """

    def __init__(self, socketio, registry: RoomRegistry, namespace: str = '/ws'):
        self.socketio = socketio
        self.registry = registry
        self.namespace = namespace
        self._bindings: Dict[str, str] = {}
        self._bindings_lock = threading.Lock()

    def register(self) -> None:
        events = {
            'connect': self.handle_connect,
            'disconnect': self.handle_disconnect,
            'create_room': self.handle_create_room,
            'join_room': self.handle_join_room,
            'leave_room': self.handle_leave_room,
            'make_guess': self.handle_guess,
            'guess': self.handle_guess,
            'vote_skip': self.handle_vote_skip,
            'start_game': self.handle_start_game,
        }
        for name, handler in events.items():
            self.socketio.on_event(name, handler, namespace=self.namespace)

    # ---- Bindings ----

    def bound_room_id(self, sid: str) -> Optional[str]:
        with self._bindings_lock:
            return self._bindings.get(sid)

    def _still_connected(self, sid: str) -> bool:
        return self.socketio.server.manager.is_connected(sid, self.namespace)

    def _bind(self, sid: str, room_id: str) -> bool:
        """Bind sid to room_id; returns False if the connection dropped meanwhile."""
        with self._bindings_lock:
            self._bindings[sid] = room_id
        join_room(room_id)
        if self._still_connected(sid):
            return True
        # The disconnect handler ran before this binding existed, so undo the join here
        current_app.logger.info(f"[bind-abandoned] room={room_id} sid={sid}")
        self._unbind(sid)
        self._leave(sid, room_id)
        return False

    def _unbind(self, sid: str) -> Optional[str]:
        with self._bindings_lock:
            return self._bindings.pop(sid, None)

    def _bound_room(self, sid: str) -> Tuple[str, Room]:
        room_id = self.bound_room_id(sid)
        room = self.registry.get(room_id) if room_id else None
        if room is None:
            raise RoomNotFound()
        return room_id, room

    # ---- Fan-out ----

    def _broadcast(self, event: str, payload, room_id: str) -> None:
        self.socketio.emit(event, payload, to=room_id, namespace=self.namespace)

    def _broadcast_state(self, room_id: str, state) -> None:
        self._broadcast('room_state', state, room_id)

    def _leave(self, sid: str, room_id: str, leave_channel: bool = True) -> None:
        if leave_channel:
            leave_room(room_id)
        room = self.registry.get(room_id)
        if room is None:
            return
        with room.transaction():
            player = room.remove_player(sid)
            state = room.snapshot()
        if player is None:
            return
        if state['players']:
            self._broadcast_state(room_id, state)
        else:
            self.registry.delete_if_empty(room_id)

    # ---- Handlers ----

    def handle_connect(self, auth=None):
        emit('connected', {'message': f'Connected to {self.namespace}'})

    def handle_disconnect(self, reason=None):
        sid = request.sid
        room_id = self._unbind(sid)
        current_app.logger.info(f"[disconnect] sid={sid} room={room_id} reason={reason}")
        if room_id:
            # The transport drops the connection from its channels on its own
            self._leave(sid, room_id, leave_channel=False)

    @_reports_errors
    def handle_create_room(self, data=None):
        req = parse_request(CreateRoomRequest, data)
        sid = request.sid
        previous = self.bound_room_id(sid)
        room_id, room = self.registry.create(sid, req.player_name)
        with room.transaction():
            state = room.snapshot()
        if previous:
            self._leave(sid, previous)
        if not self._bind(sid, room_id):
            return
        current_app.logger.info(f"[create_room] room={room_id} host={req.player_name} sid={sid}")
        emit('room_created', {
            'room_id': room_id,
            'success': True,
            'message': 'Room created successfully',
        })
        self._broadcast_state(room_id, state)

    @_reports_errors
    def handle_join_room(self, data=None):
        req = parse_request(JoinRoomRequest, data)
        sid = request.sid
        room = self.registry.get(req.room_id)
        if room is None:
            current_app.logger.info(f"[join_room] room={req.room_id} not found sid={sid}")
            raise RoomNotFound()
        previous = self.bound_room_id(sid)
        # Join the new room first so a rejected join keeps the old binding
        with room.transaction():
            room.add_player(sid, req.player_name)
            state = room.snapshot()
        if previous and previous != room.room_id:
            self._leave(sid, previous)
        if not self._bind(sid, room.room_id):
            return
        current_app.logger.info(f"[join_room] room={room.room_id} name={req.player_name} sid={sid}")
        emit('room_joined', {
            'room_id': room.room_id,
            'success': True,
            'message': 'Joined room successfully',
        })
        self._broadcast_state(room.room_id, state)

    @_reports_errors
    def handle_leave_room(self, data=None):
        sid = request.sid
        room_id = self._unbind(sid)
        if room_id is None:
            raise RoomNotFound()
        self._leave(sid, room_id)
        emit('room_left', {'room_id': room_id})

    @_reports_errors
    def handle_guess(self, data=None):
        req = parse_request(GuessRequest, data)
        sid = request.sid
        room_id, room = self._bound_room(sid)
        with room.transaction():
            outcome = room.submit_guess(sid, req.guess)
            player_name = room.players[sid].name
            state = room.snapshot()
        current_app.logger.info(
            f"[guess] room={room_id} name={player_name} correct={outcome.correct}"
        )
        emit('guess_result', {
            'guess': req.guess,
            'correct': outcome.correct,
            'current_score': outcome.score,
        })
        self._broadcast_state(room_id, state)
        if outcome.correct:
            # The solved track is safe to reveal now
            self._broadcast('correct_guess', {
                'player_name': player_name,
                'guess': req.guess,
                'track': outcome.track.to_dict(),
            }, room_id)

    @_reports_errors
    def handle_vote_skip(self, data=None):
        sid = request.sid
        room_id, room = self._bound_room(sid)
        with room.transaction():
            outcome = room.vote_skip(sid)
            state = room.snapshot()
        current_app.logger.info(
            f"[vote_skip] room={room_id} sid={sid} votes={outcome.vote_count} skipped={outcome.skipped}"
        )
        if outcome.skipped:
            self._broadcast('track_skipped', {
                'message': 'Track skipped by vote',
                'new_track_index': outcome.track_index,
            }, room_id)
        else:
            emit('skip_vote_recorded', {
                'message': 'Skip vote recorded',
                'skip_votes': outcome.vote_count,
            })
        self._broadcast_state(room_id, state)

    @_reports_errors
    def handle_start_game(self, data=None):
        sid = request.sid
        room_id, room = self._bound_room(sid)
        with room.transaction():
            started = room.start_game(sid)
            track = room.current_track()
            state = room.snapshot()
        if started:
            current_app.logger.info(f"[start_game] room={room_id} sid={sid}")
            self._broadcast('game_started', {
                'message': 'Game has started!',
                'current_track': track.public_view() if track else None,
            }, room_id)
        self._broadcast_state(room_id, state)
