"""Failures reported back to the connection that issued a request.

Each error maps to one outbound Socket.IO event so clients can react to the
kind of failure without parsing messages. None of them is fatal to a room.
"""


class GameError(Exception):
    event = 'game_error'
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'message': self.message}


class RoomNotFound(GameError):
    event = 'room_not_found'
    default_message = 'Room not found'


class NotAMember(GameError):
    event = 'not_a_member'
    default_message = 'Player not found in room'


class AlreadySolved(GameError):
    event = 'already_solved'
    default_message = 'You have already solved this track'


class NotHost(GameError):
    event = 'not_host'
    default_message = 'Only the host can start the game'


class RoomFullOrInvalid(GameError):
    event = 'room_full_or_invalid'
    default_message = 'Room is not accepting players'


class InvalidRequest(GameError):
    event = 'invalid_request'
    default_message = 'Invalid request payload'


class DuplicateRoomId(Exception):
    """Raised when a generated room id is already taken; retried by the registry."""
