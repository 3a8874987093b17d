from flask import Blueprint, jsonify

from tunerace import current_registry


rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    """Read-only snapshot of a room, the same payload sent as ``room_state``."""
    room = current_registry().get(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(room.snapshot())
