from datetime import datetime, timezone

from flask import Blueprint, jsonify

from tunerace import current_registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({
        'message': 'Tune Race game server',
        'status': 'running',
        'rooms': len(current_registry()),
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
