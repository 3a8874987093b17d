import os


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Frontend origins allowed for HTTP and Socket.IO (comma separated)
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',')
        if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Room rules
    ROOM_ID_LENGTH = int(os.environ.get('ROOM_ID_LENGTH', '6'))
    # 0 disables the cap
    MAX_PLAYERS_PER_ROOM = int(os.environ.get('MAX_PLAYERS_PER_ROOM', '16'))
    # When false, joins are only accepted while the room is waiting
    ALLOW_LATE_JOIN = _env_flag('ALLOW_LATE_JOIN', True)
    # When false, a room whose host leaves stays hostless
    TRANSFER_HOST_ON_LEAVE = _env_flag('TRANSFER_HOST_ON_LEAVE', True)
    POINTS_PER_CORRECT_GUESS = int(os.environ.get('POINTS_PER_CORRECT_GUESS', '100'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
