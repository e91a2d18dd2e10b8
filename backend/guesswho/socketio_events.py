from flask import current_app, request

from guesswho import socketio
from guesswho.errors import MalformedMessage
from guesswho.services.broadcast import NAMESPACE
from guesswho.services.protocol import (decode_chat, decode_code, decode_game_event,
                                        decode_join, decode_profile)


def _server():
    return current_app.extensions['guesswho']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _dispatch(decoder, action, data):
    """Decode once at the boundary, then hand the typed value to the server."""
    sid = _get_sid()
    try:
        decoded = decoder(data)
    except MalformedMessage as exc:
        _server().reject(sid, exc)
        return
    action(sid, decoded)


def handle_connect(auth=None):
    _server().connect(_get_sid())


def handle_disconnect(reason=None):
    _server().disconnect(_get_sid())


def handle_create_room(data):
    _dispatch(decode_profile, _server().create_room, data)


def handle_join_room(data):
    _dispatch(decode_join, _server().join_room, data)


def handle_start_game(data):
    _dispatch(decode_code, _server().start_game, data)


def handle_game_event(data):
    _dispatch(decode_game_event, _server().game_event, data)


def handle_chat(data):
    _dispatch(decode_chat, _server().chat, data)


def handle_leave_room(data=None):
    _server().leave_room(_get_sid())


def handle_request_rematch(data=None):
    _server().request_rematch(_get_sid())


def handle_ping(data=None):
    socketio.emit('pong', data or {}, to=_get_sid(), namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('create-room', handle_create_room, namespace=NAMESPACE)
    socketio.on_event('join-room', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('start-game', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('game-event', handle_game_event, namespace=NAMESPACE)
    socketio.on_event('chat', handle_chat, namespace=NAMESPACE)
    socketio.on_event('leave-room', handle_leave_room, namespace=NAMESPACE)
    socketio.on_event('request-rematch', handle_request_rematch, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
