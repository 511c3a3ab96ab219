from functools import wraps

from flask import request, current_app
from flask_login import current_user
from flask_socketio import emit

from tabletop import socketio
from tabletop.errors import MapError, ValidationError
from tabletop.services.maps import SocketConnection, get_coordinator
from tabletop.services.maps.participants import require_map_viewer
from tabletop.services.maps.schemas import parse_join

NAMESPACE = '/ws'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _socket_errors(handler):
    """Report MapErrors back to the emitting client instead of raising."""
    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except MapError as exc:
            emit('error', {'message': exc.message, 'kind': exc.kind})
    return wrapper


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # Membership goes away with the socket; in-flight saves are unaffected
    get_coordinator().broadcaster.leave(_get_sid())


@_socket_errors
def handle_join_map(data):
    game_id = parse_join(data).game_id
    require_map_viewer(game_id, current_user)
    connection = SocketConnection(socketio, _get_sid(), namespace=request.namespace)
    get_coordinator().broadcaster.join(game_id, connection)
    emit('joined', {'game_id': game_id})


@_socket_errors
def handle_leave_map(data=None):
    game_id = get_coordinator().broadcaster.leave(_get_sid())
    emit('left', {'game_id': game_id})


@_socket_errors
def handle_live_edit(data):
    coordinator = get_coordinator()
    game_id = coordinator.broadcaster.game_of(_get_sid())
    if game_id is None:
        raise ValidationError('Join a map before sending live edits')
    delivered = coordinator.push_live_edit(game_id, data)
    current_app.logger.debug(f"[live-edit] game={game_id} from={_get_sid()} delivered={delivered}")


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join_map', handle_join_map, namespace=NAMESPACE)
    socketio.on_event('leave_map', handle_leave_map, namespace=NAMESPACE)
    socketio.on_event('live_edit', handle_live_edit, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
