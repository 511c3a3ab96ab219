from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user

from tabletop.errors import MapError, ValidationError
from tabletop.services.maps import get_coordinator
from tabletop.services.maps.participants import require_map_editor, require_map_viewer
from tabletop.services.maps.schemas import parse_snapshot

maps = Blueprint('maps', __name__)


@maps.errorhandler(MapError)
def handle_map_error(exc):
    if exc.status_code >= 500:
        current_app.logger.warning(f"[map-error] {request.method} {request.path}: {exc.message}")
    return jsonify({'error': exc.message}), exc.status_code


@maps.route('/<int:game_id>', methods=['GET'])
def get_map(game_id):
    """
    Returns the background, strokes and visible tokens for a game's map.
    """
    require_map_viewer(game_id, current_user)
    view = get_coordinator().get_map_view(game_id)
    return jsonify(view.to_dict())


@maps.route('/<int:game_id>/background', methods=['POST'])
def upload_background(game_id):
    """
    Uploads a new background image. Strokes are left untouched and
    viewers pick the new image up on their next map fetch.
    """
    require_map_editor(game_id, current_user)
    upload = request.files.get('mapImage')
    if upload is None:
        raise ValidationError('mapImage is required')
    game_map = get_coordinator().upload_background(game_id, upload.read(), upload.mimetype)
    return jsonify({'mapUrl': game_map.background_image_url, 'map': game_map.to_dict()})


@maps.route('/<int:game_id>/snapshot', methods=['POST'])
def save_snapshot(game_id):
    """
    Replaces the persisted strokes (and optionally the background URL).
    """
    require_map_editor(game_id, current_user)
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'mapData' not in data:
        raise ValidationError('mapData is required')
    snapshot = parse_snapshot(data['mapData'])
    game_map = get_coordinator().save_snapshot(
        game_id,
        [e.model_dump() for e in snapshot.drawn_elements],
        snapshot.map_url,
    )
    return jsonify({'message': 'Map status updated successfully', 'map': game_map.to_dict()})
