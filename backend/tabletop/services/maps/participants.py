"""Role checks the map subsystem needs from the game/participant records.

Only the creator may replace a map's background or snapshot; the creator
and accepted players may view it and use the live channel.
"""

from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from tabletop import db
from tabletop.errors import NotFound, Unauthorized, UpstreamFailure
from tabletop.models import Game, GameParticipant, ROLE_CREATOR, ROLE_PLAYER


def _storage_failure(game_id: int, exc: Exception) -> UpstreamFailure:
    db.session.rollback()
    current_app.logger.error(f"[participants] read failed game={game_id}: {exc}")
    return UpstreamFailure('Game storage unavailable', status_code=503)


def game_exists(game_id: int) -> bool:
    try:
        return db.session.get(Game, game_id) is not None
    except SQLAlchemyError as exc:
        raise _storage_failure(game_id, exc) from exc


def role_of(game_id: int, user_id: int) -> Optional[str]:
    """Return 'Creator', 'Player' (accepted only) or None."""
    try:
        game = db.session.get(Game, game_id)
        if game is None:
            return None
        if game.creator_id == user_id:
            return ROLE_CREATOR
        participant = GameParticipant.query.filter_by(game_id=game_id, user_id=user_id).first()
    except SQLAlchemyError as exc:
        raise _storage_failure(game_id, exc) from exc
    if participant is None:
        return None
    if participant.role == ROLE_CREATOR:
        return ROLE_CREATOR
    if participant.role == ROLE_PLAYER and participant.is_accepted:
        return ROLE_PLAYER
    return None


def can_edit_map(game_id: int, user) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    return role_of(game_id, user.id) == ROLE_CREATOR


def can_view_map(game_id: int, user) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    return role_of(game_id, user.id) in (ROLE_CREATOR, ROLE_PLAYER)


def _require(game_id: int, user, check, action: str) -> None:
    if user is None or not getattr(user, 'is_authenticated', False):
        raise Unauthorized('Authentication required', status_code=401)
    if not game_exists(game_id):
        raise NotFound('Game not found')
    if not check(game_id, user):
        raise Unauthorized(f'You are not allowed to {action} this map')


def require_map_editor(game_id: int, user) -> None:
    _require(game_id, user, can_edit_map, 'edit')


def require_map_viewer(game_id: int, user) -> None:
    _require(game_id, user, can_view_map, 'view')
