"""Persistence for the one-map-per-game record.

Every write is a single commit that replaces whole columns, so a concurrent
reader sees either the previous snapshot or the new one. Concurrent
snapshot saves are last-write-wins.
"""

from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tabletop import db
from tabletop.errors import NotFound, UpstreamFailure
from tabletop.models import GameMap


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[map-store] commit failed: {exc}")
        raise UpstreamFailure('Map storage unavailable', status_code=503) from exc


def get_map(game_id: int) -> Optional[GameMap]:
    try:
        return GameMap.query.filter_by(game_id=game_id).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[map-store] read failed game={game_id}: {exc}")
        raise UpstreamFailure('Map storage unavailable', status_code=503) from exc


def create_map(game_id: int, drawn_elements: List[dict], image_url: Optional[str] = None) -> GameMap:
    """Insert the map row for a game.

    Raises IntegrityError (after rollback) if another request created the
    row first; callers decide how to reconcile.
    """
    game_map = GameMap(game_id=game_id, background_image_url=image_url, drawn_elements=list(drawn_elements))
    db.session.add(game_map)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[map-store] create failed game={game_id}: {exc}")
        raise UpstreamFailure('Map storage unavailable', status_code=503) from exc
    current_app.logger.info(f"[map-create] game={game_id} map={game_map.id}")
    return game_map


def upsert_background_image(game_id: int, image_url: str) -> GameMap:
    game_map = get_map(game_id)
    if game_map is None:
        try:
            return create_map(game_id, [], image_url)
        except IntegrityError:
            # Lost the creation race; update the row that won
            game_map = get_map(game_id)
            if game_map is None:
                raise UpstreamFailure('Map storage unavailable', status_code=503)
    game_map.background_image_url = image_url
    _commit()
    current_app.logger.info(f"[map-background] game={game_id} url={image_url}")
    return game_map


def replace_snapshot(game_id: int, drawn_elements: List[dict], image_url: Optional[str] = None) -> GameMap:
    game_map = get_map(game_id)
    if game_map is None:
        raise NotFound('Map not found for the given gameId')
    if image_url is not None:
        game_map.background_image_url = image_url
    # Assign a fresh list so the JSON column is rewritten as a whole
    game_map.drawn_elements = list(drawn_elements)
    _commit()
    current_app.logger.info(f"[map-save] game={game_id} strokes={len(drawn_elements)}")
    return game_map
