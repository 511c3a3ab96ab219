from typing import List

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from tabletop import db
from tabletop.errors import UpstreamFailure
from tabletop.models import Token


def list_visible_tokens(game_id: int) -> List[Token]:
    """Global tokens plus the custom tokens owned by ``game_id``, by id."""
    try:
        return (
            Token.query
            .filter(or_(Token.is_custom.is_(False), Token.game_id == game_id))
            .order_by(Token.id)
            .all()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[tokens] read failed game={game_id}: {exc}")
        raise UpstreamFailure('Token storage unavailable', status_code=503) from exc
