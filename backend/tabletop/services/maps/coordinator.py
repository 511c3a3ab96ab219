from dataclasses import dataclass, field
from typing import Any, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from tabletop.errors import NotFound, ValidationError
from tabletop.models import GameMap
from . import store, tokens, participants
from .schemas import parse_drawn_elements

LIVE_EDIT_EVENT = 'map_updated'


@dataclass
class MapView:
    game_id: int
    map_url: Optional[str]
    drawn_elements: List[dict]
    tokens: List[dict] = field(default_factory=list)

    def to_dict(self):
        return {
            'mapUrl': self.map_url,
            'drawnElements': self.drawn_elements,
            'game': {'id': self.game_id},
            'tokens': self.tokens,
        }


class MapCoordinator:
    """Entry point for map reads, durable saves and live edits.

    Durable operations (background upload, snapshot save) never broadcast;
    live edits never persist. Clients treat the live channel as a hint and
    ``get_map_view`` as authoritative.
    """

    def __init__(self, broadcaster, asset_host, auto_create_on_save: bool = True):
        self.broadcaster = broadcaster
        self.asset_host = asset_host
        self.auto_create_on_save = auto_create_on_save

    def get_map_view(self, game_id: int) -> MapView:
        game_map = store.get_map(game_id)
        if game_map is None:
            raise NotFound('Map not found for the given gameId')
        visible = tokens.list_visible_tokens(game_id)
        return MapView(
            game_id=game_id,
            map_url=game_map.background_image_url,
            drawn_elements=list(game_map.drawn_elements or []),
            tokens=[t.to_dict() for t in visible],
        )

    def upload_background(self, game_id: int, image_bytes: bytes, mimetype: str) -> GameMap:
        if not image_bytes:
            raise ValidationError('mapImage is required')
        if not mimetype or not mimetype.startswith('image/'):
            raise ValidationError(f'Unsupported image type: {mimetype}')
        if not participants.game_exists(game_id):
            raise NotFound('Game not found')
        # An asset host failure propagates before the store is touched
        image_url = self.asset_host.store(image_bytes, mimetype)
        current_app.logger.info(f"[map-upload] game={game_id} bytes={len(image_bytes)} url={image_url}")
        return store.upsert_background_image(game_id, image_url)

    def save_snapshot(self, game_id: int, drawn_elements: Any, image_url: Optional[str] = None) -> GameMap:
        elements = parse_drawn_elements(drawn_elements)
        if image_url is not None and (not isinstance(image_url, str) or not image_url):
            raise ValidationError('mapUrl must be a non-empty string')
        if store.get_map(game_id) is None:
            if not self.auto_create_on_save:
                raise NotFound('Map not found for the given gameId')
            if not participants.game_exists(game_id):
                raise NotFound('Game not found')
            try:
                return store.create_map(game_id, elements, image_url)
            except IntegrityError:
                current_app.logger.info(f"[map-save] game={game_id} lost create race, replacing")
        return store.replace_snapshot(game_id, elements, image_url)

    def push_live_edit(self, game_id: int, payload: Any) -> int:
        if not isinstance(payload, dict):
            raise ValidationError('Live edit payload must be an object')
        return self.broadcaster.broadcast(game_id, LIVE_EDIT_EVENT, payload)


def get_coordinator() -> MapCoordinator:
    return current_app.extensions['map_coordinator']
