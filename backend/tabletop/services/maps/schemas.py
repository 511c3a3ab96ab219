from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from tabletop.errors import ValidationError

Coordinate = Annotated[float, Field(allow_inf_nan=False)]


class Point(BaseModel):
    model_config = ConfigDict(strict=True, extra='forbid')

    x: Coordinate
    y: Coordinate


class DrawnElement(BaseModel):
    """One freehand stroke as persisted in a map snapshot."""

    model_config = ConfigDict(strict=True, extra='forbid')

    color: str = Field(min_length=1, max_length=64)
    size: float = Field(gt=0, allow_inf_nan=False)
    points: List[Point]


class MapSnapshot(BaseModel):
    """Body of a snapshot save: ``{"mapUrl": ..., "drawnElements": [...]}``."""

    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    map_url: Optional[str] = Field(default=None, alias='mapUrl', min_length=1, max_length=512)
    drawn_elements: List[DrawnElement] = Field(alias='drawnElements')


class JoinMap(BaseModel):
    game_id: int


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    where = '.'.join(str(part) for part in first.get('loc', ())) or 'body'
    return f"{where}: {first.get('msg')}"


def parse_snapshot(raw: Any) -> MapSnapshot:
    if not isinstance(raw, dict):
        raise ValidationError('mapData must be an object')
    try:
        return MapSnapshot.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(f'Invalid map snapshot ({_describe(exc)})') from exc


def parse_drawn_elements(raw: Any) -> List[dict]:
    """Validate a stroke list and return it as plain JSON-ready dicts."""
    if not isinstance(raw, list):
        raise ValidationError('drawnElements must be a list')
    try:
        elements = [DrawnElement.model_validate(item) for item in raw]
    except PydanticValidationError as exc:
        raise ValidationError(f'Invalid drawn element ({_describe(exc)})') from exc
    return [e.model_dump() for e in elements]


def parse_join(raw: Any) -> JoinMap:
    try:
        return JoinMap.model_validate(raw or {})
    except PydanticValidationError as exc:
        raise ValidationError(f'game_id is required ({_describe(exc)})') from exc
