from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from crop_api.auth.dependencies import get_current_identity
from crop_api.auth.tokens import Identity
from crop_api.core.errors import NotFound
from crop_api.database import get_db
from crop_api.stores.zones import (
    NOT_FOUND_MESSAGE,
    ZoneStore,
    clean_description,
    clean_location,
    clean_zone_name,
    zone_to_dict,
)

# Every route below requires a token; the dependency runs before any lookup.
router = APIRouter(tags=['zones'], dependencies=[Depends(get_current_identity)])


class CreateZoneRequest(BaseModel):
    """Accepted zone fields. Anything else in the body (owner, id, created_at) is dropped."""

    name: str
    description: str | None = None
    location: dict[str, Any] | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_zone_name(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return clean_description(value)

    @field_validator('location')
    @classmethod
    def validate_location(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        return clean_location(value)


class UpdateZoneRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    location: dict[str, Any] | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str:
        return clean_zone_name(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return clean_description(value)

    @field_validator('location')
    @classmethod
    def validate_location(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        return clean_location(value)


@router.get('')
def list_zones(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    zones = ZoneStore(db).find_all_by_owner(identity.user_id)
    return {
        'status': 'success',
        'results': len(zones),
        'data': {'zones': [zone_to_dict(zone) for zone in zones]},
    }


@router.post('', status_code=status.HTTP_201_CREATED)
def create_zone(
    data: CreateZoneRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    zone = ZoneStore(db).create(identity.user_id, data.model_dump(exclude_unset=True))
    return {'status': 'success', 'data': {'zone': zone_to_dict(zone)}}


@router.get('/{zone_id}')
def get_zone(zone_id: int, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    zone = ZoneStore(db).find_one_by_owner(zone_id, identity.user_id)
    if zone is None:
        raise NotFound(NOT_FOUND_MESSAGE)
    return {'status': 'success', 'data': {'zone': zone_to_dict(zone)}}


@router.patch('/{zone_id}')
def update_zone(
    zone_id: int,
    data: UpdateZoneRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    zone = ZoneStore(db).update_by_owner(zone_id, identity.user_id, data.model_dump(exclude_unset=True))
    return {'status': 'success', 'data': {'zone': zone_to_dict(zone)}}


@router.delete('/{zone_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_zone(zone_id: int, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    ZoneStore(db).delete_by_owner(zone_id, identity.user_id)
