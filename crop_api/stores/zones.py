import logging
import math
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crop_api.core.errors import DuplicateIdentity, NotFound, ValidationError
from crop_api.models.zone import ZONE_NAME_MAX_LENGTH, ZONE_NAME_MIN_LENGTH, Zone

logger = logging.getLogger(__name__)

ZONE_FIELDS = ("name", "description", "location")
LOCATION_TYPES = ("Point",)
NOT_FOUND_MESSAGE = "No zone found with that ID"


def clean_zone_name(value: Any) -> str:
    if value is None:
        raise ValueError("A zone must have a name")
    if not isinstance(value, str):
        raise ValueError("A zone name must be a string")
    normalized = value.strip()
    if len(normalized) < ZONE_NAME_MIN_LENGTH:
        raise ValueError(f"A zone name must have more or equal than {ZONE_NAME_MIN_LENGTH} characters")
    if len(normalized) > ZONE_NAME_MAX_LENGTH:
        raise ValueError(f"A zone name must have less or equal than {ZONE_NAME_MAX_LENGTH} characters")
    return normalized


def clean_description(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("A zone description must be a string")
    return value.strip() or None


def clean_location(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError("Location must be an object")

    location_type = value.get("type") or "Point"
    if location_type not in LOCATION_TYPES:
        raise ValueError("Location type must be 'Point'")

    cleaned: dict[str, Any] = {"type": location_type}

    coordinates = value.get("coordinates")
    if coordinates is not None:
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
            raise ValueError("Location coordinates must be a [longitude, latitude] pair")
        if any(isinstance(c, bool) or not isinstance(c, (int, float)) for c in coordinates):
            raise ValueError("Location coordinates must be numbers")
        if any(math.isnan(c) or math.isinf(c) for c in coordinates):
            raise ValueError("Location coordinates must be finite numbers")
        cleaned["coordinates"] = [float(c) for c in coordinates]

    address = value.get("address")
    if address is not None:
        if not isinstance(address, str):
            raise ValueError("Location address must be a string")
        cleaned["address"] = address.strip()

    return cleaned


_CLEANERS = {
    "name": clean_zone_name,
    "description": clean_description,
    "location": clean_location,
}


def filter_zone_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key in ZONE_FIELDS}


def zone_to_dict(zone: Zone) -> dict[str, Any]:
    return {
        "id": zone.id,
        "name": zone.name,
        "description": zone.description,
        "location": zone.location,
        "owner": zone.owner_id,
        "created_at": zone.created_at.isoformat() if zone.created_at else None,
    }


class ZoneStore:
    """Zone persistence where every lookup is keyed on the owner as well as the id."""

    def __init__(self, db: Session):
        self.db = db

    def _clean(self, fields: dict[str, Any]) -> dict[str, Any]:
        cleaned = {}
        for key, value in filter_zone_fields(fields).items():
            try:
                cleaned[key] = _CLEANERS[key](value)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
        return cleaned

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateIdentity("A zone with that name already exists") from exc

    def create(self, owner_id: int, fields: dict[str, Any]) -> Zone:
        cleaned = self._clean(fields)
        if "name" not in cleaned:
            raise ValidationError("A zone must have a name")

        zone = Zone(owner_id=owner_id, **cleaned)
        self.db.add(zone)
        self._commit()
        self.db.refresh(zone)
        logger.info("Created zone id=%s for user id=%s", zone.id, owner_id)
        return zone

    def find_all_by_owner(self, owner_id: int) -> list[Zone]:
        return self.db.query(Zone).filter(Zone.owner_id == owner_id).order_by(Zone.id.asc()).all()

    def find_one_by_owner(self, zone_id: int, owner_id: int) -> Zone | None:
        return self.db.query(Zone).filter(Zone.id == zone_id, Zone.owner_id == owner_id).first()

    def update_by_owner(self, zone_id: int, owner_id: int, patch: dict[str, Any]) -> Zone:
        zone = self.find_one_by_owner(zone_id, owner_id)
        if zone is None:
            raise NotFound(NOT_FOUND_MESSAGE)

        cleaned = self._clean(patch)
        for key, value in cleaned.items():
            setattr(zone, key, value)

        self._commit()
        self.db.refresh(zone)
        return zone

    def delete_by_owner(self, zone_id: int, owner_id: int) -> None:
        zone = self.find_one_by_owner(zone_id, owner_id)
        if zone is None:
            raise NotFound(NOT_FOUND_MESSAGE)

        self.db.delete(zone)
        self.db.commit()
        logger.info("Deleted zone id=%s for user id=%s", zone_id, owner_id)
